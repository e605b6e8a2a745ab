#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 17:05:31 krylon>
#
# /data/code/python/pynum/transport.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyNum network uptime monitor. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pynum.transport

(c) 2026 Benjamin Walkenhorst

A Transport sends a single ICMP echo request and waits for the reply.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from ipaddress import IPv4Address
from threading import Lock
from typing import Final, Iterable, Optional, Union

from icmplib import (ICMPLibError, ICMPRequest, ICMPv4Socket, ICMPv6Socket,
                     TimeoutExceeded)

from pynum import common
from pynum.common import NumError
from pynum.model import Target

# We only ever talk to one host, so there is no need to vary these.
echo_id: Final[int] = 0x4e55
echo_seq: Final[int] = 1
# Upper bound on stale packets discarded before a single request.
max_drain: Final[int] = 64


class TransportError(NumError):
    """TransportError indicates a probe did not get a valid reply."""


class Transport(ABC):
    """Transport is the interface to whatever sends the actual pings."""

    @abstractmethod
    def send(self, target: Target, payload_size: int, ttl: int, timeout: float) -> float:
        """Send one echo request to <target> and return the round trip time in milliseconds.

        <timeout> is in seconds. Raise TransportError if no reply arrives in time.
        """
        raise NotImplementedError

    def prepare(self, target: Target) -> None:
        """Acquire whatever is needed to ping <target>, so problems show up before the first ping."""

    def close(self) -> None:
        """Release whatever resources the Transport holds."""


@dataclass(kw_only=True, slots=True)
class IcmpTransport(Transport):
    """IcmpTransport sends pings using icmplib.

    It opens one socket per address family on first use and keeps it
    until close() is called.
    """

    log: logging.Logger = field(default_factory=lambda: common.get_logger("icmp"))
    lock: Lock = field(default_factory=Lock)
    privileged: bool = True
    sock4: Optional[ICMPv4Socket] = None
    sock6: Optional[ICMPv6Socket] = None

    def _socket(self, target: Target) -> Union[ICMPv4Socket, ICMPv6Socket]:
        if isinstance(target, IPv4Address):
            if self.sock4 is None:
                self.log.debug("Open ICMPv4 socket (privileged=%s)", self.privileged)
                self.sock4 = ICMPv4Socket(privileged=self.privileged)
            return self.sock4

        if self.sock6 is None:
            self.log.debug("Open ICMPv6 socket (privileged=%s)", self.privileged)
            self.sock6 = ICMPv6Socket(privileged=self.privileged)
        return self.sock6

    def prepare(self, target: Target) -> None:
        with self.lock:
            try:
                self._socket(target)
            except (ICMPLibError, OSError) as err:
                self.log.error("Cannot open ICMP socket: %s", err)
                raise TransportError(f"Cannot open ICMP socket: {err}") from err

    def send(self, target: Target, payload_size: int, ttl: int, timeout: float) -> float:
        with self.lock:
            try:
                sock = self._socket(target)
                stale: int = self._drain(sock)
                if stale > 0:
                    self.log.debug("Discarded %d stale packet(s) before pinging %s",
                                   stale,
                                   target)
                req: ICMPRequest = ICMPRequest(destination=str(target),
                                               id=echo_id,
                                               sequence=echo_seq,
                                               payload_size=payload_size,
                                               ttl=ttl)
                sock.send(req)
                reply = sock.receive(req, timeout)
                reply.raise_for_status()
            except TimeoutExceeded as terr:
                raise TransportError(f"Request to {target} timed out") from terr
            except ICMPLibError as err:
                cname: Final[str] = err.__class__.__name__
                self.log.debug("%s pinging %s: %s",
                               cname,
                               target,
                               err)
                raise TransportError(f"{cname}: {err}") from err
            except OSError as oerr:
                raise TransportError(f"Socket error pinging {target}: {oerr}") from oerr

            return round((reply.time - req.time) * 1000, 3)

    def _drain(self, sock: Union[ICMPv4Socket, ICMPv6Socket]) -> int:
        """Throw away any packets already waiting on <sock>.

        Since id and sequence never change, a reply that arrived after an
        earlier request timed out would otherwise match the next request.
        """
        raw = sock.sock
        if raw is None:
            return 0

        count: int = 0
        raw.setblocking(False)
        try:
            while count < max_drain:
                raw.recvfrom(1024)
                count += 1
        except BlockingIOError:
            pass
        return count

    def close(self) -> None:
        with self.lock:
            for sock in (self.sock4, self.sock6):
                if sock is not None and not sock.closed:
                    sock.close()
            self.sock4 = None
            self.sock6 = None


Step = Optional[float]


@dataclass(kw_only=True, slots=True)
class ScriptedTransport(Transport):
    """ScriptedTransport replays a list of latencies, None meaning a lost ping.

    When the script is used up, it either starts over (cycle=True) or
    reports every further ping as lost.
    """

    log: logging.Logger = field(default_factory=lambda: common.get_logger("scripted"))
    lock: Lock = field(default_factory=Lock)
    script: deque[Step] = field(default_factory=deque)
    cycle: bool = False
    calls: list[tuple[Target, int, int, float]] = field(default_factory=list)
    closed: bool = False

    @classmethod
    def from_list(cls, steps: Iterable[Step], cycle: bool = False) -> 'ScriptedTransport':
        """Create a ScriptedTransport from a sequence of steps."""
        return cls(script=deque(steps), cycle=cycle)

    def send(self, target: Target, payload_size: int, ttl: int, timeout: float) -> float:
        with self.lock:
            if self.closed:
                raise TransportError("Transport has been closed")
            self.calls.append((target, payload_size, ttl, timeout))
            if len(self.script) == 0:
                raise TransportError(f"Request to {target} timed out")

            step: Step = self.script.popleft()
            if self.cycle:
                self.script.append(step)

        if step is None:
            raise TransportError(f"Request to {target} timed out")
        return step

    def close(self) -> None:
        with self.lock:
            self.closed = True


# Local Variables: #
# python-indent: 4 #
# End: #
