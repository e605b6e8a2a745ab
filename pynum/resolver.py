#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 16:02:55 krylon>
#
# /data/code/python/pynum/resolver.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyNum network uptime monitor. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pynum.resolver

(c) 2026 Benjamin Walkenhorst
"""

import logging
import socket
from dataclasses import dataclass, field
from ipaddress import ip_address
from typing import Final, Optional

from dns.exception import DNSException, Timeout
from dns.resolver import (NXDOMAIN, LifetimeTimeout, NoAnswer, NoNameservers,
                          Resolver)

from pynum import common
from pynum.common import NumError
from pynum.model import Target

res_timeout: Final[float] = 2.5


class ResolveError(NumError):
    """ResolveError indicates the target address could not be turned into an IP address."""


def parse_literal(address: str) -> Optional[Target]:
    """Return <address> as an IP address if it is one, else None.

    A bracketed IPv6 address with a port, like [::1]:80, counts as a literal.
    """
    s: str = address.strip()
    if s.startswith("["):
        end: int = s.find("]")
        if end < 0:
            return None
        s = s[1:end]
    try:
        return ip_address(s)
    except ValueError:
        return None


def split_host_port(address: str) -> tuple[str, int]:
    """Split a hostname of the form host:port. Without a port, use a dummy."""
    if ":" not in address:
        return address, 80

    host, _, pstr = address.rpartition(":")
    try:
        port: int = int(pstr)
    except ValueError as verr:
        raise ResolveError(f"Invalid port number in {address}") from verr
    if not 0 <= port < 65536:
        raise ResolveError(f"Port number {port} in {address} is out of range")
    if host == "":
        raise ResolveError(f"No hostname in {address}")
    return host, port


@dataclass(kw_only=True, slots=True)
class TargetResolver:
    """TargetResolver turns the address given by the user into an IP address."""

    log: logging.Logger = field(default_factory=lambda: common.get_logger("resolver"))
    # None until the first hostname lookup.
    res: Optional[Resolver] = None
    prefer_ipv6: bool = False

    def _resolver(self) -> Resolver:
        if self.res is None:
            self.res = Resolver()
            self.res.timeout = res_timeout
            self.res.lifetime = res_timeout
        return self.res

    def resolve(self, address: str) -> Target:
        """Return the IP address for <address>, looking up hostnames in the DNS."""
        addr: Optional[Target] = parse_literal(address)
        if addr is not None:
            self.log.debug("%s is an IP address, no lookup needed.", address)
            return addr

        host, _port = split_host_port(address.strip())
        addr = self.lookup(host)
        self.log.info("Resolved %s to %s", address, addr)
        return addr

    def lookup(self, name: str) -> Target:
        """Look up the addresses of hostname <name> and return the first one."""
        families: Final[tuple[int, int]] = \
            (socket.AF_INET6, socket.AF_INET) if self.prefer_ipv6 \
            else (socket.AF_INET, socket.AF_INET6)

        try:
            reply = self._resolver().resolve_name(name)
            for fam in families:
                for astr in reply.addresses(fam):
                    return ip_address(astr)
        except NXDOMAIN as nx:
            self.log.error("Couldn't resolve %s: %s",
                           name,
                           nx)
            raise ResolveError(f"{name} does not exist") from nx
        except NoNameservers as fail:
            self.log.error("Failed to get a response for %s from upstream resolver(s): %s",
                           name,
                           fail)
            raise ResolveError(f"No nameserver answered the query for {name}") from fail
        except (LifetimeTimeout, Timeout) as terr:
            raise ResolveError(f"Timeout resolving {name}") from terr
        except NoAnswer as nerr:
            raise ResolveError(f"{name} has no addresses") from nerr
        except DNSException as derr:
            raise ResolveError(f"Error resolving {name}: {derr}") from derr

        raise ResolveError(f"{name} has no addresses")


# Local Variables: #
# python-indent: 4 #
# End: #
