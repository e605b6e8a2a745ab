#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 19:12:37 krylon>
#
# /data/code/python/pynum/monitor.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyNum network uptime monitor. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pynum.monitor

(c) 2026 Benjamin Walkenhorst

The Monitor sets everything up, then pings the target once per interval
until it is told to stop. Stopping only happens between two pings, so a
ping that is under way always makes it into the result log.
"""

import logging
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum, auto
from threading import Event, RLock, Thread
from typing import Final, Optional

from pynum import common
from pynum.clock import Clock, SystemClock
from pynum.config import Settings
from pynum.display import Sink
from pynum.engine import ProbeEngine
from pynum.ledger import LedgerError, ResultLedger
from pynum.model import ProbeAttempt, Snapshot, Target
from pynum.resolver import TargetResolver
from pynum.transport import IcmpTransport, ScriptedTransport, Transport

dry_run_script: Final[list[Optional[float]]] = [12.5, 11.0, 14.25, None, 13.0, 12.0]


class State(Enum):
    """State is the phase of life a Monitor is in."""

    Initializing = auto()
    Running = auto()
    ShuttingDown = auto()
    Terminated = auto()


@dataclass(kw_only=True, slots=True)
class Monitor:
    """Monitor drives the ProbeEngine and feeds the display."""

    log: logging.Logger = field(default_factory=lambda: common.get_logger("monitor"))
    lock: RLock = field(default_factory=RLock)
    settings: Settings
    sink: Sink
    clock: Clock = field(default_factory=SystemClock)
    resolver: Optional[TargetResolver] = None
    transport: Optional[Transport] = None
    # Seconds between pings, zero means use the configured delay.
    interval: float = 0.0
    target: Optional[Target] = None
    ledger: Optional[ResultLedger] = None
    engine: Optional[ProbeEngine] = None
    error: Optional[Exception] = None
    ticks: int = 0
    _state: State = State.Initializing
    _last: Optional[ProbeAttempt] = None
    _stop: Event = field(default_factory=Event)
    _worker: Optional[Thread] = None

    def __post_init__(self) -> None:
        if self.interval <= 0:
            self.interval = float(self.settings.delay)

    @property
    def state(self) -> State:
        """Return the Monitor's state."""
        with self.lock:
            return self._state

    @property
    def active(self) -> bool:
        """Return True while the Monitor is running."""
        with self.lock:
            return self._state in (State.Running, State.ShuttingDown)

    def _set_state(self, st: State) -> None:
        with self.lock:
            self.log.debug("State %s -> %s", self._state.name, st.name)
            self._state = st

    def setup(self) -> None:
        """Resolve the target, then create the result files and the Engine.

        If anything goes wrong, the Monitor is Terminated and the error is
        passed on to the caller.
        """
        with self.lock:
            if self._state != State.Initializing:
                raise common.NumError(f"Monitor cannot be set up in state {self._state.name}")

            try:
                if self.resolver is None:
                    self.resolver = TargetResolver(prefer_ipv6=self.settings.prefer_ipv6)
                self.target = self.resolver.resolve(self.settings.address)

                if self.transport is None:
                    if self.settings.dry_run:
                        self.transport = ScriptedTransport.from_list(dry_run_script, cycle=True)
                    else:
                        self.transport = IcmpTransport(privileged=self.settings.privileged)
                self.transport.prepare(self.target)

                self.ledger = ResultLedger(started=self.clock.now(),
                                           folder=self.settings.output,
                                           target=self.target,
                                           cfg=self.settings.probe_config())
                self.ledger.create()

                self.engine = ProbeEngine(target=self.target,
                                          cfg=self.settings.probe_config(),
                                          ledger=self.ledger,
                                          transport=self.transport,
                                          clock=self.clock)
            except common.NumError as err:
                self.log.error("Setup failed: %s", err)
                self._release()
                self._set_state(State.Terminated)
                raise

            self.log.info("Monitoring %s (%s), writing to %s",
                          self.settings.address,
                          self.target,
                          self.ledger.log_path)
            self._set_state(State.Running)

    def start(self) -> None:
        """Run the Monitor in a separate thread."""
        with self.lock:
            if self._state == State.Initializing:
                self.setup()
            if self._state != State.Running or self._worker is not None:
                raise common.NumError(f"Monitor cannot be started in state {self._state.name}")

            self._worker = Thread(target=self.run, name="monitor", daemon=False)
            self._worker.start()

    def stop(self, wait: bool = True) -> None:
        """Ask the Monitor to stop after the current ping.

        If <wait> is True, block until the Monitor has shut down.
        """
        with self.lock:
            if self._state == State.Running:
                self._set_state(State.ShuttingDown)
            worker: Optional[Thread] = self._worker
            self._stop.set()

        if worker is None:
            self._shutdown()
        elif wait:
            self.join()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the worker thread to finish."""
        worker: Optional[Thread] = self._worker
        if worker is not None:
            worker.join(timeout)

    def run(self, max_ticks: Optional[int] = None) -> None:
        """Ping the target once per interval until stopped.

        With <max_ticks>, return after that many pings.
        """
        if self.state == State.Initializing:
            self.setup()

        self.log.debug("Monitor loop is starting, interval is %.3f s", self.interval)
        deadline: float = time.monotonic()

        try:
            while not self._stop.is_set():
                if max_ticks is not None and self.ticks >= max_ticks:
                    break

                pause: float = deadline - time.monotonic()
                if pause > 0 and self._stop.wait(pause):
                    break

                self._tick()

                deadline += self.interval
                now: float = time.monotonic()
                if deadline <= now:
                    missed: int = int((now - deadline) // self.interval) + 1
                    self.log.warning("Ping took too long, skipping %d tick(s)", missed)
                    deadline += missed * self.interval
        except LedgerError as lerr:
            self.log.error("Cannot write to the result log, stopping: %s", lerr)
            with self.lock:
                self.error = lerr
        except Exception as err:  # pylint: disable-msg=W0718
            cname: Final[str] = err.__class__.__name__
            self.log.error("%s in Monitor loop, stopping: %s\n%s",
                           cname,
                           err,
                           "\n".join(traceback.format_exception(err)))
            with self.lock:
                self.error = err
        finally:
            with self.lock:
                if self._state == State.Running:
                    self._set_state(State.ShuttingDown)
            self.log.debug("Monitor loop is quitting after %d pings.", self.ticks)
            self._shutdown()

    def _tick(self) -> None:
        if self.engine is None:
            raise common.NumError("Monitor has not been set up")
        attempt: Final[ProbeAttempt] = self.engine.probe()

        with self.lock:
            self._last = attempt
            self.ticks += 1

        snap: Final[Snapshot] = self.snapshot()
        try:
            self.sink.show(snap)
        except Exception as err:  # pylint: disable-msg=W0718
            cname: Final[str] = err.__class__.__name__
            self.log.error("%s displaying status: %s\n%s",
                           cname,
                           err,
                           "\n".join(traceback.format_exception(err)))

    def snapshot(self) -> Snapshot:
        """Return a Snapshot of the Monitor's state."""
        with self.lock:
            if self.engine is None or self.target is None:
                raise common.NumError("Monitor has not been set up")
            st = self.engine.state
            return Snapshot(target=self.target,
                            address=self.settings.address,
                            output_path=self.settings.output,
                            delay=self.settings.delay,
                            timeout=self.settings.timeout,
                            num_bytes=self.settings.num_bytes,
                            ttl=self.settings.ttl,
                            last_success=st.last_success,
                            last_failure=st.last_failure,
                            last_attempt=self._last,
                            sent=st.sent,
                            failed=st.failed)

    def _release(self) -> None:
        """Close the ledger and the transport, if we have them."""
        if self.ledger is not None:
            try:
                self.ledger.close()
            except LedgerError as lerr:
                self.log.error("Error closing result log: %s", lerr)
                if self.error is None:
                    self.error = lerr
        if self.engine is not None:
            self.engine.close()
        elif self.transport is not None:
            self.transport.close()

    def _shutdown(self) -> None:
        with self.lock:
            if self._state == State.Terminated:
                return
            self._release()
            self._set_state(State.Terminated)
        self.sink.close()
        self.log.info("Monitor has stopped after %d pings.", self.ticks)


# Local Variables: #
# python-indent: 4 #
# End: #
