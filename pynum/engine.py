#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 17:31:48 krylon>
#
# /data/code/python/pynum/engine.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyNum network uptime monitor. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pynum.engine

(c) 2026 Benjamin Walkenhorst
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from threading import RLock
from typing import Final, Optional

from pynum import common
from pynum.clock import Clock, SystemClock
from pynum.ledger import ResultLedger
from pynum.model import (EngineState, Failure, Outcome, ProbeAttempt,
                         ProbeConfig, Success, Target)
from pynum.transport import Transport, TransportError

tick: Final[timedelta] = timedelta(microseconds=1)


@dataclass(kw_only=True, slots=True)
class ProbeEngine:
    """ProbeEngine sends one ping per call and records the result."""

    log: logging.Logger = field(default_factory=lambda: common.get_logger("engine"))
    lock: RLock = field(default_factory=RLock)
    target: Target
    cfg: ProbeConfig
    ledger: ResultLedger
    transport: Transport
    clock: Clock = field(default_factory=SystemClock)
    _state: EngineState = field(default_factory=EngineState)
    _last_stamp: Optional[datetime] = None

    @property
    def state(self) -> EngineState:
        """Return a copy of the Engine's state."""
        with self.lock:
            return EngineState(last_success=self._state.last_success,
                               last_failure=self._state.last_failure,
                               sent=self._state.sent,
                               failed=self._state.failed)

    def _now(self) -> datetime:
        stamp: datetime = self.clock.now()
        if self._last_stamp is not None and stamp <= self._last_stamp:
            self.log.warning("Clock went backwards or stood still (%s after %s), adjusting.",
                             stamp.isoformat(),
                             self._last_stamp.isoformat())
            stamp = self._last_stamp + tick
        self._last_stamp = stamp
        return stamp

    def probe(self) -> ProbeAttempt:
        """Ping the target once, log the result, and return it.

        A LedgerError is passed on to the caller, in that case the
        Engine's state is left as it was.
        """
        with self.lock:
            stamp: Final[datetime] = self._now()
            outcome: Outcome

            try:
                latency: float = self.transport.send(self.target,
                                                     self.cfg.num_bytes,
                                                     self.cfg.ttl,
                                                     self.cfg.timeout_sec)
                outcome = Success(latency)
            except TransportError as terr:
                self.log.info("Ping to %s failed: %s",
                              self.target,
                              terr)
                outcome = Failure(str(terr))

            self.ledger.append_result(stamp, outcome)

            attempt: Final[ProbeAttempt] = ProbeAttempt(stamp=stamp, outcome=outcome)
            self._state.update(attempt)
            return attempt

    def close(self) -> None:
        """Release the Transport."""
        with self.lock:
            self.transport.close()


# Local Variables: #
# python-indent: 4 #
# End: #
