#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 15:26:42 krylon>
#
# /data/code/python/pynum/clock.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyNum network uptime monitor. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pynum.clock

(c) 2026 Benjamin Walkenhorst

Clocks hand out the wall-clock timestamps that end up in the result log.
The Monitor and the Engine receive a Clock instead of asking the system
directly, so tests can substitute a ManualClock.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from threading import Lock
from typing import Protocol


class Clock(Protocol):
    """Clock is anything that can tell the current time."""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware datetime."""


class SystemClock:
    """SystemClock returns the local time of the host."""

    __slots__ = []

    def now(self) -> datetime:
        """Return the current local time."""
        return datetime.now().astimezone()


@dataclass(kw_only=True, slots=True)
class ManualClock:
    """ManualClock starts at a fixed point in time and moves a fixed step on each call."""

    start: datetime
    step: timedelta = field(default_factory=lambda: timedelta(seconds=5))
    lock: Lock = field(default_factory=Lock)
    _current: datetime = field(init=False)
    _started: bool = False

    def __post_init__(self) -> None:
        if self.start.tzinfo is None:
            self.start = self.start.astimezone()
        self._current = self.start

    def now(self) -> datetime:
        """Return the current time, then advance by one step."""
        with self.lock:
            if self._started:
                self._current += self.step
            self._started = True
            return self._current

    def set(self, stamp: datetime) -> None:
        """Set the time the next call to now() returns."""
        with self.lock:
            self._current = stamp
            self._started = False


# Local Variables: #
# python-indent: 4 #
# End: #
