#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 15:40:13 krylon>
#
# /data/code/python/pynum/model.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyNum network uptime monitor. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pynum.model

(c) 2026 Benjamin Walkenhorst
"""

from dataclasses import dataclass
from datetime import datetime
from ipaddress import IPv4Address, IPv6Address
from pathlib import Path
from typing import Final, Optional, Union

Target = Union[IPv4Address, IPv6Address]

failed_marker: Final[str] = "failed"


@dataclass(slots=True, kw_only=True, frozen=True)
class ProbeConfig:
    """ProbeConfig holds the parameters of a monitoring run."""

    num_bytes: int = 4
    timeout: int = 1000  # milliseconds
    ttl: int = 128
    delay: int = 120  # seconds

    @property
    def timeout_sec(self) -> float:
        """Return the timeout in seconds."""
        return self.timeout / 1000


@dataclass(slots=True, frozen=True)
class Success:
    """Success is the outcome of a probe that got a reply."""

    latency: float  # milliseconds

    @property
    def ok(self) -> bool:
        """Return True, obviously."""
        return True


@dataclass(slots=True, frozen=True)
class Failure:
    """Failure is the outcome of a probe that did not get a reply."""

    reason: str = failed_marker

    @property
    def ok(self) -> bool:
        """Return False."""
        return False


Outcome = Union[Success, Failure]


@dataclass(slots=True, kw_only=True, frozen=True)
class ProbeAttempt:
    """ProbeAttempt is a single probe, stamped with the time it was sent."""

    stamp: datetime
    outcome: Outcome

    @property
    def ok(self) -> bool:
        """Return True if the probe was answered."""
        return self.outcome.ok


@dataclass(slots=True, kw_only=True)
class EngineState:
    """EngineState remembers the most recent success and failure."""

    last_success: Optional[tuple[datetime, float]] = None
    last_failure: Optional[datetime] = None
    sent: int = 0
    failed: int = 0

    def update(self, attempt: ProbeAttempt) -> None:
        """Fold a completed ProbeAttempt into the state.

        Only the field matching the attempt's outcome is touched, and an
        attempt older than the value already recorded is ignored.
        """
        self.sent += 1
        match attempt.outcome:
            case Success(latency=latency):
                if self.last_success is None or self.last_success[0] < attempt.stamp:
                    self.last_success = (attempt.stamp, latency)
            case Failure():
                self.failed += 1
                if self.last_failure is None or self.last_failure < attempt.stamp:
                    self.last_failure = attempt.stamp


@dataclass(slots=True, kw_only=True, frozen=True)
class Snapshot:
    """Snapshot is a read-only view of the monitor, handed to the display after each tick."""

    target: Target
    address: str
    output_path: Path
    delay: int
    timeout: int
    num_bytes: int
    ttl: int
    last_success: Optional[tuple[datetime, float]]
    last_failure: Optional[datetime]
    last_attempt: Optional[ProbeAttempt]
    sent: int = 0
    failed: int = 0

    @property
    def loss(self) -> float:
        """Return the share of failed probes in percent."""
        if self.sent == 0:
            return 0.0
        return self.failed * 100.0 / self.sent


# Local Variables: #
# python-indent: 4 #
# End: #
