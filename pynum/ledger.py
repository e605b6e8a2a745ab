#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 16:37:20 krylon>
#
# /data/code/python/pynum/ledger.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyNum network uptime monitor. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pynum.ledger

(c) 2026 Benjamin Walkenhorst

The ledger keeps the permanent record of a monitoring run: a JSON file
holding the run's parameters, and a CSV file that receives one row per
probe. Both files are named after the time the run started, and neither
is ever overwritten.
"""

import csv
import io
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Final, Iterator, Optional, TextIO, Union

from pynum import common
from pynum.common import NumError
from pynum.model import (Failure, Outcome, ProbeAttempt, ProbeConfig, Success,
                         Target, failed_marker)

csv_header: Final[tuple[str, str]] = ("Timestamp", "Latency(ms)")


class LedgerError(NumError):
    """LedgerError indicates the result files could not be created or written."""


def format_latency(outcome: Outcome) -> str:
    """Return the text that goes into the latency column for <outcome>."""
    match outcome:
        case Success(latency=lat):
            return str(lat)
        case _:
            return failed_marker


def parse_row(row: list[str]) -> ProbeAttempt:
    """Turn a row of the result log back into a ProbeAttempt."""
    if len(row) != 2:
        raise LedgerError(f"Malformed row in result log: {row}")

    try:
        stamp: datetime = datetime.fromisoformat(row[0])
        outcome: Outcome = Failure() if row[1] == failed_marker else Success(float(row[1]))
    except ValueError as verr:
        raise LedgerError(f"Cannot parse row {row}: {verr}") from verr

    return ProbeAttempt(stamp=stamp, outcome=outcome)


def read_log(path: Union[str, Path]) -> Iterator[ProbeAttempt]:
    """Read a result log, yielding one ProbeAttempt per row."""
    try:
        with open(path, "r", encoding="utf-8", newline="") as fh:
            rdr = csv.reader(fh)
            header = next(rdr, None)
            if header is None or tuple(header) != csv_header:
                raise LedgerError(f"{path} does not look like a result log: header is {header}")
            for row in rdr:
                yield parse_row(row)
    except OSError as err:
        raise LedgerError(f"Cannot read {path}: {err}") from err


@dataclass(kw_only=True, slots=True)
class ResultLedger:
    """ResultLedger owns the config snapshot and the result log of a single run."""

    log: logging.Logger = field(default_factory=lambda: common.get_logger("ledger"))
    lock: Lock = field(default_factory=Lock)
    started: datetime
    folder: Path
    target: Target
    cfg: ProbeConfig
    fh: Optional[TextIO] = None
    rows: int = 0

    @property
    def stamp(self) -> str:
        """Return the timestamp that goes into the file names."""
        return self.started.strftime(common.FileStampFmt)

    @property
    def config_path(self) -> Path:
        """Return the path of the config snapshot."""
        return self.folder.joinpath(f"config_{self.stamp}.json")

    @property
    def log_path(self) -> Path:
        """Return the path of the result log."""
        return self.folder.joinpath(f"result_{self.stamp}.csv")

    @property
    def is_open(self) -> bool:
        """Return True if the result log is open for appending."""
        with self.lock:
            return self.fh is not None

    def create(self) -> None:
        """Write the config snapshot and open the result log.

        If either file exists already, nothing is written. If the result log
        cannot be created, the config snapshot is removed again.
        """
        for p in (self.config_path, self.log_path):
            if p.exists():
                self.log.error("%s exists already, refusing to overwrite it.", p)
                raise LedgerError(f"{p} exists already")

        cpath: Final[Path] = self.write_config_snapshot()
        try:
            self.open_log()
        except LedgerError:
            cpath.unlink(missing_ok=True)
            raise

    def write_config_snapshot(self) -> Path:
        """Write the parameters of the run to a JSON file."""
        doc: Final[dict[str, Union[str, int]]] = {
            "address": str(self.target),
            "num_bytes": self.cfg.num_bytes,
            "timeout": f"{self.cfg.timeout}ms",
            "ttl": self.cfg.ttl,
            "delay": f"{self.cfg.delay}s",
        }

        path: Final[Path] = self.config_path
        try:
            with open(path, "x", encoding="utf-8") as fh:
                json.dump(doc, fh)
                fh.flush()
                os.fsync(fh.fileno())
        except OSError as err:
            self.log.error("Cannot write config snapshot %s: %s",
                           path,
                           err)
            raise LedgerError(f"Cannot write config snapshot {path}: {err}") from err

        self.log.debug("Wrote config snapshot to %s", path)
        return path

    def open_log(self) -> Path:
        """Create the result log and write the header."""
        with self.lock:
            if self.fh is not None:
                raise LedgerError(f"Result log {self.log_path} is already open")

            path: Final[Path] = self.log_path
            try:
                # Mode "x" refuses to touch an existing file.
                fh = open(path, "x", encoding="utf-8", newline="")  # pylint: disable-msg=R1732
            except OSError as err:
                self.log.error("Cannot create result log %s: %s",
                               path,
                               err)
                raise LedgerError(f"Cannot create result log {path}: {err}") from err

            try:
                self._write(fh, csv_header)
            except LedgerError:
                fh.close()
                raise

            self.fh = fh
            self.log.debug("Opened result log %s", path)
            return path

    def append_result(self, stamp: datetime, outcome: Outcome) -> None:
        """Append a row to the result log. The row is on disk when this method returns."""
        with self.lock:
            if self.fh is None:
                raise LedgerError("Result log is not open")
            self._write(self.fh, (stamp.isoformat(), format_latency(outcome)))
            self.rows += 1

    def _write(self, fh: TextIO, row: tuple[str, str]) -> None:
        buf = io.StringIO()
        csv.writer(buf, lineterminator="\n").writerow(row)
        try:
            fh.write(buf.getvalue())
            fh.flush()
            os.fsync(fh.fileno())
        except OSError as err:
            self.log.error("Error writing to result log %s: %s",
                           self.log_path,
                           err)
            raise LedgerError(f"Error writing to result log {self.log_path}: {err}") from err

    def close(self) -> None:
        """Close the result log. Calling this more than once is harmless."""
        with self.lock:
            if self.fh is None:
                return
            fh = self.fh
            self.fh = None
            try:
                fh.flush()
                os.fsync(fh.fileno())
            except OSError as err:
                raise LedgerError(f"Error flushing result log {self.log_path}: {err}") from err
            finally:
                fh.close()
            self.log.debug("Closed result log %s after %d rows",
                           self.log_path,
                           self.rows)


# Local Variables: #
# python-indent: 4 #
# End: #
