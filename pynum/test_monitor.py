#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 21:47:15 krylon>
#
# /data/code/python/pynum/test_monitor.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyNum network uptime monitor. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pynum.test_monitor

(c) 2026 Benjamin Walkenhorst
"""

import os
import shutil
import unittest
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from threading import Event
from typing import Final, Optional
from unittest.mock import MagicMock

from dns.resolver import NXDOMAIN

from pynum import common
from pynum.clock import ManualClock
from pynum.config import Settings
from pynum.ledger import LedgerError, read_log
from pynum.model import Snapshot, Target
from pynum.monitor import Monitor, State
from pynum.resolver import ResolveError, TargetResolver
from pynum.transport import ScriptedTransport, Transport

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_monitor_%Y%m%d_%H%M%S"))

start: Final[datetime] = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)
wait_max: Final[float] = 10.0


@dataclass(kw_only=True, slots=True)
class RecordingSink:
    """RecordingSink remembers every Snapshot it is shown."""

    snaps: list[Snapshot] = field(default_factory=list)
    closed: bool = False
    fail: bool = False

    def show(self, snap: Snapshot) -> None:
        self.snaps.append(snap)
        if self.fail:
            raise RuntimeError("Display is broken")

    def close(self) -> None:
        self.closed = True


class BlockingTransport(Transport):
    """BlockingTransport does not answer until it is told to."""

    def __init__(self) -> None:
        self.entered = Event()
        self.release = Event()
        self.closed = False

    def send(self, target: Target, payload_size: int, ttl: int, timeout: float) -> float:
        self.entered.set()
        self.release.wait(wait_max)
        return 23.0

    def close(self) -> None:
        self.closed = True


class BrokenTransport(Transport):
    """BrokenTransport fails in a way no Transport is supposed to."""

    def __init__(self) -> None:
        self.closed = False

    def send(self, target: Target, payload_size: int, ttl: int, timeout: float) -> float:
        raise ValueError("Invalid payload size")

    def close(self) -> None:
        self.closed = True


def make_settings(name: str, address: str = "192.0.2.1") -> Settings:
    """Create Settings for a test writing to its own folder."""
    folder: Final[Path] = Path(test_dir).joinpath(name)
    os.makedirs(folder, exist_ok=True)
    return Settings(address=address, output=folder, timeout=1000, delay=5)


def make_monitor(s: Settings, transport: Transport, sink: RecordingSink,
                 dns: Optional[MagicMock] = None) -> Monitor:
    """Create a Monitor that ticks quickly."""
    if dns is None:
        dns = MagicMock()
    return Monitor(settings=s,
                   sink=sink,
                   clock=ManualClock(start=start, step=timedelta(seconds=5)),
                   resolver=TargetResolver(res=dns),
                   transport=transport,
                   interval=0.01)


class TestMonitor(unittest.TestCase):
    """Test the Monitor."""

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    def test_01_run(self) -> None:
        """Run a few ticks and look at what comes out."""
        s = make_settings("run")
        sink = RecordingSink()
        transport = ScriptedTransport.from_list([10.0, 12.0, 9.0])
        mon = make_monitor(s, transport, sink)

        mon.setup()
        self.assertEqual(mon.state, State.Running)
        mon.run(max_ticks=3)

        self.assertEqual(mon.state, State.Terminated)
        self.assertEqual(mon.ticks, 3)
        self.assertTrue(sink.closed)
        self.assertTrue(transport.closed)
        self.assertIsNone(mon.error)

        self.assertEqual(len(sink.snaps), 3)
        last: Snapshot = sink.snaps[-1]
        self.assertIsNone(last.last_failure)
        assert last.last_success is not None and last.last_attempt is not None
        self.assertEqual(last.last_success, (last.last_attempt.stamp, 9.0))
        self.assertEqual(last.sent, 3)
        self.assertEqual(str(last.target), "192.0.2.1")
        self.assertEqual(last.delay, 5)
        self.assertEqual(last.timeout, 1000)
        self.assertEqual(last.num_bytes, 4)
        self.assertEqual(last.ttl, 128)

        assert mon.ledger is not None
        self.assertFalse(mon.ledger.is_open)
        rows = list(read_log(mon.ledger.log_path))
        self.assertEqual(len(rows), 3)
        self.assertTrue(mon.ledger.config_path.exists())

    def test_02_snapshots_are_frozen(self) -> None:
        """A Snapshot does not change after the next tick."""
        s = make_settings("frozen")
        sink = RecordingSink()
        mon = make_monitor(s, ScriptedTransport.from_list([10.0, None]), sink)
        mon.run(max_ticks=2)

        first, second = sink.snaps
        self.assertIsNone(first.last_failure)
        self.assertIsNotNone(second.last_failure)
        self.assertEqual(first.sent, 1)
        self.assertEqual(second.last_success, first.last_success)

    def test_03_resolve_failure(self) -> None:
        """If the target cannot be resolved, no file is created."""
        s = make_settings("unresolvable", address="does-not-exist.invalid")
        dns = MagicMock()
        dns.resolve_name.side_effect = NXDOMAIN()
        sink = RecordingSink()
        transport = ScriptedTransport.from_list([1.0])
        mon = make_monitor(s, transport, sink, dns)

        with self.assertRaises(ResolveError):
            mon.setup()

        self.assertEqual(mon.state, State.Terminated)
        self.assertEqual(os.listdir(s.output), [])
        self.assertEqual(transport.calls, [])

    def test_04_collision(self) -> None:
        """An existing result log stops the Monitor before the first ping."""
        s = make_settings("collision")
        stamp: Final[str] = start.strftime(common.FileStampFmt)
        existing: Final[Path] = s.output.joinpath(f"result_{stamp}.csv")
        existing.write_text("Timestamp,Latency(ms)\nsomething,1\n", encoding="utf-8")

        sink = RecordingSink()
        transport = ScriptedTransport.from_list([1.0])
        mon = make_monitor(s, transport, sink)

        with self.assertRaises(LedgerError):
            mon.setup()

        self.assertEqual(mon.state, State.Terminated)
        self.assertEqual(transport.calls, [])
        self.assertTrue(transport.closed)
        self.assertEqual(sorted(os.listdir(s.output)), [existing.name])
        self.assertEqual(existing.read_text(encoding="utf-8"),
                         "Timestamp,Latency(ms)\nsomething,1\n")

    def test_05_stop_during_ping(self) -> None:
        """A ping that is under way when stop() is called still gets logged."""
        s = make_settings("inflight")
        sink = RecordingSink()
        transport = BlockingTransport()
        mon = make_monitor(s, transport, sink)

        mon.start()
        self.assertTrue(transport.entered.wait(wait_max))
        mon.stop(wait=False)
        self.assertEqual(mon.state, State.ShuttingDown)
        transport.release.set()
        mon.join(wait_max)

        self.assertEqual(mon.state, State.Terminated)
        self.assertTrue(transport.closed)
        assert mon.ledger is not None
        with open(mon.ledger.log_path, "r", encoding="utf-8") as fh:
            lines = fh.read().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[1].endswith(",23.0"))
        self.assertEqual(mon.ticks, 1)

    def test_06_stop_between_pings(self) -> None:
        """Stopping while waiting for the next tick returns right away."""
        s = make_settings("idle")
        sink = RecordingSink()
        mon = make_monitor(s, ScriptedTransport.from_list([1.0], cycle=True), sink)
        mon.interval = 60.0

        mon.start()
        mon.stop()

        self.assertEqual(mon.state, State.Terminated)
        self.assertLessEqual(mon.ticks, 1)
        self.assertTrue(sink.closed)

    def test_07_stop_before_start(self) -> None:
        """A Monitor that was set up but never started can be stopped."""
        s = make_settings("never_started")
        sink = RecordingSink()
        transport = ScriptedTransport.from_list([1.0])
        mon = make_monitor(s, transport, sink)

        mon.setup()
        mon.stop()

        self.assertEqual(mon.state, State.Terminated)
        self.assertTrue(transport.closed)
        assert mon.ledger is not None
        self.assertFalse(mon.ledger.is_open)
        self.assertEqual(list(read_log(mon.ledger.log_path)), [])

    def test_08_broken_ledger(self) -> None:
        """If the result log cannot be written, the Monitor stops and keeps the error."""
        s = make_settings("broken_ledger")
        sink = RecordingSink()
        mon = make_monitor(s, ScriptedTransport.from_list([1.0], cycle=True), sink)
        mon.setup()
        assert mon.ledger is not None
        mon.ledger.close()

        mon.run(max_ticks=5)

        self.assertEqual(mon.state, State.Terminated)
        self.assertIsInstance(mon.error, LedgerError)
        self.assertEqual(mon.ticks, 0)
        self.assertEqual(sink.snaps, [])

    def test_09_broken_display(self) -> None:
        """Errors in the display do not stop the Monitor."""
        s = make_settings("broken_display")
        sink = RecordingSink(fail=True)
        mon = make_monitor(s, ScriptedTransport.from_list([1.0, 2.0]), sink)
        mon.run(max_ticks=2)

        self.assertEqual(mon.ticks, 2)
        self.assertIsNone(mon.error)
        self.assertEqual(len(sink.snaps), 2)

    def test_10_dry_run(self) -> None:
        """With dry_run, the Monitor makes up its replies."""
        s = make_settings("dry_run")
        s.dry_run = True
        sink = RecordingSink()
        mon = Monitor(settings=s,
                      sink=sink,
                      clock=ManualClock(start=start),
                      resolver=TargetResolver(res=MagicMock()),
                      interval=0.01)
        mon.run(max_ticks=4)

        self.assertIsInstance(mon.transport, ScriptedTransport)
        self.assertEqual(mon.ticks, 4)
        self.assertEqual(sink.snaps[-1].failed, 1)

    def test_11_unexpected_error(self) -> None:
        """An unexpected error stops the Monitor and is kept for the caller."""
        s = make_settings("unexpected_error")
        sink = RecordingSink()
        tr = BrokenTransport()
        mon = make_monitor(s, tr, sink)
        mon.start()
        mon.join(wait_max)

        self.assertEqual(mon.state, State.Terminated)
        self.assertFalse(mon.active)
        self.assertIsInstance(mon.error, ValueError)
        self.assertEqual(mon.ticks, 0)
        self.assertTrue(tr.closed)
        self.assertTrue(sink.closed)

    def test_12_not_set_up(self) -> None:
        """Asking a Monitor that was never set up for a Snapshot is an error."""
        s = make_settings("not_set_up")
        mon = make_monitor(s, ScriptedTransport.from_list([1.0]), RecordingSink())
        self.assertEqual(mon.interval, 0.01)
        with self.assertRaises(common.NumError):
            mon.snapshot()

        mon = Monitor(settings=s, sink=RecordingSink())
        self.assertEqual(mon.interval, 5.0)


# Local Variables: #
# python-indent: 4 #
# End: #
