#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 18:20:44 krylon>
#
# /data/code/python/pynum/display.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyNum network uptime monitor. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pynum.display

(c) 2026 Benjamin Walkenhorst
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Optional, Protocol

from rich import box
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from pynum import common
from pynum.model import ProbeAttempt, Snapshot, Success


class Sink(Protocol):
    """Sink is where the Monitor sends a Snapshot after every ping."""

    def show(self, snap: Snapshot) -> None:
        """Present the Snapshot to the user."""

    def close(self) -> None:
        """Clean up."""


def fmt_time(stamp: datetime) -> str:
    """Format a timestamp for the user's eyes."""
    return stamp.strftime(common.TimeFmt)


def fmt_latency(lat: float) -> str:
    """Format a latency in milliseconds, dropping a useless fractional part."""
    if lat == int(lat):
        return f"{int(lat)}ms"
    return f"{lat:.3f}".rstrip("0") + "ms"


def last_success_text(snap: Snapshot) -> Text:
    """Green timestamp and latency of the last reply, or a red N/A."""
    if snap.last_success is None:
        return Text("N/A", style="red")
    stamp, lat = snap.last_success
    return Text(f"{fmt_time(stamp)} ({fmt_latency(lat)})", style="green")


def last_failed_text(snap: Snapshot) -> Text:
    """Red timestamp of the last lost ping, or a green N/A."""
    if snap.last_failure is None:
        return Text("N/A", style="green")
    return Text(fmt_time(snap.last_failure), style="red")


def ping_text(snap: Snapshot) -> Text:
    """Describe the most recent ping."""
    att: Optional[ProbeAttempt] = snap.last_attempt
    if att is None:
        return Text("Waiting for the first ping...", style="dim")

    match att.outcome:
        case Success(latency=lat):
            return Text(f"[{fmt_time(att.stamp)}] Reply from {snap.target}: "
                        f"bytes={snap.num_bytes} time={fmt_latency(lat)} TTL={snap.ttl}",
                        style="green")
        case _:
            return Text(f"[{fmt_time(att.stamp)}] Ping failed.", style="red")


def render(snap: Snapshot) -> Panel:
    """Build the panel showing the state of the Monitor."""
    tbl = Table(box=None, show_header=False, padding=(0, 1))
    tbl.add_column(style="bold", no_wrap=True)
    tbl.add_column()

    target: str = str(snap.target)
    if snap.address != target:
        target = f"{snap.address} ({target})"

    tbl.add_row("Target:", target)
    tbl.add_row("Output path:", str(snap.output_path.resolve()))
    tbl.add_row("Delay:", f"{snap.delay}s, Timeout: {snap.timeout}ms")
    tbl.add_row("Num. Bytes:", f"{snap.num_bytes}, TTL: {snap.ttl}")
    tbl.add_row("", "")
    tbl.add_row("Last successful ping:", last_success_text(snap))
    tbl.add_row("Last failed ping:", last_failed_text(snap))

    tbl.add_row("Sent / failed:", f"{snap.sent} / {snap.failed} ({snap.loss:.1f}% loss)")

    status = Group(Text("Last Ping Status:", style="bold"), ping_text(snap))

    return Panel(Group(tbl, Text(""), status),
                 title=f"{common.AppName} {common.AppVersion}",
                 box=box.ROUNDED)


@dataclass(kw_only=True, slots=True)
class ConsoleDisplay:
    """ConsoleDisplay keeps a live panel on the terminal up to date."""

    console: Console = field(default_factory=Console)
    lock: Lock = field(default_factory=Lock)
    live: Optional[Live] = None

    def show(self, snap: Snapshot) -> None:
        with self.lock:
            if self.live is None:
                self.live = Live(render(snap),
                                 console=self.console,
                                 auto_refresh=False,
                                 transient=False)
                self.live.start()
            self.live.update(render(snap), refresh=True)

    def close(self) -> None:
        with self.lock:
            if self.live is not None:
                self.live.stop()
                self.live = None
        self.console.print(Text("Exiting", style="bold blue"))


@dataclass(kw_only=True, slots=True)
class LineDisplay:
    """LineDisplay prints one line per ping, for when there is no interactive terminal."""

    log: logging.Logger = field(default_factory=lambda: common.get_logger("display"))
    console: Console = field(default_factory=Console)

    def show(self, snap: Snapshot) -> None:
        line: Text = Text.assemble(ping_text(snap),
                                   " | last success: ",
                                   last_success_text(snap),
                                   " | last failure: ",
                                   last_failed_text(snap))
        self.log.info("%s", line.plain)
        self.console.print(line, highlight=False)

    def close(self) -> None:
        self.console.print(Text("Exiting", style="bold blue"))


# Local Variables: #
# python-indent: 4 #
# End: #
