#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 19:44:02 krylon>
#
# /data/code/python/pynum/main.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyNum network uptime monitor. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pynum.main

(c) 2026 Benjamin Walkenhorst
"""


import argparse
import logging
import pathlib
import signal
import sys
import time
from typing import Final, Optional, Sequence

from rich.console import Console
from rich.text import Text

from pynum import common
from pynum.config import (ConfigError, Settings, default_delay,
                          default_num_bytes, default_timeout, default_ttl)
from pynum.display import ConsoleDisplay, LineDisplay, Sink
from pynum.ledger import LedgerError
from pynum.monitor import Monitor

exit_ok: Final[int] = 0
exit_setup: Final[int] = 1
exit_ledger: Final[int] = 2
exit_crash: Final[int] = 3


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse the command line."""
    argp: argparse.ArgumentParser = argparse.ArgumentParser(
        prog=common.AppName.lower(),
        description="Monitors the uptime of a network connection and records data to a CSV.")
    argp.add_argument("address",
                      help="Host to ping")
    argp.add_argument("-o", "--output",
                      type=pathlib.Path,
                      required=True,
                      help="Directory to write the config snapshot and result log to")
    argp.add_argument("-t", "--timeout",
                      type=int,
                      default=default_timeout,
                      help="Time to wait for host response (ms)")
    argp.add_argument("-d", "--delay",
                      type=int,
                      default=default_delay,
                      help="Time to wait between pings (s, min=5)")
    argp.add_argument("-n", "--num-bytes",
                      type=int,
                      default=default_num_bytes,
                      help="Number of bytes to send (max=24)")
    argp.add_argument("--ttl",
                      type=int,
                      default=default_ttl,
                      help="Set the ping Time to Live (max=255)")
    argp.add_argument("-6", "--ipv6",
                      action="store_true",
                      help="Prefer IPv6 addresses when resolving a hostname")
    argp.add_argument("-u", "--unprivileged",
                      action="store_true",
                      help="Use unprivileged (datagram) ICMP sockets")
    argp.add_argument("-p", "--plain",
                      action="store_true",
                      help="Print one line per ping instead of a live display")
    argp.add_argument("--dry-run",
                      action="store_true",
                      help="Do not send any pings, make up the replies")
    argp.add_argument("-b", "--basedir",
                      type=pathlib.Path,
                      default=common.path.base(),
                      help="Directory to store the application log in")
    argp.add_argument("-v", "--verbose",
                      action="store_true",
                      help="Print debug messages")
    argp.add_argument("--version",
                      action="version",
                      version=f"{common.AppName} {common.AppVersion}")

    return argp.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Build the Settings from the parsed command line."""
    return Settings(address=args.address,
                    output=args.output,
                    timeout=args.timeout,
                    delay=args.delay,
                    num_bytes=args.num_bytes,
                    ttl=args.ttl,
                    prefer_ipv6=args.ipv6,
                    privileged=not args.unprivileged,
                    plain=args.plain,
                    dry_run=args.dry_run)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the monitor until interrupted and return the exit status."""
    args = parse_args(argv)
    err_console: Final[Console] = Console(stderr=True)

    common.set_basedir(args.basedir)
    if args.verbose:
        common.set_tty_level(logging.DEBUG)
    log: Final[logging.Logger] = common.get_logger("main")

    cfg: Final[Settings] = settings_from_args(args)
    try:
        cfg.validate()
    except ConfigError as cerr:
        log.error("Invalid configuration: %s", cerr)
        err_console.print(Text(f"{cerr}. Exiting", style="red"))
        return exit_setup

    sink: Sink = LineDisplay() if cfg.plain else ConsoleDisplay()
    mon: Final[Monitor] = Monitor(settings=cfg, sink=sink)

    try:
        mon.setup()
    except common.NumError as err:
        err_console.print(Text(f"{err}. Exiting", style="red"))
        return exit_setup

    # SIGTERM gets the same treatment as Ctrl-C.
    signal.signal(signal.SIGTERM, signal.default_int_handler)

    try:
        mon.start()
        while mon.active:
            time.sleep(0.5)
    except KeyboardInterrupt:
        log.info("Telling Monitor to stop.")
        mon.stop()
    mon.join()

    if mon.error is not None:
        err_console.print(Text(f"{mon.error}. Exiting", style="red"))
        if isinstance(mon.error, LedgerError):
            return exit_ledger
        return exit_crash
    return exit_ok


if __name__ == '__main__':
    sys.exit(main())

# Local Variables: #
# python-indent: 4 #
# End: #
