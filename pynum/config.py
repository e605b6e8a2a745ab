#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 17:48:10 krylon>
#
# /data/code/python/pynum/config.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyNum network uptime monitor. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pynum.config

(c) 2026 Benjamin Walkenhorst
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from pynum.common import NumError
from pynum.model import ProbeConfig

default_timeout: Final[int] = 1000
default_delay: Final[int] = 120
default_num_bytes: Final[int] = 4
default_ttl: Final[int] = 128

min_delay: Final[int] = 5
max_num_bytes: Final[int] = 24
max_ttl: Final[int] = 255


class ConfigError(NumError):
    """ConfigError indicates invalid settings."""


@dataclass(kw_only=True, slots=True)
class Settings:
    """Settings are the parameters the user passed on the command line."""

    address: str
    output: Path
    timeout: int = default_timeout  # milliseconds
    delay: int = default_delay  # seconds
    num_bytes: int = default_num_bytes
    ttl: int = default_ttl
    prefer_ipv6: bool = False
    privileged: bool = True
    plain: bool = False
    dry_run: bool = False

    def validate(self) -> None:
        """Raise a ConfigError if the Settings make no sense."""
        if self.address.strip() == "":
            raise ConfigError("No target address was given")
        if not self.output.exists() or not self.output.is_dir():
            raise ConfigError(f"Output path {self.output} is invalid")
        if self.delay < min_delay:
            raise ConfigError(f"Delay must be at least {min_delay}s, not {self.delay}s")
        if self.timeout < 1:
            raise ConfigError(f"Timeout must be positive, not {self.timeout}ms")
        if not 1 <= self.num_bytes <= max_num_bytes:
            raise ConfigError(f"Number of bytes must be between 1 and {max_num_bytes}")
        if not 1 <= self.ttl <= max_ttl:
            raise ConfigError(f"TTL must be between 1 and {max_ttl}")
        # Otherwise the timer can't keep up with outstanding pings.
        if self.timeout >= self.delay * 1000:
            raise ConfigError("Delay must be greater than the timeout")

    def probe_config(self) -> ProbeConfig:
        """Return the ProbeConfig for these Settings."""
        return ProbeConfig(num_bytes=self.num_bytes,
                           timeout=self.timeout,
                           ttl=self.ttl,
                           delay=self.delay)


# Local Variables: #
# python-indent: 4 #
# End: #
