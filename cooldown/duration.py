# SPDX-License-Identifier: GPL-3.0-or-later
#
# Copyright (C) 2025 Mark Sholund
#
# This file is part of the Cooldown Proxy project.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

import re
from datetime import timedelta

from cooldown.errors import MalformedDuration

# Nanoseconds per unit, matching Go's time.ParseDuration
_STANDARD_UNITS = {
    "ns": 1,
    "us": 1000,
    "µs": 1000,  # micro sign
    "μs": 1000,  # greek mu
    "ms": 1000 ** 2,
    "s": 1000 ** 3,
    "m": 60 * 1000 ** 3,
    "h": 3600 * 1000 ** 3,
}

# 1 day = 24h, 1 month = 30 days, 1 year = 365 days
_CALENDAR_UNITS = {
    "d": timedelta(hours=24),
    "M": timedelta(days=30),
    "y": timedelta(days=365),
}

_DIGITS = "0123456789."

_SEGMENT = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]*)", re.ASCII)


def parse_standard_duration(text: str) -> timedelta:
    """
    Parse a duration using only the h/m/s family of units.

    Segments are summed in integer nanoseconds as Go does, then truncated
    to timedelta's microsecond resolution, so "1ns" parses as zero.

    Examples:
        >>> parse_standard_duration("1h30m")
        datetime.timedelta(seconds=5400)
        >>> parse_standard_duration("1.5s")
        datetime.timedelta(seconds=1, microseconds=500000)
    """
    s = text
    negative = False
    if s[:1] in ("-", "+"):
        negative = s[0] == "-"
        s = s[1:]

    if s == "0":
        return timedelta(0)
    if not s:
        raise MalformedDuration(f"invalid duration: {text!r}")

    nanos = 0
    pos = 0
    while pos < len(s):
        match = _SEGMENT.match(s, pos)
        whole, frac, unit = match.groups()
        if not whole and not frac:
            raise MalformedDuration(f"invalid duration: {text!r}")
        if unit not in _STANDARD_UNITS:
            raise MalformedDuration(
                f"unknown or missing unit {unit!r} in duration {text!r}")
        scale = _STANDARD_UNITS[unit]
        try:
            nanos += int(whole or "0") * scale
            if frac:
                nanos += int(frac) * scale // 10 ** len(frac)
        except ValueError:
            # int() refuses digit strings past sys.get_int_max_str_digits()
            raise MalformedDuration(f"duration out of range: {text!r}")
        pos = match.end()

    try:
        delta = timedelta(microseconds=nanos // 1000)
    except OverflowError:
        raise MalformedDuration(f"duration out of range: {text!r}")
    return -delta if negative else delta


def _parse_calendar_duration(text: str) -> timedelta:
    total = timedelta(0)
    number = ""

    for i, char in enumerate(text):
        if char in _DIGITS:
            number += char
            continue

        if not number:
            raise MalformedDuration(f"invalid duration: {text!r}")
        try:
            value = float(number)
        except ValueError:
            raise MalformedDuration(f"invalid duration: {text!r}")

        unit = _CALENDAR_UNITS.get(char)
        if unit is None:
            # Not a calendar unit: the rest must be a standard duration
            try:
                return total + parse_standard_duration(number + text[i:])
            except (MalformedDuration, OverflowError):
                raise MalformedDuration(f"invalid duration: {text!r}")

        try:
            total += unit * value
        except OverflowError:
            raise MalformedDuration(f"duration out of range: {text!r}")
        number = ""

    if number:
        raise MalformedDuration(f"trailing number without unit in duration {text!r}")

    return total


def parse_duration(text: str) -> timedelta:
    """
    Parse a cooldown duration.

    Accepts everything Go's time.ParseDuration accepts, plus the calendar
    units d (24h), M (30 days) and y (365 days). Magnitudes may be
    fractional and segments may be chained, e.g. "0.5d", "2y6M", "1d12h".

    Raises:
        MalformedDuration: if the text is not a duration.

    Examples:
        >>> parse_duration("7d")
        datetime.timedelta(days=7)
        >>> parse_duration("1d12h")
        datetime.timedelta(days=1, seconds=43200)
        >>> parse_duration("7d5")
        Traceback (most recent call last):
        ...
        cooldown.errors.MalformedDuration: trailing number without unit in duration '7d5'
    """
    if not text:
        raise MalformedDuration("empty duration")

    try:
        return parse_standard_duration(text)
    except MalformedDuration:
        pass

    return _parse_calendar_duration(text)


def format_duration(delta: timedelta) -> str:
    """Compact rendering for log lines: 7d, 1d12h, 90m -> 1h30m."""
    seconds = int(delta.total_seconds())
    sign = "-" if seconds < 0 else ""
    days, rest = divmod(abs(seconds), 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)

    parts = [
        f"{value}{unit}"
        for value, unit in ((days, "d"), (hours, "h"), (minutes, "m"), (seconds, "s"))
        if value
    ]
    return sign + ("".join(parts) or "0s")
