#!/usr/bin/env python3
"""
Stats Parser - extract counters from memcached `stats` responses

Only lines shaped like ``STAT <name> <digits>`` are picked up. Anything else
(``END``, ``ERROR``, version strings, blank lines) is ignored.
"""

import re
from typing import Dict, Optional

from .errors import StatsParseError

STAT_LINE = re.compile(rb'^STAT ([a-z_]+) (\d+)')

INTEGER = re.compile(r'[+-]?(?:0[xX](?P<hex>[0-9a-fA-F]+)|[0-9]+)')

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def parse_int64(text: str) -> int:
    """
    Parse a decimal (or 0x-prefixed hexadecimal) signed 64-bit integer.

    Raises:
        StatsParseError: text is not a number or does not fit in 64 bits
    """
    match = INTEGER.fullmatch(text)
    if match is None:
        raise StatsParseError(f"invalid integer {text!r}")
    value = int(text, 16 if match.group('hex') else 10)

    if not INT64_MIN <= value <= INT64_MAX:
        raise StatsParseError(f"integer out of range: {text!r}")
    return value


def parse_stats(raw: bytes, into: Optional[Dict[str, int]] = None) -> Dict[str, int]:
    """
    Parse a raw stats response into a counter mapping.

    Args:
        raw: Response bytes as read from the server
        into: Accumulator to merge into; entries with the same name are overwritten

    Returns:
        dict: The accumulator (a new dict when ``into`` is None)

    Raises:
        StatsParseError: a matched line carries a value that is not a valid integer
    """
    stats = {} if into is None else into
    for line in raw.split(b'\n'):
        match = STAT_LINE.match(line)
        if match is None:
            continue
        name = match.group(1).decode('ascii')
        stats[name] = parse_int64(match.group(2).decode('ascii'))
    return stats
