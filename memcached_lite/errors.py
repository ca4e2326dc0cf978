#!/usr/bin/env python3
"""
Error types raised while polling memcached and handling snapshots.

Every error carries the process exit code the CLI reports for it.
"""

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_CONNECTION = 2
EXIT_PARSE = 3
EXIT_SNAPSHOT_IO = 4
EXIT_OUTPUT = 5


class MemcachedLiteError(Exception):
    """Base class for all plugin failures"""

    exit_code = EXIT_USAGE


class ConfigError(MemcachedLiteError, ValueError):
    """Invalid command line or configuration file"""

    exit_code = EXIT_USAGE


class StatsConnectionError(MemcachedLiteError, ConnectionError):
    """Dial, write or read failure against the memcached server"""

    exit_code = EXIT_CONNECTION


class StatsParseError(MemcachedLiteError, ValueError):
    """A numeric field could not be parsed (stats line or snapshot record)"""

    exit_code = EXIT_PARSE


class SnapshotIOError(MemcachedLiteError, OSError):
    """Snapshot file could not be read or written"""

    exit_code = EXIT_SNAPSHOT_IO


class OutputError(MemcachedLiteError, OSError):
    """Metrics could not be written to the output stream"""

    exit_code = EXIT_OUTPUT
