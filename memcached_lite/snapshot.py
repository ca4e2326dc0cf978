#!/usr/bin/env python3
"""
Snapshot Store - previous stats persisted between plugin runs

A snapshot is a flat mapping of counter name to integer plus the reserved
``_time_`` entry holding the capture time. It is stored as one
``name<TAB>value`` line per entry in a file under the system temp directory,
one file per (user, host, port).
"""

import csv
import getpass
import logging
import os
import tempfile
from typing import Dict, Optional
from urllib.parse import quote

from .errors import SnapshotIOError, StatsParseError
from .stats import parse_int64

TIME_KEY = '_time_'
FILE_PREFIX = 'mackerel-plugin-memcached-lite'

logger = logging.getLogger(__name__)


def _current_user_id() -> str:
    if hasattr(os, 'getuid'):
        return str(os.getuid())
    return getpass.getuser()


def snapshot_path(host: str, port: int, tmpdir: Optional[str] = None,
                  user_id: Optional[str] = None) -> str:
    """
    Build the snapshot file path for a memcached target.

    The host is percent-encoded so that it always stays a single path
    component; the port is numeric, so ``<host>-<port>`` is unambiguous.

    Args:
        host: memcached host name or address
        port: memcached port
        tmpdir: Directory to place the file in (default: system temp directory)
        user_id: Invoking user identity (default: current uid)

    Returns:
        str: Absolute path of the snapshot file
    """
    directory = tmpdir or tempfile.gettempdir()
    uid = user_id if user_id is not None else _current_user_id()
    name = f"{uid}-{FILE_PREFIX}-{quote(host, safe='.')}-{int(port)}"
    return os.path.join(directory, name)


def exists(path: str) -> bool:
    return os.path.exists(path)


def save(path: str, snapshot: Dict[str, int]) -> None:
    """
    Write a snapshot, replacing any previous file atomically.

    Raises:
        SnapshotIOError: the file could not be written
    """
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(prefix='.' + os.path.basename(path) + '.', dir=directory)
        with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
            for name in sorted(snapshot):
                f.write(f"{name}\t{snapshot[name]}\n")
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as e:
        raise SnapshotIOError(f"failed to save stats to {path}: {e}") from e
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
    logger.debug(f"Saved {len(snapshot)} entries to {path}")


def load(path: str) -> Dict[str, int]:
    """
    Read a snapshot written by :func:`save`.

    Quote characters are taken literally, never as CSV quoting.

    Raises:
        SnapshotIOError: the file could not be read
        StatsParseError: a record is truncated or its value is not an integer
    """
    snapshot = {}
    try:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            reader = csv.reader(f, delimiter='\t', quoting=csv.QUOTE_NONE)
            for record in reader:
                if not record:
                    continue
                if len(record) < 2:
                    raise StatsParseError(
                        f"{path}:{reader.line_num}: expected name<TAB>value, got {record!r}"
                    )
                try:
                    snapshot[record[0]] = parse_int64(record[1])
                except StatsParseError as e:
                    raise StatsParseError(f"{path}:{reader.line_num}: {e}") from e
    except csv.Error as e:
        raise StatsParseError(f"malformed snapshot {path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotIOError(f"failed to load previous stats from {path}: {e}") from e
    return snapshot


class SnapshotStore:
    """Snapshot file bound to a single path"""

    def __init__(self, path: str):
        self.path = path

    @classmethod
    def for_target(cls, host: str, port: int, tmpdir: Optional[str] = None) -> 'SnapshotStore':
        return cls(snapshot_path(host, port, tmpdir))

    def exists(self) -> bool:
        return exists(self.path)

    def save(self, snapshot: Dict[str, int]) -> None:
        save(self.path, snapshot)

    def load(self) -> Dict[str, int]:
        return load(self.path)

    def __repr__(self):
        return f"SnapshotStore(path={self.path!r})"
