#!/usr/bin/env python3
"""
Protocol Reader - minimal memcached text protocol transport

Sends fixed commands over an asyncio stream and reads back the response.
The end of a response is inferred from stream behaviour rather than by
looking for ``END``: reading stops at EOF or at the first read that returns
less than a full chunk.
"""

import asyncio
import logging
from typing import Dict, Optional

from .errors import StatsConnectionError
from .stats import parse_stats

READ_LIMIT = 32 * 1024

STATS_COMMAND = 'stats\r\n'
STATS_SETTINGS_COMMAND = 'stats settings\r\n'

logger = logging.getLogger(__name__)


async def _with_deadline(aw, timeout: float):
    """Await ``aw``, bounded by ``timeout`` seconds when it is positive"""
    if timeout > 0:
        return await asyncio.wait_for(aw, timeout=timeout)
    return await aw


async def send(writer: asyncio.StreamWriter, command: str, timeout: float) -> None:
    """
    Write a single command to the server.

    Args:
        writer: Open stream writer
        command: Command text, terminated with CRLF
        timeout: Write deadline in seconds; zero or negative disables it

    Raises:
        ValueError: command is not CRLF-terminated
        StatsConnectionError: the write failed or timed out
    """
    if not command.endswith('\r\n'):
        raise ValueError(f"command must end with CRLF: {command!r}")

    try:
        writer.write(command.encode('ascii'))
        await _with_deadline(writer.drain(), timeout)
    except asyncio.TimeoutError as e:
        raise StatsConnectionError(f"timed out sending {command.strip()!r}") from e
    except OSError as e:
        raise StatsConnectionError(f"failed to send {command.strip()!r}: {e}") from e


async def _read_until_short(reader: asyncio.StreamReader) -> bytes:
    response = b""
    while True:
        data = await reader.read(READ_LIMIT)
        response += data
        if len(data) < READ_LIMIT:
            return response


async def receive(reader: asyncio.StreamReader, timeout: float) -> bytes:
    """
    Read a response until EOF or a short read.

    Args:
        reader: Open stream reader
        timeout: Read deadline in seconds; zero or negative disables it

    Returns:
        bytes: Everything read

    Raises:
        StatsConnectionError: a read failed or the deadline passed
    """
    try:
        return await _with_deadline(_read_until_short(reader), timeout)
    except asyncio.TimeoutError as e:
        raise StatsConnectionError("timed out reading response") from e
    except OSError as e:
        raise StatsConnectionError(f"failed to read response: {e}") from e


class MemcachedConnection:
    """Single connection to a memcached server, used as an async context manager"""

    def __init__(self, host: str = 'localhost', port: int = 11211, timeout: float = 10.0):
        self.host = host
        self.port = port
        self.timeout = timeout
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    async def connect(self):
        """Open the connection"""
        try:
            self._reader, self._writer = await _with_deadline(
                asyncio.open_connection(self.host, self.port),
                self.timeout
            )
        except asyncio.TimeoutError as e:
            raise StatsConnectionError(f"timed out connecting to {self.address}") from e
        except OSError as e:
            raise StatsConnectionError(f"couldn't connect to memcached at {self.address}: {e}") from e
        except ValueError as e:
            # getaddrinfo rejects malformed host names (e.g. empty or over-long IDNA labels)
            raise StatsConnectionError(f"invalid address {self.address}: {e}") from e
        logger.debug(f"Connected to {self.address}")
        return self

    async def fetch(self, command: str, into: Optional[Dict[str, int]] = None) -> Dict[str, int]:
        """
        Send a stats command and merge the parsed response into ``into``.

        Returns:
            dict: The accumulator with the new counters merged in
        """
        if self._writer is None:
            raise StatsConnectionError(f"not connected to {self.address}")

        await send(self._writer, command, self.timeout)
        response = await receive(self._reader, self.timeout)
        logger.debug(f"Read {len(response)} bytes for {command.strip()!r} from {self.address}")
        return parse_stats(response, into)

    async def close(self):
        """Close the connection"""
        if self._writer is None:
            return
        writer = self._writer
        self._writer = None
        self._reader = None
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing connection to {self.address}: {e}")

    async def __aenter__(self):
        return await self.connect()

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
