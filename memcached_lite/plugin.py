#!/usr/bin/env python3
"""
memcached-lite plugin run

One run connects to memcached, reads ``stats`` and ``stats settings``,
compares the counters with the snapshot saved by the previous run, prints
the resulting metrics and saves the new snapshot. The very first run for a
target only saves a snapshot and prints nothing.
"""

import asyncio
import enum
import logging
import sys
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, TextIO

from .config import PluginConfig
from .errors import EXIT_OK, MemcachedLiteError, OutputError
from .exposition import render
from .protocol import STATS_COMMAND, STATS_SETTINGS_COMMAND, MemcachedConnection
from .rates import MetricSample, compute_metrics
from .snapshot import TIME_KEY, SnapshotStore


class RunState(enum.Enum):
    CONNECTING = 'connecting'
    FETCHING_STATS = 'fetching stats'
    FETCHING_SETTINGS = 'fetching stats settings'
    LOADING = 'loading previous stats'
    COMPARING = 'comparing'
    EMITTING = 'emitting'
    PERSISTING = 'persisting'
    DONE = 'done'
    FAILED = 'failed'


@dataclass
class RunResult:
    state: RunState
    snapshot_path: str
    samples: List[MetricSample] = field(default_factory=list)
    bootstrap: bool = False
    failed_at: Optional[RunState] = None
    error: Optional[MemcachedLiteError] = None

    @property
    def ok(self) -> bool:
        return self.state is RunState.DONE

    @property
    def exit_code(self) -> int:
        return EXIT_OK if self.error is None else self.error.exit_code


class MemcachedLitePlugin:
    """Single poll of a memcached server"""

    def __init__(self, config: PluginConfig, clock: Callable[[], float] = time.time,
                 out: Optional[TextIO] = None, store: Optional[SnapshotStore] = None):
        """
        Args:
            config: Plugin configuration
            clock: Returns the current Unix time; the capture timestamp of the run
            out: Stream metrics are written to (default: sys.stdout)
            store: Snapshot store (default: derived from host and port, or config.tempfile)
        """
        self.config = config
        self.clock = clock
        self.out = out if out is not None else sys.stdout
        conn = config.connection
        if store is None:
            store = SnapshotStore(config.tempfile) if config.tempfile else SnapshotStore.for_target(conn.host, conn.port)
        self.store = store
        self.state = RunState.CONNECTING
        self.logger = logging.getLogger(__name__)

    def _enter(self, state: RunState):
        self.logger.debug(f"{self.config.connection.address}: {self.state.value} -> {state.value}")
        self.state = state

    async def _fetch_current(self) -> Dict[str, int]:
        conn = self.config.connection
        async with MemcachedConnection(conn.host, conn.port, conn.timeout) as client:
            stats: Dict[str, int] = {}
            self._enter(RunState.FETCHING_STATS)
            await client.fetch(STATS_COMMAND, stats)
            self._enter(RunState.FETCHING_SETTINGS)
            await client.fetch(STATS_SETTINGS_COMMAND, stats)
        return stats

    async def run(self) -> RunResult:
        """
        Execute one poll.

        Returns:
            RunResult: final state, emitted samples and the error that stopped the run, if any
        """
        self.state = RunState.CONNECTING
        result = RunResult(state=RunState.CONNECTING, snapshot_path=self.store.path)
        try:
            current = await self._fetch_current()
            now = int(self.clock())
            current[TIME_KEY] = now

            self._enter(RunState.LOADING)
            if not self.store.exists():
                self._enter(RunState.PERSISTING)
                self.store.save(current)
                self.logger.warning(f"Notice: first time execution command, saved stats to {self.store.path}")
                result.bootstrap = True
                self._enter(RunState.DONE)
                result.state = self.state
                return result

            previous = self.store.load()

            self._enter(RunState.COMPARING)
            samples = compute_metrics(current, previous, now)

            self._enter(RunState.EMITTING)
            labels = {'address': self.config.connection.address}
            try:
                self.out.write(render(samples, self.config.output_format, labels))
                self.out.flush()
            except OSError as e:
                raise OutputError(f"failed to write metrics: {e}") from e
            result.samples = samples

            self._enter(RunState.PERSISTING)
            self.store.save(current)
            self._enter(RunState.DONE)
        except MemcachedLiteError as e:
            self.logger.error(f"{self.config.connection.address}: failed while {self.state.value}: {e}")
            result.failed_at = self.state
            result.error = e
            self._enter(RunState.FAILED)

        result.state = self.state
        return result


def run_plugin(config: PluginConfig, clock: Callable[[], float] = time.time,
               out: Optional[TextIO] = None, store: Optional[SnapshotStore] = None) -> RunResult:
    """Run one poll to completion on a fresh event loop"""
    plugin = MemcachedLitePlugin(config, clock=clock, out=out, store=store)
    return asyncio.run(plugin.run())
