"""Shared pytest configuration and fixtures."""

import socket
import socketserver
import threading

import pytest

from memcached_lite.snapshot import SnapshotStore


class _StatsHandler(socketserver.StreamRequestHandler):
    """Answers `stats` and `stats settings` like a memcached server would."""

    def handle(self):
        for line in self.rfile:
            command = line.strip().decode('ascii')
            self.server.commands.append(command)
            if command == 'stats':
                body = self.server.render(self.server.stats)
            elif command == 'stats settings':
                body = self.server.render(self.server.settings)
            else:
                body = b'ERROR\r\n'
            self.wfile.write(body)
        self.server.disconnected.set()


class FakeMemcached(socketserver.ThreadingMixIn, socketserver.TCPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self):
        super().__init__(('127.0.0.1', 0), _StatsHandler)
        self.stats = {'pid': 1, 'version': '1.6.21'}
        self.settings = {'maxconns': 1024, 'evictions': 'on'}
        self.commands = []
        self.disconnected = threading.Event()
        self._thread = threading.Thread(target=self.serve_forever, daemon=True)

    @property
    def host(self):
        return self.server_address[0]

    @property
    def port(self):
        return self.server_address[1]

    @staticmethod
    def render(values):
        lines = [f"STAT {name} {value}\r\n" for name, value in values.items()]
        return (''.join(lines) + 'END\r\n').encode('ascii')

    def start(self):
        self._thread.start()
        return self

    def stop(self):
        self.shutdown()
        self.server_close()


@pytest.fixture
def memcached_server():
    """Fake memcached server listening on a free localhost port."""
    server = FakeMemcached().start()
    try:
        yield server
    finally:
        server.stop()


@pytest.fixture
def closed_port():
    """A localhost port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(('127.0.0.1', 0))
        return sock.getsockname()[1]


@pytest.fixture
def snapshot_file(tmp_path):
    return str(tmp_path / "memcached-lite-snapshot")


@pytest.fixture
def store(snapshot_file):
    return SnapshotStore(snapshot_file)


class FakeClock:
    """Deterministic replacement for time.time."""

    def __init__(self, now=1700000000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
