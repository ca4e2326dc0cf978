"""Tests for the command line entry point."""

import io
import logging

import pytest

from memcached_lite.__main__ import build_parser, main


def run_main(argv, environ=None):
    out = io.StringIO()
    code = main(argv, environ=environ or {}, out=out)
    return code, out.getvalue()


class TestArguments:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.host is None
        assert args.port is None
        assert args.timeout is None

    def test_short_flags(self):
        args = build_parser().parse_args(["-H", "cache01", "-p", "11212", "-t", "3"])
        assert (args.host, args.port, args.timeout) == ("cache01", 11212, 3.0)

    def test_bad_argument_exits_with_one(self):
        with pytest.raises(SystemExit) as excinfo:
            main(["--port", "eleven"], environ={})
        assert excinfo.value.code == 1

    def test_unknown_flag_exits_with_one(self):
        with pytest.raises(SystemExit) as excinfo:
            main(["--bogus"], environ={})
        assert excinfo.value.code == 1

    def test_missing_config_file(self, tmp_path, caplog):
        with caplog.at_level(logging.ERROR):
            code, out = run_main(["-c", str(tmp_path / "absent.yaml")])
        assert code == 1
        assert out == ""
        assert "Configuration file not found" in caplog.text

    def test_invalid_port_in_config_file(self, tmp_path, caplog):
        config_file = tmp_path / "memcached-lite.yaml"
        config_file.write_text("port: eleven\n")
        with caplog.at_level(logging.ERROR):
            code, _ = run_main(["-c", str(config_file)])
        assert code == 1
        assert "Invalid configuration" in caplog.text


class TestMetaMode:
    def test_prints_graph_definitions_without_connecting(self, closed_port):
        code, out = run_main(["-p", str(closed_port)], environ={"MACKEREL_AGENT_PLUGIN_META": "1"})
        assert code == 0
        assert '"memcached-lite.cache-hit"' in out


class TestRuns:
    def test_bootstrap_then_metrics(self, memcached_server, snapshot_file):
        argv = ["-H", memcached_server.host, "-p", str(memcached_server.port), "--tempfile", snapshot_file]
        memcached_server.stats.update({"bytes": 1000, "limit_maxbytes": 2000})

        code, out = run_main(argv)
        assert code == 0
        assert out == ""

        code, out = run_main(argv)
        assert code == 0
        assert "memcached-lite.cache-usage-byte.used\t1000\t" in out
        assert "memcached-lite.cache-usage-byte.max\t2000\t" in out

    def test_config_file_is_used(self, memcached_server, snapshot_file, tmp_path):
        config_file = tmp_path / "memcached-lite.yaml"
        config_file.write_text(
            f"host: {memcached_server.host}\nport: {memcached_server.port}\ntempfile: {snapshot_file}\n"
        )

        code, _ = run_main(["-c", str(config_file)])

        assert code == 0
        assert memcached_server.commands == ["stats", "stats settings"]

    def test_connection_error_exit_code(self, closed_port, snapshot_file):
        code, out = run_main(["-H", "127.0.0.1", "-p", str(closed_port), "--tempfile", snapshot_file])
        assert code == 2
        assert out == ""
