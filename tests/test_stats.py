"""Tests for the stats response parser."""

import pytest

from memcached_lite.errors import StatsParseError
from memcached_lite.stats import parse_int64, parse_stats


class TestParseStats:
    def test_extracts_stat_lines(self):
        raw = b"STAT foo 123\r\nSTAT bar 0\r\nEND\r\n"
        assert parse_stats(raw) == {"foo": 123, "bar": 0}

    def test_ignores_non_matching_lines(self):
        raw = b"END\r\nERROR\r\n\r\n\nSTAT\r\nSTAT Foo 1\r\nSTAT name value\r\nstat lower 5\r\n"
        assert parse_stats(raw) == {}

    def test_value_prefix_is_taken_for_non_integer_values(self):
        # "0.123" and "1.6.21" match the grammar on their leading digits
        raw = b"STAT rusage_user 0.123456\r\nSTAT version 1.6.21\r\nEND\r\n"
        assert parse_stats(raw) == {"rusage_user": 0, "version": 1}

    def test_names_with_digits_are_ignored(self):
        raw = b"STAT 1:chunk_size 96\r\nSTAT slab2 7\r\nSTAT curr_items 4\r\n"
        assert parse_stats(raw) == {"curr_items": 4}

    def test_lines_without_carriage_return(self):
        assert parse_stats(b"STAT cmd_get 42\nEND\n") == {"cmd_get": 42}

    def test_empty_input(self):
        assert parse_stats(b"") == {}

    def test_out_of_range_value_fails_whole_call(self):
        raw = b"STAT cmd_get 1\r\nSTAT evictions 99999999999999999999\r\nEND\r\n"
        with pytest.raises(StatsParseError):
            parse_stats(raw)

    def test_max_int64_is_accepted(self):
        raw = b"STAT bytes 9223372036854775807\r\n"
        assert parse_stats(raw) == {"bytes": 9223372036854775807}


class TestMergeIntoAccumulator:
    def test_second_blob_keeps_first_keys(self):
        stats = {}
        parse_stats(b"STAT cmd_get 10\r\nSTAT bytes 500\r\nEND\r\n", stats)
        parse_stats(b"STAT maxconns 1024\r\nEND\r\n", stats)
        assert stats == {"cmd_get": 10, "bytes": 500, "maxconns": 1024}

    def test_second_blob_overrides_collisions(self):
        stats = {}
        parse_stats(b"STAT evictions 3\r\n", stats)
        parse_stats(b"STAT evictions 7\r\n", stats)
        assert stats == {"evictions": 7}

    def test_returns_the_accumulator(self):
        stats = {"existing": 1}
        result = parse_stats(b"STAT new_key 2\r\n", stats)
        assert result is stats
        assert result == {"existing": 1, "new_key": 2}


class TestParseInt64:
    @pytest.mark.parametrize("text,expected", [
        ("0", 0),
        ("123", 123),
        ("-5", -5),
        ("0x1f", 31),
        ("0X10", 16),
    ])
    def test_valid(self, text, expected):
        assert parse_int64(text) == expected

    @pytest.mark.parametrize("text", [
        "", "abc", "1.5", "12abc", " 42 ", "42\n", "1_000", "0x", "\u0661\u0662", "9223372036854775808",
    ])
    def test_invalid(self, text):
        with pytest.raises(StatsParseError):
            parse_int64(text)
