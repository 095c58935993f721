"""Tests for event log parsing."""

import json

from kachelens_core.events import (
    OutcomeRecord,
    OutcomeResult,
    clear_event_log,
    decode_line,
    default_cache_dir,
    event_log_path,
    parse_log,
    read_event_log,
)


def _line(**fields) -> str:
    return json.dumps(fields)


class TestDecodeLine:
    def test_miss_record(self):
        record = decode_line(
            _line(result="miss", crate_name="serde", elapsed_ms=4200, size=1048576, cache_key="abc123")
        )
        assert record == OutcomeRecord(OutcomeResult.MISS, "serde", 4200, 1048576, "abc123")

    def test_hit_without_optional_fields(self):
        record = decode_line(_line(result="local_hit", crate_name="log"))
        assert record.result is OutcomeResult.LOCAL_HIT
        assert record.elapsed_ms == 0
        assert record.size_bytes == 0
        assert record.cache_key == ""

    def test_blank_line(self):
        assert decode_line("   ") is None

    def test_truncated_line(self):
        assert decode_line('{"result": "miss", "crate_na') is None

    def test_non_object_json(self):
        assert decode_line("[1, 2, 3]") is None

    def test_unknown_result(self):
        assert decode_line(_line(result="evicted", crate_name="x")) is None

    def test_negative_and_garbage_numbers_become_zero(self):
        record = decode_line(_line(result="miss", crate_name="x", elapsed_ms=-5, size="big"))
        assert record.elapsed_ms == 0
        assert record.size_bytes == 0

    def test_null_cache_key(self):
        record = decode_line(_line(result="miss", crate_name="x", cache_key=None))
        assert record.cache_key == ""


class TestParseLog:
    def test_valid_blank_and_garbled(self):
        raw = "\n".join([_line(result="miss", crate_name="foo", elapsed_ms=10), "", '{"result": "loc'])
        records = parse_log(raw)
        assert len(records) == 1
        assert records[0].unit_name == "foo"

    def test_preserves_encounter_order(self):
        raw = "\n".join(_line(result="local_hit", crate_name=name) for name in ["c", "a", "b"])
        assert [r.unit_name for r in parse_log(raw)] == ["c", "a", "b"]

    def test_empty_input(self):
        assert parse_log("") == []
        assert parse_log(None) == []

    def test_only_garbage(self):
        assert parse_log("not json\n{{{\n") == []


class TestEventLogFile:
    def test_missing_log_reads_empty(self, tmp_path):
        assert read_event_log(tmp_path / "events.jsonl") == []

    def test_reads_records(self, tmp_path):
        log = tmp_path / "events.jsonl"
        log.write_text(_line(result="remote_hit", crate_name="tokio") + "\n")
        records = read_event_log(log)
        assert records[0].result is OutcomeResult.REMOTE_HIT

    def test_clear_truncates_existing_log(self, tmp_path):
        log = tmp_path / "events.jsonl"
        log.write_text(_line(result="miss", crate_name="old") + "\n")
        assert clear_event_log(log) is True
        assert log.read_text() == ""

    def test_clear_missing_directory_is_not_an_error(self, tmp_path):
        assert clear_event_log(tmp_path / "nope" / "events.jsonl") is False

    def test_event_log_path(self, tmp_path):
        assert event_log_path(tmp_path) == tmp_path / "events.jsonl"

    def test_cache_dir_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("KACHE_CACHE_DIR", str(tmp_path))
        assert default_cache_dir() == tmp_path
        assert event_log_path() == tmp_path / "events.jsonl"

    def test_linux_default_cache_dir(self, monkeypatch):
        monkeypatch.delenv("KACHE_CACHE_DIR", raising=False)
        monkeypatch.setattr("kachelens_core.events.sys.platform", "linux")
        assert default_cache_dir().parts[-2:] == (".cache", "kache")
