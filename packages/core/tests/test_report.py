"""Tests for markdown report rendering."""

from kachelens_core.events import OutcomeRecord, OutcomeResult
from kachelens_core.report import (
    ATTRIBUTION,
    COMMENT_TITLE,
    SUMMARY_HEADING,
    format_bytes,
    format_duration,
    format_ms,
    render_comment,
    render_job_summary,
    render_summary,
    write_job_summary,
)
from kachelens_core.stats import RunStats, aggregate


def _scenario_stats() -> RunStats:
    records = (
        [OutcomeRecord(OutcomeResult.LOCAL_HIT, f"l{i}") for i in range(7)]
        + [OutcomeRecord(OutcomeResult.REMOTE_HIT, f"r{i}") for i in range(2)]
        + [OutcomeRecord(OutcomeResult.MISS, "foo", 4200, 1048576)]
    )
    return aggregate(records)


def _misses(count: int, key: str = "") -> RunStats:
    return aggregate([OutcomeRecord(OutcomeResult.MISS, f"crate{i}", 1000 + i, 100, key) for i in range(count)])


class TestFormatting:
    def test_format_bytes(self):
        assert format_bytes(0) == "0 B"
        assert format_bytes(512) == "512.0 B"
        assert format_bytes(1536) == "1.5 KB"
        assert format_bytes(1048576) == "1.0 MB"
        assert format_bytes(3 * 1024**3) == "3.0 GB"

    def test_format_bytes_caps_at_gb(self):
        assert format_bytes(2048 * 1024**3) == "2048.0 GB"

    def test_format_ms(self):
        assert format_ms(850) == "850ms"
        assert format_ms(999) == "999ms"
        assert format_ms(2500) == "2.5s"

    def test_format_duration(self):
        assert format_duration(12.34) == "12.3s"
        assert format_duration(None) == "?s"


class TestRenderSummary:
    def test_scenario_table(self):
        md = render_summary(_scenario_stats(), "S3", 42.0)
        assert "| Hit rate | 90.0% |" in md
        assert "| Local hits | 7 |" in md
        assert "| Remote hits | 2 |" in md
        assert "| Misses | 1 |" in md
        assert "| Total crates | 10 |" in md
        assert "| Backend | S3 |" in md
        assert "| Duration | 42.0s |" in md
        assert "<summary>Cache misses (1 crates)</summary>" in md
        assert "| `foo` | 4.2s | 1.0 MB |" in md

    def test_errors_row_only_when_nonzero(self):
        assert "| Errors |" not in render_summary(_scenario_stats(), "S3", 1.0)
        stats = aggregate([OutcomeRecord(OutcomeResult.ERROR, "x"), OutcomeRecord(OutcomeResult.LOCAL_HIT, "y")])
        assert "| Errors | 1 |" in render_summary(stats, "S3", 1.0)

    def test_no_details_without_misses(self):
        stats = aggregate([OutcomeRecord(OutcomeResult.LOCAL_HIT, "y")])
        assert "<details>" not in render_summary(stats, "local only", 1.0)

    def test_key_column_only_when_a_key_exists(self):
        assert "| Key |" not in render_summary(_misses(2), "S3", 1.0)
        md = render_summary(_misses(2, key="0123456789abcdef"), "S3", 1.0)
        assert "| Crate | Compile time | Size | Key |" in md
        assert "`0123456789ab` |" in md
        assert "0123456789abc" not in md

    def test_caps_at_ten_rows_with_more_row(self):
        md = render_summary(_misses(13), "S3", 1.0)
        rows = [line for line in md.splitlines() if line.startswith("| `crate")]
        assert len(rows) == 10
        assert "| *... 3 more* | | |" in md

    def test_more_row_padded_for_key_column(self):
        md = render_summary(_misses(11, key="k"), "S3", 1.0)
        assert "| *... 1 more* | | | |" in md

    def test_exactly_ten_has_no_more_row(self):
        assert "more*" not in render_summary(_misses(10), "S3", 1.0)


class TestRenderComment:
    def test_comment_structure(self):
        md = render_comment(_scenario_stats(), "GitHub Actions cache", 3.0)
        lines = md.splitlines()
        assert lines[0] == COMMENT_TITLE
        assert "**90.0%** hit rate — 9/10 crates from cache, 1 compiled" in md
        assert lines[-1] == ATTRIBUTION

    def test_comment_has_no_marker(self):
        assert "<!--" not in render_comment(_scenario_stats(), "S3", 1.0)


class TestJobSummary:
    def test_full_summary(self):
        md = render_job_summary(_scenario_stats(), "S3", 5.0)
        assert md.startswith(SUMMARY_HEADING)
        assert "| Hit rate | 90.0% |" in md

    def test_degraded_without_stats(self):
        md = render_job_summary(None, "local only", None)
        assert "**Backend:** local only | **Duration:** ?s" in md
        assert "Hit rate" not in md

    def test_degraded_with_empty_stats(self):
        md = render_job_summary(aggregate([]), "S3", 1.5)
        assert "**Backend:** S3 | **Duration:** 1.5s" in md

    def test_write_appends_to_step_summary(self, tmp_path, monkeypatch):
        sink = tmp_path / "summary.md"
        sink.write_text("existing\n")
        monkeypatch.setenv("GITHUB_STEP_SUMMARY", str(sink))
        assert write_job_summary("## hello\n") is True
        assert sink.read_text() == "existing\n## hello\n"

    def test_write_without_sink(self, monkeypatch):
        monkeypatch.delenv("GITHUB_STEP_SUMMARY", raising=False)
        assert write_job_summary("## hello\n") is False
