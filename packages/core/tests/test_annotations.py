"""Tests for operator-facing message helpers."""

from kachelens_core import annotations


def test_escape_workflow_command():
    assert annotations.escape_workflow_command("50% done\nnext\r") == "50%25 done%0Anext%0D"


def test_warning_is_workflow_command_in_actions(monkeypatch, capsys):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    annotations.warning("cache save failed\nretry later")
    out = capsys.readouterr().out
    assert "::warning::cache save failed%0Aretry later" in out


def test_warning_plain_outside_actions(monkeypatch, capsys):
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
    annotations.warning("cache save failed")
    out = capsys.readouterr().out
    assert "::warning::" not in out
    assert "cache save failed" in out


def test_warning_logged(monkeypatch, caplog):
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
    with caplog.at_level("WARNING", logger="kachelens_core.annotations"):
        annotations.warning("s3 unreachable")
    assert "s3 unreachable" in caplog.text
