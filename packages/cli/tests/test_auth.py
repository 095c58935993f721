"""Tests for GitHub token resolution."""

import subprocess

from kachelens_cli.auth import resolve_github_token


def _gh_result(returncode=0, stdout=""):
    return subprocess.CompletedProcess(args=["gh", "auth", "token"], returncode=returncode, stdout=stdout, stderr="")


class TestResolveGithubToken:
    def test_github_token_wins(self, mocker, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "from-actions")
        monkeypatch.setenv("GH_TOKEN", "from-gh-env")
        run = mocker.patch("kachelens_cli.auth.subprocess.run")

        assert resolve_github_token() == "from-actions"
        run.assert_not_called()

    def test_gh_token_env(self, mocker, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.setenv("GH_TOKEN", "from-gh-env")
        run = mocker.patch("kachelens_cli.auth.subprocess.run")

        assert resolve_github_token() == "from-gh-env"
        run.assert_not_called()

    def test_falls_back_to_gh_session(self, mocker, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GH_TOKEN", raising=False)
        mocker.patch("kachelens_cli.auth.subprocess.run", return_value=_gh_result(stdout="gho_session\n"))

        assert resolve_github_token() == "gho_session"

    def test_logged_out_gh_is_none(self, mocker, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GH_TOKEN", raising=False)
        mocker.patch("kachelens_cli.auth.subprocess.run", return_value=_gh_result(returncode=1))

        assert resolve_github_token() is None

    def test_missing_gh_is_none(self, mocker, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GH_TOKEN", raising=False)
        mocker.patch("kachelens_cli.auth.subprocess.run", side_effect=FileNotFoundError("gh"))

        assert resolve_github_token() is None
