"""Tests for GitClient and the path trigger oracle."""

import subprocess
from unittest.mock import patch, MagicMock, Mock

from condbuild.infra.git_client import GitClient, PathTriggerOracle, matches_watched


def completed(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestGitClient:
    def test_changed_paths(self):
        client = GitClient()
        with patch('subprocess.run', side_effect=[
            completed(),                                         # fetch
            completed("backend/app.py\nREADME.md\n"),            # diff
        ]) as mock_run:
            assert client.changed_paths("main") == ["backend/app.py", "README.md"]

        diff_cmd = mock_run.call_args_list[1][0][0]
        assert diff_cmd == ["git", "diff", "--name-only", "origin/main...HEAD"]

    def test_falls_back_to_two_dot_diff(self):
        client = GitClient()
        with patch('subprocess.run', side_effect=[
            completed(),
            completed(returncode=128, stderr="no merge base"),
            completed("x.txt\n"),
        ]) as mock_run:
            assert client.changed_paths("main") == ["x.txt"]
        assert mock_run.call_args_list[2][0][0] == ["git", "diff", "--name-only", "origin/main", "HEAD"]

    def test_diff_failure_returns_none(self):
        client = GitClient()
        with patch('subprocess.run', side_effect=[
            completed(returncode=1),
            completed(returncode=128),
            completed(returncode=128),
        ]):
            assert client.changed_paths("main") is None

    def test_run_reports_nonzero_exit_without_raising(self):
        with patch('subprocess.run', return_value=completed(returncode=1, stderr="fatal")):
            assert GitClient()._run(["status"]) == (None, 1)

    def test_timeout(self):
        client = GitClient(timeout=1)
        with patch('subprocess.run', side_effect=subprocess.TimeoutExpired("git", 1)):
            assert client._run(["status"]) == (None, -1)

    def test_missing_git_binary(self):
        client = GitClient()
        with patch('subprocess.run', side_effect=FileNotFoundError("git")):
            assert client._run(["status"]) == (None, -1)

    def test_custom_remote(self):
        client = GitClient(remote="upstream")
        with patch('subprocess.run', side_effect=[completed(), completed("")]) as mock_run:
            assert client.changed_paths("main") == []
        assert mock_run.call_args_list[0][0][0][-2:] == ["upstream", "main"]


class TestMatchesWatched:
    def test_prefix_match(self):
        assert matches_watched("backend/src/app.py", ["backend/"])

    def test_no_match(self):
        assert not matches_watched("frontend/index.js", ["backend/"])

    def test_leading_dot_slash(self):
        assert matches_watched("./backend/x", ["backend/"])


class TestPathTriggerOracle:
    def test_no_triggers_always_changed(self):
        git = Mock()
        oracle = PathTriggerOracle(git)
        assert oracle.paths_changed((), "main") is True
        git.changed_paths.assert_not_called()

    def test_changed(self):
        git = Mock()
        git.changed_paths.return_value = ["backend/app.py", "docs/x.md"]
        assert PathTriggerOracle(git).paths_changed(["backend/"], "main") is True
        git.changed_paths.assert_called_once_with("main")

    def test_unchanged(self):
        git = Mock()
        git.changed_paths.return_value = ["docs/x.md"]
        assert PathTriggerOracle(git).paths_changed(["backend/", "common/"], "main") is False

    def test_git_failure_counts_as_changed(self):
        git = MagicMock()
        git.changed_paths.return_value = None
        assert PathTriggerOracle(git).paths_changed(["backend/"], "main") is True
