"""Tests for the subprocess runner and CommandResult."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from inobridge.errors import CommandTimeout, ExecutionFailure, ToolFailure
from inobridge.executor import CommandResult, ProcessRunner


class TestCommandResult:
    def test_text_strips_trailing_whitespace(self):
        result = CommandResult(args=["arduino-cli", "version"], returncode=0, stdout="2.0.0\n\n")
        assert result.text == "2.0.0"
        assert str(result) == "2.0.0"

    def test_ok(self):
        assert CommandResult(args=[], returncode=0).ok is True
        assert CommandResult(args=[], returncode=1).ok is False

    def test_check_success_returns_self(self):
        result = CommandResult(args=["x"], returncode=0, stdout="fine")
        assert result.check() is result

    def test_check_failure_raises(self):
        result = CommandResult(args=["arduino-cli", "board", "details"], returncode=1,
                               stderr="error: board not found\n")
        with pytest.raises(ToolFailure) as exc_info:
            result.check()
        err = exc_info.value
        assert err.returncode == 1
        assert err.exit_code == 1
        assert err.stderr == "error: board not found\n"
        assert "error: board not found" in err.message
        assert err.result is result

    def test_tool_failure_to_dict(self):
        result = CommandResult(args=["a"], returncode=3, stdout="out", stderr="err")
        d = ToolFailure(result).to_dict()
        assert d["exit_code"] == 3
        assert d["stderr"] == "err"
        assert d["stdout"] == "out"

    def test_to_dict(self):
        result = CommandResult(args=["a", "b"], returncode=0, stdout="o", stderr="e")
        assert result.to_dict() == {"args": ["a", "b"], "returncode": 0, "stdout": "o", "stderr": "e"}


class TestProcessRunner:
    @patch("inobridge.executor.subprocess.run")
    def test_runs_argument_vector(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="2.0.0\n", stderr="")
        result = ProcessRunner().run(["/tmp/arduino-cli", "version"])
        args, kwargs = mock_run.call_args
        assert args[0] == ["/tmp/arduino-cli", "version"]
        assert kwargs["capture_output"] is True
        assert kwargs["encoding"] == "utf-8"
        assert kwargs["errors"] == "replace"
        assert "shell" not in kwargs
        assert result.text == "2.0.0"
        assert result.ok

    @patch("inobridge.executor.subprocess.run")
    def test_non_zero_exit_is_returned_not_raised(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="boom")
        result = ProcessRunner().run(["arduino-cli", "bad"])
        assert result.returncode == 1
        assert result.stderr == "boom"

    @patch("inobridge.executor.subprocess.run")
    def test_none_streams_become_empty(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout=None, stderr=None)
        result = ProcessRunner().run(["arduino-cli"])
        assert result.stdout == ""
        assert result.stderr == ""

    @patch("inobridge.executor.subprocess.run")
    def test_default_timeout(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        ProcessRunner(timeout=30).run(["arduino-cli"])
        assert mock_run.call_args.kwargs["timeout"] == 30

    @patch("inobridge.executor.subprocess.run")
    def test_per_call_timeout_overrides(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        ProcessRunner(timeout=30).run(["arduino-cli"], timeout=5)
        assert mock_run.call_args.kwargs["timeout"] == 5

    @patch("inobridge.executor.subprocess.run")
    def test_no_timeout_by_default(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        ProcessRunner().run(["arduino-cli"])
        assert mock_run.call_args.kwargs["timeout"] is None

    @patch("inobridge.executor.subprocess.run", side_effect=FileNotFoundError("no such file"))
    def test_launch_failure(self, mock_run):
        with pytest.raises(ExecutionFailure) as exc_info:
            ProcessRunner().run(["/missing/arduino-cli", "version"])
        assert exc_info.value.command == ["/missing/arduino-cli", "version"]
        assert exc_info.value.exit_code == 6
        assert "/missing/arduino-cli version" in exc_info.value.message

    @patch("inobridge.executor.subprocess.run", side_effect=PermissionError("denied"))
    def test_permission_error(self, mock_run):
        with pytest.raises(ExecutionFailure, match="denied"):
            ProcessRunner().run(["arduino-cli"])

    @patch("inobridge.executor.subprocess.run",
           side_effect=subprocess.TimeoutExpired(cmd=["arduino-cli"], timeout=2))
    def test_timeout(self, mock_run):
        with pytest.raises(CommandTimeout) as exc_info:
            ProcessRunner(timeout=2).run(["arduino-cli", "upload"])
        assert exc_info.value.timeout == 2
        assert isinstance(exc_info.value, ExecutionFailure)

    @patch("inobridge.executor.subprocess.run")
    def test_args_stringified(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        ProcessRunner().run([tmp_path / "arduino-cli", "compile"])
        assert mock_run.call_args.args[0] == [str(tmp_path / "arduino-cli"), "compile"]
