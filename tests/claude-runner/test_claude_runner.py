"""Tests for ClaudeRunner and the stream-json display."""

import io
import json
import os
import stat
import subprocess

import pytest

from fake_claude_runner import FakeClaudeRunner
from promptrun.claude_runner import (
    INTERRUPTED_EXIT_CODE,
    ClaudeRunner,
    RunResult,
    StreamDisplay,
    run_claude_interactive,
    run_claude_streaming,
)
from promptrun.errors import PromptNotFoundError


def _line(msg):
    return json.dumps(msg)


def _script(tmp_path, body):
    path = tmp_path / "fake-claude.sh"
    path.write_text("#!/bin/sh\n" + body)
    os.chmod(path, stat.S_IRWXU)
    return str(path)


@pytest.mark.unit
class TestStreamDisplay:

    def test_prints_assistant_text_and_tool_use(self):
        out = io.StringIO()
        display = StreamDisplay(out)
        display.handle_line(_line({
            "type": "assistant",
            "message": {"content": [
                {"type": "text", "text": "Looking at the diff"},
                {"type": "tool_use", "name": "Bash", "input": {"command": "git diff"}},
                {"type": "tool_use", "name": "Grep", "input": {}},
            ]},
        }))
        assert out.getvalue() == "Looking at the diff\n[Bash] git diff\n[Grep]\n"

    def test_remembers_result_without_printing(self):
        out = io.StringIO()
        display = StreamDisplay(out)
        display.handle_line(_line({"type": "result", "result": "done", "is_error": False}))
        assert display.result["result"] == "done"
        assert out.getvalue() == ""

    def test_non_json_lines_are_echoed(self):
        out = io.StringIO()
        display = StreamDisplay(out)
        display.handle_line("plain output")
        display.handle_line("   ")
        assert out.getvalue() == "plain output\n"

    def test_other_message_types_are_silent(self):
        out = io.StringIO()
        StreamDisplay(out).handle_line(_line({"type": "system", "subtype": "init"}))
        assert out.getvalue() == ""


@pytest.mark.unit
class TestRunners:

    def test_interactive_returns_exit_code(self, tmp_path):
        script = _script(tmp_path, "exit 3\n")
        assert run_claude_interactive([script]).returncode == 3

    def test_streaming_collects_result(self, tmp_path):
        result_line = _line({"type": "result", "result": "all good", "is_error": False})
        script = _script(tmp_path, f"echo '{result_line}'\nexit 0\n")
        display = StreamDisplay(io.StringIO())
        result = run_claude_streaming([script], display)
        assert result == RunResult(returncode=0, result_text="all good", is_error=False)

    def test_streaming_reports_error_result(self, tmp_path):
        result_line = _line({"type": "result", "result": "boom", "is_error": True})
        script = _script(tmp_path, f"echo '{result_line}'\nexit 1\n")
        result = run_claude_streaming([script], StreamDisplay(io.StringIO()))
        assert result.returncode == 1
        assert result.is_error
        assert result.result_text == "boom"

    def test_claude_runner_picks_mode_from_verbose(self, tmp_path):
        script = _script(tmp_path, "exit 0\n")
        assert ClaudeRunner(verbose=False).run([script]).returncode == 0
        assert ClaudeRunner(verbose=True).run([script]).result_text is None


@pytest.mark.unit
class TestFakeClaudeRunner:

    def test_factory_shares_calls(self):
        factory = FakeClaudeRunner.factory(RunResult(returncode=4))
        result = factory(verbose=True).run(["claude", "-p", "x"])
        assert result.returncode == 4
        assert factory.calls == [(["claude", "-p", "x"], True)]


@pytest.mark.unit
class TestMalformedStreamLines:

    def test_non_dict_content_items_are_skipped(self):
        out = io.StringIO()
        display = StreamDisplay(out)
        display.handle_line(_line({
            "type": "assistant",
            "message": {"content": ["x", {"type": "text", "text": "kept"}]},
        }))
        assert out.getvalue() == "kept\n"

    def test_non_dict_tool_input_is_ignored(self):
        out = io.StringIO()
        StreamDisplay(out).handle_line(_line({
            "type": "assistant",
            "message": {"content": [{"type": "tool_use", "name": "Bash", "input": "ls"}]},
        }))
        assert out.getvalue() == "[Bash]\n"

    @pytest.mark.parametrize("message", ["text", None, {"content": "text"}])
    def test_malformed_message_is_ignored(self, message):
        out = io.StringIO()
        StreamDisplay(out).handle_line(_line({"type": "assistant", "message": message}))
        assert out.getvalue() == ""


@pytest.mark.unit
class TestMissingExecutable:

    def test_interactive_reports_missing_executable(self, tmp_path):
        with pytest.raises(PromptNotFoundError, match="Cannot run"):
            run_claude_interactive([str(tmp_path / "no-such-claude"), "-p", "x"])

    def test_streaming_reports_missing_executable(self, tmp_path):
        with pytest.raises(PromptNotFoundError, match="no-such-claude"):
            run_claude_streaming([str(tmp_path / "no-such-claude")], StreamDisplay(io.StringIO()))


@pytest.mark.unit
class TestStreamingInterrupted:

    def test_interrupt_returns_130(self, tmp_path, monkeypatch):
        script = _script(tmp_path, "sleep 30\n")
        real_wait = subprocess.Popen.wait
        interrupted = []

        def _wait_then_interrupt(self, timeout=None):
            if not interrupted:
                interrupted.append(True)
                raise KeyboardInterrupt()
            return real_wait(self, timeout=timeout)

        monkeypatch.setattr(subprocess.Popen, "wait", _wait_then_interrupt)

        result = run_claude_streaming([script], StreamDisplay(io.StringIO()))

        assert result == RunResult(returncode=INTERRUPTED_EXIT_CODE)
