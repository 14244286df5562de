"""ClaudeRunner: executes a prepared invocation.

Plain runs inherit the terminal. Verbose runs read Claude's stream-json
output line by line and print assistant text and tool use as it arrives.
"""

import json
import subprocess
import sys
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from promptrun.errors import PromptNotFoundError
from promptrun.managed_subprocess import ManagedSubprocess

INTERRUPTED_EXIT_CODE = 130


@dataclass
class RunResult:
    """Outcome of one Claude run."""
    returncode: int
    result_text: Optional[str] = None
    is_error: bool = False


def _executable_not_found(cmd: List[str], error: OSError) -> PromptNotFoundError:
    return PromptNotFoundError(f"Cannot run {cmd[0]}: {error.strerror or error}")


def run_claude_interactive(cmd: List[str]) -> RunResult:
    """Run Claude with the terminal attached; output is not captured."""
    try:
        result = subprocess.run(cmd)
    except FileNotFoundError as e:
        raise _executable_not_found(cmd, e) from e
    except KeyboardInterrupt:
        return RunResult(returncode=INTERRUPTED_EXIT_CODE)
    return RunResult(returncode=result.returncode)


def _tool_use_summary(item: Dict[str, Any]) -> str:
    tool_input = item.get("input")
    if not isinstance(tool_input, dict):
        tool_input = {}
    detail = tool_input.get("command") or tool_input.get("file_path") or tool_input.get("pattern")
    name = item.get("name", "tool")
    return f"[{name}] {detail}" if detail else f"[{name}]"


class StreamDisplay:
    """Prints stream-json messages and remembers the final result."""

    def __init__(self, out=None):
        self._out = out or sys.stdout
        self.result: Optional[Dict[str, Any]] = None

    def _write(self, text: str) -> None:
        self._out.write(text + "\n")
        self._out.flush()

    def handle_line(self, line: str) -> None:
        line = line.strip()
        if not line:
            return
        try:
            msg = json.loads(line)
        except json.JSONDecodeError:
            self._write(line)
            return
        if not isinstance(msg, dict):
            return
        msg_type = msg.get("type")
        if msg_type == "assistant":
            message = msg.get("message")
            content = message.get("content") if isinstance(message, dict) else None
            if not isinstance(content, list):
                return
            for item in content:
                if not isinstance(item, dict):
                    continue
                if item.get("type") == "text":
                    self._write(item.get("text", ""))
                elif item.get("type") == "tool_use":
                    self._write(_tool_use_summary(item))
        elif msg_type == "result":
            self.result = msg


def _read_lines(pipe, on_line) -> None:
    """Decode a byte pipe incrementally and call ``on_line`` per complete line."""
    buffer = ""
    while True:
        chunk = pipe.read1(4096) if hasattr(pipe, "read1") else pipe.read(4096)
        if not chunk:
            break
        buffer += chunk.decode("utf-8", errors="replace")
        while "\n" in buffer:
            line, buffer = buffer.split("\n", 1)
            on_line(line)
    if buffer:
        on_line(buffer)


def _forward_to_stderr(pipe) -> None:
    def _write(line):
        sys.stderr.write(line + "\n")
        sys.stderr.flush()

    _read_lines(pipe, _write)


def run_claude_streaming(cmd: List[str], display: Optional[StreamDisplay] = None) -> RunResult:
    """Run Claude in stream-json mode, displaying messages as they arrive."""
    display = display or StreamDisplay()
    try:
        process = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,
        )
    except FileNotFoundError as e:
        raise _executable_not_found(cmd, e) from e
    stdout_thread = threading.Thread(target=_read_lines, args=(process.stdout, display.handle_line))
    stderr_thread = threading.Thread(target=_forward_to_stderr, args=(process.stderr,))
    stdout_thread.start()
    stderr_thread.start()

    with ManagedSubprocess(
        process=process,
        label="claude",
        threads=[stdout_thread, stderr_thread],
    ) as managed:
        process.wait()

    if managed.interrupted:
        return RunResult(returncode=INTERRUPTED_EXIT_CODE)

    stdout_thread.join()
    stderr_thread.join()

    result = display.result or {}
    return RunResult(
        returncode=process.returncode,
        result_text=result.get("result"),
        is_error=bool(result.get("is_error")),
    )


class ClaudeRunner:
    """Chooses streaming or terminal mode from the verbose setting."""

    def __init__(self, verbose: bool = False):
        self._verbose = verbose

    def run(self, cmd: List[str]) -> RunResult:
        if self._verbose:
            return run_claude_streaming(cmd)
        return run_claude_interactive(cmd)
