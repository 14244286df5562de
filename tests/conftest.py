"""Shared fixtures for promptrun tests."""

import os
import sys

import pytest

# Ensure tests/ is on sys.path so test files can import the fakes
# unambiguously.
sys.path.insert(0, os.path.dirname(__file__))

from fake_claude_runner import FakeClaudeRunner  # noqa: E402, F401
from fake_environment import FakeEnvironment  # noqa: E402, F401


@pytest.fixture
def commands_dir(tmp_path):
    directory = tmp_path / "commands"
    directory.mkdir()
    return directory


@pytest.fixture
def write_prompt(commands_dir):
    """Write a prompt file into the commands directory and return its path."""
    def _write(filename, content):
        path = commands_dir / filename
        path.write_text(content, encoding="utf-8")
        return path

    return _write
