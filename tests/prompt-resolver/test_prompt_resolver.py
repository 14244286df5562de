"""Tests for prompt file resolution and listing."""

import os

import pytest

from promptrun.errors import PromptNotFoundError
from promptrun.prompt_resolver import PromptInfo, list_prompts, resolve_prompt


@pytest.mark.unit
class TestResolvePrompt:

    def test_structured_yaml_wins_over_markdown(self, commands_dir, write_prompt):
        write_prompt("foo.md", "md")
        expected = write_prompt("foo.prompt.yaml", "messages: []")
        assert resolve_prompt("foo", str(commands_dir)) == str(expected)

    def test_markdown_wins_over_text(self, commands_dir, write_prompt):
        write_prompt("foo.txt", "txt")
        expected = write_prompt("foo.md", "md")
        assert resolve_prompt("foo", str(commands_dir)) == str(expected)

    def test_falls_back_to_text(self, commands_dir, write_prompt):
        expected = write_prompt("foo.txt", "txt")
        assert resolve_prompt("foo", str(commands_dir)) == str(expected)

    def test_existing_path_always_wins(self, tmp_path, commands_dir, write_prompt, monkeypatch):
        write_prompt("local.md", "from commands dir")
        (tmp_path / "local").write_text("direct")
        monkeypatch.chdir(tmp_path)
        assert resolve_prompt("local", str(commands_dir)) == os.path.abspath("local")

    def test_direct_path_with_any_extension(self, tmp_path, commands_dir):
        path = tmp_path / "prompt.weird"
        path.write_text("x")
        assert resolve_prompt(str(path), str(commands_dir)) == str(path)

    def test_dotted_name_does_not_fall_back(self, tmp_path, commands_dir, write_prompt, monkeypatch):
        write_prompt("missing.prompt.yaml", "messages: []")
        monkeypatch.chdir(tmp_path)
        with pytest.raises(PromptNotFoundError, match="missing.txt"):
            resolve_prompt("missing.txt", str(commands_dir))

    def test_not_found_lists_tried_paths(self, commands_dir):
        with pytest.raises(PromptNotFoundError) as excinfo:
            resolve_prompt("nothing", str(commands_dir))
        message = str(excinfo.value)
        assert "nothing.prompt.yaml" in message
        assert "nothing.md" in message
        assert "nothing.txt" in message


@pytest.mark.unit
class TestListPrompts:

    def test_missing_directory_lists_nothing(self, tmp_path):
        assert list_prompts(str(tmp_path / "absent")) == []

    def test_sorted_and_deduplicated_by_priority(self, commands_dir, write_prompt):
        write_prompt("zeta.txt", "")
        write_prompt("alpha.md", "")
        write_prompt("alpha.prompt.yaml", "")
        write_prompt("ignored.json", "")
        (commands_dir / "folder.md").mkdir()

        assert list_prompts(str(commands_dir)) == [
            PromptInfo(name="alpha", path=str(commands_dir / "alpha.prompt.yaml")),
            PromptInfo(name="zeta", path=str(commands_dir / "zeta.txt")),
        ]
