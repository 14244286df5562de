"""Prompt resolver: locates prompt files by path or by name in the commands directory."""

import os
from dataclasses import dataclass
from typing import List

from promptrun.errors import PromptNotFoundError

PROMPT_EXTENSIONS = (".prompt.yaml", ".md", ".txt")
DEFAULT_COMMANDS_DIR = os.path.join("~", ".claude", "commands")


@dataclass(frozen=True)
class PromptInfo:
    name: str
    path: str


def _candidates(name: str, commands_dir: str) -> List[str]:
    search_dir = os.path.expanduser(commands_dir)
    return [os.path.join(search_dir, name + extension) for extension in PROMPT_EXTENSIONS]


def resolve_prompt(name_or_path: str, commands_dir: str = DEFAULT_COMMANDS_DIR) -> str:
    """Resolve a prompt name or path to an existing file.

    An existing file path always wins. A name that already contains a dot is
    never looked up in the commands directory. Otherwise each extension is
    tried in priority order.

    Raises PromptNotFoundError if nothing matches.
    """
    direct = os.path.abspath(os.path.expanduser(name_or_path))
    if os.path.isfile(direct):
        return direct
    if "." in name_or_path:
        raise PromptNotFoundError(f"Prompt not found: {name_or_path} (no such file: {direct})")
    candidates = _candidates(name_or_path, commands_dir)
    for candidate in candidates:
        if os.path.isfile(candidate):
            return candidate
    tried = "\n".join(f"  {path}" for path in [direct] + candidates)
    raise PromptNotFoundError(f"Prompt not found: {name_or_path}\nTried:\n{tried}")


def _prompt_name(filename: str):
    for extension in PROMPT_EXTENSIONS:
        if filename.endswith(extension) and len(filename) > len(extension):
            return filename[: -len(extension)], PROMPT_EXTENSIONS.index(extension)
    return None, None


def list_prompts(commands_dir: str = DEFAULT_COMMANDS_DIR) -> List[PromptInfo]:
    """Return the prompts in the commands directory sorted by name.

    When several files share a name, the one that resolve_prompt would pick
    is listed.
    """
    search_dir = os.path.expanduser(commands_dir)
    if not os.path.isdir(search_dir):
        return []
    best = {}
    for entry in os.listdir(search_dir):
        path = os.path.join(search_dir, entry)
        name, priority = _prompt_name(entry)
        if name is None or not os.path.isfile(path):
            continue
        if name not in best or priority < best[name][0]:
            best[name] = (priority, path)
    return [PromptInfo(name=name, path=best[name][1]) for name in sorted(best)]
