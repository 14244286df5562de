"""Options dataclass for the run command."""

from dataclasses import dataclass, field
from typing import Tuple

from promptrun.prompt_resolver import DEFAULT_COMMANDS_DIR


@dataclass
class RunOpts:
    """All options for the run command."""

    name: str
    assignments: Tuple[str, ...] = field(default_factory=tuple)
    variables_file: str | None = None
    json_variables: str | None = None
    verbose: bool = False
    dry_run: bool = False
    model: str | None = None
    commands_dir: str = DEFAULT_COMMANDS_DIR
    claude_bin: str = "claude"
