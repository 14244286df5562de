"""CommandBuilder: derives the Claude command line for a rendered prompt.

The prompt's requirements are translated into permission flags: every
declared command becomes a scoped ``Bash(...)`` grant and every declared
directory becomes its own ``--add-dir`` pair.
"""

import os
from typing import List, Optional

from promptrun.document import Requirements

DEFAULT_TOOLS = ["Read", "Grep", "Glob", "LS"]


def command_grant(command: str) -> str:
    """Scoped shell-execution grant for a single command."""
    return f"Bash({command}:*)"


def allowed_tools(requirements: Optional[Requirements]) -> List[str]:
    """Build the allow-list for ``--allowedTools``.

    Declared tools replace the default read-only set entirely; the defaults
    only appear when ``tools`` is absent. Nothing is granted when neither
    commands nor tools are declared.
    """
    if requirements is None:
        return []
    if not requirements.commands and requirements.tools is None:
        return []
    allowed = [command_grant(command) for command in requirements.commands]
    if requirements.tools is None:
        allowed.extend(DEFAULT_TOOLS)
    else:
        allowed.extend(requirements.tools)
    return allowed


class CommandBuilder:
    """Builds the ``claude`` invocation for a rendered prompt."""

    def __init__(self, claude_bin: str = "claude"):
        self._claude_bin = claude_bin

    def build(
        self,
        prompt: str,
        requirements: Optional[Requirements] = None,
        verbose: bool = False,
        model: Optional[str] = None,
    ) -> List[str]:
        """Assemble the argument list.

        Args:
            prompt: The fully rendered prompt text.
            requirements: Requirements declared by the prompt, if any.
            verbose: If True, request streaming structured output.
            model: Optional model override.

        Returns:
            Command list suitable for subprocess.
        """
        cmd = [self._claude_bin, "-p", prompt]
        if verbose:
            cmd += ["--verbose", "--output-format=stream-json"]
        if model:
            cmd += ["--model", model]

        allowed = allowed_tools(requirements)
        if allowed:
            cmd += ["--allowedTools", ",".join(allowed)]

        if requirements is not None:
            for directory in requirements.directories:
                cmd += ["--add-dir", os.path.abspath(os.path.expanduser(directory))]
        return cmd
