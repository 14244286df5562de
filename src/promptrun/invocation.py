"""Turns a resolved prompt plus variables into a ready-to-run invocation."""

from dataclasses import dataclass
from typing import Dict, List, Optional

from promptrun.command_builder import CommandBuilder
from promptrun.document import ParsedPrompt, parse_document, read_document
from promptrun.prompt_resolver import resolve_prompt
from promptrun.requirements_validator import RequirementsValidator
from promptrun.variables import ensure_bound


@dataclass(frozen=True)
class RenderedInvocation:
    text: str
    argv: List[str]


def load_prompt(name_or_path: str, commands_dir: str) -> ParsedPrompt:
    """Resolve, read and parse a prompt."""
    return parse_document(read_document(resolve_prompt(name_or_path, commands_dir)))


def prepare_invocation(
    prompt: ParsedPrompt,
    variables: Dict[str, str],
    builder: Optional[CommandBuilder] = None,
    validator: Optional[RequirementsValidator] = None,
    verbose: bool = False,
    model: Optional[str] = None,
) -> RenderedInvocation:
    """Check variables, then requirements, then render and build the argv.

    Unbound variables are reported before any requirement failure.
    """
    ensure_bound(prompt.required_variables(), variables)
    (validator or RequirementsValidator()).ensure_satisfied(prompt.requirements)
    text = prompt.render(variables)
    argv = (builder or CommandBuilder()).build(
        text,
        prompt.requirements,
        verbose=verbose,
        model=model or prompt.model,
    )
    return RenderedInvocation(text=text, argv=argv)
