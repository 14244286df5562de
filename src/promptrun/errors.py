"""Exception hierarchy for prompt resolution, rendering and validation."""

from typing import List, Sequence


class PromptError(Exception):
    """Base class for every fatal, user-facing promptrun failure."""


class PromptNotFoundError(PromptError):
    pass


class UnsupportedFormatError(PromptError):
    pass


class MalformedInputError(PromptError):
    pass


class PromptIOError(PromptError):
    pass


class MissingVariableError(PromptError):
    """Raised when the prompt references variables that were never bound."""

    def __init__(self, missing: Sequence[str]):
        self.missing: List[str] = sorted(missing)
        lines = [f"Missing required variables: {', '.join(self.missing)}"]
        lines.append("Provide them as:")
        lines.extend(f"  {name}=<value>" for name in self.missing)
        super().__init__("\n".join(lines))


class RequirementUnsatisfiedError(PromptError):
    """Raised when one category of declared requirements is not met."""

    def __init__(self, kind: str, entries: Sequence[str]):
        self.kind = kind
        self.entries: List[str] = list(entries)
        super().__init__(
            f"Unsatisfied {kind} requirements: {', '.join(self.entries)}"
        )
