"""Checks declared prompt requirements against the host environment."""

import os
from dataclasses import dataclass
from typing import List, Optional

from promptrun.document import Requirements
from promptrun.errors import RequirementUnsatisfiedError


class ProcessEnvironment:
    """Read-only view of the real process environment and search path."""

    def lookup_env(self, name: str) -> Optional[str]:
        return os.environ.get(name)

    def search_path(self) -> List[str]:
        return [entry for entry in os.environ.get("PATH", "").split(os.pathsep) if entry]


@dataclass(frozen=True)
class RequirementFailure:
    kind: str
    entries: List[str]


def _is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def _has_separator(command: str) -> bool:
    return os.sep in command or bool(os.altsep and os.altsep in command)


def command_available(command: str, environment) -> bool:
    """Resolve ``command`` the way a shell would and check it is executable."""
    if os.path.isabs(command):
        return _is_executable(command)
    if _has_separator(command):
        return _is_executable(os.path.abspath(command))
    return any(
        _is_executable(os.path.join(directory, command))
        for directory in environment.search_path()
    )


class RequirementsValidator:
    """Validates commands, then environment, then directories.

    Each category reports every failing entry, but the first failing
    category stops the check.
    """

    def __init__(self, environment=None):
        self._environment = environment or ProcessEnvironment()

    def missing_commands(self, requirements: Requirements) -> List[str]:
        return [c for c in requirements.commands if not command_available(c, self._environment)]

    def missing_environment(self, requirements: Requirements) -> List[str]:
        return [
            name for name in requirements.environment
            if self._environment.lookup_env(name) is None
        ]

    def missing_directories(self, requirements: Requirements) -> List[str]:
        return [
            directory for directory in requirements.directories
            if not os.path.isdir(os.path.abspath(os.path.expanduser(directory)))
        ]

    def validate(self, requirements: Optional[Requirements]) -> Optional[RequirementFailure]:
        """Return the first failing category, or None when everything is present."""
        if requirements is None:
            return None
        checks = [
            ("command", self.missing_commands),
            ("environment", self.missing_environment),
            ("directory", self.missing_directories),
        ]
        for kind, check in checks:
            failing = check(requirements)
            if failing:
                return RequirementFailure(kind=kind, entries=failing)
        return None

    def ensure_satisfied(self, requirements: Optional[Requirements]) -> None:
        """Raise RequirementUnsatisfiedError for the first failing category."""
        failure = self.validate(requirements)
        if failure is not None:
            raise RequirementUnsatisfiedError(failure.kind, failure.entries)
