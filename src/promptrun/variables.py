"""Variable map assembly from --file, --json and positional key=value arguments."""

import json
import os
import re
import sys
from typing import Any, Dict, Iterable, Mapping, Optional

import yaml

from promptrun.errors import (
    MalformedInputError,
    MissingVariableError,
    PromptIOError,
    PromptNotFoundError,
    UnsupportedFormatError,
)

VARIABLE_FILE_SUFFIXES = (".json", ".yaml", ".yml")
FILE_INDIRECTION_PREFIX = "@"

_ASSIGNMENT = re.compile(r"^(\w+)=(.*)$", re.DOTALL)


def _stringify(value: Any, source: str, key: str) -> str:
    if isinstance(value, (list, dict)):
        raise MalformedInputError(f"{source}: value for '{key}' must be a string, not a nested structure")
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _flat_mapping(data: Any, source: str) -> Dict[str, str]:
    if not isinstance(data, Mapping):
        raise MalformedInputError(f"{source}: expected an object mapping variable names to values")
    return {str(key): _stringify(value, source, str(key)) for key, value in data.items()}


def _read_text(path: str) -> str:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise PromptIOError(f"Cannot read {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise MalformedInputError(f"{path} is not valid UTF-8: {e}") from e


def load_variable_file(path: str) -> Dict[str, str]:
    """Load variables from a .json, .yaml or .yml file."""
    if not path.lower().endswith(VARIABLE_FILE_SUFFIXES):
        raise UnsupportedFormatError(
            f"Unsupported file format: {path} (expected .json, .yaml or .yml)"
        )
    full_path = os.path.abspath(os.path.expanduser(path))
    if not os.path.isfile(full_path):
        raise PromptNotFoundError(f"Variables file not found: {path}")
    text = _read_text(full_path)
    try:
        if full_path.lower().endswith(".json"):
            data = json.loads(text)
        else:
            data = yaml.safe_load(text) or {}
    except (yaml.YAMLError, ValueError) as e:
        raise MalformedInputError(f"Invalid variables file {path}: {e}") from e
    return _flat_mapping(data, path)


def parse_json_variables(text: str) -> Dict[str, str]:
    """Parse the --json argument into a flat variable map."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"Invalid JSON in --json: {e}") from e
    return _flat_mapping(data, "--json")


def _resolve_value(value: str) -> str:
    if not value.startswith(FILE_INDIRECTION_PREFIX):
        return value
    path = os.path.abspath(os.path.expanduser(value[len(FILE_INDIRECTION_PREFIX):]))
    if not os.path.isfile(path):
        raise PromptNotFoundError(f"File not found for variable value: {path}")
    return _read_text(path)


def parse_assignments(tokens: Iterable[str]) -> Dict[str, str]:
    """Parse positional ``key=value`` tokens in order; ``key=@path`` reads a file."""
    variables = {}
    for token in tokens:
        match = _ASSIGNMENT.match(token)
        if not match:
            print(f"Warning: Ignoring argument '{token}' (expected key=value)", file=sys.stderr)
            continue
        key, value = match.groups()
        variables[key] = _resolve_value(value)
    return variables


def assemble_variables(
    file_path: Optional[str] = None,
    json_text: Optional[str] = None,
    assignments: Iterable[str] = (),
) -> Dict[str, str]:
    """Merge every variable source; later sources override earlier ones."""
    variables: Dict[str, str] = {}
    if file_path is not None:
        variables.update(load_variable_file(file_path))
    if json_text is not None:
        variables.update(parse_json_variables(json_text))
    variables.update(parse_assignments(assignments))
    return variables


def ensure_bound(required: Iterable[str], variables: Mapping[str, str]) -> None:
    """Raise MissingVariableError naming every required variable not in ``variables``."""
    missing = set(required) - set(variables)
    if missing:
        raise MissingVariableError(missing)
