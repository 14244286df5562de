"""Prompt documents: format detection, parsing and the normalized ParsedPrompt.

Two document shapes are accepted:

* structured YAML (``*.prompt.yaml``) with top-level ``name``, ``description``,
  ``model``, ``requirements`` and a ``messages`` list;
* text or markdown, optionally opening with a ``---`` delimited YAML
  frontmatter block carrying the same metadata keys.

Both are normalized into a ``ParsedPrompt`` whose ``body`` is either a
``FlatBody`` or ``StructuredMessages``. Nothing downstream looks at the
original file format again.
"""

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Set, Tuple, Union

import yaml

from promptrun.errors import MalformedInputError, PromptIOError, UnsupportedFormatError
from promptrun.interpolation import extract_variables, substitute_variables

FRONTMATTER_DELIMITER = "---"

STRUCTURED_SUFFIXES = (".yaml", ".yml")
TEXT_SUFFIXES = (".md", ".txt")


class DocumentFormat(Enum):
    STRUCTURED_YAML = "structured-yaml"
    TEXT_WITH_FRONTMATTER = "text-with-frontmatter"


@dataclass(frozen=True)
class RawDocument:
    format: DocumentFormat
    data: bytes
    path: str = ""


@dataclass(frozen=True)
class Requirements:
    """Declared preconditions and permission grants for one prompt.

    ``tools`` is ``None`` when the document does not declare the key at all,
    which is distinct from an explicitly empty list.
    """
    commands: Tuple[str, ...] = ()
    tools: Optional[Tuple[str, ...]] = None
    environment: Tuple[str, ...] = ()
    directories: Tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Any) -> "Requirements":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise MalformedInputError("'requirements' must be a mapping")
        return cls(
            commands=_string_list(data.get("commands"), "commands"),
            tools=None if data.get("tools") is None else _string_list(data["tools"], "tools"),
            environment=_string_list(data.get("environment"), "environment"),
            directories=_string_list(data.get("directories"), "directories"),
        )


def _string_list(value: Any, field: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise MalformedInputError(f"requirements.{field} must be a list")
    for item in value:
        if isinstance(item, (list, dict)) or item is None:
            raise MalformedInputError(f"requirements.{field} entries must be strings")
    return tuple(str(item) for item in value)


@dataclass(frozen=True)
class FlatBody:
    text: str

    def required_variables(self) -> Set[str]:
        return extract_variables(self.text)

    def render(self, variables: Dict[str, str]) -> str:
        return substitute_variables(self.text, variables)


@dataclass(frozen=True)
class Message:
    role: str
    content: str


@dataclass(frozen=True)
class StructuredMessages:
    messages: Tuple[Message, ...]

    def as_content(self):
        return [{"role": m.role, "content": m.content} for m in self.messages]

    def required_variables(self) -> Set[str]:
        return extract_variables(self.as_content())

    def render(self, variables: Dict[str, str]) -> str:
        """Substitute each message, then join their contents with a blank line."""
        rendered = substitute_variables(self.as_content(), variables)
        return "\n\n".join(message["content"] for message in rendered)


Body = Union[FlatBody, StructuredMessages]


@dataclass(frozen=True)
class ParsedPrompt:
    body: Body
    name: Optional[str] = None
    description: Optional[str] = None
    model: Optional[str] = None
    requirements: Optional[Requirements] = None

    def required_variables(self) -> Set[str]:
        return self.body.required_variables()

    def render(self, variables: Dict[str, str]) -> str:
        return self.body.render(variables)


def detect_format(path: str) -> DocumentFormat:
    """Pick the document format from the file extension."""
    lowered = path.lower()
    if lowered.endswith(STRUCTURED_SUFFIXES):
        return DocumentFormat.STRUCTURED_YAML
    if lowered.endswith(TEXT_SUFFIXES):
        return DocumentFormat.TEXT_WITH_FRONTMATTER
    raise UnsupportedFormatError(
        f"Unsupported prompt file format: {path} "
        f"(expected .prompt.yaml, .md or .txt)"
    )


def read_document(path: str) -> RawDocument:
    document_format = detect_format(path)
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise PromptIOError(f"Cannot read {path}: {e}") from e
    return RawDocument(format=document_format, data=data, path=path)


def _decode(document: RawDocument) -> str:
    try:
        return document.data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedInputError(f"{document.path or 'Prompt'} is not valid UTF-8: {e}") from e


def split_frontmatter(text: str) -> Tuple[Optional[str], str]:
    """Split ``text`` into (frontmatter block, body).

    The document must open with a line that is exactly the delimiter and a
    later line must be exactly the delimiter again. Otherwise the block is
    ``None`` and the body is the whole text, untouched.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != FRONTMATTER_DELIMITER:
        return None, text
    for index in range(1, len(lines)):
        if lines[index].rstrip("\r\n") == FRONTMATTER_DELIMITER:
            return "".join(lines[1:index]), "".join(lines[index + 1:])
    return None, text


def _optional_str(data: Mapping, key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, (list, dict)):
        raise MalformedInputError(f"'{key}' must be a string")
    return str(value)


def _metadata(data: Mapping) -> Dict[str, Any]:
    return {
        "name": _optional_str(data, "name"),
        "description": _optional_str(data, "description"),
        "model": _optional_str(data, "model"),
        "requirements": (
            Requirements.from_mapping(data["requirements"]) if "requirements" in data else None
        ),
    }


def _parse_frontmatter_block(block: str, path: str) -> Dict[str, Any]:
    """Parse a frontmatter block; any problem degrades to empty metadata."""
    try:
        data = yaml.safe_load(block)
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise MalformedInputError("frontmatter must be a mapping")
        return _metadata(data)
    except (yaml.YAMLError, ValueError, MalformedInputError) as e:
        print(f"Warning: Ignoring malformed frontmatter in {path or 'prompt'}: {e}", file=sys.stderr)
        return {}


def _parse_text(document: RawDocument) -> ParsedPrompt:
    text = _decode(document)
    block, body = split_frontmatter(text)
    if block is None:
        return ParsedPrompt(body=FlatBody(text))
    return ParsedPrompt(body=FlatBody(body), **_parse_frontmatter_block(block, document.path))


def _parse_message(entry: Any, index: int) -> Message:
    if not isinstance(entry, Mapping):
        raise MalformedInputError(f"messages[{index}] must be a mapping with role and content")
    missing = [key for key in ("role", "content") if key not in entry]
    if missing:
        raise MalformedInputError(f"messages[{index}] is missing: {', '.join(missing)}")
    if not isinstance(entry["content"], str):
        raise MalformedInputError(f"messages[{index}].content must be a string")
    return Message(role=str(entry["role"]), content=entry["content"])


def _parse_structured(document: RawDocument) -> ParsedPrompt:
    text = _decode(document)
    try:
        data = yaml.safe_load(text)
    except (yaml.YAMLError, ValueError) as e:
        raise MalformedInputError(f"Invalid YAML in {document.path or 'prompt'}: {e}") from e
    if not isinstance(data, Mapping):
        raise MalformedInputError(f"{document.path or 'Prompt'} must contain a YAML mapping")
    messages = data.get("messages")
    if not isinstance(messages, list) or not messages:
        raise MalformedInputError(f"{document.path or 'Prompt'} must declare a non-empty 'messages' list")
    body = StructuredMessages(tuple(_parse_message(entry, i) for i, entry in enumerate(messages)))
    return ParsedPrompt(body=body, **_metadata(data))


def parse_document(document: RawDocument) -> ParsedPrompt:
    """Parse a raw document into the normalized ParsedPrompt."""
    if document.format is DocumentFormat.STRUCTURED_YAML:
        return _parse_structured(document)
    return _parse_text(document)
