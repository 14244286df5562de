"""Variable interpolation: ``{{name}}`` tokens over nested prompt content.

Content is first lifted into a small node tree so that extraction and
substitution walk the same, exhaustively handled shape regardless of whether
it came from a flat text body or from structured messages.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Set, Tuple, Union

VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")


@dataclass(frozen=True)
class StringNode:
    value: str


@dataclass(frozen=True)
class SequenceNode:
    items: Tuple["Node", ...]
    is_tuple: bool = False


@dataclass(frozen=True)
class MappingNode:
    entries: Tuple[Tuple[Any, "Node"], ...]


@dataclass(frozen=True)
class OpaqueNode:
    """Any non-string leaf (numbers, booleans, None); passed through untouched."""
    value: Any


Node = Union[StringNode, SequenceNode, MappingNode, OpaqueNode]


def to_node(content: Any) -> Node:
    """Lift plain Python content into a node tree."""
    if isinstance(content, str):
        return StringNode(content)
    if isinstance(content, (list, tuple)):
        return SequenceNode(tuple(to_node(item) for item in content), isinstance(content, tuple))
    if isinstance(content, Mapping):
        return MappingNode(tuple((key, to_node(value)) for key, value in content.items()))
    return OpaqueNode(content)


def from_node(node: Node) -> Any:
    """Lower a node tree back into plain Python content (lists and dicts)."""
    if isinstance(node, StringNode):
        return node.value
    if isinstance(node, SequenceNode):
        items = [from_node(item) for item in node.items]
        return tuple(items) if node.is_tuple else items
    if isinstance(node, MappingNode):
        return {key: from_node(value) for key, value in node.entries}
    return node.value


def _names_in_node(node: Node) -> Set[str]:
    if isinstance(node, StringNode):
        return set(VARIABLE_PATTERN.findall(node.value))
    if isinstance(node, SequenceNode):
        children = node.items
    elif isinstance(node, MappingNode):
        children = tuple(value for _, value in node.entries)
    else:
        return set()
    names: Set[str] = set()
    for child in children:
        names |= _names_in_node(child)
    return names


def substitute_string(text: str, variables: Mapping[str, str]) -> str:
    """Replace bound ``{{name}}`` tokens in a string; unbound tokens stay literal."""
    def _replace(match):
        name = match.group(1)
        if name in variables:
            return variables[name]
        return match.group(0)

    return VARIABLE_PATTERN.sub(_replace, text)


def substitute_node(node: Node, variables: Mapping[str, str]) -> Node:
    if isinstance(node, StringNode):
        return StringNode(substitute_string(node.value, variables))
    if isinstance(node, SequenceNode):
        return SequenceNode(
            tuple(substitute_node(item, variables) for item in node.items), node.is_tuple
        )
    if isinstance(node, MappingNode):
        return MappingNode(tuple(
            (key, substitute_node(value, variables)) for key, value in node.entries
        ))
    return node


def extract_variables(content: Any) -> Set[str]:
    """Return the distinct variable names referenced anywhere in ``content``."""
    return _names_in_node(to_node(content))


def substitute_variables(content: Any, variables: Dict[str, str]) -> Any:
    """Substitute variables throughout ``content``, preserving its shape.

    Strings have their bound tokens replaced, sequences and mappings are
    walked recursively, and any other value is returned unchanged. Tokens
    whose name is not in ``variables`` are left as literal text.
    """
    return from_node(substitute_node(to_node(content), variables))
