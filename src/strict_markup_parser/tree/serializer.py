"""Deterministic representations of a document tree.

Three forms are provided:

- :func:`debug_repr`: a stable, human-readable one-line representation with
  attributes in sorted-key order, suitable for exact-match assertions
- :func:`to_markup`: canonical markup that parses back to an equal tree
- :func:`to_dict` / :func:`to_json` and :func:`from_dict`: plain data

:func:`debug_repr`, :func:`to_markup`, :func:`to_dict` and :func:`from_dict` walk
the tree with an explicit stack, so their frame usage does not grow with
nesting depth. :func:`to_json` is bounded by the :mod:`json` encoder, which
recurses once per container.
"""

import json
from typing import Any, Callable, Dict, List, Tuple, Union

from .nodes import Node, Tag, TagNode, Text

# Exactly the bytes that end a name or key when parsing
_NAME_STOP_CHARS = frozenset(" >")
_KEY_STOP_CHARS = frozenset("= >")


class SerializationError(ValueError):
    """Raised when a tree cannot be written as markup that parses back unchanged."""


def _unexpected(node: Any) -> TypeError:
    return TypeError(f"Expected a Text or Tag node, got {type(node).__name__}")


def _render(
    node: Node,
    text: Callable[[Text], str],
    open_tag: Callable[[TagNode], str],
    close_tag: Callable[[TagNode], str],
    separator: str
) -> str:
    """Flatten ``node`` into a string, emitting literal strings between nodes."""
    parts: List[str] = []
    pending: List[Union[str, Node]] = [node]
    while pending:
        item = pending.pop()
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, Text):
            parts.append(text(item))
        elif isinstance(item, Tag):
            parts.append(open_tag(item.node))
            pending.append(close_tag(item.node))
            children = item.node.children
            for index in range(len(children) - 1, -1, -1):
                pending.append(children[index])
                if index and separator:
                    pending.append(separator)
        else:
            raise _unexpected(item)
    return "".join(parts)


def _debug_open(tag: TagNode) -> str:
    attributes = ", ".join(
        f"{key!r}: {value!r}" for key, value in sorted(tag.attributes.items())
    )
    return f"Tag(name={tag.name!r}, attributes={{{attributes}}}, children=["


def debug_repr(node: Node) -> str:
    """Render ``node`` as a deterministic one-line string.

    Examples:
        >>> debug_repr(Text("abcd"))
        "Text('abcd')"
        >>> debug_repr(Tag.create("a", {"id": "x", "class": "y"}))
        "Tag(name='a', attributes={'class': 'y', 'id': 'x'}, children=[])"
    """
    return _render(
        node,
        text=lambda item: f"Text({item.content!r})",
        open_tag=_debug_open,
        close_tag=lambda tag: "])",
        separator=", ",
    )


def _markup_text(text: Text) -> str:
    if "<" in text.content:
        raise SerializationError("Text content cannot contain '<'")
    return text.content


def _markup_open(tag: TagNode) -> str:
    if tag.name.startswith("/") or _NAME_STOP_CHARS.intersection(tag.name):
        raise SerializationError(f"Tag name cannot be serialized: {tag.name!r}")

    parts = [f"<{tag.name}"]
    for key, value in sorted(tag.attributes.items()):
        if not key or _KEY_STOP_CHARS.intersection(key):
            raise SerializationError(f"Attribute name cannot be serialized: {key!r}")
        if '"' in value:
            raise SerializationError(f"Attribute value of {key!r} cannot contain '\"'")
        parts.append(f' {key}="{value}"')
    parts.append(">")
    return "".join(parts)


def to_markup(node: Node) -> str:
    """Write ``node`` as canonical markup.

    Attributes are emitted in sorted-key order, separated by single spaces,
    and every tag gets an explicit closing tag.

    Raises:
        SerializationError: If a name, key, value or text run contains a
            delimiter that would change the tree when parsed again
    """
    return _render(
        node,
        text=_markup_text,
        open_tag=_markup_open,
        close_tag=lambda tag: f"</{tag.name}>",
        separator="",
    )


def to_dict(node: Node) -> Dict[str, Any]:
    """Convert ``node`` to nested dictionaries and lists."""
    root: Dict[str, Any] = {}
    pending: List[Tuple[Node, Dict[str, Any]]] = [(node, root)]
    while pending:
        item, target = pending.pop()
        if isinstance(item, Text):
            target.update(type="text", content=item.content)
        elif isinstance(item, Tag):
            children: List[Dict[str, Any]] = [{} for _ in item.node.children]
            target.update(
                type="tag",
                name=item.node.name,
                attributes=dict(item.node.attributes),
                children=children,
            )
            pending.extend(zip(item.node.children, children))
        else:
            raise _unexpected(item)
    return root


def to_json(node: Node, indent: int = 2) -> str:
    """Convert ``node`` to a JSON string with sorted keys."""
    return json.dumps(to_dict(node), indent=indent, sort_keys=True)


def from_dict(data: Dict[str, Any]) -> Node:
    """Rebuild a node from the output of :func:`to_dict`.

    Raises:
        ValueError: If ``data`` does not describe a text or tag node
    """
    built: List[Node] = []
    # Each entry is a dictionary and whether its children are already built
    pending: List[Tuple[Dict[str, Any], bool]] = [(data, False)]
    while pending:
        item, children_built = pending.pop()
        kind = item.get("type")
        if kind == "text":
            built.append(Text(item.get("content", "")))
        elif kind == "tag":
            children = item.get("children", [])
            if children_built:
                start = len(built) - len(children)
                tag = Tag.create(item["name"], item.get("attributes", {}), built[start:])
                del built[start:]
                built.append(tag)
            else:
                pending.append((item, True))
                pending.extend((child, False) for child in reversed(children))
        else:
            raise ValueError(f"Unknown node type: {kind!r}")
    return built[0]
