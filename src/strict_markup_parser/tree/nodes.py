"""Document tree node model.

A parsed document is a tree of :data:`Node` values. ``Node`` is a closed union
of exactly two forms:

- :class:`Text`: a run of character content
- :class:`Tag`: an element, wrapping a :class:`TagNode` with a name,
  an attribute mapping and ordered children

Nodes are frozen dataclasses. Each tag owns a read-only copy of its attributes
and stores its children as a tuple, so a tree never shares structure with the
caller that built it and has no parent back-references.

Traversal, equality and hashing walk the tree with explicit stacks, so their
cost in interpreter frames does not grow with nesting depth.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class Text:
    """Character content between tags."""

    content: str = ""

    def __post_init__(self) -> None:
        """Validate text content."""
        if not isinstance(self.content, str):
            raise TypeError("Text content must be a string")

    @property
    def is_whitespace(self) -> bool:
        """Check if the content is empty or only ASCII whitespace."""
        return not self.content.strip(" \t\r\n\f")


@dataclass(frozen=True, eq=False)
class TagNode:
    """Named element with attributes and ordered children."""

    name: str
    attributes: Mapping[str, str] = field(default_factory=dict)
    children: Tuple["Node", ...] = ()

    def __post_init__(self) -> None:
        """Validate the element and take ownership of its attributes and children."""
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("Tag name cannot be empty")

        attributes = dict(self.attributes)
        for key, value in attributes.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise TypeError("Attribute names and values must be strings")
        object.__setattr__(
            self, "attributes", MappingProxyType(dict(sorted(attributes.items())))
        )

        children = tuple(self.children)
        for child in children:
            if not isinstance(child, (Text, Tag)):
                raise TypeError(
                    f"Children must be Text or Tag nodes, got {type(child).__name__}"
                )
        object.__setattr__(self, "children", children)

        # Children are built first, so their hashes are already cached
        object.__setattr__(
            self,
            "_hash",
            hash((self.name, tuple(self.attributes.items()), children)),
        )

    def __hash__(self) -> int:
        return self._hash  # type: ignore[attr-defined]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TagNode):
            return NotImplemented

        pending = [(self, other)]
        while pending:
            left, right = pending.pop()
            if left is right:
                continue
            if (
                hash(left) != hash(right)
                or left.name != right.name
                or left.attributes != right.attributes
                or len(left.children) != len(right.children)
            ):
                return False
            for left_child, right_child in zip(left.children, right.children):
                if isinstance(left_child, Tag) and isinstance(right_child, Tag):
                    pending.append((left_child.node, right_child.node))
                elif left_child != right_child:
                    return False
        return True

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get attribute value with optional default."""
        return self.attributes.get(name, default)

    def has_attribute(self, name: str) -> bool:
        """Check if element has specific attribute."""
        return name in self.attributes

    @property
    def tags(self) -> List["Tag"]:
        """Direct children that are tags."""
        return [child for child in self.children if isinstance(child, Tag)]

    def iter_descendants(self) -> Iterator["Node"]:
        """Yield all descendant nodes depth-first in document order."""
        stack = [iter(self.children)]
        while stack:
            for child in stack[-1]:
                yield child
                if isinstance(child, Tag):
                    stack.append(iter(child.node.children))
                    break
            else:
                stack.pop()

    def iter_tags(self) -> Iterator["Tag"]:
        """Yield all descendant tags depth-first in document order."""
        return (node for node in self.iter_descendants() if isinstance(node, Tag))

    def find(self, name: str) -> Optional["Tag"]:
        """Find first descendant tag with matching name."""
        for tag in self.iter_tags():
            if tag.node.name == name:
                return tag
        return None

    def find_all(self, name: str) -> List["Tag"]:
        """Find all descendant tags with matching name."""
        return [tag for tag in self.iter_tags() if tag.node.name == name]

    def find_by_attribute(self, name: str, value: Optional[str] = None) -> List["Tag"]:
        """Find descendant tags carrying an attribute, optionally with a value."""
        return [
            tag for tag in self.iter_tags()
            if name in tag.node.attributes
            and (value is None or tag.node.attributes[name] == value)
        ]

    @property
    def text_content(self) -> str:
        """Concatenate all descendant text in document order."""
        return "".join(
            node.content for node in self.iter_descendants() if isinstance(node, Text)
        )

    @property
    def element_count(self) -> int:
        """Number of tags in this subtree, including this one."""
        return 1 + sum(1 for _ in self.iter_tags())

    @property
    def depth(self) -> int:
        """Height of this subtree; a tag without tag children has depth 1."""
        deepest = 0
        pending = [(self, 1)]
        while pending:
            tag, level = pending.pop()
            deepest = max(deepest, level)
            pending.extend((child.node, level + 1) for child in tag.tags)
        return deepest


@dataclass(frozen=True)
class Tag:
    """Element node."""

    node: TagNode

    def __post_init__(self) -> None:
        """Validate wrapped element."""
        if not isinstance(self.node, TagNode):
            raise TypeError("Tag must wrap a TagNode")

    @classmethod
    def create(
        cls,
        name: str,
        attributes: Optional[Mapping[str, str]] = None,
        children: Iterable["Node"] = (),
    ) -> "Tag":
        """Build a tag node without spelling out the TagNode wrapper."""
        return cls(TagNode(name, dict(attributes or {}), tuple(children)))

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def attributes(self) -> Mapping[str, str]:
        return self.node.attributes

    @property
    def children(self) -> Tuple["Node", ...]:
        return self.node.children


Node = Union[Text, Tag]


def iter_nodes(node: Node) -> Iterator[Node]:
    """Yield ``node`` and all of its descendants depth-first in document order."""
    if not isinstance(node, (Text, Tag)):
        raise TypeError(f"Expected a Text or Tag node, got {type(node).__name__}")
    yield node
    if isinstance(node, Tag):
        yield from node.node.iter_descendants()


def count_nodes(node: Node) -> int:
    """Count ``node`` and all of its descendants."""
    return sum(1 for _ in iter_nodes(node))
