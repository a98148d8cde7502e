"""Recursive-descent parser for the strict markup grammar.

Grammar, informally::

    node      := tag | text
    tag       := header children
    header    := '<' name ' '* attribute* '>'
    attribute := key ' '* '=' ' '* '"' value '"' ' '*
    children  := (tag | text)* ('</' name ' '* '>' | end of input)
    text      := any bytes up to the next '<'

Parsing is driven by one or two bytes of lookahead and never backtracks. The
first error aborts the parse; there is no partial result.
"""

import logging
from typing import Dict, List, Optional, Tuple, Union

from strict_markup_parser.shared import ParserConfig, get_logger
from strict_markup_parser.tree import Node, Tag, TagNode, Text

from .cursor import SPACE, Cursor, byte_set
from .errors import (
    EmptyTagName,
    InputTooLarge,
    MalformedAttribute,
    MaxDepthExceeded,
    MismatchedClosingTag,
    StrayClosingTag,
    UnexpectedEOF,
)

SourceType = Union[str, bytes, bytearray, memoryview]

LT = ord("<")
GT = ord(">")
SLASH = ord("/")
EQUALS = ord("=")
QUOTE = ord('"')

TEXT_STOP = byte_set(b"<")
NAME_STOP = byte_set(b" >")
KEY_STOP = byte_set(b"= >")
VALUE_STOP = byte_set(b'"')
CLOSING_PREFIX = b"</"


def to_bytes(source: SourceType) -> bytes:
    """Normalize parser input to bytes; strings are encoded as UTF-8."""
    if isinstance(source, str):
        return source.encode("utf-8")
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    raise TypeError(
        f"Expected str, bytes, bytearray or memoryview, got {type(source).__name__}"
    )


class Parser:
    """Build a document tree from markup.

    A parser holds the cursor of its current parse call, so one instance must
    not be used by several threads at once. Create one parser per thread; each
    call to :meth:`parse` or :meth:`parse_fragment` starts from a fresh cursor.

    Examples:
        >>> Parser().parse("<a></a>")
        Tag(node=TagNode(name='a', attributes=mappingproxy({}), children=()))
        >>> Parser().parse("plain text")
        Text(content='plain text')
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, "parser")
        self._cursor = Cursor(b"")
        self.nodes_created = 0
        self.max_depth_reached = 0

    @property
    def position(self) -> int:
        """Offset where the last parse stopped reading."""
        return self._cursor.position

    @property
    def input_length(self) -> int:
        """Length in bytes of the last parsed input."""
        return len(self._cursor)

    def parse(self, source: SourceType) -> Node:
        """Parse the first node of ``source``.

        A leading ``<`` starts a tag, which extends through its closing tag;
        anything else is a text node running up to the next ``<``. Input after
        the first node is left unread; see :attr:`position`.

        Raises:
            ParseError: On the first grammar violation
        """
        cursor = self._start(source)
        node = self._parse_node(cursor)
        if self._logger.is_enabled_for(logging.DEBUG):
            self._logger.debug(
                "Parsed first node",
                extra={
                    "consumed_bytes": cursor.position,
                    "input_length": len(cursor),
                    "nodes_created": self.nodes_created,
                }
            )
        return node

    def parse_fragment(self, source: SourceType) -> List[Node]:
        """Parse every top-level node of ``source`` in order.

        No wrapping root is synthesized; empty input yields an empty list.

        Raises:
            ParseError: On the first grammar violation
        """
        cursor = self._start(source)
        nodes: List[Node] = []
        while not cursor.at_end:
            node = self._parse_node(cursor)
            if self._keep_text(node):
                nodes.append(node)
        self._logger.debug(
            "Parsed fragment",
            extra={"top_level_nodes": len(nodes), "nodes_created": self.nodes_created}
        )
        return nodes

    def _start(self, source: SourceType) -> Cursor:
        # Cleared before conversion so a rejected input type reports zero
        # position and length instead of the previous call's values
        self._cursor = Cursor(b"")
        self.nodes_created = 0
        self.max_depth_reached = 0

        buffer = to_bytes(source)
        self._cursor = Cursor(buffer)
        limit = self.config.limits.max_input_size_bytes
        if limit is not None and len(self._cursor) > limit:
            raise InputTooLarge(len(self._cursor), limit)
        return self._cursor

    def _parse_node(self, cursor: Cursor) -> Node:
        if cursor.peek() != LT:
            return self._make_text(cursor.match_until(TEXT_STOP))

        if cursor.starts_with(CLOSING_PREFIX):
            start = cursor.position
            cursor.position += len(CLOSING_PREFIX)
            raise StrayClosingTag(cursor.match_until(NAME_STOP), start)

        name, attributes = self._open_element(cursor, 1)
        children = self._collect_children(cursor, name, 1)
        return self._make_tag(name, attributes, children)

    def _open_element(self, cursor: Cursor, depth: int) -> Tuple[str, Dict[str, str]]:
        if depth > self.config.limits.max_depth:
            raise MaxDepthExceeded(depth, cursor.position)
        if depth > self.max_depth_reached:
            self.max_depth_reached = depth
        return self._parse_tag_header(cursor)

    def _parse_tag_header(self, cursor: Cursor) -> Tuple[str, Dict[str, str]]:
        start = cursor.position
        cursor.consume(LT)
        name = cursor.match_until(NAME_STOP)
        if cursor.at_end:
            raise UnexpectedEOF(cursor.position)
        if not name:
            raise EmptyTagName(start)
        cursor.consume_zero_plus(SPACE)

        attributes: Dict[str, str] = {}
        while True:
            current = cursor.peek()
            if current is None:
                raise UnexpectedEOF(cursor.position)
            if current == GT:
                break
            key, value = self._parse_attribute(cursor)
            attributes[key] = value

        cursor.consume(GT)
        return name, attributes

    def _parse_attribute(self, cursor: Cursor) -> Tuple[str, str]:
        key_start = cursor.position
        key = cursor.match_until(KEY_STOP)
        if not key:
            raise MalformedAttribute(key_start, "missing attribute name")

        cursor.consume_zero_plus(SPACE)
        self._expect_delimiter(cursor, EQUALS, f"expected '=' after {key!r}")
        cursor.consume_zero_plus(SPACE)
        self._expect_delimiter(cursor, QUOTE, f"expected '\"' to open value of {key!r}")

        value_start = cursor.position
        value = cursor.match_until(VALUE_STOP)
        if cursor.at_end:
            raise MalformedAttribute(value_start, f"unterminated value of {key!r}")
        cursor.consume(QUOTE)
        cursor.consume_zero_plus(SPACE)
        return key, value

    @staticmethod
    def _expect_delimiter(cursor: Cursor, expected: int, reason: str) -> None:
        found = cursor.peek()
        if found is None:
            raise UnexpectedEOF(cursor.position)
        if found != expected:
            raise MalformedAttribute(cursor.position, reason)
        cursor.position += 1

    def _collect_children(self, cursor: Cursor, name: str, depth: int) -> List[Node]:
        children: List[Node] = []
        while not cursor.at_end:
            if cursor.starts_with(CLOSING_PREFIX):
                self._parse_closing_tag(cursor, name)
                return children

            if cursor.peek() == LT:
                child_name, attributes = self._open_element(cursor, depth + 1)
                grandchildren = self._collect_children(cursor, child_name, depth + 1)
                children.append(self._make_tag(child_name, attributes, grandchildren))
            else:
                text = self._make_text(cursor.match_until(TEXT_STOP))
                if self._keep_text(text):
                    children.append(text)

        if self.config.grammar.require_closing_tags:
            raise UnexpectedEOF(cursor.position)
        return children

    def _parse_closing_tag(self, cursor: Cursor, opened: str) -> None:
        start = cursor.position
        cursor.position += len(CLOSING_PREFIX)
        closed = cursor.match_until(NAME_STOP)
        cursor.consume_zero_plus(SPACE)
        cursor.consume(GT)

        if closed != opened:
            if self.config.grammar.check_closing_tags:
                raise MismatchedClosingTag(opened, closed, start)
            self._logger.debug(
                "Accepted mismatched closing tag",
                extra={"opened": opened, "closed": closed, "position": start}
            )

    def _keep_text(self, node: Node) -> bool:
        return not (
            self.config.grammar.drop_whitespace_text
            and isinstance(node, Text)
            and node.is_whitespace
        )

    def _make_text(self, content: str) -> Text:
        self.nodes_created += 1
        return Text(content)

    def _make_tag(self, name: str, attributes: Dict[str, str], children: List[Node]) -> Tag:
        self.nodes_created += 1
        return Tag(TagNode(name, attributes, tuple(children)))
