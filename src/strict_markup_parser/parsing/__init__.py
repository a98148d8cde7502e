"""Recursive-descent parsing engine.

Key Components:
    Cursor: Bounds-checked byte cursor with scan and consume primitives
    Parser: Tag-header and children-collection routines building the tree
    ParseError: Base of the typed error taxonomy
"""

from .cursor import Cursor
from .errors import (
    EmptyTagName,
    InputTooLarge,
    InvalidEncoding,
    MalformedAttribute,
    MaxDepthExceeded,
    MismatchedClosingTag,
    ParseError,
    StrayClosingTag,
    UnexpectedEOF,
    UnexpectedToken,
)
from .parser import Parser, SourceType, to_bytes

__all__ = [
    "Cursor",
    "Parser",
    "SourceType",
    "to_bytes",
    "ParseError",
    "EmptyTagName",
    "InputTooLarge",
    "InvalidEncoding",
    "MalformedAttribute",
    "MaxDepthExceeded",
    "MismatchedClosingTag",
    "StrayClosingTag",
    "UnexpectedEOF",
    "UnexpectedToken",
]
