"""Typed parse errors.

Every way a parse can fail is a :class:`ParseError` subclass carrying the
structured fields needed to report it. Parsing stops at the first error and no
partial tree is produced.
"""

from typing import Any, Dict, Optional


def describe_byte(value: Optional[int]) -> str:
    """Printable form of a single input byte, ``EOF`` for ``None``."""
    if value is None:
        return "EOF"
    if 0x20 <= value < 0x7F:
        return repr(chr(value))
    return f"0x{value:02x}"


class ParseError(Exception):
    """Base class for all markup parse errors."""

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.position = position

    @property
    def kind(self) -> str:
        """Name of the concrete error type."""
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        """Structured form of the error for diagnostics."""
        return {"kind": self.kind, "message": self.message, "position": self.position}

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.to_dict() == other.to_dict()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((self.kind, self.message, self.position))


class UnexpectedToken(ParseError):
    """A delimiter byte other than the one the grammar requires was found."""

    def __init__(self, expected: int, found: int, position: int) -> None:
        super().__init__(
            f"Expected {describe_byte(expected)} but found {describe_byte(found)} "
            f"at position {position}",
            position,
        )
        self.expected = expected
        self.found = found

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(expected=chr(self.expected), found=chr(self.found))
        return data


class UnexpectedEOF(ParseError):
    """The input ended where the grammar requires more bytes."""

    def __init__(self, position: int) -> None:
        super().__init__(f"Unexpected end of input at position {position}", position)


class MalformedAttribute(ParseError):
    """An attribute is missing its ``=`` or a quote, or has no name."""

    def __init__(self, position: int, reason: str = "malformed attribute") -> None:
        super().__init__(f"Malformed attribute at position {position}: {reason}", position)
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason
        return data


class MismatchedClosingTag(ParseError):
    """A closing tag names a different element than the one it closes."""

    def __init__(self, opened: str, closed: str, position: Optional[int] = None) -> None:
        super().__init__(
            f"Closing tag </{closed}> does not match opening tag <{opened}>", position
        )
        self.opened = opened
        self.closed = closed

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(opened=self.opened, closed=self.closed)
        return data


class EmptyTagName(ParseError):
    """A tag header has no name, as in ``<>`` or ``< a>``."""

    def __init__(self, position: int) -> None:
        super().__init__(f"Empty tag name at position {position}", position)


class StrayClosingTag(ParseError):
    """A closing tag appears where no element is open."""

    def __init__(self, name: str, position: int) -> None:
        super().__init__(
            f"Closing tag </{name}> at position {position} has no open element",
            position,
        )
        self.name = name

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["name"] = self.name
        return data


class MaxDepthExceeded(ParseError):
    """Elements are nested deeper than the configured limit."""

    def __init__(self, depth: int, position: int) -> None:
        super().__init__(
            f"Nesting depth {depth} exceeds the limit at position {position}", position
        )
        self.depth = depth

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["depth"] = self.depth
        return data


class InvalidEncoding(ParseError):
    """Text or a name contains bytes that are not valid UTF-8."""

    def __init__(self, position: int) -> None:
        super().__init__(f"Invalid UTF-8 sequence at position {position}", position)


class InputTooLarge(ParseError):
    """The input exceeds the configured maximum size."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Input of {size} bytes exceeds the limit of {limit} bytes", 0)
        self.size = size
        self.limit = limit

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(size=self.size, limit=self.limit)
        return data
