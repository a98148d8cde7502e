"""Byte cursor over an in-memory input buffer.

The cursor is the only place that indexes the buffer. Every primitive checks
bounds before reading, so scanning past the end of the input surfaces as a
typed error instead of an ``IndexError``.
"""

from typing import Iterable, Optional, Union

from .errors import InvalidEncoding, UnexpectedEOF, UnexpectedToken

ByteSet = Union[bytes, Iterable[int]]

SPACE = frozenset(b" ")


def byte_set(chars: ByteSet) -> frozenset:
    """Normalize ``b"<>"`` style or iterable-of-int byte sets to a frozenset."""
    return frozenset(chars)


class Cursor:
    """Read position over a byte buffer, with primitive advance and match operations.

    Attributes:
        buffer: The complete input
        position: Offset of the next unread byte, ``0 <= position <= len(buffer)``
    """

    __slots__ = ("buffer", "position")

    def __init__(self, buffer: bytes, position: int = 0) -> None:
        if not 0 <= position <= len(buffer):
            raise ValueError("Cursor position out of range")
        self.buffer = bytes(buffer)
        self.position = position

    def __len__(self) -> int:
        return len(self.buffer)

    def __repr__(self) -> str:
        return f"Cursor(position={self.position}, length={len(self.buffer)})"

    @property
    def at_end(self) -> bool:
        return self.position >= len(self.buffer)

    @property
    def remaining(self) -> int:
        return len(self.buffer) - self.position

    def peek(self, offset: int = 0) -> Optional[int]:
        """Return the byte ``offset`` places ahead, or ``None`` past the end."""
        index = self.position + offset
        if 0 <= index < len(self.buffer):
            return self.buffer[index]
        return None

    def starts_with(self, prefix: bytes) -> bool:
        """Check whether the unread input begins with ``prefix``."""
        return self.buffer.startswith(prefix, self.position)

    def consume_zero_plus(self, chars: ByteSet) -> int:
        """Advance past any run of bytes in ``chars``.

        Returns:
            Number of bytes skipped, possibly zero
        """
        charset = byte_set(chars)
        start = self.position
        end = len(self.buffer)
        while self.position < end and self.buffer[self.position] in charset:
            self.position += 1
        return self.position - start

    def match_until(self, stop: ByteSet) -> str:
        """Read up to, not including, the next byte in ``stop``.

        Reads to the end of the buffer when no stop byte follows. An empty
        match is not an error.

        Raises:
            InvalidEncoding: If the matched bytes are not valid UTF-8
        """
        stopset = byte_set(stop)
        start = self.position
        end = len(self.buffer)
        while self.position < end and self.buffer[self.position] not in stopset:
            self.position += 1
        try:
            return self.buffer[start:self.position].decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidEncoding(start + e.start) from e

    def consume(self, expected: int) -> None:
        """Advance over ``expected``, which must be the current byte.

        Raises:
            UnexpectedEOF: If the cursor is at the end of the buffer
            UnexpectedToken: If the current byte is something else
        """
        found = self.peek()
        if found is None:
            raise UnexpectedEOF(self.position)
        if found != expected:
            raise UnexpectedToken(expected, found, self.position)
        self.position += 1

    def consume_optional(self, expected: int) -> bool:
        """Advance over ``expected`` if it is the current byte.

        Returns:
            Whether a byte was consumed
        """
        if self.peek() == expected:
            self.position += 1
            return True
        return False
