import io
from typing import Optional, TextIO

from fli.data_structures import Position

# Returned by `current` once the source is exhausted. Membership tests against it must use
# sets or dicts, never `in "<chars>"`, because the empty string is a substring of every string.
EOF = ""


class Scanner:
    """
    Reads the source one character at a time, front to back, and tracks the position of the
    character under the cursor. "\\r\\n" is read as a single "\\n".
    """

    def __init__(self, source: TextIO):
        self._source = source
        self._pending: Optional[str] = None
        self._current: Optional[str] = None
        self.line = 1
        self.column = 0
        self.next()

    @classmethod
    def from_string(cls, text: str) -> "Scanner":
        return cls(io.StringIO(text))

    def current(self) -> str:
        return self._current

    def position(self) -> Position:
        return Position(self.line, self.column)

    def next(self) -> str:
        """Advances one character. Past the end of the source this keeps returning EOF."""
        if self._current == "\n":
            self.line += 1
            self.column = 0

        if self._current == EOF:
            return EOF

        char = self._read()
        if char == "\r":
            following = self._read()
            if following == "\n":
                char = following
            else:
                self._pending = following

        self.column += 1
        self._current = char
        return char

    def _read(self) -> str:
        if self._pending is not None:
            char, self._pending = self._pending, None
            return char
        return self._source.read(1)
