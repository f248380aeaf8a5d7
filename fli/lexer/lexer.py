from typing import List, Optional

from fli.config import LexerLimits
from fli.data_structures import Position
from fli.exceptions import ErrorCode, LexerError

from .scanner import EOF, Scanner
from .tokens import (
    BOOL_CONSTANTS,
    DOUBLE_OPERATOR_STARTS,
    DOUBLE_OPERATORS,
    KEYWORDS,
    SINGLE_OPERATORS,
    STRING_ESCAPES,
    Token,
    TokenType,
)

DIGITS = frozenset("0123456789")


class Lexer:
    """
    Turns the characters of a Scanner into tokens, one token per call to `next_token`.

    Whitespace other than newlines is skipped. Newlines, comments and the end of input are
    themselves tokens (EOL, COMMENT, ETX); filtering them is left to the consumer.
    Recognizers are tried in a fixed order and the first match wins:
    comment, string, operator, number, identifier or keyword.
    """

    def __init__(self, scanner: Scanner, limits: Optional[LexerLimits] = None):
        self.scanner = scanner
        self.limits = limits or LexerLimits()

    @classmethod
    def from_string(cls, text: str, limits: Optional[LexerLimits] = None) -> "Lexer":
        return cls(Scanner.from_string(text), limits)

    def next_token(self) -> Token:
        self._skip_whitespace()
        start = self.scanner.position()
        char = self.scanner.current()

        if char == EOF:
            return Token(TokenType.ETX, start)

        if char == "\n":
            self.scanner.next()
            return Token(TokenType.EOL, start)

        for recognizer in (self._comment, self._string, self._operator, self._number, self._identifier):
            token = recognizer(start)
            if token is not None:
                return token

        raise LexerError(ErrorCode.NONE_TOKEN_MATCH, start, char=char)

    def tokenize(self) -> List[Token]:
        """Collects every token up to and including ETX."""
        tokens = []
        while True:
            token = self.next_token()
            tokens.append(token)
            if token.type == TokenType.ETX:
                return tokens

    def _skip_whitespace(self):
        char = self.scanner.current()
        while char != EOF and char != "\n" and char.isspace():
            char = self.scanner.next()

    # --- Recognizers ---
    # Each one returns None without consuming anything when the current character
    # cannot start its kind of token.

    def _comment(self, start: Position) -> Optional[Token]:
        if self.scanner.current() != "#":
            return None

        chars = []
        char = self.scanner.next()
        while char != EOF and char != "\n":
            chars.append(char)
            char = self.scanner.next()
        return Token(TokenType.COMMENT, start, "".join(chars))

    def _string(self, start: Position) -> Optional[Token]:
        if self.scanner.current() != '"':
            return None

        chars = []
        char = self.scanner.next()
        while char != '"':
            if char == EOF:
                raise LexerError(ErrorCode.STRING_NOT_CLOSED, self.scanner.position())

            if char == "\\":
                escape_position = self.scanner.position()
                char = self.scanner.next()
                if char == EOF:
                    raise LexerError(ErrorCode.STRING_NOT_CLOSED, self.scanner.position())
                if char not in STRING_ESCAPES:
                    raise LexerError(ErrorCode.INVALID_ESCAPING, escape_position, char=char)
                char = STRING_ESCAPES[char]

            if len(chars) >= self.limits.string_limit:
                raise LexerError(ErrorCode.STRING_CAPACITY_EXCEEDED, start, limit=self.limits.string_limit)
            chars.append(char)
            char = self.scanner.next()

        self.scanner.next()
        return Token(TokenType.CONST_STRING, start, "".join(chars))

    def _operator(self, start: Position) -> Optional[Token]:
        first = self.scanner.current()

        if first in DOUBLE_OPERATOR_STARTS:
            second = self.scanner.next()
            token_type = DOUBLE_OPERATORS.get(first + second)
            if token_type is not None:
                self.scanner.next()
                return Token(token_type, start)
            # The first character is already consumed: it must stand alone.
            if first not in SINGLE_OPERATORS:
                raise LexerError(ErrorCode.NONE_TOKEN_MATCH, start, char=first)
            return Token(SINGLE_OPERATORS[first], start)

        token_type = SINGLE_OPERATORS.get(first)
        if token_type is None:
            return None
        self.scanner.next()
        return Token(token_type, start)

    def _number(self, start: Position) -> Optional[Token]:
        if self.scanner.current() not in DIGITS:
            return None

        limit = self.limits.int_limit
        value = self._accumulate_digits(limit, start, ErrorCode.INT_CAPACITY_EXCEEDED)[0]

        if self.scanner.current() != ".":
            return Token(TokenType.CONST_INT, start, value)
        self.scanner.next()

        fraction, decimals = self._accumulate_digits(limit, start, ErrorCode.FLOAT_CAPACITY_EXCEEDED)
        if decimals == 0:
            return Token(TokenType.CONST_FLOAT, start, float(value))
        return Token(TokenType.CONST_FLOAT, start, float(f"{value}.{fraction:0{decimals}d}"))

    def _accumulate_digits(self, limit: int, start: Position, code: ErrorCode):
        """Reads a run of digits, refusing any step that would take the value past `limit`."""
        value = 0
        count = 0
        char = self.scanner.current()
        while char in DIGITS:
            digit = ord(char) - ord("0")
            if value > (limit - digit) // 10:
                raise LexerError(code, start)
            value = value * 10 + digit
            count += 1
            char = self.scanner.next()
        return value, count

    def _identifier(self, start: Position) -> Optional[Token]:
        char = self.scanner.current()
        if not char.isalpha():
            return None

        chars = []
        while char.isalpha() or char in DIGITS or char == "_":
            if len(chars) >= self.limits.identifier_limit:
                raise LexerError(ErrorCode.IDENTIFIER_CAPACITY_EXCEEDED, start, limit=self.limits.identifier_limit)
            chars.append(char)
            char = self.scanner.next()

        text = "".join(chars)
        if text in KEYWORDS:
            return Token(KEYWORDS[text], start)
        if text in BOOL_CONSTANTS:
            return Token(TokenType.CONST_BOOL, start, BOOL_CONSTANTS[text])
        return Token(TokenType.IDENTIFIER, start, text)
