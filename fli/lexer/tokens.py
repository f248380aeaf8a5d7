"""
Token kinds, the token record produced by the lexer, and the fixed keyword and operator tables.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from fli.data_structures import Position, ValueType


class TokenType(Enum):
    IDENTIFIER = "identifier"
    # --- Constants ---
    CONST_INT = "int constant"
    CONST_FLOAT = "float constant"
    CONST_STRING = "string constant"
    CONST_BOOL = "bool constant"
    # --- Type annotations ---
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "string"
    # --- Arithmetic operators ---
    PLUS = "+"
    MINUS = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    # --- Relational operators ---
    EQUALS = "=="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    LESS_THAN = "<"
    GREATER_OR_EQUAL = ">="
    LESS_OR_EQUAL = "<="
    # --- Logic operators ---
    AND = "and"
    OR = "or"
    NEGATE = "!"
    # --- Keywords ---
    IF = "if"
    ELSE = "else"
    WHILE = "while"
    SWITCH = "switch"
    DEFAULT = "default"
    AS = "as"
    RETURN = "return"
    # --- Punctuation ---
    DECLARE = ":="
    ASSIGN = "="
    CASE_ARROW = "=>"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    LEFT_PARENTHESIS = "("
    RIGHT_PARENTHESIS = ")"
    COMMA = ","
    # --- Structure ---
    COMMENT = "comment"
    EOL = "end of line"
    ETX = "end of input"


TokenValue = Union[bool, int, float, str]


@dataclass(frozen=True)
class Token:
    type: TokenType
    position: Position
    value: Optional[TokenValue] = None

    def describe(self) -> str:
        """Human readable form used in syntax error messages."""
        if self.type in (TokenType.IDENTIFIER, TokenType.CONST_INT, TokenType.CONST_FLOAT, TokenType.CONST_BOOL):
            return f"{self.type.value} '{self.value}'"
        if self.type == TokenType.CONST_STRING:
            return f'{self.type.value} "{self.value}"'
        if self.type in (TokenType.EOL, TokenType.ETX, TokenType.COMMENT):
            return self.type.value
        return f"'{self.type.value}'"


KEYWORDS = {
    "int": TokenType.INT,
    "float": TokenType.FLOAT,
    "bool": TokenType.BOOL,
    "string": TokenType.STRING,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "switch": TokenType.SWITCH,
    "default": TokenType.DEFAULT,
    "return": TokenType.RETURN,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "as": TokenType.AS,
}

# Keywords that lex to a constant rather than to a payload-free keyword token.
BOOL_CONSTANTS = {"true": True, "false": False}

# Characters that can start a two-character operator.
DOUBLE_OPERATOR_STARTS = frozenset("<>=!-:")

DOUBLE_OPERATORS = {
    ":=": TokenType.DECLARE,
    "=>": TokenType.CASE_ARROW,
    "==": TokenType.EQUALS,
    "!=": TokenType.NOT_EQUALS,
    "<=": TokenType.LESS_OR_EQUAL,
    ">=": TokenType.GREATER_OR_EQUAL,
}

SINGLE_OPERATORS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MULTIPLY,
    "/": TokenType.DIVIDE,
    "<": TokenType.LESS_THAN,
    ">": TokenType.GREATER_THAN,
    "=": TokenType.ASSIGN,
    "!": TokenType.NEGATE,
    "(": TokenType.LEFT_PARENTHESIS,
    ")": TokenType.RIGHT_PARENTHESIS,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    ",": TokenType.COMMA,
}

TYPE_ANNOTATIONS = {
    TokenType.INT: ValueType.INT,
    TokenType.FLOAT: ValueType.FLOAT,
    TokenType.BOOL: ValueType.BOOL,
    TokenType.STRING: ValueType.STRING,
}

STRING_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}
