from dataclasses import dataclass
from enum import Enum
from typing import Any

"""
Defines the small value types shared by every stage of the interpreter:
source positions and the four primitive types of the language.
"""


@dataclass(frozen=True)
class Position:
    """Represents a 1-based location in a source file."""

    line: int
    column: int

    def __str__(self):
        return f"{self.line}:{self.column}"


class ValueType(str, Enum):
    """The declared types of the language. VOID is the type of a function without a return value."""

    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "string"
    VOID = "void"

    def __str__(self):
        return self.value


def type_of(value: Any) -> ValueType:
    """Returns the runtime tag of a value. bool is checked before int because it subclasses it."""
    if value is None:
        return ValueType.VOID
    if isinstance(value, bool):
        return ValueType.BOOL
    if isinstance(value, int):
        return ValueType.INT
    if isinstance(value, float):
        return ValueType.FLOAT
    if isinstance(value, str):
        return ValueType.STRING
    raise TypeError(f"'{type(value).__name__}' is not a runtime value of the language")
