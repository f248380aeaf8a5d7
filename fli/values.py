import re

from fli.data_structures import Position, ValueType, type_of
from fli.exceptions import ErrorCode, InternalInterpreterError, SemanticError

"""
Conversions between the runtime values of the language: the canonical text rendering used by
`as string` and the print functions, and the explicit casts of the `as` operator.
"""

INT_TEXT = re.compile(r"[+-]?[0-9]+")
BOOL_TEXT = {"true": True, "false": False}


def render(value) -> str:
    """int -> decimal, bool -> true/false, float -> shortest round-trip form, string -> itself."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


def describe(value) -> str:
    """Renders a value for an error message, quoting strings."""
    if value is None:
        return "nothing"
    if isinstance(value, str):
        return f'"{value}"'
    return render(value)


def _to_int(value) -> int:
    if isinstance(value, str):
        if not INT_TEXT.fullmatch(value):
            raise ValueError(value)
        return int(value)
    # float: truncates toward zero, fails on inf and nan. bool: 1 or 0.
    return int(value)


def _to_float(value) -> float:
    if isinstance(value, str):
        # Python's float() also tolerates padding and digit separators; the language does not.
        if value != value.strip() or "_" in value:
            raise ValueError(value)
    return float(value)


def _to_bool(value) -> bool:
    if isinstance(value, str):
        if value not in BOOL_TEXT:
            raise ValueError(value)
        return BOOL_TEXT[value]
    return value != 0


CASTS = {
    ValueType.INT: _to_int,
    ValueType.FLOAT: _to_float,
    ValueType.BOOL: _to_bool,
    ValueType.STRING: render,
}


def cast_value(value, target: ValueType, position: Position):
    source = type_of(value)
    if source == target:
        return value

    caster = CASTS.get(target)
    if caster is None:
        raise InternalInterpreterError(f"No cast to '{target}' exists.")

    try:
        if source == ValueType.VOID:
            raise ValueError("a void call has no value to cast")
        return caster(value)
    except (ValueError, OverflowError):
        raise SemanticError(
            ErrorCode.INVALID_CAST,
            position,
            value=describe(value),
            provided=source,
            target=target,
        ) from None
