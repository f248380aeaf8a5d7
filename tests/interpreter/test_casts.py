import math

import pytest

from fli.data_structures import Position, ValueType
from fli.exceptions import ErrorCode, SemanticError
from fli.values import cast_value, describe, render

HERE = Position(1, 1)


# --- 1. Casts in Programs ---


@pytest.mark.parametrize(
    "expression, return_type, expected",
    [
        ("3.9 as int", "int", 3),
        ("-3.9 as int", "int", -3),
        ("true as int", "int", 1),
        ('"42" as int', "int", 42),
        ('"-7" as int', "int", -7),
        ("2 as float", "float", 2.0),
        ('"2.5" as float', "float", 2.5),
        ("false as float", "float", 0.0),
        ("0 as bool", "bool", False),
        ("5 as bool", "bool", True),
        ("0.0 as bool", "bool", False),
        ('"true" as bool', "bool", True),
        ("12 as string", "string", "12"),
        ("1.5 as string", "string", "1.5"),
        ("false as string", "string", "false"),
        ("7 as int", "int", 7),
        ("(10 as string) as int", "int", 10),
        ("(false as string) as bool", "bool", False),
    ],
)
def test_casts(run_program, expression, return_type, expected):
    result, _ = run_program(f"main() {return_type} {{ return {expression} }}")
    assert result == expected
    assert type(result) is type(expected)


@pytest.mark.parametrize(
    "expression",
    ['"abc" as int', '"1.5" as int', '" 1" as int', '"x" as float', '"1_0" as float', '"yes" as bool'],
)
def test_invalid_casts(run_with_error, expression):
    run_with_error(f"main() {{ string s := ({expression}) as string }}", ErrorCode.INVALID_CAST)


def test_casting_a_void_call(run_with_error):
    run_with_error("nothing() { } main() { int x := nothing() as int }", ErrorCode.INVALID_CAST)


def test_cast_result_can_be_printed(run_program):
    _, output = run_program('main() { println("n=" + (3 as string) + " ok=" + (true as string)) }')
    assert output == "n=3 ok=true\n"


# --- 2. cast_value ---


def test_same_type_is_returned_unchanged():
    assert cast_value("x", ValueType.STRING, HERE) == "x"


def test_infinite_float_cannot_become_int():
    with pytest.raises(SemanticError) as excinfo:
        cast_value(math.inf, ValueType.INT, Position(4, 2))
    assert excinfo.value.code == ErrorCode.INVALID_CAST
    assert excinfo.value.position == Position(4, 2)
    assert excinfo.value.details["value"] == "inf"


def test_error_message_quotes_strings():
    with pytest.raises(SemanticError) as excinfo:
        cast_value("abc", ValueType.INT, HERE)
    assert "Cannot cast \"abc\" of type 'string' to 'int'." in str(excinfo.value)


# --- 3. Rendering ---


@pytest.mark.parametrize(
    "value, expected",
    [(True, "true"), (False, "false"), (-12, "-12"), (2.0, "2.0"), (0.1, "0.1"), ("text", "text")],
)
def test_render(value, expected):
    assert render(value) == expected


def test_describe():
    assert describe("a") == '"a"'
    assert describe(None) == "nothing"
    assert describe(1.5) == "1.5"
