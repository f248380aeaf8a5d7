import pytest

from fli.data_structures import Position, ValueType
from fli.exceptions import ErrorCode, InternalInterpreterError, SemanticError
from fli.interpreter import CallStack, ScopeArena

HERE = Position(1, 1)


@pytest.fixture
def arena():
    return ScopeArena()


def test_lookup_walks_parents(arena):
    outer = arena.open(None, ValueType.VOID)
    inner = arena.open(outer)
    arena.declare(outer, "x", 1, ValueType.INT, HERE)

    assert arena.value_of(inner, "x", HERE) == 1


def test_lookup_stops_at_function_boundary(arena):
    caller = arena.open(None, ValueType.VOID)
    arena.declare(caller, "secret", 7, ValueType.INT, HERE)
    callee = arena.open(caller, ValueType.INT)

    assert arena.lookup(callee, "secret") is None
    with pytest.raises(SemanticError) as excinfo:
        arena.value_of(callee, "secret", Position(3, 4))
    assert excinfo.value.code == ErrorCode.UNDEFINED_VARIABLE
    assert excinfo.value.position == Position(3, 4)


def test_inner_declaration_shadows_outer(arena):
    outer = arena.open(None, ValueType.VOID)
    inner = arena.open(outer)
    arena.declare(outer, "x", 1, ValueType.INT, HERE)
    arena.declare(inner, "x", "shadow", ValueType.STRING, HERE)

    assert arena.value_of(inner, "x", HERE) == "shadow"
    assert arena.value_of(outer, "x", HERE) == 1


def test_redeclaration_reports_the_earlier_declaration(arena):
    scope = arena.open(None, ValueType.VOID)
    arena.declare(scope, "x", 1, ValueType.INT, Position(2, 5))

    with pytest.raises(SemanticError) as excinfo:
        arena.declare(scope, "x", 2, ValueType.INT, Position(3, 5))
    assert excinfo.value.code == ErrorCode.REDECLARED_VARIABLE
    assert excinfo.value.position == Position(3, 5)
    assert (excinfo.value.details["line"], excinfo.value.details["column"]) == (2, 5)


@pytest.mark.parametrize(
    "value, declared_type",
    [(1.0, ValueType.INT), (1, ValueType.FLOAT), (True, ValueType.INT), ("1", ValueType.INT), (None, ValueType.BOOL)],
)
def test_declaration_type_must_match_exactly(arena, value, declared_type):
    scope = arena.open(None, ValueType.VOID)
    with pytest.raises(SemanticError) as excinfo:
        arena.declare(scope, "x", value, declared_type, HERE)
    assert excinfo.value.code == ErrorCode.TYPE_MISMATCH


def test_assignment_updates_the_declaring_scope(arena):
    outer = arena.open(None, ValueType.VOID)
    arena.declare(outer, "x", 1, ValueType.INT, HERE)
    inner = arena.open(outer)

    arena.assign(inner, "x", 2, HERE)

    assert arena.value_of(outer, "x", HERE) == 2


def test_assignment_errors(arena):
    scope = arena.open(None, ValueType.VOID)
    arena.declare(scope, "x", 1, ValueType.INT, HERE)

    with pytest.raises(SemanticError) as excinfo:
        arena.assign(scope, "y", 1, HERE)
    assert excinfo.value.code == ErrorCode.UNDEFINED_VARIABLE

    with pytest.raises(SemanticError) as excinfo:
        arena.assign(scope, "x", "text", HERE)
    assert excinfo.value.code == ErrorCode.TYPE_MISMATCH
    assert arena.value_of(scope, "x", HERE) == 1


def test_close_discards_later_scopes(arena):
    first = arena.open(None, ValueType.VOID)
    second = arena.open(first)
    arena.open(second)
    assert len(arena) == 3

    arena.close(second)
    assert len(arena) == 1

    with pytest.raises(InternalInterpreterError):
        arena.close(second)


def test_return_type_comes_from_the_enclosing_function(arena):
    function = arena.open(None, ValueType.FLOAT)
    block = arena.open(function)
    loop = arena.open(block)

    assert arena.return_type_of(loop) == ValueType.FLOAT
    assert arena.return_type_of(arena.open(None)) == ValueType.VOID


def test_call_stack_counts_per_function():
    stack = CallStack()
    stack.push("f")
    stack.push("f")
    stack.push("g")

    assert stack.depth("f") == 2
    assert stack.depth("g") == 1
    assert stack.depth("h") == 0

    stack.pop("f")
    stack.pop("g")
    assert stack.depth("f") == 1
    assert stack.depth("g") == 0
