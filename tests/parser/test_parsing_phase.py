import pytest

from fli.data_structures import Position, ValueType
from fli.exceptions import ErrorCode, ParseError
from fli.parser import parse_source
from fli.parser.core.classes import (
    Assignment,
    BinaryExpression,
    BinaryOperator,
    Block,
    CastExpression,
    DefaultCase,
    FunctionCall,
    Identifier,
    IfStatement,
    IntLiteral,
    NegateExpression,
    ReturnStatement,
    StringLiteral,
    SwitchCase,
    SwitchStatement,
    VariableDeclaration,
    WhileStatement,
)


def parse_expression(text: str):
    """Parses `text` as the initializer of a declaration and returns it."""
    program = parse_source(f"main() {{ int x := {text} }}")
    return program.functions["main"].body.statements[0].initializer


def parse_body(text: str):
    return parse_source(f"main() {{ {text} }}").functions["main"].body.statements


# --- 1. Program Structure ---


def test_parses_complete_program():
    script = """
    # Adds two numbers.
    add(a int, b int) int {
        return a + b
    }

    main() {
        int total := add(1, 2)
        println(total)
    }
    """
    program = parse_source(script)

    assert list(program.functions) == ["add", "main"]

    add = program.functions["add"]
    assert add.position == Position(3, 5)
    assert add.return_type == ValueType.INT
    assert [(p.name, p.param_type) for p in add.parameters] == [("a", ValueType.INT), ("b", ValueType.INT)]
    assert isinstance(add.body.statements[0], ReturnStatement)

    main = program.functions["main"]
    assert main.return_type == ValueType.VOID
    declaration, call = main.body.statements
    assert isinstance(declaration, VariableDeclaration)
    assert declaration.declared_type == ValueType.INT
    assert isinstance(declaration.initializer, FunctionCall)
    assert isinstance(call, FunctionCall)
    assert call.name == "println"


def test_empty_source_is_an_empty_program():
    assert parse_source("").functions == {}
    assert parse_source("# only a comment\n").functions == {}


def test_parameter_groups_share_a_type():
    program = parse_source("f(a, b int, c float, d string) {}")
    assert [(p.name, p.param_type) for p in program.functions["f"].parameters] == [
        ("a", ValueType.INT),
        ("b", ValueType.INT),
        ("c", ValueType.FLOAT),
        ("d", ValueType.STRING),
    ]


def test_layout_is_free_form():
    compact = parse_source("main() int { int x := 1 return x }")
    spread = parse_source("main()\nint\n{\nint x\n:=\n1\n# comment\nreturn (\nx\n)\n}")
    assert len(compact.functions["main"].body.statements) == 2
    assert len(spread.functions["main"].body.statements) == 2


# --- 2. Expressions ---


def test_multiplication_binds_tighter_than_addition():
    expression = parse_expression("1 + 2 * 3")
    assert expression.operator == BinaryOperator.SUM
    assert isinstance(expression.left, IntLiteral)
    assert expression.right.operator == BinaryOperator.MULTIPLY


def test_parentheses_override_precedence():
    expression = parse_expression("(1 + 2) * 3")
    assert expression.operator == BinaryOperator.MULTIPLY
    assert expression.left.operator == BinaryOperator.SUM


def test_arithmetic_is_left_associative():
    expression = parse_expression("10 - 4 - 3")
    assert expression.operator == BinaryOperator.SUBTRACT
    assert isinstance(expression.left, BinaryExpression)
    assert expression.right.value == 3


@pytest.mark.parametrize(
    "text, top_operator",
    [
        ("a or b and c", BinaryOperator.OR),
        ("a and b or c", BinaryOperator.OR),
        ("a == b and c", BinaryOperator.AND),
        ("a + 1 < b", BinaryOperator.LESS_THAN),
        ("a >= b * 2", BinaryOperator.GREATER_OR_EQUAL),
        ("a != b", BinaryOperator.NOT_EQUALS),
    ],
)
def test_operator_precedence(text, top_operator):
    assert parse_expression(text).operator == top_operator


def test_relations_do_not_chain():
    with pytest.raises(ParseError) as excinfo:
        parse_expression("a < b < c")
    assert excinfo.value.code == ErrorCode.UNKNOWN_STATEMENT


def test_cast_binds_tighter_than_multiplication():
    expression = parse_expression("a * b as float")
    assert expression.operator == BinaryOperator.MULTIPLY
    assert isinstance(expression.right, CastExpression)
    assert expression.right.target_type == ValueType.FLOAT


def test_cast_applies_to_negated_term():
    expression = parse_expression("-x as int")
    assert isinstance(expression, CastExpression)
    assert isinstance(expression.operand, NegateExpression)


@pytest.mark.parametrize("text", ["-x", "!x"])
def test_both_unary_operators_negate(text):
    expression = parse_expression(text)
    assert isinstance(expression, NegateExpression)
    assert isinstance(expression.operand, Identifier)


def test_call_with_nested_arguments():
    expression = parse_expression('f(1, g(2), "s" + t)')
    assert isinstance(expression, FunctionCall)
    assert expression.name == "f"
    assert len(expression.arguments) == 3
    assert isinstance(expression.arguments[1], FunctionCall)
    assert isinstance(expression.arguments[2].left, StringLiteral)


def test_binary_expression_is_located_at_its_operator():
    expression = parse_expression("1 + 2")
    assert expression.position == Position(1, 21)


# --- 3. Statements ---


def test_assignment_and_call_statements():
    assignment, call = parse_body("x = 5 f(x)")
    assert isinstance(assignment, Assignment)
    assert assignment.name == "x"
    assert isinstance(call, FunctionCall)
    assert isinstance(call.arguments[0], Identifier)


def test_if_with_else():
    (statement,) = parse_body("if a { x = 1 } else { x = 2 }")
    assert isinstance(statement, IfStatement)
    assert isinstance(statement.then_block, Block)
    assert isinstance(statement.else_block, Block)


def test_if_without_else():
    (statement,) = parse_body("if a { }")
    assert statement.else_block is None


def test_while_loop():
    (statement,) = parse_body("while i < 10 { i = i + 1 }")
    assert isinstance(statement, WhileStatement)
    assert statement.condition.operator == BinaryOperator.LESS_THAN
    assert len(statement.body.statements) == 1


def test_return_with_and_without_value():
    with_value, without_value = parse_body("return 1 + 2 return")
    assert with_value.value.operator == BinaryOperator.SUM
    assert without_value.value is None


def test_return_value_must_start_on_the_same_line():
    bare, call = parse_body('return\n println("unreachable")')
    assert isinstance(bare, ReturnStatement)
    assert bare.value is None
    assert isinstance(call, FunctionCall)

    (with_value,) = parse_body("return # total\n")
    assert with_value.value is None
    (spread,) = parse_body("return 1 +\n 2")
    assert spread.value.operator == BinaryOperator.SUM


# --- 4. Switch ---


def test_switch_on_expression_with_relations_and_default():
    (statement,) = parse_body('switch n { < 0 => "neg", 0 => { x = 1 }, default => "pos" }')
    assert isinstance(statement, SwitchStatement)
    assert isinstance(statement.expression, Identifier)
    assert statement.variables == []

    relation_case, bare_case, default_case = statement.cases
    assert isinstance(relation_case, SwitchCase)
    assert relation_case.relation == BinaryOperator.LESS_THAN
    assert isinstance(relation_case.output, StringLiteral)
    assert bare_case.relation is None
    assert isinstance(bare_case.output, Block)
    assert isinstance(default_case, DefaultCase)


def test_switch_with_guard_variables():
    (statement,) = parse_body("switch int a := 1, string b := \"x\" { default => 0 }")
    assert [v.name for v in statement.variables] == ["a", "b"]
    assert statement.expression is None


def test_switch_without_subject():
    (statement,) = parse_body("switch { a > 1 => 1, default => 2 }")
    assert statement.expression is None
    assert statement.variables == []
    assert statement.cases[0].value.operator == BinaryOperator.GREATER_THAN
