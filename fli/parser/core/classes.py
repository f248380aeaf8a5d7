"""
Defines the formal data structures (contracts) for the Abstract Syntax Tree (AST)
produced by the parser stage.

Each node is a frozen pydantic model carrying the `Position` of the token that introduced it,
and a `kind` literal. Expressions, statements and switch-case outputs are discriminated unions
over `kind`, so every traversal (the interpreter, the printer) dispatches on that tag.
"""

from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field

from fli.data_structures import Position, ValueType

# --- Core Data Structures ---


class ASTNode(BaseModel):
    """A base class for all AST nodes, ensuring they have a position."""

    model_config = ConfigDict(frozen=True)

    position: Position


class BinaryOperator(str, Enum):
    OR = "or"
    AND = "and"
    EQUALS = "=="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    LESS_THAN = "<"
    GREATER_OR_EQUAL = ">="
    LESS_OR_EQUAL = "<="
    SUM = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"

    def __str__(self):
        return self.value


RELATION_OPERATORS = (
    BinaryOperator.EQUALS,
    BinaryOperator.NOT_EQUALS,
    BinaryOperator.GREATER_THAN,
    BinaryOperator.LESS_THAN,
    BinaryOperator.GREATER_OR_EQUAL,
    BinaryOperator.LESS_OR_EQUAL,
)


# --- Literals and Identifiers ---


class IntLiteral(ASTNode):
    kind: Literal["int_literal"] = "int_literal"
    value: int


class FloatLiteral(ASTNode):
    kind: Literal["float_literal"] = "float_literal"
    value: float


class BoolLiteral(ASTNode):
    kind: Literal["bool_literal"] = "bool_literal"
    value: bool


class StringLiteral(ASTNode):
    kind: Literal["string_literal"] = "string_literal"
    value: str


class Identifier(ASTNode):
    kind: Literal["identifier"] = "identifier"
    name: str


# --- Expressions ---


class NegateExpression(ASTNode):
    kind: Literal["negate"] = "negate"
    operand: "Expression"


class CastExpression(ASTNode):
    kind: Literal["cast"] = "cast"
    operand: "Expression"
    target_type: ValueType


class BinaryExpression(ASTNode):
    kind: Literal["binary"] = "binary"
    operator: BinaryOperator
    left: "Expression"
    right: "Expression"


class FunctionCall(ASTNode):
    kind: Literal["function_call"] = "function_call"
    name: str
    arguments: List["Expression"] = []


Expression = Annotated[
    Union[
        IntLiteral,
        FloatLiteral,
        BoolLiteral,
        StringLiteral,
        Identifier,
        NegateExpression,
        CastExpression,
        BinaryExpression,
        FunctionCall,
    ],
    Field(discriminator="kind"),
]


# --- Statements ---


class Block(ASTNode):
    kind: Literal["block"] = "block"
    statements: List["Statement"] = []


class VariableDeclaration(ASTNode):
    kind: Literal["variable_declaration"] = "variable_declaration"
    name: str
    declared_type: ValueType
    initializer: Expression


class Assignment(ASTNode):
    kind: Literal["assignment"] = "assignment"
    name: str
    value: Expression


class IfStatement(ASTNode):
    kind: Literal["if_statement"] = "if_statement"
    condition: Expression
    then_block: Block
    else_block: Optional[Block] = None


class WhileStatement(ASTNode):
    kind: Literal["while_statement"] = "while_statement"
    condition: Expression
    body: Block


CaseOutput = Annotated[
    Union[
        IntLiteral,
        FloatLiteral,
        BoolLiteral,
        StringLiteral,
        Identifier,
        NegateExpression,
        CastExpression,
        BinaryExpression,
        FunctionCall,
        Block,
    ],
    Field(discriminator="kind"),
]


class SwitchCase(ASTNode):
    kind: Literal["switch_case"] = "switch_case"
    relation: Optional[BinaryOperator] = None
    value: Expression
    output: CaseOutput


class DefaultCase(ASTNode):
    kind: Literal["default_case"] = "default_case"
    output: CaseOutput


AnyCase = Annotated[Union[SwitchCase, DefaultCase], Field(discriminator="kind")]


class SwitchStatement(ASTNode):
    kind: Literal["switch_statement"] = "switch_statement"
    variables: List[VariableDeclaration] = []
    expression: Optional[Expression] = None
    cases: List[AnyCase]


class ReturnStatement(ASTNode):
    kind: Literal["return_statement"] = "return_statement"
    value: Optional[Expression] = None


Statement = Annotated[
    Union[
        VariableDeclaration,
        Assignment,
        IfStatement,
        WhileStatement,
        SwitchStatement,
        ReturnStatement,
        FunctionCall,
    ],
    Field(discriminator="kind"),
]


# --- Top-level Structures ---


class Parameter(ASTNode):
    name: str
    param_type: ValueType


class FunctionDefinition(ASTNode):
    name: str
    parameters: List[Parameter] = []
    return_type: ValueType = ValueType.VOID
    body: Block


class Program(BaseModel):
    """The root of the AST: every function of a source file, keyed by name."""

    model_config = ConfigDict(frozen=True)

    functions: Dict[str, FunctionDefinition] = {}


# Resolve the forward references of the recursive nodes now that every union is defined.
for _model in (
    NegateExpression,
    CastExpression,
    BinaryExpression,
    FunctionCall,
    Block,
    VariableDeclaration,
    Assignment,
    IfStatement,
    WhileStatement,
    SwitchCase,
    DefaultCase,
    SwitchStatement,
    ReturnStatement,
    FunctionDefinition,
    Program,
):
    _model.model_rebuild()


def node_kinds(union) -> List[str]:
    """Lists the `kind` tags of a discriminated union, e.g. node_kinds(Expression)."""
    members = get_args(get_args(union)[0])
    return [member.model_fields["kind"].default for member in members]
