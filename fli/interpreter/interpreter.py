from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from fli.config import ENTRY_POINT, InterpreterConfig, ensure_host_recursion_limit
from fli.data_structures import Position, ValueType, type_of
from fli.exceptions import ErrorCode, InternalInterpreterError, SemanticError
from fli.functions import EmbeddedFunction, FunctionRegistry, build_default_registry
from fli.parser.core.classes import (
    Assignment,
    BinaryExpression,
    BinaryOperator,
    Block,
    CastExpression,
    FunctionCall,
    FunctionDefinition,
    Identifier,
    IfStatement,
    NegateExpression,
    Program,
    ReturnStatement,
    SwitchCase,
    SwitchStatement,
    VariableDeclaration,
    WhileStatement,
)
from fli.values import cast_value

from .scope import CallStack, ScopeArena

NUMERIC_TYPES = (ValueType.INT, ValueType.FLOAT)
ADDABLE_TYPES = (ValueType.INT, ValueType.FLOAT, ValueType.STRING)

ORDERING = {
    BinaryOperator.GREATER_THAN: lambda a, b: a > b,
    BinaryOperator.LESS_THAN: lambda a, b: a < b,
    BinaryOperator.GREATER_OR_EQUAL: lambda a, b: a >= b,
    BinaryOperator.LESS_OR_EQUAL: lambda a, b: a <= b,
}


def _int_divide(a: int, b: int) -> int:
    """Integer division truncating toward zero, unlike Python's floor division."""
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


ARITHMETIC = {
    BinaryOperator.SUM: lambda a, b: a + b,
    BinaryOperator.SUBTRACT: lambda a, b: a - b,
    BinaryOperator.MULTIPLY: lambda a, b: a * b,
    BinaryOperator.DIVIDE: lambda a, b: _int_divide(a, b) if isinstance(a, int) else a / b,
}


class Interpreter:
    """
    Executes a parsed Program by walking its AST.

    Expressions evaluate to Python values (int, float, bool, str, or None for a void call).
    Statements are executed for their effect; a `return` sets `return_flag` and `return_value`,
    and every enclosing statement sequence stops as soon as the flag is up. The flag is lowered
    again when the function that owns the return hands its value back to the caller.
    """

    def __init__(
        self,
        program: Program,
        registry: Optional[FunctionRegistry] = None,
        config: Optional[InterpreterConfig] = None,
    ):
        self.program = program
        self.registry = registry if registry is not None else build_default_registry()
        self.config = config or InterpreterConfig()

        for name, function in program.functions.items():
            if name in self.registry:
                raise SemanticError(ErrorCode.REDEFINE_EMBEDDED_FUNCTION, function.position, name=name)

        self.scopes = ScopeArena()
        self.scope: Optional[int] = None
        self.call_stack = CallStack()
        self.return_flag = False
        self.return_value: Any = None
        # The innermost call that was running when the host stack ran out.
        self.overflowed_call: Optional[Tuple[str, Position]] = None

        # One handler per AST node kind.
        self.expression_handlers = {
            "int_literal": self._evaluate_literal,
            "float_literal": self._evaluate_literal,
            "bool_literal": self._evaluate_literal,
            "string_literal": self._evaluate_literal,
            "identifier": self._evaluate_identifier,
            "negate": self._evaluate_negate,
            "cast": self._evaluate_cast,
            "binary": self._evaluate_binary,
            "function_call": self.call_function,
        }
        self.statement_handlers = {
            "variable_declaration": self._execute_declaration,
            "assignment": self._execute_assignment,
            "if_statement": self._execute_if,
            "while_statement": self._execute_while,
            "switch_statement": self._execute_switch,
            "return_statement": self._execute_return,
            "function_call": self.call_function,
        }

    # --- Entry points ---

    def run(self, entry: str = ENTRY_POINT, arguments: Sequence[Any] = ()) -> Any:
        """Calls the entry function with already-converted argument values and returns its result."""
        function = self.program.functions.get(entry)
        if function is None:
            raise SemanticError(ErrorCode.UNDEFINED_FUNCTION, name=entry)

        self.return_flag = False
        self.return_value = None
        self._check_argument_count(entry, len(function.parameters), len(arguments), function.position)
        with self._host_stack():
            return self.invoke(function, list(arguments), function.position)

    def execute_block(self, block: Block, return_type: ValueType = ValueType.VOID) -> Any:
        """
        Runs a block as if it were the body of a function returning `return_type`.
        The return flag is left as the block set it.
        """
        with self._host_stack(), self._scope(return_type=return_type):
            self._run_statements(block.statements)
        return self.return_value if self.return_flag else None

    def evaluate(self, expression) -> Any:
        handler = self.expression_handlers.get(expression.kind)
        if handler is None:
            raise InternalInterpreterError(f"No evaluator for AST node kind '{expression.kind}'.")
        return handler(expression)

    def execute(self, statement):
        handler = self.statement_handlers.get(statement.kind)
        if handler is None:
            raise InternalInterpreterError(f"No executor for AST node kind '{statement.kind}'.")
        handler(statement)

    # --- Scopes ---

    @contextmanager
    def _scope(self, return_type: Optional[ValueType] = None) -> Iterator[int]:
        """Opens a child of the current scope and makes it current for the duration."""
        previous = self.scope
        index = self.scopes.open(previous, return_type)
        self.scope = index
        try:
            yield index
        finally:
            self.scope = previous
            self.scopes.close(index)

    def _run_statements(self, statements):
        for statement in statements:
            self.execute(statement)
            if self.return_flag:
                return

    def _execute_nested_block(self, block: Block):
        with self._scope():
            self._run_statements(block.statements)

    @contextmanager
    def _host_stack(self) -> Iterator[None]:
        """
        Sizes the host stack for the configured recursion depth. Calls that still exhaust it,
        such as a long ring of mutually recursive functions, fail like any other runaway recursion.
        """
        ensure_host_recursion_limit(self.config.max_recursion_depth)
        self.overflowed_call = None
        try:
            yield
        except RecursionError as e:
            if self.overflowed_call is None:
                raise
            name, position = self.overflowed_call
            raise SemanticError(
                ErrorCode.MAX_RECURSION_DEPTH_EXCEEDED,
                position,
                depth=self.config.max_recursion_depth,
                name=name,
            ) from e

    # --- Expressions ---

    def _evaluate_literal(self, node) -> Any:
        return node.value

    def _evaluate_identifier(self, node: Identifier) -> Any:
        return self.scopes.value_of(self.scope, node.name, node.position)

    def _evaluate_negate(self, node: NegateExpression) -> Any:
        value = self.evaluate(node.operand)
        if isinstance(value, bool):
            return not value
        if isinstance(value, (int, float)):
            return -value
        raise SemanticError(ErrorCode.INVALID_NEGATE, node.position, provided=type_of(value))

    def _evaluate_cast(self, node: CastExpression) -> Any:
        return cast_value(self.evaluate(node.operand), node.target_type, node.position)

    def _evaluate_binary(self, node: BinaryExpression) -> Any:
        if node.operator in (BinaryOperator.AND, BinaryOperator.OR):
            return self._evaluate_logical(node)
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)
        return self._apply_binary(node.operator, left, right, node.position)

    def _evaluate_logical(self, node: BinaryExpression) -> bool:
        left = self._logical_operand(node, node.left)
        # The right operand is evaluated only when the left one does not decide the result.
        if node.operator == BinaryOperator.OR and left:
            return True
        if node.operator == BinaryOperator.AND and not left:
            return False
        return self._logical_operand(node, node.right)

    def _logical_operand(self, node: BinaryExpression, operand) -> bool:
        value = self.evaluate(operand)
        if not isinstance(value, bool):
            raise SemanticError(
                ErrorCode.LOGICAL_OPERATOR_TYPE_MISMATCH,
                node.position,
                op=node.operator,
                provided=type_of(value),
            )
        return value

    def _apply_binary(self, operator: BinaryOperator, left: Any, right: Any, position: Position) -> Any:
        left_type, right_type = type_of(left), type_of(right)
        if operator in (BinaryOperator.EQUALS, BinaryOperator.NOT_EQUALS):
            allowed = (ValueType.INT, ValueType.FLOAT, ValueType.BOOL, ValueType.STRING)
        elif operator == BinaryOperator.SUM:
            allowed = ADDABLE_TYPES
        else:
            allowed = NUMERIC_TYPES

        if left_type != right_type or left_type not in allowed:
            raise SemanticError(
                ErrorCode.OPERATOR_TYPE_MISMATCH,
                position,
                op=operator,
                left_type=left_type,
                right_type=right_type,
            )
        if operator == BinaryOperator.DIVIDE and right == 0:
            raise SemanticError(ErrorCode.DIVISION_BY_ZERO, position)

        if operator == BinaryOperator.EQUALS:
            return left == right
        if operator == BinaryOperator.NOT_EQUALS:
            return left != right
        if operator in ORDERING:
            return ORDERING[operator](left, right)
        return ARITHMETIC[operator](left, right)

    # --- Calls ---

    def call_function(self, call: FunctionCall) -> Any:
        function = self.program.functions.get(call.name)
        if function is not None:
            self._check_argument_count(call.name, len(function.parameters), len(call.arguments), call.position)
            # Arguments are evaluated in the caller's scope, before the callee's scope exists.
            arguments = [self.evaluate(argument) for argument in call.arguments]
            return self.invoke(function, arguments, call.position)

        embedded = self.registry.get(call.name)
        if embedded is None:
            raise SemanticError(ErrorCode.UNDEFINED_FUNCTION, call.position, name=call.name)
        if embedded.arity is not None:
            self._check_argument_count(call.name, embedded.arity, len(call.arguments), call.position)
        arguments = [self.evaluate(argument) for argument in call.arguments]
        return self._call_embedded(embedded, arguments, call.position)

    def invoke(self, function: FunctionDefinition, arguments: List[Any], position: Position) -> Any:
        """Runs a user function on evaluated arguments and returns what its body returned."""
        name = function.name
        if self.call_stack.depth(name) >= self.config.max_recursion_depth:
            raise SemanticError(
                ErrorCode.MAX_RECURSION_DEPTH_EXCEEDED,
                position,
                depth=self.config.max_recursion_depth,
                name=name,
            )

        self.call_stack.push(name)
        try:
            with self._scope(return_type=function.return_type) as scope:
                for arg_num, (parameter, value) in enumerate(zip(function.parameters, arguments), start=1):
                    self._check_argument_type(name, arg_num, parameter.param_type, value, position)
                    self.scopes.declare(scope, parameter.name, value, parameter.param_type, parameter.position)

                self._run_statements(function.body.statements)

            if not self.return_flag and function.return_type != ValueType.VOID:
                raise SemanticError(
                    ErrorCode.MISSING_RETURN,
                    function.position,
                    name=name,
                    expected=function.return_type,
                )
            value = self.return_value if self.return_flag else None
            self.return_flag = False
            self.return_value = None
            return value
        except RecursionError:
            if self.overflowed_call is None:
                self.overflowed_call = (name, position)
            raise
        finally:
            self.call_stack.pop(name)

    def _call_embedded(self, function: EmbeddedFunction, arguments: List[Any], position: Position) -> Any:
        for arg_num, value in enumerate(arguments, start=1):
            if value is None:
                raise SemanticError(
                    ErrorCode.ARGUMENT_TYPE_MISMATCH,
                    position,
                    arg_num=arg_num,
                    name=function.name,
                    expected="value",
                    provided=ValueType.VOID,
                )
            if not function.variadic:
                self._check_argument_type(function.name, arg_num, function.param_types[arg_num - 1], value, position)

        try:
            return function.func(arguments)
        except (ZeroDivisionError, ValueError, OverflowError) as e:
            raise SemanticError(ErrorCode.EMBEDDED_FUNCTION_FAILED, position, name=function.name, details=str(e)) from e

    @staticmethod
    def _check_argument_count(name: str, expected: int, provided: int, position: Position):
        if expected != provided:
            raise SemanticError(
                ErrorCode.WRONG_ARGUMENT_COUNT,
                position,
                name=name,
                expected=expected,
                provided=provided,
            )

    @staticmethod
    def _check_argument_type(name: str, arg_num: int, expected: ValueType, value: Any, position: Position):
        provided = type_of(value)
        if provided != expected:
            raise SemanticError(
                ErrorCode.ARGUMENT_TYPE_MISMATCH,
                position,
                arg_num=arg_num,
                name=name,
                expected=expected,
                provided=provided,
            )

    # --- Statements ---

    def _execute_declaration(self, node: VariableDeclaration):
        value = self.evaluate(node.initializer)
        self.scopes.declare(self.scope, node.name, value, node.declared_type, node.position)

    def _execute_assignment(self, node: Assignment):
        value = self.evaluate(node.value)
        self.scopes.assign(self.scope, node.name, value, node.position)

    def _condition(self, expression, construct: str) -> bool:
        value = self.evaluate(expression)
        if not isinstance(value, bool):
            raise SemanticError(
                ErrorCode.NON_BOOLEAN_CONDITION,
                expression.position,
                construct=construct,
                provided=type_of(value),
            )
        return value

    def _execute_if(self, node: IfStatement):
        block = node.then_block if self._condition(node.condition, "if") else node.else_block
        if block is not None:
            self._execute_nested_block(block)

    def _execute_while(self, node: WhileStatement):
        # One scope for the whole loop: it is not recreated between iterations.
        with self._scope():
            while self._condition(node.condition, "while"):
                self._run_statements(node.body.statements)
                if self.return_flag:
                    return

    def _execute_return(self, node: ReturnStatement):
        value = None if node.value is None else self.evaluate(node.value)
        self._return(value, node.position)

    def _return(self, value: Any, position: Position):
        expected = self.scopes.return_type_of(self.scope)
        provided = type_of(value)
        if provided != expected:
            raise SemanticError(ErrorCode.INVALID_RETURN_TYPE, position, provided=provided, expected=expected)
        self.return_value = value
        self.return_flag = True

    # --- Switch ---

    def _execute_switch(self, node: SwitchStatement):
        defaults = [case for case in node.cases if case.kind == "default_case"]
        if len(defaults) > 1:
            raise SemanticError(ErrorCode.MULTIPLE_DEFAULT_CASES, defaults[1].position)

        with self._scope():
            for declaration in node.variables:
                self._execute_declaration(declaration)

            has_subject, subject = self._switch_subject(node)
            for case in node.cases:
                if case.kind == "switch_case" and self._case_matches(case, has_subject, subject):
                    self._execute_case_output(case.output)
                    return

            if defaults:
                self._execute_case_output(defaults[0].output)

    def _switch_subject(self, node: SwitchStatement):
        """The value cases are compared against, if the switch has one."""
        if node.expression is not None:
            return True, self.evaluate(node.expression)
        if len(node.variables) == 1:
            variable = node.variables[0]
            return True, self.scopes.value_of(self.scope, variable.name, variable.position)
        return False, None

    def _case_matches(self, case: SwitchCase, has_subject: bool, subject: Any) -> bool:
        if case.relation is not None:
            if not has_subject:
                raise SemanticError(
                    ErrorCode.UNKNOWN_CASE_SHAPE,
                    case.position,
                    details=f"a '{case.relation}' case needs a single value to compare against",
                )
            return self._apply_binary(case.relation, subject, self.evaluate(case.value), case.position)

        if has_subject:
            return self._apply_binary(BinaryOperator.EQUALS, subject, self.evaluate(case.value), case.position)
        return self._condition(case.value, "switch case")

    def _execute_case_output(self, output):
        if output.kind == "block":
            self._execute_nested_block(output)
            return
        value = self.evaluate(output)
        if value is not None:
            self._return(value, output.position)
