from typing import Callable, Dict, List, Optional

from fli.config import LexerLimits, ensure_host_recursion_limit
from fli.data_structures import ValueType
from fli.exceptions import ErrorCode, FLError, LexerError, ParseError
from fli.lexer import Lexer, Token, TokenType
from fli.lexer.tokens import TYPE_ANNOTATIONS

from .core.classes import (
    Assignment,
    BinaryExpression,
    BinaryOperator,
    Block,
    BoolLiteral,
    CastExpression,
    DefaultCase,
    FloatLiteral,
    FunctionCall,
    FunctionDefinition,
    Identifier,
    IfStatement,
    IntLiteral,
    NegateExpression,
    Parameter,
    Program,
    ReturnStatement,
    StringLiteral,
    SwitchCase,
    SwitchStatement,
    VariableDeclaration,
    WhileStatement,
)

ErrorHandler = Callable[[FLError], None]

# Tokens skipped between every pair of meaningful tokens. Only `return` looks at skipped newlines.
TRIVIA = frozenset((TokenType.COMMENT, TokenType.EOL))

LITERALS = {
    TokenType.CONST_INT: IntLiteral,
    TokenType.CONST_FLOAT: FloatLiteral,
    TokenType.CONST_BOOL: BoolLiteral,
    TokenType.CONST_STRING: StringLiteral,
}

RELATION_TOKENS = {
    TokenType.EQUALS: BinaryOperator.EQUALS,
    TokenType.NOT_EQUALS: BinaryOperator.NOT_EQUALS,
    TokenType.GREATER_THAN: BinaryOperator.GREATER_THAN,
    TokenType.LESS_THAN: BinaryOperator.LESS_THAN,
    TokenType.GREATER_OR_EQUAL: BinaryOperator.GREATER_OR_EQUAL,
    TokenType.LESS_OR_EQUAL: BinaryOperator.LESS_OR_EQUAL,
}

ADDITIVE_TOKENS = {TokenType.PLUS: BinaryOperator.SUM, TokenType.MINUS: BinaryOperator.SUBTRACT}

MULTIPLICATIVE_TOKENS = {TokenType.MULTIPLY: BinaryOperator.MULTIPLY, TokenType.DIVIDE: BinaryOperator.DIVIDE}


class Parser:
    """
    A recursive-descent parser that builds a `Program` from the tokens of a Lexer.

    Every `_parse_*` method either returns a node or returns None *without consuming anything*
    when the current token cannot start its construct. Once a construct has started, any
    deviation from the grammar raises a ParseError at the offending token.
    """

    def __init__(self, lexer: Lexer, error_handler: ErrorHandler):
        self.lexer = lexer
        self.error_handler = error_handler
        self.token: Optional[Token] = None
        # True when a newline separates the current token from the previous one.
        self.newline_before = False

    def parse_program(self) -> Optional[Program]:
        """
        Parses the whole token stream. The first lexical or syntax error is handed to the
        error handler and parsing stops there: the result is then None.
        """
        ensure_host_recursion_limit()
        try:
            self._advance()
            return self._parse_program()
        except RecursionError:
            self.error_handler(self._error(ErrorCode.NESTING_TOO_DEEP))
            return None
        except (LexerError, ParseError) as e:
            self.error_handler(e)
            return None

    # --- Token helpers ---

    def _advance(self):
        token = self.lexer.next_token()
        self.newline_before = False
        while token.type in TRIVIA:
            if token.type == TokenType.EOL:
                self.newline_before = True
            token = self.lexer.next_token()
        self.token = token

    def _check(self, *token_types: TokenType) -> bool:
        return self.token.type in token_types

    def _error(self, code: ErrorCode, **kwargs) -> ParseError:
        return ParseError(code, self.token.position, **kwargs)

    def _expect(self, token_type: TokenType, code: ErrorCode, **kwargs) -> Token:
        """Consumes a token of the given type or fails with `code`."""
        if not self._check(token_type):
            raise self._error(code, **kwargs)
        token = self.token
        self._advance()
        return token

    def _require(self, parse: Callable, after: str):
        """Runs a sub-parser whose construct is mandatory at this point."""
        node = parse()
        if node is None:
            raise self._error(ErrorCode.MISSING_EXPRESSION, after=after)
        return node

    def _require_expression(self, after: str):
        return self._require(self._parse_expression, after)

    # --- Program and functions ---

    def _parse_program(self) -> Program:
        functions: Dict[str, FunctionDefinition] = {}

        function = self._parse_function_definition()
        while function is not None:
            earlier = functions.get(function.name)
            if earlier is not None:
                raise ParseError(
                    ErrorCode.FUNCTION_REDEFINITION,
                    function.position,
                    name=function.name,
                    line=earlier.position.line,
                    column=earlier.position.column,
                )
            functions[function.name] = function
            function = self._parse_function_definition()

        if not self._check(TokenType.ETX):
            raise self._error(ErrorCode.NO_ETX_TOKEN, found=self.token.describe())
        return Program(functions=functions)

    def _parse_function_definition(self) -> Optional[FunctionDefinition]:
        if not self._check(TokenType.IDENTIFIER):
            return None
        name_token = self.token
        name = name_token.value
        self._advance()

        self._expect(TokenType.LEFT_PARENTHESIS, ErrorCode.FUNC_DEF_NO_PARENTHESIS, expected="(", name=name)
        parameters = self._parse_parameters()
        self._expect(TokenType.RIGHT_PARENTHESIS, ErrorCode.FUNC_DEF_NO_PARENTHESIS, expected=")", name=name)

        return_type = self._parse_type_annotation() or ValueType.VOID
        body = self._require_block()

        return FunctionDefinition(
            position=name_token.position,
            name=name,
            parameters=parameters,
            return_type=return_type,
            body=body,
        )

    def _parse_parameters(self) -> List[Parameter]:
        group = self._parse_parameter_group()
        if group is None:
            return []

        parameters = list(group)
        while self._check(TokenType.COMMA):
            self._advance()
            group = self._parse_parameter_group()
            if group is None:
                raise self._error(ErrorCode.NO_PARAMETERS_AFTER_COMMA)
            parameters.extend(group)
        return parameters

    def _parse_parameter_group(self) -> Optional[List[Parameter]]:
        """`a, b int` declares two int parameters: names share the type that follows them."""
        if not self._check(TokenType.IDENTIFIER):
            return None

        names = [self.token]
        self._advance()
        while self._check(TokenType.COMMA):
            self._advance()
            names.append(self._expect(TokenType.IDENTIFIER, ErrorCode.NO_IDENTIFIER))

        param_type = self._parse_type_annotation()
        if param_type is None:
            raise self._error(ErrorCode.NO_TYPE)
        return [Parameter(position=token.position, name=token.value, param_type=param_type) for token in names]

    def _parse_type_annotation(self) -> Optional[ValueType]:
        value_type = TYPE_ANNOTATIONS.get(self.token.type)
        if value_type is not None:
            self._advance()
        return value_type

    # --- Blocks and statements ---

    def _parse_block(self) -> Optional[Block]:
        if not self._check(TokenType.LEFT_BRACE):
            return None
        start = self.token.position
        self._advance()

        statements = []
        while not self._check(TokenType.RIGHT_BRACE):
            if self._check(TokenType.ETX):
                raise self._error(ErrorCode.EXPECTED_RIGHT_BRACE)
            statement = self._parse_statement()
            if statement is None:
                raise self._error(ErrorCode.UNKNOWN_STATEMENT, found=self.token.describe())
            statements.append(statement)
        self._advance()

        return Block(position=start, statements=statements)

    def _require_block(self) -> Block:
        block = self._parse_block()
        if block is None:
            raise self._error(ErrorCode.NO_BLOCK)
        return block

    def _parse_statement(self):
        for parse in (
            self._parse_variable_declaration,
            self._parse_assignment_or_call,
            self._parse_conditional_statement,
            self._parse_loop_statement,
            self._parse_switch_statement,
            self._parse_return_statement,
        ):
            statement = parse()
            if statement is not None:
                return statement
        return None

    def _parse_variable_declaration(self) -> Optional[VariableDeclaration]:
        declared_type = self._parse_type_annotation()
        if declared_type is None:
            return None

        name_token = self._expect(TokenType.IDENTIFIER, ErrorCode.NO_VARIABLE_IDENTIFIER)
        self._expect(TokenType.DECLARE, ErrorCode.MISSING_DECLARE, name=name_token.value)
        initializer = self._require_expression(after=f"':=' in the declaration of '{name_token.value}'")

        return VariableDeclaration(
            position=name_token.position,
            name=name_token.value,
            declared_type=declared_type,
            initializer=initializer,
        )

    def _parse_assignment_or_call(self):
        if not self._check(TokenType.IDENTIFIER):
            return None
        target = self._parse_identifier_or_call()

        if self._check(TokenType.ASSIGN):
            if isinstance(target, FunctionCall):
                raise self._error(ErrorCode.ASSIGNMENT_TO_FUNCTION_CALL, name=target.name)
            self._advance()
            value = self._require_expression(after=f"'=' in the assignment to '{target.name}'")
            return Assignment(position=target.position, name=target.name, value=value)

        if isinstance(target, FunctionCall):
            return target
        raise self._error(ErrorCode.EXPECTED_ASSIGNMENT, name=target.name)

    def _parse_conditional_statement(self) -> Optional[IfStatement]:
        if not self._check(TokenType.IF):
            return None
        start = self.token.position
        self._advance()

        condition = self._require_expression(after="'if'")
        then_block = self._require_block()
        else_block = None
        if self._check(TokenType.ELSE):
            self._advance()
            else_block = self._require_block()

        return IfStatement(position=start, condition=condition, then_block=then_block, else_block=else_block)

    def _parse_loop_statement(self) -> Optional[WhileStatement]:
        if not self._check(TokenType.WHILE):
            return None
        start = self.token.position
        self._advance()

        condition = self._require_expression(after="'while'")
        body = self._require_block()
        return WhileStatement(position=start, condition=condition, body=body)

    def _parse_return_statement(self) -> Optional[ReturnStatement]:
        if not self._check(TokenType.RETURN):
            return None
        start = self.token.position
        self._advance()
        # A value must start on the same line: a bare `return` ends at the newline.
        value = None if self.newline_before else self._parse_expression()
        return ReturnStatement(position=start, value=value)

    # --- Switch ---

    def _parse_switch_statement(self) -> Optional[SwitchStatement]:
        if not self._check(TokenType.SWITCH):
            return None
        start = self.token.position
        self._advance()

        variables = []
        expression = None
        declaration = self._parse_variable_declaration()
        if declaration is not None:
            variables.append(declaration)
            while self._check(TokenType.COMMA):
                self._advance()
                declaration = self._parse_variable_declaration()
                if declaration is None:
                    raise self._error(ErrorCode.BAD_SWITCH_DECLARATION)
                variables.append(declaration)
        else:
            # Optional: `switch { ... }` has neither guard variables nor a subject.
            expression = self._parse_expression()

        self._expect(TokenType.LEFT_BRACE, ErrorCode.NO_LEFT_BRACE_IN_SWITCH)

        case = self._parse_switch_case()
        if case is None:
            raise self._error(ErrorCode.NO_SWITCH_CASES)
        cases = [case]
        while self._check(TokenType.COMMA):
            self._advance()
            case = self._parse_switch_case()
            if case is None:
                raise self._error(ErrorCode.MISSING_SWITCH_CASE)
            cases.append(case)

        self._expect(TokenType.RIGHT_BRACE, ErrorCode.SWITCH_NOT_CLOSED)
        return SwitchStatement(position=start, variables=variables, expression=expression, cases=cases)

    def _parse_switch_case(self):
        start = self.token.position

        if self._check(TokenType.DEFAULT):
            self._advance()
            self._expect(TokenType.CASE_ARROW, ErrorCode.NO_ARROW)
            return DefaultCase(position=start, output=self._require_case_output())

        relation = RELATION_TOKENS.get(self.token.type)
        if relation is not None:
            self._advance()
            value = self._require_expression(after=f"'{relation}' in a switch case")
        else:
            value = self._parse_expression()
            if value is None:
                return None

        self._expect(TokenType.CASE_ARROW, ErrorCode.NO_ARROW)
        return SwitchCase(position=start, relation=relation, value=value, output=self._require_case_output())

    def _require_case_output(self):
        block = self._parse_block()
        if block is not None:
            return block
        return self._require_expression(after="'=>'")

    # --- Expressions ---
    # One method per precedence level, loosest first.

    def _parse_expression(self):
        return self._parse_left_associative(self._parse_conjunction_term, {TokenType.OR: BinaryOperator.OR})

    def _parse_conjunction_term(self):
        return self._parse_left_associative(self._parse_relation_term, {TokenType.AND: BinaryOperator.AND})

    def _parse_relation_term(self):
        left = self._parse_additive_term()
        if left is None:
            return None

        # Relations do not chain: `a < b < c` stops after `a < b`.
        operator = RELATION_TOKENS.get(self.token.type)
        if operator is None:
            return left
        position = self.token.position
        self._advance()
        right = self._require(self._parse_additive_term, after=f"'{operator}'")
        return BinaryExpression(position=position, operator=operator, left=left, right=right)

    def _parse_additive_term(self):
        return self._parse_left_associative(self._parse_multiplicative_term, ADDITIVE_TOKENS)

    def _parse_multiplicative_term(self):
        return self._parse_left_associative(self._parse_casted_term, MULTIPLICATIVE_TOKENS)

    def _parse_left_associative(self, parse_operand: Callable, operators: Dict[TokenType, BinaryOperator]):
        left = parse_operand()
        if left is None:
            return None

        while self.token.type in operators:
            operator = operators[self.token.type]
            position = self.token.position
            self._advance()
            right = self._require(parse_operand, after=f"'{operator}'")
            left = BinaryExpression(position=position, operator=operator, left=left, right=right)
        return left

    def _parse_casted_term(self):
        operand = self._parse_unary_term()
        if operand is None or not self._check(TokenType.AS):
            return operand

        position = self.token.position
        self._advance()
        target_type = self._parse_type_annotation()
        if target_type is None:
            raise self._error(ErrorCode.NO_TYPE_IN_CAST)
        return CastExpression(position=position, operand=operand, target_type=target_type)

    def _parse_unary_term(self):
        if not self._check(TokenType.MINUS, TokenType.NEGATE):
            return self._parse_term()

        operator_token = self.token
        self._advance()
        operand = self._require(self._parse_term, after=f"'{operator_token.type.value}'")
        return NegateExpression(position=operator_token.position, operand=operand)

    def _parse_term(self):
        token = self.token

        literal = LITERALS.get(token.type)
        if literal is not None:
            self._advance()
            return literal(position=token.position, value=token.value)

        if token.type == TokenType.IDENTIFIER:
            return self._parse_identifier_or_call()

        if token.type == TokenType.LEFT_PARENTHESIS:
            self._advance()
            expression = self._require_expression(after="'('")
            self._expect(TokenType.RIGHT_PARENTHESIS, ErrorCode.NO_RIGHT_PARENTHESIS)
            return expression

        return None

    def _parse_identifier_or_call(self):
        name_token = self.token
        name = name_token.value
        self._advance()

        if not self._check(TokenType.LEFT_PARENTHESIS):
            return Identifier(position=name_token.position, name=name)
        self._advance()

        arguments = []
        argument = self._parse_expression()
        if argument is not None:
            arguments.append(argument)
            while self._check(TokenType.COMMA):
                self._advance()
                arguments.append(self._require_expression(after=f"',' in the call of '{name}'"))

        self._expect(TokenType.RIGHT_PARENTHESIS, ErrorCode.FUNC_CALL_NOT_CLOSED, name=name)
        return FunctionCall(position=name_token.position, name=name, arguments=arguments)


def raise_error(error: FLError):
    raise error


def parse_program(lexer: Lexer, error_handler: ErrorHandler = raise_error) -> Optional[Program]:
    """
    The single entry point of the parsing stage: returns the Program, or None after the first
    error has been reported to `error_handler`.
    """
    return Parser(lexer, error_handler).parse_program()


def parse_source(
    source: str,
    limits: Optional[LexerLimits] = None,
    error_handler: ErrorHandler = raise_error,
) -> Optional[Program]:
    """Lexes and parses FL source text. With the default handler the first error is raised."""
    return parse_program(Lexer.from_string(source, limits), error_handler)
