"""
Custom exception types for the FL interpreter.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from fli.data_structures import Position


class ErrorCode(Enum):

    # --- Lexical Errors ---
    INT_CAPACITY_EXCEEDED = "Int value limit exceeded."
    FLOAT_CAPACITY_EXCEEDED = "Float decimal value limit exceeded."
    IDENTIFIER_CAPACITY_EXCEEDED = "Identifier capacity exceeded (limit is {limit} characters)."
    STRING_CAPACITY_EXCEEDED = "String capacity exceeded (limit is {limit} characters)."
    STRING_NOT_CLOSED = 'String not closed, perhaps you forgot \'"\'.'
    INVALID_ESCAPING = "Invalid escape sequence '\\{char}'."
    NONE_TOKEN_MATCH = "No token matches the source at character '{char}'."

    # --- Syntax Errors ---
    FUNC_DEF_NO_PARENTHESIS = "Syntax Error: Expected '{expected}' in the definition of function '{name}'."
    FUNCTION_REDEFINITION = "Syntax Error: Function '{name}' is already defined at (Line: {line}, Column: {column})."
    NO_BLOCK = "Syntax Error: Expected a block starting with '{{'."
    EXPECTED_RIGHT_BRACE = "Syntax Error: Expected '}}' to close the block."
    NO_IDENTIFIER = "Syntax Error: Identifier required after ','."
    NO_VARIABLE_IDENTIFIER = "Syntax Error: No identifier in variable declaration."
    NO_TYPE = "Syntax Error: No type annotation for parameter group."
    NO_PARAMETERS_AFTER_COMMA = "Syntax Error: No parameters defined after ','."
    NO_TYPE_IN_CAST = "Syntax Error: No type annotation after 'as'."
    MISSING_DECLARE = "Syntax Error: Expected ':=' after '{name}' in variable declaration."
    UNKNOWN_STATEMENT = "Syntax Error: Unknown statement starting with {found}."
    EXPECTED_ASSIGNMENT = "Syntax Error: Expected '=' or a call after identifier '{name}'."
    ASSIGNMENT_TO_FUNCTION_CALL = "Syntax Error: Cannot assign a value to the call of '{name}'."
    FUNC_CALL_NOT_CLOSED = "Syntax Error: Call of '{name}' is not closed, perhaps you forgot ')'."
    MISSING_EXPRESSION = "Syntax Error: Missing expression after {after}."
    NO_RIGHT_PARENTHESIS = "Syntax Error: Expected ')' to close the nested expression."
    NO_LEFT_BRACE_IN_SWITCH = "Syntax Error: Expected '{{' to open the switch cases."
    NO_ARROW = "Syntax Error: Expected '=>' in switch case."
    SWITCH_NOT_CLOSED = "Syntax Error: Switch statement not closed, expected '}}'."
    MISSING_SWITCH_CASE = "Syntax Error: Missing switch case, perhaps you have ',' after the last case."
    NO_SWITCH_CASES = "Syntax Error: No switch cases defined."
    BAD_SWITCH_DECLARATION = "Syntax Error: Expected a variable declaration after ',' in switch statement."
    NO_ETX_TOKEN = "Syntax Error: Unexpected {found} after the last function definition."
    NESTING_TOO_DEEP = "Syntax Error: Expressions or blocks are nested too deeply."

    # --- Semantic & Runtime Errors ---
    UNDEFINED_VARIABLE = "Variable '{name}' is not defined."
    UNDEFINED_FUNCTION = "Function '{name}' is not defined."
    REDECLARED_VARIABLE = "Variable '{name}' is already declared in this scope at (Line: {line}, Column: {column})."
    REDEFINE_EMBEDDED_FUNCTION = "Cannot redefine embedded function '{name}'."
    TYPE_MISMATCH = "Cannot use a value of type '{provided}' where '{expected}' is expected."
    OPERATOR_TYPE_MISMATCH = "The '{op}' operator cannot be used with '{left_type}' and '{right_type}'."
    LOGICAL_OPERATOR_TYPE_MISMATCH = "The '{op}' operator can only be used with bool values, but got a '{provided}'."
    INVALID_NEGATE = "Cannot negate a value of type '{provided}'."
    WRONG_ARGUMENT_COUNT = "Function '{name}' expects {expected} argument(s), but got {provided}."
    ARGUMENT_TYPE_MISMATCH = "Argument {arg_num} of '{name}' expects a '{expected}', but got a '{provided}'."
    INVALID_CAST = "Cannot cast {value} of type '{provided}' to '{target}'."
    INVALID_RETURN_TYPE = "Invalid return type '{provided}', expected '{expected}'."
    MISSING_RETURN = "Function '{name}' must return a value of type '{expected}'."
    DIVISION_BY_ZERO = "Division by zero."
    NON_BOOLEAN_CONDITION = "The condition of '{construct}' must be a bool, but got a '{provided}'."
    MAX_RECURSION_DEPTH_EXCEEDED = "Maximum recursion depth of {depth} exceeded in function '{name}'."
    MULTIPLE_DEFAULT_CASES = "A switch statement can have at most one default case."
    UNKNOWN_CASE_SHAPE = "Invalid switch case: {details}."
    EMBEDDED_FUNCTION_FAILED = "Embedded function '{name}' failed: {details}"

    # --- Driver Errors ---
    INVALID_FILE_EXTENSION = "Source file '{path}' must have the '{extension}' extension."


class FLError(Exception):
    def __init__(
        self,
        code: ErrorCode,
        position: Optional["Position"] = None,
        file_path: Optional[str] = None,
        **kwargs,
    ):
        self.code = code
        self.position = position
        self.file_path = file_path
        self.details = kwargs

        # The format string (e.g., "Variable '{name}' is not defined.") is populated
        # with any extra data it needs from kwargs.
        core_message = code.value.format(**kwargs)

        location_prefix = ""
        if position and file_path:
            location_prefix = f"Error in '{file_path}' (Line: {position.line}, Column: {position.column}): "
        elif position:
            location_prefix = f"Error (Line: {position.line}, Column: {position.column}): "
        elif file_path:
            location_prefix = f"Error in '{file_path}': "

        self.message = location_prefix + core_message

        super().__init__(self.message)

    def with_file_path(self, file_path: str) -> "FLError":
        """Returns the same error, located in `file_path`."""
        return type(self)(self.code, self.position, file_path, **self.details)

    @property
    def line(self) -> int:
        return self.position.line if self.position else 0

    @property
    def column(self) -> int:
        return self.position.column if self.position else 0


class LexerError(FLError):
    """Raised by the lexer when the source cannot be split into tokens."""


class ParseError(FLError):
    """Raised by the parser when the token sequence does not match the grammar."""


class SemanticError(FLError):
    """Raised by the interpreter when the program fails at runtime."""


class InternalInterpreterError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
