"""
Prints an AST back as FL source.

The output is canonical rather than faithful: comments and original spacing are lost, every binary
expression and cast is parenthesized, and blocks are indented with four spaces. Parsing the output
again yields the same tree, positions aside.
"""

from decimal import Decimal
from typing import List

from fli.data_structures import ValueType
from fli.exceptions import InternalInterpreterError
from fli.lexer.tokens import STRING_ESCAPES
from fli.parser.core.classes import Block, FunctionDefinition, Program, SwitchStatement

INDENT = "    "
ESCAPED_CHARACTERS = {char: "\\" + escape for escape, char in STRING_ESCAPES.items()}


def format_float(value: float) -> str:
    """Positional notation only: the lexer has no exponent syntax."""
    text = format(Decimal(repr(value)), "f")
    return text if "." in text else text + ".0"


def format_string(value: str) -> str:
    return '"' + "".join(ESCAPED_CHARACTERS.get(char, char) for char in value) + '"'


class ASTPrinter:
    def __init__(self):
        self.expression_handlers = {
            "int_literal": lambda node: str(node.value),
            "float_literal": lambda node: format_float(node.value),
            "bool_literal": lambda node: "true" if node.value else "false",
            "string_literal": lambda node: format_string(node.value),
            "identifier": lambda node: node.name,
            "negate": self._format_negate,
            "cast": lambda node: f"({self.format_expression(node.operand)} as {node.target_type})",
            "binary": lambda node: f"({self.format_expression(node.left)} {node.operator} {self.format_expression(node.right)})",
            "function_call": self._format_call,
        }
        self.statement_handlers = {
            "variable_declaration": lambda node: [
                f"{node.declared_type} {node.name} := {self.format_expression(node.initializer)}"
            ],
            "assignment": lambda node: [f"{node.name} = {self.format_expression(node.value)}"],
            "if_statement": self._format_if,
            "while_statement": lambda node: self._with_block(
                f"while {self.format_expression(node.condition)} ", node.body
            ),
            "switch_statement": self._format_switch,
            "return_statement": lambda node: [
                "return" if node.value is None else f"return {self.format_expression(node.value)}"
            ],
            "function_call": lambda node: [self._format_call(node)],
        }

    def print_program(self, program: Program) -> str:
        return "\n\n".join(self.format_function(function) for function in program.functions.values()) + "\n"

    def format_function(self, function: FunctionDefinition) -> str:
        parameters = ", ".join(f"{p.name} {p.param_type}" for p in function.parameters)
        header = f"{function.name}({parameters}) "
        if function.return_type != ValueType.VOID:
            header += f"{function.return_type} "
        return "\n".join(self._with_block(header, function.body))

    def format_expression(self, node) -> str:
        handler = self.expression_handlers.get(node.kind)
        if handler is None:
            raise InternalInterpreterError(f"No printer for AST node kind '{node.kind}'.")
        return handler(node)

    def format_statement(self, node) -> List[str]:
        """The lines of a statement, indented relative to the statement itself."""
        handler = self.statement_handlers.get(node.kind)
        if handler is None:
            raise InternalInterpreterError(f"No printer for AST node kind '{node.kind}'.")
        return handler(node)

    # --- Helpers ---

    def _format_negate(self, node) -> str:
        operand = self.format_expression(node.operand)
        # A negation applies to a single term, so a nested negation needs parentheses.
        if node.operand.kind == "negate":
            operand = f"({operand})"
        return f"-{operand}"

    def _format_call(self, node) -> str:
        return f"{node.name}({', '.join(self.format_expression(arg) for arg in node.arguments)})"

    def _format_block(self, block: Block) -> List[str]:
        """The lines of a block, from the line holding '{' to the closing '}'."""
        lines = ["{"]
        for statement in block.statements:
            lines.extend(INDENT + line for line in self.format_statement(statement))
        lines.append("}")
        return lines

    def _with_block(self, prefix: str, block: Block) -> List[str]:
        lines = self._format_block(block)
        lines[0] = prefix + lines[0]
        return lines

    def _format_if(self, node) -> List[str]:
        lines = self._with_block(f"if {self.format_expression(node.condition)} ", node.then_block)
        if node.else_block is not None:
            else_lines = self._format_block(node.else_block)
            lines[-1] += " else " + else_lines[0]
            lines.extend(else_lines[1:])
        return lines

    def _format_switch(self, node: SwitchStatement) -> List[str]:
        if node.variables:
            guard = ", ".join(
                f"{v.declared_type} {v.name} := {self.format_expression(v.initializer)}" for v in node.variables
            )
            header = f"switch {guard} {{"
        elif node.expression is not None:
            header = f"switch {self.format_expression(node.expression)} {{"
        else:
            header = "switch {"

        lines = [header]
        for index, case in enumerate(node.cases):
            if case.kind == "default_case":
                label = "default"
            elif case.relation is not None:
                label = f"{case.relation} {self.format_expression(case.value)}"
            else:
                label = self.format_expression(case.value)

            if case.output.kind == "block":
                case_lines = self._with_block(f"{label} => ", case.output)
            else:
                case_lines = [f"{label} => {self.format_expression(case.output)}"]
            if index < len(node.cases) - 1:
                case_lines[-1] += ","
            lines.extend(INDENT + line for line in case_lines)

        lines.append("}")
        return lines
