from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fli.data_structures import Position, ValueType, type_of
from fli.exceptions import ErrorCode, InternalInterpreterError, SemanticError

"""
The runtime environment of the interpreter: variable scopes and the per-function call counter.

Scopes live in a single arena and refer to their parent by index. A scope is opened when a block
or a call starts and closed when it ends, so the arena always behaves as a stack: closing a scope
discards it together with anything opened after it.
"""


@dataclass
class ScopeVariable:
    value: Any
    declared_type: ValueType
    position: Position


@dataclass
class Scope:
    parent: Optional[int]
    # Set only on the scope created when a function is entered. Lookups stop at such a scope.
    return_type: Optional[ValueType] = None
    variables: Dict[str, ScopeVariable] = field(default_factory=dict)

    @property
    def is_boundary(self) -> bool:
        return self.return_type is not None


class ScopeArena:
    def __init__(self):
        self.scopes: List[Scope] = []

    def __len__(self):
        return len(self.scopes)

    def open(self, parent: Optional[int], return_type: Optional[ValueType] = None) -> int:
        self.scopes.append(Scope(parent=parent, return_type=return_type))
        return len(self.scopes) - 1

    def close(self, index: int):
        if index >= len(self.scopes):
            raise InternalInterpreterError(f"Scope {index} is not open.")
        del self.scopes[index:]

    def lookup(self, index: int, name: str) -> Optional[ScopeVariable]:
        """Walks the parent chain from `index`, up to and including the first boundary scope."""
        current: Optional[int] = index
        while current is not None:
            scope = self.scopes[current]
            variable = scope.variables.get(name)
            if variable is not None:
                return variable
            if scope.is_boundary:
                return None
            current = scope.parent
        return None

    def declare(self, index: int, name: str, value: Any, declared_type: ValueType, position: Position):
        scope = self.scopes[index]
        earlier = scope.variables.get(name)
        if earlier is not None:
            raise SemanticError(
                ErrorCode.REDECLARED_VARIABLE,
                position,
                name=name,
                line=earlier.position.line,
                column=earlier.position.column,
            )
        _check_type(value, declared_type, position)
        scope.variables[name] = ScopeVariable(value, declared_type, position)

    def assign(self, index: int, name: str, value: Any, position: Position):
        variable = self.lookup(index, name)
        if variable is None:
            raise SemanticError(ErrorCode.UNDEFINED_VARIABLE, position, name=name)
        _check_type(value, variable.declared_type, position)
        variable.value = value

    def value_of(self, index: int, name: str, position: Position) -> Any:
        variable = self.lookup(index, name)
        if variable is None:
            raise SemanticError(ErrorCode.UNDEFINED_VARIABLE, position, name=name)
        return variable.value

    def return_type_of(self, index: int) -> ValueType:
        """The declared return type of the function whose body contains scope `index`."""
        current: Optional[int] = index
        while current is not None:
            scope = self.scopes[current]
            if scope.is_boundary:
                return scope.return_type
            current = scope.parent
        return ValueType.VOID


def _check_type(value: Any, expected: ValueType, position: Position):
    provided = type_of(value)
    if provided != expected:
        raise SemanticError(ErrorCode.TYPE_MISMATCH, position, provided=provided, expected=expected)


class CallStack:
    """Counts the active invocations of each function."""

    def __init__(self):
        self._active = Counter()

    def push(self, name: str):
        self._active[name] += 1

    def pop(self, name: str):
        self._active[name] -= 1
        if self._active[name] <= 0:
            del self._active[name]

    def depth(self, name: str) -> int:
        return self._active[name]
