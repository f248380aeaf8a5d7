"""
The embedded-function registry: natively implemented functions callable from FL programs with the
same syntax as user functions. A registry is a plain value handed to the interpreter.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, TextIO

from fli.data_structures import ValueType

from .core import SIGNATURES, output_signatures


@dataclass(frozen=True)
class EmbeddedFunction:
    name: str
    func: Callable[[List[Any]], Any]
    param_types: List[ValueType] = field(default_factory=list)
    variadic: bool = False
    return_type: ValueType = ValueType.VOID
    doc: Dict[str, Any] = field(default_factory=dict)

    @property
    def arity(self) -> Optional[int]:
        """The fixed number of arguments, or None for a variadic function."""
        return None if self.variadic else len(self.param_types)

    def signature(self) -> str:
        params = "..." if self.variadic else ", ".join(str(t) for t in self.param_types)
        return f"{self.name}({params}) {self.return_type}"

    @classmethod
    def from_signature(cls, name: str, signature: dict) -> "EmbeddedFunction":
        return cls(
            name=name,
            func=signature["func"],
            param_types=list(signature["arg_types"]),
            variadic=signature["variadic"],
            return_type=signature["return_type"],
            doc=signature.get("doc", {}),
        )


class FunctionRegistry:
    def __init__(self, functions: Optional[List[EmbeddedFunction]] = None):
        self._functions: Dict[str, EmbeddedFunction] = {}
        for function in functions or []:
            self.register(function)

    def register(self, function: EmbeddedFunction):
        self._functions[function.name] = function

    def get(self, name: str) -> Optional[EmbeddedFunction]:
        return self._functions.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._functions

    def __iter__(self) -> Iterator[EmbeddedFunction]:
        return iter(self._functions.values())

    def __len__(self):
        return len(self._functions)


def build_default_registry(output: Optional[TextIO] = None) -> FunctionRegistry:
    """The baseline registry: print, println, modulo, sqrt and power."""
    signatures = {**output_signatures(output), **SIGNATURES}
    return FunctionRegistry([EmbeddedFunction.from_signature(name, sig) for name, sig in signatures.items()])
