"""
Signatures for the embedded functions every FL program can call.
Output functions are built per registry so they can be pointed at any text stream.
"""

import math
import sys
from typing import Callable, Optional, TextIO

from fli.data_structures import ValueType
from fli.values import render

SIGNATURES = {
    "modulo": {
        "variadic": False,
        "arg_types": [ValueType.INT, ValueType.INT],
        "return_type": ValueType.BOOL,
        "func": lambda args: args[0] % args[1] == 0,
        "doc": {
            "summary": "Tests whether the first number is divisible by the second.",
            "params": [{"name": "value", "desc": "The dividend."}, {"name": "divisor", "desc": "The divisor, must not be 0."}],
            "returns": "true when the remainder is zero.",
        },
    },
    "sqrt": {
        "variadic": False,
        "arg_types": [ValueType.FLOAT],
        "return_type": ValueType.FLOAT,
        "func": lambda args: math.sqrt(args[0]),
        "doc": {
            "summary": "Calculates the square root of a number.",
            "params": [{"name": "value", "desc": "A non-negative float."}],
            "returns": "The square root as a float.",
        },
    },
    "power": {
        "variadic": False,
        "arg_types": [ValueType.FLOAT, ValueType.FLOAT],
        "return_type": ValueType.FLOAT,
        "func": lambda args: math.pow(args[0], args[1]),
        "doc": {
            "summary": "Raises a number to a power.",
            "params": [{"name": "base", "desc": "The base."}, {"name": "exponent", "desc": "The exponent."}],
            "returns": "base raised to exponent, as a float.",
        },
    },
}


def output_signatures(output: Optional[TextIO] = None) -> dict:
    """
    Builds `print` and `println`. Without an explicit stream they write to whatever `sys.stdout`
    is at the moment of the call.
    """

    def write(text: str):
        (output if output is not None else sys.stdout).write(text)

    def concatenate(args) -> str:
        return "".join(render(arg) for arg in args)

    return {
        "print": {
            "variadic": True,
            "arg_types": [],
            "return_type": ValueType.VOID,
            "func": _void(lambda args: write(concatenate(args))),
            "doc": {
                "summary": "Writes its arguments, rendered as text, with no separator.",
                "params": [{"name": "values...", "desc": "Any number of values of any type."}],
                "returns": "Nothing.",
            },
        },
        "println": {
            "variadic": True,
            "arg_types": [],
            "return_type": ValueType.VOID,
            "func": _void(lambda args: write(concatenate(args) + "\n")),
            "doc": {
                "summary": "Writes its arguments, rendered as text, followed by a newline.",
                "params": [{"name": "values...", "desc": "Any number of values of any type."}],
                "returns": "Nothing.",
            },
        },
    }


def _void(func: Callable) -> Callable:
    def call(args):
        func(args)
        return None

    return call
