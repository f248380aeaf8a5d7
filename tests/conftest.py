import io

import pytest

from fli.config import InterpreterConfig
from fli.exceptions import ErrorCode, FLError
from fli.functions import build_default_registry
from fli.interpreter import Interpreter
from fli.parser import parse_source


@pytest.fixture
def run_program():
    """Parses and runs a program, returning (result of the entry function, printed output)."""

    def _run(source: str, entry: str = "main", arguments=(), max_recursion_depth: int = 200):
        output = io.StringIO()
        interpreter = Interpreter(
            parse_source(source),
            build_default_registry(output),
            InterpreterConfig(max_recursion_depth=max_recursion_depth),
        )
        result = interpreter.run(entry, arguments)
        return result, output.getvalue()

    return _run


@pytest.fixture
def run_with_error(run_program):
    """Asserts that running a program raises an FLError with the expected code, and returns it."""

    def _run(source: str, expected_code: ErrorCode, **kwargs) -> FLError:
        with pytest.raises(FLError) as excinfo:
            run_program(source, **kwargs)
        assert excinfo.value.code == expected_code
        return excinfo.value

    return _run
