import json
import os
from typing import Any, Dict, List, Optional, Sequence

from fli.config import ENTRY_POINT, InterpreterConfig, LexerLimits
from fli.exceptions import FLError
from fli.functions import FunctionRegistry
from fli.interpreter import Interpreter
from fli.lexer import Lexer
from fli.parser import Program, parse_program

from .utils import ArtifactEncoder

STDIN_PATH = "<stdin>"


class ExecutionPipeline:
    """
    Runs an FL source text through its stages: tokens, ast, run.
    Each stage's artifact is kept, and can be dumped to JSON next to the source file.
    """

    def __init__(
        self,
        source_content: str,
        file_path: Optional[str] = None,
        dump_stages: List[str] = [],
        stop_after_stage: Optional[str] = None,
        limits: Optional[LexerLimits] = None,
        config: Optional[InterpreterConfig] = None,
        registry: Optional[FunctionRegistry] = None,
        entry: str = ENTRY_POINT,
        arguments: Sequence[Any] = (),
    ):
        self.source_content = source_content
        self.file_path = os.path.abspath(file_path) if file_path else STDIN_PATH
        self.dump_stages = dump_stages
        self.stop_after_stage = stop_after_stage
        self.limits = limits or LexerLimits()
        self.config = config or InterpreterConfig()
        self.registry = registry
        self.entry = entry
        self.arguments = arguments
        self.artifacts: Dict[str, Any] = {}

    def run(self) -> Any:
        """
        Executes the pipeline stage by stage and returns the artifact of the last stage run.
        Any FLError leaves here located in the source file.
        """
        try:
            # --- Stage 1: Tokens (only when asked for) ---
            if self.stop_after_stage == "tokens" or "tokens" in self.dump_stages:
                tokens = self._run_stage("tokens", self._tokenize)
                if self.stop_after_stage == "tokens":
                    return tokens

            # --- Stage 2: Parsing ---
            program = self._run_stage("ast", self._parse)
            if self.stop_after_stage == "ast":
                return program

            # --- Stage 3: Execution ---
            return self._run_stage("run", self._execute, program)

        except FLError as e:
            if e.file_path is None:
                raise e.with_file_path(self.file_path) from None
            raise

    def _run_stage(self, name: str, func, *args) -> Any:
        result = func(*args)
        self.artifacts[name] = result
        if name in self.dump_stages:
            self.save_artifact(name, result)
        return result

    def _tokenize(self):
        return Lexer.from_string(self.source_content, self.limits).tokenize()

    def _parse(self) -> Program:
        errors: List[FLError] = []
        program = parse_program(Lexer.from_string(self.source_content, self.limits), errors.append)
        if program is None:
            raise errors[0]
        return program

    def _execute(self, program: Program) -> Any:
        interpreter = Interpreter(program, self.registry, self.config)
        return interpreter.run(self.entry, self.arguments)

    def save_artifact(self, name: str, data: Any):
        """Saves an intermediate artifact to a JSON file with a user-friendly name."""

        if self.file_path == STDIN_PATH:
            base_name = "stdin_output"
        else:
            base_name = os.path.splitext(self.file_path)[0]

        output_path = f"{base_name}.{name}.json"

        print(f"--- Saving artifact '{name}' to {output_path} ---")

        try:
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=False, cls=ArtifactEncoder)
        except OSError as e:
            print(f"Error: Could not save artifact '{name}': {e}")


def run_source(
    source_content: str,
    file_path: Optional[str] = None,
    dump_stages: List[str] = [],
    stop_after_stage: Optional[str] = None,
    **options,
):
    """High-level entry point for the execution pipeline."""
    pipeline = ExecutionPipeline(source_content, file_path, dump_stages, stop_after_stage, **options)
    return pipeline.run()
