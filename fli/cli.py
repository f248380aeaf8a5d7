import argparse
import os
import sys
import time

from pydantic import ValidationError

from .config import (
    ENTRY_POINT,
    IDENTIFIER_LIMIT,
    INT_LIMIT,
    MAX_RECURSION_DEPTH,
    SOURCE_FILE_EXTENSION,
    STRING_LIMIT,
    InterpreterConfig,
    LexerLimits,
)
from .exceptions import ErrorCode, FLError
from .parser import parse_source
from .pipeline import run_source
from .printer import ASTPrinter
from .utils import TerminalColors
from .values import INT_TEXT

# This provides a single source of truth for stage names and their order.
STAGE_MAP = {
    "1": ("tokens", "Token Stream"),
    "2": ("ast", "Abstract Syntax Tree"),
}


def convert_argument(text: str):
    """Command-line arguments that read as an integer are passed as int, any other as string."""
    return int(text) if INT_TEXT.fullmatch(text) else text


def read_source(input_file: str) -> str:
    if input_file == "-":
        return sys.stdin.read()

    extension = os.path.splitext(input_file)[1]
    if extension != SOURCE_FILE_EXTENSION:
        raise FLError(ErrorCode.INVALID_FILE_EXTENSION, path=input_file, extension=SOURCE_FILE_EXTENSION)
    with open(os.path.abspath(input_file), "r", encoding="utf-8") as f:
        return f.read()


def build_parser() -> argparse.ArgumentParser:
    stage_help_text = "Stop after a stage and save its artifact as JSON. "
    for key, (name, desc) in STAGE_MAP.items():
        stage_help_text += f"'{key}' for {desc}. "

    parser = argparse.ArgumentParser(description="Run an FL program.")
    parser.add_argument("input_file", help=f"The path to the {SOURCE_FILE_EXTENSION} file, or '-' to read from stdin.")
    parser.add_argument("arguments", nargs="*", help="Arguments passed to the entry function.")
    parser.add_argument("-c", "--stage", type=str, choices=STAGE_MAP.keys(), help=stage_help_text)
    parser.add_argument("--entry", default=ENTRY_POINT, help="The function to call (default: %(default)s).")
    parser.add_argument("--format", action="store_true", help="Print the program in canonical form instead of running it.")
    parser.add_argument("--time", action="store_true", help="Report the total execution time on stderr.")
    parser.add_argument("--identifier-limit", type=int, default=IDENTIFIER_LIMIT)
    parser.add_argument("--string-limit", type=int, default=STRING_LIMIT)
    parser.add_argument("--int-limit", type=int, default=INT_LIMIT)
    parser.add_argument("--max-recursion-depth", type=int, default=MAX_RECURSION_DEPTH)
    return parser


def main(argv=None):
    start_time = time.perf_counter()
    argv = sys.argv[1:] if argv is None else argv

    if "--lsp" in argv:
        from .server import start_server

        start_server()
        return

    args = build_parser().parse_args(argv)
    script_path_for_display = "stdin" if args.input_file == "-" else args.input_file

    try:
        limits = LexerLimits(
            identifier_limit=args.identifier_limit,
            string_limit=args.string_limit,
            int_limit=args.int_limit,
        )
        config = InterpreterConfig(max_recursion_depth=args.max_recursion_depth)
        script_content = read_source(args.input_file)
        file_path = None if args.input_file == "-" else args.input_file

        if args.format:
            program = parse_source(script_content, limits)
            print(ASTPrinter().print_program(program), end="")
            return

        stop_after_stage = None
        if args.stage:
            stop_after_stage, stage_desc = STAGE_MAP[args.stage]

        run_source(
            script_content,
            file_path=file_path,
            dump_stages=[stop_after_stage] if stop_after_stage else [],
            stop_after_stage=stop_after_stage,
            limits=limits,
            config=config,
            entry=args.entry,
            arguments=[convert_argument(a) for a in args.arguments],
        )

        if stop_after_stage:
            print(f"{TerminalColors.GREEN}--- Stage '{args.stage} ({stage_desc})' successful ---{TerminalColors.RESET}")

    # --- Error Handling ---
    except FLError as e:
        print(f"{TerminalColors.RED}--- ERROR ---\n{e}{TerminalColors.RESET}", file=sys.stderr)
        sys.exit(1)
    except FileNotFoundError:
        print(
            f"{TerminalColors.RED}ERROR: Script file '{script_path_for_display}' not found.{TerminalColors.RESET}",
            file=sys.stderr,
        )
        sys.exit(1)
    except ValidationError as e:
        print(f"{TerminalColors.RED}ERROR: Invalid limits.\n{e}{TerminalColors.RESET}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"{TerminalColors.RED}--- UNEXPECTED INTERPRETER ERROR ---{TerminalColors.RESET}", file=sys.stderr)
        print("This may be a bug in the interpreter. Please report it.", file=sys.stderr)
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)

    finally:
        if args.time:
            duration = time.perf_counter() - start_time
            print(f"{TerminalColors.CYAN}--- Total Execution Time: {duration:.4f} seconds ---{TerminalColors.RESET}", file=sys.stderr)


if __name__ == "__main__":
    main()
