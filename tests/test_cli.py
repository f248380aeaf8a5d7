import io
import json

import pytest

from fli.cli import convert_argument, main
from fli.lexer import TokenType


@pytest.fixture
def script(tmp_path):
    """Writes an FL source file into a temporary directory and returns its path."""

    def _write(source: str, name: str = "program.fl"):
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return path

    return _write


def run_cli(argv):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


# --- 1. Running Programs ---


def test_runs_a_file(script, capsys):
    main([str(script('main() { println("hello") }'))])
    assert capsys.readouterr().out == "hello\n"


def test_passes_arguments_to_the_entry_function(script, capsys):
    path = script("main(n int, s string) { println(s, n * 2) }")
    main([str(path), "21", "x"])
    assert capsys.readouterr().out == "x42\n"


def test_custom_entry(script, capsys):
    path = script('greet() { println("hi") } main() { println("main") }')
    main([str(path), "--entry", "greet"])
    assert capsys.readouterr().out == "hi\n"


def test_reads_from_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO('main() { println("piped") }'))
    main(["-"])
    assert capsys.readouterr().out == "piped\n"


def test_time_is_reported_on_stderr(script, capsys):
    main([str(script("main() { }")), "--time"])
    assert "Total Execution Time" in capsys.readouterr().err


# --- 2. Errors ---


def test_runtime_error_exits_with_located_message(script, capsys):
    path = script("main() { int x := 1 / 0 }")
    assert run_cli([str(path)]) == 1

    err = capsys.readouterr().err
    assert f"Error in '{path}' (Line: 1, Column: 21): Division by zero." in err


def test_syntax_error_exits(script, capsys):
    assert run_cli([str(script("main() { int x = 1 }"))]) == 1
    assert "Expected ':='" in capsys.readouterr().err


def test_stdin_errors_are_located_in_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("main() { missing() }"))
    assert run_cli(["-"]) == 1
    assert "Error in '<stdin>'" in capsys.readouterr().err


def test_wrong_extension_is_rejected(tmp_path, capsys):
    path = tmp_path / "program.txt"
    path.write_text("main() { }", encoding="utf-8")
    assert run_cli([str(path)]) == 1
    assert "must have the '.fl' extension" in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    assert run_cli([str(tmp_path / "missing.fl")]) == 1
    assert "not found" in capsys.readouterr().err


def test_invalid_limit(script, capsys):
    assert run_cli([str(script("main() { }")), "--max-recursion-depth", "0"]) == 1
    assert "Invalid limits" in capsys.readouterr().err


def test_limits_are_applied(script, capsys):
    assert run_cli([str(script("main() { int x := 1000 }")), "--int-limit", "999"]) == 1
    assert "Int value limit exceeded." in capsys.readouterr().err


# --- 3. Stages and Formatting ---


def test_token_stage_writes_json(script, capsys):
    path = script("main() { }")
    main([str(path), "-c", "1"])

    tokens = json.loads(path.with_name("program.tokens.json").read_text(encoding="utf-8"))
    assert tokens[0]["type"] == TokenType.IDENTIFIER.value
    assert tokens[0]["value"] == "main"
    assert tokens[-1]["type"] == TokenType.ETX.value
    assert "Stage '1 (Token Stream)' successful" in capsys.readouterr().out


def test_ast_stage_writes_json_without_running(script, capsys):
    path = script('main() { println("not run") }')
    main([str(path), "-c", "2"])

    ast = json.loads(path.with_name("program.ast.json").read_text(encoding="utf-8"))
    assert list(ast["functions"]) == ["main"]
    assert ast["functions"]["main"]["body"]["statements"][0]["kind"] == "function_call"
    assert "not run" not in capsys.readouterr().out


def test_format_prints_canonical_source(script, capsys):
    main([str(script("main() int { return 1+2 }")), "--format"])
    assert capsys.readouterr().out == "main() int {\n    return (1 + 2)\n}\n"


@pytest.mark.parametrize("text, expected", [("42", 42), ("-3", -3), ("+7", 7), ("1.5", "1.5"), ("abc", "abc")])
def test_convert_argument(text, expected):
    assert convert_argument(text) == expected
