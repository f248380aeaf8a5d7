"""
A language server for FL source files (install the `lsp` extra).

It publishes the first lexical or syntax error of a document as a diagnostic, shows signatures on
hover, jumps to function definitions and completes keywords and function names.
"""

import os
from pathlib import Path
from typing import List, Optional
from urllib.parse import unquote, urlparse

from lsprotocol.types import (
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DEFINITION,
    TEXT_DOCUMENT_HOVER,
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    Diagnostic,
    DiagnosticSeverity,
    Hover,
    InsertTextFormat,
    Location,
    MarkupContent,
    MarkupKind,
    Position,
    Range,
)
from pygls.server import LanguageServer
from pygls.workspace import Document

from fli.exceptions import ErrorCode, FLError, SemanticError
from fli.functions import FunctionRegistry, build_default_registry
from fli.lexer.tokens import KEYWORDS
from fli.parser import Program, parse_source

server = LanguageServer("fl-language-server", "v1")
registry = build_default_registry()


def _uri_to_path(uri: str) -> str:
    """Converts a file URI to a platform-specific file path."""
    parsed = urlparse(uri)
    return os.path.abspath(unquote(parsed.path))


def _error_range(error: FLError) -> Range:
    # Language-server positions are 0-based, FL positions 1-based.
    line = error.line - 1 if error.line > 0 else 0
    column = error.column - 1 if error.column > 0 else 0
    return Range(start=Position(line=line, character=column), end=Position(line=line, character=column + 1))


def _build_diagnostics(source: str, functions: FunctionRegistry = registry) -> List[Diagnostic]:
    """Parses a document and reports its first error, plus any function that shadows an embedded one."""
    errors: List[FLError] = []
    program = parse_source(source, error_handler=errors.append)
    if program is not None:
        for name, function in program.functions.items():
            if name in functions:
                errors.append(SemanticError(ErrorCode.REDEFINE_EMBEDDED_FUNCTION, function.position, name=name))

    return [
        Diagnostic(range=_error_range(e), message=str(e), severity=DiagnosticSeverity.Error, source="fli")
        for e in errors
    ]


def _validate(ls, params):
    text_doc = ls.workspace.get_document(params.text_document.uri)
    ls.publish_diagnostics(params.text_document.uri, _build_diagnostics(text_doc.source))


@server.feature("textDocument/didOpen")
def did_open(ls, params):
    _validate(ls, params)


@server.feature("textDocument/didChange")
def did_change(ls, params):
    _validate(ls, params)


def _get_word_at_position(document: Document, position: Position) -> str:
    line = document.lines[position.line]
    start, end = position.character, position.character
    while start > 0 and (line[start - 1].isalnum() or line[start - 1] == "_"):
        start -= 1
    while end < len(line) and (line[end].isalnum() or line[end] == "_"):
        end += 1
    return line[start:end]


def _get_script_analysis(source: str) -> Optional[Program]:
    """Returns the parsed program, or None when the source has a lexical or syntax error."""
    return parse_source(source, error_handler=lambda error: None)


def _hover_content(word: str, program: Optional[Program], functions: FunctionRegistry = registry) -> Optional[str]:
    embedded = functions.get(word)
    if embedded is not None:
        contents = [f"```fl\n(embedded function) {embedded.signature()}\n```"]
        if embedded.doc:
            contents.extend(["---", f"**{embedded.doc.get('summary', '')}**"])
            for param in embedded.doc.get("params", []):
                contents.append(f"- `{param['name']}`: {param['desc']}")
            if embedded.doc.get("returns"):
                contents.append(f"\n**Returns**: {embedded.doc['returns']}")
        return "\n".join(contents)

    if program is not None and word in program.functions:
        function = program.functions[word]
        params_str = ", ".join(f"{p.name} {p.param_type}" for p in function.parameters)
        signature = f"(user defined function) {function.name}({params_str}) {function.return_type}"
        return f"```fl\n{signature}\n```"

    return None


@server.feature(TEXT_DOCUMENT_HOVER)
def hover(params):
    document = server.workspace.get_document(params.text_document.uri)
    word = _get_word_at_position(document, params.position)
    if not word:
        return None

    content = _hover_content(word, _get_script_analysis(document.source))
    if content is None:
        return None
    return Hover(contents=MarkupContent(kind=MarkupKind.Markdown, value=content))


@server.feature(TEXT_DOCUMENT_DEFINITION)
def definition(params):
    document = server.workspace.get_document(params.text_document.uri)
    word = _get_word_at_position(document, params.position)
    program = _get_script_analysis(document.source)
    if not word or program is None or word not in program.functions:
        return None

    position = program.functions[word].position
    start = Position(line=position.line - 1, character=position.column - 1)
    end = Position(line=position.line - 1, character=position.column - 1 + len(word))
    uri = Path(_uri_to_path(params.text_document.uri)).as_uri()
    return Location(uri=uri, range=Range(start=start, end=end))


def _create_function_snippet(name: str, param_names: List[str]) -> str:
    """Creates an LSP snippet string from a function name and parameter list."""
    placeholders = [f"${{{i+1}:{p}}}" for i, p in enumerate(param_names)]
    return f"{name}({', '.join(placeholders)})" if placeholders else f"{name}()"


def _completion_items(program: Optional[Program], functions: FunctionRegistry = registry) -> List[CompletionItem]:
    items = [CompletionItem(label=keyword, kind=CompletionItemKind.Keyword) for keyword in KEYWORDS]
    items.extend(CompletionItem(label=constant, kind=CompletionItemKind.Constant) for constant in ("true", "false"))

    for embedded in functions:
        param_names = [] if embedded.variadic else [p["name"] for p in embedded.doc.get("params", [])]
        items.append(
            CompletionItem(
                label=embedded.name,
                kind=CompletionItemKind.Function,
                detail="Embedded Function",
                documentation=embedded.doc.get("summary"),
                insert_text=_create_function_snippet(embedded.name, param_names),
                insert_text_format=InsertTextFormat.Snippet,
            )
        )

    if program is not None:
        for name, function in program.functions.items():
            items.append(
                CompletionItem(
                    label=name,
                    kind=CompletionItemKind.Function,
                    detail="User-Defined Function",
                    insert_text=_create_function_snippet(name, [p.name for p in function.parameters]),
                    insert_text_format=InsertTextFormat.Snippet,
                )
            )
    return items


@server.feature(TEXT_DOCUMENT_COMPLETION)
def completions(params):
    document = server.workspace.get_document(params.text_document.uri)
    program = _get_script_analysis(document.source)
    return CompletionList(items=_completion_items(program), is_incomplete=False)


def start_server():
    server.start_io()


if __name__ == "__main__":
    start_server()
