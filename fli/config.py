"""
Static configuration data for the FL interpreter.
This includes the lexical capacity limits, the recursion guard and the source file extension.
"""

import sys

from pydantic import BaseModel, PositiveInt

SOURCE_FILE_EXTENSION = ".fl"
ENTRY_POINT = "main"

IDENTIFIER_LIMIT = 500
STRING_LIMIT = 1000
INT_LIMIT = sys.maxsize
MAX_RECURSION_DEPTH = 200

# Python frames consumed by one call of the language, with headroom for nested blocks and
# expressions. Used to size the host recursion limit from MAX_RECURSION_DEPTH.
HOST_FRAMES_PER_CALL = 50


class LexerLimits(BaseModel):
    """Capacity limits injected into the lexer."""

    identifier_limit: PositiveInt = IDENTIFIER_LIMIT
    string_limit: PositiveInt = STRING_LIMIT
    int_limit: PositiveInt = INT_LIMIT


class InterpreterConfig(BaseModel):
    max_recursion_depth: PositiveInt = MAX_RECURSION_DEPTH


def ensure_host_recursion_limit(max_recursion_depth: int = MAX_RECURSION_DEPTH):
    """Raises Python's recursion limit so that `max_recursion_depth` nested calls of the language fit."""
    needed = max_recursion_depth * HOST_FRAMES_PER_CALL + 1000
    if sys.getrecursionlimit() < needed:
        sys.setrecursionlimit(needed)
