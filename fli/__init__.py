"""
The FL language: scanner, lexer, recursive-descent parser and tree-walking interpreter.
"""

__version__ = "1.0.0"
