from .lexer import Lexer
from .scanner import EOF, Scanner
from .tokens import Token, TokenType
