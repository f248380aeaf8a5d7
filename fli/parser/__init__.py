from .core.classes import Program
from .parser import Parser, parse_program, parse_source, raise_error
