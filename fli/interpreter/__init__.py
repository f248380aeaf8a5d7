from .interpreter import Interpreter
from .scope import CallStack, Scope, ScopeArena, ScopeVariable
