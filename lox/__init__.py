"""
Lox - a small dynamically-typed scripting language.
Scanner, recursive descent parser and tree-walking interpreter.
"""

from .lexer import Token, TokenType, Scanner, tokenize
from .parser import Parser, ParseError
from .environment import Environment
from .interpreter import Interpreter, stringify
from .diagnostics import ErrorReporter, LoxRuntimeError
from .runner import run_source, run_file

__version__ = "0.1.0"
