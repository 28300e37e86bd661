"""
Lox - Environment
The single flat name -> value store the interpreter reads and mutates.
"""

from typing import Any, Dict

from .lexer import Token
from .diagnostics import LoxRuntimeError


class Environment:
    def __init__(self):
        self._values: Dict[str, Any] = {}

    def define(self, name: str, value: Any) -> None:
        # Redefinition overwrites the previous binding.
        self._values[name] = value

    def get(self, name: Token) -> Any:
        if name.lexeme in self._values:
            return self._values[name.lexeme]
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name: Token, value: Any) -> None:
        if name.lexeme not in self._values:
            raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")
        self._values[name.lexeme] = value

    def __contains__(self, name: str) -> bool:
        return name in self._values
