"""
Lox - Diagnostics
Error sink shared by the lexer, parser and interpreter, plus the runtime
error type. The sink formats and records problems; deciding what to do
about them is up to the caller.
"""

import sys
from typing import List

from .lexer import Token, TokenType


class LoxRuntimeError(Exception):
    def __init__(self, token: Token, message: str):
        super().__init__(f"[RuntimeError] Line {token.line}: {message}")
        self.line = token.line
        self.token = token
        self.message = message


class ErrorReporter:
    def __init__(self, stream=None):
        self._stream = stream if stream is not None else sys.stderr
        self.had_error = False
        self.had_runtime_error = False
        self.messages: List[str] = []

    def error(self, line: int, message: str) -> None:
        """Static (lexical or syntax) error located by line."""
        self._report(line, "", message)

    def token_error(self, token: Token, message: str) -> None:
        """Static error located at a token."""
        if token.type == TokenType.EOF:
            self._report(token.line, " at end", message)
        else:
            self._report(token.line, f" at '{token.lexeme}'", message)

    def runtime_error(self, error) -> None:
        """Evaluation error; `error` carries the offending token."""
        self._emit(f"{error.message}\n[line {error.token.line}]")
        self.had_runtime_error = True

    def reset(self) -> None:
        # Runtime errors stay sticky for the exit code.
        self.had_error = False

    def _report(self, line: int, where: str, message: str) -> None:
        self._emit(f"[line {line}] Error{where}: {message}")
        self.had_error = True

    def _emit(self, text: str) -> None:
        self.messages.append(text)
        print(text, file=self._stream)
