"""
Lox - Lexer
Scans Lox source code into a flat token stream.
"""

import re
from dataclasses import dataclass
from typing import Any, List
from enum import Enum, auto


class TokenType(Enum):
    # Single-character punctuation
    LEFT_PAREN    = auto()   # (
    RIGHT_PAREN   = auto()   # )
    LEFT_BRACE    = auto()   # {
    RIGHT_BRACE   = auto()   # }
    COMMA         = auto()   # ,
    DOT           = auto()   # .
    MINUS         = auto()   # -
    PLUS          = auto()   # +
    SEMICOLON     = auto()   # ;
    SLASH         = auto()   # /
    STAR          = auto()   # *
    QUESTION      = auto()   # ?
    COLON         = auto()   # :
    # One or two character operators
    BANG          = auto()   # !
    BANG_EQUAL    = auto()   # !=
    EQUAL         = auto()   # =
    EQUAL_EQUAL   = auto()   # ==
    GREATER       = auto()   # >
    GREATER_EQUAL = auto()   # >=
    LESS          = auto()   # <
    LESS_EQUAL    = auto()   # <=
    # Literals
    IDENTIFIER    = auto()
    STRING        = auto()
    NUMBER        = auto()
    # Keywords
    AND           = auto()
    CLASS         = auto()
    ELSE          = auto()
    FALSE         = auto()
    FUN           = auto()
    FOR           = auto()
    IF            = auto()
    NIL           = auto()
    OR            = auto()
    PRINT         = auto()
    RETURN        = auto()
    SUPER         = auto()
    THIS          = auto()
    TRUE          = auto()
    VAR           = auto()
    WHILE         = auto()
    # Sentinel
    EOF           = auto()


KEYWORDS = {
    "and":    TokenType.AND,
    "class":  TokenType.CLASS,
    "else":   TokenType.ELSE,
    "false":  TokenType.FALSE,
    "fun":    TokenType.FUN,
    "for":    TokenType.FOR,
    "if":     TokenType.IF,
    "nil":    TokenType.NIL,
    "or":     TokenType.OR,
    "print":  TokenType.PRINT,
    "return": TokenType.RETURN,
    "super":  TokenType.SUPER,
    "this":   TokenType.THIS,
    "true":   TokenType.TRUE,
    "var":    TokenType.VAR,
    "while":  TokenType.WHILE,
}


@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    literal: Any
    line: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.lexeme!r}, line={self.line})"


_SINGLE = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '*': TokenType.STAR,
    '?': TokenType.QUESTION,
    ':': TokenType.COLON,
}

# Operator -> (type alone, type when followed by '=')
_WITH_EQUAL = {
    '!': (TokenType.BANG,    TokenType.BANG_EQUAL),
    '=': (TokenType.EQUAL,   TokenType.EQUAL_EQUAL),
    '>': (TokenType.GREATER, TokenType.GREATER_EQUAL),
    '<': (TokenType.LESS,    TokenType.LESS_EQUAL),
}

_WHITESPACE_RE = re.compile(r'[ \t\r]+')
_COMMENT_RE    = re.compile(r'//[^\n]*')
_NUMBER_RE     = re.compile(r'\d+(?:\.\d+)?', re.ASCII)
_IDENTIFIER_RE = re.compile(r'[A-Za-z_][A-Za-z0-9_]*', re.ASCII)


class Scanner:
    """
    Single left-to-right pass over the source. Lexical errors go to the
    reporter and scanning carries on with the next character.
    """

    def __init__(self, source: str, reporter=None):
        if reporter is None:
            from .diagnostics import ErrorReporter  # diagnostics imports this module
            reporter = ErrorReporter()
        self._source = source
        self.reporter = reporter
        self._tokens: List[Token] = []
        self._start = 0
        self._pos = 0
        self._line = 1

    def scan_tokens(self) -> List[Token]:
        length = len(self._source)
        while self._pos < length:
            self._start = self._pos
            self._scan_token()
        self._tokens.append(Token(TokenType.EOF, '', None, self._line))
        return self._tokens

    # ------------------------------------------------------------------ dispatch

    def _scan_token(self) -> None:
        source, pos = self._source, self._pos
        ch = source[pos]

        m = _WHITESPACE_RE.match(source, pos)
        if m:
            self._pos = m.end()
            return

        if ch == '\n':
            self._line += 1
            self._pos += 1
            return

        if source.startswith('//', pos):
            self._pos = _COMMENT_RE.match(source, pos).end()
            return

        if source.startswith('/*', pos):
            self._block_comment()
            return

        if ch == '"':
            self._string()
            return

        m = _NUMBER_RE.match(source, pos)
        if m:
            self._pos = m.end()
            self._add(TokenType.NUMBER, float(m.group(0)))
            return

        m = _IDENTIFIER_RE.match(source, pos)
        if m:
            self._pos = m.end()
            self._add(KEYWORDS.get(m.group(0), TokenType.IDENTIFIER))
            return

        self._pos += 1
        if ch in _WITH_EQUAL:
            alone, with_equal = _WITH_EQUAL[ch]
            if self._peek() == '=':
                self._pos += 1
                self._add(with_equal)
            else:
                self._add(alone)
        elif ch == '/':
            self._add(TokenType.SLASH)
        elif ch in _SINGLE:
            self._add(_SINGLE[ch])
        else:
            self._error("Unexpected character.")

    # ------------------------------------------------------------------ literals

    def _string(self) -> None:
        source = self._source
        end = source.find('"', self._pos + 1)
        if end == -1:
            self._line += source.count('\n', self._pos)
            self._pos = len(source)
            self._error("Unterminated string.")
            return

        self._line += source.count('\n', self._pos, end)
        self._pos = end + 1
        self._add(TokenType.STRING, source[self._start + 1:end])

    def _block_comment(self) -> None:
        source, length = self._source, len(self._source)
        self._pos += 2  # opening /*
        depth = 1
        while self._pos < length:
            if source.startswith('*/', self._pos):
                depth -= 1
                self._pos += 2
                if depth == 0:
                    return
            elif source.startswith('/*', self._pos):
                depth += 1
                self._pos += 2
            else:
                if source[self._pos] == '\n':
                    self._line += 1
                self._pos += 1

        self._error("Unterminated comment.")

    # ------------------------------------------------------------------ helpers

    def _peek(self) -> str:
        if self._pos >= len(self._source):
            return '\0'
        return self._source[self._pos]

    def _add(self, ttype: TokenType, literal: Any = None) -> None:
        lexeme = self._source[self._start:self._pos]
        self._tokens.append(Token(ttype, lexeme, literal, self._line))

    def _error(self, message: str) -> None:
        self.reporter.error(self._line, message)


def tokenize(source: str, reporter=None) -> List[Token]:
    """
    Convert Lox source string into a list of Tokens ending with EOF.
    Lexical errors are reported to `reporter` (stderr by default) and skipped.
    """
    return Scanner(source, reporter).scan_tokens()
