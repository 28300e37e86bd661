"""
Lox - Recursive Descent Parser
Converts a token stream into an AST. One method per precedence level,
loosest first:

    comma -> assignment -> ternary -> equality -> comparison
          -> term -> factor -> unary -> primary
"""

from typing import List, Optional
from .lexer import Token, TokenType
from .ast_nodes import (
    Expr, Stmt, Literal, Grouping, Unary, Binary, Ternary, Variable, Assign,
    Expression, Print, Var, Block
)
from .diagnostics import ErrorReporter


class ParseError(Exception):
    def __init__(self, message: str, token: Token):
        super().__init__(f"[ParseError] Line {token.line}: {message}")
        self.line = token.line
        self.token = token


_EQUALITY   = (TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)
_COMPARISON = (TokenType.GREATER, TokenType.GREATER_EQUAL,
               TokenType.LESS, TokenType.LESS_EQUAL)
_TERM       = (TokenType.MINUS, TokenType.PLUS)
_FACTOR     = (TokenType.SLASH, TokenType.STAR)

# Tokens that begin a new statement; synchronize() stops in front of them.
_STATEMENT_START = {
    TokenType.CLASS, TokenType.FUN, TokenType.VAR, TokenType.FOR,
    TokenType.IF, TokenType.WHILE, TokenType.PRINT, TokenType.RETURN,
}


class Parser:
    def __init__(self, tokens: List[Token], reporter=None):
        self._tokens = tokens
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self._pos = 0

    # ------------------------------------------------------------------ public

    def parse(self) -> List[Stmt]:
        """Parse a whole program, skipping past statements that fail."""
        stmts = []
        while not self._at_end():
            try:
                stmt = self._declaration()
            except RecursionError:
                # Caught here, where the stack has room to report it.
                self._error(self._peek(), "Expression nests too deeply.")
                self.synchronize()
                continue
            if stmt is not None:
                stmts.append(stmt)
        return stmts

    def parse_expression(self) -> Optional[Expr]:
        """Parse a single expression; None if it was malformed."""
        try:
            return self._expression()
        except ParseError:
            return None
        except RecursionError:
            self._error(self._peek(), "Expression nests too deeply.")
            return None

    def synchronize(self) -> None:
        """Discard tokens until the start of the next statement."""
        self._advance()
        while not self._at_end():
            if self._previous().type == TokenType.SEMICOLON:
                return
            if self._peek().type in _STATEMENT_START:
                return
            self._advance()

    # ------------------------------------------------------------------ statements

    def _declaration(self) -> Optional[Stmt]:
        try:
            if self._match(TokenType.VAR):
                return self._var_declaration()
            return self._statement()
        except ParseError:
            self.synchronize()
            return None

    def _var_declaration(self) -> Var:
        self._advance()  # consume 'var'
        name = self._expect(TokenType.IDENTIFIER, "Expect variable name.")
        initializer = None
        if self._match(TokenType.EQUAL):
            self._advance()
            initializer = self._expression()
        self._expect(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return Var(name, initializer)

    def _statement(self) -> Stmt:
        if self._match(TokenType.PRINT):
            self._advance()
            value = self._expression()
            self._expect(TokenType.SEMICOLON, "Expect ';' after value.")
            return Print(value)

        if self._match(TokenType.LEFT_BRACE):
            self._advance()
            return Block(tuple(self._block()))

        expr = self._expression()
        self._expect(TokenType.SEMICOLON, "Expect ';' after expression.")
        return Expression(expr)

    def _block(self) -> List[Stmt]:
        stmts = []
        while not self._match(TokenType.RIGHT_BRACE) and not self._at_end():
            stmt = self._declaration()
            if stmt is not None:
                stmts.append(stmt)
        self._expect(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return stmts

    # ------------------------------------------------------------------ expressions

    def _expression(self) -> Expr:
        return self._comma()

    def _comma(self) -> Expr:
        left = self._assignment()
        while self._match(TokenType.COMMA):
            op_tok = self._advance()
            right = self._assignment()
            left = Binary(left, op_tok, right)
        return left

    def _assignment(self) -> Expr:
        expr = self._ternary()

        if self._match(TokenType.EQUAL):
            equals = self._advance()
            value = self._assignment()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            # Reported but not raised: the tokens are already consumed.
            self._error(equals, "Invalid assignment target.")

        return expr

    def _ternary(self) -> Expr:
        predicate = self._equality()

        if self._match(TokenType.QUESTION):
            question = self._advance()
            true_branch = self._expression()
            colon = self._expect(TokenType.COLON, "Expect ':' after expression.")
            false_branch = self._equality()
            return Ternary(predicate, question, true_branch, colon, false_branch)

        return predicate

    def _equality(self) -> Expr:
        return self._binary_fold(_EQUALITY, self._comparison)

    def _comparison(self) -> Expr:
        return self._binary_fold(_COMPARISON, self._term)

    def _term(self) -> Expr:
        # A leading '-' is unary negation, not a missing operand.
        return self._binary_fold(_TERM, self._factor, orphans=(TokenType.PLUS,))

    def _factor(self) -> Expr:
        return self._binary_fold(_FACTOR, self._unary)

    def _binary_fold(self, operators, operand, orphans=None) -> Expr:
        """Left-associative fold of `operand (op operand)*`."""
        if self._match(*(orphans or operators)):
            # Operator with nothing on its left: still parse the right side
            # so the error lands after the whole malformed operand.
            op_tok = self._advance()
            operand()
            raise self._error(op_tok, "Expect left-hand operand.")

        left = operand()
        while self._match(*operators):
            op_tok = self._advance()
            right = operand()
            left = Binary(left, op_tok, right)
        return left

    def _unary(self) -> Expr:
        if self._match(TokenType.BANG, TokenType.MINUS):
            op_tok = self._advance()
            right = self._unary()
            return Unary(op_tok, right)
        return self._primary()

    def _primary(self) -> Expr:
        tok = self._peek()

        if tok.type == TokenType.FALSE:
            self._advance()
            return Literal(False)
        if tok.type == TokenType.TRUE:
            self._advance()
            return Literal(True)
        if tok.type == TokenType.NIL:
            self._advance()
            return Literal(None)

        if tok.type in (TokenType.NUMBER, TokenType.STRING):
            self._advance()
            return Literal(tok.literal)

        if tok.type == TokenType.IDENTIFIER:
            self._advance()
            return Variable(tok)

        # Parenthesised expression
        if tok.type == TokenType.LEFT_PAREN:
            self._advance()
            expr = self._expression()
            self._expect(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)

        raise self._error(tok, "Expect expression.")

    # ------------------------------------------------------------------ helpers

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _previous(self) -> Token:
        return self._tokens[self._pos - 1]

    def _at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        if not self._at_end():
            self._pos += 1
        return tok

    def _match(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _expect(self, ttype: TokenType, message: str) -> Token:
        if self._match(ttype):
            return self._advance()
        raise self._error(self._peek(), message)

    def _error(self, token: Token, message: str) -> ParseError:
        self.reporter.token_error(token, message)
        return ParseError(message, token)
