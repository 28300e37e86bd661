"""
Lox - Tree-walking Interpreter
Evaluates the AST against a single Environment.

Runtime values are plain Python objects:
  number -> float, string -> str, boolean -> bool, nil -> None
"""

import math
import sys
from typing import Any, List, Optional

from .lexer import Token, TokenType
from .ast_nodes import (
    Expr, Stmt, Literal, Grouping, Unary, Binary, Ternary, Variable, Assign,
    Expression, Print, Var, Block
)
from .environment import Environment
from .diagnostics import ErrorReporter, LoxRuntimeError


# ── Value helpers ─────────────────────────────────────────────────────────────

def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_truthy(value: Any) -> bool:
    """nil and false are falsy; everything else, 0 and "" included, is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: Any, b: Any) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    if is_number(a) and is_number(b):
        # NaN equals NaN, as boxed doubles compare
        return a == b or (math.isnan(a) and math.isnan(b))
    # bool is an int subclass; keep true != 1
    return type(a) is type(b) and a == b


def stringify(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if float(value).is_integer() and abs(value) < 1e21:
            if value == 0 and math.copysign(1.0, value) < 0:
                return "-0"
            return str(int(value))
        return repr(value)
    return str(value)


# ── Interpreter ───────────────────────────────────────────────────────────────

class Interpreter:
    def __init__(self, reporter=None, output=None):
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self._output = output if output is not None else sys.stdout
        self.environment = Environment()

    def interpret(self, statements: List[Stmt]) -> bool:
        """
        Execute statements in order. The first runtime error stops the run
        and is reported once. Returns True if the run completed.
        """
        stmt = None
        try:
            for stmt in statements:
                self.execute(stmt)
        except LoxRuntimeError as e:
            self._report(e)
            return False
        except RecursionError:
            self._report(_too_deep(stmt))
            return False
        return True

    def interpret_expression(self, expr: Expr) -> Optional[str]:
        """Evaluate a lone expression and return its printed form."""
        try:
            return stringify(self.evaluate(expr))
        except LoxRuntimeError as e:
            self._report(e)
            return None
        except RecursionError:
            self._report(_too_deep(expr))
            return None

    def execute(self, stmt: Stmt) -> None:
        self._visit(stmt)

    def evaluate(self, expr: Expr) -> Any:
        return self._visit(expr)

    # ------------------------------------------------------------------ visitor

    def _visit(self, node):
        method = f"_visit_{type(node).__name__}"
        visitor = getattr(self, method, self._visit_unknown)
        return visitor(node)

    def _visit_unknown(self, node):
        raise AssertionError(f"unhandled node type {type(node).__name__}")

    # ------------------------------------------------------------------ statements

    def _visit_Expression(self, stmt: Expression) -> None:
        self.evaluate(stmt.expression)

    def _visit_Print(self, stmt: Print) -> None:
        value = self.evaluate(stmt.expression)
        print(stringify(value), file=self._output)

    def _visit_Var(self, stmt: Var) -> None:
        value = None
        if stmt.initializer is not None:
            value = self.evaluate(stmt.initializer)
        self.environment.define(stmt.name.lexeme, value)

    def _visit_Block(self, stmt: Block) -> None:
        # No nested scope: blocks share the one environment.
        for inner in stmt.statements:
            self.execute(inner)

    # ------------------------------------------------------------------ expressions

    def _visit_Literal(self, expr: Literal) -> Any:
        return expr.value

    def _visit_Grouping(self, expr: Grouping) -> Any:
        return self.evaluate(expr.expression)

    def _visit_Variable(self, expr: Variable) -> Any:
        return self.environment.get(expr.name)

    def _visit_Assign(self, expr: Assign) -> Any:
        value = self.evaluate(expr.value)
        self.environment.assign(expr.name, value)
        return value

    def _visit_Ternary(self, expr: Ternary) -> Any:
        # Only the chosen branch is evaluated.
        if is_truthy(self.evaluate(expr.predicate)):
            return self.evaluate(expr.true_branch)
        return self.evaluate(expr.false_branch)

    def _visit_Unary(self, expr: Unary) -> Any:
        right = self.evaluate(expr.right)
        op = expr.operator.type

        if op == TokenType.MINUS:
            _check_number_operand(expr.operator, right)
            return -right
        if op == TokenType.BANG:
            return not is_truthy(right)

        raise AssertionError(f"unexpected unary operator {expr.operator.lexeme!r}")

    def _visit_Binary(self, expr: Binary) -> Any:
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        operator = expr.operator
        op = operator.type

        if op == TokenType.COMMA:
            return right

        if op == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if op == TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        if op == TokenType.PLUS:
            if is_number(left) and is_number(right):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise LoxRuntimeError(operator, "Operands must be two numbers or two strings.")

        if op in _COMPARISONS:
            if not (isinstance(left, str) and isinstance(right, str)):
                _check_number_operands(operator, left, right)
            return _COMPARISONS[op](left, right)

        _check_number_operands(operator, left, right)
        if op == TokenType.MINUS:
            return left - right
        if op == TokenType.STAR:
            return left * right
        if op == TokenType.SLASH:
            if right == 0:
                raise LoxRuntimeError(operator, "Division by zero.")
            return left / right

        raise AssertionError(f"unexpected binary operator {operator.lexeme!r}")

    # ------------------------------------------------------------------ helpers

    def _report(self, error: LoxRuntimeError) -> None:
        self.reporter.runtime_error(error)


_COMPARISONS = {
    TokenType.GREATER:       lambda a, b: a > b,
    TokenType.GREATER_EQUAL: lambda a, b: a >= b,
    TokenType.LESS:          lambda a, b: a < b,
    TokenType.LESS_EQUAL:    lambda a, b: a <= b,
}


def _check_number_operand(operator: Token, operand: Any) -> None:
    if not is_number(operand):
        raise LoxRuntimeError(operator, "Operand must be a number.")


def _check_number_operands(operator: Token, left: Any, right: Any) -> None:
    if not (is_number(left) and is_number(right)):
        raise LoxRuntimeError(operator, "Operands must be numbers.")


def _too_deep(node) -> LoxRuntimeError:
    """Runtime error for a tree too deep to walk, located at its shallowest token."""
    queue = [node]
    for item in queue:
        if isinstance(item, Token):
            return LoxRuntimeError(item, "Expression nests too deeply.")
        if isinstance(item, (list, tuple)):
            queue.extend(item)
        elif hasattr(item, '__dataclass_fields__'):
            queue.extend(getattr(item, name) for name in item.__dataclass_fields__)
    # Only literals and groupings: no line to point at.
    return LoxRuntimeError(Token(TokenType.EOF, '', None, 0), "Expression nests too deeply.")
