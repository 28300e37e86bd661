"""
Lox - AST Node Definitions
Two closed sets of immutable nodes: expressions and statements.
Tokens are kept on the nodes for line attribution only.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from .lexer import Token


# ── Expressions ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Literal:
    """number, string, true/false or nil"""
    value: Any


@dataclass(frozen=True)
class Grouping:
    """( expression )"""
    expression: "Expr"


@dataclass(frozen=True)
class Unary:
    """! right  |  - right"""
    operator: Token
    right: "Expr"


@dataclass(frozen=True)
class Binary:
    """left op right, including the comma operator."""
    left: "Expr"
    operator: Token
    right: "Expr"


@dataclass(frozen=True)
class Ternary:
    """predicate ? true_branch : false_branch"""
    predicate: "Expr"
    question: Token
    true_branch: "Expr"
    colon: Token
    false_branch: "Expr"


@dataclass(frozen=True)
class Variable:
    name: Token


@dataclass(frozen=True)
class Assign:
    """name = value"""
    name: Token
    value: "Expr"


Expr = Union[Literal, Grouping, Unary, Binary, Ternary, Variable, Assign]


# ── Statements ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Expression:
    """expression ;"""
    expression: Expr


@dataclass(frozen=True)
class Print:
    """print expression ;"""
    expression: Expr


@dataclass(frozen=True)
class Var:
    """var name ( = initializer )? ;"""
    name: Token
    initializer: Optional[Expr] = None


@dataclass(frozen=True)
class Block:
    """{ statement* }"""
    statements: Tuple["Stmt", ...] = ()


Stmt = Union[Expression, Print, Var, Block]
