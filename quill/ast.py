"""Abstract Syntax Tree (AST) definitions for the Quill language.

Statements derive from `Stmt`; expressions derive from `Expr`, which is itself
a statement so that a bare expression can appear wherever a statement can.
The interpreter only reads these nodes, it never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Stmt:
    """Base class for all AST nodes."""
    pass


@dataclass
class Expr(Stmt):
    pass


###############################################################################
# Statements
###############################################################################


@dataclass
class Program(Stmt):
    body: List[Stmt]


@dataclass
class VarDeclaration(Stmt):
    identifier: str
    value: Optional[Expr]
    constant: bool = False
    kind: str = 'var'  # 'var', 'const' or 'final'
    type_name: Optional[str] = None


@dataclass
class FunctionDeclaration(Stmt):
    name: str
    parameters: List[str]
    body: List[Stmt]
    parameter_types: List[Optional[str]] = field(default_factory=list)


@dataclass
class ConditionalBranch:
    check: Expr
    body: List[Stmt]


@dataclass
class IfElseStatement(Stmt):
    check: Expr
    body: List[Stmt]
    child_checks: List[ConditionalBranch] = field(default_factory=list)
    else_body: Optional[List[Stmt]] = None


@dataclass
class WhileStatement(Stmt):
    check: Expr
    body: List[Stmt]


@dataclass
class ReturnStatement(Stmt):
    value: Optional[Expr] = None


###############################################################################
# Expressions
###############################################################################


@dataclass
class NumericLiteral(Expr):
    value: int


@dataclass
class StringLiteral(Expr):
    value: str


@dataclass
class Identifier(Expr):
    symbol: str


@dataclass
class AssignmentExpr(Expr):
    assignee: Expr  # Identifier or MemberExpr
    value: Expr


@dataclass
class BinaryExpr(Expr):
    left: Expr
    operator: str  # '+', '-', '*', '/', '%', '==', '!=', '<', '>', '<=', '>='
    right: Expr


@dataclass
class LogicalExpr(Expr):
    left: Expr
    operator: str  # 'and' or 'or'
    right: Expr


@dataclass
class UnaryExpr(Expr):
    operator: str
    operand: Expr


@dataclass
class CallExpr(Expr):
    callee: Expr
    arguments: List[Expr]


@dataclass
class MemberExpr(Expr):
    object: Expr
    property: Expr  # Identifier when not computed
    computed: bool = False


@dataclass
class Property:
    key: str
    value: Optional[Expr] = None  # None for the `{ key }` shorthand


@dataclass
class ObjectLiteral(Expr):
    properties: List[Property]


@dataclass
class ArrayLiteral(Expr):
    elements: List[Expr]
