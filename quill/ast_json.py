"""JSON serialization/deserialization for the Quill AST.

This module converts between Quill AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. Every node is encoded as
an object with a `"type"` tag naming its class, so a tree parsed by one
process can be executed by another.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Dict

from .ast import (
    Program,
    VarDeclaration,
    FunctionDeclaration,
    ConditionalBranch,
    IfElseStatement,
    WhileStatement,
    ReturnStatement,
    NumericLiteral,
    StringLiteral,
    Identifier,
    AssignmentExpr,
    BinaryExpr,
    LogicalExpr,
    UnaryExpr,
    CallExpr,
    MemberExpr,
    Property,
    ObjectLiteral,
    ArrayLiteral,
)

NODE_TYPES: Dict[str, type] = {
    cls.__name__: cls
    for cls in (
        Program,
        VarDeclaration,
        FunctionDeclaration,
        ConditionalBranch,
        IfElseStatement,
        WhileStatement,
        ReturnStatement,
        NumericLiteral,
        StringLiteral,
        Identifier,
        AssignmentExpr,
        BinaryExpr,
        LogicalExpr,
        UnaryExpr,
        CallExpr,
        MemberExpr,
        Property,
        ObjectLiteral,
        ArrayLiteral,
    )
}


def ast_to_obj(node: Any) -> Any:
    # Primitives
    if node is None or isinstance(node, (int, float, str, bool)):
        return node
    if isinstance(node, list):
        return [ast_to_obj(n) for n in node]
    name = type(node).__name__
    if name not in NODE_TYPES:
        raise ValueError(f"cannot serialize {name}")
    obj: Dict[str, Any] = {"type": name}
    for f in fields(node):
        obj[f.name] = ast_to_obj(getattr(node, f.name))
    return obj


def ast_from_obj(obj: Any) -> Any:
    if obj is None or isinstance(obj, (int, float, str, bool)):
        return obj
    if isinstance(obj, list):
        return [ast_from_obj(x) for x in obj]
    if not isinstance(obj, dict) or "type" not in obj:
        raise ValueError(f"invalid AST object: {obj!r}")
    t = obj["type"]
    cls = NODE_TYPES.get(t)
    if cls is None:
        raise ValueError(f"unknown node type: {t}")
    kwargs = {f.name: ast_from_obj(obj[f.name]) for f in fields(cls) if f.name in obj}
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ValueError(f"invalid {t} node: {e}") from e


def program_from_obj(obj: Dict[str, Any]) -> Program:
    program = ast_from_obj(obj)
    if not isinstance(program, Program):
        raise ValueError(f"expected a Program, got {type(program).__name__}")
    return program
