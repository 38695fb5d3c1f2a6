"""Side-effect analysis and free-variable computation over the syntax tree."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from typing import Any

from polysub.tree import (
    ArrayExpr,
    BinOpExpr,
    BlockExpr,
    CallExpr,
    CaseExpr,
    CasePattern,
    DictExpr,
    EmptyStmt,
    ExprStmt,
    FieldAccessExpr,
    FieldSetExpr,
    FuncDefExpr,
    IfExpr,
    LetDef,
    LetRecDef,
    LiteralExpr,
    LoopExpr,
    MatchExpr,
    Println,
    RecordExpr,
    RecordPattern,
    VariableExpr,
    VarPattern,
    Visitor,
    VisitResult,
    walk,
)


class SideEffect(enum.IntEnum):
    """How far the effects of evaluating an expression reach, lowest first."""

    NONE = 0
    LOCAL = 1
    """Visible only inside the enclosing block."""
    GLOBAL = 2


class _PurityVisitor(Visitor):
    def __init__(self) -> None:
        self.effect = SideEffect.NONE

    def pre_visit_expr(self, expr: Any) -> VisitResult:
        match expr:
            case CallExpr() | FieldSetExpr():
                self.effect = SideEffect.GLOBAL
                return VisitResult.BREAK
            case FuncDefExpr():
                # Defining a function has no effect, whatever its body does.
                return VisitResult.BREAK
            case RecordExpr(fields=fields) if any(mutable for _, _, mutable in fields):
                # Every access must see the same object, so it cannot be duplicated.
                self.effect = SideEffect.GLOBAL
                return VisitResult.BREAK
        return VisitResult.CONTINUE

    def post_visit_expr(self, expr: Any) -> None:
        if isinstance(expr, BlockExpr) and self.effect is SideEffect.LOCAL:
            self.effect = SideEffect.NONE

    def pre_visit_stmt(self, stmt: Any) -> VisitResult:
        match stmt:
            case LetDef() | LetRecDef():
                self.effect = max(self.effect, SideEffect.LOCAL)
            case Println():
                self.effect = SideEffect.GLOBAL
                return VisitResult.BREAK
        return VisitResult.CONTINUE


def is_pure(expr: Any) -> bool:
    """Return True if evaluating ``expr`` has no observable side effect."""
    visitor = _PurityVisitor()
    walk(expr, visitor)
    return visitor.effect is SideEffect.NONE


def _pattern_binds(pattern: Any) -> set[str]:
    match pattern:
        case VarPattern(name=name):
            return {name} if name is not None else set()
        case CasePattern(pattern=inner):
            return _pattern_binds(inner)
        case RecordPattern(fields=fields):
            bound: set[str] = set()
            for _, inner in fields:
                bound |= _pattern_binds(inner)
            return bound
    raise TypeError(f"not a pattern: {type(pattern).__name__}")


def _union(exprs: Iterable[Any]) -> set[str]:
    result: set[str] = set()
    for expr in exprs:
        result |= _expr_free(expr)
    return result


def _expr_free(expr: Any) -> set[str]:
    match expr:
        case VariableExpr(name=name):
            return {name}
        case LiteralExpr():
            return set()
        case BinOpExpr(lhs=lhs, rhs=rhs):
            return _union((lhs, rhs))
        case BlockExpr(statements=statements, expr=tail):
            return _scope_free(statements, tail)
        case CallExpr(func=func, arg=arg):
            return _union((func, arg))
        case CaseExpr(expr=inner) | FieldAccessExpr(expr=inner):
            return _expr_free(inner)
        case FieldSetExpr(expr=inner, value=value):
            return _union((inner, value))
        case FuncDefExpr(param=param, body=body):
            return _expr_free(body) - _pattern_binds(param)
        case IfExpr(cond=cond, then_expr=then_expr, else_expr=else_expr):
            return _union((cond, then_expr, else_expr))
        case LoopExpr(body=body):
            return _expr_free(body)
        case MatchExpr(expr=scrutinee, cases=cases, wildcard=wildcard):
            result = _expr_free(scrutinee)
            for _, pattern, arm in cases:
                result |= _expr_free(arm) - _pattern_binds(pattern)
            if wildcard is not None:
                name, arm = wildcard
                result |= _expr_free(arm) - ({name} if name is not None else set())
            return result
        case RecordExpr(fields=fields):
            return _union(value for _, value, _ in fields)
        case ArrayExpr(items=items):
            return _union(items)
        case DictExpr(items=items):
            return _union(part for pair in items for part in pair)
    raise TypeError(f"not an expression: {type(expr).__name__}")


def _stmt_free(stmt: Any) -> set[str]:
    match stmt:
        case EmptyStmt():
            return set()
        case ExprStmt(expr=expr) | LetDef(expr=expr):
            return _expr_free(expr)
        case LetRecDef(defs=defs):
            names = {name for name, _ in defs}
            return _union(expr for _, expr in defs) - names
        case Println(exprs=exprs):
            return _union(exprs)
    raise TypeError(f"not a statement: {type(stmt).__name__}")


def _scope_free(statements: Iterable[Any], tail: Any = None) -> set[str]:
    free: set[str] = set()
    bound: set[str] = set()
    for stmt in statements:
        match stmt:
            case LetRecDef(defs=defs):
                bound |= {name for name, _ in defs}
                free |= _union(expr for _, expr in defs) - bound
            case LetDef(pattern=pattern, expr=expr):
                free |= _expr_free(expr) - bound
                bound |= _pattern_binds(pattern)
            case _:
                free |= _stmt_free(stmt) - bound
    if tail is not None:
        free |= _expr_free(tail) - bound
    return free


def free_vars(node: Any) -> set[str]:
    """Names referenced by ``node`` that it does not bind itself.

    A statement's own bindings only scope over later statements, so a
    ``LetDef`` contributes the free names of its value. A list or tuple of
    statements is treated as one sequential scope.
    """
    match node:
        case EmptyStmt() | ExprStmt() | LetDef() | LetRecDef() | Println():
            return _stmt_free(node)
        case VarPattern() | CasePattern() | RecordPattern():
            return set()
        case list() | tuple():
            return _scope_free(node)
    return _expr_free(node)