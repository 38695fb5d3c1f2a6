"""Splice nested blocks into their enclosing block."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from polysub.tree import (
    BlockExpr,
    ExprStmt,
    LetDef,
    Transformer,
    TransformResult,
    VarPattern,
    block,
    transform,
)


class BlockFlattener(Transformer):
    """Lift the statements of inner blocks into the surrounding block.

    Only valid on a tree whose local names are unique, since lifted bindings
    would otherwise shadow outer ones.
    """

    def __init__(self) -> None:
        self.changes = 0

    def transform_stmts(self, stmts: Iterable[Any], toplevel: bool) -> list[Any]:
        """Flatten a statement list; at top level blocks are not spliced."""
        if toplevel:
            return transform(list(stmts), self)

        out: list[Any] = []
        for stmt in stmts:
            match transform(stmt, self):
                case ExprStmt(expr=BlockExpr(statements=inner, expr=tail)):
                    out.extend(inner)
                    out.append(LetDef(VarPattern(None), tail))
                case LetDef(pattern=pattern, expr=BlockExpr(statements=inner, expr=tail)):
                    out.extend(inner)
                    out.append(LetDef(pattern, tail))
                case other:
                    out.append(other)
        return out

    def pre_visit_expr(self, expr: Any) -> TransformResult:
        if isinstance(expr, BlockExpr):
            statements = self.transform_stmts(expr.statements, False)
            tail = transform(expr.expr, self)
            return TransformResult.break_with(block(statements, tail))
        return TransformResult.continue_with(expr)