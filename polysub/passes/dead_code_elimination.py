"""Remove bindings whose values are never used."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import Any

from polysub.purity import free_vars, is_pure
from polysub.tree import (
    BlockExpr,
    EmptyStmt,
    LetDef,
    Transformer,
    TransformResult,
    VarPattern,
    block,
    transform,
)


class DeadCodeTransformer(Transformer):
    """Drop unused local bindings and discarded values without side effects.

    An unused binding whose value has side effects is kept as ``let _ = ...``.
    Top-level bindings are never dropped, since later scripts may use them.
    """

    def __init__(self) -> None:
        self.changes = 0

    def transform_stmts(self, stmts: Iterable[Any], toplevel: bool) -> list[Any]:
        """Eliminate dead code in a statement list."""
        stmts = list(stmts)
        if toplevel:
            return transform(stmts, self)
        return transform(self._transform_block(stmts, set()), self)

    def _transform_block(self, stmts: Iterable[Any], used: set[str]) -> list[Any]:
        used = set(used)
        out: deque[Any] = deque()
        for stmt in reversed(list(stmts)):
            match stmt:
                case LetDef(pattern=VarPattern(name=str() as name), expr=value) if name not in used:
                    if not is_pure(value):
                        used |= free_vars(value)
                        out.appendleft(LetDef(VarPattern(None), value))
                    self.changes += 1
                case _:
                    used |= free_vars(stmt)
                    out.appendleft(stmt)
        return list(out)

    def pre_visit_expr(self, expr: Any) -> TransformResult:
        if isinstance(expr, BlockExpr):
            tail = transform(expr.expr, self)
            statements = transform(self._transform_block(expr.statements, free_vars(tail)), self)
            return TransformResult.break_with(block(statements, tail))
        return TransformResult.continue_with(expr)

    def post_visit_stmt(self, stmt: Any) -> Any:
        match stmt:
            case LetDef(pattern=VarPattern(name=None), expr=value) if is_pure(value):
                self.changes += 1
                return EmptyStmt()
        return stmt