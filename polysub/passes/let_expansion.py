"""Split let bindings that destructure literal variants and records."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from polysub.tree import (
    BlockExpr,
    CaseExpr,
    CasePattern,
    LetDef,
    RecordExpr,
    RecordPattern,
    Transformer,
    TransformResult,
    VarPattern,
    block,
    transform,
)


class LetExpander(Transformer):
    """Rewrite ``let {x; y} = {x=1; y=2}`` into ``let x = 1; let y = 2``.

    Statements follow the order of the record literal's fields; fields the
    pattern does not name become ``let _ = ...``.
    """

    def __init__(self) -> None:
        self.changes = 0

    def transform_stmts(self, stmts: Iterable[Any]) -> list[Any]:
        """Expand the let statements of a statement list."""
        out: list[Any] = []
        for stmt in stmts:
            if isinstance(stmt, LetDef):
                out.extend(self._expand_let(stmt.pattern, stmt.expr))
            else:
                out.append(stmt)
        return transform(out, self)

    def _expand_let(self, pattern: Any, expr: Any) -> list[Any]:
        match pattern, expr:
            case CasePattern(pattern=inner), CaseExpr(expr=payload):
                self.changes += 1
                return self._expand_let(inner, payload)
            case RecordPattern(fields=pattern_fields), RecordExpr(fields=fields):
                self.changes += 1
                remaining = dict(pattern_fields)
                out: list[Any] = []
                for name, value, _ in fields:
                    inner = remaining.pop(name, None)
                    if inner is None:
                        out.append(LetDef(VarPattern(None), value))
                    else:
                        out.extend(self._expand_let(inner, value))
                return out
        return [LetDef(pattern, expr)]

    def pre_visit_expr(self, expr: Any) -> TransformResult:
        if isinstance(expr, BlockExpr):
            statements = self.transform_stmts(expr.statements)
            tail = transform(expr.expr, self)
            return TransformResult.break_with(block(statements, tail))
        return TransformResult.continue_with(expr)