"""Turn calls of literal functions into let bindings."""

from __future__ import annotations

from typing import Any

from polysub.tree import CallExpr, FuncDefExpr, LetDef, Transformer, block


class DirectCallTransformer(Transformer):
    """Rewrite ``(fun x -> body) arg`` into ``(let x = arg; body)``."""

    def __init__(self) -> None:
        self.changes = 0

    def post_visit_expr(self, expr: Any) -> Any:
        if isinstance(expr, CallExpr) and isinstance(expr.func, FuncDefExpr):
            self.changes += 1
            return block([LetDef(expr.func.param, expr.arg)], expr.func.body)
        return expr