"""Lift variant construction out of blocks and push field access into them."""

from __future__ import annotations

from typing import Any

from polysub.tree import BlockExpr, CaseExpr, FieldAccessExpr, Transformer, block, case, field_access


class CaseLiftAndFieldLowerTransformer(Transformer):
    """Rewrite ``(..; `Foo x)`` to ``` `Foo (..; x)`` and ``(..; r).x`` to ``(..; r.x)``."""

    def __init__(self) -> None:
        self.changes = 0

    def post_visit_expr(self, expr: Any) -> Any:
        match expr:
            case BlockExpr(statements=statements, expr=CaseExpr(tag=tag, expr=inner)):
                self.changes += 1
                return case(tag, block(statements, inner))
            case FieldAccessExpr(expr=BlockExpr(statements=statements, expr=tail), field=field):
                self.changes += 1
                return block(statements, field_access(field, tail))
        return expr