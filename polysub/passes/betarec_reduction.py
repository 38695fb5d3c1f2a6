"""Replace field access on a record literal with the field's value."""

from __future__ import annotations

from typing import Any

from polysub.purity import is_pure
from polysub.tree import FieldAccessExpr, RecordExpr, Transformer


class DirectFieldAccessTransformer(Transformer):
    """Rewrite ``{a=1; b=2}.a`` into ``1``.

    Only applies when every other field of the record is free of side effects.
    """

    def __init__(self) -> None:
        self.changes = 0

    def post_visit_expr(self, expr: Any) -> Any:
        if not (isinstance(expr, FieldAccessExpr) and isinstance(expr.expr, RecordExpr)):
            return expr
        fields = expr.expr.fields
        if not all(is_pure(value) for name, value, _ in fields if name != expr.field):
            return expr
        self.changes += 1
        for name, value, _ in fields:
            if name == expr.field:
                return value
        raise ValueError(f"record literal has no field {expr.field}")