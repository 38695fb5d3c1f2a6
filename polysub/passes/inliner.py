"""Substitute variables bound to known, side-effect free values."""

from __future__ import annotations

from typing import Any, Optional

from polysub.purity import free_vars, is_pure
from polysub.tree import (
    BlockExpr,
    CaseExpr,
    CasePattern,
    FuncDefExpr,
    LetDef,
    LiteralExpr,
    RecordExpr,
    RecordPattern,
    Transformer,
    TransformResult,
    VariableExpr,
    VarPattern,
    block,
    transform,
)

_NOT_BOUND: Any = object()


class InlineTransformer(Transformer):
    """Replace uses of let-bound names with their known values.

    A name is known when it is bound to a pure variable, literal, function,
    variant or record (or to a part of one reached through a pattern).
    Bindings made inside a block are forgotten when the block ends.
    """

    def __init__(self) -> None:
        self.changes = 0
        # name -> known expression, or None when the value is unknown
        self._env: dict[str, Optional[Any]] = {}

    def _bind(self, pattern: Any, known: Optional[Any]) -> None:
        match pattern:
            case VarPattern(name=None):
                pass
            case VarPattern(name=name):
                self._env[name] = known
            case CasePattern(pattern=inner):
                self._bind(inner, self._unwrap_case(known))
            case RecordPattern(fields=fields):
                for field, inner in fields:
                    self._bind(inner, self._get_field(known, field))

    def _lookup(self, name: str) -> Any:
        return self._env.get(name, _NOT_BOUND)

    def _resolve(self, expr: Any) -> Optional[Any]:
        if not is_pure(expr):
            return None
        match expr:
            case VariableExpr(name=name):
                known = self._lookup(name)
                return expr if known is _NOT_BOUND else known
            case LiteralExpr() | FuncDefExpr() | CaseExpr() | RecordExpr():
                return expr
            case BlockExpr(expr=tail):
                return self._resolve(tail) if not free_vars(tail) else None
        return None

    def _inline(self, name: str) -> Optional[Any]:
        known = self._lookup(name)
        return None if known is _NOT_BOUND else known

    def _unwrap_case(self, known: Optional[Any]) -> Optional[Any]:
        match known:
            case None | VariableExpr():
                return None
            case CaseExpr(expr=inner):
                return self._resolve(inner)
        raise ValueError(f"variant pattern applied to {type(known).__name__}")

    def _get_field(self, known: Optional[Any], field: str) -> Optional[Any]:
        match known:
            case None | VariableExpr():
                return None
            case RecordExpr(fields=fields):
                for name, value, mutable in fields:
                    if name == field:
                        # A mutable field's value cannot be known statically.
                        return None if mutable else self._resolve(value)
                raise ValueError(f"record literal has no field {field}")
        raise ValueError(f"record pattern applied to {type(known).__name__}")

    def pre_visit_expr(self, expr: Any) -> TransformResult:
        match expr:
            case BlockExpr(statements=statements, expr=tail):
                local = InlineTransformer()
                local._env = dict(self._env)
                new_statements = [transform(stmt, local) for stmt in statements]
                new_tail = transform(tail, local)
                return TransformResult.break_with(block(new_statements, new_tail))
            case VariableExpr(name=name):
                replacement = self._inline(name)
                if replacement is None:
                    return TransformResult.break_with(expr)
                self.changes += 1
                return TransformResult.break_with(replacement)
        return TransformResult.continue_with(expr)

    def post_visit_stmt(self, stmt: Any) -> Any:
        if isinstance(stmt, LetDef):
            self._bind(stmt.pattern, self._resolve(stmt.expr))
        return stmt