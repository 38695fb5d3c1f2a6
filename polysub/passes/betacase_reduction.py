"""Resolve matches whose scrutinee is a known variant."""

from __future__ import annotations

from typing import Any

from polysub.tree import CaseExpr, CasePattern, LetDef, MatchExpr, Transformer, VarPattern, block


class KnownMatchTransformer(Transformer):
    """Reduce a match on a literal variant, or with only a wildcard, to one arm.

    ``match `Foo 0 with | `Foo _ -> a | `Bar _ -> b`` becomes
    ``(let `Foo _ = `Foo 0; a)``.
    """

    def __init__(self) -> None:
        self.changes = 0

    def post_visit_expr(self, expr: Any) -> Any:
        if not isinstance(expr, MatchExpr):
            return expr
        scrutinee = expr.expr
        if isinstance(scrutinee, CaseExpr):
            self.changes += 1
            for tag, pattern, arm in expr.cases:
                if tag == scrutinee.tag:
                    return block([LetDef(CasePattern(tag, pattern), scrutinee)], arm)
            return self._wildcard_arm(expr, scrutinee)
        if not expr.cases:
            self.changes += 1
            return self._wildcard_arm(expr, scrutinee)
        return expr

    @staticmethod
    def _wildcard_arm(expr: MatchExpr, scrutinee: Any) -> Any:
        if expr.wildcard is None:
            raise ValueError("match has no arm for the matched value")
        name, arm = expr.wildcard
        return block([LetDef(VarPattern(name), scrutinee)], arm)