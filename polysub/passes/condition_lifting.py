"""Move conditionals out of the scrutinee position of a match."""

from __future__ import annotations

from typing import Any

from polysub.tree import CaseExpr, IfExpr, MatchExpr, Transformer, match_


class ConditionLiftTransformer(Transformer):
    """Push a match into the branches of the ``if`` or ``match`` it inspects.

    ``match (if c then `A a else b) with ...`` becomes
    ``if c then (match `A a with ...) else (match b with ...)``, which lets a
    later pass resolve the match on the known variant. The rewrite is only
    made when it can pay off: for an ``if``, at least one branch must build a
    variant the match handles; for a nested match, at most one arm may build
    a variant the outer match does not list, so the default arm is not copied
    more than once.
    """

    def __init__(self) -> None:
        self.changes = 0

    def post_visit_expr(self, expr: Any) -> Any:
        if not isinstance(expr, MatchExpr):
            return expr
        match_tags = {tag for tag, _, _ in expr.cases}
        inner = expr.expr

        if isinstance(inner, IfExpr):
            if_tags = {
                branch.tag
                for branch in (inner.then_expr, inner.else_expr)
                if isinstance(branch, CaseExpr)
            }
            if if_tags.isdisjoint(match_tags):
                return expr
            self.changes += 1
            return IfExpr(
                inner.cond,
                match_(inner.then_expr, expr.cases, expr.wildcard),
                match_(inner.else_expr, expr.cases, expr.wildcard),
            )

        if isinstance(inner, MatchExpr):
            arm_tags = {arm.tag for _, _, arm in inner.cases if isinstance(arm, CaseExpr)}
            if len(arm_tags - match_tags) > 1:
                return expr
            self.changes += 1
            cases = tuple(
                (tag, pattern, match_(arm, expr.cases, expr.wildcard))
                for tag, pattern, arm in inner.cases
            )
            wildcard = None
            if inner.wildcard is not None:
                name, arm = inner.wildcard
                wildcard = (name, match_(arm, expr.cases, expr.wildcard))
            return MatchExpr(inner.expr, cases, wildcard)

        return expr