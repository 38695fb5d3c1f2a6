"""Renaming pass that gives every local binding a unique name."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Optional

from polysub.tree import (
    BlockExpr,
    FuncDefExpr,
    LetDef,
    LetRecDef,
    Transformer,
    TransformResult,
    VariableExpr,
    block,
    transform,
)


class VariableRenamer(Transformer):
    """Make all local variable names unique.

    Top-level bindings keep their names, as do names starting with a double
    underscore. A renamed variable becomes ``<prefix>'<n>``, where ``prefix``
    is the original name up to its first apostrophe.
    """

    def __init__(self, toplevel: bool = False) -> None:
        self.toplevel = toplevel
        self._env: dict[str, str] = {}
        self._counter = 0

    @contextmanager
    def _scope(self) -> Iterator[None]:
        saved_env = dict(self._env)
        saved_level = self.toplevel
        self.toplevel = False
        try:
            yield
        finally:
            self.toplevel = saved_level
            self._env = saved_env

    def _resolve(self, name: str) -> str:
        return self._env.get(name, name)

    def _bind(self, name: str) -> str:
        new_name = self._gensym(name)
        self._env[name] = new_name
        return new_name

    def _gensym(self, name: str) -> str:
        if self.toplevel or name.startswith("__"):
            return name
        prefix = name.split("'", 1)[0]
        unique = f"{prefix}'{self._counter}"
        self._counter += 1
        return unique

    def pre_visit_expr(self, expr: Any) -> TransformResult:
        match expr:
            case BlockExpr(statements=statements, expr=tail):
                with self._scope():
                    new_statements = [transform(stmt, self) for stmt in statements]
                    new_tail = transform(tail, self)
                return TransformResult.break_with(block(new_statements, new_tail))
            case VariableExpr(name=name):
                return TransformResult.break_with(VariableExpr(self._resolve(name)))
            case FuncDefExpr(param=param, body=body):
                with self._scope():
                    new_param = transform(param, self)
                    new_body = transform(body, self)
                return TransformResult.break_with(FuncDefExpr(new_param, new_body))
        return TransformResult.continue_with(expr)

    def pre_visit_stmt(self, stmt: Any) -> TransformResult:
        match stmt:
            case LetDef(pattern=pattern, expr=value):
                # The value is evaluated before the pattern binds anything.
                new_value = transform(value, self)
                new_pattern = transform(pattern, self)
                return TransformResult.break_with(LetDef(new_pattern, new_value))
            case LetRecDef(defs=defs):
                for name, _ in defs:
                    self._bind(name)
                new_defs = [(self._resolve(name), transform(value, self)) for name, value in defs]
                return TransformResult.break_with(LetRecDef(tuple(new_defs)))
        return TransformResult.continue_with(stmt)

    def visit_binding(self, name: Optional[str]) -> Optional[str]:
        if name is None:
            return None
        return self._bind(name)