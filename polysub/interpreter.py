"""Tree-walking evaluator for the runtime syntax tree."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

from polysub.tree import (
    ArrayExpr,
    BinOpExpr,
    BlockExpr,
    CallExpr,
    CaseExpr,
    CasePattern,
    DictExpr,
    EmptyStmt,
    ExprStmt,
    FieldAccessExpr,
    FieldSetExpr,
    FuncDefExpr,
    IfExpr,
    LetDef,
    LetRecDef,
    LiteralExpr,
    LiteralType,
    LoopExpr,
    MatchExpr,
    Op,
    Println,
    RecordExpr,
    RecordPattern,
    VariableExpr,
    VarPattern,
)


class InterpreterError(RuntimeError):
    """Raised when a script fails at run time."""


# ----- values -----


@dataclass(frozen=True, eq=False)
class Case:
    """A tagged variant value."""

    tag: str
    value: Any

    def __eq__(self, other: object) -> bool:
        return _equal(self, other)

    def __hash__(self) -> int:
        return hash(("case", self.tag))


class Record:
    """A record value; fields keep their definition order and mutability."""

    __slots__ = ("_fields",)

    def __init__(self, fields: Iterable[tuple[str, Any, bool]] = ()) -> None:
        self._fields: dict[str, list[Any]] = {
            name: [value, bool(mutable)] for name, value, mutable in fields
        }

    def get_field(self, name: str) -> Any:
        try:
            return self._fields[name][0]
        except KeyError:
            raise InterpreterError(f"record has no field {name}") from None

    def set_field(self, name: str, value: Any) -> Any:
        """Store ``value`` in field ``name`` and return the previous value."""
        try:
            slot = self._fields[name]
        except KeyError:
            raise InterpreterError(f"record has no field {name}") from None
        old, slot[0] = slot[0], value
        return old

    def items(self) -> list[tuple[str, Any]]:
        return [(name, slot[0]) for name, slot in self._fields.items()]

    def __eq__(self, other: object) -> bool:
        return _equal(self, other)

    def __hash__(self) -> int:
        return hash(frozenset(self._fields))

    def __repr__(self) -> str:
        inner = ", ".join(f"{n}={v!r}" for n, v in self.items())
        return f"Record({inner})"


@dataclass(eq=False)
class Closure:
    """A user-defined function together with the environment it captured."""

    param: Any
    body: Any
    env: Env


@dataclass(eq=False)
class Builtin:
    """A function implemented by the host."""

    fn: Callable[[Any], Any]
    name: str = "builtin"

    def __call__(self, arg: Any) -> Any:
        return self.fn(arg)


def _equal(a: Any, b: Any) -> bool:
    if type(a) is not type(b):
        return False
    if isinstance(a, Case):
        return a.tag == b.tag and _equal(a.value, b.value)
    if isinstance(a, Record):
        if a._fields.keys() != b._fields.keys():
            return False
        return all(_equal(slot[0], b._fields[n][0]) for n, slot in a._fields.items())
    if isinstance(a, tuple):
        return len(a) == len(b) and all(_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, dict):
        return len(a) == len(b) and all(k in b and _equal(v, b[k]) for k, v in a.items())
    if isinstance(a, (Closure, Builtin)):
        return a is b
    return a == b


def _format_float(x: float) -> str:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    text = format(Decimal(repr(x)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def show(value: Any) -> str:
    """Render a runtime value for printing."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, Case):
        return f"`{value.tag} {show(value.value)}"
    if isinstance(value, Record):
        return "{" + "; ".join(f"{n}={show(v)}" for n, v in value.items()) + "}"
    if isinstance(value, tuple):
        return "[" + ", ".join(show(v) for v in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{show(k)}: {show(v)}" for k, v in value.items()) + "}"
    if isinstance(value, Closure):
        return "<fun>"
    if isinstance(value, Builtin):
        return f"<builtin {value.name}>"
    return f"<{type(value).__name__}>"


# ----- environments -----


_UNSET: Any = object()


class _Node:
    __slots__ = ("name", "value", "lazy", "parent")

    def __init__(self, name: str, value: Any, lazy: bool, parent: Optional[_Node]) -> None:
        self.name = name
        self.value = value
        self.lazy = lazy
        self.parent = parent


class Env:
    """Persistent chain of variable bindings."""

    __slots__ = ("_node",)

    def __init__(self, _node: Optional[_Node] = None) -> None:
        self._node = _node

    def _nodes(self):
        node = self._node
        while node is not None:
            yield node
            node = node.parent

    def bind(self, name: str, value: Any) -> Env:
        return Env(_Node(name, value, False, self._node))

    def lookup(self, name: str) -> Any:
        for node in self._nodes():
            if node.name == name:
                if node.value is _UNSET:
                    raise InterpreterError("Uninitialized recursive value")
                return node.value
        raise InterpreterError(f"unbound variable {name}")

    def bind_placeholder(self, name: str) -> Env:
        """Bind ``name`` to a slot that is filled in later."""
        return Env(_Node(name, _UNSET, True, self._node))

    def set_placeholder(self, name: str, value: Any) -> None:
        for node in self._nodes():
            if node.name == name:
                if not node.lazy:
                    raise InterpreterError("immutable binding")
                if node.value is not _UNSET:
                    raise InterpreterError("Placeholder assigned twice")
                node.value = value
                return
        raise InterpreterError("unbound name")


# ----- pattern matching -----


def _as_case(value: Any) -> Case:
    if not isinstance(value, Case):
        raise InterpreterError(f"expected a variant, got {show(value)}")
    return value


def _as_record(value: Any) -> Record:
    if not isinstance(value, Record):
        raise InterpreterError(f"expected a record, got {show(value)}")
    return value


def _match_pattern(pattern: Any, value: Any, env: Env) -> Optional[Env]:
    match pattern:
        case VarPattern(name=name):
            return env if name is None else env.bind(name, value)
        case CasePattern(tag=tag, pattern=inner):
            case_value = _as_case(value)
            if case_value.tag != tag:
                return None
            return _match_pattern(inner, case_value.value, env)
        case RecordPattern(fields=fields):
            record = _as_record(value)
            result: Optional[Env] = env
            for field, inner in fields:
                result = _match_pattern(inner, record.get_field(field), result)
                if result is None:
                    return None
            return result
    raise TypeError(f"not a pattern: {type(pattern).__name__}")


def _assign(pattern: Any, value: Any, env: Env) -> Env:
    match pattern:
        case VarPattern(name=name):
            return env if name is None else env.bind(name, value)
        case CasePattern(pattern=inner):
            return _assign(inner, _as_case(value).value, env)
        case RecordPattern(fields=fields):
            record = _as_record(value)
            for field, inner in fields:
                env = _assign(inner, record.get_field(field), env)
            return env
    raise TypeError(f"not a pattern: {type(pattern).__name__}")


# ----- arithmetic -----


def _int_div(a: int, b: int) -> int:
    if b == 0:
        raise InterpreterError("attempt to divide by zero")
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _int_rem(a: int, b: int) -> int:
    return a - b * _int_div(a, b)


def _float_div(a: float, b: float) -> float:
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def _float_rem(a: float, b: float) -> float:
    try:
        return math.fmod(a, b)
    except ValueError:
        return math.nan


_COMPARISONS = {
    Op.LT: lambda a, b: a < b,
    Op.LTE: lambda a, b: a <= b,
    Op.GT: lambda a, b: a > b,
    Op.GTE: lambda a, b: a >= b,
}
_INT_ARITH = {
    Op.ADD: lambda a, b: a + b,
    Op.SUB: lambda a, b: a - b,
    Op.MULT: lambda a, b: a * b,
    Op.DIV: _int_div,
    Op.REM: _int_rem,
}
_FLOAT_ARITH = {
    Op.ADD: lambda a, b: a + b,
    Op.SUB: lambda a, b: a - b,
    Op.MULT: lambda a, b: a * b,
    Op.DIV: _float_div,
    Op.REM: _float_rem,
}


def _binop(op: Op, arg_type: Optional[LiteralType], lhs: Any, rhs: Any) -> Any:
    if arg_type is None and op is Op.EQ:
        return _equal(lhs, rhs)
    if arg_type is None and op is Op.NEQ:
        return not _equal(lhs, rhs)
    if arg_type in (LiteralType.INT, LiteralType.FLOAT) and op in _COMPARISONS:
        return _COMPARISONS[op](lhs, rhs)
    if arg_type is LiteralType.INT and op in _INT_ARITH:
        return _INT_ARITH[op](lhs, rhs)
    if arg_type is LiteralType.FLOAT and op in _FLOAT_ARITH:
        return float(_FLOAT_ARITH[op](float(lhs), float(rhs)))
    if arg_type is LiteralType.STR and op is Op.ADD:
        return lhs + rhs
    raise InterpreterError(f"unsupported operation {op.name} on {arg_type}")


def _literal(expr: LiteralExpr) -> Any:
    text = expr.value
    match expr.lit_type:
        case LiteralType.BOOL:
            if text not in ("true", "false"):
                raise InterpreterError(f"invalid bool literal {text}")
            return text == "true"
        case LiteralType.INT:
            return int(text)
        case LiteralType.FLOAT:
            return float(text)
        case LiteralType.STR:
            if len(text) < 2 or not (text.startswith('"') and text.endswith('"')):
                raise InterpreterError(f"invalid string literal {text}")
            return text[1:-1]
    raise InterpreterError(f"unknown literal type {expr.lit_type}")


# ----- evaluation -----


class State:
    """Interpreter state: the environment of global bindings."""

    def __init__(self, env: Optional[Env] = None) -> None:
        self.env = env if env is not None else Env()

    def run_script(self, script: Iterable[Any]) -> None:
        for stmt in script:
            self.exec(stmt)

    def process_script(self, script: Iterable[Any]) -> None:
        self.run_script(script)

    def _eval_in(self, env: Env, expr: Any) -> Any:
        old = self.env
        self.env = env
        try:
            return self.eval(expr)
        finally:
            self.env = old

    def exec(self, stmt: Any) -> None:
        match stmt:
            case EmptyStmt():
                pass
            case ExprStmt(expr=expr):
                self.eval(expr)
            case LetDef(pattern=pattern, expr=expr):
                value = self.eval(expr)
                self.env = _assign(pattern, value, self.env)
            case LetRecDef(defs=defs):
                for name, _ in defs:
                    self.env = self.env.bind_placeholder(name)
                for name, expr in defs:
                    self.env.set_placeholder(name, self.eval(expr))
            case Println(exprs=exprs):
                for expr in exprs:
                    sys.stdout.write(show(self.eval(expr)) + " ")
                sys.stdout.write("\n")
            case _:
                raise TypeError(f"not a statement: {type(stmt).__name__}")

    def eval(self, expr: Any) -> Any:
        match expr:
            case BinOpExpr(lhs=lhs, rhs=rhs, op=op, arg_type=arg_type):
                left = self.eval(lhs)
                right = self.eval(rhs)
                return _binop(op, arg_type, left, right)
            case BlockExpr(statements=statements, expr=tail):
                outer = self.env
                try:
                    for stmt in statements:
                        self.exec(stmt)
                    return self.eval(tail)
                finally:
                    self.env = outer
            case CallExpr(func=func_expr, arg=arg_expr, eval_arg_first=arg_first):
                if arg_first:
                    arg = self.eval(arg_expr)
                    func = self.eval(func_expr)
                else:
                    func = self.eval(func_expr)
                    arg = self.eval(arg_expr)
                return self._call(func, arg)
            case CaseExpr(tag=tag, expr=inner):
                return Case(tag, self.eval(inner))
            case FieldAccessExpr(expr=inner, field=field):
                return _as_record(self.eval(inner)).get_field(field)
            case FieldSetExpr(expr=inner, field=field, value=value_expr):
                record = _as_record(self.eval(inner))
                value = self.eval(value_expr)
                return record.set_field(field, value)
            case FuncDefExpr(param=param, body=body):
                return Closure(param, body, self.env)
            case IfExpr(cond=cond, then_expr=then_expr, else_expr=else_expr):
                if self.eval(cond):
                    return self.eval(then_expr)
                return self.eval(else_expr)
            case LiteralExpr():
                return _literal(expr)
            case LoopExpr(body=body):
                while True:
                    result = _as_case(self.eval(body))
                    if result.tag == "Break":
                        return result.value
            case MatchExpr(expr=scrutinee, cases=cases, wildcard=wildcard):
                return self._eval_match(scrutinee, cases, wildcard)
            case RecordExpr(fields=fields):
                return Record([(name, self.eval(v), mutable) for name, v, mutable in fields])
            case VariableExpr(name=name):
                return self.env.lookup(name)
            case ArrayExpr(items=items):
                return tuple(self.eval(item) for item in items)
            case DictExpr(items=items):
                result_dict: dict[Any, Any] = {}
                for key_expr, value_expr in items:
                    key = self.eval(key_expr)
                    result_dict[key] = self.eval(value_expr)
                return result_dict
        raise TypeError(f"not an expression: {type(expr).__name__}")

    def _call(self, func: Any, arg: Any) -> Any:
        if isinstance(func, Closure):
            env = _match_pattern(func.param, arg, func.env)
            if env is None:
                raise InterpreterError("function argument does not match its pattern")
            return self._eval_in(env, func.body)
        if isinstance(func, Builtin):
            return func(arg)
        raise InterpreterError(f"not callable: {show(func)}")

    def _eval_match(self, scrutinee: Any, cases: Any, wildcard: Any) -> Any:
        whole = self.eval(scrutinee)
        value = _as_case(whole)
        for tag, pattern, arm in cases:
            if tag != value.tag:
                continue
            env = _match_pattern(pattern, value.value, self.env)
            if env is None:
                raise InterpreterError(f"pattern for `{tag} did not match")
            return self._eval_in(env, arm)
        if wildcard is None:
            raise InterpreterError(f"unhandled variant {value.tag}")
        name, arm = wildcard
        env = self.env if name is None else self.env.bind(name, whole)
        return self._eval_in(env, arm)