"""Runtime syntax tree, with generic read-only walking and rebuilding."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from typing import Any, Optional, Union


class LiteralType(enum.Enum):
    BOOL = enum.auto()
    FLOAT = enum.auto()
    INT = enum.auto()
    STR = enum.auto()


class Op(enum.Enum):
    ADD = enum.auto()
    SUB = enum.auto()
    MULT = enum.auto()
    DIV = enum.auto()
    REM = enum.auto()
    LT = enum.auto()
    LTE = enum.auto()
    GT = enum.auto()
    GTE = enum.auto()
    EQ = enum.auto()
    NEQ = enum.auto()


def _set(obj: Any, name: str, value: Any) -> None:
    object.__setattr__(obj, name, value)


# ----- expressions -----


@dataclass(frozen=True)
class BinOpExpr:
    lhs: Expr
    rhs: Expr
    op: Op
    arg_type: Optional[LiteralType]
    ret_type: LiteralType


@dataclass(frozen=True)
class BlockExpr:
    statements: tuple[Statement, ...]
    expr: Expr

    def __post_init__(self) -> None:
        _set(self, "statements", tuple(self.statements))


@dataclass(frozen=True)
class CallExpr:
    func: Expr
    arg: Expr
    eval_arg_first: bool = False


@dataclass(frozen=True)
class CaseExpr:
    tag: str
    expr: Expr


@dataclass(frozen=True)
class FieldAccessExpr:
    expr: Expr
    field: str


@dataclass(frozen=True)
class FieldSetExpr:
    expr: Expr
    field: str
    value: Expr


@dataclass(frozen=True)
class FuncDefExpr:
    param: Pattern
    body: Expr


@dataclass(frozen=True)
class IfExpr:
    cond: Expr
    then_expr: Expr
    else_expr: Expr


@dataclass(frozen=True)
class LiteralExpr:
    lit_type: LiteralType
    value: str


@dataclass(frozen=True)
class LoopExpr:
    body: Expr


@dataclass(frozen=True)
class MatchExpr:
    """Match on a variant; ``wildcard`` is ``(name or None, arm)`` or None."""

    expr: Expr
    cases: tuple[tuple[str, Pattern, Expr], ...]
    wildcard: Optional[tuple[Optional[str], Expr]] = None

    def __post_init__(self) -> None:
        _set(self, "cases", tuple((tag, pat, arm) for tag, pat, arm in self.cases))
        if self.wildcard is not None:
            name, arm = self.wildcard
            _set(self, "wildcard", (name, arm))


@dataclass(frozen=True)
class RecordExpr:
    """Record literal; each field is ``(name, value, mutable)``."""

    fields: tuple[tuple[str, Expr, bool], ...]

    def __post_init__(self) -> None:
        _set(self, "fields", tuple((n, v, bool(m)) for n, v, m in self.fields))


@dataclass(frozen=True)
class VariableExpr:
    name: str


@dataclass(frozen=True)
class ArrayExpr:
    items: tuple[Expr, ...]

    def __post_init__(self) -> None:
        _set(self, "items", tuple(self.items))


@dataclass(frozen=True)
class DictExpr:
    items: tuple[tuple[Expr, Expr], ...]

    def __post_init__(self) -> None:
        _set(self, "items", tuple((k, v) for k, v in self.items))


# ----- statements -----


@dataclass(frozen=True)
class EmptyStmt:
    pass


@dataclass(frozen=True)
class ExprStmt:
    expr: Expr


@dataclass(frozen=True)
class LetDef:
    pattern: Pattern
    expr: Expr


@dataclass(frozen=True)
class LetRecDef:
    defs: tuple[tuple[str, Expr], ...]

    def __post_init__(self) -> None:
        _set(self, "defs", tuple((n, e) for n, e in self.defs))


@dataclass(frozen=True)
class Println:
    exprs: tuple[Expr, ...]

    def __post_init__(self) -> None:
        _set(self, "exprs", tuple(self.exprs))


# ----- patterns -----


@dataclass(frozen=True)
class VarPattern:
    """Binds a name; a name of None discards the value."""

    name: Optional[str] = None


@dataclass(frozen=True)
class CasePattern:
    tag: str
    pattern: Pattern


@dataclass(frozen=True)
class RecordPattern:
    fields: tuple[tuple[str, Pattern], ...]

    def __post_init__(self) -> None:
        _set(self, "fields", tuple((n, p) for n, p in self.fields))


Expr = Union[
    BinOpExpr,
    BlockExpr,
    CallExpr,
    CaseExpr,
    FieldAccessExpr,
    FieldSetExpr,
    FuncDefExpr,
    IfExpr,
    LiteralExpr,
    LoopExpr,
    MatchExpr,
    RecordExpr,
    VariableExpr,
    ArrayExpr,
    DictExpr,
]
Statement = Union[EmptyStmt, ExprStmt, LetDef, LetRecDef, Println]
Pattern = Union[VarPattern, CasePattern, RecordPattern]

_EXPR_TYPES = (
    BinOpExpr,
    BlockExpr,
    CallExpr,
    CaseExpr,
    FieldAccessExpr,
    FieldSetExpr,
    FuncDefExpr,
    IfExpr,
    LiteralExpr,
    LoopExpr,
    MatchExpr,
    RecordExpr,
    VariableExpr,
    ArrayExpr,
    DictExpr,
)
_STMT_TYPES = (EmptyStmt, ExprStmt, LetDef, LetRecDef, Println)
_PATTERN_TYPES = (VarPattern, CasePattern, RecordPattern)


def _require(node: Any, types: tuple[type, ...], kind: str) -> Any:
    """Return ``node`` if it is one of ``types``, else raise TypeError."""
    if not isinstance(node, types):
        raise TypeError(f"expected {kind}, got {type(node).__name__}")
    return node


# ----- constructors -----


def block(statements: Iterable[Statement], expr: Expr) -> Expr:
    """Build a block, merging a block in tail position into this one."""
    statements = tuple(statements)
    if isinstance(expr, BlockExpr):
        statements += expr.statements
        expr = expr.expr
    if not statements:
        return expr
    return BlockExpr(statements, expr)


def case(tag: str, expr: Expr) -> CaseExpr:
    return CaseExpr(tag, expr)


def field_access(field: str, expr: Expr) -> FieldAccessExpr:
    return FieldAccessExpr(expr, field)


def match_(
    expr: Expr,
    cases: Iterable[tuple[str, Pattern, Expr]],
    wildcard: Optional[tuple[Optional[str], Expr]],
) -> MatchExpr:
    return MatchExpr(expr, tuple(cases), wildcard)


# ----- read-only walking -----


class VisitResult(enum.Enum):
    CONTINUE = enum.auto()
    """Visit the node's children."""
    BREAK = enum.auto()
    """Skip the node's children and its post visit."""


class Visitor:
    """Base visitor; override the hooks of interest.

    The default post hooks check that the finished node is of the kind
    the hook is meant for.
    """

    def pre_visit_stmt(self, stmt: Statement) -> VisitResult:
        return VisitResult.CONTINUE

    def pre_visit_expr(self, expr: Expr) -> VisitResult:
        return VisitResult.CONTINUE

    def pre_visit_pattern(self, pattern: Pattern) -> VisitResult:
        return VisitResult.CONTINUE

    def post_visit_stmt(self, stmt: Statement) -> None:
        _require(stmt, _STMT_TYPES, "statement")

    def post_visit_expr(self, expr: Expr) -> None:
        _require(expr, _EXPR_TYPES, "expression")

    def post_visit_pattern(self, pattern: Pattern) -> None:
        _require(pattern, _PATTERN_TYPES, "pattern")


def _expr_children(expr: Expr) -> Iterator[Any]:
    match expr:
        case BinOpExpr(lhs=lhs, rhs=rhs):
            yield lhs
            yield rhs
        case BlockExpr(statements=statements, expr=tail):
            yield from statements
            yield tail
        case CallExpr(func=func, arg=arg):
            yield func
            yield arg
        case CaseExpr(expr=inner) | FieldAccessExpr(expr=inner):
            yield inner
        case FieldSetExpr(expr=inner, value=value):
            yield inner
            yield value
        case FuncDefExpr(param=param, body=body):
            yield body
            yield param
        case IfExpr(cond=cond, then_expr=then_expr, else_expr=else_expr):
            yield cond
            yield then_expr
            yield else_expr
        case LoopExpr(body=body):
            yield body
        case MatchExpr(expr=scrutinee, cases=cases, wildcard=wildcard):
            yield scrutinee
            for _, pattern, arm in cases:
                yield pattern
                yield arm
            if wildcard is not None:
                yield wildcard[1]
        case RecordExpr(fields=fields):
            for _, value, _ in fields:
                yield value
        case ArrayExpr(items=items):
            yield from items
        case DictExpr(items=items):
            for key, value in items:
                yield key
                yield value
        case LiteralExpr() | VariableExpr():
            pass


def _stmt_children(stmt: Statement) -> Iterator[Any]:
    match stmt:
        case ExprStmt(expr=expr):
            yield expr
        case LetDef(pattern=pattern, expr=expr):
            yield pattern
            yield expr
        case LetRecDef(defs=defs):
            for _, expr in defs:
                yield expr
        case Println(exprs=exprs):
            yield from exprs
        case EmptyStmt():
            pass


def _pattern_children(pattern: Pattern) -> Iterator[Pattern]:
    match pattern:
        case CasePattern(pattern=inner):
            yield inner
        case RecordPattern(fields=fields):
            for _, inner in fields:
                yield inner
        case VarPattern():
            pass


def walk(node: Any, visitor: Visitor) -> None:
    """Visit ``node`` (or each node of a sequence) depth first."""
    if isinstance(node, _EXPR_TYPES):
        if visitor.pre_visit_expr(node) is VisitResult.BREAK:
            return
        for child in _expr_children(node):
            walk(child, visitor)
        visitor.post_visit_expr(node)
    elif isinstance(node, _STMT_TYPES):
        if visitor.pre_visit_stmt(node) is VisitResult.BREAK:
            return
        for child in _stmt_children(node):
            walk(child, visitor)
        visitor.post_visit_stmt(node)
    elif isinstance(node, _PATTERN_TYPES):
        if visitor.pre_visit_pattern(node) is VisitResult.BREAK:
            return
        for child in _pattern_children(node):
            walk(child, visitor)
        visitor.post_visit_pattern(node)
    elif isinstance(node, (list, tuple)):
        for item in node:
            walk(item, visitor)
    else:
        raise TypeError(f"cannot walk {type(node).__name__}")


# ----- rebuilding -----


@dataclass(frozen=True)
class TransformResult:
    """Outcome of a pre-visit hook: the node, and whether to descend into it."""

    node: Any
    descend: bool = True

    @classmethod
    def continue_with(cls, node: Any) -> TransformResult:
        return cls(node, True)

    @classmethod
    def break_with(cls, node: Any) -> TransformResult:
        return cls(node, False)


class Transformer:
    """Base transformer; every hook returns its input unchanged.

    The default post hooks check that the rebuilt node is of the kind
    the hook is meant for.
    """

    def pre_visit_stmt(self, stmt: Statement) -> TransformResult:
        return TransformResult.continue_with(stmt)

    def pre_visit_expr(self, expr: Expr) -> TransformResult:
        return TransformResult.continue_with(expr)

    def pre_visit_pattern(self, pattern: Pattern) -> TransformResult:
        return TransformResult.continue_with(pattern)

    def visit_binding(self, name: Optional[str]) -> Optional[str]:
        return name

    def post_visit_stmt(self, stmt: Statement) -> Statement:
        return _require(stmt, _STMT_TYPES, "statement")

    def post_visit_expr(self, expr: Expr) -> Expr:
        return _require(expr, _EXPR_TYPES, "expression")

    def post_visit_pattern(self, pattern: Pattern) -> Pattern:
        return _require(pattern, _PATTERN_TYPES, "pattern")


def _transform_expr(expr: Expr, tr: Transformer) -> Expr:
    result = tr.pre_visit_expr(expr)
    if not result.descend:
        return result.node
    expr = result.node

    def t(node: Any) -> Any:
        return transform(node, tr)

    match expr:
        case BinOpExpr():
            expr = replace(expr, lhs=t(expr.lhs), rhs=t(expr.rhs))
        case BlockExpr(statements=statements, expr=tail):
            new_statements = t(statements)
            expr = block(new_statements, t(tail))
        case CallExpr():
            expr = replace(expr, func=t(expr.func), arg=t(expr.arg))
        case CaseExpr(tag=tag, expr=inner):
            expr = CaseExpr(tag, t(inner))
        case FieldAccessExpr(expr=inner, field=field):
            expr = FieldAccessExpr(t(inner), field)
        case FieldSetExpr(expr=inner, field=field, value=value):
            new_inner = t(inner)
            expr = FieldSetExpr(new_inner, field, t(value))
        case FuncDefExpr(param=param, body=body):
            new_param = t(param)
            expr = FuncDefExpr(new_param, t(body))
        case IfExpr(cond=cond, then_expr=then_expr, else_expr=else_expr):
            new_cond = t(cond)
            new_then = t(then_expr)
            expr = IfExpr(new_cond, new_then, t(else_expr))
        case LoopExpr(body=body):
            expr = LoopExpr(t(body))
        case MatchExpr(expr=scrutinee, cases=cases, wildcard=wildcard):
            new_scrutinee = t(scrutinee)
            new_cases = []
            for tag, pattern, arm in cases:
                new_pattern = t(pattern)
                new_cases.append((tag, new_pattern, t(arm)))
            new_wildcard = None
            if wildcard is not None:
                name, arm = wildcard
                new_name = tr.visit_binding(name)
                new_wildcard = (new_name, t(arm))
            expr = MatchExpr(new_scrutinee, tuple(new_cases), new_wildcard)
        case RecordExpr(fields=fields):
            expr = RecordExpr(tuple((n, t(v), m) for n, v, m in fields))
        case ArrayExpr(items=items):
            expr = ArrayExpr(tuple(t(item) for item in items))
        case DictExpr(items=items):
            new_items = []
            for key, value in items:
                new_key = t(key)
                new_items.append((new_key, t(value)))
            expr = DictExpr(tuple(new_items))
        case LiteralExpr() | VariableExpr():
            pass
    return tr.post_visit_expr(expr)


def _transform_stmt(stmt: Statement, tr: Transformer) -> Statement:
    result = tr.pre_visit_stmt(stmt)
    if not result.descend:
        return result.node
    stmt = result.node

    match stmt:
        case ExprStmt(expr=expr):
            stmt = ExprStmt(transform(expr, tr))
        case LetDef(pattern=pattern, expr=expr):
            # The value is evaluated before it is matched, so visit it first.
            value = transform(expr, tr)
            stmt = LetDef(transform(pattern, tr), value)
        case LetRecDef(defs=defs):
            stmt = LetRecDef(tuple((name, transform(e, tr)) for name, e in defs))
        case Println(exprs=exprs):
            stmt = Println(tuple(transform(e, tr) for e in exprs))
        case EmptyStmt():
            pass
    return tr.post_visit_stmt(stmt)


def _transform_pattern(pattern: Pattern, tr: Transformer) -> Pattern:
    result = tr.pre_visit_pattern(pattern)
    if not result.descend:
        return result.node
    pattern = result.node

    match pattern:
        case VarPattern(name=name):
            pattern = VarPattern(tr.visit_binding(name))
        case CasePattern(tag=tag, pattern=inner):
            pattern = CasePattern(tag, transform(inner, tr))
        case RecordPattern(fields=fields):
            pattern = RecordPattern(tuple((n, transform(p, tr)) for n, p in fields))
    return tr.post_visit_pattern(pattern)


def transform(node: Any, transformer: Transformer) -> Any:
    """Rebuild ``node`` (or each node of a list or tuple) through ``transformer``."""
    if isinstance(node, _EXPR_TYPES):
        return _transform_expr(node, transformer)
    if isinstance(node, _STMT_TYPES):
        return _transform_stmt(node, transformer)
    if isinstance(node, _PATTERN_TYPES):
        return _transform_pattern(node, transformer)
    if isinstance(node, list):
        return [transform(item, transformer) for item in node]
    if isinstance(node, tuple):
        return tuple(transform(item, transformer) for item in node)
    raise TypeError(f"cannot transform {type(node).__name__}")