import pytest

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
    Transformer,
    TransformResult,
    VariableExpr,
    VarPattern,
    Visitor,
    VisitResult,
    block,
    case,
    field_access,
    match_,
    transform,
    walk,
)

ONE = LiteralExpr(LiteralType.INT, "1")
X = VariableExpr("x")


def add(lhs, rhs):
    return BinOpExpr(lhs, rhs, Op.ADD, LiteralType.INT, LiteralType.INT)


def sample_tree():
    return BlockExpr(
        (
            LetDef(RecordPattern([("a", VarPattern("p"))]), RecordExpr([("a", ONE, False)])),
            LetRecDef([("f", FuncDefExpr(VarPattern("q"), CallExpr(VariableExpr("f"), X)))]),
            Println([add(X, ONE)]),
            ExprStmt(FieldSetExpr(X, "a", ONE)),
            EmptyStmt(),
        ),
        MatchExpr(
            IfExpr(X, CaseExpr("A", ONE), CaseExpr("B", ONE)),
            [("A", CasePattern("C", VarPattern("y")), ArrayExpr([X, ONE]))],
            ("w", LoopExpr(DictExpr([(X, FieldAccessExpr(X, "a"))]))),
        ),
    )


def test_block_merges_nested_block():
    inner = block([ExprStmt(X)], ONE)
    outer = block([EmptyStmt()], inner)
    assert outer == BlockExpr((EmptyStmt(), ExprStmt(X)), ONE)


def test_block_without_statements_is_its_expression():
    assert block([], ONE) == ONE


def test_sequences_are_normalised_to_tuples():
    a = RecordExpr([["a", ONE, False]])
    b = RecordExpr((("a", ONE, False),))
    assert a == b
    assert len({a, b}) == 1


def test_helpers_build_nodes():
    assert case("A", ONE) == CaseExpr("A", ONE)
    assert field_access("f", X) == FieldAccessExpr(X, "f")
    built = match_(X, [("A", VarPattern("y"), ONE)], None)
    assert built == MatchExpr(X, (("A", VarPattern("y"), ONE),), None)


class Recorder(Visitor):
    def __init__(self, stop_at=()):
        self.log = []
        self.posts = 0
        self.stop_at = stop_at

    def pre_visit_expr(self, expr):
        if isinstance(expr, VariableExpr):
            self.log.append(("var", expr.name))
        if isinstance(expr, self.stop_at):
            return VisitResult.BREAK
        return VisitResult.CONTINUE

    def pre_visit_pattern(self, pattern):
        if isinstance(pattern, VarPattern):
            self.log.append(("bind", pattern.name))
        return VisitResult.CONTINUE

    def post_visit_expr(self, expr):
        self.posts += 1


def test_walk_function_visits_body_before_param():
    rec = Recorder()
    walk(FuncDefExpr(VarPattern("p"), VariableExpr("b")), rec)
    assert rec.log == [("var", "b"), ("bind", "p")]


def test_walk_let_visits_pattern_before_value():
    rec = Recorder()
    walk(LetDef(VarPattern("p"), VariableExpr("v")), rec)
    assert rec.log == [("bind", "p"), ("var", "v")]


def test_walk_match_order():
    rec = Recorder()
    node = MatchExpr(
        VariableExpr("s"),
        [("A", VarPattern("a"), VariableExpr("ra"))],
        ("w", VariableExpr("rw")),
    )
    walk(node, rec)
    assert rec.log == [("var", "s"), ("bind", "a"), ("var", "ra"), ("var", "rw")]


def test_walk_break_skips_children_and_post():
    rec = Recorder(stop_at=(CallExpr,))
    walk(CallExpr(VariableExpr("f"), X), rec)
    assert rec.log == []
    assert rec.posts == 0


def test_walk_sequence_of_statements():
    rec = Recorder()
    walk([ExprStmt(VariableExpr("a")), Println([VariableExpr("b")])], rec)
    assert rec.log == [("var", "a"), ("var", "b")]


def test_walk_rejects_unknown_node():
    with pytest.raises(TypeError):
        walk(42, Visitor())


def test_identity_transform_preserves_tree():
    tree = sample_tree()
    assert transform(tree, Transformer()) == tree


class Upper(Transformer):
    def visit_binding(self, name):
        return name.upper() if name else None


def test_visit_binding_renames_binders_only():
    node = MatchExpr(
        X,
        [("A", VarPattern("a"), VariableExpr("a"))],
        ("w", VariableExpr("w")),
    )
    expected = MatchExpr(
        X,
        [("A", VarPattern("A"), VariableExpr("a"))],
        ("W", VariableExpr("w")),
    )
    assert transform(node, Upper()) == expected


def test_visit_binding_keeps_discard():
    assert transform(VarPattern(None), Upper()) == VarPattern(None)


class ReplaceX(Transformer):
    def post_visit_expr(self, expr):
        return ONE if expr == X else expr


def test_post_visit_replaces_nodes():
    assert transform(add(X, X), ReplaceX()) == add(ONE, ONE)


class StopAtFunc(ReplaceX):
    def pre_visit_expr(self, expr):
        if isinstance(expr, FuncDefExpr):
            return TransformResult.break_with(expr)
        return TransformResult.continue_with(expr)


def test_pre_visit_break_keeps_subtree():
    func = FuncDefExpr(VarPattern("p"), X)
    result = transform(CallExpr(func, X), StopAtFunc())
    assert result == CallExpr(func, ONE)


class OrderLog(Transformer):
    def __init__(self):
        self.log = []

    def visit_binding(self, name):
        self.log.append(("bind", name))
        return name

    def post_visit_expr(self, expr):
        if isinstance(expr, VariableExpr):
            self.log.append(("var", expr.name))
        return expr


def test_transform_let_visits_value_before_pattern():
    tr = OrderLog()
    transform(LetDef(VarPattern("p"), VariableExpr("v")), tr)
    assert tr.log == [("var", "v"), ("bind", "p")]


def test_transform_function_visits_param_before_body():
    tr = OrderLog()
    transform(FuncDefExpr(VarPattern("p"), VariableExpr("b")), tr)
    assert tr.log == [("bind", "p"), ("var", "b")]


def test_transform_keeps_container_type():
    stmts = [ExprStmt(X)]
    assert transform(stmts, ReplaceX()) == [ExprStmt(ONE)]
    assert transform(tuple(stmts), ReplaceX()) == (ExprStmt(ONE),)


class InnerToBlock(Transformer):
    def post_visit_expr(self, expr):
        if expr == VariableExpr("inner"):
            return BlockExpr((ExprStmt(ONE),), ONE)
        return expr


def test_transform_block_merges_new_tail_block():
    node = BlockExpr((EmptyStmt(),), VariableExpr("inner"))
    assert transform(node, InnerToBlock()) == BlockExpr((EmptyStmt(), ExprStmt(ONE)), ONE)


def test_transform_rejects_unknown_node():
    with pytest.raises(TypeError):
        transform("text", Transformer())