from polysub.passes.dead_code_elimination import DeadCodeTransformer
from polysub.tree import (
    BinOpExpr,
    CallExpr,
    EmptyStmt,
    ExprStmt,
    LetDef,
    LiteralExpr,
    LiteralType,
    Op,
    Println,
    VariableExpr,
    VarPattern,
    block,
)


def lit(n):
    return LiteralExpr(LiteralType.INT, str(n))


def var(name):
    return VariableExpr(name)


def let(name, value):
    return LetDef(VarPattern(name), value)


def add(lhs, rhs):
    return BinOpExpr(lhs, rhs, Op.ADD, LiteralType.INT, LiteralType.INT)


def test_dont_eliminate_used_variables():
    stmts = [ExprStmt(block([let("x", lit(0))], var("x")))]
    output = DeadCodeTransformer().transform_stmts(stmts, False)
    assert output == stmts


def test_eliminate_unused_let():
    output = DeadCodeTransformer().transform_stmts([let(None, lit(0))], False)
    assert output == [EmptyStmt()]


def test_keep_side_effects():
    stmts = [let(None, block([Println((lit(0),))], lit(0)))]
    output = DeadCodeTransformer().transform_stmts(stmts, False)
    assert output == stmts


def test_keep_unused_toplevel_bindings():
    stmts = [let("x", lit(0))]
    output = DeadCodeTransformer().transform_stmts(stmts, True)
    assert output == stmts
    assert output != []


def test_keep_variables_used_in_subsequent_statements():
    stmts = [ExprStmt(block([let("x", lit(0)), Println((var("x"),))], lit(0)))]
    output = DeadCodeTransformer().transform_stmts(stmts, False)
    assert output == stmts


def test_eliminate_unused_variables():
    stmts = [ExprStmt(block([let("x", lit(0))], lit(0)))]
    output = DeadCodeTransformer().transform_stmts(stmts, True)
    assert output == [ExprStmt(lit(0))]


def test_eliminate_unused_variables2():
    tr = DeadCodeTransformer()
    output = tr.transform_stmts([let("x", lit(0))], False)
    assert output == []
    assert tr.changes == 1


def test_eliminate_indirectly_nested_unused_variables():
    inner = block([let("y", var("x"))], lit(0))
    stmts = [ExprStmt(block([let("x", lit(1))], add(lit(1), inner)))]
    output = DeadCodeTransformer().transform_stmts(stmts, True)
    assert output == [ExprStmt(add(lit(1), lit(0)))]


def test_eliminate_indirectly_chained_unused_variables():
    stmts = [ExprStmt(block([let("x", lit(1)), let("y", var("x"))], lit(0)))]
    output = DeadCodeTransformer().transform_stmts(stmts, True)
    assert output == [ExprStmt(lit(0))]


def test_unused_binding_with_side_effect_becomes_discard():
    call = CallExpr(var("f"), lit(1))
    tr = DeadCodeTransformer()
    output = tr.transform_stmts([let("x", call)], False)
    assert output == [let(None, call)]
    assert tr.changes == 1