from polysub.passes.alpha_conversion import VariableRenamer
from polysub.tree import (
    BlockExpr,
    CallExpr,
    ExprStmt,
    FuncDefExpr,
    LetDef,
    LetRecDef,
    LiteralExpr,
    LiteralType,
    VariableExpr,
    VarPattern,
    transform,
)


def lit(n):
    return LiteralExpr(LiteralType.INT, str(n))


def var(name):
    return VariableExpr(name)


def test_toplevel_bindings_keep_their_names():
    script = [LetDef(VarPattern("x"), lit(1)), ExprStmt(var("x"))]
    assert transform(script, VariableRenamer(True)) == script


def test_local_binding_and_use_are_renamed_together():
    script = [LetDef(VarPattern("x"), lit(1)), ExprStmt(var("x"))]
    out = transform(script, VariableRenamer(False))
    new_name = out[0].pattern.name
    assert new_name != "x"
    assert new_name.startswith("x'")
    assert out[1].expr.name == new_name


def test_function_parameter_renamed_inside_function():
    fn = FuncDefExpr(VarPattern("a"), var("a"))
    out = transform(fn, VariableRenamer(True))
    assert out.param.name == "a'0"
    assert out.body.name == "a'0"


def test_existing_suffix_is_replaced():
    fn = FuncDefExpr(VarPattern("x'7"), var("x'7"))
    out = transform(fn, VariableRenamer(True))
    assert out.param.name == "x'0"
    assert out.body == VariableExpr(out.param.name)


def test_dunder_names_are_not_renamed():
    fn = FuncDefExpr(VarPattern("__tmp"), var("__tmp"))
    assert transform(fn, VariableRenamer(False)) == fn


def test_free_variables_are_untouched():
    fn = FuncDefExpr(VarPattern("a"), CallExpr(var("y"), var("a")))
    out = transform(fn, VariableRenamer(False))
    assert out.body.func == var("y")
    assert out.body.arg.name == out.param.name


def test_let_value_refers_to_previous_binding():
    script = [LetDef(VarPattern("x"), lit(1)), LetDef(VarPattern("x"), var("x"))]
    out = transform(script, VariableRenamer(False))
    assert out[1].expr.name == out[0].pattern.name
    assert out[1].pattern.name != out[0].pattern.name


def test_let_rec_names_resolve_inside_bodies():
    fn = FuncDefExpr(VarPattern("n"), CallExpr(var("f"), var("n")))
    script = [LetRecDef((("f", fn),))]
    out = transform(script, VariableRenamer(False))
    (name, body), = out[0].defs
    assert name != "f"
    assert body.body.func.name == name
    assert body.body.arg.name == body.param.name


def test_block_bindings_do_not_leak():
    inner = BlockExpr((LetDef(VarPattern("x"), lit(1)),), var("x"))
    script = [ExprStmt(inner), ExprStmt(var("x"))]
    out = transform(script, VariableRenamer(True))
    renamed = out[0].expr
    assert renamed.statements[0].pattern.name != "x"
    assert renamed.expr.name == renamed.statements[0].pattern.name
    assert out[1] == ExprStmt(var("x"))