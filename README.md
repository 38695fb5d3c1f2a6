# polysub

`polysub` holds the runtime half of a small ML-style language with
structural subtyping: the syntax tree a program runs from, a tree-walking
interpreter with its builtin functions, and a set of rewriting passes that
simplify a program before it runs.

## Installing

```
pip install .
pip install ".[test]"   # with the test dependencies
```

## What is inside

- `polysub.tree`: the runtime syntax tree. Expressions are frozen
  dataclasses such as `BinOpExpr`, `BlockExpr`, `CallExpr`, `CaseExpr`,
  `FieldAccessExpr`, `FieldSetExpr`, `FuncDefExpr`, `IfExpr`, `LiteralExpr`,
  `LoopExpr`, `MatchExpr`, `RecordExpr`, `VariableExpr`, `ArrayExpr` and
  `DictExpr`; statements are `EmptyStmt`, `ExprStmt`, `LetDef`, `LetRecDef`
  and `Println`; patterns are `VarPattern`, `CasePattern` and
  `RecordPattern`. `LiteralType` and `Op` are enums for literal kinds and
  binary operators. The helpers `block` (which merges a block in tail
  position and drops empty blocks), `case`, `field_access` and `match_` build
  nodes. A read-only `Visitor` is driven by `walk`, a rewriting
  `Transformer` by `transform`; pre-visit hooks return a `VisitResult` or a
  `TransformResult` to say whether to descend into a node's children.
- `polysub.purity`: `is_pure(expr)` tells whether evaluating an expression
  may have an observable side effect (calls, field sets, `println` and
  records with mutable fields count as effects; function definitions never
  do). `free_vars(node)` gives the names a node uses without binding them.
- `polysub.interpreter`: `State` runs a script statement by statement with
  `run_script`, `exec` and `eval`. Runtime values are Python `bool`, `int`,
  `float`, `str`, tuples (vectors) and dicts, together with `Case`,
  `Record`, `Closure` and `Builtin`. `Env` is a persistent chain of
  bindings with placeholders for recursive definitions, and `show(value)`
  renders a value the way `println` does. Run-time failures raise
  `InterpreterError`.
- `polysub.builtins`: `define_builtins(env)` returns `env` extended with the
  builtin functions: `panic`, `__read_line`, `__write_str`, string and
  character functions (`__chars`, `__split`, `__char_to_num`,
  `__num_to_char`, `__escape`, `__unescape`), number conversions, vector
  functions (`__vec_*`), dictionary functions (`__dict_*`) and progress-bar
  functions (`__progress_bar_*`, backed by `ProgressBar`, which draws to
  stderr). `escape` and `unescape` convert between text and byte escape
  sequences.
- `polysub.passes`: one rewriting pass per module, each counting its
  rewrites in `changes`: `VariableRenamer` (alpha conversion),
  `DirectCallTransformer` (beta reduction), `KnownMatchTransformer`,
  `DirectFieldAccessTransformer`, `BlockFlattener`,
  `CaseLiftAndFieldLowerTransformer`, `ConditionLiftTransformer`,
  `DeadCodeTransformer`, `InlineTransformer` and `LetExpander`.
- `polysub.optimizer`: `optimize_script(script, toplevel)` runs every pass
  again and again until none of them makes a change, reporting the number
  of rewrites of each round on stderr. With `toplevel` set, top-level
  bindings keep their names and are never removed.
- `polysub.unwindmap`: `UnwindMap`, a dictionary whose insertions can be
  rolled back to a saved point, and `sorted_items`.

## Example

```python
from polysub import tree
from polysub.builtins import define_builtins
from polysub.interpreter import Env, State
from polysub.optimizer import optimize_script

script = [
    tree.LetDef(tree.VarPattern("x"), tree.LiteralExpr(tree.LiteralType.INT, "20")),
    tree.Println([
        tree.BinOpExpr(
            lhs=tree.VariableExpr("x"),
            rhs=tree.LiteralExpr(tree.LiteralType.INT, "22"),
            op=tree.Op.ADD,
            arg_type=tree.LiteralType.INT,
            ret_type=tree.LiteralType.INT,
        )
    ]),
]

state = State(define_builtins(Env()))
state.run_script(optimize_script(script, toplevel=True))   # prints "42 "
```

## What it does not do

There is no parser, no type checker and no command-line tool. Programs are
given to the interpreter and the optimiser as trees built from the classes
in `polysub.tree`; nothing here reads program text from a file.

## Running the tests

```
pytest
```