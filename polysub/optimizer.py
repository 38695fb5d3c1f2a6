"""Run the rewriting passes over a script until nothing changes."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import Any

from polysub.passes.alpha_conversion import VariableRenamer
from polysub.passes.beta_reduction import DirectCallTransformer
from polysub.passes.betacase_reduction import KnownMatchTransformer
from polysub.passes.betarec_reduction import DirectFieldAccessTransformer
from polysub.passes.block_flattening import BlockFlattener
from polysub.passes.case_field_mover import CaseLiftAndFieldLowerTransformer
from polysub.passes.condition_lifting import ConditionLiftTransformer
from polysub.passes.dead_code_elimination import DeadCodeTransformer
from polysub.passes.inliner import InlineTransformer
from polysub.passes.let_expansion import LetExpander
from polysub.tree import transform


def optimize_script(script: Iterable[Any], toplevel: bool) -> list[Any]:
    """Optimise a list of statements, repeating all passes to a fixed point.

    With ``toplevel`` set, top-level bindings keep their names and are never
    removed. The number of rewrites of each round is reported on stderr.
    """
    script = list(script)
    changes = 1
    while changes > 0:
        changes = 0

        # Passes that duplicate code may break name uniqueness, so rename first.
        script = transform(script, VariableRenamer(toplevel))

        inliner = InlineTransformer()
        script = transform(script, inliner)
        changes += inliner.changes

        # Inlining can duplicate bindings; make them unique again.
        script = transform(script, VariableRenamer(toplevel))

        betarec = DirectFieldAccessTransformer()
        script = transform(script, betarec)
        changes += betarec.changes

        beta = DirectCallTransformer()
        script = transform(script, beta)
        changes += beta.changes

        let_expander = LetExpander()
        script = let_expander.transform_stmts(script)
        changes += let_expander.changes

        flattener = BlockFlattener()
        script = flattener.transform_stmts(script, toplevel)
        changes += flattener.changes

        mover = CaseLiftAndFieldLowerTransformer()
        script = transform(script, mover)
        changes += mover.changes

        lifter = ConditionLiftTransformer()
        script = transform(script, lifter)
        changes += lifter.changes

        betacase = KnownMatchTransformer()
        script = transform(script, betacase)
        changes += betacase.changes

        eliminator = DeadCodeTransformer()
        script = eliminator.transform_stmts(script, toplevel)
        changes += eliminator.changes

        print(f"Optimization pass made {changes} rewrites", file=sys.stderr)

    return script