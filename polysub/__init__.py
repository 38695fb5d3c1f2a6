"""Runtime syntax tree, interpreter, builtins and optimisation passes for a small ML-style language."""

__version__ = "1.0.0"