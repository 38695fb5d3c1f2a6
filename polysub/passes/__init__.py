"""Rewriting passes applied to the runtime syntax tree."""