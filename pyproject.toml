[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "polysub"
version = "1.0.0"
description = "Tree-walking interpreter and optimisation passes for a small ML-style language with subtyping"
requires-python = ">=3.10"
dependencies = []
keywords = ["interpreter", "optimizer", "ast", "inlining", "dead-code-elimination", "language"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Interpreters",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["polysub"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
