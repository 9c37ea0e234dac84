[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "callstack"
version = "1.0.0"
description = "Capture, store, reload and print call stacks of the running program"
requires-python = ">=3.10"
dependencies = []
keywords = ["stacktrace", "backtrace", "call stack", "debugging", "addr2line", "crash dump"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Debuggers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
callstack = "callstack.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["callstack"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
