[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nstdkit"
version = "0.1.0"
description = "Small foundation toolkit: string helpers, time values, threads, variants, ordered containers, IPv4 sockets, polling and a callback-driven network event loop"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "strings",
    "time",
    "threads",
    "variant",
    "multimap",
    "hashset",
    "sockets",
    "poll",
    "event loop",
    "server",
]
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
    "Topic :: Software Development :: Libraries",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["nstdkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
