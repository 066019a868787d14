[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rdbkit"
version = "0.1.0"
description = "Building blocks for reading and encoding Redis RDB data in pure Python"
requires-python = ">=3.10"
dependencies = []
keywords = ["redis", "rdb", "snapshot", "ziplist", "listpack", "intset", "lzf"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rdbkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
