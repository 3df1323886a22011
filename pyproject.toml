[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dstask"
version = "0.1.0"
description = "Git-backed personal task tracker for the terminal"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
    "wcwidth",
]
keywords = ["tasks", "todo", "git", "cli", "productivity", "taskwarrior"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Scheduling",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
dstask = "dstask.cli:main"
dstask-import = "dstask.imp.main:main"

[tool.hatch.build.targets.wheel]
packages = ["dstask"]

[tool.pytest.ini_options]
addopts = "-ra"
