[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "akashi"
version = "0.1.0"
description = "Building blocks for an Attorney Online 2 server: packets, roles, configuration, bans, music lists, webhooks and logging."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "attorney-online",
    "game-server",
    "roleplay",
    "chat",
    "moderation",
]
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
    "Topic :: Games/Entertainment :: Role-Playing",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["akashi"]

[tool.hatch.build.targets.sdist]
include = ["akashi", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 110
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
