[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tavola"
version = "0.1.0"
description = "Business core of a restaurant system: menu dishes and image links, orders and their events, chat notifications, configuration and health checks"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = [
    "restaurant",
    "menu",
    "orders",
    "order-events",
    "outbox",
    "notifications",
    "health-check",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
tavola = "tavola.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tavola"]

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
