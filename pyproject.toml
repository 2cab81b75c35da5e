[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "apavs"
version = "1.3.0"
description = "Building blocks for an automation operator node: on-disk key-value storage, elapsed-time tracking, EIP-1559 fee suggestion, a GraphQL client, public IP lookup and an ERC-4337 bundler client"
requires-python = ">=3.10"
dependencies = [
    "requests",
]
keywords = ["ethereum", "erc4337", "eip1559", "bundler", "graphql", "key-value", "storage"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["apavs"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
