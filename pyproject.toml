[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "erpcore"
version = "0.1.0"
description = "Data layer of a plugin-based ERP: field values, record ids, a record cache, an in-memory database and configuration loading"
requires-python = ">=3.11"
dependencies = [
    "platformdirs",
]
keywords = ["erp", "orm", "cache", "database", "records"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["erpcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"
