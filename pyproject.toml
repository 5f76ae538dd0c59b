[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "setrender"
version = "0.1.0"
description = "Helpers for rendering GitOpsSets locally: artifact fetching, local repository access and YAML output."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["gitops", "kubernetes", "yaml", "gitopsset", "artifact", "tar"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["setrender"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
