[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtexporter"
version = "0.1.0"
description = "Building blocks for exporting node resource topology: pod resources data, filters, rate-limited update events, metrics and topology object updates."
requires-python = ">=3.10"
keywords = [
    "kubernetes",
    "topology",
    "numa",
    "pod-resources",
    "kubelet",
    "monitoring",
    "metrics",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Typing :: Typed",
]
dependencies = [
    "pyyaml>=6.0",
    "watchdog>=3.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["rtexporter"]

[tool.hatch.build.targets.sdist]
include = [
    "rtexporter",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
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
