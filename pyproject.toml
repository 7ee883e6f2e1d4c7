[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lodestone"
version = "0.1.0"
description = "Collects external AI ecosystem signals and provides the safety gates, state and git/gh runners for turning recommendations into draft pull requests."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["ai", "signals", "github", "hackernews", "npm", "arxiv", "changelog", "git", "safety-gates"]
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
    "Topic :: Software Development",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["lodestone"]

[tool.hatch.build.targets.sdist]
include = ["lodestone", "tests"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
