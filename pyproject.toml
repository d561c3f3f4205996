[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vessl"
version = "1.0.0"
description = "A command-line tool for managing Docker containers through the Docker Engine API"
requires-python = ">=3.10"
dependencies = []
keywords = ["docker", "containers", "cli", "devops", "images"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
vessl = "vessl.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["vessl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
