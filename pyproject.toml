[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sheila"
version = "0.1.0"
description = "Test-writing toolkit: assertions, fixtures, hooks, mocks, parameter sets and a command line for listing tests and viewing reports"
requires-python = ">=3.11"
dependencies = [
    "termcolor",
]
keywords = ["testing", "fixtures", "mocking", "assertions", "parameterized-tests", "test-discovery"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
sheila = "sheila.cli.main:main"

[tool.hatch.build.targets.wheel]
packages = ["sheila"]

[tool.pytest.ini_options]
addopts = "-ra"
