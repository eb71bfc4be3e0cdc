[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "comdisasm"
version = "0.1.2"
description = "Disassembler for DOS .COM files that emits labelled NASM-syntax assembly"
requires-python = ">=3.10"
dependencies = []
keywords = ["disassembler", "dos", "com", "x86", "nasm", "16-bit"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
comdisasm = "comdisasm.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["comdisasm"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
