[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "aether"
version = "0.1.0"
description = "A binary TCP protocol, an event bus, a threaded TCP server and an interactive shell client"
requires-python = ">=3.10"
dependencies = []
keywords = ["event-bus", "tcp", "binary-protocol", "shell", "parser"]
classifiers = [
    "Development Status :: 3 - Alpha",
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
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
aether = "aether.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["aether"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
