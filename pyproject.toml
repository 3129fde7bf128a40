[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "reeweb"
version = "0.1.0"
description = "A small asyncio HTTP/1.1 web framework with trie routing, route groups and middleware"
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "web", "router", "middleware", "asyncio", "server", "trie"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
reeweb = "reeweb.app:main"

[tool.hatch.build.targets.wheel]
packages = ["reeweb"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
