[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hyperlane"
version = "5.11.0"
description = "A lightweight asyncio HTTP/1.1 server library with middleware, parameterised routes and WebSocket support."
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "server", "websocket", "asyncio", "middleware", "routing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["hyperlane"]

[tool.pytest.ini_options]
addopts = "-ra"
