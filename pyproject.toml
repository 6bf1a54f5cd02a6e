[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "microws"
version = "0.1.0"
description = "Building blocks for small HTTP and WebSocket servers: routing, framing, handshakes and an event loop"
requires-python = ">=3.10"
dependencies = []
keywords = ["websocket", "http", "router", "framing", "rfc6455", "event-loop"]
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
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["microws"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
