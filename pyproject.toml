[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "een9"
version = "0.1.0"
description = "A small threaded HTTP server engine with an admin-control protocol, static asset serving and an HTML templating language"
requires-python = ">=3.10"
dependencies = [
    "regex",
]
keywords = ["http", "server", "templates", "cookies", "static-assets"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Text Processing :: Markup :: HTML",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["een9"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
