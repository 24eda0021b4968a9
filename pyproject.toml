[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "modstore"
version = "0.1.0"
description = "Filesystem storage for Go module versions, blob-store helpers, a backend compliance suite and a proxy liveness probe"
requires-python = ">=3.10"
keywords = ["go", "modules", "proxy", "storage", "cache"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = []

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
modstore-liveness = "modstore.liveness:main"

[tool.hatch.build.targets.wheel]
packages = ["modstore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
