[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "surgevol"
version = "0.1.0"
description = "Volatility oracle, volatility futures redemption and variance market settlement logic"
requires-python = ">=3.10"
dependencies = []
keywords = ["volatility", "variance", "futures", "welford", "oracle", "derivatives"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["surgevol"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
