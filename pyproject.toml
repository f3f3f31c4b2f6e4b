[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "natscaler"
version = "0.1.0"
description = "Scale deployments up and down from the pending-message count of a NATS JetStream consumer"
requires-python = ">=3.10"
dependencies = []
keywords = ["nats", "jetstream", "autoscaling", "kubernetes", "controller", "reconciler"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["natscaler"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
