[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "clusteradmission"
version = "0.1.0"
description = "Admission hooks that mutate and validate ManagedCluster and ManagedClusterSetBinding requests"
requires-python = ">=3.10"
dependencies = []
keywords = ["admission", "webhook", "cluster", "kubernetes", "rbac", "authorization"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["clusteradmission"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
