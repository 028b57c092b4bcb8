[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tinykern"
version = "0.1.0"
description = "A small teaching kernel's C library routines, inode file system, serial console and device table, simulated in Python"
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "filesystem", "inode", "block-cache", "printf", "strtol", "serial", "simulation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System Kernels",
    "Topic :: System :: Filesystems",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tinykern"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
