[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vbdsim"
version = "0.1.0"
description = "Cycle-level clock-tick divider model with VCD tracing and a Vbuddy serial-board driver"
requires-python = ">=3.10"
keywords = ["simulation", "vcd", "serial", "vbuddy", "testbench", "clock-divider"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Electronic Design Automation (EDA)",
]
dependencies = [
    "pyserial",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
vbdsim-clktick = "vbdsim.testbench:main"

[tool.hatch.build.targets.wheel]
packages = ["vbdsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
