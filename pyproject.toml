[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "guacs"
version = "0.1.0"
description = "Geometric ray and Gaussian beam tracing of sound through a layered ocean"
requires-python = ">=3.10"
dependencies = []
keywords = ["acoustics", "ray tracing", "beam tracing", "underwater", "sound speed profile", "b-spline"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["guacs"]

[tool.pytest.ini_options]
addopts = "-ra"
