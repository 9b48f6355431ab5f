[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mamsim"
version = "0.1.0"
description = "Discrete-event model of a Bluetooth Mesh sensor network with mobile data sinks"
requires-python = ">=3.10"
dependencies = []
keywords = ["bluetooth-mesh", "simulation", "sensor-network", "mobile-sink", "discrete-event"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mamsim"]

[tool.pytest.ini_options]
addopts = "-ra"
