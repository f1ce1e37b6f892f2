[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "resmon"
version = "0.1.0"
description = "Linux resource monitor: CPU, memory, drives and network interfaces read from procfs and sysfs"
requires-python = ">=3.10"
dependencies = []
keywords = ["monitor", "system", "resources", "cpu", "memory", "drives", "network", "sysfs", "procfs"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
resmon = "resmon.monitor:main"

[tool.hatch.build.targets.wheel]
packages = ["resmon"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
