[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "labkit"
version = "0.1.0"
description = "Small command-line tools: IEEE half/single float arithmetic, a terminal minesweeper, /proc process monitors, cron and process-control exercises, and signal cross-correlation."
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "ieee754",
    "floating-point",
    "minesweeper",
    "procfs",
    "process-monitor",
    "cron",
    "signals",
    "fifo",
    "cross-correlation",
]
classifiers = [
    "Topic :: Utilities",
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
labkit-float = "labkit.floatarith:main"
labkit-minesweeper = "labkit.minesweeper_cli:main"
labkit-users-processes = "labkit.procmon:users_processes_main"
labkit-from-sbin = "labkit.procmon:from_sbin_main"
labkit-pid-of-last = "labkit.procmon:pid_of_last_main"
labkit-cpu-burst = "labkit.procmon:cpu_burst_main"
labkit-avg-run = "labkit.procmon:avg_run_main"
labkit-fattest = "labkit.procmon:fattest_main"
labkit-io = "labkit.procmon:io_main"
labkit-datetime = "labkit.datetime_jobs:main"
labkit-repeat-datetime = "labkit.datetime_jobs:repeat_main"
labkit-total-repeat-datetime = "labkit.datetime_jobs:total_repeat_main"
labkit-limitations = "labkit.limitations:main"
labkit-pipe-producer = "labkit.pipecalc:producer_main"
labkit-pipe-handler = "labkit.pipecalc:handler_main"
labkit-pipe-launcher = "labkit.pipecalc:launcher_main"
labkit-signal-handler = "labkit.signalcalc:handler_main"
labkit-signal-producer = "labkit.signalcalc:producer_main"
labkit-signal-launcher = "labkit.signalcalc:launcher_main"

[tool.hatch.build.targets.wheel]
packages = ["labkit"]

[tool.hatch.build.targets.sdist]
include = ["labkit", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
