"""Dated test files, their archiving, and cron jobs that keep creating them.

``main`` creates ``~/test/<date>_<time>``, archives older dated files into
``~/test/archived/<date>.tar`` and appends a line to ``~/report``.
``repeat_main`` schedules it once, two minutes ahead, and waits for the report
to grow; ``total_repeat_main`` schedules it every five minutes on Fridays.
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
import tarfile
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Sequence

SUCCESS = 0
FILE_CREATION_ISSUE = 3
FILE_OPENING_ISSUE = 4
FILE_WRITING_ISSUE = 5
DIR_CREATION_ISSUE = 9
DIR_OPENING_ISSUE = 10
SYSTEM_COMMAND_ISSUE = 20
NON_SPECIFIED_ISSUE = 30

TEST_DIRNAME = "test"
ARCHIVE_DIRNAME = "archived"
LOG_FILENAME = "report"
DATE_FORMAT = "%Y-%m-%d"
FILE_FORMAT = "%Y-%m-%d_%H-%M-%S"
LOG_TIME_FORMAT = "%Y-%m-%d:%H-%M-%S"
LOG_BANNER = "test was created successfully"

OBJECT_FILE_PATH = "~/lab2/process-control/object_log_files/1_datetime"
LOG_FILE_PATH = "~/lab2/process-control/object_log_files/1_datetime.log"
ONCE_IDENTIFIER = "# next_two_min_job"
WEEKLY_IDENTIFIER = "# every_lessonday_job"
RUN_DAY = "5"


class TaskError(Exception):
    """A failure carrying the exit status the command reports."""

    def __init__(self, message: str, code: int):
        super().__init__(message)
        self.code = code


def home_directory() -> Path:
    """Return the directory named by ``HOME``."""
    home = os.environ.get("HOME")
    if not home:
        raise TaskError("Could not get home directory", NON_SPECIFIED_ISSUE)
    return Path(home)


def _make_directory(path: Path) -> Path:
    if not path.exists():
        try:
            path.mkdir(mode=0o700)
        except OSError:
            raise TaskError("Could not create directory", DIR_CREATION_ISSUE) from None
    return path


def is_well_formed_filename(name: str) -> bool:
    """Return whether ``name`` is exactly a ``YYYY-MM-DD_HH-MM-SS`` timestamp."""
    try:
        datetime.strptime(name, FILE_FORMAT)
    except ValueError:
        return False
    return True


def archive_previous(test_dir, archive_dir, now: datetime) -> list[str]:
    """Move dated files not from ``now``'s day into per-day tar archives.

    Returns the names of the files that were archived.
    """
    test_dir = Path(test_dir)
    archive_dir = Path(archive_dir)
    try:
        entries = sorted(os.scandir(test_dir), key=lambda entry: entry.name)
    except OSError:
        raise TaskError(f"Could not open {test_dir} directory", DIR_OPENING_ISSUE) from None
    prefix = now.strftime(DATE_FORMAT)
    archived: list[str] = []
    for entry in entries:
        if not entry.is_file(follow_symlinks=False) or entry.name.startswith(prefix):
            continue
        if not is_well_formed_filename(entry.name):
            continue
        archive_path = archive_dir / f"{entry.name[:len(prefix)]}.tar"
        mode = "a" if archive_path.is_file() else "w"
        try:
            with tarfile.open(archive_path, mode) as archive:
                archive.add(entry.path, arcname=entry.name)
            os.remove(entry.path)
        except (OSError, tarfile.TarError):
            print("Could not archive previous data", file=sys.stderr)
            continue
        archived.append(entry.name)
    return archived


def put_datefile(directory, now: datetime) -> Path:
    """Create an empty file named after ``now`` and return its path."""
    path = Path(directory) / now.strftime(FILE_FORMAT)
    try:
        path.touch()
    except OSError:
        raise TaskError("Could not create testfile", FILE_CREATION_ISSUE) from None
    return path


def append_log(directory, now: datetime) -> Path:
    """Append the creation line for ``now`` to the report file and return its path."""
    path = Path(directory) / LOG_FILENAME
    line = f"{now.strftime(LOG_TIME_FORMAT)} {LOG_BANNER}\n"
    try:
        handle = open(path, "a", encoding="utf-8")
    except OSError:
        raise TaskError("Could not open file to log", FILE_OPENING_ISSUE) from None
    with handle:
        try:
            handle.write(line)
        except OSError:
            raise TaskError("Could not write log info in a file", FILE_WRITING_ISSUE) from None
    return path


def crontab_job_once(when: datetime) -> str:
    """Return a crontab line that runs the date-file job at ``when``."""
    return (
        f"{when.minute} {when.hour} {when.day} {when.month} * "
        f"{OBJECT_FILE_PATH} >> {LOG_FILE_PATH} 2>&1 {ONCE_IDENTIFIER}"
    )


def crontab_job_weekly() -> str:
    """Return a crontab line that runs the job every five minutes on Fridays."""
    return f"*/5 * * * {RUN_DAY} {OBJECT_FILE_PATH} >> {LOG_FILE_PATH} 2>&1 {WEEKLY_IDENTIFIER}"


def install_cron_job(job: str) -> str:
    """Append ``job`` to the user's crontab and return the installed table."""
    try:
        current = subprocess.run(
            ["crontab", "-l"], capture_output=True, text=True, check=False
        ).stdout
        table = f"{current}{job}\n"
        subprocess.run(["crontab", "-"], input=table, text=True, check=False)
    except OSError:
        raise TaskError("Could not execute crontab", SYSTEM_COMMAND_ISSUE) from None
    return table


def wait_for_report(path, first_wait: float = 115, poll_interval: float = 3) -> list[str]:
    """Wait until ``path`` grows and return the lines added after the call."""
    path = Path(path)
    try:
        position = path.stat().st_size
    except OSError:
        raise TaskError("Could not open report file", FILE_OPENING_ISSUE) from None
    time.sleep(first_wait)
    while True:
        time.sleep(poll_interval)
        try:
            with open(path, "rb") as handle:
                handle.seek(position)
                data = handle.read()
        except OSError:
            raise TaskError("Could not reopen report file", FILE_OPENING_ISSUE) from None
        if data:
            return data.decode("utf-8", errors="replace").splitlines(keepends=True)


def _run(task, argv, prog: str, description: str) -> int:
    argparse.ArgumentParser(prog=prog, description=description).parse_args(argv)
    try:
        task()
    except TaskError as exc:
        print(exc, file=sys.stderr)
        return exc.code
    return SUCCESS


def _datetime_task() -> None:
    home = home_directory()
    test_dir = _make_directory(home / TEST_DIRNAME)
    now = datetime.now()
    archive_dir = _make_directory(test_dir / ARCHIVE_DIRNAME)
    archive_previous(test_dir, archive_dir, now)
    put_datefile(test_dir, now)
    append_log(home, now)


def _repeat_task() -> None:
    install_cron_job(crontab_job_once(datetime.now() + timedelta(seconds=120)))
    for line in wait_for_report(home_directory() / LOG_FILENAME):
        print(line)


def _total_repeat_task() -> None:
    install_cron_job(crontab_job_weekly())


def main(argv: Sequence[str] | None = None) -> int:
    """Create today's test file, archive older ones and log the creation."""
    return _run(_datetime_task, argv, "datetime", main.__doc__)


def repeat_main(argv: Sequence[str] | None = None) -> int:
    """Schedule the job two minutes ahead and print what it reports."""
    return _run(_repeat_task, argv, "repeat_datetime", repeat_main.__doc__)


def total_repeat_main(argv: Sequence[str] | None = None) -> int:
    """Schedule the job every five minutes on Fridays."""
    return _run(_total_repeat_task, argv, "total_repeat_datetime", total_repeat_main.__doc__)


if __name__ == "__main__":
    sys.exit(main())