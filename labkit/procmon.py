"""Process inspection through the /proc file system.

Parsers for the per-process files under ``/proc`` plus one command per report:
the current user's processes, executables under ``/usr/sbin``, the most
recently started process, average CPU bursts, per-parent burst averages, the
largest resident set and the heaviest readers over an interval.
"""

from __future__ import annotations

import argparse
import os
import re
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

OK = 0
MEMORY_ALLOCATION_ERROR = 1
OPEN_ERROR = 2

PROC_DIR = "/proc"

_COMM_LIMIT = 127
_CMDLINE_LIMIT = 4095
_SPACES_TO_TIME = 22
_TOP_READERS = 3

_FLOAT = r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
_C_INT = re.compile(r"\s*([+-]?\d+)")
_C_UNSIGNED = re.compile(r"\s*\+?(\d+)")
_C_FLOAT = re.compile(r"\s*(" + _FLOAT + ")")
_BURST_LINE = re.compile(
    r"ProcessID=\S+\s*:\s*Parent_ProcessID=\s*([+-]?\d+)\s*:\s*Average_Running_Time=\s*(" + _FLOAT + ")"
)


def _warn(message: str) -> None:
    print(message, file=sys.stderr)


def _atoi(text: str) -> int:
    match = _C_INT.match(text)
    return int(match.group(1)) if match else 0


def _atof(text: str) -> float:
    match = _C_FLOAT.match(text)
    return float(match.group(1)) if match else 0.0


def _field(text: str, prefix: str) -> str | None:
    """Return what follows ``prefix`` on the first line that starts with it."""
    for line in text.split("\n"):
        if line.startswith(prefix):
            return line[len(prefix):]
    return None


def is_id(name: str) -> bool:
    """Return whether every character of ``name`` is an ASCII digit."""
    return all(char in "0123456789" for char in name)


def parse_uid(status_text: str) -> int | None:
    """Return the real user id from a ``status`` file, or None."""
    rest = _field(status_text, "Uid:")
    if rest is None:
        return None
    match = _C_UNSIGNED.match(rest)
    return int(match.group(1)) if match else None


def parse_ppid(status_text: str) -> int | None:
    """Return the parent process id from a ``status`` file, or None without a PPid line."""
    rest = _field(status_text, "PPid:")
    return None if rest is None else _atoi(rest)


def parse_vmrss(status_text: str) -> int | None:
    """Return the resident set size (kB) from a ``status`` file, or None."""
    rest = _field(status_text, "VmRSS:")
    if rest is None:
        return None
    match = _C_UNSIGNED.match(rest)
    return int(match.group(1)) if match else None


def parse_start_time(stat_line: str) -> int | None:
    """Return the start time (field 22) of a ``stat`` line, or None if it is too short."""
    line = stat_line
    open_at = line.find("(")
    if open_at != -1:
        close_at = line.find(")", open_at)
        if close_at == -1:
            return None
        line = line[:open_at] + "()" + line[close_at + 1:]
    fields = line.split(" ")
    if len(fields) <= _SPACES_TO_TIME:
        return None
    match = _C_UNSIGNED.match(fields[_SPACES_TO_TIME - 1])
    return int(match.group(1)) if match else 0


def parse_average_burst(sched_text: str) -> float | None:
    """Return ``se.sum_exec_runtime / nr_switches`` from a ``sched`` file, or None."""
    lines = iter(sched_text.split("\n"))
    runtime_line = next((line for line in lines if line.startswith("se.sum_exec_runtime")), None)
    if runtime_line is None or ":" not in runtime_line:
        return None
    runtime = _atof(runtime_line.split(":", 1)[1])
    switches_line = next((line for line in lines if line.startswith("nr_switches")), None)
    if switches_line is None or ":" not in switches_line:
        return None
    switches = _atoi(switches_line.split(":", 1)[1])
    if not switches:
        return None
    return runtime / switches


def parse_read_bytes(io_text: str) -> int | None:
    """Return the ``read_bytes`` counter of an ``io`` file, or None."""
    rest = _field(io_text, "read_bytes:")
    if rest is None:
        return None
    match = _C_INT.match(rest[1:])
    return int(match.group(1)) if match else None


def _parse_burst_line(line: str) -> tuple[int, float] | None:
    match = _BURST_LINE.match(line)
    if match is None:
        return None
    return int(match.group(1)), float(match.group(2))


def _summary(ppid: int, average: float) -> str:
    return f"Average_Running_Children_of_ParentID={ppid} is {average:f}"


def group_averages(lines: Iterable[str]) -> list[str]:
    """Interleave per-parent averages into lines of the CPU burst report.

    Lines are expected grouped by parent id; after each group a summary line
    with the mean burst of its children follows.  Lines that do not parse are
    dropped.
    """
    output: list[str] = []
    last_ppid: int | None = None
    streak = 1
    accum = 0.0
    for raw in lines:
        line = raw.rstrip("\n")
        parsed = _parse_burst_line(line)
        if parsed is None:
            continue
        ppid, average = parsed
        if last_ppid is None:
            last_ppid, accum = ppid, average
        elif ppid == last_ppid:
            streak += 1
            accum += average
        else:
            output.append(_summary(last_ppid, accum / streak))
            streak = 1
            last_ppid, accum = ppid, average
        output.append(line)
    output.append(_summary(-1 if last_ppid is None else last_ppid, accum / streak))
    return output


def _process_ids(proc: str | os.PathLike[str]) -> list[str]:
    return sorted((name for name in os.listdir(proc) if is_id(name)), key=lambda name: int(name or 0))


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


def _read_comm(path: Path) -> str | None:
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            line = handle.readline(_COMM_LIMIT)
    except OSError:
        _warn(f"Could not open file: {path}")
        return None
    if not line:
        _warn(f"Could not read command from file: {path}")
        return None
    return line.rstrip()


def _read_cmdline(path: Path, pid: int) -> str | None:
    try:
        data = path.read_bytes()[:_CMDLINE_LIMIT]
    except OSError:
        _warn(f"Could not get cmdline information of a process with pid {pid}")
        return None
    if not data:
        return None
    return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _parser(prog: str, description: str, output: str | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument("--proc", default=PROC_DIR, help="process file system root")
    if output is not None:
        parser.add_argument("--output", default=output, help="report file")
    return parser


def users_processes_main(argv: Sequence[str] | None = None) -> int:
    """List the current user's processes as ``pid:command`` to a file and stdout."""
    args = _parser("users_processes", users_processes_main.__doc__, "1_users_processes.txt").parse_args(argv)
    try:
        ids = _process_ids(args.proc)
    except OSError:
        _warn("Can not open process directory")
        return OPEN_ERROR
    user_id = os.getuid()
    records: list[tuple[str, str]] = []
    for pid in ids:
        base = Path(args.proc, pid)
        status = _read_text(base / "status")
        if status is None:
            _warn(f"Can not open status file: {base / 'status'}")
            continue
        if parse_uid(status) != user_id:
            continue
        command = _read_comm(base / "comm")
        if command is not None:
            records.append((pid, command))
    try:
        with open(args.output, "w", encoding="utf-8") as out:
            out.write(f"{len(records)}\n")
            out.writelines(f"{pid}:{command}\n" for pid, command in records)
    except OSError:
        _warn("Could not open output file!")
        return MEMORY_ALLOCATION_ERROR
    for pid, command in records:
        print(f"{pid}:{command}")
    return OK


def from_sbin_main(argv: Sequence[str] | None = None) -> int:
    """Write the ids of processes whose executable lies in /usr/sbin."""
    args = _parser("from_sbin", from_sbin_main.__doc__, "2_from_sbin.txt").parse_args(argv)
    try:
        ids = _process_ids(args.proc)
    except OSError:
        _warn("Could not open process directory")
        return OPEN_ERROR
    try:
        out = open(args.output, "w", encoding="utf-8")
    except OSError:
        _warn("Could not open output file")
        return OPEN_ERROR
    with out:
        for pid in ids:
            try:
                target = os.readlink(Path(args.proc, pid, "exe"))
            except FileNotFoundError:
                continue
            except PermissionError:
                _warn(f"You have no permission to access the executable of process with PID={pid}")
                continue
            except OSError as exc:
                _warn(f"An issue with reading link of a process executable: PID:{pid}, ERR:{exc.strerror}")
                continue
            if target.startswith("/usr/sbin/"):
                out.write(f"PID: {pid}\n")
    return OK


def pid_of_last_main(argv: Sequence[str] | None = None) -> int:
    """Print the id of the process started most recently."""
    args = _parser("pid_of_last", pid_of_last_main.__doc__).parse_args(argv)
    try:
        ids = _process_ids(args.proc)
    except OSError:
        _warn("Could not open process directory")
        return OPEN_ERROR
    latest_pid: int | None = None
    latest_time = 0
    for pid in ids:
        text = _read_text(Path(args.proc, pid, "stat"))
        if text is None:
            _warn(f"Could not open stat file for a process with pid: {pid}")
            continue
        if not text:
            _warn(f"Could not read a line from a stat file of a process with pid: {pid}")
            continue
        start = parse_start_time(text.splitlines(keepends=True)[0])
        if start is not None and latest_time < start:
            latest_time = start
            latest_pid = int(pid)
    if latest_pid is not None:
        print(f"PID of the latest started process: {latest_pid}")
    else:
        print("Could not find the latest started process")
    return OK


def cpu_burst_main(argv: Sequence[str] | None = None) -> int:
    """Write each process's average CPU burst, ordered by parent id."""
    args = _parser("cpu_burst", cpu_burst_main.__doc__, "4_cpu_burst.txt").parse_args(argv)
    try:
        ids = _process_ids(args.proc)
    except OSError:
        _warn("Could not open process directory")
        return OPEN_ERROR
    records: list[tuple[int, int, float]] = []
    for name in ids:
        pid = int(name)
        status = _read_text(Path(args.proc, name, "status"))
        ppid = None if status is None else parse_ppid(status)
        if ppid is None:
            if status is None:
                _warn(f"Could not get status information of a process with pid: {pid}")
            _warn(f"Could not find parent id for process with pid: {pid}")
            continue
        sched = _read_text(Path(args.proc, name, "sched"))
        average = None if sched is None else parse_average_burst(sched)
        if average is None:
            if sched is None:
                _warn(f"Could not get schedule information of a process with pid: {pid}")
            _warn(f"Could not count average CPU burst for process with pid: {pid}")
            continue
        records.append((pid, ppid, average))
    records.sort(key=lambda record: record[1])
    try:
        with open(args.output, "w", encoding="utf-8") as out:
            out.writelines(
                f"ProcessID={pid} : Parent_ProcessID={ppid} : Average_Running_Time={average:f}\n"
                for pid, ppid, average in records
            )
    except OSError:
        _warn("Could not open file to write data")
        return OPEN_ERROR
    return OK


def avg_run_main(argv: Sequence[str] | None = None) -> int:
    """Add per-parent average bursts to the CPU burst report in place."""
    parser = argparse.ArgumentParser(prog="avg_run_child_or_parent", description=avg_run_main.__doc__)
    parser.add_argument("--input", default="4_cpu_burst.txt", help="report to rewrite")
    parser.add_argument("--temp", default="4temp.txt", help="temporary output file")
    args = parser.parse_args(argv)
    try:
        with open(args.input, encoding="utf-8") as source:
            lines = source.read().splitlines()
    except OSError:
        _warn("Could not open file!")
        return OPEN_ERROR
    for line in lines:
        if _parse_burst_line(line) is None:
            _warn(f"Current line is currupted:\n{line}\n")
    try:
        with open(args.temp, "w", encoding="utf-8") as out:
            out.writelines(f"{line}\n" for line in group_averages(lines))
    except OSError:
        _warn("Could not open file!")
        return OPEN_ERROR
    try:
        os.remove(args.input)
    except OSError:
        _warn(
            "This realization substitutes input file, but program can not remove original file,"
            f"see output at {args.temp}"
        )
        return OK
    try:
        os.rename(args.temp, args.input)
    except OSError:
        _warn(f"Could not rename temp file, see outout at {args.temp}")
    return OK


def fattest_main(argv: Sequence[str] | None = None) -> int:
    """Print the process with the largest resident set."""
    args = _parser("the_fattest_one", fattest_main.__doc__).parse_args(argv)
    try:
        ids = _process_ids(args.proc)
    except OSError:
        _warn("Could not open process directory")
        return OPEN_ERROR
    max_pid: int | None = None
    max_vmrss = 0
    for pid in ids:
        status = _read_text(Path(args.proc, pid, "status"))
        if status is None:
            _warn(f"Could not get status information of a process with pid: {pid}")
            continue
        vmrss = parse_vmrss(status)
        if vmrss is not None and vmrss > max_vmrss:
            max_vmrss = vmrss
            max_pid = int(pid)
    if max_pid is not None:
        print(f"Max RAM allocated is: {max_vmrss} to a process with PID: {max_pid}")
    else:
        _warn("Could not find a process that allocated max RAM")
    return OK


@dataclass
class _IoRecord:
    pid: int
    command: str
    bytes_before: int
    bytes_after: int = 0


def _read_bytes_of(proc: str, name: str) -> int | None:
    pid = int(name)
    text = _read_text(Path(proc, name, "io"))
    if text is None:
        _warn(f"Could not get io information of a process with pid {pid}")
        return None
    return parse_read_bytes(text)


def io_main(argv: Sequence[str] | None = None) -> int:
    """Print the three processes that read the most bytes over an interval."""
    parser = _parser("io", io_main.__doc__)
    parser.add_argument("--interval", type=float, default=60, help="seconds between samples")
    args = parser.parse_args(argv)
    try:
        ids = _process_ids(args.proc)
    except OSError:
        _warn("Could not open proc directory")
        return OPEN_ERROR
    records: list[_IoRecord] = []
    for name in ids:
        before = _read_bytes_of(args.proc, name)
        if before is None:
            continue
        command = _read_cmdline(Path(args.proc, name, "cmdline"), int(name))
        if command is None:
            continue
        records.append(_IoRecord(int(name), command, before))

    time.sleep(args.interval)

    by_pid = {record.pid: record for record in records}
    try:
        ids = _process_ids(args.proc)
    except OSError:
        ids = []
    for name in ids:
        after = _read_bytes_of(args.proc, name)
        if after is None:
            continue
        record = by_pid.get(int(name))
        if record is not None:
            record.bytes_after = after

    if not records:
        print("No information about read bytes of any process was found\n")
        return OK
    records.sort(key=lambda record: record.bytes_before - record.bytes_after)
    for record in records[:_TOP_READERS]:
        print(f"{record.pid} : {record.command} : {record.bytes_after - record.bytes_before}")
    return OK