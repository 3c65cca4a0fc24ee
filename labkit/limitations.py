"""CPU throttling of busy worker processes driven by /proc accounting.

Three workers spin on integer arithmetic.  A monitor samples the first
worker's CPU time against the system total once a second.  When the worker
uses more than ten percent, the monitor sends it SIGUSR1 and the worker
sleeps for a time that grows with its share.
"""

from __future__ import annotations

import argparse
import math
import multiprocessing
import os
import re
import signal
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

SUCCESS = 0
FILE_OPENING_ISSUE = 4
FILE_READING_ISSUE = 6
FILE_CONTENT_ISSUE = 8
SIGNAL_ISSUE = 17
FORK_ISSUE = 18

PROC_DIR = "/proc"
THRESHOLD = 10.0
MAX_SLEEP = 8
WORKERS = 3

_U64 = (1 << 64) - 1
_I64 = 1 << 63
_NUMBER = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")


def _wrap_i64(value: int) -> int:
    value &= _U64
    return value - (1 << 64) if value & _I64 else value


def parse_process_cpu_time(stat_text: str) -> int:
    """Return ``utime + stime`` from a ``/proc/<pid>/stat`` line.

    Raises ValueError when the command name or the time fields are missing.
    """
    open_at = stat_text.find("(")
    if open_at == -1:
        raise ValueError("stat line has no command name")
    close_at = stat_text.find(")", open_at + 1)
    if close_at == -1:
        raise ValueError("stat line has an unterminated command name")
    fields = stat_text[close_at + 1:].split()
    try:
        utime, stime = (int(field) for field in fields[11:13])
    except ValueError:
        raise ValueError("could not read utime and stime") from None
    return (utime + stime) & _U64


def parse_total_cpu_time(stat_text: str) -> int:
    """Return the sum of the counters on the ``cpu`` line of ``/proc/stat``.

    Raises ValueError when the text is empty or does not start with that line.
    """
    if not stat_text:
        raise ValueError("/proc/stat is empty")
    first = stat_text.split("\n", 1)[0]
    if not first.startswith("cpu "):
        raise ValueError("content of /proc/stat is strange")
    total = 0
    position = 4
    while position < len(first):
        match = _NUMBER.match(first, position)
        if match is None:
            break
        total += int(match.group(1))
        position = match.end()
    return total & _U64


def cpu_percentage(cpu_delta: int, total_delta: int, processors: int) -> float:
    """Return the share of all processors a process used, in percent."""
    scaled = 100.0 * processors
    if total_delta == 0:
        if cpu_delta == 0 or scaled == 0:
            return math.nan
        return math.copysign(math.inf, cpu_delta * scaled)
    return scaled * (cpu_delta / total_delta)


def sleep_time_for(percentage: float) -> int:
    """Return the seconds a throttled worker sleeps: a tenth of the share, 0 to 8."""
    if math.isnan(percentage):
        return 0
    if math.isinf(percentage):
        return MAX_SLEEP if percentage > 0 else 0
    whole = math.trunc(percentage)
    seconds = abs(whole) // 10
    if whole < 0:
        seconds = -seconds
    return max(0, min(seconds, MAX_SLEEP))


@dataclass
class _Throttle:
    requested: bool = False

    def request(self, signum, frame) -> None:
        self.requested = True


def _division_loop(percentage) -> None:
    throttle = _Throttle()
    try:
        signal.signal(signal.SIGUSR1, throttle.request)
    except (OSError, ValueError):
        print("Sigaction issue!", file=sys.stderr)
        raise SystemExit(SIGNAL_ISSUE)
    a = 212323238900290323
    b = 112323098908232323
    c = 1
    while True:
        if throttle.requested:
            time.sleep(sleep_time_for(percentage.value))
            throttle.requested = False
        c = _wrap_i64(c * _wrap_i64((a * (b + 1)) // (b + 2)))


def _sample(pid: int, proc: str) -> tuple[int, int] | None:
    try:
        process_text = Path(proc, str(pid), "stat").read_text(encoding="utf-8", errors="replace")
    except OSError:
        print("Could not open proc/<pid>/stat", file=sys.stderr)
        return None
    try:
        cpu_time = parse_process_cpu_time(process_text)
    except ValueError:
        print("Scanf error when reading utime, stime", file=sys.stderr)
        return None
    try:
        system_text = Path(proc, "stat").read_text(encoding="utf-8", errors="replace")
    except OSError:
        print("Could not open /proc/stat", file=sys.stderr)
        return None
    try:
        total_time = parse_total_cpu_time(system_text)
    except ValueError as exc:
        print(f"Could not read /proc/stat: {exc}", file=sys.stderr)
        return None
    return cpu_time, total_time


def _processors() -> int:
    try:
        return os.sysconf("SC_NPROCESSORS_ONLN")
    except (OSError, ValueError):
        return os.cpu_count() or 1


def _control_cpu(pid: int, percentage, proc: str) -> None:
    previous = _sample(pid, proc)
    while True:
        time.sleep(1)
        processors = _processors()
        current = _sample(pid, proc)
        if current is None:
            continue
        if previous is None:
            previous = current
            continue
        cpu_delta = (current[0] - previous[0]) & _U64
        total_delta = (current[1] - previous[1]) & _U64
        share = cpu_percentage(cpu_delta, total_delta, processors)
        percentage.value = share
        print(f"Percentage is {share:f}", flush=True)
        if share > THRESHOLD:
            try:
                os.kill(pid, signal.SIGUSR1)
            except OSError:
                print("Issue when sending SIGUSR1 signal", file=sys.stderr)
                raise SystemExit(SIGNAL_ISSUE)
        previous = current


def main(argv: Sequence[str] | None = None) -> int:
    """Start the workers and the monitor, then stop them one after another."""
    parser = argparse.ArgumentParser(prog="limitations", description=main.__doc__)
    parser.add_argument("--proc", default=PROC_DIR, help="process file system root")
    parser.add_argument("--pause", type=float, default=5, help="seconds before the third worker stops")
    parser.add_argument("--duration", type=float, default=30, help="seconds before the rest stop")
    args = parser.parse_args(argv)

    percentage = multiprocessing.Value("d", 0.0)
    workers: list[multiprocessing.Process] = []
    for _ in range(WORKERS):
        worker = multiprocessing.Process(target=_division_loop, args=(percentage,))
        try:
            worker.start()
        except OSError:
            print("Error in fork", file=sys.stderr)
            for started in workers:
                started.terminate()
            return FORK_ISSUE
        workers.append(worker)

    monitor = multiprocessing.Process(target=_control_cpu, args=(workers[0].pid, percentage, args.proc))
    try:
        monitor.start()
    except OSError:
        print("Error in fork", file=sys.stderr)
        for worker in workers:
            worker.terminate()
        return FORK_ISSUE

    time.sleep(args.pause)
    workers[2].terminate()
    time.sleep(args.duration)
    for worker in workers[:2]:
        worker.terminate()
    monitor.terminate()
    for process in (*workers, monitor):
        process.join()
    return SUCCESS


if __name__ == "__main__":
    sys.exit(main())