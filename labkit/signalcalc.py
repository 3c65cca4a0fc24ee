"""A calculator whose producer talks to its handler only through signals.

SIGUSR1 adds two to the handler's accumulator, SIGUSR2 doubles it and
SIGTERM stops the handler.  The producer maps ``+``, ``*`` and ``TERM``
lines from standard input to those signals.
"""

from __future__ import annotations

import argparse
import os
import re
import signal
import subprocess
import sys
import time
from dataclasses import dataclass
from typing import Sequence

SUCCESS = 0
PROGRAM_ARGS_ISSUE = 1
SIGNAL_ISSUE = 17
FORK_ISSUE = 18
SUBPROCESS_ISSUE = 25

_U64 = (1 << 64) - 1
_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1
_SEND_DELAY = 0.003
_PID = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")

_SIGNALS = {
    "+\n": (signal.SIGUSR1, "USR1"),
    "*\n": (signal.SIGUSR2, "USR2"),
    "TERM\n": (signal.SIGTERM, "SIGTERM"),
}


@dataclass
class SignalAccumulator:
    """Unsigned 64-bit accumulator changed by the handler's signals."""

    value: int = 1

    def plus(self) -> int:
        """Add two and return the new value."""
        self.value = (self.value + 2) & _U64
        return self.value

    def double(self) -> int:
        """Double the value and return it."""
        self.value = (self.value * 2) & _U64
        return self.value


def parse_pid(text: str) -> int:
    """Parse a positive process id; raise ValueError for anything else."""
    match = _PID.fullmatch(text)
    if text and match is None:
        raise ValueError(f"Strange pid in argv: {text!r}")
    value = int(match.group(1)) if match else 0
    value = max(_I64_MIN, min(_I64_MAX, value)) & 0xFFFFFFFF
    if value & 0x80000000:
        value -= 1 << 32
    if value <= 0:
        raise ValueError(f"Strange pid in argv: {text!r}")
    return value


def handler_main(argv: Sequence[str] | None = None) -> int:
    """Wait for signals and print the accumulator after each USR1 or USR2."""
    argparse.ArgumentParser(prog="signal_handler", description=handler_main.__doc__).parse_args(argv)
    accumulator = SignalAccumulator()
    watched = {signal.SIGUSR1, signal.SIGUSR2, signal.SIGTERM}
    try:
        previous_mask = signal.pthread_sigmask(signal.SIG_BLOCK, watched)
    except (OSError, ValueError):
        print("[Handler Error]: Could not set signal mask", file=sys.stderr)
        return SIGNAL_ISSUE
    try:
        while True:
            signum = signal.sigwait(watched)
            if signum == signal.SIGTERM:
                break
            value = accumulator.plus() if signum == signal.SIGUSR1 else accumulator.double()
            print(f"[Handler]: Acc value is {value}", flush=True)
    finally:
        signal.pthread_sigmask(signal.SIG_SETMASK, previous_mask)
    return SUCCESS


def producer_main(argv: Sequence[str] | None = None) -> int:
    """Turn ``+``, ``*`` and ``TERM`` lines into signals for the given process."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("Usage: signal_producer <HANDLERS_PID>", file=sys.stderr)
        return PROGRAM_ARGS_ISSUE
    try:
        handler_pid = parse_pid(args[0])
    except ValueError:
        print("[Generator Error]: Strange pid in argv", file=sys.stderr)
        return PROGRAM_ARGS_ISSUE

    print("[Generator]: Is up! Waiting for input\n")
    while True:
        print(">>> ", end="", flush=True)
        try:
            line = sys.stdin.readline()
        except OSError:
            print("[Generator]: stdin read error", file=sys.stderr)
            break
        if not line:
            try:
                os.kill(handler_pid, signal.SIGTERM)
            except OSError:
                print("[Generator Error]: Could not send signal SIGTERM", file=sys.stderr)
            break
        action = _SIGNALS.get(line)
        if action is not None:
            signum, name = action
            try:
                os.kill(handler_pid, signum)
            except OSError:
                print(f"[Generator Error]: Could not send signal {name}", file=sys.stderr)
                continue
            if signum == signal.SIGTERM:
                break
        time.sleep(_SEND_DELAY)
    return SUCCESS


def _command(*args: str) -> list[str]:
    return [sys.executable, "-m", "labkit.signalcalc", *args]


def launcher_main(argv: Sequence[str] | None = None) -> int:
    """Start the handler, then a producer aimed at it, and wait for both."""
    argparse.ArgumentParser(prog="signal_launcher", description=launcher_main.__doc__).parse_args(argv)
    try:
        handler = subprocess.Popen(_command("handler"))
    except OSError:
        print("Could not fork handler", file=sys.stderr)
        return FORK_ISSUE
    try:
        generator = subprocess.Popen(_command("producer", str(handler.pid)))
    except OSError:
        handler.terminate()
        handler.wait()
        print("Got an error in generator process", file=sys.stderr)
        return SUBPROCESS_ISSUE
    generator.wait()
    handler.wait()
    return SUCCESS


_ROLES = {"producer": producer_main, "handler": handler_main, "launcher": launcher_main}


if __name__ == "__main__":
    role, *rest = sys.argv[1:] or ["launcher"]
    if role not in _ROLES:
        print(f"Usage: signalcalc [{'|'.join(_ROLES)}] ...", file=sys.stderr)
        sys.exit(PROGRAM_ARGS_ISSUE)
    sys.exit(_ROLES[role](rest))