"""A calculator split into a producer and a handler joined by a named pipe.

The producer reads operations and numbers from standard input and writes them
to the pipe; the handler reads them, switching between addition and
multiplication and printing the running result, which starts at 1.
"""

from __future__ import annotations

import argparse
import os
import re
import subprocess
import sys
import time
from enum import Enum, auto
from typing import Iterable, Iterator, Sequence

SUCCESS = 0
FILE_OPENING_ISSUE = 4
FORK_ISSUE = 18
SUBPROCESS_ISSUE = 25
PIPE_ISSUE = 27
_UNLINK_ISSUE = 3

PIPENAME = "aripipe"
QUIT_LINE = "QUIT\n"
_SEND_DELAY = 0.08

_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1
_NUMBER = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)\n")


class Op(Enum):
    """Kinds of line the handler understands."""

    ADD = auto()
    MULT = auto()
    NUM = auto()
    BREAK = auto()
    BAD = auto()


def _wrap_i64(value: int) -> int:
    value &= (1 << 64) - 1
    return value - (1 << 64) if value > _I64_MAX else value


def parse_op(line: str) -> tuple[Op, int | None]:
    """Classify one line; the number is given only for ``Op.NUM``."""
    if len(line) == 2 and line[0] == "+":
        return Op.ADD, None
    if len(line) == 2 and line[0] == "*":
        return Op.MULT, None
    if line == QUIT_LINE:
        return Op.BREAK, None
    match = _NUMBER.fullmatch(line)
    if match is None:
        return Op.BAD, None
    return Op.NUM, max(_I64_MIN, min(_I64_MAX, int(match.group(1))))


def is_good_input(line: str) -> bool:
    """Return whether the producer accepts the line: an operator, QUIT or digits."""
    if (len(line) == 2 and line[0] in "+*") or line == QUIT_LINE:
        return True
    digits = len(line) - len(line.lstrip("0123456789"))
    return line[digits:digits + 1] == "\n"


def handle_lines(lines: Iterable[str]) -> Iterator[str]:
    """Process lines as the handler does and yield the messages it prints."""
    accum = 1
    mode = Op.ADD
    for line in lines:
        op, number = parse_op(line)
        if op is Op.ADD:
            mode = Op.ADD
            yield "[Handler]: Mode switched to +"
        elif op is Op.MULT:
            mode = Op.MULT
            yield "[Handler]: Mode switched to *"
        elif op is Op.NUM:
            accum = _wrap_i64(accum + number if mode is Op.ADD else accum * number)
            yield f"[Handler]: Current result is {accum}"
        elif op is Op.BREAK:
            yield "[Handler]: Quitting..."
            return
        else:
            yield "[Handler]: Invalid input, exiting..."
            return


def _parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument("--pipe", default=PIPENAME, help="path of the named pipe")
    return parser


def _write_all(descriptor: int, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = os.write(descriptor, view)
        view = view[written:]


def producer_main(argv: Sequence[str] | None = None) -> int:
    """Read commands from standard input and send them through the pipe."""
    args = _parser("pipe_producer", producer_main.__doc__).parse_args(argv)
    try:
        os.mkfifo(args.pipe, 0o666)
    except FileExistsError:
        pass
    except OSError:
        print("[Generator Error]: Error in pipe creation", file=sys.stderr)
        return PIPE_ISSUE
    try:
        descriptor = os.open(args.pipe, os.O_WRONLY)
    except OSError:
        print("[Generator Error]: Could not open pipe for writing", file=sys.stderr)
        return FILE_OPENING_ISSUE

    print("[Generator]: Init completed. Please enter an op or digit below")
    try:
        while True:
            print(">>> ", end="", flush=True)
            try:
                line = sys.stdin.readline()
            except OSError:
                print("[Generator Error]: stdin read error", file=sys.stderr)
                break
            if not line:
                line = QUIT_LINE
            if line == "\n":
                continue
            try:
                _write_all(descriptor, line.encode("utf-8"))
            except OSError:
                print("[Generator Error]: could not write information to the pipe", file=sys.stderr)
                break
            if line == QUIT_LINE:
                break
            time.sleep(_SEND_DELAY)
            if not is_good_input(line):
                print("[Generator]: Invalid input!")
                break
    finally:
        os.close(descriptor)

    try:
        os.unlink(args.pipe)
    except OSError:
        print("[Generator Error]: Could not delete pipe", file=sys.stderr)
        return _UNLINK_ISSUE
    print("[Generator]: Shutting down...")
    return SUCCESS


def handler_main(argv: Sequence[str] | None = None) -> int:
    """Read commands from the pipe and print the running result."""
    args = _parser("pipe_handler", handler_main.__doc__).parse_args(argv)
    try:
        stream = open(args.pipe, encoding="utf-8", errors="replace", newline="")
    except OSError:
        print("[Handler Error]: Could not open pipe", file=sys.stderr)
        return FILE_OPENING_ISSUE
    with stream:
        try:
            for message in handle_lines(stream):
                print(message, flush=True)
        except OSError:
            print("[Handler Error]: Could not read from pipe", file=sys.stderr)
    return SUCCESS


def _command(role: str, pipe: str) -> list[str]:
    return [sys.executable, "-m", "labkit.pipecalc", role, "--pipe", pipe]


def launcher_main(argv: Sequence[str] | None = None) -> int:
    """Start the producer and the handler and wait for both to finish."""
    args = _parser("pipe_launcher", launcher_main.__doc__).parse_args(argv)
    try:
        generator = subprocess.Popen(_command("producer", args.pipe))
    except OSError:
        print("Could not fork generator", file=sys.stderr)
        return FORK_ISSUE
    try:
        handler = subprocess.Popen(_command("handler", args.pipe))
    except OSError:
        print("Could not fork handler", file=sys.stderr)
        generator.terminate()
        generator.wait()
        return FORK_ISSUE
    generator.wait()
    handler.wait()
    return SUCCESS


_ROLES = {"producer": producer_main, "handler": handler_main, "launcher": launcher_main}


if __name__ == "__main__":
    role, *rest = sys.argv[1:] or ["launcher"]
    if role not in _ROLES:
        print(f"Usage: pipecalc [{'|'.join(_ROLES)}] [--pipe PATH]", file=sys.stderr)
        sys.exit(1)
    sys.exit(_ROLES[role](rest))