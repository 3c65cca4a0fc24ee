"""Half and single precision IEEE 754 arithmetic printed as hexadecimal floats.

Numbers are given as raw bit patterns.  Results are rendered in the
``[-]0x1.<fraction>p<exponent>`` notation, with ``0x0.<zeros>p+0`` for zero,
``inf`` and ``nan`` for the special values.  Rounding codes are ``0``
(toward zero), ``1`` (to nearest), ``2`` (toward +inf) and ``3`` (toward -inf).
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

_SUCCESS = 0
_ARGUMENTS_INVALID = 4

_U64 = (1 << 64) - 1
_U32 = (1 << 32) - 1
_U16 = (1 << 16) - 1
_EXP_ALL_ONES = 0xFF
_ROUND_CODES = ("0", "1", "2", "3")
_INF_TEXT = ("inf", "-inf")
_HEX_NUMBER = re.compile(r"\s*([+-]?)(?:0[xX](?=[0-9a-fA-F]))?([0-9a-fA-F]+)")
_USAGE = (
    "Wrong arguments. Usage:\n"
    "<format> <rounding_code> <number>\n"
    "<format> <rounding_code> <number1> <operation> <number2>"
)


class FloatArgumentError(ValueError):
    """Raised for an unsupported format, rounding code, number or operation."""


@dataclass(frozen=True)
class _Layout:
    sign_shift: int
    mantissa_size: int
    exponent_mask: int
    digits: int
    bias: int
    print_shift: int

    @property
    def mantissa_mask(self) -> int:
        return (1 << self.mantissa_size) - 1

    @property
    def hidden_one(self) -> int:
        return 1 << self.mantissa_size


class FloatFormat(Enum):
    """Supported binary formats, keyed by their command-line letter."""

    HALF = "h"
    SINGLE = "f"

    @property
    def layout(self) -> _Layout:
        return _LAYOUTS[self]


_LAYOUTS = {
    FloatFormat.SINGLE: _Layout(
        sign_shift=31, mantissa_size=23, exponent_mask=0xFF, digits=6, bias=127, print_shift=1
    ),
    FloatFormat.HALF: _Layout(
        sign_shift=15, mantissa_size=10, exponent_mask=0x1F, digits=3, bias=15, print_shift=2
    ),
}


def _coerce_format(fmt) -> _Layout:
    try:
        return FloatFormat(fmt).layout
    except ValueError:
        raise FloatArgumentError(f"This type of format is unsupported: {fmt}") from None


def _coerce_round(round_mode) -> str:
    text = str(round_mode)
    if text not in _ROUND_CODES:
        raise FloatArgumentError(f"This rounding code is unsupported: {round_mode}")
    return text


def _int32(value: int) -> int:
    value &= _U32
    return value - (1 << 32) if value & 0x80000000 else value


def _parse_hex(text: str) -> int:
    match = _HEX_NUMBER.match(text)
    if match is None:
        raise FloatArgumentError(f"Input number is incorrect {text}")
    sign, digits = match.groups()
    value = min(int(digits, 16), _U64)
    if sign == "-":
        value = -value & _U64
    return _int32(value)


def _fields(num: int, layout: _Layout) -> tuple[int, int, int]:
    sign = (num >> layout.sign_shift) & 1
    exponent = (num >> layout.mantissa_size) & layout.exponent_mask
    mantissa = num & layout.mantissa_mask
    return sign, exponent, mantissa


def _is_zero(exponent: int, mantissa: int) -> bool:
    return exponent == 0 and mantissa == 0


def _is_inf(exponent: int, mantissa: int) -> bool:
    return exponent == _EXP_ALL_ONES and mantissa == 0


def _is_nan(exponent: int, mantissa: int) -> bool:
    return exponent == _EXP_ALL_ONES and mantissa != 0


def _zero_text(sign: int, layout: _Layout) -> str:
    return f"{'-' if sign else ''}0x0.{0:0{layout.digits}x}p+0"


def _normalize(mantissa: int, exponent: int, layout: _Layout) -> tuple[int, int, bool]:
    width = layout.mantissa_size
    while mantissa < 1 << width:
        mantissa <<= 1
        exponent -= 1
    overflow = False
    if mantissa >= 1 << (width + 1):
        mantissa >>= 1
        exponent += 1
        overflow = True
    return mantissa, exponent, overflow


def _round(sign: int, mantissa: int, lost_bits: int, lost_count: int, overflow_last: bool, mode: str) -> int:
    lost_bits &= _U32
    lost_count &= _U16
    if not lost_bits:
        return mantissa
    if mode == "1":
        half = 1 << ((lost_count - 1) & 63)
        if lost_bits & half and (lost_bits & ~half or overflow_last):
            mantissa += 1
    elif mode == "2" and not sign:
        mantissa += 1
    elif mode == "3" and sign:
        mantissa += 1
    return mantissa


def _compose(sign: int, exponent_field: int, mantissa: int, layout: _Layout) -> int:
    raw = (
        (sign << layout.sign_shift)
        | (exponent_field << layout.mantissa_size)
        | (mantissa & layout.mantissa_mask)
    )
    return _int32(raw)


def _render(num: int, layout: _Layout, normalize: bool) -> str:
    sign, exponent, mantissa = _fields(num, layout)
    if _is_zero(exponent, mantissa):
        return _zero_text(sign, layout)
    if _is_inf(exponent, mantissa):
        return _INF_TEXT[sign]
    if _is_nan(exponent, mantissa):
        return "nan"
    if normalize:
        if exponent:
            mantissa |= layout.hidden_one
        else:
            exponent += 1
        mantissa, exponent, _ = _normalize(mantissa, exponent, layout)
        mantissa &= ~layout.hidden_one
    if _is_zero(exponent, mantissa):
        return _zero_text(sign, layout)
    if _is_nan(exponent, mantissa):
        return "nan"
    mantissa <<= layout.print_shift
    prefix = "-" if sign else ""
    return f"{prefix}0x1.{mantissa:0{layout.digits}x}p{exponent - layout.bias:+d}"


def _add_sub(layout: _Layout, a: int, b: int, mode: str, is_sum: bool) -> str:
    min_exp = 1 - layout.bias
    sign1, exp1, man1 = _fields(a, layout)
    sign2, exp2, man2 = _fields(b, layout)

    if _is_nan(exp1, man1):
        return "nan"
    if _is_zero(exp1, man1):
        return _zero_text(0, layout)
    if _is_zero(exp2, man2):
        return _render(a, layout, normalize=True)
    if _is_inf(exp1, man1):
        return _INF_TEXT[sign1]
    if _is_inf(exp2, man2):
        return _INF_TEXT[sign2]

    man1 |= layout.hidden_one
    man2 |= layout.hidden_one
    exp1 -= layout.bias
    exp2 -= layout.bias
    if not is_sum:
        sign2 ^= 1

    lost_count = abs(exp1 - exp2)
    max_exp = max(exp1, exp2)
    lost_mask = ((1 << (lost_count & 63)) - 1) & _U64
    lost_bits = (man1 if exp1 < exp2 else man2) & lost_mask
    if exp1 < exp2:
        man1 >>= (exp2 - exp1) & 63
    else:
        man2 >>= (exp1 - exp2) & 63

    if sign1 == sign2:
        result_sign, mantissa = sign1, man1 + man2
    elif man1 < man2:
        result_sign, mantissa = sign2, man2 - man1
    else:
        result_sign, mantissa = sign1, man1 - man2

    if mantissa == 0:
        # Exact cancellation gives zero rather than an unbounded normalisation.
        return _zero_text(0, layout)

    mantissa, max_exp, overflow = _normalize(mantissa, max_exp, layout)
    mantissa = _round(result_sign, mantissa, lost_bits, lost_count, overflow, mode)
    if max_exp >= layout.bias:
        return _INF_TEXT[result_sign]
    if max_exp + layout.bias <= min_exp:
        return _zero_text(result_sign, layout)
    return _render(_compose(result_sign, max_exp + layout.bias, mantissa, layout), layout, normalize=False)


def _mul_div(layout: _Layout, a: int, b: int, mode: str, is_multiply: bool) -> str:
    sign1, exp1, man1 = _fields(a, layout)
    sign2, exp2, man2 = _fields(b, layout)
    result_sign = sign1 ^ sign2
    nan1, nan2 = _is_nan(exp1, man1), _is_nan(exp2, man2)
    zero1, zero2 = _is_zero(exp1, man1), _is_zero(exp2, man2)
    inf1, inf2 = _is_inf(exp1, man1), _is_inf(exp2, man2)

    lines: list[str] = []
    if nan1:
        lines.append("nan")
    if nan2:
        lines.append("nan")
        return "\n".join(lines)

    if not is_multiply:
        if (zero1 and zero2) or nan1 or (inf1 and inf2):
            lines.append("nan")
            return "\n".join(lines)
        if zero2 or inf1:
            lines.append(_INF_TEXT[result_sign])
            return "\n".join(lines)
        if zero1:
            if inf2:
                lines.append(_zero_text(result_sign, layout))
            return "\n".join(lines)
    elif nan1 or (zero1 and inf2) or (inf1 and zero2):
        lines.append("nan")
        return "\n".join(lines)
    elif zero1 and zero2:
        lines.append(_zero_text(result_sign, layout))
        return "\n".join(lines)
    elif inf1 and inf2:
        lines.append(_INF_TEXT[result_sign])
        return "\n".join(lines)

    man1 |= layout.hidden_one
    man2 |= layout.hidden_one
    exp1 -= layout.bias
    exp2 -= layout.bias
    exponent = exp1 + exp2 if is_multiply else exp1 - exp2
    lost_bits = 0
    lost_count = 0

    if is_multiply:
        mantissa = man1 * man2
        lost_count = layout.mantissa_size + 1
        lost_bits = mantissa & ((1 << lost_count) - 1)
        mantissa >>= lost_count
    else:
        shifted = man1 << layout.mantissa_size
        remainder = (shifted % man2) & _U16
        mantissa = shifted // man2
        while exponent > 0 and layout.hidden_one > mantissa:
            remainder = (remainder << 1) & _U16
            mantissa <<= 1
            exponent -= 1
            if remainder >= man2:
                mantissa += 1
                remainder -= man2
        while mantissa >= 1 << (layout.mantissa_size + 1):
            mantissa >>= 1
            exponent += 1
        exponent -= 1
    exponent += 1

    mantissa, exponent, overflow = _normalize(mantissa, exponent, layout)
    mantissa = _round(result_sign, mantissa, lost_bits, lost_count, overflow, mode)
    lines.append(_render(_compose(result_sign, exponent + layout.bias, mantissa, layout), layout, normalize=False))
    return "\n".join(lines)


def format_number(value: int, fmt, round_mode) -> str:
    """Render one bit pattern; the rounding code is checked but not applied."""
    layout = _coerce_format(fmt)
    _coerce_round(round_mode)
    return _render(_int32(value), layout, normalize=True)


def add(fmt, a: int, b: int, round_mode) -> str:
    """Return the rendered sum of two bit patterns."""
    return _add_sub(_coerce_format(fmt), _int32(a), _int32(b), _coerce_round(round_mode), True)


def subtract(fmt, a: int, b: int, round_mode) -> str:
    """Return the rendered difference ``a - b`` of two bit patterns."""
    return _add_sub(_coerce_format(fmt), _int32(a), _int32(b), _coerce_round(round_mode), False)


def multiply(fmt, a: int, b: int, round_mode) -> str:
    """Return the rendered product of two bit patterns."""
    return _mul_div(_coerce_format(fmt), _int32(a), _int32(b), _coerce_round(round_mode), True)


def divide(fmt, a: int, b: int, round_mode) -> str:
    """Return the rendered quotient ``a / b`` of two bit patterns."""
    return _mul_div(_coerce_format(fmt), _int32(a), _int32(b), _coerce_round(round_mode), False)


_OPERATIONS: dict[str, Callable[..., str]] = {
    "+": add,
    "-": subtract,
    "*": multiply,
    "/": divide,
}


def evaluate(args: Sequence[str]) -> str:
    """Evaluate ``format round number [op number]`` and return the output text."""
    args = list(args)
    if len(args) not in (3, 5):
        raise FloatArgumentError(_USAGE)
    fmt_text, round_text = args[0], args[1]
    if len(fmt_text) != 1 or fmt_text not in ("h", "f"):
        raise FloatArgumentError(f"This type of format is unsupported: {fmt_text}")
    if len(round_text) != 1 or round_text not in _ROUND_CODES:
        raise FloatArgumentError(f"This rounding code is unsupported: {round_text}")
    first = _parse_hex(args[2])
    if len(args) == 3:
        return format_number(first, fmt_text, round_text)
    second = _parse_hex(args[4])
    operation = _OPERATIONS.get(args[3][:1])
    if operation is None:
        raise FloatArgumentError(f"This operation is not supported: {args[3]}")
    return operation(fmt_text, first, second, round_text)


def main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point; returns the process exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        text = evaluate(args)
    except FloatArgumentError as exc:
        print(exc, file=sys.stderr)
        return _ARGUMENTS_INVALID
    if text:
        print(text)
    return _SUCCESS


if __name__ == "__main__":
    sys.exit(main())