import struct

import pytest

from labkit.floatarith import (
    FloatArgumentError,
    FloatFormat,
    add,
    divide,
    evaluate,
    format_number,
    main,
    multiply,
    subtract,
)

CODES = {"f": (">f", ">I", 6), "h": (">e", ">H", 3)}


def bits(x, fmt="f"):
    fcode, icode, _ = CODES[fmt]
    return struct.unpack(icode, struct.pack(fcode, x))[0]


def value_of(pattern, fmt="f"):
    fcode, icode, _ = CODES[fmt]
    return struct.unpack(fcode, struct.pack(icode, pattern))[0]


def expected(x, fmt="f"):
    digits = CODES[fmt][2]
    text = float(x).hex()
    sign = "-" if text.startswith("-") else ""
    fraction, exponent = text.lstrip("-")[len("0x1."):].split("p")
    return f"{sign}0x1.{fraction[:digits]}p{exponent}"


@pytest.mark.parametrize(
    "pattern",
    [0x3F800000, 0x40490FDB, 0xC2F6E979, 0x00800000, 0x7F7FFFFF, 0x00000001, 0x00000003],
)
def test_format_single_matches_float_hex(pattern):
    assert format_number(pattern, "f", "0") == expected(value_of(pattern))


@pytest.mark.parametrize("pattern", [0x3C00, 0x4248, 0xBC00, 0x7BFF, 0x0400, 0x0001])
def test_format_half_matches_float_hex(pattern):
    assert format_number(pattern, "h", "1") == expected(value_of(pattern, "h"), "h")


def test_format_accepts_enum_member():
    assert format_number(0x3F800000, FloatFormat.SINGLE, 0) == format_number(0x3F800000, "f", "0")


def test_zero_rendering():
    assert format_number(0, "f", "0") == "0x0.000000p+0"
    assert format_number(0x80000000, "f", "0") == "-0x0.000000p+0"


def test_special_values():
    assert format_number(0x7F800000, "f", "0") == "inf"
    assert format_number(0xFF800000, "f", "0") == "-inf"
    assert format_number(0x7FC00000, "f", "0") == "nan"


@pytest.mark.parametrize("fmt", ["f", "h"])
@pytest.mark.parametrize("a, b", [(1.5, 2.25), (-3.0, 1.0), (10.0, 0.125), (1.0, 1.0)])
def test_add_exact(fmt, a, b):
    result = add(fmt, bits(a, fmt), bits(b, fmt), "0")
    assert result == expected(a + b, fmt)


@pytest.mark.parametrize("a, b", [(5.0, 1.5), (1.0, 4.0), (-2.5, 0.5)])
def test_subtract_exact(a, b):
    assert subtract("f", bits(a), bits(b), "1") == expected(a - b)


@pytest.mark.parametrize("fmt", ["f", "h"])
@pytest.mark.parametrize("a, b", [(1.5, 2.0), (-3.0, 0.5), (0.75, 0.75), (2.0, 3.0)])
def test_multiply_exact(fmt, a, b):
    assert multiply(fmt, bits(a, fmt), bits(b, fmt), "0") == expected(a * b, fmt)


@pytest.mark.parametrize("a, b", [(3.0, 2.0), (1.0, 4.0), (-9.0, 3.0), (6.0, 2.0)])
def test_divide_exact(a, b):
    assert divide("f", bits(a), bits(b), "0") == expected(a / b)


def test_add_rounding_directions():
    one = bits(1.0)
    tiny = bits(2.0 ** -30)
    next_up = format_number(one + 1, "f", "0")
    assert add("f", one, tiny, "0") == format_number(one, "f", "0")
    assert add("f", one, tiny, "1") == format_number(one, "f", "0")
    assert add("f", one, tiny, "2") == next_up
    assert add("f", one, tiny, "3") == format_number(one, "f", "0")
    minus_one = bits(-1.0)
    minus_tiny = bits(-(2.0 ** -30))
    assert add("f", minus_one, minus_tiny, "3") == "-" + next_up


def test_multiply_rounding_directions():
    a = 0x3F800001
    assert multiply("f", a, a, "0") == format_number(0x3F800002, "f", "0")
    assert multiply("f", a, a, "1") == format_number(0x3F800002, "f", "0")
    assert multiply("f", a, a, "2") == format_number(0x3F800003, "f", "0")


def test_add_special_cases():
    one = bits(1.0)
    assert add("f", 0x7FC00000, one, "0") == "nan"
    assert add("f", 0, one, "0") == format_number(0, "f", "0")
    assert add("f", one, 0, "0") == format_number(one, "f", "0")
    assert add("f", 0x7F800000, one, "0") == "inf"
    assert add("f", one, 0xFF800000, "0") == "-inf"


def test_add_overflow_gives_inf():
    assert add("f", 0x7F7FFFFF, 0x7F7FFFFF, "0") == "inf"


def test_subtract_self_is_zero():
    x = bits(2.5)
    assert subtract("f", x, x, "0") == format_number(0, "f", "0")


def test_multiply_special_cases():
    assert multiply("f", 0x7F800000, 0, "0") == "nan"
    assert multiply("f", 0x80000000, 0, "0") == format_number(0x80000000, "f", "0")
    assert multiply("f", 0x7F800000, 0xFF800000, "0") == "-inf"


def test_divide_special_cases():
    one = bits(1.0)
    assert divide("f", one, 0, "0") == "inf"
    assert divide("f", bits(-1.0), 0, "0") == "-inf"
    assert divide("f", 0, 0, "0") == "nan"
    assert divide("f", 0x7F800000, 0x7F800000, "0") == "nan"
    assert divide("f", 0, 0xFF800000, "0") == format_number(0x80000000, "f", "0")
    assert divide("f", 0, one, "0") == ""


def test_nan_dividend_reports_twice():
    assert divide("f", 0x7FC00000, bits(1.0), "0").split("\n") == ["nan", "nan"]
    assert multiply("f", bits(2.0), 0x7FC00000, "0") == "nan"


@pytest.mark.parametrize("fmt, mode", [("d", "0"), ("f", "4"), ("f", "x")])
def test_invalid_format_or_mode(fmt, mode):
    with pytest.raises(FloatArgumentError):
        add(fmt, 0, 0, mode)


def test_evaluate_single_number():
    assert evaluate(["f", "0", "3f800000"]) == format_number(0x3F800000, "f", "0")
    assert evaluate(["f", "0", "0x40490fdb"]) == format_number(0x40490FDB, "f", "0")


def test_evaluate_operations():
    a, b = bits(1.5), bits(2.25)
    assert evaluate(["f", "0", f"{a:x}", "+", f"{b:x}"]) == add("f", a, b, "0")
    assert evaluate(["f", "0", f"{a:x}", "-", f"{b:x}"]) == subtract("f", a, b, "0")
    assert evaluate(["f", "2", f"{a:x}", "*", f"{b:x}"]) == multiply("f", a, b, "2")
    assert evaluate(["f", "3", f"{a:x}", "/", f"{b:x}"]) == divide("f", a, b, "3")


@pytest.mark.parametrize(
    "args",
    [
        ["f", "0"],
        ["f", "0", "1", "+"],
        ["ff", "0", "1"],
        ["d", "0", "1"],
        ["f", "5", "1"],
        ["f", "01", "1"],
        ["f", "0", "zz"],
        ["f", "0", "1", "+", "qq"],
        ["f", "0", "1", "%", "1"],
    ],
)
def test_evaluate_rejects_bad_arguments(args):
    with pytest.raises(FloatArgumentError):
        evaluate(args)


def test_main_success(capsys):
    assert main(["h", "1", "3c00"]) == 0
    assert capsys.readouterr().out == format_number(0x3C00, "h", "1") + "\n"


def test_main_error(capsys):
    assert main(["x", "0", "1"]) == 4
    assert "unsupported" in capsys.readouterr().err