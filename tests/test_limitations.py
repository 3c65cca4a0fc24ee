import math

import pytest

from labkit.limitations import (
    MAX_SLEEP,
    cpu_percentage,
    main,
    parse_process_cpu_time,
    parse_total_cpu_time,
    sleep_time_for,
)

STAT_LINE = "1234 (my worker) R 1 1234 1234 0 -1 4194560 100 0 0 0 25 7 0 0 20 0 1 0 5000 0 0\n"


def test_process_cpu_time_sums_utime_and_stime():
    assert parse_process_cpu_time(STAT_LINE) == 25 + 7


def test_process_cpu_time_ignores_spaces_in_command_name():
    line = STAT_LINE.replace("(my worker)", "(a b c d e f)")
    assert parse_process_cpu_time(line) == parse_process_cpu_time(STAT_LINE)


def test_process_cpu_time_without_command_name():
    with pytest.raises(ValueError):
        parse_process_cpu_time("1234 R 1 2 3")


def test_process_cpu_time_unterminated_command_name():
    with pytest.raises(ValueError):
        parse_process_cpu_time("1234 (worker R 1 2 3")


def test_process_cpu_time_too_few_fields():
    with pytest.raises(ValueError):
        parse_process_cpu_time("1234 (worker) R 1 2 3\n")


def test_total_cpu_time_sums_first_line():
    text = "cpu  10 20 30 40\ncpu0 1 1 1 1\n"
    assert parse_total_cpu_time(text) == 10 + 20 + 30 + 40


def test_total_cpu_time_requires_cpu_line():
    with pytest.raises(ValueError):
        parse_total_cpu_time("cpu0 1 2 3\n")


def test_total_cpu_time_rejects_empty_text():
    with pytest.raises(ValueError):
        parse_total_cpu_time("")


def test_percentage_of_full_use_on_one_processor():
    assert cpu_percentage(50, 50, 1) == 100.0


def test_percentage_of_idle_process():
    assert cpu_percentage(0, 100, 4) == 0.0


def test_percentage_scales_with_processors():
    assert cpu_percentage(3, 12, 4) == 4 * cpu_percentage(3, 12, 1)


def test_percentage_without_elapsed_time():
    assert str(cpu_percentage(0, 0, 2)) == "nan"
    assert cpu_percentage(5, 0, 2) == math.inf
    assert sleep_time_for(cpu_percentage(0, 0, 2)) == 0
    assert sleep_time_for(cpu_percentage(5, 0, 2)) == MAX_SLEEP


def test_sleep_time_is_a_tenth():
    assert sleep_time_for(35.7) == 3


def test_sleep_time_is_capped():
    assert sleep_time_for(95.0) == MAX_SLEEP
    assert sleep_time_for(1000.0) == MAX_SLEEP
    assert sleep_time_for(math.inf) == MAX_SLEEP


def test_sleep_time_low_shares_do_not_sleep():
    assert sleep_time_for(9.99) == 0
    assert sleep_time_for(math.nan) == 0
    assert sleep_time_for(-40.0) == 0


def test_sleep_time_is_monotonic():
    values = [sleep_time_for(p / 2) for p in range(0, 400)]
    assert values == sorted(values)


def test_main_rejects_unknown_option():
    with pytest.raises(SystemExit):
        main(["--no-such-option"])