# labkit

A collection of small command-line tools and the library code behind them:

- **Float arithmetic** on IEEE 754 half (`h`) and single (`f`) precision bit
  patterns, with explicit rounding modes, printed in hexadecimal scientific
  notation.
- **Minesweeper** in the terminal, with a saved game that is picked up again on
  the next start.
- **Process monitors** that read `/proc` on Linux.
- **Process-control exercises**: dated files and archives, cron jobs, a CPU
  limiter driven by signals, and two producer/handler calculators talking over
  a named pipe and over signals.
- **Cross-correlation**: the delay between two sampled signals, found with an FFT.

Most of the process tools expect Linux and a populated `/proc`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Float arithmetic

```
labkit-float <format> <rounding> <number>
labkit-float <format> <rounding> <number1> <operation> <number2>
```

- `format` is `h` (half precision) or `f` (single precision).
- `rounding` is a single digit: `0` toward zero, `1` to nearest,
  `2` toward positive infinity, `3` toward negative infinity. With a single
  number the code is checked but the number is printed as it is.
- numbers are the raw bit patterns in hexadecimal, for example `0x3c00`.
- `operation` is one of `+`, `-`, `*`, `/`.

Examples:

```
labkit-float h 0 0x3c00
labkit-float f 1 0x3f800000 + 0x40000000
labkit-float h 2 0x4200 / 0x3c00
```

Finite results are printed as `0x1.<hex digits>p<exponent>`, zeros as
`0x0.000p+0` (half) or `0x0.000000p+0` (single), and special values as
`inf`, `-inf` or `nan`. Bad arguments are reported on standard error and the
command exits with status 4.

From Python, `labkit.floatarith` offers `format_number`, `add`, `subtract`,
`multiply`, `divide` and `evaluate`, each returning the text that would be
printed; `FloatFormat` names the two formats, and invalid arguments raise
`FloatArgumentError`.

## Minesweeper

```
labkit-minesweeper
labkit-minesweeper dbg
labkit-minesweeper --settings my-save.ini --seed 42
```

With no saved game the program asks for rows, columns and mines. Sizes run
from 5 to 25; an empty answer means 10, and an empty mine count means 10% of
the cells. At least one mine and at least two free cells are required.

Commands, one per line:

| Command               | Effect                                                      |
|-----------------------|-------------------------------------------------------------|
| `o ROW COL`           | open a cell                                                 |
| `f ROW COL`           | toggle a flag on a closed cell                              |
| `c ROW COL`           | on an opened number whose mines are all flagged, open the other neighbours |
| `r`                   | restart with the same settings                              |
| `n [ROWS COLS MINES]` | start a new game                                            |
| `lang 0\|1\|2`        | switch language: Russian, English, Japanese                 |
| `h`                   | show help                                                   |
| `q`                   | quit                                                        |

The first opened cell is never a mine, and opening a cell with no neighbouring
mines opens its surroundings too. The board shows `#` for a closed cell, `F`
for a flag, `.` or a digit for an opened cell and `*` for a mine; `dbg` mode
shows closed mines as `m`. After a win or a loss the game asks whether to play
again.

Quitting mid-game saves the game to `settings.ini` (or the `--settings` file),
which is loaded on the next start; a finished game that is not replayed empties
that file, and an inconsistent save file is emptied and ignored.

The game logic lives in `labkit.minesweeper` (`Minesweeper`, `Cell`,
`Outcome`), settings checks and the save file in `labkit.savegame`
(`validate_settings`, `check_saved_properties`, `save_game`, `load_game`,
`SettingsError`), and the terminal front end in `labkit.minesweeper_cli`
(`render_board`, `run_session`, `Language`).

## Process monitors

| Command                  | What it does                                                                 |
|--------------------------|------------------------------------------------------------------------------|
| `labkit-users-processes` | lists the current user's processes and writes them to `1_users_processes.txt` |
| `labkit-from-sbin`       | writes the PIDs of processes running from `/usr/sbin/` to `2_from_sbin.txt`  |
| `labkit-pid-of-last`     | prints the PID of the most recently started process                         |
| `labkit-cpu-burst`       | writes the average CPU burst of each process, sorted by parent, to `4_cpu_burst.txt` |
| `labkit-avg-run`         | adds per-parent averages to `4_cpu_burst.txt` in place                       |
| `labkit-fattest`         | prints the process with the largest resident memory (`VmRSS`)               |
| `labkit-io`              | samples read bytes twice and prints the three processes that read the most  |

All of them except `labkit-avg-run` take `--proc` to read another process file
system root; those that write a report take `--output`. `labkit-io` takes
`--interval` (seconds between samples, default 60), and `labkit-avg-run` takes
`--input` and `--temp`.

The parsers they use (`is_id`, `parse_uid`, `parse_ppid`, `parse_vmrss`,
`parse_start_time`, `parse_average_burst`, `parse_read_bytes`,
`group_averages`) are available from `labkit.procmon` and take file contents as
text, so they work on captured data too.

## Process control

- `labkit-datetime` creates `~/test`, archives earlier dated files into
  per-day tar archives under `~/test/archived`, creates a file named after the
  current date and time, and appends a line to `~/report`.
- `labkit-repeat-datetime` adds a one-off job two minutes ahead to the user's
  crontab and prints the new lines of `~/report` once they appear.
- `labkit-total-repeat-datetime` adds a crontab job that runs every five
  minutes on Fridays.

  Both cron jobs run the program at
  `~/lab2/process-control/object_log_files/1_datetime`; that path is fixed and
  has to hold the date-file program for the jobs to do anything.
- `labkit-limitations` starts three busy worker processes and a monitor that
  sends the first one `SIGUSR1` whenever its CPU share rises above 10%, making
  it sleep. Options: `--proc`, `--pause` (seconds before the third worker
  stops, default 5) and `--duration` (seconds before the rest stop, default 30).
- `labkit-pipe-launcher` starts the producer and the handler (also available as
  `labkit-pipe-producer` and `labkit-pipe-handler`), joined by the named pipe
  `aripipe` or the path given with `--pipe`. Type `+` or `*` to choose an
  operation, a number to apply it, and `QUIT` to stop; the handler prints the
  running result, which starts at 1.
- `labkit-signal-launcher` starts `labkit-signal-handler` and
  `labkit-signal-producer`. Type `+` to add 2, `*` to double, and `TERM` to
  stop. The producer can also be run on its own with the handler's PID:

  ```
  labkit-signal-producer <HANDLER_PID>
  ```

The pieces behind these commands are importable as well: `labkit.datetime_jobs`
(`archive_previous`, `put_datefile`, `append_log`, `crontab_job_once`,
`crontab_job_weekly`, `install_cron_job`, `wait_for_report`, `TaskError`),
`labkit.limitations` (`parse_process_cpu_time`, `parse_total_cpu_time`,
`cpu_percentage`, `sleep_time_for`), `labkit.pipecalc` (`Op`, `parse_op`,
`is_good_input`, `handle_lines`) and `labkit.signalcalc`
(`SignalAccumulator`, `parse_pid`).

## Cross-correlation

`labkit.xcorr.cross_correlation_delay(first, second)` returns the delay, in
samples, between two sequences of samples, and `delay_report(delta,
sample_rate)` formats it together with the delay in milliseconds.

## What is not included

- There is no command for the cross-correlation, and nothing here reads or
  decodes audio files: the samples have to be supplied as numbers.
- The minesweeper has only the terminal interface described above; there is no
  graphical window.