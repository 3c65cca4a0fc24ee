"""Game settings validation and the INI save file of a minesweeper game."""

from __future__ import annotations

import configparser
import random
import re
from os import PathLike
from pathlib import Path
from typing import Mapping

from labkit.minesweeper import Minesweeper, Outcome

DEFAULT_SIZE = 10
DEFAULT_LANGUAGE = 1
MIN_SIZE = 5
MAX_SIZE = 25

_INT = re.compile(r"\s*[+-]?[0-9]+\s*")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


class SettingsError(ValueError):
    """Raised when board settings break the rules of the game."""


def _to_int(text: str | None) -> int | None:
    """Parse a decimal integer the way the settings store does, or return None."""
    if text is None or not _INT.fullmatch(text):
        return None
    value = int(text)
    if not _INT_MIN <= value <= _INT_MAX:
        return None
    return value


def validate_settings(rows_text: str, columns_text: str, mines_text: str) -> tuple[int, int, int]:
    """Turn the three text fields into ``(rows, columns, mines)``.

    Empty fields fall back to 10 rows, 10 columns and a tenth of the cells as
    mines.  Raises SettingsError when the board would break the rules.
    """
    rows = DEFAULT_SIZE if not rows_text else (_to_int(rows_text) or 0)
    columns = DEFAULT_SIZE if not columns_text else (_to_int(columns_text) or 0)
    mines_value = _to_int(mines_text) or 0
    mines = int(rows * columns * 0.1) if not mines_text else mines_value
    if (
        (mines_text and mines_value < 1)
        or rows < MIN_SIZE
        or columns < MIN_SIZE
        or rows > MAX_SIZE
        or columns > MAX_SIZE
        or mines + 1 >= rows * columns
    ):
        raise SettingsError(
            f"rows and columns must lie in {MIN_SIZE}..{MAX_SIZE}; at least one mine "
            "and at least two free cells are required"
        )
    if not mines:
        mines = 1
    return rows, columns, mines


def check_saved_properties(
    rows: int, columns: int, mines: int, cells_left: int, cells: Mapping[str, str]
) -> bool:
    """Return whether saved properties and ``"row,col" -> "code:flag"`` cells are consistent."""
    if not (
        mines >= 1
        and MIN_SIZE <= rows <= MAX_SIZE
        and MIN_SIZE <= columns <= MAX_SIZE
        and mines + 1 < rows * columns
    ):
        return False
    mines_found = 0
    opened = 0
    for row in range(rows):
        for column in range(columns):
            value = cells.get(f"{row},{column}")
            if value is None:
                return False
            parts = value.split(":")
            if len(parts) != 2:
                return False
            code, flag = _to_int(parts[0]), _to_int(parts[1])
            if code not in (-1, 0, 1) or flag not in (0, 1):
                return False
            if code == -1:
                mines_found += 1
            elif code == 0:
                opened += 1
    if mines_found not in (mines, 0):
        return False
    return rows * columns - mines - opened == cells_left


def _parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None, delimiters=("=",))
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    return parser


def _clear(path: Path) -> None:
    path.write_text("", encoding="utf-8")


def save_game(path: str | PathLike[str], game: Minesweeper, language: int) -> None:
    """Write the board, its counters and the language to an INI file."""
    parser = _parser()
    parser["Properties"] = {
        "Rows": str(game.rows),
        "Columns": str(game.columns),
        "Mines": str(game.mines),
        "Left": str(game.cells_left),
        "Language": str(int(language)),
    }
    parser["Cells"] = {
        f"{row},{column}": f"{cell.encode()}:{int(cell.has_flag)}"
        for row, line in enumerate(game.cells)
        for column, cell in enumerate(line)
    }
    with open(path, "w", encoding="utf-8") as handle:
        parser.write(handle)


def load_game(
    path: str | PathLike[str], rng: random.Random | None = None
) -> tuple[Minesweeper | None, int]:
    """Restore a saved game.

    Returns ``(game, language)``.  The game is None when there is no saved
    game; an inconsistent save file is emptied and also gives None.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None, DEFAULT_LANGUAGE
    if not text:
        return None, DEFAULT_LANGUAGE

    parser = _parser()
    try:
        parser.read_string(text)
    except configparser.Error:
        _clear(path)
        return None, DEFAULT_LANGUAGE

    properties = parser["Properties"] if parser.has_section("Properties") else {}

    def prop(name: str, default: int) -> int:
        value = properties.get(name)
        if value is None:
            return default
        return _to_int(value) or 0

    rows = prop("Rows", 0)
    columns = prop("Columns", 0)
    mines = prop("Mines", 0)
    cells_left = prop("Left", 0)
    language = prop("Language", DEFAULT_LANGUAGE)
    if not 0 <= language <= 2:
        language = DEFAULT_LANGUAGE

    cells = dict(parser["Cells"]) if parser.has_section("Cells") else {}
    if not check_saved_properties(rows, columns, mines, cells_left, cells):
        _clear(path)
        return None, language

    game = Minesweeper(rows, columns, mines, rng)
    opened: list[tuple[int, int]] = []
    mines_found = False
    for row in range(rows):
        for column in range(columns):
            code_text, flag_text = cells[f"{row},{column}"].split(":")
            code, flag = _to_int(code_text), _to_int(flag_text)
            if code == -1:
                game.cells[row][column].has_mine = True
                mines_found = True
            elif code == 0:
                opened.append((row, column))
            if flag:
                game.toggle_flag(row, column)
    game.cells_left = cells_left

    if cells_left == rows * columns - mines and not mines_found:
        game.first_tap = True
        return game, language

    game.first_tap = False
    game.set_count_arounds()
    game.loading = True
    try:
        for row, column in opened:
            if not game.cells[row][column].is_enabled:
                continue
            if game.open(row, column) is not Outcome.CONTINUE:
                break
    finally:
        game.loading = False
    return game, language