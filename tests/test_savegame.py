import configparser
import random

import pytest

from labkit.minesweeper import Minesweeper
from labkit.savegame import (
    SettingsError,
    check_saved_properties,
    load_game,
    save_game,
    validate_settings,
)


def _played_game():
    game = Minesweeper(5, 5, 1, random.Random(0))
    game.cells[0][0].has_mine = True
    game.first_tap = False
    game.set_count_arounds()
    game.open(1, 1)
    game.toggle_flag(0, 0)
    return game


def _all_closed_cells(rows, columns):
    return {f"{r},{c}": "1:0" for r in range(rows) for c in range(columns)}


def test_validate_defaults_when_empty():
    assert validate_settings("", "", "") == (10, 10, 10)


def test_validate_explicit_values():
    assert validate_settings("5", "5", "23") == (5, 5, 23)


@pytest.mark.parametrize(
    "rows, columns, mines",
    [
        ("4", "10", ""),
        ("10", "26", ""),
        ("5", "5", "24"),
        ("10", "10", "0"),
        ("abc", "10", ""),
        ("10", "10", "-3"),
    ],
)
def test_validate_rejects_bad_settings(rows, columns, mines):
    with pytest.raises(SettingsError):
        validate_settings(rows, columns, mines)


def test_check_accepts_fresh_board():
    assert check_saved_properties(5, 5, 1, 24, _all_closed_cells(5, 5)) is True


def test_check_rejects_missing_cell():
    cells = _all_closed_cells(5, 5)
    del cells["4,4"]
    assert check_saved_properties(5, 5, 1, 24, cells) is False


def test_check_rejects_bad_code():
    cells = _all_closed_cells(5, 5)
    cells["2,2"] = "2:0"
    assert check_saved_properties(5, 5, 1, 24, cells) is False


def test_check_rejects_wrong_cells_left():
    assert check_saved_properties(5, 5, 1, 23, _all_closed_cells(5, 5)) is False


def test_check_rejects_mine_count_mismatch():
    cells = _all_closed_cells(5, 5)
    cells["0,0"] = "-1:0"
    assert check_saved_properties(5, 5, 2, 23, cells) is False


def test_check_rejects_small_board():
    assert check_saved_properties(4, 4, 1, 15, _all_closed_cells(4, 4)) is False


def test_save_writes_ini_format(tmp_path):
    path = tmp_path / "settings.ini"
    save_game(path, _played_game(), 2)
    parser = configparser.ConfigParser(interpolation=None, delimiters=("=",))
    parser.optionxform = str
    parser.read(path, encoding="utf-8")
    assert parser["Properties"]["Rows"] == "5"
    assert parser["Properties"]["Language"] == "2"
    assert parser["Cells"]["0,0"] == "-1:1"
    assert parser["Cells"]["1,1"] == "0:0"


def test_round_trip_of_played_game(tmp_path):
    path = tmp_path / "settings.ini"
    original = _played_game()
    save_game(path, original, 0)
    loaded, language = load_game(path, random.Random(1))
    assert language == 0
    assert loaded.first_tap is False
    assert loaded.cells_left == original.cells_left
    assert [[c.encode() for c in line] for line in loaded.cells] == [
        [c.encode() for c in line] for line in original.cells
    ]
    assert [[c.has_flag for c in line] for line in loaded.cells] == [
        [c.has_flag for c in line] for line in original.cells
    ]
    assert loaded.cells[1][1].count_around == original.cells[1][1].count_around


def test_round_trip_of_fresh_game(tmp_path):
    path = tmp_path / "settings.ini"
    save_game(path, Minesweeper(6, 7, 4, random.Random(0)), 1)
    loaded, language = load_game(path)
    assert language == 1
    assert loaded.first_tap is True
    assert (loaded.rows, loaded.columns, loaded.mines) == (6, 7, 4)
    assert loaded.cells_left == 6 * 7 - 4
    assert all(cell.is_enabled for line in loaded.cells for cell in line)


def test_missing_file_gives_no_game(tmp_path):
    assert load_game(tmp_path / "absent.ini") == (None, 1)


def test_empty_file_gives_no_game(tmp_path):
    path = tmp_path / "settings.ini"
    path.write_text("", encoding="utf-8")
    assert load_game(path) == (None, 1)


def test_inconsistent_file_is_cleared(tmp_path):
    path = tmp_path / "settings.ini"
    path.write_text("[Properties]\nRows=3\nColumns=3\nMines=1\nLeft=8\nLanguage=2\n", encoding="utf-8")
    game, language = load_game(path)
    assert game is None
    assert language == 2
    assert path.read_text(encoding="utf-8") == ""


def test_out_of_range_language_falls_back(tmp_path):
    path = tmp_path / "settings.ini"
    path.write_text("[Properties]\nRows=3\nLanguage=7\n", encoding="utf-8")
    assert load_game(path) == (None, 1)