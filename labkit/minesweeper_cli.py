"""Terminal front end for the minesweeper game with a saved-game file."""

from __future__ import annotations

import argparse
import random
import sys
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Iterable, Sequence, TextIO

from labkit.minesweeper import Minesweeper, Outcome
from labkit.savegame import SettingsError, load_game, save_game, validate_settings


@dataclass(frozen=True)
class _Texts:
    over_title: str
    win_banner: str
    lose_banner: str
    menu: tuple[str, str, str, str]
    setting_labels: tuple[str, str, str]
    welcome: str
    warning_title: str
    warning_text: str


class Language(IntEnum):
    """Interface languages, numbered as in the save file."""

    RUSSIAN = 0
    ENGLISH = 1
    JAPANESE = 2

    @property
    def texts(self) -> _Texts:
        return _TEXTS[self]


_TEXTS = {
    Language.RUSSIAN: _Texts(
        over_title="Игра окончена!",
        win_banner="Ура! :) Вы победили!\nХотите сыграть еще раз?",
        lose_banner="Очень жаль, вы проиграли :(\nХотите сыграть еще раз?",
        menu=("Начать сначала", "Новая игра", "Язык", "Выход"),
        setting_labels=("В ряд: ", "В колонку: ", "Мин: "),
        welcome="Добро пожаловать в Touhou Minesweeper!",
        warning_title="Неверный ввод",
        warning_text=(
            "Пожалуйста, введите значения, согласно правилам:\n\n1. 5 <= Рядов, Столбиков <= 25\n"
            "2. Хотя бы две клетки должны быть без мин, и хотя бы одна с миной\n\n"
            "ВАЖНО: Если какое-то поле останется пустым, оно автоматически заполнится, "
            "согласно списку: \nВ ряд = 10,\nВ колонку = 10,\nМин = 10% от (В ряд * В колонку)"
        ),
    ),
    Language.ENGLISH: _Texts(
        over_title="Game is over!",
        win_banner="Congratulations! :) You win!\nDo you want to play one more time?",
        lose_banner="You've lost the game :(\nDo you want to play one more time?",
        menu=("Restart game", "New game", "Language", "Quit"),
        setting_labels=("Rows: ", "Columns: ", "Mines: "),
        welcome="Welcome to Touhou Minesweeper!",
        warning_title="Wrong input",
        warning_text=(
            "Please, input values using these rules:\n\n1. 5 <= Rows, Columns <= 25\n"
            "2. Minimum two cells should be without mines in them, but at least one with mine\n\n"
            "NOTE: If field is empty, it would be filled with values: \nRows = 10,\nColumns = 10,\n"
            "Mines = 10% from (Rows * Columns)"
        ),
    ),
    Language.JAPANESE: _Texts(
        over_title="ゲームオーバー",
        win_banner="おめでとう！ :) あなたは勝ちました！\nもう一度プレイしますか？",
        lose_banner="ゲームに負けてしまいました :(\nもう一度プレイしますか？",
        menu=("ゲームを再起動", "新しいゲーム", "言語", "終了"),
        setting_labels=("列: ", "行: ", "地雷: "),
        welcome="東方地雷原へようこそ！",
        warning_title="入力が正しくありません",
        warning_text=(
            "ルールに従って値を入力してください:\n\n1. 5 <= 行数, 列数 <= 25\n"
            "2. 少なくとも2つのセルは地雷なしで、少なくとも1つのセルは地雷あり\n\n"
            "重要: 空白のフィールドがあると、自動的に次のリストに従って入力されます:\n"
            "行数 = 10,\n列数 = 10,\n地雷 = (行数 * 列数)の10%"
        ),
    ),
}

_YES = {"y", "yes", "да", "はい"}


def _cell_char(cell, debug: bool) -> str:
    if not cell.is_enabled:
        if cell.has_mine:
            return "*"
        return str(cell.count_around) if cell.count_around else "."
    if cell.has_flag:
        return "F"
    if debug and cell.has_mine:
        return "m"
    return "#"


def render_board(game: Minesweeper, debug: bool = False) -> str:
    """Draw the cells-left counter and the board; debug mode reveals closed mines."""
    lines = [f"Left: {game.cells_left}"]
    lines.extend(" ".join(_cell_char(cell, debug) for cell in row) for row in game.cells)
    return "\n".join(lines)


def _help(language: Language) -> str:
    restart, new_game, lang, quit_label = language.texts.menu
    return (
        "o ROW COL: open | f ROW COL: flag | c ROW COL: open around\n"
        f"r: {restart} | n [ROWS COLS MINES]: {new_game} | lang 0|1|2: {lang} | q: {quit_label}"
    )


def run_session(
    game: Minesweeper,
    lines: Iterable[str],
    out: TextIO,
    language: Language | int = Language.ENGLISH,
    debug: bool = False,
) -> tuple[Minesweeper, Language, Outcome]:
    """Play commands from ``lines`` and report to ``out``.

    Returns the current game, the language and the outcome that ended the
    session: CONTINUE when the player quit mid-game, WON or LOST when another
    game was declined.
    """
    language = Language(language)
    commands = iter(lines)
    out.write(render_board(game, debug) + "\n")
    for raw in commands:
        words = raw.split()
        if not words:
            continue
        command, args = words[0].lower(), words[1:]
        outcome = Outcome.CONTINUE
        if command in ("q", "quit"):
            return game, language, Outcome.CONTINUE
        if command in ("h", "help", "?"):
            out.write(_help(language) + "\n")
            continue
        if command in ("r", "restart"):
            game.reset()
        elif command in ("n", "new"):
            texts = (args + ["", "", ""])[:3]
            try:
                rows, columns, mines = validate_settings(*texts)
            except SettingsError:
                out.write(f"{language.texts.warning_title}\n{language.texts.warning_text}\n")
                continue
            game = Minesweeper(rows, columns, mines, game._rng)
        elif command == "lang":
            try:
                language = Language(int(args[0]))
            except (IndexError, ValueError):
                out.write(_help(language) + "\n")
                continue
            out.write(f"{language.texts.menu[2]}: {language.name.lower()}\n")
            continue
        elif command in ("o", "f", "c"):
            try:
                row, column = (int(word) for word in args)
            except ValueError:
                out.write(_help(language) + "\n")
                continue
            try:
                if command == "o":
                    outcome = game.open(row, column)
                elif command == "f":
                    game.toggle_flag(row, column)
                else:
                    outcome = game.chord(row, column)
            except (IndexError, RuntimeError) as exc:
                out.write(f"{exc}\n")
                continue
        else:
            out.write(_help(language) + "\n")
            continue

        out.write(render_board(game, debug) + "\n")
        if outcome is Outcome.CONTINUE:
            continue
        texts = language.texts
        banner = texts.win_banner if outcome is Outcome.WON else texts.lose_banner
        out.write(f"{texts.over_title}\n{banner}\n[y/n] ")
        answer = next(commands, "").strip().lower()
        if answer not in _YES:
            return game, language, outcome
        game.reset()
        out.write(render_board(game, debug) + "\n")
    return game, language, Outcome.CONTINUE


def _ask_settings(
    stream: TextIO, out: TextIO, rng: random.Random, language: Language
) -> Minesweeper | None:
    texts = language.texts
    while True:
        out.write(texts.welcome + "\n")
        values = []
        for label in texts.setting_labels:
            out.write(label)
            out.flush()
            line = stream.readline()
            if not line:
                return None
            values.append(line.strip())
        try:
            rows, columns, mines = validate_settings(*values)
        except SettingsError:
            out.write(f"{texts.warning_title}\n{texts.warning_text}\n")
            continue
        return Minesweeper(rows, columns, mines, rng)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the game on the terminal; ``dbg`` as the first argument shows mines."""
    parser = argparse.ArgumentParser(prog="minesweeper", description="Terminal minesweeper.")
    parser.add_argument("mode", nargs="?", help="'dbg' to reveal mines")
    parser.add_argument("--settings", type=Path, default=Path("settings.ini"), help="save file")
    parser.add_argument("--seed", type=int, default=None, help="seed for mine placement")
    args = parser.parse_args(argv)

    debug = args.mode == "dbg"
    rng = random.Random(args.seed)
    game, language_code = load_game(args.settings, rng)
    language = Language(language_code)
    if game is None:
        game = _ask_settings(sys.stdin, sys.stdout, rng, language)
        if game is None:
            return 0

    game, language, outcome = run_session(game, sys.stdin, sys.stdout, language, debug)
    if outcome is Outcome.CONTINUE:
        save_game(args.settings, game, language)
    else:
        args.settings.write_text("", encoding="utf-8")
    return 0


if __name__ == "__main__":
    sys.exit(main())