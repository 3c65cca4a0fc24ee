"""Minesweeper board logic: mine placement, flood opening, flags and chording."""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterator


@dataclass
class Cell:
    """One square of the board."""

    has_mine: bool = False
    has_flag: bool = False
    is_enabled: bool = True
    count_around: int = 0

    def open(self) -> bool:
        """Disable the cell and report whether it held a mine."""
        self.is_enabled = False
        return self.has_mine

    def encode(self) -> int:
        """Return the saved-game code: -1 for a mine, 1 if closed, 0 if opened."""
        if self.has_mine:
            return -1
        return 1 if self.is_enabled else 0


class Outcome(Enum):
    """State of the game after a move."""

    CONTINUE = "continue"
    WON = "won"
    LOST = "lost"


class Minesweeper:
    """A rectangular minesweeper game whose mines are laid on the first open."""

    def __init__(self, rows: int, columns: int, mines: int, rng: random.Random | None = None):
        if rows < 1 or columns < 1:
            raise ValueError("the board needs at least one row and one column")
        if mines < 0 or mines >= rows * columns:
            raise ValueError("mines must leave at least one free cell")
        self.rows = rows
        self.columns = columns
        self.mines = mines
        self.loading = False
        self._rng = rng if rng is not None else random.Random()
        self.reset()

    def reset(self) -> None:
        """Start a fresh game with the same dimensions and mine count."""
        self.cells = [[Cell() for _ in range(self.columns)] for _ in range(self.rows)]
        self.first_tap = True
        self.lost = False
        self.won = False
        self.cells_left = self.rows * self.columns - self.mines

    def _check_bounds(self, row: int, column: int) -> None:
        if not (0 <= row < self.rows and 0 <= column < self.columns):
            raise IndexError(f"cell ({row}, {column}) is outside the board")

    def _check_running(self) -> None:
        if self.lost or self.won:
            raise RuntimeError("the game is over; reset it first")

    def _around(self, row: int, column: int) -> Iterator[tuple[int, int]]:
        for i in range(row - 1, row + 2):
            for j in range(column - 1, column + 2):
                if 0 <= i < self.rows and 0 <= j < self.columns:
                    yield i, j

    def place_mines(self, row: int, column: int) -> None:
        """Lay the mines at random, never on the given cell."""
        left = self.mines
        while left:
            gen_row = self._rng.randrange(self.rows)
            gen_column = self._rng.randrange(self.columns)
            cell = self.cells[gen_row][gen_column]
            if cell.has_mine or (gen_row == row and gen_column == column):
                continue
            cell.has_mine = True
            left -= 1

    def count_around(self, row: int, column: int) -> int:
        """Count mines in the 3x3 square centred on the cell."""
        self._check_bounds(row, column)
        return sum(self.cells[i][j].has_mine for i, j in self._around(row, column))

    def set_count_arounds(self) -> None:
        """Store each cell's neighbouring mine count."""
        for row, line in enumerate(self.cells):
            for column, cell in enumerate(line):
                cell.count_around = self.count_around(row, column)

    def _open_cell(self, row: int, column: int) -> bool:
        cell = self.cells[row][column]
        was_enabled = cell.is_enabled
        if cell.open():
            return True
        if was_enabled and not self.loading:
            self.cells_left -= 1
        if cell.count_around:
            return False
        pending = [(i, j) for i, j in self._around(row, column) if (i, j) != (row, column)]
        while pending:
            i, j = pending.pop()
            neighbour = self.cells[i][j]
            if not neighbour.is_enabled:
                continue
            neighbour.open()
            if not self.loading:
                self.cells_left -= 1
            if not neighbour.count_around:
                pending.extend(p for p in self._around(i, j) if p != (i, j))
        return False

    def _game_over(self) -> None:
        for line in self.cells:
            for cell in line:
                cell.open()

    def _opening_action(self, row: int, column: int) -> Outcome:
        if self.first_tap:
            self.place_mines(row, column)
            self.set_count_arounds()
            self.first_tap = False
        if self._open_cell(row, column):
            self.lost = True
            self._game_over()
            return Outcome.LOST
        if not self.cells_left:
            self.won = True
            return Outcome.WON
        return Outcome.CONTINUE

    def open(self, row: int, column: int) -> Outcome:
        """Open a cell; flagged or already opened cells are left alone."""
        self._check_bounds(row, column)
        self._check_running()
        cell = self.cells[row][column]
        if cell.has_flag or not cell.is_enabled:
            return Outcome.CONTINUE
        return self._opening_action(row, column)

    def toggle_flag(self, row: int, column: int) -> bool:
        """Flip the flag on a closed cell and return whether it is now flagged."""
        self._check_bounds(row, column)
        cell = self.cells[row][column]
        if cell.is_enabled:
            cell.has_flag = not cell.has_flag
        return cell.has_flag

    def flags_check(self, row: int, column: int) -> int:
        """Count flags that sit on mines in the 3x3 square centred on the cell."""
        self._check_bounds(row, column)
        return sum(
            1
            for i, j in self._around(row, column)
            if self.cells[i][j].has_flag and self.cells[i][j].has_mine
        )

    def chord(self, row: int, column: int) -> Outcome:
        """Open the unflagged neighbours of an opened number once its mines are flagged."""
        self._check_bounds(row, column)
        self._check_running()
        cell = self.cells[row][column]
        if cell.has_flag:
            return Outcome.CONTINUE
        if cell.is_enabled:
            return self._opening_action(row, column)
        if not cell.count_around or self.flags_check(row, column) != cell.count_around:
            return Outcome.CONTINUE
        for i, j in self._around(row, column):
            neighbour = self.cells[i][j]
            if neighbour.has_flag or not neighbour.is_enabled:
                continue
            outcome = self._opening_action(i, j)
            if outcome is not Outcome.CONTINUE:
                return outcome
        return Outcome.CONTINUE