"""
Per-pixel bit flags and the residue/branch-cut bookkeeping built on them.

The flag grid, the residue list and the branch-cut list describe the same
state from different angles, so they are owned together by `PixelFlags`
and only changed through its methods.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

import numpy as np


class Flag(enum.IntFlag):
    """Pixel flag bits. Each flag occupies a single distinct bit."""

    POSITIVE_RESIDUE = 0x01
    NEGATIVE_RESIDUE = 0x02
    VISITED = 0x04
    ACTIVE = 0x08
    BRANCH_CUT = 0x10
    BORDER = 0x20
    UNWRAPPED = 0x40
    POSTPONED = 0x80
    RESIDUE = POSITIVE_RESIDUE | NEGATIVE_RESIDUE
    AVOID = BORDER | BRANCH_CUT


@dataclass(frozen=True)
class Residue:
    """
    Phase residue anchored at the upper-left pixel of its 2x2 block.

    The geometric position of the residue is the centre of the block,
    i.e. (row + 0.5, col + 0.5).
    """

    row: int
    col: int
    charge: int

    @property
    def position(self) -> tuple[int, int]:
        return (self.row, self.col)


class FlagCell:
    """
    Accessor bound to a single cell of a flag grid.

    Reads and writes go straight to the grid storage, so a change made
    through one accessor is visible to every other view of the grid.
    """

    __slots__ = ("_grid", "row", "col")

    def __init__(self, grid: np.ndarray, row: int, col: int):
        self._grid = grid
        self.row = row
        self.col = col

    @property
    def value(self) -> Flag:
        return Flag(int(self._grid[self.row, self.col]))

    def is_set(self, flag: Flag) -> bool:
        """True if any bit of ``flag`` is set on this cell."""
        return (int(self._grid[self.row, self.col]) & flag) != 0

    def mark(self, flag: Flag) -> None:
        self._grid[self.row, self.col] |= np.uint8(flag)

    def clear(self, flag: Flag) -> None:
        self._grid[self.row, self.col] &= np.uint8(~int(flag) & 0xFF)

    @property
    def is_residue(self) -> bool:
        return self.is_set(Flag.RESIDUE)

    @property
    def is_positive_residue(self) -> bool:
        return self.is_set(Flag.POSITIVE_RESIDUE)

    @property
    def is_negative_residue(self) -> bool:
        return self.is_set(Flag.NEGATIVE_RESIDUE)

    @property
    def is_border(self) -> bool:
        return self.is_set(Flag.BORDER)

    @property
    def is_branch_cut(self) -> bool:
        return self.is_set(Flag.BRANCH_CUT)

    @property
    def is_avoid(self) -> bool:
        return self.is_set(Flag.AVOID)

    @property
    def is_active(self) -> bool:
        return self.is_set(Flag.ACTIVE)

    @property
    def is_visited(self) -> bool:
        return self.is_set(Flag.VISITED)

    @property
    def charge(self) -> int:
        """+1 or -1 for a residue cell, 0 otherwise."""
        if self.is_positive_residue:
            return 1
        if self.is_negative_residue:
            return -1
        return 0

    def __repr__(self) -> str:
        return f"FlagCell(row={self.row}, col={self.col}, value={self.value!r})"


class PixelFlags:
    """
    Flag grid together with the residue list and branch-cut list.

    Parameters
    ----------
    shape : tuple of int
        Grid shape (rows, cols). Edge pixels are flagged BORDER.
    """

    def __init__(self, shape: tuple[int, int]):
        rows, cols = shape
        self.rows = rows
        self.cols = cols
        self.grid = np.zeros((rows, cols), dtype=np.uint8)
        self.residues: list[Residue] = []
        self.branch_cuts: list[tuple[int, int]] = []
        self._mark_border()

    def _mark_border(self) -> None:
        border = np.uint8(Flag.BORDER)
        self.grid[0, :] |= border
        self.grid[-1, :] |= border
        self.grid[:, 0] |= border
        self.grid[:, -1] |= border

    @property
    def shape(self) -> tuple[int, int]:
        return (self.rows, self.cols)

    def at(self, row: int, col: int) -> FlagCell:
        """Accessor for the cell at [row, col]."""
        return FlagCell(self.grid, row, col)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def check_shape(self, shape: tuple[int, ...]) -> None:
        """Raise if ``shape`` does not match the flag grid."""
        if tuple(shape) != self.shape:
            raise RuntimeError(
                f"Flag grid shape {self.shape} does not match phase grid shape {tuple(shape)}"
            )

    def mask(self, flag: Flag) -> np.ndarray:
        """Boolean map of pixels with any bit of ``flag`` set."""
        return (self.grid & np.uint8(flag)) != 0

    def clear(self, flag: Flag) -> None:
        """Clear ``flag`` on every pixel."""
        self.grid &= np.uint8(~int(flag) & 0xFF)

    # Residues

    def add_residue(self, row: int, col: int, charge: int) -> Residue:
        """Flag [row, col] as a residue of the given charge and record it."""
        if charge not in (1, -1):
            raise ValueError(f"Residue charge must be +1 or -1, got {charge}")
        residue = Residue(row, col, charge)
        cell = self.at(row, col)
        cell.clear(Flag.RESIDUE)
        cell.mark(Flag.POSITIVE_RESIDUE if charge > 0 else Flag.NEGATIVE_RESIDUE)
        self.residues.append(residue)
        return residue

    def remove_residue(self, row: int, col: int) -> None:
        """Clear the residue bits at [row, col] and drop its list entry."""
        self.at(row, col).clear(Flag.RESIDUE)
        self.residues = [r for r in self.residues if r.position != (row, col)]

    def clear_residues(self) -> None:
        """Forget every residue, flags and list alike."""
        self.clear(Flag.RESIDUE)
        self.residues.clear()

    # Branch cuts

    def mark_branch_cut(self, row: int, col: int) -> None:
        """Flag [row, col] as a branch cut and add it to the cut list."""
        cell = self.at(row, col)
        if not cell.is_branch_cut:
            cell.mark(Flag.BRANCH_CUT)
            self.branch_cuts.append((row, col))

    # Diagnostic maps

    def residue_map(self) -> np.ndarray:
        """Float grid with +1 at positive and -1 at negative residues."""
        result = np.zeros(self.shape, dtype=np.float64)
        result[self.mask(Flag.POSITIVE_RESIDUE)] = 1.0
        result[self.mask(Flag.NEGATIVE_RESIDUE)] = -1.0
        return result

    def branch_cut_map(self) -> np.ndarray:
        """Float grid with 1 on branch-cut pixels."""
        return self.mask(Flag.BRANCH_CUT).astype(np.float64)

    def __repr__(self) -> str:
        return (
            f"PixelFlags(shape={self.shape}, residues={len(self.residues)}, "
            f"branch_cuts={len(self.branch_cuts)})"
        )
