"""
Branch-cut growth for residues left over after dipole balancing.

Each residue starts a `BoxSearch`: square neighbourhoods of growing
half-width are scanned around every pixel of the search's active set
until the accumulated charge is zero or a border pixel grounds it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from phasecut.core.flags import Flag, PixelFlags, Residue
from phasecut.core.rasterize import place_branch_cut


class SearchState(enum.Enum):
    """State of a single residue's box search."""

    SEARCHING = "searching"
    GROUNDED = "grounded"
    BALANCED = "balanced"
    EXHAUSTED = "exhausted"


@dataclass
class BranchCutReport:
    """Outcome of branch-cut growth over all residues."""

    grounded: int = 0
    balanced: int = 0
    unresolved: list[Residue] = field(default_factory=list)
    n_cut_pixels: int = 0

    @property
    def n_unresolved(self) -> int:
        return len(self.unresolved)


class BoxSearch:
    """
    Box search started from one residue.

    Cuts found while searching are kept pending and only drawn by
    `commit` once the search is grounded or balanced.
    `members` lists the residues whose charge this search has counted,
    starting residue first.

    Parameters
    ----------
    flags : PixelFlags
        Flag aggregate, updated in place (ACTIVE/VISITED bits).
    residue : Residue
        Starting residue.
    max_box_size : int
        Largest half-width scanned before the search is exhausted.
    """

    def __init__(self, flags: PixelFlags, residue: Residue, max_box_size: int):
        if max_box_size < 1:
            raise ValueError(f"max_box_size must be at least 1, got {max_box_size}")

        self.flags = flags
        self.residue = residue
        self.max_box_size = max_box_size

        self.state = SearchState.SEARCHING
        self.charge = residue.charge
        self.box_size = 0
        self.active: list[tuple[int, int]] = [residue.position]
        self.members: list[Residue] = [residue]
        self.pending_cuts: list[tuple[int, int]] = []

        flags.at(residue.row, residue.col).mark(Flag.ACTIVE | Flag.VISITED)

    def step(self) -> SearchState:
        """Scan the next box size around every active pixel."""
        if self.state is not SearchState.SEARCHING:
            return self.state

        if self.box_size >= self.max_box_size:
            self.state = SearchState.EXHAUSTED
            return self.state

        self.box_size += 1
        size = self.box_size
        rows, cols = self.flags.shape

        # The active set may grow while it is being scanned
        k = 0
        while k < len(self.active):
            center_row, center_col = self.active[k]
            k += 1
            for row in range(max(0, center_row - size), min(rows, center_row + size + 1)):
                for col in range(max(0, center_col - size), min(cols, center_col + size + 1)):
                    self._visit(row, col)
                    if self.state is not SearchState.SEARCHING:
                        return self.state

        return self.state

    def _visit(self, row: int, col: int) -> None:
        cell = self.flags.at(row, col)

        if cell.is_border:
            self.pending_cuts.append((row, col))
            self.charge = 0
            self.state = SearchState.GROUNDED
        elif cell.is_branch_cut:
            return
        elif cell.is_residue and not cell.is_active:
            if not cell.is_visited:
                self.charge += cell.charge
                cell.mark(Flag.VISITED)
                self.members.append(Residue(row, col, cell.charge))
            cell.mark(Flag.ACTIVE)
            self.active.append((row, col))
            self.pending_cuts.append((row, col))
            if self.charge == 0:
                self.state = SearchState.BALANCED

    def run(self) -> SearchState:
        """Step until the search leaves the SEARCHING state."""
        while self.state is SearchState.SEARCHING:
            self.step()
        return self.state

    def commit(self) -> int:
        """
        Draw the pending cuts of a grounded or balanced search.

        Returns
        -------
        int
            Number of pixels on the drawn cuts.
        """
        if self.state not in (SearchState.GROUNDED, SearchState.BALANCED):
            return 0

        n_pixels = 0
        for target in self.pending_cuts:
            n_pixels += len(place_branch_cut(self.flags, self.residue.position, target))
        self.pending_cuts.clear()
        return n_pixels

    def release(self) -> None:
        """Clear ACTIVE from the active set and empty it. VISITED is kept."""
        for row, col in self.active:
            self.flags.at(row, col).clear(Flag.ACTIVE)
        self.active.clear()


class BranchCutGrower:
    """
    Connects residues to each other or to the border with branch cuts.

    Parameters
    ----------
    flags : PixelFlags
        Flag aggregate with up-to-date residues (dipoles already balanced).
    max_box_size : int, optional
        Largest box half-width per residue. Defaults to the larger grid
        dimension, which always reaches the border.
    """

    def __init__(self, flags: PixelFlags, max_box_size: int | None = None):
        if max_box_size is None:
            max_box_size = max(flags.shape)
        if max_box_size < 1:
            raise ValueError(f"max_box_size must be at least 1, got {max_box_size}")

        self.flags = flags
        self.max_box_size = max_box_size

    def search(self, residue: Residue) -> BoxSearch:
        """Run, commit and release the box search for one residue."""
        box_search = BoxSearch(self.flags, residue, self.max_box_size)
        box_search.run()
        box_search.commit()
        box_search.release()
        return box_search

    def grow(self) -> BranchCutReport:
        """
        Grow branch cuts for every residue in residue-list order.

        Residues already visited by an earlier search are not used as
        starting points. Once every search has run, the residues counted
        by grounded or balanced searches are removed from the flags; the
        ones counted by exhausted searches stay and are reported as
        unresolved.

        Returns
        -------
        BranchCutReport
            Counts of grounded/balanced searches and unresolved residues.
        """
        report = BranchCutReport()
        n_before = len(self.flags.branch_cuts)
        resolved: list[Residue] = []

        for residue in list(self.flags.residues):
            cell = self.flags.at(residue.row, residue.col)
            if cell.is_visited or not cell.is_residue:
                continue

            box_search = self.search(residue)
            if box_search.state is SearchState.GROUNDED:
                report.grounded += 1
                resolved.extend(box_search.members)
            elif box_search.state is SearchState.BALANCED:
                report.balanced += 1
                resolved.extend(box_search.members)
            else:
                report.unresolved.extend(box_search.members)

        # Kept until here so later searches can still step on them
        for residue in resolved:
            self.flags.remove_residue(residue.row, residue.col)

        report.n_cut_pixels = len(self.flags.branch_cuts) - n_before
        return report


def compute_branch_cuts(
    flags: PixelFlags,
    max_box_size: int | None = None,
) -> BranchCutReport:
    """Grow branch cuts for all remaining residues. See `BranchCutGrower`."""
    return BranchCutGrower(flags, max_box_size=max_box_size).grow()
