"""
Goldstein branch-cut phase unwrapping.

The algorithm:
1. Detect residues (2x2 blocks with non-zero loop integral)
2. Balance adjacent opposite-charge residue pairs (dipoles) with short cuts
3. Grow branch cuts from the remaining residues until their charge is
   balanced or grounded to the border
4. Integrate wrapped differences by flood fill from the seed pixel
   without stepping through branch cuts, then unwrap the cut pixels
   from their unwrapped neighbours

Steps 1-3 can also be run one at a time; the flag grid, residue list and
cut list are shared between them.
"""

from __future__ import annotations

import warnings
from collections import deque
from dataclasses import dataclass

import numpy as np
import torch

from phasecut.core.base import BaseUnwrapper
from phasecut.core.branch_cuts import BranchCutGrower, BranchCutReport
from phasecut.core.flags import Flag, PixelFlags, Residue
from phasecut.core.residues import DEFAULT_TOLERANCE, balance_dipoles, compute_residues
from phasecut.device.manager import DeviceManager, DeviceType
from phasecut.utils.phase_ops import wrap

NEIGHBOURS = ((-1, 0), (0, -1), (0, 1), (1, 0))


@dataclass
class GoldsteinReport:
    """Summary of the last Goldstein run."""

    n_residues: int = 0
    n_dipoles: int = 0
    branch_cuts: BranchCutReport | None = None
    n_regions: int = 0

    @property
    def n_unresolved(self) -> int:
        if self.branch_cuts is None:
            return 0
        return self.branch_cuts.n_unresolved


class GoldsteinUnwrapper(BaseUnwrapper):
    """
    Residue-aware unwrapper that integrates around branch cuts.

    Parameters
    ----------
    wrapped : np.ndarray or torch.Tensor, optional
        Wrapped phase of shape (H, W).
    device : str or DeviceManager
        Compute device used for residue detection.
    tolerance : float
        Loop integral magnitude at or below which a block is residue
        free (default 1e-3).
    max_box_size : int, optional
        Largest box half-width searched per residue. Defaults to the
        larger grid dimension.
    verbose : bool
        Print a summary of each stage.
    """

    def __init__(
        self,
        wrapped: np.ndarray | torch.Tensor | None = None,
        device: DeviceType | DeviceManager = "auto",
        tolerance: float = DEFAULT_TOLERANCE,
        max_box_size: int | None = None,
        verbose: bool = False,
    ):
        if tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {tolerance}")
        if max_box_size is not None and max_box_size < 1:
            raise ValueError(f"max_box_size must be at least 1, got {max_box_size}")

        self.tolerance = tolerance
        self.max_box_size = max_box_size
        self.verbose = verbose
        self.flags: PixelFlags | None = None
        self.last_report = GoldsteinReport()

        super().__init__(wrapped, device)

    def _reset(self) -> None:
        super()._reset()
        self.flags = PixelFlags((self.rows, self.cols))
        self.last_report = GoldsteinReport()

    def _checked_flags(self) -> PixelFlags:
        self._require_phase()
        self.flags.check_shape(self._wrapped.shape)
        return self.flags

    @property
    def residues(self) -> list[Residue]:
        """
        Residues in detection order (copy).

        Dipoles and residues resolved by branch cuts are removed; after
        `compute_branch_cuts` only unresolved residues remain.
        """
        return list(self._checked_flags().residues)

    @property
    def branch_cuts(self) -> list[tuple[int, int]]:
        """Branch-cut pixels in the order they were drawn (copy)."""
        return list(self._checked_flags().branch_cuts)

    def residue_map(self) -> np.ndarray:
        """Float grid with +1/-1 at positive/negative residue anchors."""
        return self._checked_flags().residue_map()

    def branch_cut_map(self) -> np.ndarray:
        """Float grid with 1 on branch-cut pixels."""
        return self._checked_flags().branch_cut_map()

    def compute_residues(self) -> int:
        """
        Detect residues, replacing any found earlier.

        Returns
        -------
        int
            Number of residues found.
        """
        flags = self._checked_flags()
        n_residues = compute_residues(self._wrapped, flags, tolerance=self.tolerance)
        self.last_report.n_residues = n_residues

        if self.verbose:
            n_positive = sum(1 for r in flags.residues if r.charge > 0)
            print(
                f"Residues: {n_residues} (positive: {n_positive}, "
                f"negative: {n_residues - n_positive})"
            )

        return n_residues

    def balance_dipoles(self) -> int:
        """
        Replace adjacent opposite-charge residue pairs with branch cuts.

        Requires up-to-date residues, see `compute_residues`.

        Returns
        -------
        int
            Number of dipoles balanced.
        """
        n_dipoles = balance_dipoles(self._checked_flags())
        self.last_report.n_dipoles = n_dipoles

        if self.verbose:
            print(f"Dipoles balanced: {n_dipoles}")

        return n_dipoles

    def compute_branch_cuts(self) -> BranchCutReport:
        """
        Grow branch cuts for the residues left after dipole balancing.

        Residues that cannot be balanced within ``max_box_size`` are
        reported, and a warning is issued; they never raise.

        Returns
        -------
        BranchCutReport
            Outcome of the branch-cut growth.
        """
        grower = BranchCutGrower(self._checked_flags(), max_box_size=self.max_box_size)
        report = grower.grow()
        self.last_report.branch_cuts = report

        if self.verbose:
            print(
                f"Branch cuts: {report.grounded} grounded, {report.balanced} balanced, "
                f"{report.n_unresolved} unresolved, {report.n_cut_pixels} pixels"
            )

        if report.unresolved:
            warnings.warn(
                f"{report.n_unresolved} residue(s) could not be balanced within "
                f"a box half-width of {grower.max_box_size}",
                UserWarning,
            )

        return report

    def unwrap(self) -> None:
        """
        Run all stages on fresh flags and integrate around the branch cuts.

        Raises
        ------
        RuntimeError
            If no wrapped phase has been set.
        """
        self._require_phase()
        self.flags = PixelFlags((self.rows, self.cols))
        self.last_report = GoldsteinReport()

        self.compute_residues()
        self.balance_dipoles()
        self.compute_branch_cuts()
        self.integrate()

    def integrate(self) -> int:
        """
        Unwrap by flood fill without crossing branch cuts.

        Starts at the seed pixel [0, 0]; regions enclosed by cuts are
        unwrapped from their first pixel in row-major order, seeded with
        its wrapped value. Cut pixels are unwrapped last from any
        unwrapped neighbour.

        Returns
        -------
        int
            Number of independently seeded regions.
        """
        flags = self._checked_flags()
        flags.clear(Flag.UNWRAPPED | Flag.POSTPONED)

        phase = self.dm.to_numpy(self._wrapped)
        result = np.zeros_like(phase)
        cut = flags.mask(Flag.BRANCH_CUT)

        result[0, 0] = phase[0, 0]
        flags.at(0, 0).mark(Flag.UNWRAPPED)
        n_regions = 0
        if not cut[0, 0]:
            self._flood(phase, result, 0, 0)
            n_regions += 1

        for row, col in np.argwhere(~cut):
            row, col = int(row), int(col)
            if flags.at(row, col).is_set(Flag.UNWRAPPED):
                continue
            result[row, col] = phase[row, col]
            flags.at(row, col).mark(Flag.UNWRAPPED)
            self._flood(phase, result, row, col)
            n_regions += 1

        n_regions += self._unwrap_cut_pixels(phase, result, cut)

        self._unwrapped = self.dm.to_tensor(result)
        self.last_report.n_regions = n_regions

        if self.verbose:
            print(f"Integrated {n_regions} region(s)")

        return n_regions

    def _flood(self, phase: np.ndarray, result: np.ndarray, row: int, col: int) -> None:
        flags = self.flags
        queue = deque([(row, col)])

        while queue:
            row, col = queue.popleft()
            for d_row, d_col in NEIGHBOURS:
                n_row, n_col = row + d_row, col + d_col
                if not flags.in_bounds(n_row, n_col):
                    continue
                cell = flags.at(n_row, n_col)
                if cell.is_set(Flag.UNWRAPPED | Flag.BRANCH_CUT):
                    continue
                result[n_row, n_col] = result[row, col] + wrap(phase[n_row, n_col] - phase[row, col])
                cell.mark(Flag.UNWRAPPED)
                queue.append((n_row, n_col))

    def _unwrap_cut_pixels(self, phase: np.ndarray, result: np.ndarray, cut: np.ndarray) -> int:
        """Unwrap cut pixels from unwrapped neighbours; returns extra seeds used."""
        flags = self.flags
        pending = [
            (int(row), int(col))
            for row, col in np.argwhere(cut)
            if not flags.at(int(row), int(col)).is_set(Flag.UNWRAPPED)
        ]
        n_seeds = 0

        while pending:
            postponed = []
            for row, col in pending:
                source = self._unwrapped_neighbour(row, col)
                cell = flags.at(row, col)
                if source is None:
                    cell.mark(Flag.POSTPONED)
                    postponed.append((row, col))
                    continue
                s_row, s_col = source
                result[row, col] = result[s_row, s_col] + wrap(phase[row, col] - phase[s_row, s_col])
                cell.clear(Flag.POSTPONED)
                cell.mark(Flag.UNWRAPPED)

            if len(postponed) == len(pending):
                # Cut pixels out of reach of any unwrapped pixel
                row, col = postponed.pop(0)
                result[row, col] = phase[row, col]
                flags.at(row, col).clear(Flag.POSTPONED)
                flags.at(row, col).mark(Flag.UNWRAPPED)
                n_seeds += 1
            pending = postponed

        return n_seeds

    def _unwrapped_neighbour(self, row: int, col: int) -> tuple[int, int] | None:
        for d_row, d_col in NEIGHBOURS:
            n_row, n_col = row + d_row, col + d_col
            if self.flags.in_bounds(n_row, n_col) and self.flags.at(n_row, n_col).is_set(Flag.UNWRAPPED):
                return (n_row, n_col)
        return None
