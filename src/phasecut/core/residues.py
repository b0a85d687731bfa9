"""
Residue detection and dipole balancing.

A residue is a 2x2 pixel block whose closed-loop integral of wrapped
phase gradients is non-zero. Detection evaluates every block at once on
the compute device; balancing is a sequential pass over the flag grid.
"""

from __future__ import annotations

import numpy as np
import torch

from phasecut.core.flags import Flag, PixelFlags
from phasecut.core.rasterize import place_branch_cut
from phasecut.utils.phase_ops import loop_integral

# Due to small numerical errors of floating point operations this is the
# tolerance within which a loop integral is treated as zero.
DEFAULT_TOLERANCE = 1e-3


def compute_residues(
    phase: torch.Tensor,
    flags: PixelFlags,
    tolerance: float = DEFAULT_TOLERANCE,
) -> int:
    """
    Detect residues and record them in ``flags``.

    Residues from any earlier call are cleared first. Blocks with a
    corner flagged BORDER or BRANCH_CUT are skipped. A block whose loop
    integral exceeds ``tolerance`` becomes a positive residue, one below
    ``-tolerance`` a negative residue. Residues are recorded in row-major
    order of their anchors.

    Parameters
    ----------
    phase : torch.Tensor
        Wrapped phase of shape (H, W).
    flags : PixelFlags
        Flag aggregate of the same shape, updated in place.
    tolerance : float
        Integral magnitude at or below which a block is residue free.

    Returns
    -------
    int
        Number of residues found.
    """
    flags.check_shape(phase.shape)
    flags.clear_residues()

    if flags.rows < 2 or flags.cols < 2:
        return 0

    integral = loop_integral(phase).detach().cpu().numpy()

    avoid = flags.mask(Flag.AVOID)
    blocked = avoid[:-1, :-1] | avoid[:-1, 1:] | avoid[1:, :-1] | avoid[1:, 1:]

    positive = (integral > tolerance) & ~blocked
    negative = (integral < -tolerance) & ~blocked

    # np.argwhere walks in row-major order
    charges = np.zeros(integral.shape, dtype=np.int8)
    charges[positive] = 1
    charges[negative] = -1
    for row, col in np.argwhere(charges != 0):
        flags.add_residue(int(row), int(col), int(charges[row, col]))

    return len(flags.residues)


def find_dipole_partner(
    flags: PixelFlags,
    row: int,
    col: int,
) -> tuple[int, int] | None:
    """
    Opposite-charge residue right of, else below, the residue at [row, col].

    Returns None if [row, col] is not a residue or has no such neighbour.
    """
    cell = flags.at(row, col)
    if cell.is_positive_residue:
        opposite = Flag.NEGATIVE_RESIDUE
    elif cell.is_negative_residue:
        opposite = Flag.POSITIVE_RESIDUE
    else:
        return None

    if col < flags.cols - 1 and flags.at(row, col + 1).is_set(opposite):
        return (row, col + 1)
    if row < flags.rows - 1 and flags.at(row + 1, col).is_set(opposite):
        return (row + 1, col)
    return None


def balance_dipoles(flags: PixelFlags) -> int:
    """
    Cancel adjacent opposite-charge residue pairs with a direct cut.

    A single row-major pass: each residue is paired with the first
    opposite-charge residue immediately to its right, else immediately
    below. Paired residues are joined by a branch cut and removed.

    Parameters
    ----------
    flags : PixelFlags
        Flag aggregate, updated in place.

    Returns
    -------
    int
        Number of dipoles balanced.
    """
    n_dipoles = 0

    # Only residue pixels can start a pair; ones paired earlier in the
    # pass have lost their flag by the time they are reached.
    for row, col in np.argwhere(flags.mask(Flag.RESIDUE)):
        row, col = int(row), int(col)
        partner = find_dipole_partner(flags, row, col)
        if partner is None:
            continue

        n_dipoles += 1
        place_branch_cut(flags, (row, col), partner)
        flags.remove_residue(row, col)
        flags.remove_residue(*partner)

    return n_dipoles
