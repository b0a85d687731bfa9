"""
Itoh path-integration phase unwrapping.

The algorithm sums wrapped phase differences:
1. Unwrap the first column top to bottom (sequential).
2. Unwrap every row left to right, each seeded from its already
   unwrapped first-column value. Rows are independent of each other,
   so they are all integrated at once.

No residue handling is done: inconsistent data produces streaks along
the integration path.
"""

from __future__ import annotations

import torch

from phasecut.core.base import BaseUnwrapper
from phasecut.utils.phase_ops import wrap


class ItohUnwrapper(BaseUnwrapper):
    """
    Fast, mask-free unwrapper integrating along the first column, then rows.

    Parameters
    ----------
    wrapped : np.ndarray or torch.Tensor, optional
        Wrapped phase of shape (H, W).
    device : str or DeviceManager
        Compute device.
    """

    def unwrap(self) -> None:
        """Unwrap the whole grid, first column then rows."""
        self._require_phase()
        self.unwrap_column(0)
        self.unwrap_rows()

    def unwrap_column(self, col: int) -> None:
        """
        Unwrap column ``col`` top to bottom from its first pixel.

        Each step adds ``wrap(wrapped[row - 1] - wrapped[row])``.
        """
        if self.rows < 2:
            return
        column = self._wrapped[:, col]
        steps = wrap(column[:-1] - column[1:])
        self._unwrapped[1:, col] = self._unwrapped[0, col] + torch.cumsum(steps, dim=0)

    def unwrap_rows(self) -> None:
        """
        Unwrap every row left to right from its first-column value.

        Each step adds ``wrap(wrapped[col] - wrapped[col - 1])``; all rows
        are processed in one vectorized pass.
        """
        if self.cols < 2:
            return
        steps = wrap(self._wrapped[:, 1:] - self._wrapped[:, :-1])
        self._unwrapped[:, 1:] = self._unwrapped[:, :1] + torch.cumsum(steps, dim=1)
