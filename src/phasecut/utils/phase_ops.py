"""
Phase operations shared by the unwrapping algorithms.

All operations are element-wise and side-effect free, so they can be
evaluated on whole grids at once (CPU or GPU) or on single values.
"""

from __future__ import annotations

import math

import numpy as np
import torch

HALF_PI = math.pi / 2


def wrap(phase):
    """
    Wrap phase values to the interval (-pi, pi].

    This operation is embarrassingly parallel - each pixel
    is computed independently.

    Parameters
    ----------
    phase : torch.Tensor, np.ndarray or float
        Phase values (any range).

    Returns
    -------
    torch.Tensor, np.ndarray or float
        Wrapped phase, same type as the input.
    """
    # atan2 gives -pi for odd multiples of -pi; those belong to +pi
    if isinstance(phase, torch.Tensor):
        wrapped = torch.atan2(torch.sin(phase), torch.cos(phase))
        return torch.where(wrapped <= -math.pi, wrapped + 2 * math.pi, wrapped)
    wrapped = np.arctan2(np.sin(phase), np.cos(phase))
    wrapped = np.where(wrapped <= -math.pi, wrapped + 2 * math.pi, wrapped)
    if np.ndim(wrapped) == 0:
        return float(wrapped)
    return wrapped


def gradient(a, b):
    """
    Gradient of wrapped phase between two pixels (or grids of pixels).

    The raw difference ``a - b`` is folded by pi whenever it leaves
    [-pi/2, pi/2]: pi is subtracted above pi/2 and added below -pi/2.
    The loop integral tolerance used by residue detection is calibrated
    against this fold.

    Parameters
    ----------
    a, b : torch.Tensor, np.ndarray or float
        Wrapped phase values in [-pi, pi].

    Returns
    -------
    torch.Tensor, np.ndarray or float
        Folded difference, same type as the inputs.
    """
    diff = a - b
    if isinstance(diff, torch.Tensor):
        return torch.where(
            diff > HALF_PI,
            diff - math.pi,
            torch.where(diff < -HALF_PI, diff + math.pi, diff),
        )
    folded = np.where(
        diff > HALF_PI,
        diff - math.pi,
        np.where(diff < -HALF_PI, diff + math.pi, diff),
    )
    if np.ndim(folded) == 0:
        return float(folded)
    return folded


def loop_integral(phase: torch.Tensor) -> torch.Tensor:
    """
    Closed-loop integral of wrapped phase around every 2x2 pixel block.

    The loop for the block anchored at [row, col] walks the four edges
    top-right -> top-left -> bottom-left -> bottom-right -> top-right::

        [row, col]   <-  [row, col+1]
            |                ^
            v                |
        [row+1, col] ->  [row+1, col+1]

    Parameters
    ----------
    phase : torch.Tensor
        2D wrapped phase array of shape (H, W).

    Returns
    -------
    torch.Tensor
        Integral map of shape (H-1, W-1), indexed by block anchor.
    """
    top_left = phase[:-1, :-1]
    top_right = phase[:-1, 1:]
    bottom_left = phase[1:, :-1]
    bottom_right = phase[1:, 1:]

    return (
        gradient(top_right, top_left)
        + gradient(top_left, bottom_left)
        + gradient(bottom_left, bottom_right)
        + gradient(bottom_right, top_right)
    )
