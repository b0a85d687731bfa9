"""
Base class for phase unwrapping algorithms.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np
import torch

from phasecut.device.manager import DeviceManager, DeviceType


def validate_phase(phase: np.ndarray | torch.Tensor) -> None:
    """
    Check that ``phase`` is a usable wrapped-phase grid.

    Raises
    ------
    ValueError
        If the grid is not 2D, has an empty dimension or holds
        non-finite values.
    """
    shape = tuple(phase.shape)
    if len(shape) != 2:
        raise ValueError(f"Wrapped phase must be a 2D grid, got shape {shape}")
    if shape[0] == 0 or shape[1] == 0:
        raise ValueError(f"Wrapped phase grid must not be empty, got shape {shape}")

    if isinstance(phase, torch.Tensor):
        finite = bool(torch.isfinite(phase).all())
    else:
        finite = bool(np.isfinite(phase).all())
    if not finite:
        raise ValueError("Wrapped phase contains NaN or infinite values")


class BaseUnwrapper(ABC):
    """
    Abstract base class for phase unwrapping algorithms.

    Holds the wrapped phase (copied on assignment) and the unwrapped
    phase, which is reset on every assignment with its upper-left pixel
    seeded from the wrapped phase. Unwrapping is relative to that seed.
    Subclasses implement `unwrap` and may extend `_reset` to rebuild
    their own derived state.

    Parameters
    ----------
    wrapped : np.ndarray or torch.Tensor, optional
        Wrapped phase of shape (H, W), values in (-pi, pi].
    device : str or DeviceManager
        Compute device, or a device manager to share.
    """

    def __init__(
        self,
        wrapped: np.ndarray | torch.Tensor | None = None,
        device: DeviceType | DeviceManager = "auto",
    ):
        if isinstance(device, DeviceManager):
            self.dm = device
        else:
            self.dm = DeviceManager(device)

        self._wrapped: torch.Tensor | None = None
        self._unwrapped: torch.Tensor | None = None
        self.rows = 0
        self.cols = 0

        if wrapped is not None:
            self.wrapped = wrapped

    @property
    def wrapped(self) -> np.ndarray:
        """Copy of the wrapped phase."""
        self._require_phase()
        return self.dm.to_numpy(self._wrapped)

    @wrapped.setter
    def wrapped(self, value: np.ndarray | torch.Tensor) -> None:
        if not isinstance(value, torch.Tensor):
            value = np.asarray(value, dtype=np.float64)
        validate_phase(value)
        self._wrapped = self.dm.to_tensor(value)
        self.rows, self.cols = self._wrapped.shape
        self._reset()

    @property
    def unwrapped(self) -> np.ndarray:
        """Copy of the unwrapped phase."""
        self._require_phase()
        return self.dm.to_numpy(self._unwrapped)

    @property
    def shape(self) -> tuple[int, int]:
        return (self.rows, self.cols)

    @property
    def device(self) -> torch.device:
        """The device used for computation."""
        return self.dm.device

    @property
    def dtype(self) -> torch.dtype:
        """The dtype used for computation."""
        return self.dm.dtype

    def _reset(self) -> None:
        """Reset the unwrapped phase to the seed."""
        self._unwrapped = self.dm.zeros((self.rows, self.cols))
        self._unwrapped[0, 0] = self._wrapped[0, 0]

    def _require_phase(self) -> None:
        if self._wrapped is None:
            raise RuntimeError(f"{type(self).__name__}: wrapped phase has not been set")

    @abstractmethod
    def unwrap(self) -> None:
        """
        Unwrap the whole grid into `unwrapped`.

        Raises
        ------
        RuntimeError
            If no wrapped phase has been set.
        """

    def __call__(self, wrapped: np.ndarray | torch.Tensor | None = None) -> np.ndarray:
        """
        Convenience method: optionally assign ``wrapped``, unwrap, return a copy.

        Parameters
        ----------
        wrapped : np.ndarray or torch.Tensor, optional
            New wrapped phase. If None, the current one is used.

        Returns
        -------
        np.ndarray
            Unwrapped phase.
        """
        if wrapped is not None:
            self.wrapped = wrapped
        self.unwrap()
        return self.unwrapped
