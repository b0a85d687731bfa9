"""
Public API for phasecut phase unwrapping.

This module provides the main entry points for unwrapping single grids
and stacks of grids. The caller always names the algorithm.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Literal, Sequence

import numpy as np
from tqdm import tqdm

from phasecut.core.base import BaseUnwrapper
from phasecut.core.branch_cuts import BranchCutReport
from phasecut.core.flags import Residue
from phasecut.core.goldstein import GoldsteinReport, GoldsteinUnwrapper
from phasecut.core.itoh import ItohUnwrapper
from phasecut.core.residues import DEFAULT_TOLERANCE
from phasecut.device.manager import DeviceManager, DeviceType

AlgorithmType = Literal["itoh", "goldstein"]


def _create_unwrapper(
    algorithm: AlgorithmType,
    device: DeviceType | DeviceManager,
    tolerance: float,
    max_box_size: int | None,
    verbose: bool,
) -> BaseUnwrapper:
    if algorithm == "itoh":
        return ItohUnwrapper(device=device)
    elif algorithm == "goldstein":
        return GoldsteinUnwrapper(
            device=device,
            tolerance=tolerance,
            max_box_size=max_box_size,
            verbose=verbose,
        )
    else:
        raise ValueError(f"Unknown algorithm: {algorithm}")


def unwrap(
    phase: np.ndarray,
    algorithm: AlgorithmType,
    device: DeviceType = "auto",
    tolerance: float = DEFAULT_TOLERANCE,
    max_box_size: int | None = None,
    verbose: bool = False,
) -> np.ndarray:
    """
    Unwrap a 2D wrapped-phase grid.

    Parameters
    ----------
    phase : np.ndarray
        Wrapped phase of shape (H, W), values in (-pi, pi].
    algorithm : str
        Unwrapping algorithm:
        - "itoh": Fast path integration along the first column, then rows
        - "goldstein": Residue-aware integration around branch cuts
    device : str
        Compute device: "cuda", "mps", "cpu", or "auto" (default).
    tolerance : float
        Residue loop-integral tolerance (goldstein only, default 1e-3).
    max_box_size : int, optional
        Largest branch-cut search half-width (goldstein only).
    verbose : bool
        Print stage summaries (goldstein only).

    Returns
    -------
    np.ndarray
        Unwrapped phase, relative to the seed ``phase[0, 0]``.

    Examples
    --------
    >>> import phasecut
    >>> unw = phasecut.unwrap(wrapped, algorithm="itoh", device="cpu")
    >>> unw = phasecut.unwrap(wrapped, algorithm="goldstein", max_box_size=32)
    """
    unwrapper = _create_unwrapper(algorithm, device, tolerance, max_box_size, verbose)
    return unwrapper(phase)


def unwrap_itoh(
    phase: np.ndarray,
    device: DeviceType = "auto",
) -> np.ndarray:
    """
    Unwrap phase by Itoh path integration.

    Fastest algorithm, but residues in the data produce streaks along
    the integration path.

    See Also
    --------
    unwrap : Main unwrapping function with all options.
    """
    return unwrap(phase, algorithm="itoh", device=device)


def unwrap_goldstein(
    phase: np.ndarray,
    device: DeviceType = "auto",
    tolerance: float = DEFAULT_TOLERANCE,
    max_box_size: int | None = None,
    verbose: bool = False,
) -> tuple[np.ndarray, GoldsteinReport]:
    """
    Unwrap phase with Goldstein branch cuts.

    Returns
    -------
    unw : np.ndarray
        Unwrapped phase.
    report : GoldsteinReport
        Residue, dipole and branch-cut counts, including unresolved
        residues.

    See Also
    --------
    unwrap : Main unwrapping function with all options.
    """
    unwrapper = GoldsteinUnwrapper(
        phase,
        device=device,
        tolerance=tolerance,
        max_box_size=max_box_size,
        verbose=verbose,
    )
    unwrapper.unwrap()
    return unwrapper.unwrapped, unwrapper.last_report


def find_residues(
    phase: np.ndarray,
    device: DeviceType = "auto",
    tolerance: float = DEFAULT_TOLERANCE,
    balance: bool = False,
) -> list[Residue]:
    """
    Detect residues in a wrapped-phase grid.

    Parameters
    ----------
    phase : np.ndarray
        Wrapped phase of shape (H, W).
    device : str
        Compute device.
    tolerance : float
        Loop-integral tolerance.
    balance : bool
        If True, residues cancelled by dipole balancing are dropped.

    Returns
    -------
    list of Residue
        Residues in row-major order of their anchors.
    """
    unwrapper = GoldsteinUnwrapper(phase, device=device, tolerance=tolerance)
    unwrapper.compute_residues()
    if balance:
        unwrapper.balance_dipoles()
    return unwrapper.residues


def compute_branch_cuts(
    phase: np.ndarray,
    device: DeviceType = "auto",
    tolerance: float = DEFAULT_TOLERANCE,
    max_box_size: int | None = None,
) -> tuple[np.ndarray, BranchCutReport]:
    """
    Compute the Goldstein branch-cut map of a wrapped-phase grid.

    Returns
    -------
    cuts : np.ndarray
        Float grid with 1 on branch-cut pixels.
    report : BranchCutReport
        Outcome of the branch-cut growth.
    """
    unwrapper = GoldsteinUnwrapper(
        phase,
        device=device,
        tolerance=tolerance,
        max_box_size=max_box_size,
    )
    unwrapper.compute_residues()
    unwrapper.balance_dipoles()
    report = unwrapper.compute_branch_cuts()
    return unwrapper.branch_cut_map(), report


def unwrap_stack(
    phases: np.ndarray | Sequence[np.ndarray],
    algorithm: AlgorithmType,
    device: DeviceType = "auto",
    n_workers: int | None = None,
    tolerance: float = DEFAULT_TOLERANCE,
    max_box_size: int | None = None,
    verbose: bool = False,
) -> list[np.ndarray]:
    """
    Unwrap a stack of grids in parallel.

    Each grid gets its own unwrapper; results keep the input order.

    Parameters
    ----------
    phases : np.ndarray or sequence of np.ndarray
        3D array of shape (N, H, W) or a sequence of 2D grids.
    algorithm : str
        "itoh" or "goldstein".
    device : str
        Compute device shared by all workers.
    n_workers : int, optional
        Number of worker threads. Defaults to the executor's default.
    tolerance, max_box_size
        Passed to the Goldstein unwrapper.
    verbose : bool
        Show a progress bar.

    Returns
    -------
    list of np.ndarray
        Unwrapped grids.
    """
    if algorithm not in ("itoh", "goldstein"):
        raise ValueError(f"Unknown algorithm: {algorithm}")

    dm = DeviceManager(device)
    grids = list(phases)

    def process(grid: np.ndarray) -> np.ndarray:
        unwrapper = _create_unwrapper(algorithm, dm, tolerance, max_box_size, verbose=False)
        return unwrapper(grid)

    results: list[np.ndarray | None] = [None] * len(grids)
    pbar = None
    if verbose:
        pbar = tqdm(total=len(grids), desc=f"Unwrapping ({algorithm})", unit="grid")

    try:
        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            futures = {executor.submit(process, grid): i for i, grid in enumerate(grids)}
            for future, i in futures.items():
                results[i] = future.result()
                if pbar is not None:
                    pbar.update(1)
    finally:
        if pbar is not None:
            pbar.close()

    return results


def get_available_devices() -> dict:
    """
    Get information about available compute devices.

    Returns
    -------
    dict
        Dictionary with device availability:
        - 'cpu': Always True
        - 'cuda': True if CUDA is available
        - 'mps': True if MPS (Apple Silicon) is available
        - 'cuda_devices': List of CUDA device info (if available)
    """
    return DeviceManager.get_available_devices().to_dict()
