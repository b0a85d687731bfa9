"""Core unwrapping algorithms."""

from phasecut.core.base import BaseUnwrapper
from phasecut.core.branch_cuts import (
    BoxSearch,
    BranchCutGrower,
    BranchCutReport,
    SearchState,
    compute_branch_cuts,
)
from phasecut.core.flags import Flag, FlagCell, PixelFlags, Residue
from phasecut.core.goldstein import GoldsteinReport, GoldsteinUnwrapper
from phasecut.core.itoh import ItohUnwrapper
from phasecut.core.rasterize import place_branch_cut, rasterize_cut
from phasecut.core.residues import DEFAULT_TOLERANCE, balance_dipoles, compute_residues

__all__ = [
    "BaseUnwrapper",
    "ItohUnwrapper",
    "GoldsteinUnwrapper",
    "GoldsteinReport",
    "Flag",
    "FlagCell",
    "PixelFlags",
    "Residue",
    "BoxSearch",
    "BranchCutGrower",
    "BranchCutReport",
    "SearchState",
    "DEFAULT_TOLERANCE",
    "compute_residues",
    "balance_dipoles",
    "compute_branch_cuts",
    "rasterize_cut",
    "place_branch_cut",
]
