"""
phasecut: phase unwrapping by path integration and Goldstein branch cuts.

Recovers a continuous phase surface from phase wrapped into (-pi, pi],
either by fast Itoh path integration or by residue detection, dipole
balancing and branch-cut growth followed by integration around the cuts.
"""

from phasecut.api import (
    unwrap,
    unwrap_itoh,
    unwrap_goldstein,
    unwrap_stack,
    find_residues,
    compute_branch_cuts,
    get_available_devices,
)
from phasecut.core.flags import Flag, PixelFlags, Residue
from phasecut.core.goldstein import GoldsteinUnwrapper
from phasecut.core.itoh import ItohUnwrapper
from phasecut.device.manager import DeviceManager

__version__ = "0.1.0"
__all__ = [
    "unwrap",
    "unwrap_itoh",
    "unwrap_goldstein",
    "unwrap_stack",
    "find_residues",
    "compute_branch_cuts",
    "get_available_devices",
    "DeviceManager",
    "ItohUnwrapper",
    "GoldsteinUnwrapper",
    "Flag",
    "PixelFlags",
    "Residue",
]
