"""Utility functions for phase unwrapping."""

from phasecut.utils.phase_ops import (
    wrap,
    gradient,
    loop_integral,
)

__all__ = [
    "wrap",
    "gradient",
    "loop_integral",
]
