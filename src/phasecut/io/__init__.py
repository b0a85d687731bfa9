"""I/O utilities for phase grids."""

from phasecut.io.raster import (
    scale,
    gray8_to_phase,
    phase_to_gray8,
    read_phase,
    write_phase,
    read_phase_image,
    write_phase_image,
)

__all__ = [
    "scale",
    "gray8_to_phase",
    "phase_to_gray8",
    "read_phase",
    "write_phase",
    "read_phase_image",
    "write_phase_image",
]
