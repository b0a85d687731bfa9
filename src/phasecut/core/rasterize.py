"""
Rasterization of branch cuts between residues and/or border pixels.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from phasecut.core.flags import PixelFlags


def nudge_endpoints(
    src: tuple[int, int],
    dst: tuple[int, int],
) -> tuple[tuple[int, int], tuple[int, int]]:
    """
    Move cut endpoints from residue anchors towards the block centres.

    A residue is anchored at the upper-left pixel of its 2x2 block, so
    on each axis the endpoint with the smaller coordinate is moved one
    pixel towards the other endpoint. Endpoints sitting on coordinate 0
    are left in place.

    Parameters
    ----------
    src, dst : tuple of int
        (row, col) of the two endpoints.

    Returns
    -------
    tuple
        Nudged (src, dst).
    """
    src_row, src_col = src
    dst_row, dst_col = dst

    if dst_row > src_row and src_row > 0:
        src_row += 1
    elif dst_row < src_row and dst_row > 0:
        dst_row += 1

    if dst_col > src_col and src_col > 0:
        src_col += 1
    elif dst_col < src_col and dst_col > 0:
        dst_col += 1

    return (src_row, src_col), (dst_row, dst_col)


def rasterize_cut(
    src: tuple[int, int],
    dst: tuple[int, int],
) -> list[tuple[int, int]]:
    """
    Pixels of the branch cut between two endpoints.

    After `nudge_endpoints`, the axis with the larger absolute delta
    drives the walk (columns on ties), one pixel per step, endpoints
    included. The other coordinate follows the line through both
    endpoints, rounded half up (``int(x + 0.5)``). Consecutive pixels
    are 8-connected.

    Parameters
    ----------
    src, dst : tuple of int
        (row, col) of the source and destination.

    Returns
    -------
    list of tuple of int
        Cut pixels ordered from source to destination.
    """
    (src_row, src_col), (dst_row, dst_col) = nudge_endpoints(src, dst)

    if src_row == dst_row and src_col == dst_col:
        return [(src_row, src_col)]

    d_rows = abs(src_row - dst_row)
    d_cols = abs(src_col - dst_col)

    path = []
    if d_rows > d_cols:
        step = 1 if src_row < dst_row else -1
        slope = (dst_col - src_col) / (dst_row - src_row)
        for row in range(src_row, dst_row + step, step):
            col = int(src_col + (row - src_row) * slope + 0.5)
            path.append((row, col))
    else:
        step = 1 if src_col < dst_col else -1
        slope = (dst_row - src_row) / (dst_col - src_col)
        for col in range(src_col, dst_col + step, step):
            row = int(src_row + (col - src_col) * slope + 0.5)
            path.append((row, col))

    return path


def place_branch_cut(
    flags: PixelFlags,
    src: tuple[int, int],
    dst: tuple[int, int],
) -> list[tuple[int, int]]:
    """
    Flag the cut between ``src`` and ``dst`` as BRANCH_CUT.

    Returns
    -------
    list of tuple of int
        The rasterized cut pixels.
    """
    path = rasterize_cut(src, dst)
    for row, col in path:
        flags.mark_branch_cut(row, col)
    return path
