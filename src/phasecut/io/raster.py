"""
Raster and image I/O for phase grids.

Raster access uses rasterio (optional dependency). The linear scale
mappings between 8-bit grayscale pixels and phase values are plain
numpy and always available.
"""

from __future__ import annotations

import math

import numpy as np


def _check_rasterio() -> None:
    """Check if rasterio is available."""
    try:
        import rasterio  # noqa: F401
    except ImportError:
        raise ImportError(
            "rasterio is required for raster I/O. "
            "Install with: pip install phasecut[raster]"
        )


def scale(
    values: np.ndarray,
    src_min: float,
    src_max: float,
    dst_min: float,
    dst_max: float,
) -> np.ndarray:
    """
    Map ``values`` linearly from [src_min, src_max] to [dst_min, dst_max].

    Raises
    ------
    ValueError
        If the source range is empty.
    """
    if src_min == src_max:
        raise ValueError(f"Source range is empty: [{src_min}, {src_max}]")
    values = np.asarray(values, dtype=np.float64)
    return dst_min + (values - src_min) * (dst_max - dst_min) / (src_max - src_min)


def gray8_to_phase(
    pixels: np.ndarray,
    min_val: float = -math.pi,
    max_val: float = math.pi,
) -> np.ndarray:
    """
    Convert an 8-bit grayscale image to a phase grid.

    Pixel values are mapped [0, 255] -> [min_val, max_val].

    Parameters
    ----------
    pixels : np.ndarray
        2D uint8 image.
    min_val, max_val : float
        Phase values for black and white.

    Returns
    -------
    np.ndarray
        Float64 phase grid of the same shape.
    """
    pixels = np.asarray(pixels)
    if pixels.dtype != np.uint8:
        raise ValueError(f"Unsupported pixel format: {pixels.dtype}, expected uint8")
    if pixels.ndim != 2:
        raise ValueError(f"Expected a single-band 2D image, got shape {pixels.shape}")
    return scale(pixels, 0, 255, min_val, max_val)


def phase_to_gray8(data: np.ndarray) -> np.ndarray:
    """
    Convert a phase grid to an 8-bit grayscale image for display.

    Values are mapped [data.min(), data.max()] -> [0, 255] and
    truncated to integers. A constant grid maps to all zeros.

    Parameters
    ----------
    data : np.ndarray
        2D real-valued grid.

    Returns
    -------
    np.ndarray
        uint8 image of the same shape.
    """
    data = np.asarray(data, dtype=np.float64)
    data_min = float(data.min())
    data_max = float(data.max())
    if data_min == data_max:
        return np.zeros(data.shape, dtype=np.uint8)
    scaled = scale(data, data_min, data_max, 0, 255)
    return np.clip(scaled, 0, 255).astype(np.uint8)


def read_phase(
    path: str,
    band: int = 1,
) -> tuple[np.ndarray, dict]:
    """
    Read phase data from a raster file.

    Parameters
    ----------
    path : str
        Path to the raster file (GeoTIFF, etc.).
    band : int
        Band number to read (1-indexed).

    Returns
    -------
    phase : np.ndarray
        Phase data as 2D array.
    metadata : dict
        Raster metadata (CRS, transform, etc.).
    """
    _check_rasterio()
    import rasterio

    with rasterio.open(path) as src:
        phase = src.read(band).astype(np.float64)
        metadata = {
            "crs": src.crs,
            "transform": src.transform,
            "width": src.width,
            "height": src.height,
            "dtype": src.dtypes[band - 1],
            "nodata": src.nodata,
        }

    return phase, metadata


def write_phase(
    path: str,
    phase: np.ndarray,
    metadata: dict | None = None,
    **kwargs,
) -> None:
    """
    Write phase data to a float32 GeoTIFF.

    Parameters
    ----------
    path : str
        Output path.
    phase : np.ndarray
        Phase data to write.
    metadata : dict, optional
        Raster metadata (CRS, transform, etc.).
        If None, writes without georeferencing.
    **kwargs
        Additional arguments passed to rasterio.open().
    """
    _check_rasterio()
    import rasterio

    height, width = phase.shape

    profile = {
        "driver": "GTiff",
        "height": height,
        "width": width,
        "count": 1,
        "dtype": "float32",
    }

    if metadata is not None:
        if "crs" in metadata:
            profile["crs"] = metadata["crs"]
        if "transform" in metadata:
            profile["transform"] = metadata["transform"]
        if "nodata" in metadata and metadata["nodata"] is not None:
            profile["nodata"] = metadata["nodata"]

    profile.update(kwargs)

    with rasterio.open(path, "w", **profile) as dst:
        dst.write(phase.astype(np.float32), 1)


def read_phase_image(
    path: str,
    min_val: float = -math.pi,
    max_val: float = math.pi,
    band: int = 1,
) -> np.ndarray:
    """
    Read an 8-bit grayscale image (PNG, TIFF, ...) as wrapped phase.

    See `gray8_to_phase` for the value mapping.
    """
    _check_rasterio()
    import rasterio

    with rasterio.open(path) as src:
        pixels = src.read(band)

    return gray8_to_phase(pixels, min_val=min_val, max_val=max_val)


def write_phase_image(
    path: str,
    data: np.ndarray,
    driver: str = "PNG",
) -> None:
    """
    Write a phase grid as an 8-bit grayscale image.

    See `phase_to_gray8` for the value mapping.
    """
    _check_rasterio()
    import rasterio

    pixels = phase_to_gray8(data)
    height, width = pixels.shape

    with rasterio.open(
        path,
        "w",
        driver=driver,
        height=height,
        width=width,
        count=1,
        dtype="uint8",
    ) as dst:
        dst.write(pixels, 1)
