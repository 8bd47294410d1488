"""Perceptual color conversion and distance utilities."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from skimage.color import deltaE_ciede2000, rgb2lab

_CHANNEL_MAX = 255


def to_perceptual(rgb: Sequence[int]) -> np.ndarray:
    """Return the CIE L*a*b* coordinates of an 8-bit sRGB triple."""
    return to_perceptual_many(np.asarray(rgb).reshape(1, -1))[0]


def to_perceptual_many(rgb_array: np.ndarray) -> np.ndarray:
    """Convert an ``(N, 3)`` array of 8-bit sRGB colors to L*a*b*."""
    values = _validate_rgb(rgb_array)
    if values.shape[0] == 0:
        return np.empty((0, 3), dtype=np.float64)
    scaled = values.astype(np.float64).reshape(1, -1, 3) / _CHANNEL_MAX
    return rgb2lab(scaled).reshape(-1, 3)


def ciede2000(lab: np.ndarray, labs: np.ndarray) -> np.ndarray:
    """Return CIEDE2000 distances from *lab* to every row of *labs*."""
    targets = np.asarray(labs, dtype=np.float64).reshape(-1, 3)
    anchor = np.broadcast_to(np.asarray(lab, dtype=np.float64), targets.shape)
    return deltaE_ciede2000(anchor, targets)


def rgb_to_hex(rgb: Sequence[int]) -> str:
    """Return the lowercase ``#rrggbb`` label for an 8-bit sRGB triple."""
    r, g, b = (int(channel) for channel in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def _validate_rgb(rgb_array: np.ndarray) -> np.ndarray:
    values = np.asarray(rgb_array)
    if values.ndim != 2 or values.shape[1] != 3:
        raise ValueError(f"expected RGB triples, got array of shape {values.shape}")
    if values.size == 0:
        return values
    if not np.issubdtype(values.dtype, np.number) or np.issubdtype(
        values.dtype, np.complexfloating
    ):
        raise ValueError("RGB channels must be numeric")
    if not np.all(np.isfinite(values)) or np.any(values != np.round(values)):
        raise ValueError("RGB channels must be whole numbers")
    if values.min() < 0 or values.max() > _CHANNEL_MAX:
        raise ValueError(f"RGB channels must lie in [0, {_CHANNEL_MAX}]")
    return values
