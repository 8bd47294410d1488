"""Image loading and preparation ahead of dominant color extraction."""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Tuple

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

DEBUG_PINK_RGB = (0xFF, 0x69, 0xB4)


@dataclass(frozen=True, slots=True)
class BackgroundMask:
    """Channel thresholds describing a background color to discard.

    Flagged channels must be at or above *threshold*, the others at or below
    ``255 - threshold``.
    """

    r: bool
    g: bool
    b: bool
    threshold: int

    def matches(self, rgb: np.ndarray) -> np.ndarray:
        """Return a boolean mask of pixels in ``(H, W, 3)`` *rgb* matching the mask."""
        low = 255 - self.threshold
        result = np.ones(rgb.shape[:2], dtype=bool)
        for channel, wanted in enumerate((self.r, self.g, self.b)):
            values = rgb[:, :, channel]
            result &= values >= self.threshold if wanted else values <= low
        return result


def mask_white() -> BackgroundMask:
    return BackgroundMask(r=True, g=True, b=True, threshold=0xF0)


def mask_black() -> BackgroundMask:
    return BackgroundMask(r=False, g=False, b=False, threshold=0xF0)


def mask_green() -> BackgroundMask:
    return BackgroundMask(r=False, g=True, b=False, threshold=0xC0)


def default_masks() -> Tuple[BackgroundMask, ...]:
    """Return the masks removing white, black and green backgrounds."""
    return (mask_white(), mask_black(), mask_green())


def list_images(directory: Path, pattern: str = "*.jpg") -> list[Path]:
    """Return files in *directory* matching *pattern*, sorted by name."""
    if not directory.is_dir():
        raise FileNotFoundError(f"Input directory does not exist: {directory}")
    return sorted(path for path in directory.glob(pattern) if path.is_file())


def load_image(path: Path) -> Image.Image:
    """Decode *path* into an RGBA Pillow image."""
    if not path.exists():
        raise FileNotFoundError(f"Image does not exist: {path}")
    try:
        with Image.open(path) as img:
            return img.convert("RGBA")
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"Could not decode image {path}: {exc}") from exc


def to_rgba_array(img: Image.Image) -> np.ndarray:
    rgba_image = img.convert("RGBA") if img.mode != "RGBA" else img
    return np.asarray(rgba_image, dtype=np.uint8)


def resize_to_width(pixels: np.ndarray, width: int) -> np.ndarray:
    """Downscale *pixels* so it is at most *width* wide, keeping the aspect ratio."""
    if width <= 0:
        raise ValueError("Resize width must be a positive integer")
    height, current_width = pixels.shape[:2]
    if current_width <= width:
        return pixels
    new_height = max(1, int(round(height * width / current_width)))
    return cv2.resize(pixels, (width, new_height), interpolation=cv2.INTER_AREA)


def crop_center(pixels: np.ndarray) -> np.ndarray:
    """Trim a quarter of each dimension from every side."""
    height, width = pixels.shape[:2]
    top, left = height // 4, width // 4
    return pixels[top : height - top, left : width - left]


def border_background(rgb: np.ndarray, masks: Sequence[BackgroundMask]) -> np.ndarray:
    """Return pixels matched by any mask and connected to the image border."""
    removed = np.zeros(rgb.shape[:2], dtype=bool)
    for mask in masks:
        matched = mask.matches(rgb).astype(np.uint8)
        if not matched.any():
            continue
        _, labels = cv2.connectedComponents(matched, connectivity=4)
        edge_labels = np.unique(
            np.concatenate((labels[0, :], labels[-1, :], labels[:, 0], labels[:, -1]))
        )
        edge_labels = edge_labels[edge_labels != 0]
        if edge_labels.size:
            removed |= np.isin(labels, edge_labels)
    return removed


def prepare_pixels(
    img: Image.Image,
    resize_size: int,
    crop: bool,
    masks: Sequence[BackgroundMask],
) -> Tuple[np.ndarray, np.ndarray]:
    """Return the working ``(H, W, 3)`` RGB array and a mask of pixels to keep."""
    pixels = resize_to_width(to_rgba_array(img), resize_size)
    if crop:
        pixels = crop_center(pixels)
    rgb = np.ascontiguousarray(pixels[:, :, :3])
    keep = pixels[:, :, 3] > 0
    if rgb.size and masks:
        keep &= ~border_background(rgb, masks)
    return rgb, keep


def save_debug_image(rgb: np.ndarray, keep: np.ndarray) -> Path:
    """Write *rgb* with discarded pixels painted pink and return the path."""
    marked = rgb.copy()
    marked[~keep] = DEBUG_PINK_RGB
    handle = tempfile.NamedTemporaryFile(
        prefix="colorsweep_mask_", suffix=".png", delete=False
    )
    handle.close()
    path = Path(handle.name)
    Image.fromarray(marked).save(path, format="PNG")
    return path
