"""Bit-flag extraction settings and their human readable labels."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

ARGUMENT_DEFAULT = 0
ARGUMENT_SEED_RANDOM = 1 << 1
ARGUMENT_AVERAGE_MEAN = 1 << 2
ARGUMENT_NO_CROPPING = 1 << 3
ARGUMENT_LAB = 1 << 4
ARGUMENT_DEBUG_IMAGE = 1 << 5
ARGUMENT_CIEDE2000 = 1 << 6

LABEL_SEPARATOR = ", "

# Sweep used by the batch report when no configuration is given.
DEFAULT_SWEEP: Tuple[int, ...] = (
    ARGUMENT_AVERAGE_MEAN | ARGUMENT_NO_CROPPING | ARGUMENT_CIEDE2000,
    ARGUMENT_NO_CROPPING,
    ARGUMENT_DEFAULT,
)

_FLAG_NAMES = {
    "default": ARGUMENT_DEFAULT,
    "random": ARGUMENT_SEED_RANDOM,
    "mean": ARGUMENT_AVERAGE_MEAN,
    "no-crop": ARGUMENT_NO_CROPPING,
    "lab": ARGUMENT_LAB,
    "debug": ARGUMENT_DEBUG_IMAGE,
    "ciede2000": ARGUMENT_CIEDE2000,
}


class SeedStrategy(Enum):
    KMEANS_PP = "Kmeans++"
    RANDOM = "Random seed"


class Averaging(Enum):
    MEDIAN = "Median"
    MEAN = "Mean"


class ColorSpace(Enum):
    RGB = "RGB"
    LAB = "LAB"
    CIEDE2000 = "ciede"


class Cropping(Enum):
    CENTER = "Cropping center"
    NONE = "No cropping"


def is_bit_set(bits: int, flag: int) -> bool:
    """Return ``True`` when every bit of *flag* is set in *bits*."""
    return flag != 0 and (bits & flag) == flag


@dataclass(frozen=True, slots=True)
class ClusterConfig:
    """Decoded view of an extraction bit-flag value."""

    bits: int
    seed: SeedStrategy
    averaging: Averaging
    color_space: ColorSpace
    cropping: Cropping
    debug_image: bool = False

    @classmethod
    def from_bits(cls, bits: int) -> "ClusterConfig":
        if is_bit_set(bits, ARGUMENT_LAB):
            color_space = ColorSpace.LAB
        elif is_bit_set(bits, ARGUMENT_CIEDE2000):
            color_space = ColorSpace.CIEDE2000
        else:
            color_space = ColorSpace.RGB
        return cls(
            bits=bits,
            seed=SeedStrategy.RANDOM
            if is_bit_set(bits, ARGUMENT_SEED_RANDOM)
            else SeedStrategy.KMEANS_PP,
            averaging=Averaging.MEAN
            if is_bit_set(bits, ARGUMENT_AVERAGE_MEAN)
            else Averaging.MEDIAN,
            color_space=color_space,
            cropping=Cropping.NONE
            if is_bit_set(bits, ARGUMENT_NO_CROPPING)
            else Cropping.CENTER,
            debug_image=is_bit_set(bits, ARGUMENT_DEBUG_IMAGE),
        )

    @property
    def tokens(self) -> Tuple[str, str, str, str]:
        return (
            self.seed.value,
            self.averaging.value,
            self.color_space.value,
            self.cropping.value,
        )

    @property
    def label(self) -> str:
        return LABEL_SEPARATOR.join(self.tokens)


def describe(bits: int) -> str:
    """Return the four-part label for *bits*, e.g. ``Kmeans++, Median, RGB, Cropping center``."""
    return ClusterConfig.from_bits(bits).label


def parse_flags(text: str) -> int:
    """Parse an integer literal or ``+``/``|`` separated flag names into bits."""
    cleaned = text.strip().lower()
    if not cleaned:
        raise ValueError("empty configuration")
    try:
        value = int(cleaned, 0)
    except ValueError:
        pass
    else:
        if value < 0:
            raise ValueError(f"configuration bits must be non-negative: {text!r}")
        return value

    bits = 0
    for name in re.split(r"[+|,]", cleaned):
        name = name.strip().replace("_", "-")
        if name not in _FLAG_NAMES:
            known = ", ".join(sorted(_FLAG_NAMES))
            raise ValueError(f"unknown flag {name!r} (expected one of: {known})")
        bits |= _FLAG_NAMES[name]
    return bits
