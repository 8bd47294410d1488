"""Data models shared across the color sweep pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

RGB = Tuple[int, int, int]
Lab = Tuple[float, float, float]


@dataclass(frozen=True, slots=True)
class PaletteEntry:
    """A reference palette sample with its Lab coordinates and display label."""

    rgb: RGB
    lab: Lab
    label: str


@dataclass(frozen=True, slots=True)
class ExtractedCluster:
    """One dominant color returned by the extractor."""

    rgb: RGB
    count: int

    @property
    def hex(self) -> str:
        r, g, b = self.rgb
        return f"#{r:02x}{g:02x}{b:02x}"


@dataclass(frozen=True, slots=True)
class MatchResult:
    """An extracted cluster paired with its nearest palette entry."""

    cluster: ExtractedCluster
    entry: PaletteEntry
    distance: float


@dataclass(frozen=True, slots=True)
class ConfigReport:
    """Matches produced by one extraction configuration."""

    bits: int
    label: str
    matches: Tuple[MatchResult, ...] = ()


@dataclass(frozen=True, slots=True)
class ImageReport:
    """Per-image sweep result, in configuration order."""

    name: str
    cluster_count: int
    entries: Tuple[ConfigReport, ...] = ()
    skipped: int = 0


@dataclass(slots=True)
class BatchReport:
    """High-level summary of a batch run."""

    images: Tuple[ImageReport, ...]
    failures: Dict[str, str] = field(default_factory=dict)
