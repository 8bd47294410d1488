"""Nearest reference color lookup."""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from ..features.color import ciede2000, to_perceptual
from ..io.models import ExtractedCluster, MatchResult, PaletteEntry
from .reference import ReferencePalette


class NearestColorMatcher:
    """Map arbitrary colors onto the closest entry of a reference palette."""

    def __init__(self, palette: ReferencePalette) -> None:
        self.palette = palette

    def nearest_entry(self, rgb: Sequence[int]) -> Tuple[PaletteEntry, float]:
        """Return the closest palette entry to *rgb* and its CIEDE2000 distance.

        Ties resolve to the entry generated first. Invalid channel values raise
        ``ValueError``.
        """
        lab = to_perceptual(rgb)
        entries = self.palette.entries
        if not entries:
            raise ValueError("reference palette is empty")
        distances = ciede2000(lab, self.palette.lab_matrix)
        index = int(np.argmin(distances))
        return entries[index], float(distances[index])

    def find_nearest(self, rgb: Sequence[int]) -> Tuple[str, float]:
        """Return the label of the closest palette entry and its distance."""
        entry, distance = self.nearest_entry(rgb)
        return entry.label, distance

    def match(self, cluster: ExtractedCluster) -> MatchResult:
        entry, distance = self.nearest_entry(cluster.rgb)
        return MatchResult(cluster=cluster, entry=entry, distance=distance)
