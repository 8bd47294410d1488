"""Run dominant color extraction over a sweep of configurations."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from PIL import Image

from ..extract.flags import ClusterConfig
from ..extract.kmeans import DEFAULT_SIZE, kmeans_with_all
from ..extract.normalize import BackgroundMask, default_masks
from ..io.models import ConfigReport, ExtractedCluster, ImageReport
from ..palette.matcher import NearestColorMatcher

logger = logging.getLogger(__name__)

Extractor = Callable[
    [int, Image.Image, int, int, Sequence[BackgroundMask]], Sequence[ExtractedCluster]
]


class ConfigurationSweep:
    """Extract and match dominant colors for each configuration of a sweep."""

    def __init__(
        self,
        matcher: NearestColorMatcher,
        extractor: Extractor = kmeans_with_all,
        resize_size: int = DEFAULT_SIZE,
        masks: Sequence[BackgroundMask] | None = None,
    ) -> None:
        self.matcher = matcher
        self.extractor = extractor
        self.resize_size = resize_size
        self.masks = tuple(default_masks() if masks is None else masks)

    def sweep(
        self,
        cluster_count: int,
        configs: Sequence[int],
        img: Image.Image,
        name: str = "",
    ) -> ImageReport:
        """Return an ``ImageReport`` with one entry per successful configuration.

        A configuration whose extraction or matching fails is logged and left
        out; the remaining entries keep their relative order. When every
        configuration fails the report simply has no entries.
        """
        entries: list[ConfigReport] = []
        skipped = 0
        for bits in configs:
            config = ClusterConfig.from_bits(bits)
            try:
                clusters = self.extractor(
                    cluster_count, img, bits, self.resize_size, self.masks
                )
                matches = tuple(self.matcher.match(cluster) for cluster in clusters)
            except Exception as exc:  # noqa: BLE001 - one bad configuration must not stop the sweep
                logger.warning(
                    "Skipping configuration %d (%s) for %s: %s",
                    bits,
                    config.label,
                    name or "image",
                    exc,
                )
                skipped += 1
                continue
            entries.append(ConfigReport(bits=bits, label=config.label, matches=matches))

        return ImageReport(
            name=name,
            cluster_count=cluster_count,
            entries=tuple(entries),
            skipped=skipped,
        )
