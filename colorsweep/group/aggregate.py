"""Collect per-image sweep results into a batch report."""

from __future__ import annotations

from typing import Any, Dict, Iterator, Tuple

from ..io.models import BatchReport, ConfigReport, ImageReport, MatchResult

Row = Tuple[ImageReport, int, ConfigReport, int, MatchResult]


class ReportAggregator:
    """Ordered accumulation of image reports.

    Images keep the order they were added in, configurations the order they
    were swept in, and matches the order the extractor returned clusters in.
    Nothing is re-sorted.
    """

    def __init__(self) -> None:
        self._images: list[ImageReport] = []
        self._failures: Dict[str, str] = {}

    def add(self, report: ImageReport) -> None:
        self._images.append(report)

    def record_failure(self, name: str, reason: str) -> None:
        """Note an image the batch driver could not hand to the sweep."""
        self._failures[name] = reason

    @property
    def images(self) -> Tuple[ImageReport, ...]:
        return tuple(self._images)

    def rows(self) -> Iterator[Row]:
        """Yield ``(image, config_index, config, cluster_index, match)`` in report order."""
        for image in self._images:
            for config_index, entry in enumerate(image.entries):
                for cluster_index, match in enumerate(entry.matches):
                    yield image, config_index, entry, cluster_index, match

    def build(self) -> BatchReport:
        return BatchReport(images=self.images, failures=dict(self._failures))

    def summary(self) -> Dict[str, Any]:
        distances = [match.distance for *_, match in self.rows()]
        return {
            "images": len(self._images) + len(self._failures),
            "processed": len(self._images),
            "failed": len(self._failures),
            "configurations": sum(len(image.entries) for image in self._images),
            "skipped_configurations": sum(image.skipped for image in self._images),
            "clusters": len(distances),
            "mean_distance": (sum(distances) / len(distances)) if distances else 0.0,
        }
