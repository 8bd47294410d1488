"""Tests for the configuration sweep driver."""

import logging

import pytest
from PIL import Image

from colorsweep.extract.flags import (
    ARGUMENT_AVERAGE_MEAN,
    ARGUMENT_DEFAULT,
    ARGUMENT_NO_CROPPING,
    describe,
)
from colorsweep.extract.kmeans import ExtractionError
from colorsweep.group.sweep import ConfigurationSweep
from colorsweep.io.models import ExtractedCluster
from colorsweep.palette.matcher import NearestColorMatcher
from colorsweep.palette.reference import ReferencePalette


@pytest.fixture(scope="module")
def matcher() -> NearestColorMatcher:
    return NearestColorMatcher(ReferencePalette())


class _RecordingExtractor:
    """Extractor stand-in returning canned clusters and failing on chosen bits."""

    def __init__(self, clusters, failing=()) -> None:
        self.clusters = list(clusters)
        self.failing = set(failing)
        self.calls: list[tuple] = []

    def __call__(self, k, img, bits, resize_size, masks):
        self.calls.append((k, bits, resize_size, masks))
        if bits in self.failing:
            raise ExtractionError(f"cannot cluster with bits {bits}")
        return list(self.clusters)


def test_red_image_single_configuration(matcher: NearestColorMatcher) -> None:
    img = Image.new("RGB", (2, 2), (255, 0, 0))
    extractor = _RecordingExtractor([ExtractedCluster(rgb=(255, 0, 0), count=4)])
    sweep = ConfigurationSweep(matcher, extractor=extractor)

    report = sweep.sweep(1, [ARGUMENT_DEFAULT], img, name="red.jpg")

    assert report.name == "red.jpg"
    assert report.cluster_count == 1
    assert len(report.entries) == 1
    entry = report.entries[0]
    assert entry.label == describe(ARGUMENT_DEFAULT)
    assert len(entry.matches) == 1
    match = entry.matches[0]
    expected_entry, expected_distance = matcher.nearest_entry((255, 0, 0))
    assert match.entry == expected_entry
    assert match.distance == pytest.approx(expected_distance)
    assert match.cluster.count == 4


def test_failed_configuration_is_skipped_in_place(
    matcher: NearestColorMatcher, caplog: pytest.LogCaptureFixture
) -> None:
    configs = [ARGUMENT_DEFAULT, ARGUMENT_NO_CROPPING, ARGUMENT_AVERAGE_MEAN]
    extractor = _RecordingExtractor(
        [ExtractedCluster(rgb=(0, 0, 255), count=3)], failing={ARGUMENT_NO_CROPPING}
    )
    sweep = ConfigurationSweep(matcher, extractor=extractor)

    with caplog.at_level(logging.WARNING, logger="colorsweep.group.sweep"):
        report = sweep.sweep(3, configs, Image.new("RGB", (2, 2)), name="blue.jpg")

    assert [entry.bits for entry in report.entries] == [ARGUMENT_DEFAULT, ARGUMENT_AVERAGE_MEAN]
    assert report.skipped == 1
    assert [call[1] for call in extractor.calls] == configs
    assert "Skipping configuration" in caplog.text
    assert "blue.jpg" in caplog.text


def test_all_configurations_failing_yields_empty_report(matcher: NearestColorMatcher) -> None:
    configs = [ARGUMENT_DEFAULT, ARGUMENT_NO_CROPPING]
    extractor = _RecordingExtractor([], failing=set(configs))
    sweep = ConfigurationSweep(matcher, extractor=extractor)

    report = sweep.sweep(3, configs, Image.new("RGB", (2, 2)))

    assert report.entries == ()
    assert report.skipped == 2


def test_invalid_cluster_color_skips_only_that_configuration(matcher: NearestColorMatcher) -> None:
    calls = []

    def extractor(k, img, bits, resize_size, masks):
        calls.append(bits)
        if bits == ARGUMENT_DEFAULT:
            return [ExtractedCluster(rgb=(999, 0, 0), count=1)]
        return [ExtractedCluster(rgb=(0, 255, 0), count=1)]

    sweep = ConfigurationSweep(matcher, extractor=extractor)
    report = sweep.sweep(1, [ARGUMENT_DEFAULT, ARGUMENT_NO_CROPPING], Image.new("RGB", (2, 2)))

    assert calls == [ARGUMENT_DEFAULT, ARGUMENT_NO_CROPPING]
    assert [entry.bits for entry in report.entries] == [ARGUMENT_NO_CROPPING]


def test_cluster_order_is_preserved(matcher: NearestColorMatcher) -> None:
    clusters = [
        ExtractedCluster(rgb=(10, 10, 10), count=1),
        ExtractedCluster(rgb=(250, 250, 250), count=9),
    ]
    sweep = ConfigurationSweep(matcher, extractor=_RecordingExtractor(clusters))

    report = sweep.sweep(2, [ARGUMENT_DEFAULT], Image.new("RGB", (2, 2)))

    assert [match.cluster for match in report.entries[0].matches] == clusters


def test_extractor_receives_resize_and_masks(matcher: NearestColorMatcher) -> None:
    extractor = _RecordingExtractor([ExtractedCluster(rgb=(1, 2, 3), count=1)])
    sweep = ConfigurationSweep(matcher, extractor=extractor, resize_size=40, masks=())

    sweep.sweep(5, [ARGUMENT_DEFAULT], Image.new("RGB", (2, 2)))

    assert extractor.calls == [(5, ARGUMENT_DEFAULT, 40, ())]


def test_sweep_with_real_extractor(matcher: NearestColorMatcher) -> None:
    sweep = ConfigurationSweep(matcher)
    img = Image.new("RGB", (12, 12), (32, 96, 160))

    report = sweep.sweep(3, [ARGUMENT_DEFAULT, ARGUMENT_NO_CROPPING], img)

    assert len(report.entries) == 2
    for entry in report.entries:
        assert entry.matches[0].entry.label == "#2060a0"
        assert entry.matches[0].distance == pytest.approx(0.0, abs=1e-6)
