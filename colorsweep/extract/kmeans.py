"""K-means dominant color extraction driven by bit-flag settings."""

from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np
from PIL import Image

from ..features.color import ciede2000, to_perceptual_many
from ..io.models import ExtractedCluster
from .flags import Averaging, ClusterConfig, ColorSpace, Cropping, SeedStrategy
from .normalize import BackgroundMask, default_masks, prepare_pixels, save_debug_image

logger = logging.getLogger(__name__)

DEFAULT_K = 3
DEFAULT_SIZE = 80

_MAX_ITERATIONS = 50
_RNG_SEED = 42


class ExtractionError(RuntimeError):
    """Raised when dominant colors cannot be extracted from an image."""


def kmeans_with_all(
    k: int,
    img: Image.Image,
    bits: int,
    resize_size: int = DEFAULT_SIZE,
    masks: Sequence[BackgroundMask] | None = None,
) -> list[ExtractedCluster]:
    """Return up to *k* dominant colors of *img*, most frequent first.

    *bits* selects seeding, averaging, distance space and cropping (see
    ``extract.flags``). Pixels that are transparent, or that match one of
    *masks* in a region touching the border, are ignored. Raises
    ``ExtractionError`` when nothing is left to cluster.
    """
    if k < 1:
        raise ExtractionError(f"cluster count must be positive, got {k}")

    config = ClusterConfig.from_bits(bits)
    active_masks = default_masks() if masks is None else tuple(masks)
    try:
        rgb, keep = prepare_pixels(
            img, resize_size, crop=config.cropping is Cropping.CENTER, masks=active_masks
        )
    except ValueError as exc:
        raise ExtractionError(str(exc)) from exc

    if config.debug_image:
        debug_path = save_debug_image(rgb, keep)
        logger.info("Wrote mask debug image to %s", debug_path)

    pixels = rgb[keep]
    if pixels.size == 0:
        raise ExtractionError(
            "no pixels left to cluster (image is transparent or fully masked as background)"
        )

    colors, counts = np.unique(pixels.reshape(-1, 3), axis=0, return_counts=True)
    if len(colors) <= k:
        return _ordered_clusters(colors, counts)

    rng = np.random.default_rng(_RNG_SEED)
    space = config.color_space
    features = _features(colors, space)

    if config.seed is SeedStrategy.RANDOM:
        seed_indices = rng.choice(len(colors), size=k, replace=False)
    else:
        seed_indices = _kmeans_plus_plus(features, counts, k, space, rng)
    centroids = colors[seed_indices].astype(np.int64)

    labels: np.ndarray | None = None
    for iteration in range(_MAX_ITERATIONS):
        distances = _distance_matrix(features, _features(centroids, space), space)
        new_labels = np.argmin(distances, axis=1)
        if labels is not None and np.array_equal(labels, new_labels):
            logger.debug("k-means converged after %d iterations", iteration)
            break
        labels = new_labels
        centroids = _update_centroids(colors, counts, labels, centroids, config.averaging)

    assert labels is not None
    weights = np.bincount(labels, weights=counts, minlength=k).astype(np.int64)
    populated = weights > 0
    return _ordered_clusters(centroids[populated], weights[populated])


def _ordered_clusters(colors: np.ndarray, counts: np.ndarray) -> list[ExtractedCluster]:
    clusters = [
        ExtractedCluster(rgb=(int(c[0]), int(c[1]), int(c[2])), count=int(n))
        for c, n in zip(colors, counts)
    ]
    return sorted(clusters, key=lambda cluster: -cluster.count)


def _features(colors: np.ndarray, space: ColorSpace) -> np.ndarray:
    if space is ColorSpace.RGB:
        return colors.astype(np.float64)
    return to_perceptual_many(colors)


def _distance_matrix(features: np.ndarray, centres: np.ndarray, space: ColorSpace) -> np.ndarray:
    """Return an ``(N, K)`` matrix of distances between colors and centroids."""
    if space is ColorSpace.CIEDE2000:
        return np.column_stack([ciede2000(centre, features) for centre in centres])
    diff = features[:, None, :] - centres[None, :, :]
    return np.sqrt(np.sum(diff * diff, axis=2))


def _kmeans_plus_plus(
    features: np.ndarray,
    counts: np.ndarray,
    k: int,
    space: ColorSpace,
    rng: np.random.Generator,
) -> np.ndarray:
    """Greedy k-means++ seeding weighted by pixel counts."""
    weights = counts.astype(np.float64)
    n_trials = 2 + int(math.log(k))
    chosen = [int(rng.choice(len(features), p=weights / weights.sum()))]
    closest_sq = _distance_matrix(features, features[chosen], space)[:, 0] ** 2

    while len(chosen) < k:
        potential = weights * closest_sq
        total = potential.sum()
        if total <= 0:
            remaining = [i for i in range(len(features)) if i not in chosen]
            chosen.append(remaining[0])
            continue
        candidates = rng.choice(len(features), size=n_trials, p=potential / total)
        candidate_sq = _distance_matrix(features, features[candidates], space) ** 2
        best_index, best_potential = -1, math.inf
        for column, candidate in enumerate(candidates):
            trial_sq = np.minimum(closest_sq, candidate_sq[:, column])
            trial_potential = float(np.sum(weights * trial_sq))
            if trial_potential < best_potential:
                best_index, best_potential = column, trial_potential
        chosen.append(int(candidates[best_index]))
        closest_sq = np.minimum(closest_sq, candidate_sq[:, best_index])

    return np.array(chosen, dtype=np.int64)


def _update_centroids(
    colors: np.ndarray,
    counts: np.ndarray,
    labels: np.ndarray,
    previous: np.ndarray,
    averaging: Averaging,
) -> np.ndarray:
    centroids = previous.copy()
    for cluster in range(len(previous)):
        members = labels == cluster
        if not members.any():
            continue
        member_colors = colors[members].astype(np.float64)
        member_counts = counts[members].astype(np.float64)
        if averaging is Averaging.MEAN:
            centre = np.average(member_colors, axis=0, weights=member_counts)
        else:
            centre = np.array(
                [
                    _weighted_median(member_colors[:, channel], member_counts)
                    for channel in range(3)
                ]
            )
        centroids[cluster] = np.clip(np.rint(centre), 0, 255).astype(np.int64)
    return centroids


def _weighted_median(values: np.ndarray, weights: np.ndarray) -> float:
    order = np.argsort(values, kind="stable")
    cumulative = np.cumsum(weights[order])
    index = int(np.searchsorted(cumulative, cumulative[-1] / 2.0))
    return float(values[order][index])
