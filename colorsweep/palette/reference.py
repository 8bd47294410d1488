"""Synthetic reference palette spanning the RGB cube."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Tuple

import numpy as np

from ..features.color import rgb_to_hex, to_perceptual
from ..io.models import PaletteEntry

logger = logging.getLogger(__name__)

PALETTE_STEP = 32
PALETTE_LIMIT = 255


class ReferencePalette:
    """Grid of sample colors converted to Lab once and shared read-only.

    The grid walks red, then green, then blue over ``range(0, limit, step)``.
    With the defaults that yields 8 samples per channel and 512 entries. The
    build runs lazily on first access and at most once, even when several
    threads race to trigger it.
    """

    def __init__(self, step: int = PALETTE_STEP, limit: int = PALETTE_LIMIT) -> None:
        if step <= 0:
            raise ValueError("step must be a positive integer")
        self.step = step
        self.limit = limit
        self.build_count = 0
        self._lock = Lock()
        self._entries: Tuple[PaletteEntry, ...] | None = None
        self._lab_matrix: np.ndarray | None = None

    def ensure(self) -> None:
        """Populate the palette if it has not been built yet."""
        if self._entries is None:
            with self._lock:
                if self._entries is None:
                    self._build()

    @property
    def entries(self) -> Tuple[PaletteEntry, ...]:
        self.ensure()
        assert self._entries is not None
        return self._entries

    @property
    def lab_matrix(self) -> np.ndarray:
        """Return the ``(N, 3)`` Lab matrix in generation order."""
        self.ensure()
        assert self._lab_matrix is not None
        return self._lab_matrix

    def __len__(self) -> int:
        return len(self.entries)

    def _build(self) -> None:
        entries: list[PaletteEntry] = []
        channel_values = range(0, self.limit, self.step)
        for r in channel_values:
            for g in channel_values:
                for b in channel_values:
                    rgb = (r, g, b)
                    try:
                        lab = to_perceptual(rgb)
                    except ValueError:
                        # Grid values are always in range; skip rather than abort.
                        logger.debug("Skipping unconvertible palette sample %s", rgb)
                        continue
                    entries.append(
                        PaletteEntry(
                            rgb=rgb,
                            lab=(float(lab[0]), float(lab[1]), float(lab[2])),
                            label=rgb_to_hex(rgb),
                        )
                    )

        matrix = np.array([entry.lab for entry in entries], dtype=np.float64).reshape(-1, 3)
        matrix.setflags(write=False)
        self._lab_matrix = matrix
        self.build_count += 1
        # Published last so readers outside the lock never see a partial build.
        self._entries = tuple(entries)
        logger.info("Built reference palette with %d entries (step=%d)", len(entries), self.step)
