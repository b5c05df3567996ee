"""Frame-to-frame tracking of the guide light on binary images."""

from __future__ import annotations

import logging
import math

import numpy as np

from dartguide.contours import contour_area, contour_centroid, find_external_contours

__all__ = ["DartGuideTracker"]

logger = logging.getLogger(__name__)

Point = tuple[int, int]


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


class DartGuideTracker:
    """Follows a blob by jumping to the nearest contour centroid each frame."""

    def __init__(self, min_contour_area=20.0, max_distance_threshold=200.0):
        self.min_contour_area = float(min_contour_area)
        self.max_distance_threshold = float(max_distance_threshold)
        self._position: Point = (-1, -1)
        self._initialized = False
        self._tracking = False

    @property
    def current_position(self) -> Point:
        return self._position

    @property
    def tracking(self) -> bool:
        """Whether the last update found the target."""
        return self._tracking

    @property
    def initialized(self) -> bool:
        return self._initialized

    def init(self, initial_position) -> None:
        """Start tracking from ``initial_position`` given as ``(x, y)``."""
        x, y = initial_position
        self._position = (int(x), int(y))
        self._initialized = True

    def update(self, binary_image) -> None:
        """Move to the nearest sufficiently large blob in ``binary_image``.

        Raises ``RuntimeError`` before :meth:`init` has been called and
        ``ValueError`` when the image is not a non-empty 8-bit single-channel array.
        """
        if not self._initialized:
            raise RuntimeError("tracker not initialized; call init() first")

        image = np.asarray(binary_image)
        if image.size == 0 or image.ndim != 2 or image.dtype != np.uint8:
            raise ValueError("invalid binary image format; expected 8-bit single channel")

        px, py = self._position
        min_dist = math.inf
        best = None
        for contour in find_external_contours(image):
            if contour_area(contour) < self.min_contour_area:
                continue
            centroid = contour_centroid(contour)
            if centroid is None:
                continue
            dist = math.hypot(centroid[0] - px, centroid[1] - py)
            if dist < min_dist:
                min_dist = dist
                best = centroid

        if best is not None and min_dist < self.max_distance_threshold:
            self._position = (_round_half_away(best[0]), _round_half_away(best[1]))
            self._tracking = True
        else:
            logger.warning("lose target")
            self._tracking = False