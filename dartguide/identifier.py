"""Initial detection of the guide light by scoring stable round blobs."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Iterable, Optional

from dartguide.contours import contour_area, find_external_contours, min_enclosing_circle

__all__ = ["TargetData", "DartGuideIdentifier", "find_candidates"]

logger = logging.getLogger(__name__)

Point = tuple[int, int]

MIN_AREA = 100
MAX_AREA = 5000
MIN_CONTOUR_POINTS = 5
MIN_AREA_RATIO = 0.8
DISTANCE_THRESHOLD = 10
MISS_LIMIT = 20
DETECT_FRAMES = 80


@dataclass
class TargetData:
    """A candidate blob followed across frames."""

    first_position: Point
    latest_position: Point
    max_move_dist: float
    catch_count: int
    miss_count: int

    @property
    def score(self) -> float:
        return self.catch_count + 1000 / (self.max_move_dist + 1)


def find_candidates(binary) -> list[Point]:
    """Centres of the roughly circular blobs of plausible size in ``binary``."""
    candidates = []
    for contour in find_external_contours(binary):
        area = contour_area(contour)
        if area < MIN_AREA or area > MAX_AREA:
            continue
        if len(contour) < MIN_CONTOUR_POINTS:
            continue
        (cx, cy), radius = min_enclosing_circle(contour)
        circle_area = math.pi * radius * radius
        ratio = area / circle_area if circle_area > 0 else 0.0
        if ratio >= MIN_AREA_RATIO:
            candidates.append((round(cx), round(cy)))
    return candidates


class DartGuideIdentifier:
    """Collects candidate blobs over many frames and picks the steadiest one."""

    def __init__(self):
        self.lower_limit = None
        self.upper_limit = None
        self._targets: list[TargetData] = []
        self._frame_count = 0
        self._result: Optional[Point] = None
        self._ready = False
        self._begin_time = time.monotonic()

    def reset(self) -> None:
        """Restart the detection window; collected candidates are kept."""
        self._frame_count = 0
        self._ready = False

    def set_default_limit(self, lower, upper) -> None:
        self.lower_limit = lower
        self.upper_limit = upper

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def targets(self) -> list[TargetData]:
        return list(self._targets)

    def filter_targets(self, points: Iterable[Point]) -> None:
        """Match this frame's points to collected targets and age the rest."""
        points = [tuple(p) for p in points]
        matched = [False] * len(points)

        for target in self._targets:
            best = None
            min_dist = math.inf
            for i, pt in enumerate(points):
                if matched[i]:
                    continue
                dist = math.dist(pt, target.latest_position)
                if dist < DISTANCE_THRESHOLD and dist < min_dist:
                    min_dist = dist
                    best = i
            if best is None:
                target.miss_count += 1
                continue
            pt = points[best]
            target.max_move_dist = max(target.max_move_dist, math.dist(target.first_position, pt))
            target.latest_position = pt
            target.catch_count += 1
            target.miss_count = 0
            matched[best] = True

        self._targets.extend(
            TargetData(pt, pt, 0.0, 1, 0) for pt, used in zip(points, matched) if not used
        )
        self._targets = [t for t in self._targets if t.miss_count <= MISS_LIMIT]

    def update(self, binary_image) -> None:
        """Feed one binary frame; a result becomes ready after enough frames."""
        if self._ready:
            self.reset()
            self._begin_time = time.monotonic()

        self.filter_targets(find_candidates(binary_image))
        self._frame_count += 1

        if self._frame_count < DETECT_FRAMES:
            return

        if not self._targets:
            logger.info("detected nothing")
            self.reset()
            return

        best = max(self._targets, key=lambda t: t.score)
        self._result = best.latest_position
        self._ready = True
        elapsed_ms = int((time.monotonic() - self._begin_time) * 1000)
        logger.info("delta_time:%dms", elapsed_ms)

    def result(self) -> Optional[Point]:
        """The detected initial position, or ``None`` while none is ready."""
        return self._result if self._ready else None