"""Contour extraction and geometry on binary images.

Contours are ``(N, 2)`` integer arrays of ``(x, y)`` pixel coordinates
tracing the outer boundary of each 8-connected foreground region.
Straight runs are compressed to their end points.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

import numpy as np
from scipy import ndimage

__all__ = [
    "find_external_contours",
    "contour_area",
    "min_enclosing_circle",
    "contour_centroid",
]

# Neighbour offsets (dx, dy) in clockwise order, with y pointing down.
_DIRS = ((1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1), (0, -1), (1, -1))
_DIR_INDEX = {d: i for i, d in enumerate(_DIRS)}
_WEST = 4

Point = tuple[int, int]


def _step(region: np.ndarray, current: Point, back: int) -> Optional[tuple[Point, int]]:
    """Find the next boundary pixel clockwise from the backtrack direction."""
    cx, cy = current
    for k in range(1, 8):
        j = (back + k) % 8
        dx, dy = _DIRS[j]
        if region[cy + dy, cx + dx]:
            px, py = _DIRS[(j - 1) % 8]
            nxt = (cx + dx, cy + dy)
            backtrack = (cx + px - nxt[0], cy + py - nxt[1])
            return nxt, _DIR_INDEX[backtrack]
    return None


def _trace(region: np.ndarray, start: Point) -> list[Point]:
    first = _step(region, start, _WEST)
    if first is None:
        return [start]
    points = [start]
    current, back = first
    while True:
        nxt = _step(region, current, back)
        if current == start and nxt[0] == first[0]:
            break
        points.append(current)
        current, back = nxt
    return points


def _compress(points: list[Point]) -> list[Point]:
    if len(points) <= 2:
        return points
    shifted_prev = points[-1:] + points[:-1]
    shifted_next = points[1:] + points[:1]
    kept = [
        p
        for prev, p, nxt in zip(shifted_prev, points, shifted_next)
        if (p[0] - prev[0], p[1] - prev[1]) != (nxt[0] - p[0], nxt[1] - p[1])
    ]
    return kept or points[:1]


def find_external_contours(binary) -> list[np.ndarray]:
    """Return the outer contours of the foreground regions of ``binary``.

    Regions lying inside the holes of another region are not reported,
    and holes produce no contours of their own.
    """
    mask = np.asarray(binary) != 0
    if mask.ndim != 2:
        raise ValueError("expected a two-dimensional single-channel image")
    if not mask.any():
        return []
    filled = ndimage.binary_fill_holes(mask)
    labels, count = ndimage.label(filled, structure=np.ones((3, 3), dtype=bool))
    padded = np.pad(labels, 1)
    width = padded.shape[1]

    values, first_index = np.unique(padded.ravel(), return_index=True)
    starts = sorted(
        (int(index), int(value)) for value, index in zip(values, first_index) if value != 0
    )

    contours = []
    for index, label in starts:
        start = (index % width, index // width)
        boundary = _compress(_trace(padded == label, start))
        contours.append(np.array(boundary, dtype=np.int64) - 1)
    assert len(contours) == count
    return contours


def contour_area(contour) -> float:
    """Area enclosed by the polygon through the contour's points."""
    pts = np.asarray(contour, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        return 0.0
    x, y = pts[:, 0], pts[:, 1]
    return float(abs(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y)) / 2.0)


def _contains(circle: tuple[tuple[float, float], float], p: Sequence[float]) -> bool:
    (cx, cy), r = circle
    return math.hypot(p[0] - cx, p[1] - cy) <= r * (1.0 + 1e-9) + 1e-9


def _circle_two(a, b) -> tuple[tuple[float, float], float]:
    center = ((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0)
    return center, math.dist(a, b) / 2.0


def _circle_three(a, b, c) -> tuple[tuple[float, float], float]:
    bx, by = b[0] - a[0], b[1] - a[1]
    cx, cy = c[0] - a[0], c[1] - a[1]
    d = 2.0 * (bx * cy - by * cx)
    if abs(d) < 1e-12:
        return max((_circle_two(a, b), _circle_two(a, c), _circle_two(b, c)), key=lambda cr: cr[1])
    b2 = bx * bx + by * by
    c2 = cx * cx + cy * cy
    ux = (cy * b2 - by * c2) / d
    uy = (bx * c2 - cx * b2) / d
    return (a[0] + ux, a[1] + uy), math.hypot(ux, uy)


def min_enclosing_circle(points: Iterable[Sequence[float]]) -> tuple[tuple[float, float], float]:
    """Smallest circle containing every point, as ``((cx, cy), radius)``."""
    pts = [(float(p[0]), float(p[1])) for p in np.asarray(points, dtype=np.float64).reshape(-1, 2)]
    if not pts:
        raise ValueError("cannot enclose an empty set of points")
    circle = (pts[0], 0.0)
    for i, p in enumerate(pts):
        if _contains(circle, p):
            continue
        circle = (p, 0.0)
        for j, q in enumerate(pts[:i]):
            if _contains(circle, q):
                continue
            circle = _circle_two(p, q)
            for r in pts[:j]:
                if not _contains(circle, r):
                    circle = _circle_three(p, q, r)
    return circle


def contour_centroid(contour) -> Optional[tuple[float, float]]:
    """Centroid of the contour polygon, or ``None`` when its area is zero."""
    pts = np.asarray(contour, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        return None
    x, y = pts[:, 0], pts[:, 1]
    x1, y1 = np.roll(x, -1), np.roll(y, -1)
    cross = x * y1 - x1 * y
    total = float(np.sum(cross))
    if total == 0.0:
        return None
    cx = float(np.sum((x + x1) * cross)) / (3.0 * total)
    cy = float(np.sum((y + y1) * cross)) / (3.0 * total)
    return cx, cy