"""Point cloud filtering, feature matching and frame accumulation.

Clouds are ``(N, 3)`` float arrays of ``x, y, z`` coordinates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from scipy.spatial import cKDTree

__all__ = [
    "Correspondence",
    "PointCloudIntegral",
    "crop_box",
    "voxel_downsample",
    "box_filter_and_downsample",
    "match_features",
]

logger = logging.getLogger(__name__)

BOX_MIN = (0.0, -2.5, -0.75)
BOX_MAX = (3.0, 2.5, 0.75)
LEAF_SIZE = 0.01
RATIO_THRESHOLD = 0.7


def _as_cloud(points) -> np.ndarray:
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return np.empty((0, 3), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError("expected an (N, 3) array of points")
    return arr


def crop_box(points, min_point, max_point) -> np.ndarray:
    """Keep the finite points inside the axis-aligned box, bounds included."""
    cloud = _as_cloud(points)
    lo = np.asarray(min_point, dtype=np.float64).ravel()[:3]
    hi = np.asarray(max_point, dtype=np.float64).ravel()[:3]
    inside = (
        np.all(np.isfinite(cloud), axis=1)
        & np.all(cloud >= lo, axis=1)
        & np.all(cloud <= hi, axis=1)
    )
    return cloud[inside]


def voxel_downsample(points, leaf_size) -> np.ndarray:
    """Replace the points in each voxel by their centroid.

    Output is ordered by voxel, with x varying fastest, then y, then z.
    """
    leaf = np.broadcast_to(np.asarray(leaf_size, dtype=np.float64), (3,))
    if np.any(leaf <= 0) or not np.all(np.isfinite(leaf)):
        raise ValueError("leaf size must be positive")
    cloud = _as_cloud(points)
    cloud = cloud[np.all(np.isfinite(cloud), axis=1)]
    if len(cloud) == 0:
        return cloud

    ijk = np.floor(cloud / leaf).astype(np.int64)
    rel = ijk - ijk.min(axis=0)
    dims = rel.max(axis=0) + 1
    linear = rel[:, 0] + rel[:, 1] * dims[0] + rel[:, 2] * dims[0] * dims[1]
    _, inverse, counts = np.unique(linear, return_inverse=True, return_counts=True)
    inverse = inverse.ravel()

    sums = np.zeros((len(counts), 3), dtype=np.float64)
    np.add.at(sums, inverse, cloud)
    return sums / counts[:, None]


def box_filter_and_downsample(points) -> np.ndarray:
    """Crop to the measurement box, then downsample on a 1 cm grid."""
    return voxel_downsample(crop_box(points, BOX_MIN, BOX_MAX), LEAF_SIZE)


@dataclass(frozen=True)
class Correspondence:
    """A scene feature matched to a target feature, with squared distance."""

    index_query: int
    index_match: int
    distance: float


def match_features(target_features, scene_features, ratio_threshold=RATIO_THRESHOLD) -> list[Correspondence]:
    """Match scene features to target features with a nearest-neighbour ratio test.

    A scene feature is matched when its squared distance to the nearest
    target feature is below ``ratio_threshold`` times that to the second.
    """
    target = np.asarray(target_features, dtype=np.float64)
    scene = np.asarray(scene_features, dtype=np.float64)
    logger.info("target features: %d", len(target))
    logger.info("scene features: %d", len(scene))
    if len(target) < 2 or len(scene) == 0:
        logger.info("found 0 feature matches")
        return []
    if target.ndim != 2 or scene.ndim != 2 or target.shape[1] != scene.shape[1]:
        raise ValueError("feature arrays must be two-dimensional with equal width")

    distances, indices = cKDTree(target).query(scene, k=2)
    squared = distances**2
    matches = [
        Correspondence(i, int(idx[0]), float(d[0]))
        for i, (d, idx) in enumerate(zip(squared, indices))
        if d[0] < ratio_threshold * d[1]
    ]
    logger.info("found %d feature matches", len(matches))
    return matches


class PointCloudIntegral:
    """Accumulates point cloud frames into one cloud."""

    def __init__(self):
        self._frames: list[np.ndarray] = []

    def add_frame(self, points) -> None:
        self._frames.append(_as_cloud(points))

    @property
    def points(self) -> np.ndarray:
        if not self._frames:
            return np.empty((0, 3), dtype=np.float64)
        return np.concatenate(self._frames)

    def __len__(self) -> int:
        return sum(len(f) for f in self._frames)