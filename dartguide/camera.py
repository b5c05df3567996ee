"""Camera frame pipeline: colour thresholding, identification, then tracking."""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy import ndimage

from dartguide.identifier import DartGuideIdentifier
from dartguide.tracker import DartGuideTracker

__all__ = ["Stage", "FrameResult", "DartCameraPipeline", "bgr_to_hsv", "image_to_binary"]

logger = logging.getLogger(__name__)

KERNEL_SIZE = 9
LOSS_LIMIT = 100
MARKER_RADIUS = 20
MARKER_THICKNESS = 2


def _ellipse_kernel(size: int) -> np.ndarray:
    kernel = np.zeros((size, size), dtype=bool)
    r = size // 2
    c = size // 2
    inv_r2 = 1.0 / (r * r) if r else 0.0
    for i, row in enumerate(kernel):
        dy = i - r
        if abs(dy) <= r:
            dx = int(round(c * math.sqrt((r * r - dy * dy) * inv_r2)))
            row[max(c - dx, 0) : min(c + dx + 1, size)] = True
    return kernel


_KERNEL = _ellipse_kernel(KERNEL_SIZE)


def bgr_to_hsv(image) -> np.ndarray:
    """Convert an 8-bit BGR image to HSV with hue in 0..179."""
    img = np.asarray(image)
    if img.ndim != 3 or img.shape[2] != 3 or img.dtype != np.uint8:
        raise ValueError("expected an 8-bit three-channel BGR image")
    b, g, r = (img[..., k].astype(np.int32) for k in range(3))
    v = np.maximum(np.maximum(b, g), r)
    diff = v - np.minimum(np.minimum(b, g), r)

    safe_v = np.where(v == 0, 1, v)
    s = np.where(v > 0, np.floor(255.0 * diff / safe_v + 0.5), 0)

    safe_diff = np.where(diff == 0, 1, diff)
    h = np.where(
        v == r,
        30.0 * (g - b) / safe_diff,
        np.where(v == g, 60.0 + 30.0 * (b - r) / safe_diff, 120.0 + 30.0 * (r - g) / safe_diff),
    )
    h = np.floor(h + 0.5)
    h = np.where(h < 0, h + 180, h)
    h = np.where(diff == 0, 0, h)
    return np.stack([h, s, v], axis=-1).astype(np.uint8)


def image_to_binary(image, lower, upper) -> np.ndarray:
    """Threshold a BGR image in HSV and clean it with an opening and a closing."""
    hsv = bgr_to_hsv(image)
    lo = np.asarray(lower, dtype=np.float64).ravel()[:3]
    hi = np.asarray(upper, dtype=np.float64).ravel()[:3]
    mask = np.all((hsv >= lo) & (hsv <= hi), axis=-1)

    opened = ndimage.binary_dilation(
        ndimage.binary_erosion(mask, structure=_KERNEL, border_value=1),
        structure=_KERNEL,
        border_value=0,
    )
    closed = ndimage.binary_erosion(
        ndimage.binary_dilation(opened, structure=_KERNEL, border_value=0),
        structure=_KERNEL,
        border_value=1,
    )
    return np.where(closed, 255, 0).astype(np.uint8)


def _draw_ring(display: np.ndarray, center, radius: int, thickness: int) -> None:
    yy, xx = np.mgrid[: display.shape[0], : display.shape[1]]
    dist = np.hypot(xx - center[0], yy - center[1])
    display[np.abs(dist - radius) <= thickness / 2.0] = 255


class Stage(enum.Enum):
    IDENTIFYING = "Identifying"
    TRACKING = "Tracking"
    LOST = "Loss"


@dataclass
class FrameResult:
    """What the pipeline produced for one camera frame."""

    binary: np.ndarray
    display: np.ndarray
    stage: Stage
    target_position: Optional[tuple[int, int]] = None


class DartCameraPipeline:
    """Identifies the guide light over many frames, then tracks it."""

    def __init__(self, lower, upper):
        self.lower = tuple(lower)
        self.upper = tuple(upper)
        self.identifier = DartGuideIdentifier()
        self.identifier.set_default_limit(self.lower, self.upper)
        self.identifier.reset()
        self.tracker = DartGuideTracker()
        self._tracking_stage = False
        self._loss_count = 0

    @property
    def tracking_stage(self) -> bool:
        return self._tracking_stage

    def process_frame(self, frame) -> FrameResult:
        """Run one BGR frame through thresholding and the current stage."""
        binary = image_to_binary(frame, self.lower, self.upper)
        display = binary.copy()

        if not self._tracking_stage:
            self.identifier.update(binary)
            position = self.identifier.result()
            if position is not None:
                logger.info("target initial position:(%d,%d)", position[0], position[1])
                self._tracking_stage = True
                self.tracker.init(position)
            return FrameResult(binary, display, Stage.IDENTIFYING)

        self.tracker.update(binary)
        position = self.tracker.current_position
        logger.info("current:(%d,%d)", position[0], position[1])

        if self.tracker.tracking:
            self._loss_count = 0
            stage = Stage.TRACKING
        else:
            self._loss_count += 1
            stage = Stage.LOST
        if self._loss_count > LOSS_LIMIT:
            self._tracking_stage = False
            self.identifier.reset()

        _draw_ring(display, position, MARKER_RADIUS, MARKER_THICKNESS)
        return FrameResult(binary, display, stage, position)