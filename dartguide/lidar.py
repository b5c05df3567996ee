"""Lidar frame accumulation, distance measurement and scene recording."""

from __future__ import annotations

import argparse
import logging
import os
import threading
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from dartguide.pcd import load_pcd, save_pcd_binary
from dartguide.pointcloud import PointCloudIntegral, box_filter_and_downsample, crop_box

__all__ = [
    "FrameIntegrator",
    "PointCloudRecorder",
    "save_box_filter",
    "measure_distance",
    "main",
]

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

INTEGRAL_FRAMES = 30
RECORD_FRAMES = 30
SAVE_BOX_MIN = (0.0, -2.5, -0.75)
SAVE_BOX_MAX = (5.0, 2.5, 0.75)


def save_box_filter(points) -> np.ndarray:
    """Crop a cloud to the box kept when recording a scene."""
    return crop_box(points, SAVE_BOX_MIN, SAVE_BOX_MAX)


def measure_distance(cloud) -> float:
    """Distance from the sensor to the centroid of the filtered cloud.

    The cloud is cropped to the measurement box and downsampled first.
    Raises ``ValueError`` when nothing is left after filtering.
    """
    filtered = box_filter_and_downsample(cloud)
    if len(filtered) == 0:
        raise ValueError("no points left in the measurement box")
    centroid = filtered.mean(axis=0)
    distance = float(np.linalg.norm(centroid))
    logger.info("distance:%f", distance)
    return distance


class FrameIntegrator:
    """Accumulates lidar frames until enough have arrived for a measurement.

    Safe to feed from one thread while another takes the result.
    """

    def __init__(self, frame_count=INTEGRAL_FRAMES):
        if frame_count < 1:
            raise ValueError("frame count must be at least 1")
        self.frame_count = int(frame_count)
        self._lock = threading.Lock()
        self._integral = PointCloudIntegral()
        self._received = 0
        self._ready = False

    @property
    def received(self) -> int:
        with self._lock:
            return self._received

    @property
    def ready(self) -> bool:
        """Whether enough frames have been accumulated."""
        with self._lock:
            return self._ready

    def add_frame(self, points) -> bool:
        """Add one frame; return True on the frame that completes the set."""
        with self._lock:
            self._integral.add_frame(points)
            self._received += 1
            completed = self._received == self.frame_count
            if completed:
                self._ready = True
                logger.info("start measure")
            return completed

    def take(self) -> np.ndarray:
        """Return the accumulated cloud and start a new accumulation.

        Raises ``RuntimeError`` while not enough frames have arrived.
        """
        with self._lock:
            if not self._ready:
                raise RuntimeError("not enough data")
            cloud = self._integral.points
            self._integral = PointCloudIntegral()
            self._received = 0
            self._ready = False
            return cloud


class PointCloudRecorder:
    """Records a fixed number of frames, then saves them cropped to a PCD file."""

    def __init__(self, output_path: PathLike, frame_count=RECORD_FRAMES):
        if frame_count < 1:
            raise ValueError("frame count must be at least 1")
        self.output_path = Path(output_path)
        self.frame_count = int(frame_count)
        self._integral = PointCloudIntegral()
        self._received = 0
        self._done = False

    @property
    def received(self) -> int:
        return self._received

    @property
    def done(self) -> bool:
        """Whether recording has finished; later frames are ignored."""
        return self._done

    def add_frame(self, points) -> bool:
        """Add one frame; return True when this frame triggered the save."""
        if self._done:
            return False
        self._integral.add_frame(points)
        self._received += 1
        logger.info("save node working...(%d/%d)", self._received, self.frame_count)
        if self._received < self.frame_count:
            return False
        self._done = True
        save_pcd_binary(self.output_path, save_box_filter(self._integral.points))
        logger.info("Successfully saved %s", self.output_path)
        return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Record PCD frames into one cropped scene file."""
    parser = argparse.ArgumentParser(
        prog="dartguide-record",
        description="Accumulate point cloud frames and save them cropped to a binary PCD file.",
    )
    parser.add_argument("frames", nargs="+", help="input PCD files, one per frame")
    parser.add_argument("-o", "--output", required=True, help="output PCD file")
    parser.add_argument(
        "-n", "--frame-count", type=int, default=RECORD_FRAMES, help="number of frames to record"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        recorder = PointCloudRecorder(args.output, args.frame_count)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        for path in args.frames:
            if recorder.add_frame(load_pcd(path)):
                break
    except (OSError, ValueError) as exc:
        logger.error("Failed to save %s: %s", args.output, exc)
        return 1

    if not recorder.done:
        logger.error(
            "only %d of %d frames were given; nothing saved", recorder.received, recorder.frame_count
        )
        return 1
    logger.info("pcd file save compelete, now can exit")
    return 0