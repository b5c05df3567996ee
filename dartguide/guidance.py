"""Launcher-side guidance: yaw error from the tracked light, pitch setpoint."""

from __future__ import annotations

import math
from typing import Optional

__all__ = ["DartLauncherGuidance", "LaunchDataProcess"]


class DartLauncherGuidance:
    """Turns the tracked guide-light position into a yaw angle error."""

    def __init__(self, guidelight_yaw_setpoint):
        self.guidelight_yaw_setpoint = float(guidelight_yaw_setpoint)
        self.yaw_angle_error = math.nan
        self.guide_ready = False

    def update(self, target_position) -> float:
        """Compute the yaw error for the target's ``(x, y)`` image position."""
        x, _ = target_position
        self.yaw_angle_error = self.guidelight_yaw_setpoint - float(x)
        return self.yaw_angle_error


class LaunchDataProcess:
    """Provides the pitch angle setpoint for each launch."""

    def __init__(self, default_pitch):
        self.default_pitch = float(default_pitch)
        self.launch_count = 0
        self.pitch_angle_setpoint: Optional[float] = None

    def update(self, launch_count) -> float:
        """Record the launch count and return the pitch setpoint for it."""
        self.launch_count = int(launch_count)
        self.pitch_angle_setpoint = self.default_pitch
        return self.pitch_angle_setpoint