#!/usr/bin/env python3
"""
Foot-strike detection and step cadence over a trailing time window.
"""

from runform.pose.types import Keypoint
from runform.utils.geometry import round_half_up

from .state import CadenceState


class CadenceTracker:
    """
    Count foot strikes and derive steps per minute.

    A strike is recorded when either ankle's y coordinate comes within
    ``threshold_px`` of the last hip-midpoint y. Strikes older than
    ``window_ms`` relative to the newest are dropped, and a cadence is only
    produced once ``min_strikes`` remain in the window.
    """

    def __init__(
        self,
        state: CadenceState,
        threshold_px: float = 5,
        window_ms: float = 10000,
        min_strikes: int = 4,
    ):
        self.state = state
        self.threshold_px = threshold_px
        self.window_ms = window_ms
        self.min_strikes = min_strikes

    def update(
        self,
        left_ankle: Keypoint | None,
        right_ankle: Keypoint | None,
        timestamp_ms: float,
    ) -> int | None:
        """
        Feed one frame's ankles.

        Args:
            left_ankle: Left ankle keypoint or None
            right_ankle: Right ankle keypoint or None
            timestamp_ms: Frame time in milliseconds

        Returns:
            New cadence in steps per minute, or None to keep the previous value
        """
        if left_ankle is None or right_ankle is None:
            return None

        reference_y = self.state.last_hip_y
        if not reference_y:
            return None

        if not (
            abs(left_ankle.y - reference_y) < self.threshold_px
            or abs(right_ankle.y - reference_y) < self.threshold_px
        ):
            return None

        self.record_strike(timestamp_ms)
        return self.current_cadence()

    def record_strike(self, timestamp_ms: float):
        """Append a strike and prune the window relative to it."""
        strikes = self.state.strike_timestamps
        strikes.append(timestamp_ms)
        self.state.strike_timestamps = [
            t for t in strikes if timestamp_ms - t < self.window_ms
        ]

    def current_cadence(self) -> int | None:
        """Steps per minute over the retained strikes, None if too few."""
        strikes = self.state.strike_timestamps
        if len(strikes) < self.min_strikes:
            return None

        span_minutes = (strikes[-1] - strikes[0]) / 1000 / 60
        if span_minutes <= 0:
            return None

        return round_half_up(len(strikes) / span_minutes)
