#!/usr/bin/env python3
"""
Running form metrics calculator: torso lean, joint angles, vertical
oscillation, head alignment and cadence from COCO keypoints.
"""

from enum import Enum

from runform.pose.types import Keypoint, Pose
from runform.utils.geometry import (
    angle_between_three_points,
    angle_from_vertical,
    midpoint,
    round_half_up,
)

from .cadence import CadenceTracker
from .classifier import classify_lean
from .state import MetricSnapshot, OscillationState, SessionState


class MetricSet(str, Enum):
    """Which metrics a frame loop updates."""

    LEAN_ONLY = "lean_only"
    FULL = "full"


def calculate_torso_lean(
    left_shoulder: Keypoint | None,
    right_shoulder: Keypoint | None,
    left_hip: Keypoint | None,
    right_hip: Keypoint | None,
) -> int:
    """
    Lean of the hip-to-shoulder line from vertical.

    Returns:
        Degrees, positive = forward lean, 0 if any landmark is missing
    """
    if any(p is None for p in [left_shoulder, right_shoulder, left_hip, right_hip]):
        return 0

    shoulder_mid = midpoint(left_shoulder.xy, right_shoulder.xy)
    hip_mid = midpoint(left_hip.xy, right_hip.xy)

    # y is inverted so that an upright torso points along +dy
    dx = shoulder_mid[0] - hip_mid[0]
    dy = hip_mid[1] - shoulder_mid[1]
    return angle_from_vertical(dx, dy)


def calculate_joint_angle(
    a: Keypoint | None, vertex: Keypoint | None, c: Keypoint | None
) -> int:
    """Interior angle at ``vertex``; the caller checks the points exist."""
    return angle_between_three_points(a.xy, vertex.xy, c.xy)


def calculate_head_alignment(nose: Keypoint | None, neck) -> int:
    """
    Head tilt of the neck-to-nose line from vertical.

    Args:
        nose: Nose keypoint
        neck: Virtual neck point [x, y] (shoulder midpoint)
    """
    if nose is None or neck is None:
        return 0

    dx = nose.x - neck[0]
    dy = neck[1] - nose.y
    return angle_from_vertical(dx, dy)


class VerticalOscillationTracker:
    """Frame-to-frame change of the hip midpoint height, in pixels."""

    def __init__(self, state: OscillationState):
        self.state = state

    def update(self, hip_y: float | None) -> int:
        """
        Compare the hip height with the previous frame and store it.

        Returns:
            Absolute change in pixels, 0 on the first frame or without a hip
        """
        if not hip_y:
            return 0

        if self.state.previous_hip_mid_y is None:
            self.state.previous_hip_mid_y = hip_y
            return 0

        oscillation = abs(hip_y - self.state.previous_hip_mid_y)
        self.state.previous_hip_mid_y = hip_y

        return round_half_up(oscillation)


class PoseMetricsCalculator:
    """Update a session's metric snapshot from one pose per frame."""

    def __init__(self, session: SessionState | None = None, cfg: dict | None = None):
        """
        Initialize the metrics calculator.

        Args:
            session: Session state to mutate; a fresh one is created if omitted
            cfg: ``metrics`` section of the configuration
        """
        cfg = cfg or {}
        self.min_confidence = cfg.get("min_keypoint_confidence", 0.0)
        self.strike_threshold_px = cfg.get("strike_threshold_px", 5)
        self.cadence_window_ms = cfg.get("cadence_window_ms", 10000)
        self.min_strikes = cfg.get("min_strikes", 4)
        self.reset(session)

    def reset(self, session: SessionState | None = None):
        """Start a new session with fresh trackers."""
        self.session = session or SessionState()
        self.oscillation_tracker = VerticalOscillationTracker(self.session.oscillation)
        self.cadence_tracker = CadenceTracker(
            self.session.cadence,
            threshold_px=self.strike_threshold_px,
            window_ms=self.cadence_window_ms,
            min_strikes=self.min_strikes,
        )

    @property
    def snapshot(self) -> MetricSnapshot:
        return self.session.snapshot

    def update(
        self,
        pose: Pose,
        timestamp_ms: float,
        metric_set: MetricSet = MetricSet.FULL,
    ) -> MetricSnapshot:
        """
        Compute this frame's metrics and write them into the snapshot.

        Args:
            pose: First detected pose of the frame
            timestamp_ms: Frame time in milliseconds, used for cadence
            metric_set: LEAN_ONLY for live camera, FULL otherwise

        Returns:
            The session snapshot (same object, mutated in place)
        """
        snapshot = self.session.snapshot
        get = self._get_landmark

        nose = get(pose, "NOSE")
        left_shoulder = get(pose, "LEFT_SHOULDER")
        right_shoulder = get(pose, "RIGHT_SHOULDER")
        left_hip = get(pose, "LEFT_HIP")
        right_hip = get(pose, "RIGHT_HIP")
        right_knee = get(pose, "RIGHT_KNEE")
        left_ankle = get(pose, "LEFT_ANKLE")
        right_ankle = get(pose, "RIGHT_ANKLE")

        snapshot.torso_lean_deg = calculate_torso_lean(
            left_shoulder, right_shoulder, left_hip, right_hip
        )

        if metric_set == MetricSet.FULL:
            if right_hip and right_knee and right_ankle:
                snapshot.knee_angle_deg = calculate_joint_angle(
                    right_hip, right_knee, right_ankle
                )

            if right_shoulder and right_hip and right_knee:
                snapshot.hip_angle_deg = calculate_joint_angle(
                    right_shoulder, right_hip, right_knee
                )

            # Must run before cadence: both read the same hip baseline
            hip_mid_y = None
            if left_hip and right_hip:
                hip_mid_y = (left_hip.y + right_hip.y) / 2
            snapshot.vertical_oscillation_px = self.oscillation_tracker.update(hip_mid_y)

            neck = None
            if left_shoulder and right_shoulder:
                neck = midpoint(left_shoulder.xy, right_shoulder.xy)
            snapshot.head_alignment_deg = calculate_head_alignment(nose, neck)

            cadence = self.cadence_tracker.update(left_ankle, right_ankle, timestamp_ms)
            if cadence is not None:
                snapshot.cadence_spm = cadence

        snapshot.lean_class = classify_lean(snapshot.torso_lean_deg)
        return snapshot

    def _get_landmark(self, pose: Pose, landmark_name: str) -> Keypoint | None:
        return pose.get(landmark_name, self.min_confidence)
