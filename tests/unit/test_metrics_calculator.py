"""Unit tests for the running metrics calculators."""

import numpy as np
import pytest

from runform.metrics.calculator import (
    MetricSet,
    PoseMetricsCalculator,
    VerticalOscillationTracker,
    calculate_head_alignment,
    calculate_joint_angle,
    calculate_torso_lean,
)
from runform.metrics.classifier import LeanClass
from runform.metrics.state import MetricSnapshot, OscillationState, SessionState
from runform.pose.types import Keypoint, Pose


def kp(idx, x, y, conf=0.9):
    return Keypoint(id=idx, x=x, y=y, confidence=conf)


class TestTorsoLean:
    """Test torso lean sign and missing landmarks."""

    def test_shoulders_above_hips_is_zero(self):
        lean = calculate_torso_lean(
            kp(5, 100, 100), kp(6, 120, 100), kp(11, 100, 200), kp(12, 120, 200)
        )
        assert lean == 0

    def test_forward_lean_is_positive(self):
        lean = calculate_torso_lean(
            kp(5, 120, 100), kp(6, 140, 100), kp(11, 100, 200), kp(12, 120, 200)
        )
        # dx = 20, dy = 100
        assert lean == 11

    def test_backward_lean_is_negative(self):
        lean = calculate_torso_lean(
            kp(5, 80, 100), kp(6, 100, 100), kp(11, 100, 200), kp(12, 120, 200)
        )
        assert lean == -11

    def test_missing_landmark_returns_zero(self):
        assert calculate_torso_lean(None, kp(6, 140, 100), kp(11, 100, 200), kp(12, 120, 200)) == 0


class TestJointAngles:
    def test_straight_leg(self):
        assert calculate_joint_angle(kp(12, 100, 100), kp(14, 100, 200), kp(16, 100, 300)) == 180

    def test_bent_knee(self):
        assert calculate_joint_angle(kp(12, 100, 100), kp(14, 100, 200), kp(16, 200, 200)) == 90


class TestHeadAlignment:
    def test_nose_above_neck(self):
        assert calculate_head_alignment(kp(0, 100, 200), np.array([100, 280])) == 0

    def test_head_forward(self):
        assert calculate_head_alignment(kp(0, 180, 200), np.array([100, 280])) == 45

    def test_missing_inputs(self):
        assert calculate_head_alignment(None, np.array([100, 280])) == 0
        assert calculate_head_alignment(kp(0, 100, 200), None) == 0


class TestVerticalOscillation:
    """Test the frame-to-frame hip height delta."""

    def test_sequence(self):
        tracker = VerticalOscillationTracker(OscillationState())

        assert tracker.update(200) == 0
        assert tracker.state.previous_hip_mid_y == 200
        assert tracker.update(215) == 15
        assert tracker.update(215) == 0

    def test_missing_hip_keeps_baseline(self):
        tracker = VerticalOscillationTracker(OscillationState(previous_hip_mid_y=300))

        assert tracker.update(None) == 0
        assert tracker.update(0) == 0
        assert tracker.state.previous_hip_mid_y == 300

    def test_rounds_delta(self):
        tracker = VerticalOscillationTracker(OscillationState())
        tracker.update(200)
        assert tracker.update(202.5) == 3


class TestPoseMetricsCalculator:
    """Test the per-frame metric pipeline."""

    def test_full_update(self, sample_pose):
        calc = PoseMetricsCalculator()
        snapshot = calc.update(sample_pose, timestamp_ms=0, metric_set=MetricSet.FULL)

        assert snapshot.torso_lean_deg == 0
        assert snapshot.lean_class == LeanClass.UPRIGHT
        assert snapshot.knee_angle_deg == 180
        assert snapshot.hip_angle_deg == 173
        assert snapshot.vertical_oscillation_px == 0
        assert snapshot.head_alignment_deg == 0
        assert snapshot.cadence_spm == 0

    def test_snapshot_is_mutated_in_place(self, sample_pose):
        calc = PoseMetricsCalculator()
        snapshot = calc.snapshot
        assert calc.update(sample_pose, 0) is snapshot

    def test_second_frame_oscillation(self, sample_keypoints):
        calc = PoseMetricsCalculator()
        calc.update(Pose(sample_keypoints), 0)

        moved = sample_keypoints.copy()
        moved[11, 1] += 10
        moved[12, 1] += 10
        snapshot = calc.update(Pose(moved), 33)

        assert snapshot.vertical_oscillation_px == 10

    def test_lean_only_leaves_other_metrics(self, sample_pose):
        calc = PoseMetricsCalculator()
        calc.snapshot.knee_angle_deg = 123
        snapshot = calc.update(sample_pose, 0, MetricSet.LEAN_ONLY)

        assert snapshot.knee_angle_deg == 123
        assert snapshot.hip_angle_deg == 0
        assert calc.session.oscillation.previous_hip_mid_y is None

    def test_lean_class_follows_lean(self, sample_keypoints):
        keypoints = sample_keypoints.copy()
        # Shift shoulders 15 px forward over a 100 px torso: ~8.5 degrees
        keypoints[5, 0] += 15
        keypoints[6, 0] += 15
        snapshot = PoseMetricsCalculator().update(Pose(keypoints), 0)

        assert snapshot.torso_lean_deg == 9
        assert snapshot.lean_class == LeanClass.GOOD

    def test_missing_knee_keeps_previous_angle(self, sample_keypoints):
        calc = PoseMetricsCalculator(cfg={"min_keypoint_confidence": 0.5})
        calc.update(Pose(sample_keypoints), 0)
        assert calc.snapshot.knee_angle_deg == 180

        keypoints = sample_keypoints.copy()
        keypoints[16, 2] = 0.1  # right ankle below confidence
        keypoints[16, 0] = 300
        calc.update(Pose(keypoints), 33)

        assert calc.snapshot.knee_angle_deg == 180

    def test_missing_shoulder_zeroes_lean(self, sample_keypoints):
        keypoints = sample_keypoints.copy()
        keypoints[5, :2] = np.nan
        snapshot = PoseMetricsCalculator().update(Pose(keypoints), 0)

        assert snapshot.torso_lean_deg == 0
        assert snapshot.head_alignment_deg == 0

    def test_hip_baseline_shared_with_cadence(self, sample_pose):
        calc = PoseMetricsCalculator()
        calc.update(sample_pose, 0)

        assert calc.session.oscillation.previous_hip_mid_y == 380
        assert calc.session.cadence.last_hip_y == 380

    def test_cadence_keeps_previous_value_below_min_strikes(self, sample_keypoints):
        keypoints = sample_keypoints.copy()
        # Ankles level with the hips so every frame counts as a strike
        keypoints[15, 1] = 382
        keypoints[16, 1] = 382
        calc = PoseMetricsCalculator()
        calc.snapshot.cadence_spm = 170

        for t in (0, 300, 600):
            calc.update(Pose(keypoints), t)

        # Oscillation writes the hip baseline first, so frame one already strikes
        assert calc.session.cadence.strike_timestamps == [0, 300, 600]
        assert calc.snapshot.cadence_spm == 170

    def test_cadence_from_strikes(self, sample_keypoints):
        keypoints = sample_keypoints.copy()
        keypoints[15, 1] = 382
        keypoints[16, 1] = 382
        calc = PoseMetricsCalculator()

        for t in (0, 300, 600, 900):
            calc.update(Pose(keypoints), t)

        # Four strikes over 900 ms
        assert calc.snapshot.cadence_spm == 267

    def test_reset_starts_new_session(self, sample_pose):
        calc = PoseMetricsCalculator()
        calc.update(sample_pose, 0)
        old_session = calc.session

        calc.reset()

        assert calc.session is not old_session
        assert calc.snapshot == MetricSnapshot()
        assert calc.session.oscillation.previous_hip_mid_y is None

    def test_uses_given_session(self):
        session = SessionState()
        calc = PoseMetricsCalculator(session)
        assert calc.snapshot is session.snapshot
        assert calc.cadence_tracker.state is session.cadence


class TestPose:
    def test_wrong_shape(self):
        with pytest.raises(ValueError, match="Pose expects keypoints"):
            Pose(np.zeros((33, 3)))

    def test_get_by_name(self, sample_pose):
        knee = sample_pose.get("RIGHT_KNEE")
        assert knee == Keypoint(id=14, x=120.0, y=450.0, confidence=0.85)

    def test_low_confidence_is_missing(self, sample_pose):
        assert sample_pose.get("RIGHT_KNEE", min_confidence=0.9) is None

    def test_from_keypoints(self):
        pose = Pose.from_keypoints([kp(0, 10, 20)])
        assert pose.get("NOSE").x == 10
        assert pose.get("LEFT_HIP") is None
        assert len(list(pose)) == 17


def test_snapshot_as_dict(sample_pose):
    snapshot = PoseMetricsCalculator().update(sample_pose, 0)
    values = snapshot.as_dict()

    assert values["lean_class"] == "upright"
    assert values["knee_angle_deg"] == 180
    assert set(values) == {
        "torso_lean_deg",
        "lean_class",
        "knee_angle_deg",
        "hip_angle_deg",
        "vertical_oscillation_px",
        "head_alignment_deg",
        "cadence_spm",
    }
