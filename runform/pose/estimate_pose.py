#!/usr/bin/env python3
"""
Pose estimation factory for the supported engines.
"""


from .pose_estimator_base import PoseEstimatorBase


def create_pose_estimator(detector_type: str, cfg: dict) -> PoseEstimatorBase:
    """
    Factory function to create a pose estimator based on type.

    Args:
        detector_type: Either 'yolo' or 'mediapipe'
        cfg: Configuration dictionary

    Returns:
        PoseEstimatorBase instance (model not yet loaded)
    """
    if detector_type == "mediapipe":
        from .mediapipe_pose_estimator import MediaPipePoseEstimator

        return MediaPipePoseEstimator(cfg)
    elif detector_type == "yolo":
        from .yolo_pose_estimator import YOLOPoseEstimator

        return YOLOPoseEstimator(cfg)
    else:
        raise ValueError(f"Unknown pose detector type: {detector_type}")
