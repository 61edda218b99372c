#!/usr/bin/env python3
"""
MediaPipe Pose Landmarker estimator implementation.
"""


import cv2
import mediapipe as mp
import numpy as np
from loguru import logger
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from .pose_estimator_base import PoseEstimatorBase
from .types import Pose

# MediaPipe landmark index for each COCO keypoint id
MEDIAPIPE_TO_COCO = [
    0,  # nose
    2,  # left_eye
    5,  # right_eye
    7,  # left_ear
    8,  # right_ear
    11,  # left_shoulder
    12,  # right_shoulder
    13,  # left_elbow
    14,  # right_elbow
    15,  # left_wrist
    16,  # right_wrist
    23,  # left_hip
    24,  # right_hip
    25,  # left_knee
    26,  # right_knee
    27,  # left_ankle
    28,  # right_ankle
]


class MediaPipePoseEstimator(PoseEstimatorBase):
    """MediaPipe Pose Landmarker with output mapped to the COCO layout."""

    def __init__(self, cfg: dict):
        """Initialize MediaPipe Pose estimator."""
        super().__init__(cfg)
        self.model_path = cfg.get(
            "mediapipe_model_path", "models/pose_landmarker_lite.task"
        )
        self.last_timestamp_ms = 0

    def load_model(self, cfg: dict):
        """Load MediaPipe Pose Landmarker model."""
        logger.info(f"Loading MediaPipe Pose Landmarker model: {self.model_path}")

        base_options = python.BaseOptions(model_asset_path=self.model_path)
        options = vision.PoseLandmarkerOptions(
            base_options=base_options,
            running_mode=vision.RunningMode.VIDEO,
            num_poses=self.max_poses,
            min_pose_detection_confidence=0.5,
            min_pose_presence_confidence=0.5,
            min_tracking_confidence=0.5,
        )
        self.model = vision.PoseLandmarker.create_from_options(options)

    def detect(self, frame: np.ndarray) -> list[Pose]:
        """
        Detect poses in the full frame.

        Returns:
            Poses with COCO keypoints in frame pixel coordinates
        """
        if self.model is None:
            raise RuntimeError("MediaPipe Pose Landmarker not initialized")

        h, w = frame.shape[:2]
        image_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=image_rgb)

        # VIDEO mode needs strictly increasing timestamps
        self.last_timestamp_ms += 33

        detection_result = self.model.detect_for_video(mp_image, self.last_timestamp_ms)

        return [
            self._landmarks_to_pose(landmarks, w, h)
            for landmarks in (detection_result.pose_landmarks or [])
        ]

    def _landmarks_to_pose(self, landmarks, width: int, height: int) -> Pose:
        """Convert normalized MediaPipe landmarks to a COCO pose in pixels."""
        keypoints = np.zeros((len(MEDIAPIPE_TO_COCO), 3))
        for coco_idx, mp_idx in enumerate(MEDIAPIPE_TO_COCO):
            landmark = landmarks[mp_idx]
            conf = landmark.visibility if hasattr(landmark, "visibility") else 1.0
            keypoints[coco_idx] = [landmark.x * width, landmark.y * height, conf or 0.0]
        return Pose(keypoints)

    def close(self):
        if self.model is not None:
            self.model.close()
        super().close()
