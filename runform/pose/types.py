#!/usr/bin/env python3
"""
Keypoint and pose containers in the COCO 17-point layout.
"""

from dataclasses import dataclass

import numpy as np

NUM_KEYPOINTS = 17

# COCO landmark indices
COCO_LANDMARKS = {
    "NOSE": 0,
    "LEFT_EYE": 1,
    "RIGHT_EYE": 2,
    "LEFT_EAR": 3,
    "RIGHT_EAR": 4,
    "LEFT_SHOULDER": 5,
    "RIGHT_SHOULDER": 6,
    "LEFT_ELBOW": 7,
    "RIGHT_ELBOW": 8,
    "LEFT_WRIST": 9,
    "RIGHT_WRIST": 10,
    "LEFT_HIP": 11,
    "RIGHT_HIP": 12,
    "LEFT_KNEE": 13,
    "RIGHT_KNEE": 14,
    "LEFT_ANKLE": 15,
    "RIGHT_ANKLE": 16,
}


@dataclass(frozen=True)
class Keypoint:
    """A single 2D body landmark in pixel coordinates."""

    id: int
    x: float
    y: float
    confidence: float

    @property
    def xy(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)


class Pose:
    """
    One detected person: 17 keypoints where the row index is the keypoint id.

    Backed by an array of shape (17, 3) with (x, y, confidence) rows, the same
    layout the YOLO pose models produce.
    """

    def __init__(self, keypoints: np.ndarray):
        keypoints = np.asarray(keypoints, dtype=float)
        if keypoints.shape != (NUM_KEYPOINTS, 3):
            raise ValueError(
                f"Pose expects keypoints of shape ({NUM_KEYPOINTS}, 3), got {keypoints.shape}"
            )
        self.keypoints = keypoints

    def __len__(self) -> int:
        return NUM_KEYPOINTS

    def __iter__(self):
        for idx in range(NUM_KEYPOINTS):
            yield self[idx]

    def __getitem__(self, idx: int) -> Keypoint:
        x, y, conf = self.keypoints[idx]
        return Keypoint(id=idx, x=float(x), y=float(y), confidence=float(conf))

    def get(self, name: str, min_confidence: float = 0.0) -> Keypoint | None:
        """
        Look up a landmark by COCO name.

        Returns:
            The keypoint, or None if its coordinates are not finite or its
            confidence is below ``min_confidence``
        """
        idx = COCO_LANDMARKS[name]
        x, y, conf = self.keypoints[idx]
        if np.isnan(x) or np.isnan(y):
            return None
        if conf < min_confidence:
            return None
        return self[idx]

    @classmethod
    def from_keypoints(cls, keypoints: list[Keypoint]) -> "Pose":
        """Build a pose from keypoints, placing each one at its id."""
        data = np.zeros((NUM_KEYPOINTS, 3))
        data[:, :2] = np.nan
        for kp in keypoints:
            data[kp.id] = [kp.x, kp.y, kp.confidence]
        return cls(data)
