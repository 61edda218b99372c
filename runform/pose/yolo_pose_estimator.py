#!/usr/bin/env python3
"""
YOLO-Pose estimator implementation.
"""


import numpy as np
import torch
from loguru import logger
from ultralytics import YOLO

from .pose_estimator_base import PoseEstimatorBase
from .types import NUM_KEYPOINTS, Pose


def resolve_device(device: str = "auto") -> str:
    """Pick cuda, then Apple Silicon mps, then cpu when ``device`` is 'auto'."""
    if device != "auto":
        return device
    if torch.cuda.is_available():
        return "cuda"
    if torch.backends.mps.is_available():
        return "mps"
    return "cpu"


class YOLOPoseEstimator(PoseEstimatorBase):
    """YOLO-Pose estimator running on the full frame."""

    def __init__(self, cfg: dict):
        """Initialize YOLO-Pose estimator."""
        super().__init__(cfg)
        self.model_path = cfg.get("pose_model", "models/yolo11n-pose.pt")
        self.device = None
        self.target_size = 640

    def load_model(self, cfg: dict):
        """Load YOLO-Pose model."""
        self.device = resolve_device(cfg.get("device", "auto"))
        logger.info(f"Loading YOLO-Pose model: {self.model_path} (device: {self.device})")
        self.model = YOLO(self.model_path)

    def detect(self, frame: np.ndarray) -> list[Pose]:
        """
        Detect poses for everyone in the frame.

        Returns:
            Poses ordered as YOLO returns them (by detection confidence)
        """
        if self.model is None:
            raise RuntimeError("YOLO-Pose model not initialized")

        results = self.model(
            frame,
            imgsz=self.target_size,
            conf=self.conf_min,
            max_det=self.max_poses,
            device=self.device,
            verbose=False,
        )
        return self._results_to_poses(results)

    def _results_to_poses(self, results) -> list[Pose]:
        poses = []
        if results and len(results) > 0:
            result = results[0]
            if hasattr(result, "keypoints") and result.keypoints is not None:
                kpts_data = result.keypoints.data
                for person_idx in range(kpts_data.shape[0]):
                    kpts = kpts_data[person_idx].cpu().numpy()  # Shape: (17, 3)
                    if kpts.shape[0] != NUM_KEYPOINTS:
                        continue
                    poses.append(Pose(kpts))
        return poses
