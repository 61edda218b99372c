#!/usr/bin/env python3
"""
Abstract base class for pose estimators.
"""

import asyncio
from abc import ABC, abstractmethod

import numpy as np

from .types import Pose


class PoseEstimatorBase(ABC):
    """Abstract base class for full-frame pose estimation engines."""

    def __init__(self, cfg: dict):
        """Initialize with configuration."""
        self.cfg = cfg
        self.model = None
        self.conf_min = cfg.get("conf_min", 0.25)
        self.max_poses = cfg.get("max_poses", 6)

    @abstractmethod
    def load_model(self, cfg: dict):
        """Load the pose estimation model."""
        pass

    @abstractmethod
    def detect(self, frame: np.ndarray) -> list[Pose]:
        """
        Detect every person's keypoints in a frame.

        Args:
            frame: BGR image

        Returns:
            Poses in frame pixel coordinates, most confident first; may be empty
        """
        pass

    @property
    def is_loaded(self) -> bool:
        return self.model is not None

    async def estimate(self, frame: np.ndarray) -> list[Pose]:
        """Run ``detect`` in a worker thread so the event loop stays responsive."""
        return await asyncio.to_thread(self.detect, frame)

    def close(self):
        """Release model resources."""
        self.model = None
