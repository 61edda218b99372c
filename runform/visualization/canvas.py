#!/usr/bin/env python3
"""
Drawing surfaces for the skeleton overlay.
"""

from abc import ABC, abstractmethod

import cv2
import numpy as np


class DrawingSurface(ABC):
    """2D surface sized to the native frame dimensions."""

    width: int
    height: int

    @abstractmethod
    def clear(self):
        """Erase everything drawn so far."""
        pass

    @abstractmethod
    def circle(
        self, center: tuple[int, int], radius: int, color: tuple[int, int, int]
    ):
        """Draw a filled circle."""
        pass

    @abstractmethod
    def line(
        self,
        start: tuple[int, int],
        end: tuple[int, int],
        color: tuple[int, int, int],
        thickness: int,
    ):
        """Draw a straight line segment."""
        pass

    def resize(self, width: int, height: int):
        """Match a new frame size; drawing is discarded."""
        self.width = width
        self.height = height
        self.clear()


class OverlayCanvas(DrawingSurface):
    """Transparent BGRA layer drawn with OpenCV and blended onto frames."""

    def __init__(self, width: int = 640, height: int = 480):
        self.width = width
        self.height = height
        self.image = np.zeros((height, width, 4), dtype=np.uint8)

    def clear(self):
        if self.image.shape[:2] != (self.height, self.width):
            self.image = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        else:
            self.image[:] = 0

    def circle(self, center, radius, color):
        cv2.circle(self.image, center, radius, (*color, 255), -1, cv2.LINE_AA)

    def line(self, start, end, color, thickness):
        cv2.line(self.image, start, end, (*color, 255), thickness, cv2.LINE_AA)

    def is_blank(self) -> bool:
        return not self.image[:, :, 3].any()

    def composite(self, frame: np.ndarray) -> np.ndarray:
        """
        Blend the overlay onto a BGR frame of the same size.

        Returns:
            New BGR image; the input frame is left untouched
        """
        if frame.shape[:2] != self.image.shape[:2]:
            raise ValueError(
                f"Frame size {frame.shape[1]}x{frame.shape[0]} does not match "
                f"overlay {self.width}x{self.height}"
            )
        alpha = self.image[:, :, 3:4].astype(np.float32) / 255.0
        blended = frame.astype(np.float32) * (1 - alpha) + self.image[:, :, :3] * alpha
        return blended.astype(np.uint8)
