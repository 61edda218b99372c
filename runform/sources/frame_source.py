#!/usr/bin/env python3
"""
Frame sources: live camera, video file with playback controls, still image.
"""

import mimetypes
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

import cv2
import numpy as np
import supervision as sv
from loguru import logger

from runform.errors import FrameSourceError


class FrameSource(ABC):
    """Something the frame loop can pull BGR frames from."""

    width: int = 0
    height: int = 0

    @abstractmethod
    def is_ready(self) -> bool:
        """True when a current frame can be read."""
        pass

    @abstractmethod
    def read(self) -> np.ndarray | None:
        """Current frame, or None if none is available right now."""
        pass

    def close(self):
        pass


class CameraSource(FrameSource):
    """
    Live camera stream opened through OpenCV.

    The camera counts as ready once it has delivered a frame; ``is_ready``
    captures one if needed and ``read`` hands that frame out first.
    """

    def __init__(self, index: int = 0, max_read_failures: int = 30):
        self.index = index
        self.max_read_failures = max_read_failures
        self._read_failures = 0
        self._has_frame = False
        self._pending = None

        self.cap = cv2.VideoCapture(index)
        if not self.cap.isOpened():
            raise FrameSourceError(f"Camera {index} could not be opened")

        self.width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

    def is_ready(self) -> bool:
        if self.cap is None or not self.cap.isOpened():
            return False
        if self._pending is None:
            self._pending = self._capture()
        return self._pending is not None

    def read(self) -> np.ndarray | None:
        if self.cap is None or not self.cap.isOpened():
            raise FrameSourceError(f"Camera {self.index} is not open")

        frame, self._pending = self._pending, None
        if frame is None:
            frame = self._capture()
        return frame

    def close(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        self._pending = None

    def _capture(self) -> np.ndarray | None:
        ok, frame = self.cap.read()
        if not ok:
            self._read_failures += 1
            if self._read_failures >= self.max_read_failures:
                raise FrameSourceError(
                    f"Camera {self.index} stopped delivering frames"
                )
            return None

        self._read_failures = 0
        if not self._has_frame:
            self.height, self.width = frame.shape[:2]
            self._has_frame = True
        return frame


class PlaybackSource(FrameSource):
    """A source with media controls: play, pause, end and playback rate."""

    ended: bool = False

    @property
    @abstractmethod
    def playing(self) -> bool:
        pass

    @property
    @abstractmethod
    def playback_rate(self) -> float:
        pass

    @playback_rate.setter
    @abstractmethod
    def playback_rate(self, rate: float):
        pass

    @abstractmethod
    def play(self):
        pass

    @abstractmethod
    def pause(self):
        pass


class VideoSource(PlaybackSource):
    """
    Video file that plays against a clock.

    Frames are chosen by playback position rather than read sequentially, so
    a slow estimator skips frames instead of slowing the video down, and the
    playback rate changes how fast the position advances.
    """

    def __init__(self, path: Path | str, clock: Callable[[], float] = time.monotonic):
        self.path = Path(path)
        if not self.path.exists():
            raise FrameSourceError(f"Video file '{self.path}' does not exist")

        self.cap = cv2.VideoCapture(str(self.path))
        if not self.cap.isOpened():
            raise FrameSourceError(f"Video file '{self.path}' could not be opened")

        video_info = sv.VideoInfo.from_video_path(str(self.path))
        self.width = video_info.width
        self.height = video_info.height
        self.fps = video_info.fps or 30
        self.total_frames = video_info.total_frames

        self._clock = clock
        self._playback_rate = 1.0
        self._position_s = 0.0
        self._resumed_at = None
        self._frame_index = -1
        self._frame = None
        self.ended = False

    @property
    def paused(self) -> bool:
        return self._resumed_at is None

    @property
    def playing(self) -> bool:
        return not self.paused and not self.ended

    @property
    def position_s(self) -> float:
        if self._resumed_at is None:
            return self._position_s
        return self._position_s + (self._clock() - self._resumed_at) * self._playback_rate

    @property
    def playback_rate(self) -> float:
        return self._playback_rate

    @playback_rate.setter
    def playback_rate(self, rate: float):
        if rate <= 0:
            raise ValueError(f"Playback rate must be positive, got {rate}")
        self._fold_position()
        self._playback_rate = rate

    def play(self):
        if self.ended:
            self.seek(0.0)
        if self._resumed_at is None:
            self._resumed_at = self._clock()

    def pause(self):
        self._fold_position()
        self._resumed_at = None

    def seek(self, position_s: float):
        self.cap.set(cv2.CAP_PROP_POS_FRAMES, int(position_s * self.fps))
        self._frame_index = int(position_s * self.fps) - 1
        self._position_s = position_s
        if self._resumed_at is not None:
            self._resumed_at = self._clock()
        self.ended = False

    def is_ready(self) -> bool:
        return self.cap is not None and self.cap.isOpened()

    def read(self) -> np.ndarray | None:
        if not self.is_ready():
            raise FrameSourceError(f"Video file '{self.path}' is not open")

        target = int(self.position_s * self.fps)
        grabbed = False
        while self._frame_index < target:
            if not self.cap.grab():
                self._finish()
                break
            self._frame_index += 1
            grabbed = True

        if grabbed:
            ok, frame = self.cap.retrieve()
            if ok:
                self._frame = frame
        elif self.ended:
            # Nothing new past the last frame
            return None

        return self._frame

    def close(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None

    def _fold_position(self):
        self._position_s = self.position_s
        if self._resumed_at is not None:
            self._resumed_at = self._clock()

    def _finish(self):
        self.pause()
        self.ended = True
        logger.debug(f"Reached end of {self.path.name} at frame {self._frame_index}")


class ImageSource(FrameSource):
    """A single still image."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self.image = cv2.imread(str(self.path))
        if self.image is None:
            raise FrameSourceError(f"Image '{self.path}' could not be read")
        self.height, self.width = self.image.shape[:2]

    def is_ready(self) -> bool:
        return self.image is not None

    def read(self) -> np.ndarray | None:
        return self.image

    def close(self):
        self.image = None


def open_media_source(path: Path | str) -> VideoSource | ImageSource:
    """
    Open an uploaded file as a video or image source based on its media type.

    Raises:
        ValueError: The file is neither a video nor an image
    """
    media_type, _ = mimetypes.guess_type(str(path))
    if media_type and media_type.startswith("video/"):
        return VideoSource(path)
    if media_type and media_type.startswith("image/"):
        return ImageSource(path)
    raise ValueError("Please upload a video (.mp4) or image (.jpg, .png) file")
