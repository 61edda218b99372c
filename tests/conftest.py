"""Pytest configuration and shared fixtures."""

import asyncio
import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from runform.errors import FrameSourceError  # noqa: E402
from runform.pose.pose_estimator_base import PoseEstimatorBase  # noqa: E402
from runform.pose.types import Pose  # noqa: E402
from runform.sources.frame_source import FrameSource, PlaybackSource  # noqa: E402
from runform.visualization.canvas import DrawingSurface  # noqa: E402


class FakePoseEstimator(PoseEstimatorBase):
    """Estimator that replays scripted results instead of running a model."""

    def __init__(self, results=None, loaded=True, fail_load=False):
        super().__init__({})
        self.results = list(results or [])
        self.model = object() if loaded else None
        self.fail_load = fail_load
        self.calls = 0
        self.gate = None
        self.entered = None

    def load_model(self, cfg: dict):
        if self.fail_load:
            raise OSError("model file missing")
        self.model = object()

    def detect(self, frame):
        self.calls += 1
        if not self.results:
            return []
        if len(self.results) == 1:
            return self.results[0]
        return self.results.pop(0)

    async def estimate(self, frame):
        if self.gate is not None:
            self.entered.set()
            await self.gate.wait()
        return self.detect(frame)

    def hold(self):
        """Block the next estimate until ``gate`` is set."""
        self.gate = asyncio.Event()
        self.entered = asyncio.Event()


class FakeFrameSource(FrameSource):
    """Camera or still image stand-in returning a fixed frame."""

    def __init__(self, frame, ready=True, fail_after=None):
        self.frame = frame
        self.height, self.width = frame.shape[:2]
        self.ready = ready
        self.fail_after = fail_after
        self.reads = 0

    def is_ready(self) -> bool:
        return self.ready

    def read(self):
        self.reads += 1
        if self.fail_after is not None and self.reads > self.fail_after:
            raise FrameSourceError("camera unplugged")
        return self.frame


class FakeVideoSource(PlaybackSource):
    """Video stand-in that ends after ``num_frames`` reads while playing."""

    def __init__(self, frame, num_frames=5):
        self.frame = frame
        self.height, self.width = frame.shape[:2]
        self.num_frames = num_frames
        self.reads = 0
        self.ended = False
        self._playing = False
        self._rate = 1.0

    @property
    def playing(self) -> bool:
        return self._playing and not self.ended

    @property
    def playback_rate(self) -> float:
        return self._rate

    @playback_rate.setter
    def playback_rate(self, rate: float):
        if rate <= 0:
            raise ValueError("rate must be positive")
        self._rate = rate

    def play(self):
        self._playing = True

    def pause(self):
        self._playing = False

    def is_ready(self) -> bool:
        return True

    def read(self):
        self.reads += 1
        if self.reads >= self.num_frames:
            self.ended = True
        return self.frame


class RecordingSurface(DrawingSurface):
    """Drawing surface that records primitives instead of drawing them."""

    def __init__(self, width=640, height=480):
        self.width = width
        self.height = height
        self.circles = []
        self.lines = []
        self.clears = 0

    def clear(self):
        self.clears += 1
        self.circles = []
        self.lines = []

    def circle(self, center, radius, color):
        self.circles.append(center)

    def line(self, start, end, color, thickness):
        self.lines.append((start, end))


@pytest.fixture
def sample_keypoints():
    """Sample COCO keypoints for testing (17 keypoints)."""
    # Format: x, y, confidence
    keypoints = np.array(
        [
            [100, 200, 0.9],  # 0: nose
            [90, 220, 0.8],  # 1: left_eye
            [110, 220, 0.8],  # 2: right_eye
            [85, 230, 0.7],  # 3: left_ear
            [115, 230, 0.7],  # 4: right_ear
            [80, 280, 0.85],  # 5: left_shoulder
            [120, 280, 0.85],  # 6: right_shoulder
            [75, 350, 0.8],  # 7: left_elbow
            [125, 350, 0.8],  # 8: right_elbow
            [70, 420, 0.75],  # 9: left_wrist
            [130, 420, 0.75],  # 10: right_wrist
            [85, 380, 0.9],  # 11: left_hip
            [115, 380, 0.9],  # 12: right_hip
            [80, 450, 0.85],  # 13: left_knee
            [120, 450, 0.85],  # 14: right_knee
            [75, 520, 0.8],  # 15: left_ankle
            [125, 520, 0.8],  # 16: right_ankle
        ],
        dtype=float,
    )
    return keypoints


@pytest.fixture
def sample_pose(sample_keypoints):
    return Pose(sample_keypoints)


@pytest.fixture
def sample_frame():
    """Create a sample video frame for testing."""
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    frame[100:200, 100:200] = [255, 0, 0]  # Blue square
    return frame


@pytest.fixture
def fast_cfg():
    """Configuration with no waiting between iterations."""
    return {
        "loop": {"frame_interval_s": 0.0, "image_delay_s": 0.0, "playback_rates": [1.0, 0.5]},
        "metrics": {},
        "overlay": {"conf_threshold": 0.3},
    }


@pytest.fixture
def temp_output_dir(tmp_path):
    """Create a temporary output directory for tests."""
    output_dir = tmp_path / "test_output"
    output_dir.mkdir()
    return output_dir
