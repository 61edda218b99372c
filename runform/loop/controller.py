#!/usr/bin/env python3
"""
Frame loop controller: pulls frames, runs pose estimation, updates the running
metrics and draws the overlay, rescheduling itself until cancelled.

Everything runs on one asyncio event loop. Each iteration suspends only while
the pose estimator works, so session state is never touched concurrently.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import numpy as np
from loguru import logger

from runform.errors import FrameSourceError
from runform.metrics.calculator import MetricSet, PoseMetricsCalculator
from runform.metrics.state import MetricSnapshot
from runform.pose.pose_estimator_base import PoseEstimatorBase
from runform.sources.frame_source import FrameSource, PlaybackSource
from runform.utils.visual import draw_pose
from runform.visualization.canvas import DrawingSurface, OverlayCanvas


class EngineState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    CAMERA_LOOP = "camera_loop"
    VIDEO_LOOP = "video_loop"
    IMAGE_PASS = "image_pass"
    SOURCE_LOST = "source_lost"


class InputMode(str, Enum):
    CAMERA = "camera"
    VIDEO = "video"
    IMAGE = "image"


@dataclass(frozen=True)
class LoopStrategy:
    """How one input mode drives the shared per-frame pipeline."""

    state: EngineState
    metric_set: MetricSet
    single_shot: bool = False
    requires_playback: bool = False


LOOP_STRATEGIES = {
    # Live camera keeps the per-frame work to the torso lean
    InputMode.CAMERA: LoopStrategy(EngineState.CAMERA_LOOP, MetricSet.LEAN_ONLY),
    InputMode.VIDEO: LoopStrategy(
        EngineState.VIDEO_LOOP, MetricSet.FULL, requires_playback=True
    ),
    InputMode.IMAGE: LoopStrategy(
        EngineState.IMAGE_PASS, MetricSet.FULL, single_shot=True
    ),
}

LOOP_STATES = {strategy.state for strategy in LOOP_STRATEGIES.values()}


class CancellationToken:
    """One-way flag owned by a single loop run."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        self._cancelled = True


def _wall_clock_ms() -> float:
    return time.time() * 1000


class FrameLoopController:
    """
    Owns the detection session: metric state, the drawing surface and the one
    loop task in flight.

    Args:
        estimator: Pose estimator (loaded by ``load_model``)
        cfg: Full configuration dictionary
        surface: Drawing surface; an OverlayCanvas is created if omitted
        on_metrics: Called with the snapshot after every frame with a pose
        on_frame: Called with (frame, surface) after every render
        clock_ms: Time source in milliseconds, used for cadence
    """

    def __init__(
        self,
        estimator: PoseEstimatorBase,
        cfg: dict | None = None,
        surface: DrawingSurface | None = None,
        on_metrics: Callable[[MetricSnapshot], None] | None = None,
        on_frame: Callable[[np.ndarray, DrawingSurface], None] | None = None,
        clock_ms: Callable[[], float] = _wall_clock_ms,
    ):
        cfg = cfg or {}
        loop_cfg = cfg.get("loop", {})

        self.estimator = estimator
        self.cfg = cfg
        self.overlay_cfg = cfg.get("overlay", {})
        self.frame_interval_s = loop_cfg.get("frame_interval_s", 0.016)
        self.image_delay_s = loop_cfg.get("image_delay_s", 0.1)
        self.playback_rates = loop_cfg.get("playback_rates", [1.0, 0.5])

        self.surface = surface or OverlayCanvas()
        self.on_metrics = on_metrics
        self.on_frame = on_frame
        self.clock_ms = clock_ms

        self.calculator = PoseMetricsCalculator(cfg=cfg.get("metrics", {}))
        self.state = EngineState.IDLE
        self.mode: InputMode | None = None
        self.source: FrameSource | None = None
        self.halt_reason: str | None = None

        self._task: asyncio.Task | None = None
        self._token: CancellationToken | None = None

    @property
    def snapshot(self) -> MetricSnapshot:
        return self.calculator.snapshot

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def load_model(self) -> bool:
        """
        Load the pose estimator off the event loop thread.

        Returns:
            True once READY. On failure the controller stays in LOADING and
            never retries.
        """
        self._set_state(EngineState.LOADING)
        try:
            await asyncio.to_thread(self.estimator.load_model, self.cfg)
        except Exception:
            logger.exception("Pose model failed to load")
            return False

        self._set_state(EngineState.READY)
        return True

    def start(self, mode: InputMode | str, source: FrameSource) -> asyncio.Task:
        """
        Start the loop strategy for ``mode`` on ``source``.

        Any loop already in flight is cancelled first, and the new loop waits
        for it to wind down before estimating. Changing the mode or the source
        begins a new session with fresh metric state.
        """
        mode = InputMode(mode)

        if self.state == EngineState.LOADING:
            raise RuntimeError("Pose model is still loading")
        if self.state == EngineState.SOURCE_LOST:
            raise RuntimeError(f"Frame source lost: {self.halt_reason}")
        if not self.estimator.is_loaded:
            raise RuntimeError("Pose model not initialized")

        self.cancel()

        if mode != self.mode or source is not self.source:
            self.new_session()
        self.mode = mode
        self.source = source
        self.surface.resize(source.width, source.height)

        strategy = LOOP_STRATEGIES[mode]
        token = CancellationToken()
        self._token = token
        self._set_state(strategy.state)

        self._task = asyncio.create_task(
            self._run(strategy, source, token, previous=self._task)
        )
        self._task.add_done_callback(self._on_task_done)
        return self._task

    def cancel(self):
        """Stop scheduling further iterations of the current loop."""
        if self._token is not None:
            self._token.cancel()
        if self.state in LOOP_STATES:
            self._set_state(EngineState.IDLE)

    async def stop(self):
        """Cancel the loop and wait for an in-flight iteration to wind down."""
        self.cancel()
        if self._task is not None and not self._task.done():
            await asyncio.wait([self._task])

    async def switch_mode(self, mode: InputMode | str, source: FrameSource) -> asyncio.Task:
        """Tear down the current loop and start a fresh session on a new input."""
        await self.stop()
        self.mode = None
        return self.start(mode, source)

    def new_session(self):
        """Reset snapshot, oscillation baseline and cadence window."""
        self.calculator.reset()
        logger.debug("Started a new metrics session")

    def halt(self, reason: str):
        """
        Stop for good after the frame source became unavailable.

        The controller refuses to start again; a new one must be created.
        """
        if self._token is not None:
            self._token.cancel()
        self.halt_reason = reason
        self._set_state(EngineState.SOURCE_LOST)
        logger.error(f"Frame source unavailable, detection halted: {reason}")

    async def close(self):
        """Dispose of the controller and its estimator."""
        await self.stop()
        self.estimator.close()

    # Video playback intents

    def play(self, source: PlaybackSource | None = None) -> asyncio.Task:
        """Start or resume playback and the video loop with it."""
        if source is not None and not isinstance(source, PlaybackSource):
            raise ValueError("Playback controls need a video source")
        video = source or self._require_video()
        video.play()
        return self.start(InputMode.VIDEO, video)

    def pause(self):
        video = self._require_video()
        video.pause()
        self.cancel()

    def toggle_playback(self):
        video = self._require_video()
        if video.playing:
            self.pause()
        else:
            self.play()

    def set_playback_rate(self, rate: float):
        self._require_video().playback_rate = rate

    def toggle_speed(self) -> float:
        """Switch between normal and slow motion."""
        normal, slow = self.playback_rates[0], self.playback_rates[1]
        video = self._require_video()
        rate = slow if video.playback_rate == normal else normal
        video.playback_rate = rate
        return rate

    # Loop internals

    async def _run(
        self,
        strategy: LoopStrategy,
        source: FrameSource,
        token: CancellationToken,
        previous: asyncio.Task | None = None,
    ):
        try:
            # The estimator is not thread-safe: let a cancelled loop finish
            # its in-flight estimate before this one issues the next
            if previous is not None and not previous.done():
                await asyncio.wait([previous])

            if strategy.single_shot:
                await asyncio.sleep(self.image_delay_s)

            while not token.cancelled:
                if strategy.requires_playback and not getattr(source, "playing", False):
                    break

                await self._process_frame(strategy, source, token)

                if strategy.single_shot:
                    break
                await asyncio.sleep(self.frame_interval_s)
        except FrameSourceError as e:
            if not token.cancelled:
                self.halt(str(e))
        finally:
            if self._token is token and not token.cancelled:
                token.cancel()
                self._set_state(EngineState.IDLE)

    async def _process_frame(
        self, strategy: LoopStrategy, source: FrameSource, token: CancellationToken
    ):
        if not source.is_ready():
            return

        frame = source.read()
        if frame is None:
            return

        poses = await self.estimator.estimate(frame)
        if token.cancelled:
            logger.debug("Loop cancelled during estimation, discarding result")
            return

        height, width = frame.shape[:2]
        if (self.surface.width, self.surface.height) != (width, height):
            self.surface.resize(width, height)
        self.surface.clear()

        if poses:
            pose = poses[0]
            self.calculator.update(pose, self.clock_ms(), strategy.metric_set)
            draw_pose(self.surface, pose, self.overlay_cfg)
            if self.on_metrics is not None:
                self.on_metrics(self.snapshot)

        if self.on_frame is not None:
            self.on_frame(frame, self.surface)

    def _on_task_done(self, task: asyncio.Task):
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.opt(exception=error).error("Detection loop failed")

    def _require_video(self) -> PlaybackSource:
        if self.mode != InputMode.VIDEO or not isinstance(self.source, PlaybackSource):
            raise ValueError("Playback controls need a video source")
        return self.source

    def _set_state(self, state: EngineState):
        if state != self.state:
            logger.debug(f"Engine state {self.state.value} -> {state.value}")
            self.state = state
