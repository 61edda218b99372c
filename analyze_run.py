#!/usr/bin/env python3
"""
RunForm: live running form analysis from a camera, a video or a photo.
Drives the frame loop and shows the skeleton overlay with the metrics panel.
"""

import argparse
import asyncio
import time
from pathlib import Path

import cv2
import numpy as np

from runform.config import DEFAULT_CONFIG_PATH, load_config
from runform.logging_config import setup_logging
from runform.loop.controller import EngineState, FrameLoopController, InputMode
from runform.metrics.classifier import get_feedback, oscillation_rating
from runform.metrics.state import MetricSnapshot
from runform.pose.estimate_pose import create_pose_estimator
from runform.sources.frame_source import (
    CameraSource,
    FrameSource,
    VideoSource,
    open_media_source,
)
from runform.utils.visual import draw_metrics_panel
from runform.visualization.canvas import OverlayCanvas
from runform.visualization.plotter import MetricsPlotter

WINDOW_NAME = "RunForm"


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Analyze running form from a camera, video or image"
    )
    parser.add_argument(
        "--source",
        type=str,
        default="0",
        help="Camera index, or path to a video (.mp4) or image (.jpg, .png)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Configuration file path",
    )
    parser.add_argument(
        "--pose-detector",
        type=str,
        default=None,
        choices=["yolo", "mediapipe"],
        help="Pose estimation engine (default: from config)",
    )
    parser.add_argument(
        "--no-preview", action="store_true", help="Disable live preview window"
    )
    parser.add_argument(
        "--realtime-plot",
        action="store_true",
        help="Show a real-time plot of the running metrics",
    )
    return parser.parse_args(argv)


def resolve_source(source: str) -> tuple[InputMode, FrameSource]:
    """Open the camera for a numeric source, otherwise the media file."""
    if source.isdigit():
        return InputMode.CAMERA, CameraSource(int(source))

    media = open_media_source(Path(source))
    if isinstance(media, VideoSource):
        return InputMode.VIDEO, media
    return InputMode.IMAGE, media


def format_snapshot(snapshot: MetricSnapshot) -> str:
    feedback = get_feedback(snapshot.lean_class)
    return (
        f"lean {snapshot.torso_lean_deg:+d} deg ({feedback.message}) | "
        f"knee {snapshot.knee_angle_deg} | hip {snapshot.hip_angle_deg} | "
        f"osc {snapshot.vertical_oscillation_px}px "
        f"({oscillation_rating(snapshot.vertical_oscillation_px)}) | "
        f"head {snapshot.head_alignment_deg:+d} | cadence {snapshot.cadence_spm} spm"
    )


class RunFormView:
    """Collects rendered frames and metrics for the preview and the console."""

    def __init__(self, plotter: MetricsPlotter | None = None, print_every: int = 30):
        self.plotter = plotter
        self.print_every = print_every
        self.latest = None
        self.frames_with_pose = 0
        self.snapshot = None

    def on_metrics(self, snapshot: MetricSnapshot):
        self.frames_with_pose += 1
        self.snapshot = snapshot
        if self.plotter is not None:
            self.plotter.add_sample(time.monotonic() * 1000, snapshot)
        if self.frames_with_pose % self.print_every == 0:
            print(f"[{self.frames_with_pose}] {format_snapshot(snapshot)}")

    def on_frame(self, frame: np.ndarray, surface: OverlayCanvas):
        output = surface.composite(frame)
        if self.snapshot is not None:
            draw_metrics_panel(output, self.snapshot)
        self.latest = output


async def run_session(
    controller: FrameLoopController,
    mode: InputMode,
    source: FrameSource,
    view: RunFormView,
    preview: bool,
):
    """Start the loop for the source and service the preview until done."""
    if mode == InputMode.VIDEO:
        controller.play(source)
    else:
        controller.start(mode, source)

    while True:
        await asyncio.sleep(0.01)

        if controller.state == EngineState.SOURCE_LOST:
            print(f"Error: {controller.halt_reason}")
            break

        if preview:
            if view.latest is not None:
                cv2.imshow(WINDOW_NAME, view.latest)
            key = cv2.waitKey(1) & 0xFF
            if key == ord("q"):
                break
            if mode == InputMode.VIDEO and key == ord(" "):
                controller.toggle_playback()
            elif mode == InputMode.VIDEO and key == ord("s"):
                print(f"Playback speed: {controller.toggle_speed()}x")
        elif not controller.running:
            break

    await controller.close()


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    cfg = load_config(args.config)
    setup_logging(cfg.get("log_level", "INFO"))

    detector_type = args.pose_detector or cfg.get("pose_detector", "yolo")

    try:
        mode, source = resolve_source(args.source)
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        print(f"Error: {e}")
        return 1

    plotter = None
    if args.realtime_plot:
        plotter = MetricsPlotter(window_ms=cfg["metrics"]["cadence_window_ms"])
        plotter.init_realtime_plot()

    view = RunFormView(plotter)
    estimator = create_pose_estimator(detector_type, cfg)
    controller = FrameLoopController(
        estimator,
        cfg,
        surface=OverlayCanvas(source.width, source.height),
        on_metrics=view.on_metrics,
        on_frame=view.on_frame,
    )

    print(f"Input: {mode.value} ({args.source}, {source.width}x{source.height})")
    print(f"Pose detector: {detector_type}")
    if not args.no_preview:
        print("\nKeys: 'q' quit, space play/pause, 's' toggle 0.5x speed")

    async def run():
        if not await controller.load_model():
            print("Error: pose model could not be loaded")
            return 1
        await run_session(controller, mode, source, view, not args.no_preview)
        return 0

    try:
        status = asyncio.run(run())
    finally:
        source.close()
        if plotter is not None:
            plotter.close()
        if not args.no_preview:
            cv2.destroyAllWindows()

    if view.snapshot is not None:
        print(f"\nLast reading: {format_snapshot(view.snapshot)}")
    else:
        print("\nNo runner detected.")
    return status


if __name__ == "__main__":
    raise SystemExit(main())
