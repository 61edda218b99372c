#!/usr/bin/env python3
"""
Visual utilities for drawing the runner skeleton and the metrics read-out.
"""

from typing import Optional, Tuple

import cv2
import numpy as np

from runform.metrics.classifier import (
    ELITE_REFERENCE,
    get_feedback,
    oscillation_rating,
)
from runform.metrics.state import MetricSnapshot
from runform.pose.types import Pose
from runform.visualization.canvas import DrawingSurface

# COCO connections used for running form (0-based indexing)
RUNNER_SKELETON = [
    (5, 6),
    (5, 7),
    (7, 9),
    (6, 8),
    (8, 10),  # Arms
    (5, 11),
    (6, 12),
    (11, 12),  # Torso
    (11, 13),
    (13, 15),
    (12, 14),
    (14, 16),  # Legs
]

OVERLAY_COLOR = (255, 255, 0)  # Cyan in BGR, readable over most footage


def draw_keypoints(
    surface: DrawingSurface,
    pose: Pose,
    conf_threshold: float = 0.3,
    color: Tuple[int, int, int] = OVERLAY_COLOR,
    radius: int = 4,
):
    """Draw a filled marker at every keypoint above the confidence threshold."""
    for x, y, conf in pose.keypoints:
        if conf > conf_threshold and not np.isnan(x) and not np.isnan(y):
            surface.circle((int(x), int(y)), radius, color)


def draw_skeleton(
    surface: DrawingSurface,
    pose: Pose,
    conf_threshold: float = 0.3,
    color: Tuple[int, int, int] = OVERLAY_COLOR,
    thickness: int = 2,
):
    """Draw skeleton edges whose two endpoints both clear the threshold."""
    keypoints = pose.keypoints
    for kpt_a, kpt_b in RUNNER_SKELETON:
        xa, ya, conf_a = keypoints[kpt_a]
        xb, yb, conf_b = keypoints[kpt_b]
        if conf_a > conf_threshold and conf_b > conf_threshold:
            if np.isnan([xa, ya, xb, yb]).any():
                continue
            surface.line((int(xa), int(ya)), (int(xb), int(yb)), color, thickness)


def draw_pose(surface: DrawingSurface, pose: Pose | None, cfg: dict | None = None):
    """
    Render one pose onto the surface (in-place).

    Args:
        surface: Drawing surface sized to the frame
        pose: Pose to draw; None draws nothing
        cfg: ``overlay`` section of the configuration
    """
    if pose is None:
        return

    cfg = cfg or {}
    conf_threshold = cfg.get("conf_threshold", 0.3)
    color = tuple(cfg.get("color", OVERLAY_COLOR))

    draw_keypoints(surface, pose, conf_threshold, color, cfg.get("point_radius", 4))
    draw_skeleton(surface, pose, conf_threshold, color, cfg.get("line_thickness", 2))


def overlay_text(
    image: np.ndarray,
    text: str,
    position: Tuple[int, int],
    font_scale: float = 0.6,
    color: Tuple[int, int, int] = (255, 255, 255),
    thickness: int = 2,
    bg_color: Optional[Tuple[int, int, int]] = (0, 0, 0),
) -> np.ndarray:
    """
    Overlay text on an image with optional background.

    Args:
        image: Input image
        text: Text to overlay
        position: (x, y) position for text
        font_scale: Font scale
        color: Text color (BGR)
        thickness: Text thickness
        bg_color: Optional background color

    Returns:
        Image with text overlay
    """
    font = cv2.FONT_HERSHEY_SIMPLEX

    (text_width, text_height), baseline = cv2.getTextSize(
        text, font, font_scale, thickness
    )

    x, y = position

    if bg_color is not None:
        cv2.rectangle(
            image,
            (x - 5, y - text_height - baseline - 5),
            (x + text_width + 5, y + baseline + 5),
            bg_color,
            -1,
        )

    cv2.putText(image, text, (x, y), font, font_scale, color, thickness, cv2.LINE_AA)

    return image


def draw_metrics_panel(
    image: np.ndarray,
    snapshot: MetricSnapshot,
    origin: Tuple[int, int] = (15, 30),
    line_height: int = 30,
) -> np.ndarray:
    """Write the snapshot values down the left edge of the image."""
    feedback = get_feedback(snapshot.lean_class)
    lines = [
        (f"Torso lean: {snapshot.torso_lean_deg} deg", (255, 255, 255)),
        (feedback.message, feedback.color),
        (f"Knee angle: {snapshot.knee_angle_deg} deg", (255, 255, 255)),
        (f"Hip angle: {snapshot.hip_angle_deg} deg", (255, 255, 255)),
        (
            f"Vertical osc.: {snapshot.vertical_oscillation_px} px "
            f"({oscillation_rating(snapshot.vertical_oscillation_px)})",
            (255, 255, 255),
        ),
        (f"Head alignment: {snapshot.head_alignment_deg} deg", (255, 255, 255)),
        (f"Cadence: {snapshot.cadence_spm} spm", (255, 255, 255)),
        (ELITE_REFERENCE, (180, 180, 180)),
    ]

    x, y = origin
    for text, color in lines:
        overlay_text(image, text, (x, y), color=color)
        y += line_height

    return image
