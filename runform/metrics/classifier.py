#!/usr/bin/env python3
"""
Torso lean and vertical oscillation ratings for coaching feedback.
"""

from dataclasses import dataclass
from enum import Enum


class LeanClass(str, Enum):
    BACKWARD = "backward"
    UPRIGHT = "upright"
    GOOD = "good"
    EXCESSIVE = "excessive"


@dataclass(frozen=True)
class LeanFeedback:
    """Display descriptor for a lean class."""

    message: str
    color: tuple[int, int, int]  # BGR


# Calibrated for distance runners: an optimal lean sits around 3-8 degrees
LEAN_FEEDBACK = {
    LeanClass.BACKWARD: LeanFeedback("Leaning Backward", (80, 80, 255)),
    LeanClass.UPRIGHT: LeanFeedback("Upright", (0, 255, 255)),
    LeanClass.GOOD: LeanFeedback("Good Forward Lean", (20, 255, 57)),
    LeanClass.EXCESSIVE: LeanFeedback("Excessive Lean", (0, 165, 255)),
}

ELITE_REFERENCE = "Elite: Torso 3-8 deg | Osc. <40px | Cadence 180+ SPM"


def classify_lean(angle: float) -> LeanClass:
    """
    Map a torso lean angle to a coaching category.

    Args:
        angle: Torso lean in degrees, positive = forward

    Returns:
        LeanClass; boundary values fall into the lower-angle bucket
    """
    if angle < -5:
        return LeanClass.BACKWARD
    if angle < 3:
        return LeanClass.UPRIGHT
    if angle <= 12:
        return LeanClass.GOOD
    return LeanClass.EXCESSIVE


def oscillation_rating(oscillation_px: float) -> str:
    """Rate a vertical oscillation reading: Excellent, Good or High."""
    if oscillation_px < 40:
        return "Excellent"
    if oscillation_px < 60:
        return "Good"
    return "High"


def get_feedback(lean_class: LeanClass) -> LeanFeedback:
    """Feedback message and color for a lean class."""
    return LEAN_FEEDBACK.get(lean_class, LEAN_FEEDBACK[LeanClass.UPRIGHT])
