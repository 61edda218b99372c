#!/usr/bin/env python3
"""
Session-scoped metric state: the published snapshot and the trackers' memory.
"""

from dataclasses import dataclass, field

from .classifier import LeanClass


@dataclass
class MetricSnapshot:
    """Latest biomechanics read-out, updated once per frame that has a pose."""

    torso_lean_deg: int = 0
    lean_class: LeanClass = LeanClass.UPRIGHT
    knee_angle_deg: int = 0
    hip_angle_deg: int = 0
    vertical_oscillation_px: int = 0
    head_alignment_deg: int = 0
    cadence_spm: int = 0

    def as_dict(self) -> dict[str, int | str]:
        return {
            "torso_lean_deg": self.torso_lean_deg,
            "lean_class": self.lean_class.value,
            "knee_angle_deg": self.knee_angle_deg,
            "hip_angle_deg": self.hip_angle_deg,
            "vertical_oscillation_px": self.vertical_oscillation_px,
            "head_alignment_deg": self.head_alignment_deg,
            "cadence_spm": self.cadence_spm,
        }


@dataclass
class OscillationState:
    """Hip-midpoint y of the previous frame, None until the first frame."""

    previous_hip_mid_y: float | None = None


@dataclass
class CadenceState:
    """
    Foot-strike history for one session.

    ``hip_reference`` is the same OscillationState the vertical oscillation
    tracker writes, so ``last_hip_y`` always reflects the latest hip baseline.
    """

    hip_reference: OscillationState
    strike_timestamps: list[float] = field(default_factory=list)

    @property
    def last_hip_y(self) -> float | None:
        return self.hip_reference.previous_hip_mid_y


@dataclass
class SessionState:
    """Everything that lives for one detection run and is reset on restart."""

    snapshot: MetricSnapshot = field(default_factory=MetricSnapshot)
    oscillation: OscillationState = field(default_factory=OscillationState)
    cadence: CadenceState = field(init=False)

    def __post_init__(self):
        self.cadence = CadenceState(hip_reference=self.oscillation)
