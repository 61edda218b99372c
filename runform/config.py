#!/usr/bin/env python3
"""
Configuration loading for the running form analyzer.
"""

import copy
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "configs" / "default.yaml"

DEFAULT_CONFIG = {
    "pose_detector": "yolo",
    "pose_model": "models/yolo11n-pose.pt",
    "mediapipe_model_path": "models/pose_landmarker_lite.task",
    "device": "auto",
    "conf_min": 0.25,
    "max_poses": 6,
    "log_level": "INFO",
    "metrics": {
        "min_keypoint_confidence": 0.0,
        "strike_threshold_px": 5,
        "cadence_window_ms": 10000,
        "min_strikes": 4,
    },
    "overlay": {
        "conf_threshold": 0.3,
        "point_radius": 4,
        "line_thickness": 2,
        "color": [255, 255, 0],
    },
    "loop": {
        "frame_interval_s": 0.016,
        "image_delay_s": 0.1,
        "playback_rates": [1.0, 0.5],
    },
}


def _merge(base: dict, override: dict) -> dict:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Path | str | None = None) -> dict:
    """
    Load configuration from a YAML file on top of the built-in defaults.

    Args:
        config_path: Path to a YAML file. None returns the defaults only.

    Returns:
        Nested configuration dictionary
    """
    if config_path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_path) as f:
        loaded = yaml.safe_load(f) or {}

    return _merge(DEFAULT_CONFIG, loaded)
