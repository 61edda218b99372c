#!/usr/bin/env python3
"""
Download the pose estimation models used by the running form analyzer.
"""

import os
import urllib.request
from pathlib import Path

MEDIAPIPE_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_lite/float16/1/pose_landmarker_lite.task"


def download_file(url: str, dest_path: str):
    """Download a file from URL to destination path."""
    print(f"Downloading {os.path.basename(dest_path)}...")

    Path(dest_path).parent.mkdir(parents=True, exist_ok=True)

    def download_progress(block_num, block_size, total_size):
        downloaded = block_num * block_size
        percent = min(downloaded * 100 / total_size, 100)
        print(f"Progress: {percent:.1f}%", end="\r")

    try:
        urllib.request.urlretrieve(url, dest_path, reporthook=download_progress)
        print(f"\n✓ Downloaded to {dest_path}")
    except OSError as e:
        print(f"\n✗ Failed to download {os.path.basename(dest_path)}: {e}")
        return False
    return True


def ensure_yolo_model(model_name: str, models_dir: Path):
    """Report whether the YOLO pose weights are already present."""
    model_path = models_dir / model_name
    if model_path.exists():
        print(f"✓ {model_path} already exists")
        return True

    print(f"Note: {model_name} will be automatically downloaded to {model_path}")
    print("      when first used by the application.")
    return True


def main(models_dir: Path = Path("models")):
    """Download all required models."""
    models_dir.mkdir(exist_ok=True)

    print("=== Downloading Pose Models ===\n")

    print("1. YOLO Pose Model")
    ensure_yolo_model("yolo11n-pose.pt", models_dir)

    print("\n2. MediaPipe Pose Landmarker Model")
    pose_model_path = models_dir / "pose_landmarker_lite.task"

    if not pose_model_path.exists():
        download_file(MEDIAPIPE_MODEL_URL, str(pose_model_path))
    else:
        print(f"✓ {pose_model_path} already exists, skipping download.")

    print(f"\nModels directory: {models_dir.absolute()}")


if __name__ == "__main__":
    main()
