#!/usr/bin/env python3
"""
Real-time plot of the running metrics for the current session.
"""

import matplotlib.pyplot as plt
import numpy as np

from runform.metrics.state import MetricSnapshot


class MetricsPlotter:
    """Live graph of torso lean, knee and hip angles, plus cadence."""

    SERIES = {
        "torso_lean_deg": ("Torso Lean", "c-"),
        "knee_angle_deg": ("Knee Angle", "g-"),
        "hip_angle_deg": ("Hip Angle", "m-"),
    }

    def __init__(self, window_ms: float = 10000, update_interval: int = 5):
        """
        Initialize the plotter.

        Args:
            window_ms: Width of the visible time window
            update_interval: Redraw every N samples
        """
        self.window_ms = window_ms
        self.update_interval = update_interval
        self.fig = None
        self.ax = None
        self.cadence_ax = None
        self.lines = {}
        self.cadence_line = None
        self.frame_count = 0
        self.reset()

    def reset(self):
        """Forget the samples of the previous session."""
        self.time_data = []
        self.data = {key: [] for key in self.SERIES}
        self.cadence_data = []
        self.frame_count = 0

    def init_realtime_plot(self):
        """Initialize the real-time plot window."""
        plt.ion()  # Interactive mode

        self.fig, (self.ax, self.cadence_ax) = plt.subplots(
            2, 1, figsize=(10, 7), sharex=True
        )

        for key, (label, style) in self.SERIES.items():
            (self.lines[key],) = self.ax.plot([], [], style, label=label, linewidth=2)
        (self.cadence_line,) = self.cadence_ax.plot(
            [], [], "y-", label="Cadence", linewidth=2
        )

        self.ax.set_ylabel("Angle (degrees)", fontsize=12)
        self.ax.set_title("Running Form", fontsize=14, fontweight="bold")
        self.ax.legend(loc="upper right", fontsize=10)
        self.ax.grid(True, alpha=0.3)
        self.ax.set_ylim(-30, 180)

        self.cadence_ax.set_xlabel("Time (ms)", fontsize=12)
        self.cadence_ax.set_ylabel("Steps / min", fontsize=12)
        self.cadence_ax.grid(True, alpha=0.3)
        self.cadence_ax.set_ylim(0, 220)

        plt.show(block=False)

    def add_sample(self, timestamp_ms: float, snapshot: MetricSnapshot):
        """Record one snapshot and redraw at the configured interval."""
        self.frame_count += 1

        self.time_data.append(timestamp_ms)
        for key in self.SERIES:
            self.data[key].append(getattr(snapshot, key))
        self.cadence_data.append(snapshot.cadence_spm or np.nan)

        # Keep only the visible window
        while self.time_data and timestamp_ms - self.time_data[0] > self.window_ms:
            self.time_data.pop(0)
            self.cadence_data.pop(0)
            for series in self.data.values():
                series.pop(0)

        if self.fig is None or self.frame_count % self.update_interval != 0:
            return

        for key, line in self.lines.items():
            line.set_data(self.time_data, self.data[key])
        self.cadence_line.set_data(self.time_data, self.cadence_data)

        self.ax.set_xlim(max(0, timestamp_ms - self.window_ms), timestamp_ms + 500)

        self.fig.canvas.draw()
        self.fig.canvas.flush_events()

    def close(self):
        """Close the real-time plot window."""
        if self.fig is not None:
            plt.close(self.fig)
            self.fig = None
