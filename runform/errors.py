"""
Session-level errors surfaced by the frame loop.
"""


class FrameSourceError(RuntimeError):
    """A camera, video or image source cannot deliver frames."""
