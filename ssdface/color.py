"""
Color space conversion for the face detection pipeline.

Responsibility:
    Turn a 4-channel RGBA camera frame into the 3-channel BGR layout the
    Caffe face model was trained on.

Hard-coded:
    - Input order is RGBA (camera texture layout), output order is BGR.
      The model's mean values are BGR, so getting this wrong silently
      degrades detection rather than failing.
"""

import cv2
import numpy as np


def validate_frame(frame: np.ndarray) -> None:
    """Validate that a frame is a non-empty (H, W, 4) array.

    Raises:
        TypeError: If frame is not a numpy ndarray.
        ValueError: If frame is empty, not 4-channel, or not uint8.
    """
    if not isinstance(frame, np.ndarray):
        raise TypeError(
            f"Expected frame to be a numpy ndarray, "
            f"got {type(frame).__name__}."
        )

    if frame.size == 0:
        raise ValueError(
            "Frame is empty (zero size). "
            "Ensure the input source is providing valid frames."
        )

    if frame.ndim != 3:
        raise ValueError(
            f"Expected a 3-dimensional frame (H, W, C), "
            f"got {frame.ndim} dimensions with shape {frame.shape}."
        )

    if frame.shape[2] != 4:
        raise ValueError(
            f"Expected 4 channels (RGBA), got {frame.shape[2]} channels. "
            f"Convert camera frames with cv2.COLOR_BGR2RGBA first."
        )

    if frame.dtype != np.uint8:
        raise ValueError(
            f"Expected a uint8 frame, got dtype {frame.dtype}."
        )


def convert(frame: np.ndarray) -> np.ndarray:
    """Convert an RGBA frame to a new BGR image of the same size.

    Args:
        frame: RGBA image (H, W, 4), dtype uint8. Not modified.

    Returns:
        A freshly allocated BGR array of shape (H, W, 3).
    """
    validate_frame(frame)
    return cv2.cvtColor(frame, cv2.COLOR_RGBA2BGR)
