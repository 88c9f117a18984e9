"""
Preprocessing for the face detection pipeline.

Responsibility:
    Convert a BGR image (numpy array) into a 4D DNN-compatible
    input blob using cv2.dnn.blobFromImage.

Non-goals:
    - No color conversion (see ssdface.color).
    - No inference or coordinate mapping.

Hard-coded:
    - swapRB is False (input is already BGR after color conversion).
    - crop is False: the whole frame is squashed to the blob size, which
      is what lets the decoder scale normalized coordinates back by the
      frame width and height.
"""

import numpy as np
import cv2

from ssdface.config import ModelConfig


def build_blob(image: np.ndarray, config: ModelConfig) -> np.ndarray:
    """Convert a BGR image into a DNN input blob.

    Args:
        image: Input image as a BGR numpy array (H, W, 3).
        config: ModelConfig providing input_size, scale_factor, and mean_values.

    Returns:
        A 4D numpy array of shape (1, 3, H, W) with dtype float32,
        ready to be passed to ssdface.engine.forward().

    Raises:
        ValueError: If the image is missing or has zero area.
    """
    if image is None or image.size == 0:
        raise ValueError(
            "Cannot build a blob from an empty image. "
            "Ensure the input source is providing valid frames."
        )

    blob = cv2.dnn.blobFromImage(
        image=image,
        scalefactor=config.scale_factor,
        size=config.input_size,
        mean=config.mean_values,
        swapRB=False,
        crop=False,
    )

    return blob
