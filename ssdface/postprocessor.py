"""
Postprocessing for the face detection pipeline.

Responsibility:
    Parse the raw SSD network output into a list of BoundingBox objects.
    Apply confidence thresholding and coordinate un-normalization.

Non-goals:
    - No ranking (see ssdface.ranker).
    - No clamping: boxes may extend past the frame, callers clip if needed.
    - No class handling: this is a single-class face model, the class_id
      field is read and ignored.

Hard-coded:
    - SSD output layout: any tensor whose elements form rows of
      [batch_id, class_id, confidence, x1, y1, x2, y2], coordinates
      normalized to [0, 1]. OpenCV reports it as (1, 1, N, 7).
    - Arithmetic is float32 to match the network's output precision.
      This keeps the threshold boundary exact (a stored 0.8 is not
      "greater than 0.8") and keeps the +1 inclusive width from losing a
      pixel to float64 rounding noise.
"""

import logging
from typing import List, Sequence

import numpy as np

from ssdface.detection import BoundingBox
from ssdface.errors import ShapeError

logger = logging.getLogger(__name__)

ROW_SIZE = 7

_CONFIDENCE = 2
_COORDS = slice(3, 7)


def single_output(outputs: Sequence[np.ndarray]) -> np.ndarray:
    """Return the only output tensor of a forward pass.

    Raises:
        ShapeError: If the forward pass produced zero or several tensors.
    """
    if len(outputs) != 1:
        raise ShapeError(
            f"Unexpected number of output tensors: expected 1, got {len(outputs)}.",
            count=len(outputs),
        )
    return outputs[0]


def decode(
    network_output: np.ndarray,
    frame_width: int,
    frame_height: int,
    confidence_threshold: float = 0.8,
) -> List[BoundingBox]:
    """Parse a raw SSD output tensor into bounding boxes.

    Args:
        network_output: Raw output tensor, any shape whose element count
                        is a multiple of 7.
                        Non-float32 input is narrowed to float32 before
                        the threshold comparison, so a float64 confidence
                        just above the threshold may compare equal to it.
        frame_width: Original frame width in pixels (for coordinate mapping).
        frame_height: Original frame height in pixels (for coordinate mapping).
        confidence_threshold: A row is kept only if its confidence is
                              strictly greater than this.

    Returns:
        Boxes in tensor row order. Empty list if no row clears the threshold.

    Raises:
        ShapeError: If the element count is not a multiple of 7.
    """
    raw = np.asarray(network_output, dtype=np.float32)
    total = raw.size

    if total % ROW_SIZE != 0:
        raise ShapeError(
            f"Output tensor has {total} elements (shape {raw.shape}), "
            f"which is not a multiple of {ROW_SIZE}.",
            count=total,
        )

    rows = raw.reshape(total // ROW_SIZE, ROW_SIZE)
    logger.debug("Decoding %d candidate rows.", rows.shape[0])

    keep = rows[:, _CONFIDENCE] > np.float32(confidence_threshold)
    scale = np.array(
        [frame_width, frame_height, frame_width, frame_height], dtype=np.float32
    )
    one = np.float32(1.0)

    boxes: List[BoundingBox] = []
    for row in rows[keep]:
        left, top, right, bottom = row[_COORDS] * scale
        width = right - left + one
        height = bottom - top + one

        boxes.append(BoundingBox(
            x=int(left),
            y=int(top),
            width=int(width),
            height=int(height),
            confidence=float(row[_CONFIDENCE]),
        ))

    return boxes
