"""
BoundingBox value object.

A face rectangle in frame-pixel coordinates, as returned by
FaceDetector.detect(). Frozen and serializable, with no behavior beyond
data access.

Width and height follow the inclusive-pixel convention of the decoder
(right - left + 1), so `right` and `bottom` are the last covered pixel.
Boxes are not clamped and may extend past the frame edges.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """A single detected face.

    Attributes:
        x: Left edge (absolute pixels).
        y: Top edge (absolute pixels).
        width: Inclusive width in pixels.
        height: Inclusive height in pixels.
        confidence: Score of the network row that produced this box.
    """

    x: int
    y: int
    width: int
    height: int
    confidence: float = 0.0

    def to_dict(self) -> dict:
        """Return a plain dict suitable for JSON serialization."""
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "confidence": round(self.confidence, 4),
        }

    @property
    def right(self) -> int:
        """Rightmost covered pixel column."""
        return self.x + self.width - 1

    @property
    def bottom(self) -> int:
        """Bottommost covered pixel row."""
        return self.y + self.height - 1

    @property
    def area(self) -> int:
        return self.width * self.height
