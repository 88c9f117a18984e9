"""
Ranking of detected faces.

Largest face first. Equal-area boxes keep the order the decoder
produced them in.
"""

from typing import List, Sequence

from ssdface.detection import BoundingBox


def box_area(box: BoundingBox) -> int:
    """Area of a box in pixels (width x height)."""
    return box.width * box.height


def rank(boxes: Sequence[BoundingBox]) -> List[BoundingBox]:
    """Return a new list of boxes sorted by descending area.

    An empty input yields an empty list, which is the normal
    "no faces" result rather than an error.
    """
    return sorted(boxes, key=box_area, reverse=True)
