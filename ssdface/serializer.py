"""
Serialization for the face detection CLI.

Responsibility:
    Export detection results to structured file formats (JSON, CSV) and
    persist frames as timestamped PNG screenshots.

Non-goals:
    - No rendering: screenshots are the raw frame, nothing drawn on it.
    - No streaming output; JSON/CSV are written as complete files.
"""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import cv2
import numpy as np

from ssdface.detection import BoundingBox

logger = logging.getLogger(__name__)


def save_json(
    detections_by_frame: Dict[int, List[BoundingBox]],
    output_path: str,
) -> None:
    """Export all detections to a JSON file.

    Output schema:
        {
            "frames": [
                {
                    "frame_id": 0,
                    "faces": [
                        {"x": ..., "y": ..., "width": ..., "height": ..., "confidence": ...}
                    ]
                }
            ],
            "total_frames": N,
            "total_faces": M
        }

    Frames are listed even when no face was found (empty "faces").

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    frames = []
    total_faces = 0

    for frame_id in sorted(detections_by_frame.keys()):
        boxes = detections_by_frame[frame_id]
        total_faces += len(boxes)
        frames.append({
            "frame_id": frame_id,
            "faces": [b.to_dict() for b in boxes],
        })

    payload = {
        "frames": frames,
        "total_frames": len(frames),
        "total_faces": total_faces,
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.info(
        "JSON output saved: %s (%d frames, %d faces)",
        output_path, len(frames), total_faces,
    )


def save_csv(
    detections_by_frame: Dict[int, List[BoundingBox]],
    output_path: str,
) -> None:
    """Export all detections to a CSV file.

    Columns: frame_id, rank, x, y, width, height, confidence.
    rank is the 0-based position in the area-sorted result.

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    fieldnames = ["frame_id", "rank", "x", "y", "width", "height", "confidence"]

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()

        total = 0
        for frame_id in sorted(detections_by_frame.keys()):
            for rank, box in enumerate(detections_by_frame[frame_id]):
                writer.writerow({
                    "frame_id": frame_id,
                    "rank": rank,
                    **box.to_dict(),
                })
                total += 1

    logger.info("CSV output saved: %s (%d rows)", output_path, total)


def screenshot_name(
    root: Path,
    width: int,
    height: int,
    timestamp: Optional[datetime] = None,
) -> Path:
    """Build the screenshot path: <root>/screen_<W>x<H>_<YYYY-mm-dd_HH-MM-SS>.png"""
    if timestamp is None:
        timestamp = datetime.now()
    stamp = timestamp.strftime("%Y-%m-%d_%H-%M-%S")
    return root / f"screen_{width}x{height}_{stamp}.png"


def save_screenshot(
    frame: np.ndarray,
    root: Path,
    frame_id: int,
    timestamp: Optional[datetime] = None,
) -> Path:
    """Write an RGBA frame as a PNG screenshot under root.

    Frames captured within the same second get their frame_id appended
    so an earlier screenshot is never overwritten.

    Returns:
        The path written.

    Raises:
        OSError: If the image could not be written.
    """
    root.mkdir(parents=True, exist_ok=True)

    h, w = frame.shape[:2]
    path = screenshot_name(root, w, h, timestamp)
    if path.exists():
        path = path.with_name(f"{path.stem}_{frame_id:06d}{path.suffix}")

    if not cv2.imwrite(str(path), cv2.cvtColor(frame, cv2.COLOR_RGBA2BGRA)):
        raise OSError(f"Failed to write screenshot: {path}")

    logger.info("Saved screenshot: %s", path)
    return path


def _ensure_parent_dir(path: str) -> None:
    """Create parent directories if they don't exist."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
