"""
Output handling for the face detection CLI.

Responsibility:
    Route per-frame detection results to the configured sinks: log
    lines, JSON, CSV, and screenshot files. Several modes can be active
    at once.

Non-goals:
    - No detection logic.
    - No drawing or display windows.
"""

import logging
from pathlib import Path
from typing import Dict, List

import numpy as np

from ssdface.config import AppConfig, get_project_root, parse_modes
from ssdface.detection import BoundingBox
from ssdface.serializer import save_csv, save_json, save_screenshot

logger = logging.getLogger(__name__)


class OutputHandler:
    """Routes detection results to configured output sinks.

    Modes:
        - 'log': Log the ranked boxes of every frame.
        - 'save_json': Accumulate results, write detections.json on finalize.
        - 'save_csv': Accumulate results, write detections.csv on finalize.
        - 'save_screenshot': Save each frame containing a face as a PNG.

    Usage:
        handler = OutputHandler(config)
        handler.process_frame(frame_id, frame, boxes)
        ...
        handler.finalize()
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._modes = parse_modes(config.output.mode)
        self._detections_buffer: Dict[int, List[BoundingBox]] = {}

        save_path = Path(config.output.save_path)
        if not save_path.is_absolute():
            save_path = get_project_root() / save_path
        self._save_path = save_path

        if self._modes & {"save_json", "save_csv", "save_screenshot"}:
            self._save_path.mkdir(parents=True, exist_ok=True)

        logger.info("OutputHandler initialized: modes=%s, save_path=%s",
                    self._modes, self._save_path)

    @property
    def save_path(self) -> Path:
        return self._save_path

    def process_frame(
        self,
        frame_id: int,
        frame: np.ndarray,
        boxes: List[BoundingBox],
    ) -> None:
        """Route one frame's results through every active sink."""
        if "log" in self._modes:
            if boxes:
                logger.info(
                    "Frame %d: %d face(s), largest %s",
                    frame_id, len(boxes), boxes[0].to_dict(),
                )
            else:
                logger.info("Frame %d: no faces", frame_id)

        if "save_screenshot" in self._modes and boxes:
            save_screenshot(frame, self._save_path / "screenshots", frame_id)

        if "save_json" in self._modes or "save_csv" in self._modes:
            self._detections_buffer[frame_id] = boxes

    def finalize(self) -> None:
        """Flush buffered output. Must be called after the last frame."""
        if "save_json" in self._modes and self._detections_buffer:
            save_json(self._detections_buffer, str(self._save_path / "detections.json"))

        if "save_csv" in self._modes and self._detections_buffer:
            save_csv(self._detections_buffer, str(self._save_path / "detections.csv"))

        self._detections_buffer.clear()
        logger.info("OutputHandler finalized.")
