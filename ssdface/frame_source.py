"""
Frame sources for the CLI.

Everything handed to FaceDetector.detect() is an RGBA uint8 frame, the
layout a camera texture delivers. OpenCV decodes BGR (or BGRA / gray), so
each frame is converted and checked here, at the point it enters the
program.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

import cv2
import numpy as np

from ssdface.color import validate_frame

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff", ".webp"}
VIDEO_EXTENSIONS = {".mp4", ".avi", ".mov", ".mkv"}

_TO_RGBA = {1: cv2.COLOR_GRAY2RGBA, 3: cv2.COLOR_BGR2RGBA, 4: cv2.COLOR_BGRA2RGBA}


def to_rgba(image: np.ndarray) -> np.ndarray:
    """Convert an OpenCV-decoded gray/BGR/BGRA uint8 image to RGBA."""
    channels = 1 if image.ndim == 2 else image.shape[2]
    if channels not in _TO_RGBA:
        raise ValueError(f"Cannot convert a {channels}-channel image to RGBA.")
    if image.dtype != np.uint8:
        # 16-bit PNG/TIFF: keep the high byte.
        image = (image >> 8).astype(np.uint8) if image.dtype == np.uint16 else image.astype(np.uint8)
    rgba = cv2.cvtColor(image, _TO_RGBA[channels])
    validate_frame(rgba)
    return rgba


def _fit_width(image: np.ndarray, width: Optional[int]) -> np.ndarray:
    """Downscale to at most `width` pixels wide, keeping aspect ratio."""
    if width is None or image.shape[1] <= width:
        return image
    height = max(1, round(image.shape[0] * width / image.shape[1]))
    return cv2.resize(image, (width, height), interpolation=cv2.INTER_AREA)


class FrameSource:
    """Iterate (frame_id, rgba_frame) over an image, a directory, a video or a camera.

    A digit string selects a camera index. A failed capture read ends the
    stream; an unreadable image file is logged and skipped.

    Usage:
        with FrameSource("clips/door.mp4") as frames:
            for frame_id, frame in frames:
                ...
    """

    def __init__(self, source: Union[str, int], resize_width: Optional[int] = None) -> None:
        self.resize_width = resize_width
        self._paths: List[Path] = []
        self._capture: Optional[cv2.VideoCapture] = None

        text = str(source).strip()
        path = Path(text)
        if text.isdigit():
            self.kind = "camera"
            self._open(int(text))
        elif path.is_dir():
            self.kind = "directory"
            self._paths = sorted(p for p in path.iterdir() if p.suffix.lower() in IMAGE_EXTENSIONS)
            if not self._paths:
                raise ValueError(f"No image files found in directory: {path}")
        elif path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS:
            self.kind = "image"
            self._paths = [path]
        elif path.is_file() and path.suffix.lower() in VIDEO_EXTENSIONS:
            self.kind = "video"
            self._open(text)
        elif path.is_file():
            raise ValueError(f"Unsupported input file type: {path.suffix!r} ({path})")
        else:
            raise FileNotFoundError(f"Input source not found: {text}")

        logger.info("Frame source opened: %s (%s)", text, self.kind)

    def _open(self, target: Union[str, int]) -> None:
        self._capture = cv2.VideoCapture(target)
        if not self._capture.isOpened():
            raise RuntimeError(f"Failed to open {self.kind} source: {target}")

    def __iter__(self) -> Iterator[Tuple[int, np.ndarray]]:
        if self._capture is None:
            yield from self._read_images()
        else:
            yield from self._read_capture()

    def _read_images(self) -> Iterator[Tuple[int, np.ndarray]]:
        for frame_id, path in enumerate(self._paths):
            image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
            if image is None or image.size == 0:
                logger.warning("Skipping unreadable image %s", path)
                continue
            yield frame_id, to_rgba(_fit_width(image, self.resize_width))

    def _read_capture(self) -> Iterator[Tuple[int, np.ndarray]]:
        frame_id = 0
        while self._capture is not None:
            ok, image = self._capture.read()
            if not ok or image is None:
                logger.info("%s stream ended after %d frames.", self.kind, frame_id)
                return
            yield frame_id, to_rgba(_fit_width(image, self.resize_width))
            frame_id += 1

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    def __enter__(self) -> "FrameSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
