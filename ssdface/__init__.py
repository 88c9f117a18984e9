"""
ssdface: single-frame face detection with the OpenCV DNN SSD face model.

Public API:
    - FaceDetector: The single entry point for face detection.
    - BoundingBox: A detected face rectangle in frame-pixel coordinates.
    - LoadError, AssetFetchError, ShapeError: Pipeline failures.

Usage:
    from ssdface import FaceDetector

    detector = FaceDetector()
    faces = detector.detect(rgba_frame)   # largest face first, [] if none
"""

from ssdface.detection import BoundingBox
from ssdface.detector import FaceDetector
from ssdface.errors import AssetFetchError, FaceDetectionError, LoadError, ShapeError

__all__ = [
    "FaceDetector",
    "BoundingBox",
    "FaceDetectionError",
    "LoadError",
    "AssetFetchError",
    "ShapeError",
]
