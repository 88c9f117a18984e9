"""
FaceDetector, the single public API for face detection.

Public contract:
    FaceDetector.detect(frame: np.ndarray) -> list[BoundingBox]

Constraints:
    - Input must be an RGBA numpy array of shape (H, W, 4).
    - Each call is independent: the blob and raw outputs are created
      fresh from the frame and dropped before returning.
    - Concurrent calls are safe; forward passes are serialized on the
      shared Network.

Non-goals:
    - No file reading, camera access, or I/O of any kind.
    - No visualization or tracking.
"""

import logging
from typing import List, Optional

import numpy as np

from ssdface.color import convert
from ssdface.config import AppConfig, load_config
from ssdface.detection import BoundingBox
from ssdface.engine import Network, forward, load_network
from ssdface.model_loader import resolve_model_paths
from ssdface.postprocessor import decode, single_output
from ssdface.preprocessor import build_blob
from ssdface.ranker import rank

logger = logging.getLogger(__name__)


class FaceDetector:
    """Face detector using SSD-ResNet10 via OpenCV DNN.

    Usage:
        detector = FaceDetector()                   # Uses safe defaults
        detector = FaceDetector(config=my_config)    # Custom config
        faces = detector.detect(rgba_frame)          # Largest face first

    The constructor resolves and loads the model once. Subsequent
    detect() calls reuse the loaded network.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        network: Optional[Network] = None,
    ) -> None:
        """Initialize the detector and load the model.

        Args:
            config: Application configuration. If None, safe defaults are used.
            network: An already loaded Network to share. If None, the
                     artifacts are resolved and loaded from config.

        Raises:
            LoadError: If the model artifacts are missing or invalid.
            ValueError: If configuration values are invalid.
        """
        if config is None:
            config = load_config()

        self._config = config

        if network is None:
            paths = resolve_model_paths(config.model, config.assets)
            network = load_network(
                paths.prototxt_path,
                paths.weights_path,
                backend=config.model.backend,
            )
        self._network = network

        logger.info(
            "FaceDetector initialized (backend=%s, confidence_threshold=%.2f)",
            network.backend,
            config.detection.confidence_threshold,
        )

    def detect(self, frame: np.ndarray) -> List[BoundingBox]:
        """Detect faces in a single RGBA frame.

        Args:
            frame: RGBA image of shape (H, W, 4), dtype uint8.

        Returns:
            Boxes sorted by area, largest first. Empty list if no face
            clears the confidence threshold.

        Raises:
            TypeError: If frame is not a numpy ndarray.
            ValueError: If frame is empty or not 4-channel.
            ShapeError: If the network output cannot be decoded.
        """
        image = convert(frame)
        blob = build_blob(image, self._config.model)
        outputs = forward(self._network, blob)

        h, w = frame.shape[:2]
        boxes = decode(
            single_output(outputs),
            frame_width=w,
            frame_height=h,
            confidence_threshold=self._config.detection.confidence_threshold,
        )

        if not boxes:
            logger.debug("No faces above threshold in %dx%d frame.", w, h)
            return []

        return rank(boxes)

    @property
    def config(self) -> AppConfig:
        """Return the active configuration (read-only)."""
        return self._config

    @property
    def network(self) -> Network:
        """Return the shared network handle."""
        return self._network
