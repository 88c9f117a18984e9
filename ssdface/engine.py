"""
Inference engine for the face detection system.

Responsibility:
    Load the Caffe SSD network once, configure its compute backend, and
    run forward passes on prepared blobs.

Non-goals:
    - No preprocessing or output interpretation.
    - No artifact retrieval (see ssdface.model_loader).
    - No fallback to alternative models.

Concurrency:
    A cv2.dnn.Net keeps its input and intermediate buffers inside the
    object, so two threads calling setInput()/forward() on the same net
    would corrupt each other. The Network handle serializes forward
    passes with a lock; the weights themselves are never mutated.

Failure behavior:
    - Missing or unreadable artifacts raise LoadError with the path.
    - An unavailable backend raises LoadError.
"""

import logging
import threading
from pathlib import Path
from typing import List

import cv2
import numpy as np

from ssdface.errors import LoadError

logger = logging.getLogger(__name__)


class Network:
    """A loaded detector network shared by every detection call.

    Created by load_network() and passed by reference into forward().
    Holds the artifact paths for diagnostics.
    """

    def __init__(
        self,
        net: cv2.dnn.Net,
        prototxt_path: str,
        weights_path: str,
        backend: str = "cpu",
    ) -> None:
        self._net = net
        self._lock = threading.Lock()
        self.prototxt_path = prototxt_path
        self.weights_path = weights_path
        self.backend = backend

    @property
    def net(self) -> cv2.dnn.Net:
        """The underlying OpenCV network."""
        return self._net

    @property
    def lock(self) -> threading.Lock:
        """Lock guarding the net's internal execution state."""
        return self._lock

    def __repr__(self) -> str:
        return (
            f"Network(prototxt={self.prototxt_path!r}, "
            f"weights={self.weights_path!r}, backend={self.backend!r})"
        )


def load_network(
    prototxt_path: str,
    weights_path: str,
    backend: str = "cpu",
) -> Network:
    """Load and configure the SSD face detection network.

    Args:
        prototxt_path: Absolute path to the network topology file.
        weights_path: Absolute path to the Caffe weights file.
        backend: 'cpu' or 'cuda'.

    Returns:
        A Network ready for forward().

    Raises:
        LoadError: If either file is missing, the pair cannot be parsed,
                   or the requested backend is unavailable.
    """
    prototxt = Path(prototxt_path)
    weights = Path(weights_path)

    if not prototxt.is_file():
        raise LoadError(
            f"Model prototxt not found.\n"
            f"  Expected: {prototxt}\n"
            f"  Provide the file or update 'model.prototxt_path' in your config.",
            path=str(prototxt),
        )

    if not weights.is_file():
        raise LoadError(
            f"Model weights not found.\n"
            f"  Expected: {weights}\n"
            f"  Provide the file, configure 'assets.base_url' to fetch it,\n"
            f"  or update 'model.weights_path' in your config.",
            path=str(weights),
        )

    # OpenCV 5 dropped the Caffe importer.
    read_caffe = getattr(cv2.dnn, "readNetFromCaffe", None)
    if read_caffe is None:
        raise LoadError(
            f"OpenCV {cv2.__version__} has no Caffe importer "
            f"(cv2.dnn.readNetFromCaffe); install opencv-python<5 to load {weights}.",
            path=str(weights),
        )

    logger.info("Loading model: prototxt=%s, weights=%s", prototxt, weights)
    try:
        net = read_caffe(str(prototxt), str(weights))
    except cv2.error as e:
        raise LoadError(
            f"Failed to parse model artifacts as a Caffe network.\n"
            f"  prototxt: {prototxt}\n"
            f"  weights: {weights}\n"
            f"  OpenCV error: {e}",
            path=str(weights),
        ) from e

    if net is None or net.empty():
        raise LoadError(
            f"Model artifacts produced an empty network: {prototxt}, {weights}",
            path=str(weights),
        )

    if backend == "cuda":
        logger.info("Setting CUDA backend and target.")
        try:
            net.setPreferableBackend(cv2.dnn.DNN_BACKEND_CUDA)
            net.setPreferableTarget(cv2.dnn.DNN_TARGET_CUDA)
        except cv2.error as e:
            raise LoadError(
                f"Failed to set CUDA backend. Ensure OpenCV was built with "
                f"CUDA support.\n"
                f"  OpenCV error: {e}",
                path=str(weights),
            ) from e
    else:
        logger.info("Using CPU backend.")
        net.setPreferableBackend(cv2.dnn.DNN_BACKEND_OPENCV)
        net.setPreferableTarget(cv2.dnn.DNN_TARGET_CPU)

    network = Network(net, str(prototxt), str(weights), backend)
    logger.debug("Output layer types: %s", output_layer_types(network))
    logger.info("Model loaded successfully.")
    return network


def forward(network: Network, blob: np.ndarray) -> List[np.ndarray]:
    """Run one forward pass and return every output tensor.

    Outputs are returned untruncated; deciding whether their number is
    acceptable is the decoder's job.

    Args:
        network: Handle returned by load_network().
        blob: Input tensor of shape (1, 3, H, W).

    Returns:
        A list with one ndarray per unconnected output layer.
    """
    net = network.net
    with network.lock:
        net.setInput(blob)
        outputs = net.forward(net.getUnconnectedOutLayersNames())

    if isinstance(outputs, np.ndarray):
        return [outputs]
    return list(outputs)


def output_layer_types(network: Network) -> List[str]:
    """Return the layer type of each unconnected output layer.

    The SSD face model has a single 'DetectionOutput' layer.
    """
    net = network.net
    types = []
    for layer_id in np.asarray(net.getUnconnectedOutLayers()).flatten():
        types.append(net.getLayer(int(layer_id)).type)
    return types
