"""
Shared fixtures: a stand-in for cv2.dnn.Net so the pipeline can be
exercised without the Caffe model files.
"""

from types import SimpleNamespace

import numpy as np
import pytest

from ssdface.engine import Network


def _pack_rows(*rows):
    return np.array(rows, dtype=np.float32).reshape(1, 1, -1, 7)


class FakeNet:
    """Mimics the parts of cv2.dnn.Net the engine touches."""

    def __init__(self, outputs):
        self.outputs = outputs
        self.inputs = []

    def empty(self):
        return False

    def setPreferableBackend(self, backend):
        self.backend = backend

    def setPreferableTarget(self, target):
        self.target = target

    def setInput(self, blob):
        self.inputs.append(blob.copy())

    def getUnconnectedOutLayersNames(self):
        return tuple(f"out_{i}" for i in range(len(self.outputs)))

    def getUnconnectedOutLayers(self):
        return np.arange(1, len(self.outputs) + 1, dtype=np.int32)

    def getLayer(self, layer_id):
        return SimpleNamespace(type="DetectionOutput")

    def forward(self, names):
        assert len(names) == len(self.outputs)
        return tuple(self.outputs)


@pytest.fixture
def make_network():
    """Build a Network around a FakeNet returning the given output tensors."""

    def _make(*outputs):
        return Network(FakeNet(list(outputs)), "deploy.prototxt.txt", "weights.caffemodel")

    return _make


@pytest.fixture
def rgba_frame():
    """A 640x480 RGBA frame."""
    frame = np.zeros((480, 640, 4), dtype=np.uint8)
    frame[:, :, 3] = 255
    return frame


@pytest.fixture
def ssd_rows():
    """Pack [batch, class, conf, x1, y1, x2, y2] rows as a (1, 1, N, 7) tensor."""
    return _pack_rows


@pytest.fixture
def fake_net():
    """Factory for bare FakeNet instances."""

    def _make(*outputs):
        return FakeNet(list(outputs))

    return _make
