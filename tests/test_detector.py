"""
Tests for the detector module.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import numpy as np
import pytest

from ssdface import FaceDetector, ShapeError
from ssdface.config import AppConfig, DetectionConfig
from ssdface.engine import Network

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_MODEL_EXISTS = (
    (_PROJECT_ROOT / "models/deploy.prototxt.txt").exists() and
    (_PROJECT_ROOT / "models/res10_300x300_ssd_iter_140000_fp16.caffemodel").exists()
)


def test_detect_ranks_by_area(make_network, ssd_rows, rgba_frame):
    tensor = ssd_rows(
        [0, 1, 0.95, 0.0, 0.0, 0.1, 0.1],
        [0, 1, 0.90, 0.2, 0.2, 0.7, 0.7],
        [0, 1, 0.50, 0.0, 0.0, 1.0, 1.0],
        [0, 1, 0.85, 0.5, 0.5, 0.8, 0.8],
    )
    detector = FaceDetector(AppConfig(), network=make_network(tensor))

    boxes = detector.detect(rgba_frame)

    assert len(boxes) == 3
    areas = [b.area for b in boxes]
    assert areas == sorted(areas, reverse=True)
    assert boxes[0].confidence == pytest.approx(0.90, abs=1e-5)


def test_detect_uses_frame_size(make_network, ssd_rows, rgba_frame):
    tensor = ssd_rows([0, 1, 0.95, 0.1, 0.1, 0.5, 0.5])
    detector = FaceDetector(AppConfig(), network=make_network(tensor))

    (box,) = detector.detect(rgba_frame)

    assert (box.x, box.y, box.width, box.height) == (64, 48, 257, 193)


def test_detect_no_faces_is_empty_list(make_network, ssd_rows, rgba_frame):
    tensor = ssd_rows([0, 1, 0.8, 0.1, 0.1, 0.5, 0.5])
    detector = FaceDetector(AppConfig(), network=make_network(tensor))

    assert detector.detect(rgba_frame) == []


def test_detect_respects_configured_threshold(make_network, ssd_rows, rgba_frame):
    tensor = ssd_rows([0, 1, 0.6, 0.1, 0.1, 0.5, 0.5])
    config = AppConfig(detection=DetectionConfig(confidence_threshold=0.5))
    detector = FaceDetector(config, network=make_network(tensor))

    assert len(detector.detect(rgba_frame)) == 1


def test_detect_two_outputs_is_shape_error(make_network, ssd_rows, rgba_frame):
    tensor = ssd_rows([0, 1, 0.95, 0.1, 0.1, 0.5, 0.5])
    detector = FaceDetector(AppConfig(), network=make_network(tensor, tensor))

    with pytest.raises(ShapeError):
        detector.detect(rgba_frame)


def test_detect_bad_element_count_is_shape_error(make_network, rgba_frame):
    detector = FaceDetector(AppConfig(), network=make_network(np.zeros(10, dtype=np.float32)))

    with pytest.raises(ShapeError):
        detector.detect(rgba_frame)


def test_detect_reuses_network_without_leakage(make_network, ssd_rows):
    """Two frames of different sizes through one network stay independent."""
    tensor = ssd_rows([0, 1, 0.95, 0.25, 0.25, 0.75, 0.75])
    network = make_network(tensor)
    detector = FaceDetector(AppConfig(), network=network)

    small = np.zeros((100, 200, 4), dtype=np.uint8)
    large = np.full((400, 800, 4), 255, dtype=np.uint8)

    first = detector.detect(small)
    second = detector.detect(large)
    again = detector.detect(small)

    assert (first[0].x, first[0].y, first[0].width, first[0].height) == (50, 25, 101, 51)
    assert (second[0].x, second[0].y, second[0].width, second[0].height) == (200, 100, 401, 201)
    assert again == first

    blobs = network.net.inputs
    assert len(blobs) == 3
    assert all(b.shape == (1, 3, 300, 300) for b in blobs)
    assert not np.array_equal(blobs[0], blobs[1])
    assert np.array_equal(blobs[0], blobs[2])


def test_detect_input_validation(make_network, ssd_rows):
    detector = FaceDetector(AppConfig(), network=make_network(ssd_rows([0, 1, 0.9, 0, 0, 1, 1])))

    with pytest.raises(TypeError):
        detector.detect("not a frame")

    with pytest.raises(ValueError):
        detector.detect(np.array([]))

    with pytest.raises(ValueError, match="4 channels"):
        detector.detect(np.zeros((100, 100, 3), dtype=np.uint8))


@pytest.mark.skipif(not _MODEL_EXISTS, reason="Model files not found")
def test_detector_integration_smoke():
    """Smoke test: detector initializes and runs on a blank frame."""
    detector = FaceDetector()

    frame = np.zeros((480, 640, 4), dtype=np.uint8)

    boxes = detector.detect(frame)
    assert isinstance(boxes, list)


class _SlowNet:
    """Net whose setInput/forward sleep and record how many passes overlap.

    The returned confidence encodes the blob it was given, so a pass that
    reads another thread's input shows up as a wrong confidence.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self.active = 0
        self.max_active = 0
        self._blob = None

    def setInput(self, blob):
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self._blob = blob
        time.sleep(0.005)

    def getUnconnectedOutLayersNames(self):
        return ("detection_out",)

    def forward(self, names):
        time.sleep(0.005)
        fill = float(self._blob[0, 0, 0, 0]) + 104.0  # undo the blue-channel mean
        row = [0, 1, 0.81 + fill / 1000.0, 0.25, 0.25, 0.75, 0.75]
        with self._guard:
            self.active -= 1
        return (np.array(row, dtype=np.float32).reshape(1, 1, 1, 7),)


def test_concurrent_detect_serializes_forward_passes():
    net = _SlowNet()
    detector = FaceDetector(AppConfig(), network=Network(net, "p", "w"))
    # (fill value, width, height) per thread
    jobs = [(10 * (i + 1), 40 * (i + 1), 20 * (i + 1)) for i in range(8)]

    def run(job):
        fill, width, height = job
        frame = np.full((height, width, 4), fill, dtype=np.uint8)
        return [detector.detect(frame) for _ in range(3)]

    with ThreadPoolExecutor(max_workers=len(jobs)) as pool:
        results = list(pool.map(run, jobs))

    assert net.max_active == 1
    for (fill, width, height), rounds in zip(jobs, results):
        for boxes in rounds:
            (box,) = boxes
            assert box.confidence == pytest.approx(0.81 + fill / 1000.0, abs=1e-5)
            assert (box.x, box.y) == (width // 4, height // 4)
            assert (box.width, box.height) == (width // 2 + 1, height // 2 + 1)
