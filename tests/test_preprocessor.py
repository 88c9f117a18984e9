"""
Tests for the preprocessing module.
"""

import numpy as np
import pytest

from ssdface.config import ModelConfig
from ssdface.preprocessor import build_blob


def test_build_blob_valid_input():
    """Standard blob geometry for the SSD face model."""
    config = ModelConfig()

    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    frame[:, :, 1] = 255

    blob = build_blob(frame, config)

    assert isinstance(blob, np.ndarray)
    assert blob.shape == (1, 3, 300, 300)
    assert blob.dtype == np.float32


def test_build_blob_subtracts_channel_means():
    """A uniform image becomes value - mean in each channel."""
    config = ModelConfig()
    frame = np.full((50, 80, 3), 200, dtype=np.uint8)

    blob = build_blob(frame, config)

    assert blob[0, 0].mean() == pytest.approx(200 - 104.0)
    assert blob[0, 1].mean() == pytest.approx(200 - 177.0)
    assert blob[0, 2].mean() == pytest.approx(200 - 123.0)


def test_build_blob_empty_image():
    config = ModelConfig()

    with pytest.raises(ValueError):
        build_blob(np.zeros((0, 0, 3), dtype=np.uint8), config)


def test_build_blob_none_image():
    with pytest.raises(ValueError):
        build_blob(None, ModelConfig())


def test_build_blob_custom_size():
    config = ModelConfig(input_size=(100, 100))
    frame = np.zeros((200, 200, 3), dtype=np.uint8)

    blob = build_blob(frame, config)
    assert blob.shape == (1, 3, 100, 100)
