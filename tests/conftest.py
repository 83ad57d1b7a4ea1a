"""Shared fixtures for the AquaSight test suite.

Images are generated in memory and encoded with OpenCV, so no binary
fixtures live in the repo. Metric fixtures bypass decoding entirely.
"""

import cv2
import numpy as np
import pytest

from schemas import ColorAverages, WaterQualityMetrics


# =============================================================================
# Image Fixtures
# =============================================================================

def encode_rgb(rgb: np.ndarray, ext: str = ".png") -> bytes:
    """Encode an RGB (or gray / RGBA) uint8 array to image file bytes."""
    if rgb.ndim == 3 and rgb.shape[2] == 3:
        img = cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
    elif rgb.ndim == 3 and rgb.shape[2] == 4:
        img = cv2.cvtColor(rgb, cv2.COLOR_RGBA2BGRA)
    else:
        img = rgb
    ok, buf = cv2.imencode(ext, img)
    assert ok, f"failed to encode test image as {ext}"
    return buf.tobytes()


def solid_rgb(color, height: int = 8, width: int = 12) -> np.ndarray:
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:, :] = color
    return img


@pytest.fixture
def encode():
    """The raw encoder, for arrays that are not a single solid color."""
    return encode_rgb


@pytest.fixture
def make_image_bytes():
    """Factory: solid-color PNG bytes for an (r, g, b) color.

    Examples
    --------
    >>> def test_white(make_image_bytes):
    ...     data = make_image_bytes((255, 255, 255))
    """
    def _make(color, height: int = 8, width: int = 12, ext: str = ".png") -> bytes:
        return encode_rgb(solid_rgb(color, height, width), ext)

    return _make


@pytest.fixture
def white_png(make_image_bytes):
    return make_image_bytes((255, 255, 255))


@pytest.fixture
def black_png(make_image_bytes):
    return make_image_bytes((0, 0, 0))


@pytest.fixture
def random_png():
    """Seeded noise image, 32x24."""
    rng = np.random.default_rng(1234)
    rgb = rng.integers(0, 256, size=(24, 32, 3), dtype=np.uint8)
    return encode_rgb(rgb)


# =============================================================================
# Metric Fixtures
# =============================================================================

@pytest.fixture
def make_averages():
    """Factory for ColorAverages with neutral mid-gray defaults."""
    def _make(**overrides) -> ColorAverages:
        values = dict(red=128.0, green=128.0, blue=128.0, brightness=128.0, saturation=0.0, variance=0.0)
        values.update(overrides)
        return ColorAverages(**values)

    return _make


@pytest.fixture
def make_metrics():
    """Factory for WaterQualityMetrics; defaults sit inside every acceptable and safe range."""
    def _make(**overrides) -> WaterQualityMetrics:
        values = dict(
            ph=7.0,
            turbidity=0.5,
            dissolved_oxygen=7.0,
            temperature=20.0,
            conductivity=500.0,
            total_dissolved_solids=400.0,
            chlorine=1.0,
            hardness=100.0,
        )
        values.update(overrides)
        return WaterQualityMetrics(**values)

    return _make
