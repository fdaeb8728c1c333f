"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from occlusion_heatmap.xai.core.buffer import PixelBuffer


def solid_buffer(width: int, height: int, rgb=(127, 127, 127), alpha: int = 255) -> PixelBuffer:
    return PixelBuffer.blank(width, height, tuple(rgb) + (alpha,))


def random_buffer(width: int, height: int, seed: int = 0) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    return PixelBuffer(rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8))


def linear_scale(alpha: int = 255) -> np.ndarray:
    # Red Ramps Up With The Score, Blue Ramps Down
    ramp = np.arange(256, dtype=np.uint8)
    table = np.zeros((256, 4), dtype=np.uint8)
    table[:, 0] = ramp
    table[:, 2] = 255 - ramp
    table[:, 3] = alpha
    return table


@pytest.fixture
def gray_image() -> PixelBuffer:
    return solid_buffer(100, 100)


@pytest.fixture
def noisy_image() -> PixelBuffer:
    return random_buffer(37, 23, seed=7)


@pytest.fixture
def color_scale() -> np.ndarray:
    return linear_scale()
