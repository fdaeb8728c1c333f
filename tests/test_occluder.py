import numpy as np
import pytest

from conftest import random_buffer, solid_buffer
from occlusion_heatmap.constants.colors import OcclusionColor
from occlusion_heatmap.xai.core.errors import InvalidArgument
from occlusion_heatmap.xai.core.types import Rect
from occlusion_heatmap.xai.mask import MaskCache
from occlusion_heatmap.xai.occluder import (
    calc_mean_color, occlude_rect, occluded, pick_occlusion_color, restore_rect,
)


# Color Picker

def test_pick_color_contrast_cases():
    assert pick_occlusion_color((0, 0, 0)) is OcclusionColor.WHITE
    assert pick_occlusion_color((255, 255, 255)) is OcclusionColor.BLACK
    assert pick_occlusion_color((127, 127, 127)) is OcclusionColor.GRAY
    assert pick_occlusion_color((128, 128, 128)) is OcclusionColor.GRAY


def test_pick_color_saturated_colors():
    assert pick_occlusion_color((250, 240, 10)) is OcclusionColor.BLACK
    assert pick_occlusion_color((10, 20, 200)) is OcclusionColor.WHITE
    assert OcclusionColor.GRAY.rgb == (127, 127, 127)


def test_pick_color_saturated_near_midpoint_sum():
    # Channel sum 382 balances black and white, but gray is the nearest reference
    assert pick_occlusion_color((255, 0, 127)) is OcclusionColor.WHITE
    assert pick_occlusion_color((0, 255, 128)) is OcclusionColor.BLACK
    assert pick_occlusion_color((126, 127, 128)) is OcclusionColor.GRAY


def test_mean_color_is_floor_average():
    buf = solid_buffer(4, 4, (0, 0, 0))
    buf.data[0, 0, :3] = (3, 5, 7)
    assert calc_mean_color(buf, 0, 0, 2, 2) == (0, 1, 1)
    assert calc_mean_color(buf, 1, 1, 3, 3) == (0, 0, 0)


# Occlude / Restore

@pytest.mark.parametrize("seed", range(8))
def test_restore_is_pixel_identical(seed):
    rng = np.random.default_rng(seed)
    W, H = int(rng.integers(2, 40)), int(rng.integers(2, 40))
    buf = random_buffer(W, H, seed=seed)
    before = buf.data.copy()
    cache = MaskCache()
    for _ in range(5):
        w, h = int(rng.integers(1, W + 1)), int(rng.integers(1, H + 1))
        x, y = int(rng.integers(0, W - w + 1)), int(rng.integers(0, H - h + 1))
        backup = occlude_rect(buf, cache.get_mask(w, h), x, y, w, h)
        assert backup.shape == (h, w, 4)
        assert np.array_equal(buf.data[:, :, 3], before[:, :, 3])
        restore_rect(buf, backup, x, y, w, h)
        assert np.array_equal(buf.data, before)


def test_occlude_blends_towards_contrasting_color():
    buf = solid_buffer(9, 9, (0, 0, 0))
    mask = MaskCache(gain=1.0).get_mask(9, 9)
    occlude_rect(buf, mask, 0, 0, 9, 9)
    # Black Content -> White Fill, Full Weight At The Centre
    assert tuple(buf.data[4, 4, :3]) == (255, 255, 255)
    expected = int(np.floor(float(mask[0, 4]) * 255))
    assert buf.data[0, 4, 0] == expected
    assert np.all(buf.data[:, :, 3] == 255)


def test_occlude_only_touches_window():
    buf = random_buffer(20, 20, seed=3)
    before = buf.data.copy()
    occlude_rect(buf, MaskCache().get_mask(5, 4), 6, 7, 5, 4)
    outside = np.ones((20, 20), dtype=bool)
    outside[7:11, 6:11] = False
    assert np.array_equal(buf.data[outside], before[outside])


def test_mask_mismatch_fails_before_mutation():
    buf = random_buffer(10, 10, seed=1)
    before = buf.data.copy()
    with pytest.raises(InvalidArgument):
        occlude_rect(buf, MaskCache().get_mask(4, 4), 0, 0, 5, 4)
    assert np.array_equal(buf.data, before)


@pytest.mark.parametrize("x,y,w,h", [(-1, 0, 3, 3), (8, 0, 3, 3), (0, 9, 2, 2), (0, 0, 0, 3)])
def test_window_outside_buffer_rejected(x, y, w, h):
    buf = random_buffer(10, 10, seed=2)
    before = buf.data.copy()
    mask = np.ones((max(h, 1), max(w, 1)), dtype=np.float32)
    with pytest.raises(InvalidArgument):
        occlude_rect(buf, mask, x, y, w, h)
    assert np.array_equal(buf.data, before)


def test_restore_rejects_wrong_backup_shape():
    buf = random_buffer(10, 10, seed=4)
    backup = occlude_rect(buf, MaskCache().get_mask(3, 3), 0, 0, 3, 3)
    with pytest.raises(InvalidArgument):
        restore_rect(buf, backup, 0, 0, 4, 3)


def test_occluded_context_restores_on_error():
    buf = random_buffer(12, 12, seed=5)
    before = buf.data.copy()
    with pytest.raises(KeyError):
        with occluded(buf, MaskCache().get_mask(6, 6), Rect(3, 3, 6, 6)):
            assert not np.array_equal(buf.data, before)
            raise KeyError("boom")
    assert np.array_equal(buf.data, before)
