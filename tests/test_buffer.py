import numpy as np
import pytest
from PIL import Image

from occlusion_heatmap.utils.vis import colormap_scale, load_image_buffer
from occlusion_heatmap.xai.core.buffer import PixelBuffer
from occlusion_heatmap.xai.core.errors import InvalidArgument


# PixelBuffer

def test_buffer_from_array_adds_opaque_alpha():
    buf = PixelBuffer.from_array(np.zeros((3, 5, 3), dtype=np.uint8))
    assert (buf.width, buf.height) == (5, 3)
    assert np.all(buf.data[:, :, 3] == 255)
    assert buf.xy_to_offset(2, 1) == (1 * 5 + 2) * 4


def test_buffer_rejects_bad_arrays():
    with pytest.raises(InvalidArgument):
        PixelBuffer(np.zeros((3, 3, 3), dtype=np.uint8))
    with pytest.raises(InvalidArgument):
        PixelBuffer(np.zeros((3, 3, 4), dtype=np.float32))


# Image Loading And Color Scales

def test_load_image_buffer(tmp_path):
    path = tmp_path / "img.png"
    Image.new("RGB", (40, 20), (10, 20, 30)).save(path)
    buf = load_image_buffer(path, size=20)
    assert (buf.width, buf.height) == (20, 10)
    assert tuple(buf.data[0, 0]) == (10, 20, 30, 255)
    with pytest.raises(FileNotFoundError):
        load_image_buffer(tmp_path / "missing.png")


def test_colormap_scale_shape_and_alpha():
    table = colormap_scale("viridis", alpha=0.5)
    assert table.shape == (256, 4)
    assert table.dtype == np.uint8
    assert np.all(table[:, 3] == 128)
