# occlusion_heatmap/utils/vis.py

# Image And Color-Scale Helpers For The Heatmap CLI
# Loads Images Into PixelBuffers With Pillow, Samples Matplotlib Colormaps Into Lookup Tables

from __future__ import annotations

# Standard Library
from pathlib import Path
from typing import Union

# Third-Party
import numpy as np
from PIL import Image
import matplotlib

# Local
from occlusion_heatmap.constants.defaults import SCALE_SIZE
from occlusion_heatmap.xai.core.buffer import PixelBuffer


def load_image_buffer(path: Union[str, Path], size: int | None = None) -> PixelBuffer:
    # Read Image From Disk As RGBA, Optionally Resizing The Longer Side To `size`
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Image not found: {p}")
    with Image.open(p) as img:
        img = img.convert("RGBA")
        if size:
            scale = float(size) / max(img.size)
            new_wh = (max(1, round(img.size[0] * scale)), max(1, round(img.size[1] * scale)))
            img = img.resize(new_wh, resample=Image.BILINEAR)
        return PixelBuffer.from_image(img)


def colormap_scale(name: str = "jet", alpha: float = 0.5) -> np.ndarray:
    # Sample A Matplotlib Colormap Into A (256, 4) RGBA Table With Constant Alpha
    cmap = matplotlib.colormaps[name]
    table = cmap(np.linspace(0.0, 1.0, SCALE_SIZE))
    table[:, 3] = float(alpha)
    return np.rint(table * 255.0).astype(np.uint8)

