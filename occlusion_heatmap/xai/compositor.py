# occlusion_heatmap/xai/compositor.py

# Heatmap Surface And Compositor
# Maps Each Score Through An Injected 256-Entry RGBA Table And Composites It, Mask-Weighted, Onto The Overlay

from __future__ import annotations

# Standard Library
import math
from typing import Any, Iterable

# Third-Party
import numpy as np

# Local
from occlusion_heatmap.constants.defaults import BLEND_MODES, SCALE_SIZE
from occlusion_heatmap.xai.core.errors import InvalidArgument
from occlusion_heatmap.xai.core.types import Rect, Sample


class HeatmapSurface:
    """(H, W, 4) uint8 RGBA overlay, transparent at start, registered to the image."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise InvalidArgument(f"Surface size must be positive, got {width}x{height}")
        self.data = np.zeros((height, width, 4), dtype=np.uint8)

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    def clear(self) -> None:
        self.data[...] = 0

    def composite(self, rgba: np.ndarray, alpha: np.ndarray, rect: Rect, blend: str = "over") -> None:
        # rgba: (3,) Color In 0..255; alpha: (h, w) Per-Pixel Source Alpha In 0..1
        if rect.x < 0 or rect.y < 0 or rect.right > self.width or rect.bottom > self.height:
            raise InvalidArgument(f"Rect {rect} exceeds surface {self.width}x{self.height}")
        if alpha.shape != (rect.h, rect.w):
            raise InvalidArgument(f"Alpha shape {alpha.shape} does not match {rect.w}x{rect.h}")

        dst = self.data[rect.y:rect.bottom, rect.x:rect.right]
        src_a = np.clip(alpha.astype(np.float64), 0.0, 1.0)[:, :, None]
        src_rgb = np.asarray(rgba, dtype=np.float64)[None, None, :3]

        if blend == "replace":
            hit = src_a[:, :, 0] > 0
            dst[hit, :3] = np.clip(np.rint(src_rgb[0, 0]), 0, 255).astype(np.uint8)
            dst[hit, 3] = np.rint(src_a[hit, 0] * 255.0).astype(np.uint8)
            return

        # Porter-Duff Source-Over On Straight (Non-Premultiplied) Alpha
        dst_a = dst[:, :, 3:4].astype(np.float64) / 255.0
        dst_rgb = dst[:, :, :3].astype(np.float64)
        out_a = src_a + dst_a * (1.0 - src_a)
        num = src_rgb * src_a + dst_rgb * dst_a * (1.0 - src_a)
        out_rgb = np.divide(num, out_a, out=np.zeros_like(num), where=out_a > 0)
        dst[:, :, :3] = np.clip(np.rint(out_rgb), 0, 255).astype(np.uint8)
        dst[:, :, 3] = np.clip(np.rint(out_a[:, :, 0] * 255.0), 0, 255).astype(np.uint8)


def check_color_scale(color_scale: Any) -> np.ndarray:
    table = np.asarray(color_scale, dtype=np.float64)
    if table.shape != (SCALE_SIZE, 4):
        raise InvalidArgument(f"Color scale must have shape ({SCALE_SIZE}, 4), got {table.shape}")
    if not np.all(np.isfinite(table)) or table.min() < 0 or table.max() > 255:
        raise InvalidArgument("Color scale entries must be finite values in [0, 255]")
    return table


def score_index(score: float) -> int:
    # round(score * 255) Into The Lookup Table, Halves Rounded Up
    return int(math.floor(min(max(float(score), 0.0), 1.0) * (SCALE_SIZE - 1) + 0.5))


class HeatmapCompositor:
    """Paints samples onto a HeatmapSurface.

    The table alpha is multiplied by the window's occlusion mask so each sample
    fades at its edges the same way its occlusion did. Later paints land on top
    of earlier ones, which is how finer passes visually override coarser ones.
    """

    def __init__(self, surface: HeatmapSurface, color_scale: Any, blend: str = "over"):
        if blend not in BLEND_MODES:
            raise InvalidArgument(f"Unknown blend mode {blend!r}, expected one of {BLEND_MODES}")
        self.surface = surface
        self.table = check_color_scale(color_scale)
        self.blend = blend
        self.painted = 0

    def color_for(self, score: float) -> np.ndarray:
        return self.table[score_index(score)]

    def paint(self, sample: Sample, mask: np.ndarray) -> None:
        if mask.shape != (sample.h, sample.w):
            raise InvalidArgument(f"Mask shape {mask.shape} does not match sample {sample.w}x{sample.h}")
        color = self.color_for(sample.score)
        alpha = (color[3] / 255.0) * mask
        self.surface.composite(color[:3], alpha, sample.rect, self.blend)
        self.painted += 1

    def paint_all(self, samples: Iterable[Sample], masks) -> None:
        # Batched Draw, In Order; `masks` Is A MaskCache
        for s in samples:
            self.paint(s, masks.get_mask(s.w, s.h))
