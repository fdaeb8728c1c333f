# occlusion_heatmap/xai/core/buffer.py

# RGBA8 Pixel Buffer Accessor
# Thin Wrapper Over An (H, W, 4) uint8 NumPy Array, Row-Major, 4 Bytes Per Pixel

from __future__ import annotations

# Standard Library
from typing import Any

# Third-Party
import numpy as np

# Local
from occlusion_heatmap.xai.core.errors import InvalidArgument
from occlusion_heatmap.xai.core.types import Rect


class PixelBuffer:
    """Caller-owned RGBA image the engine occludes in place.
    `data` is shared, not copied: writes through `view` land in the caller's array.
    """

    def __init__(self, data: np.ndarray):
        if not isinstance(data, np.ndarray) or data.dtype != np.uint8:
            raise InvalidArgument("PixelBuffer expects a uint8 numpy array")
        if data.ndim != 3 or data.shape[2] != 4:
            raise InvalidArgument(f"PixelBuffer expects shape (H, W, 4), got {data.shape}")
        if data.shape[0] < 1 or data.shape[1] < 1:
            raise InvalidArgument(f"PixelBuffer must be non-empty, got {data.shape}")
        self.data = data

    @classmethod
    def from_array(cls, arr: Any) -> "PixelBuffer":
        # Accept HxW (Gray), HxWx3 (RGB) Or HxWx4 (RGBA); Missing Alpha Becomes Opaque
        a = np.asarray(arr)
        if a.dtype != np.uint8:
            a = np.clip(a, 0, 255).astype(np.uint8)
        if a.ndim == 2:
            a = np.repeat(a[:, :, None], 3, axis=2)
        if a.ndim == 3 and a.shape[2] == 3:
            alpha = np.full(a.shape[:2] + (1,), 255, dtype=np.uint8)
            a = np.concatenate([a, alpha], axis=2)
        return cls(np.ascontiguousarray(a))

    @classmethod
    def from_image(cls, img: Any) -> "PixelBuffer":
        # PIL Image -> RGBA Buffer
        return cls(np.array(img.convert("RGBA"), dtype=np.uint8))

    @classmethod
    def blank(cls, width: int, height: int, rgba=(0, 0, 0, 0)) -> "PixelBuffer":
        data = np.empty((height, width, 4), dtype=np.uint8)
        data[...] = np.asarray(rgba, dtype=np.uint8)
        return cls(data)

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def rect(self) -> Rect:
        return Rect(0, 0, self.width, self.height)

    def xy_to_offset(self, x: int, y: int) -> int:
        # Byte Offset Of Pixel (x, y) In The Flat RGBA Store
        return (y * self.width + x) * 4

    def tobytes(self) -> bytes:
        return self.data.tobytes()

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.data.copy())

    def rgb(self) -> np.ndarray:
        return self.data[:, :, :3]

    def check_window(self, x: int, y: int, w: int, h: int) -> None:
        if w <= 0 or h <= 0:
            raise InvalidArgument(f"Window must have positive size, got {w}x{h}")
        if x < 0 or y < 0 or x + w > self.width or y + h > self.height:
            raise InvalidArgument(
                f"Window ({x}, {y}, {w}, {h}) exceeds buffer {self.width}x{self.height}"
            )

    def view(self, x: int, y: int, w: int, h: int) -> np.ndarray:
        # Writable (h, w, 4) View Into The Buffer
        self.check_window(x, y, w, h)
        return self.data[y:y + h, x:x + w]
