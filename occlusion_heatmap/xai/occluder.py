# occlusion_heatmap/xai/occluder.py

# Occlude / Restore A Window Of A PixelBuffer
# Picks The Most Contrasting Fill (Black, White Or Gray) And Blends It Through The Mask

from __future__ import annotations

# Standard Library
from contextlib import contextmanager
from typing import Iterator, Sequence, Tuple

# Third-Party
import numpy as np

# Local
from occlusion_heatmap.constants.colors import OcclusionColor, TIE_TOLERANCE
from occlusion_heatmap.xai.core.buffer import PixelBuffer
from occlusion_heatmap.xai.core.errors import InvalidArgument
from occlusion_heatmap.xai.core.types import Rect


def calc_mean_color(buffer: PixelBuffer, x: int, y: int, w: int, h: int) -> Tuple[int, int, int]:
    # Channel-Wise Floor Average Over The Window
    win = buffer.view(x, y, w, h)
    totals = win[:, :, :3].reshape(-1, 3).sum(axis=0, dtype=np.int64)
    n = w * h
    r, g, b = (int(t) // n for t in totals)
    return r, g, b


def pick_occlusion_color(mean_color: Sequence[int]) -> OcclusionColor:
    """Return the reference color farthest from `mean_color`.
    A candidate must strictly dominate both others; otherwise GRAY.
    """
    r, g, b = (int(c) for c in mean_color)
    black_dist = r ** 2 + g ** 2 + b ** 2
    white_dist = (255 - r) ** 2 + (255 - g) ** 2 + (255 - b) ** 2
    gray_dist = (127 - r) ** 2 + (127 - g) ** 2 + (127 - b) ** 2

    # Integer Means Never Tie Black And White Exactly; A Near-Gray Midpoint Counts As A Tie
    if abs(black_dist - white_dist) <= TIE_TOLERANCE and gray_dist <= TIE_TOLERANCE:
        return OcclusionColor.GRAY
    if black_dist > white_dist and black_dist > gray_dist:
        return OcclusionColor.BLACK
    if white_dist > black_dist and white_dist > gray_dist:
        return OcclusionColor.WHITE
    return OcclusionColor.GRAY


def _check_mask(mask: np.ndarray, w: int, h: int) -> None:
    if mask.shape != (h, w):
        raise InvalidArgument(f"Mask shape {mask.shape} does not match window {w}x{h}")


def occlude_rect(
    buffer: PixelBuffer,
    mask: np.ndarray,
    x: int,
    y: int,
    w: int,
    h: int,
) -> np.ndarray:
    """Blend the occlusion color into the window and return the pre-blend pixels.

    result = floor(weight * color + (1 - weight) * original) per RGB channel;
    alpha is left untouched. The returned backup is a contiguous (h, w, 4)
    copy of the window, independent of the buffer's row pitch.
    """
    buffer.check_window(x, y, w, h)
    _check_mask(mask, w, h)

    color = int(pick_occlusion_color(calc_mean_color(buffer, x, y, w, h)))
    win = buffer.view(x, y, w, h)
    backup = win.copy()

    weight = mask.astype(np.float64)[:, :, None]
    original = backup[:, :, :3].astype(np.float64)
    blended = np.floor(weight * color + (1.0 - weight) * original)
    win[:, :, :3] = np.clip(blended, 0, 255).astype(np.uint8)
    return backup


def restore_rect(buffer: PixelBuffer, backup: np.ndarray, x: int, y: int, w: int, h: int) -> None:
    # Write The Backup's RGB Channels Back To The Same Coordinates
    buffer.check_window(x, y, w, h)
    if backup.shape != (h, w, 4):
        raise InvalidArgument(f"Backup shape {backup.shape} does not match window {w}x{h}")
    buffer.view(x, y, w, h)[:, :, :3] = backup[:, :, :3]


@contextmanager
def occluded(buffer: PixelBuffer, mask: np.ndarray, rect: Rect) -> Iterator[np.ndarray]:
    # Occlude On Entry, Always Restore On Exit (Errors And Cancellation Included)
    backup = occlude_rect(buffer, mask, rect.x, rect.y, rect.w, rect.h)
    try:
        yield backup
    finally:
        restore_rect(buffer, backup, rect.x, rect.y, rect.w, rect.h)
