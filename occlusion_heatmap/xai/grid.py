# occlusion_heatmap/xai/grid.py

# Sliding-Window Grid Walker
# Evenly Spaced Steps That Always End Flush Against The Region's Far Edge

from __future__ import annotations

# Standard Library
import math
from typing import Iterator, List

# Local
from occlusion_heatmap.xai.core.errors import InvalidArgument
from occlusion_heatmap.xai.core.types import Rect


def compute_slide(total_size: int, desired_slide: float) -> int:
    """Spread the traversable range over `count` (nearly) equal steps.

    count = ceil((total - slide) / slide); slide = ceil((total - slide) / count).
    A zero count means a single step: the slide overshoots the range, so the
    walker samples the start and then the flush position. Result is always an integer >= 1.
    """
    slide = math.ceil(desired_slide)
    if slide < 1:
        raise InvalidArgument(f"Slide must be at least 1 pixel, got {desired_slide}")
    count = math.ceil((total_size - slide) / slide)
    if count < 0:
        raise InvalidArgument(f"Negative slide count for total={total_size}, slide={slide}")
    if count == 0:
        return max(1, total_size)
    return max(1, math.ceil((total_size - slide) / count))


def slide_positions(start: int, length: int, window: int, slide: int) -> List[int]:
    # 1D Positions: Step From `start`, Then Snap Once To The Flush Position If The Next Step Overshoots
    if length <= 0 or window <= 0:
        raise InvalidArgument(f"Length and window must be positive, got {length} and {window}")
    if slide < 1:
        raise InvalidArgument(f"Slide must be at least 1 pixel, got {slide}")
    if window >= length:
        return [start]

    flush = start + length - window
    positions = []
    pos = start
    while pos - start + window <= length:
        positions.append(pos)
        pos += slide
        if pos - start + window > length:
            if flush != positions[-1]:
                positions.append(flush)
            break
    return positions


def window_slides(region: Rect, w: int, h: int, slide_ratio: float):
    # Clamp The Window To The Region And Derive Both Axis Slides
    w, h = min(w, region.w), min(h, region.h)
    x_slide = compute_slide(region.w, w * slide_ratio)
    y_slide = compute_slide(region.h, h * slide_ratio)
    return w, h, x_slide, y_slide


def iter_windows(region: Rect, w: int, h: int, slide_ratio: float) -> Iterator[Rect]:
    """Yield every window of a sweep over `region`, row-major (y outer, x inner)."""
    if slide_ratio <= 0:
        raise InvalidArgument(f"slide_ratio must be positive, got {slide_ratio}")
    w, h, x_slide, y_slide = window_slides(region, w, h, slide_ratio)
    xs = slide_positions(region.x, region.w, w, x_slide)
    for y in slide_positions(region.y, region.h, h, y_slide):
        for x in xs:
            yield Rect(x, y, w, h)


def count_windows(region: Rect, w: int, h: int, slide_ratio: float) -> int:
    if slide_ratio <= 0:
        raise InvalidArgument(f"slide_ratio must be positive, got {slide_ratio}")
    w, h, x_slide, y_slide = window_slides(region, w, h, slide_ratio)
    nx = len(slide_positions(region.x, region.w, w, x_slide))
    ny = len(slide_positions(region.y, region.h, h, y_slide))
    return nx * ny
