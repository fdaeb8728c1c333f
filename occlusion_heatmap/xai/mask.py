# occlusion_heatmap/xai/mask.py

# Radial Occlusion Masks
# Weight 1 At The Window Centre, Fading Towards The Edges So Neighbouring Tiles Blend Without Seams

from __future__ import annotations

# Standard Library
from typing import Dict, Tuple

# Third-Party
import numpy as np

# Local
from occlusion_heatmap.constants.defaults import MASK_GAIN
from occlusion_heatmap.xai.core.errors import InvalidArgument


def _axis_falloff(n: int) -> np.ndarray:
    # Squared Normalized Distance Of Each Pixel Centre From The Axis Centre
    half = n / 2.0
    d = (np.arange(n, dtype=np.float64) + 0.5 - half) / half
    return d * d


def occlusion_mask(w: int, h: int, gain: float = MASK_GAIN) -> np.ndarray:
    """Build an (h, w) float32 weight map in [0, 1].

    weight = clip((1 - max(wx, wy)) * gain, 0, 1) with wx, wy the squared
    normalized distances of the pixel centre from the window centre. Measuring
    from pixel centres keeps the map mirror-symmetric on both axes, and a
    1-pixel axis has zero distance, so a 1x1 window is fully occluded.
    """
    if w <= 0 or h <= 0:
        raise InvalidArgument(f"Mask size must be positive, got {w}x{h}")
    if gain <= 0:
        raise InvalidArgument(f"Mask gain must be positive, got {gain}")
    wx = _axis_falloff(w)[None, :]
    wy = _axis_falloff(h)[:, None]
    weights = (1.0 - np.maximum(wx, wy)) * gain
    return np.clip(weights, 0.0, 1.0).astype(np.float32)


class MaskCache:
    """Per-run memo of occlusion masks keyed by (w, h).
    The same window size recurs across every position of a sweep and across
    sibling work items, so each mask is built once and kept until the run ends.
    """

    def __init__(self, gain: float = MASK_GAIN):
        if gain <= 0:
            raise InvalidArgument(f"Mask gain must be positive, got {gain}")
        self.gain = float(gain)
        self._masks: Dict[Tuple[int, int], np.ndarray] = {}

    def get_mask(self, w: int, h: int) -> np.ndarray:
        key = (int(w), int(h))
        mask = self._masks.get(key)
        if mask is None:
            mask = occlusion_mask(key[0], key[1], self.gain)
            mask.setflags(write=False)  # Shared Across Calls
            self._masks[key] = mask
        return mask

    def __len__(self) -> int:
        return len(self._masks)

    def __contains__(self, key) -> bool:
        return tuple(key) in self._masks

    def clear(self) -> None:
        self._masks.clear()
