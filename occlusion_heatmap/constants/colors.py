# occlusion_heatmap/constants/colors.py

# Reference Fill Colors For Occlusion Patches
# Each Value Is Applied Uniformly To The R, G And B Channels

from __future__ import annotations

# Standard Library
from enum import IntEnum
from typing import Tuple


class OcclusionColor(IntEnum):
    BLACK = 0
    WHITE = 255
    GRAY = 127

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return (int(self), int(self), int(self))


# Black And White Count As Tied When Their Squared Distances Differ By At Most This
# And The Mean Lies Within The Same Squared Distance Of Gray
TIE_TOLERANCE = 3 * 255
