from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, List, Union

if TYPE_CHECKING:
    from occlusion_heatmap.xai.core.buffer import PixelBuffer
    from occlusion_heatmap.xai.compositor import HeatmapSurface


@dataclass(frozen=True)
class Rect:
    x: int; y: int; w: int; h: int

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h

    def contains(self, other: "Rect") -> bool:
        return (other.x >= self.x and other.y >= self.y
                and other.right <= self.right and other.bottom <= self.bottom)

    def contains_point(self, px: int, py: int) -> bool:
        return self.x <= px < self.right and self.y <= py < self.bottom


@dataclass(frozen=True)
class Sample:
    x: int; y: int; w: int; h: int
    score: float
    depth: int = 0              # 0 = first sweep / first shrink pass

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.w, self.h)


@dataclass(frozen=True)
class WorkItem:
    region: Rect
    window_w: int
    window_h: int
    depth: int = 0


@dataclass
class HeatmapContext:
    """What the scorer sees: the occluded image, the overlay so far, and where the patch is."""
    image: "PixelBuffer"
    heatmap: "HeatmapSurface"
    window: Rect
    depth: int = 0


@dataclass
class HeatmapResult:
    heatmap: "HeatmapSurface"
    samples: List[Sample] = field(default_factory=list)
    passes: int = 0             # Work items (adaptive) or whole-image passes (shrink) completed
    stopped: bool = False       # True when the stop hook ended the run early


Scorer = Callable[[HeatmapContext], Union[float, Awaitable[float]]]
ZoomPredicate = Callable[[float], bool]
