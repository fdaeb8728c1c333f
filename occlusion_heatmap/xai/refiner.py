# occlusion_heatmap/xai/refiner.py

# Work-Item Schedulers For Coarse-To-Fine Exploration
# RegionRefiner: FIFO Of (Region, Window Size), Zooming Only Where The Score Signals Interest
# ShrinkRefiner: Whole-Image Passes With The Window Shrunk By A Fixed Ratio Each Time

from __future__ import annotations

# Standard Library
import math
from collections import deque
from typing import Deque, Iterator, Optional, Set, Tuple

# Local
from occlusion_heatmap.constants.defaults import MIN_GRID_SIZE, SHRINK_ITERATIONS, SHRINK_RATIO
from occlusion_heatmap.xai.core.errors import InvalidArgument
from occlusion_heatmap.xai.core.types import Rect, Sample, WorkItem, ZoomPredicate


def halve_window(w: int, h: int) -> Tuple[int, int]:
    return math.ceil(w / 2), math.ceil(h / 2)


def can_refine(w: int, h: int, min_w: int, min_h: int) -> bool:
    # Halved Size Must Stay At/Above The Minimum And Actually Shrink
    nw, nh = halve_window(w, h)
    if nw < min_w or nh < min_h:
        return False
    return (nw, nh) != (w, h)


def refinement_steps(w: int, h: int, min_w: int = MIN_GRID_SIZE, min_h: int = MIN_GRID_SIZE) -> int:
    # Number Of Halvings A Window Admits Before The Guard Stops Enqueuing
    steps = 0
    while can_refine(w, h, min_w, min_h):
        w, h = halve_window(w, h)
        steps += 1
    return steps


def threshold_predicate(threshold: float) -> ZoomPredicate:
    def should_zoom(score: float) -> bool:
        return score > threshold
    return should_zoom


def _check_sizes(w: int, h: int, min_w: int, min_h: int) -> None:
    if w <= 0 or h <= 0:
        raise InvalidArgument(f"Window size must be positive, got {w}x{h}")
    if min_w <= 0 or min_h <= 0:
        raise InvalidArgument(f"Minimum window size must be positive, got {min_w}x{min_h}")


class RegionRefiner:
    """Adaptive zoom scheduler.

    Seeded with one work item covering `image_rect`. Every sample offered back
    may enqueue a new item whose region is that sample's window and whose window
    size is halved, as long as `should_zoom(score)` holds and `can_refine`
    allows it. Items are drained first-in first-out, so every coarse item is
    swept (and painted) before its finer children.
    """

    def __init__(
        self,
        image_rect: Rect,
        window_w: int,
        window_h: int,
        min_w: int = MIN_GRID_SIZE,
        min_h: int = MIN_GRID_SIZE,
        should_zoom: Optional[ZoomPredicate] = None,
    ):
        _check_sizes(window_w, window_h, min_w, min_h)
        self.min_w, self.min_h = int(min_w), int(min_h)
        self.should_zoom = should_zoom
        self.queue: Deque[WorkItem] = deque()
        self._seen: Set[WorkItem] = set()
        self.enqueued = 0
        self._push(WorkItem(image_rect, int(window_w), int(window_h), 0))

    def _push(self, item: WorkItem) -> bool:
        if item in self._seen:
            return False
        self._seen.add(item)
        self.queue.append(item)
        self.enqueued += 1
        return True

    def __len__(self) -> int:
        return len(self.queue)

    def next_item(self) -> Optional[WorkItem]:
        return self.queue.popleft() if self.queue else None

    def offer(self, item: WorkItem, sample: Sample) -> Optional[WorkItem]:
        # Returns The New Finer Work Item, Or None If The Sample Does Not Zoom
        if self.should_zoom is None or not self.should_zoom(sample.score):
            return None
        if not can_refine(sample.w, sample.h, self.min_w, self.min_h):
            return None
        nw, nh = halve_window(sample.w, sample.h)
        child = WorkItem(sample.rect, nw, nh, item.depth + 1)
        return child if self._push(child) else None

    def __iter__(self) -> Iterator[WorkItem]:
        while self.queue:
            yield self.queue.popleft()


class ShrinkRefiner:
    """Whole-image variant: re-sweep the full canvas with the window scaled by
    `shrink_ratio` (rounded up) after every pass, for at most `iterations`
    passes. Stops early once the size stops shrinking or falls below the minimum.
    Samples are ignored; this policy does not focus on regions of interest.
    """

    def __init__(
        self,
        image_rect: Rect,
        window_w: int,
        window_h: int,
        shrink_ratio: float = SHRINK_RATIO,
        iterations: int = SHRINK_ITERATIONS,
        min_w: int = MIN_GRID_SIZE,
        min_h: int = MIN_GRID_SIZE,
    ):
        _check_sizes(window_w, window_h, min_w, min_h)
        if not 0 < shrink_ratio < 1:
            raise InvalidArgument(f"shrink_ratio must be in (0, 1), got {shrink_ratio}")
        if iterations < 1:
            raise InvalidArgument(f"iterations must be >= 1, got {iterations}")
        self.image_rect = image_rect
        self.window_w, self.window_h = int(window_w), int(window_h)
        self.shrink_ratio = float(shrink_ratio)
        self.iterations = int(iterations)
        self.min_w, self.min_h = int(min_w), int(min_h)

    def __len__(self) -> int:
        return 0  # Passes Are Generated Lazily

    def offer(self, item: WorkItem, sample: Sample) -> Optional[WorkItem]:
        return None

    def __iter__(self) -> Iterator[WorkItem]:
        w, h = self.window_w, self.window_h
        for i in range(self.iterations):
            yield WorkItem(self.image_rect, w, h, i)
            nw = math.ceil(w * self.shrink_ratio)
            nh = math.ceil(h * self.shrink_ratio)
            if (nw, nh) == (w, h) or nw < self.min_w or nh < self.min_h:
                return
            w, h = nw, nh
