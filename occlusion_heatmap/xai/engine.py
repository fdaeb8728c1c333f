# occlusion_heatmap/xai/engine.py

# Occlusion Heatmap Driver
# Per Window: Occlude -> Await Score -> Composite -> Optional Pacing Sleep -> Restore
# Single Task, Strictly Sequential; The Scorer Is The Only Real Suspension Point

from __future__ import annotations

# Standard Library
import asyncio
import inspect
import math
import time
from typing import Any, Callable, List, Optional

# Third-Party
import numpy as np
from tqdm.auto import tqdm

# Local
from occlusion_heatmap.utils.config import HeatmapConfig
from occlusion_heatmap.utils.echo import echo_line
from occlusion_heatmap.xai.compositor import HeatmapCompositor, HeatmapSurface
from occlusion_heatmap.xai.core.buffer import PixelBuffer
from occlusion_heatmap.xai.core.errors import InvalidArgument, ScoringFailure
from occlusion_heatmap.xai.core.types import (
    HeatmapContext, HeatmapResult, Rect, Sample, Scorer, WorkItem, ZoomPredicate,
)
from occlusion_heatmap.xai.grid import count_windows, iter_windows
from occlusion_heatmap.xai.mask import MaskCache
from occlusion_heatmap.xai.occluder import occluded
from occlusion_heatmap.xai.refiner import RegionRefiner, ShrinkRefiner


async def _call_scorer(calc_score: Scorer, ctx: HeatmapContext) -> float:
    # Run The Injected Scorer (Sync Or Async) And Vet Its Result
    try:
        value = calc_score(ctx)
        if inspect.isawaitable(value):
            value = await value
    except Exception as exc:
        raise ScoringFailure(f"Scorer failed on window {ctx.window}: {exc}") from exc

    try:
        score = float(value)
    except (TypeError, ValueError) as exc:
        raise ScoringFailure(f"Scorer returned a non-numeric score {value!r}") from exc
    if not math.isfinite(score):
        raise ScoringFailure(f"Scorer returned a non-finite score {score}")
    if score < 0.0 or score > 1.0:
        echo_line("WARN", {"msg": "Score Outside [0, 1], Clipped", "score": score,
                           "window": f"{ctx.window.x},{ctx.window.y},{ctx.window.w}x{ctx.window.h}"})
        score = min(max(score, 0.0), 1.0)
    return score


def _make_refiner(cfg: HeatmapConfig, image_rect: Rect, w: int, h: int,
                  should_zoom: Optional[ZoomPredicate]):
    if cfg.strategy == "shrink":
        return ShrinkRefiner(image_rect, w, h, cfg.shrink_ratio, cfg.shrink_iterations,
                             cfg.min_grid_width, cfg.min_grid_height)
    return RegionRefiner(image_rect, w, h, cfg.min_grid_width, cfg.min_grid_height,
                         should_zoom if cfg.refine else None)


class HeatmapEngine:
    """One run over one image. Owns the mask cache, the work queue and the compositor;
    none of them outlive the run.
    """

    def __init__(
        self,
        image: Any,
        calc_score: Scorer,
        color_scale: Any,
        cfg: Optional[HeatmapConfig] = None,
        should_zoom: Optional[ZoomPredicate] = None,
        surface: Optional[HeatmapSurface] = None,
    ):
        self.buffer = image if isinstance(image, PixelBuffer) else PixelBuffer.from_array(image)
        self.calc_score = calc_score
        self.cfg = (cfg or HeatmapConfig()).validate()

        W, H = self.buffer.width, self.buffer.height
        if surface is not None and (surface.width, surface.height) != (W, H):
            raise InvalidArgument(
                f"Surface {surface.width}x{surface.height} does not match image {W}x{H}"
            )
        self.surface = surface or HeatmapSurface(W, H)
        self.compositor = HeatmapCompositor(self.surface, color_scale, self.cfg.blend)
        self.masks = MaskCache(self.cfg.mask_gain)

        w, h = self.cfg.window_size(W, H)
        self.window_w, self.window_h = min(w, W), min(h, H)
        self.refiner = _make_refiner(self.cfg, self.buffer.rect, self.window_w, self.window_h, should_zoom)
        self.paint_immediately = self.cfg.strategy == "adaptive"

    async def _tick(self, rect: Rect, mask: np.ndarray, depth: int) -> Sample:
        # Restored On Every Exit Path, Cancellation Included
        with occluded(self.buffer, mask, rect):
            ctx = HeatmapContext(self.buffer, self.surface, rect, depth)
            score = await _call_scorer(self.calc_score, ctx)
            sample = Sample(rect.x, rect.y, rect.w, rect.h, score, depth)
            if self.paint_immediately:
                self.compositor.paint(sample, mask)
            if self.cfg.slide_interval > 0:
                await asyncio.sleep(self.cfg.slide_interval)
        return sample

    async def _sweep(self, item: WorkItem, result: HeatmapResult,
                     stop: Optional[Callable[[], bool]]) -> List[Sample]:
        samples: List[Sample] = []
        total = count_windows(item.region, item.window_w, item.window_h, self.cfg.slide_ratio)
        bar = tqdm(total=total, desc=f"D{item.depth:02d} {item.window_w}x{item.window_h}",
                   leave=False, disable=not self.cfg.progress)
        try:
            for rect in iter_windows(item.region, item.window_w, item.window_h, self.cfg.slide_ratio):
                # Cancellation Point: Between Windows, Never Mid-Occlusion
                if stop is not None and stop():
                    result.stopped = True
                    break
                mask = self.masks.get_mask(rect.w, rect.h)
                sample = await self._tick(rect, mask, item.depth)
                samples.append(sample)
                result.samples.append(sample)
                self.refiner.offer(item, sample)
                bar.update(1)
        finally:
            bar.close()
        return samples

    async def run(self, stop: Optional[Callable[[], bool]] = None) -> HeatmapResult:
        cfg = self.cfg
        result = HeatmapResult(self.surface)
        t0 = time.perf_counter()
        if cfg.verbose:
            echo_line("HEATMAP_START", {
                "image": f"{self.buffer.width}x{self.buffer.height}",
                "window": f"{self.window_w}x{self.window_h}",
                "strategy": cfg.strategy, "slide_ratio": cfg.slide_ratio, "refine": cfg.refine,
            }, order=["image", "window", "strategy"])

        for item in self.refiner:
            samples = await self._sweep(item, result, stop)
            if not self.paint_immediately:
                # Shrink Passes Are Drawn As A Batch Once The Pass Completes
                self.compositor.paint_all(samples, self.masks)
            if result.stopped:
                break
            result.passes += 1
            if cfg.verbose:
                r = item.region
                echo_line("HEATMAP_PASS", {
                    "pass": result.passes, "depth": item.depth,
                    "region": f"{r.x},{r.y},{r.w}x{r.h}",
                    "window": f"{item.window_w}x{item.window_h}",
                    "samples": len(samples), "queued": len(self.refiner),
                    "score_max": max((s.score for s in samples), default=0.0),
                }, order=["pass", "depth", "region", "window", "samples"])

        if cfg.verbose:
            echo_line("HEATMAP_DONE", {
                "passes": result.passes, "samples": len(result.samples),
                "masks": len(self.masks), "stopped": result.stopped,
                "elapsed_s": time.perf_counter() - t0,
            }, order=["passes", "samples"])
        return result


async def build_heatmap(
    image: Any,
    calc_score: Scorer,
    color_scale: Any,
    cfg: Optional[HeatmapConfig] = None,
    should_zoom: Optional[ZoomPredicate] = None,
    surface: Optional[HeatmapSurface] = None,
    stop: Optional[Callable[[], bool]] = None,
) -> HeatmapResult:
    """Occlusion-sensitivity heatmap for `image`.

    image: PixelBuffer or (H, W, 3|4) uint8 array; occluded in place and
           restored after every window, also on errors and cancellation.
    calc_score: HeatmapContext -> score in [0, 1], sync or async.
    color_scale: (256, 4) RGBA lookup table indexed by round(score * 255).
    should_zoom: score -> bool; enables adaptive refinement when cfg.refine.
    surface: optional HeatmapSurface to paint onto; used as-is, not cleared.
             A fresh transparent surface is created when omitted.
    stop: polled between windows; returning True ends the run early.
    """
    engine = HeatmapEngine(image, calc_score, color_scale, cfg, should_zoom, surface)
    return await engine.run(stop)


def build_heatmap_sync(*args, **kwargs) -> HeatmapResult:
    # Blocking Wrapper For Callers Without An Event Loop
    return asyncio.run(build_heatmap(*args, **kwargs))
