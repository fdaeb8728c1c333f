# occlusion_heatmap/xai/scoring.py

# Ready-Made Scorers For build_heatmap
# PixelDistanceScorer: Perceptual-Style Distance From The Unoccluded Reference (NumPy Only)
# ClassifierScorer: Drop In A Torch Classifier's Target-Class Probability

from __future__ import annotations

# Standard Library
from typing import Callable, Optional

# Third-Party
import numpy as np
import torch

# Local
from occlusion_heatmap.constants.norms import get_norm_tensors
from occlusion_heatmap.xai.core.buffer import PixelBuffer
from occlusion_heatmap.xai.core.types import HeatmapContext


class PixelDistanceScorer:
    """Mean absolute RGB change versus a reference snapshot, scaled to [0, 1].
    Take the snapshot before the run; the engine mutates the live buffer.
    """

    def __init__(self, reference: PixelBuffer, normalize_by_window: bool = True):
        self.reference = reference.rgb().astype(np.int16).copy()
        self.normalize_by_window = normalize_by_window

    def __call__(self, ctx: HeatmapContext) -> float:
        if self.normalize_by_window:
            r = ctx.window
            cur = ctx.image.rgb()[r.y:r.bottom, r.x:r.right].astype(np.int16)
            ref = self.reference[r.y:r.bottom, r.x:r.right]
        else:
            cur = ctx.image.rgb().astype(np.int16)
            ref = self.reference
        return float(np.abs(cur - ref).mean() / 255.0)


def buffer_to_tensor(buffer: PixelBuffer, device: str | torch.device = "cpu") -> torch.Tensor:
    # (H, W, 4) uint8 -> [1, 3, H, W] ImageNet-Normalized Float
    rgb = torch.from_numpy(np.ascontiguousarray(buffer.rgb())).to(device)
    x = rgb.permute(2, 0, 1).unsqueeze(0).float() / 255.0
    mean, std = get_norm_tensors(device)
    return (x - mean) / std


class ClassifierScorer:
    """score = clip(p0 - p, 0, 1): how much occluding the window lowers the target-class
    softmax probability. p0 is measured once on the unoccluded image at construction.
    `target_class=None` uses the class the model predicts on the unoccluded image.
    """

    def __init__(
        self,
        model: torch.nn.Module,
        reference: PixelBuffer,
        target_class: Optional[int] = None,
        device: Optional[str | torch.device] = None,
        preprocess: Optional[Callable[[torch.Tensor], torch.Tensor]] = None,
    ):
        self.model = model.eval()
        if device is None:
            param = next(model.parameters(), None)
            device = param.device if param is not None else "cpu"
        self.device = torch.device(device)
        self.preprocess = preprocess
        probs = self._probs(reference)
        self.target_class = int(probs.argmax().item()) if target_class is None else int(target_class)
        self.baseline = float(probs[self.target_class].item())

    @torch.no_grad()
    def _probs(self, buffer: PixelBuffer) -> torch.Tensor:
        x = buffer_to_tensor(buffer, self.device)
        if self.preprocess is not None:
            x = self.preprocess(x)
        logits = self.model(x)
        return logits.softmax(dim=1)[0]

    def __call__(self, ctx: HeatmapContext) -> float:
        p = float(self._probs(ctx.image)[self.target_class].item())
        return float(min(max(self.baseline - p, 0.0), 1.0))
