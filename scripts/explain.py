# scripts/explain.py

# Builds An Occlusion-Sensitivity Heatmap For One Image Using Configurable YAML Settings
# Supports A Pixel-Distance Scorer Or A Torchvision ResNet Classifier Scorer
# Echoes A Run Summary And The Most Salient Windows; Nothing Is Written To Disk

from __future__ import annotations

# Standard Library
import argparse
import asyncio
from pathlib import Path

# Third-Party
import torch
import torchvision

# Local Modules
from occlusion_heatmap.utils.config import HeatmapConfig, load_yaml
from occlusion_heatmap.utils.echo import echo_line
from occlusion_heatmap.utils.vis import colormap_scale, load_image_buffer
from occlusion_heatmap.xai.engine import build_heatmap
from occlusion_heatmap.xai.refiner import threshold_predicate
from occlusion_heatmap.xai.scoring import ClassifierScorer, PixelDistanceScorer


# Build ResNet Classifier According To Config
def _build_model(scfg: dict, device: torch.device) -> torch.nn.Module:
    model_name = str(scfg.get("model_name", "resnet18"))
    weights = scfg.get("weights")
    local_weights = str(scfg.get("local_weights", ""))

    # Local State Dict Takes Priority Over Torchvision Hub Weights
    if local_weights:
        p = Path(local_weights)
        if not p.exists():
            raise FileNotFoundError(f"No weights found at {p}")
        model = torchvision.models.get_model(model_name, weights=None)
        state = torch.load(p, map_location=device)
        sd = state.get("model", state) if isinstance(state, dict) else state
        model.load_state_dict(sd, strict=False)
        echo_line("HEATMAP_LOAD", {"weights": str(p)})
    else:
        model = torchvision.models.get_model(model_name, weights=weights)
        echo_line("HEATMAP_LOAD", {"weights": str(weights)})
    return model.to(device).eval()


# Pick The Scorer Named In Config
def _build_scorer(cfg: dict, image):
    scfg = cfg.get("scorer") or {}
    kind = str(scfg.get("kind", "pixel"))
    reference = image.copy()
    if kind == "pixel":
        return PixelDistanceScorer(reference, normalize_by_window=bool(scfg.get("per_window", True)))
    if kind == "resnet":
        device = torch.device(cfg.get("device", "cuda" if torch.cuda.is_available() else "cpu"))
        model = _build_model(scfg, device)
        scorer = ClassifierScorer(model, reference, target_class=scfg.get("target_class"), device=device)
        echo_line("HEATMAP_TARGET", {"class": scorer.target_class, "p0": scorer.baseline})
        return scorer
    raise ValueError(f"Unknown scorer: {kind}")


# Main Heatmap Function
def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--cfg", type=str, default="configs/explain.yaml", help="YAML Config File Path")
    parser.add_argument("--image", type=str, default=None, help="Overrides image.path From Config")
    args = parser.parse_args()

    # Load Configuration
    cfg = load_yaml(args.cfg)
    hcfg = HeatmapConfig.from_dict({"verbose": True, **(cfg.get("heatmap") or {})})

    # Load Image Into A PixelBuffer
    icfg = cfg.get("image") or {}
    image_path = args.image or icfg.get("path")
    if not image_path:
        raise ValueError("No image given: pass --image or set image.path in the config")
    image = load_image_buffer(image_path, size=icfg.get("size"))

    # Scorer, Zoom Predicate And Color Scale
    scorer = _build_scorer(cfg, image)
    threshold = float(cfg.get("zoom_threshold", 0.5))
    ccfg = cfg.get("color_scale") or {}
    scale = colormap_scale(str(ccfg.get("cmap", "jet")), float(ccfg.get("alpha", 0.5)))

    before = image.tobytes()
    result = asyncio.run(build_heatmap(image, scorer, scale, hcfg, should_zoom=threshold_predicate(threshold)))
    if image.tobytes() != before:
        raise RuntimeError("Image buffer was not restored after the run")

    # Report The Most Salient Windows
    top_k = int(cfg.get("top_k", 5))
    ranked = sorted(result.samples, key=lambda s: (-s.score, s.depth, s.y, s.x))[:top_k]
    for rank, s in enumerate(ranked, 1):
        echo_line("HEATMAP_TOP", {"rank": rank, "score": s.score, "depth": s.depth,
                                  "window": f"{s.x},{s.y},{s.w}x{s.h}"},
                  order=["rank", "score", "depth", "window"])
    coverage = float((result.heatmap.data[:, :, 3] > 0).mean())
    echo_line("HEATMAP_SUMMARY", {"image": str(image_path), "samples": len(result.samples),
                                  "passes": result.passes, "coverage": coverage},
              order=["image", "samples", "passes"])


# Entry Point
if __name__ == "__main__":
    main()
