# occlusion_heatmap/utils/config.py

# YAML-Backed Configuration For The Heatmap Engine
# Every Knob Is Optional; Unknown Keys And Out-Of-Range Values Fail Fast

from __future__ import annotations

# Standard Library
import math
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional, Tuple, Union

# Third-Party
import yaml

# Local
from occlusion_heatmap.constants import defaults as D
from occlusion_heatmap.xai.core.errors import InvalidArgument


@dataclass
class HeatmapConfig:
    slide_ratio: float = D.SLIDE_RATIO
    max_grid_width: Optional[int] = None            # None -> ceil(width * MAX_GRID_FRACTION)
    max_grid_height: Optional[int] = None           # None -> ceil(height * MAX_GRID_FRACTION)
    min_grid_width: int = D.MIN_GRID_SIZE
    min_grid_height: int = D.MIN_GRID_SIZE
    refine: bool = True
    strategy: str = "adaptive"                      # 'adaptive' | 'shrink'
    shrink_ratio: float = D.SHRINK_RATIO
    shrink_iterations: int = D.SHRINK_ITERATIONS
    mask_gain: float = D.MASK_GAIN
    slide_interval: float = 0.0                     # Seconds Slept Per Window, Pacing Only
    blend: str = "over"                             # 'over' | 'replace'
    verbose: bool = False
    progress: bool = False

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "HeatmapConfig":
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidArgument(f"Unknown heatmap config keys: {unknown}")
        cfg = cls(**data)
        cfg.validate()
        return cfg

    def to_dict(self) -> dict:
        return asdict(self)

    def validate(self) -> "HeatmapConfig":
        if not self.slide_ratio > 0:
            raise InvalidArgument(f"slide_ratio must be > 0, got {self.slide_ratio}")
        for name in ("max_grid_width", "max_grid_height"):
            v = getattr(self, name)
            if v is not None and int(v) < 1:
                raise InvalidArgument(f"{name} must be >= 1, got {v}")
        if int(self.min_grid_width) < 1 or int(self.min_grid_height) < 1:
            raise InvalidArgument("min_grid_width/min_grid_height must be >= 1")
        if self.strategy not in D.STRATEGIES:
            raise InvalidArgument(f"strategy must be one of {D.STRATEGIES}, got {self.strategy!r}")
        if not 0 < self.shrink_ratio < 1:
            raise InvalidArgument(f"shrink_ratio must be in (0, 1), got {self.shrink_ratio}")
        if int(self.shrink_iterations) < 1:
            raise InvalidArgument(f"shrink_iterations must be >= 1, got {self.shrink_iterations}")
        if not self.mask_gain > 0:
            raise InvalidArgument(f"mask_gain must be > 0, got {self.mask_gain}")
        if self.slide_interval < 0:
            raise InvalidArgument(f"slide_interval must be >= 0, got {self.slide_interval}")
        if self.blend not in D.BLEND_MODES:
            raise InvalidArgument(f"blend must be one of {D.BLEND_MODES}, got {self.blend!r}")
        return self

    def window_size(self, width: int, height: int) -> Tuple[int, int]:
        # Starting Window, Defaulting To Half The Image On Each Axis
        w = self.max_grid_width or math.ceil(width * D.MAX_GRID_FRACTION)
        h = self.max_grid_height or math.ceil(height * D.MAX_GRID_FRACTION)
        return int(w), int(h)


# Load Raw YAML Configuration File
def load_yaml(path: Union[str, Path]) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


# Load The `heatmap` Section As A Validated HeatmapConfig
def load_config(path: Union[str, Path]) -> HeatmapConfig:
    data = load_yaml(path)
    return HeatmapConfig.from_dict(data.get("heatmap") or {})

