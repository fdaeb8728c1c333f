# occlusion_heatmap/constants/norms.py

# ImageNet Normalization Constants For Classifier-Backed Scoring
# Provides List And Tensor Representations Of Channel Means And Standard Deviations

from __future__ import annotations

# Standard Library
from typing import List, Tuple

# Third-Party
import torch

# Lists For Config Files And Logging
IMAGENET_MEAN: List[float] = [0.485, 0.456, 0.406]  # ImageNet Channel Means (R, G, B)
IMAGENET_STD:  List[float] = [0.229, 0.224, 0.225]  # ImageNet Channel Standard Deviations (R, G, B)

# Tensors Shaped For [B, 3, H, W] Broadcasting
IMAGENET_MEAN_T: torch.Tensor = torch.tensor(IMAGENET_MEAN).view(1, 3, 1, 1)
IMAGENET_STD_T:  torch.Tensor = torch.tensor(IMAGENET_STD).view(1, 3, 1, 1)


# Get ImageNet Normalization Tensors On A Specific Device
def get_norm_tensors(device: str | torch.device = "cpu") -> Tuple[torch.Tensor, torch.Tensor]:
    return IMAGENET_MEAN_T.to(device), IMAGENET_STD_T.to(device)
