"""
Core Algorithm Modules

Contains the algorithmic components of the staging pipeline:
- roi_masker: polygon ROI mask and bounding rectangle
- score_extractor: Lab lightness/whiteness score per pixel
- quantile_normalizer: empirical-CDF rank normalization
- stage_planner: absolute / refine threshold lists
- stage_renderer: per-threshold mask, mortar permille and composite
"""

from .quantile_normalizer import QuantileNormalizer
from .roi_masker import build_roi_mask
from .score_extractor import ScoreExtractor
from .stage_planner import plan_thresholds
from .stage_renderer import StageRenderer

__all__ = [
    "build_roi_mask",
    "ScoreExtractor",
    "QuantileNormalizer",
    "plan_thresholds",
    "StageRenderer",
]
