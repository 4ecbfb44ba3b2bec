"""
Schemas Package

Dataclasses for the core pipeline and pydantic models for the HTTP/host bridge.
"""

from .api_schemas import SegmentResponse, StageResponse
from .segmentation import Params, Polygon, Rect, SegmentationResult, StagePayload

__all__ = [
    # Core
    "Params",
    "Polygon",
    "Rect",
    "SegmentationResult",
    "StagePayload",
    # API
    "SegmentResponse",
    "StageResponse",
]
