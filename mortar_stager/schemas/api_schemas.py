"""
Segmentation Pydantic Schemas

Response models for the segmentation API and host bridge.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class StageResponse(BaseModel):
    """Single stage output"""

    index: int = Field(..., description="1-based stage index (threshold order)", ge=1)
    threshold_q: float = Field(..., description="Quantile threshold used for this stage", ge=0, le=1)
    mortar_permille: float = Field(..., description="Unselected ROI pixels (permille, 2 decimals)", ge=0, le=1000)
    label_id: int = Field(-1, description="Representative label id (always -1 in this pipeline)")
    image_png_base64: Optional[str] = Field(None, description="Composited RGBA stage image (PNG, base64)")


class SegmentResponse(BaseModel):
    """Segmentation response"""

    status: int = Field(..., description="0 on success, negative status code on failure")
    message: str = Field("", description="Human-readable message")
    used_k: int = Field(0, description="clamp(max_k, 1, 5)")
    stage_count: int = Field(0, description="Number of stages", ge=0)
    stages: List[StageResponse] = Field(default_factory=list, description="Stages in threshold order")
    label_ids: List[int] = Field(default_factory=list, description="ROI scanline label ids (always empty)")

    class Config:
        json_schema_extra = {
            "example": {
                "status": 0,
                "message": "",
                "used_k": 5,
                "stage_count": 2,
                "stages": [
                    {"index": 1, "threshold_q": 0.3333, "mortar_permille": 333.4, "label_id": -1},
                    {"index": 2, "threshold_q": 0.6667, "mortar_permille": 666.7, "label_id": -1},
                ],
                "label_ids": [],
            }
        }
