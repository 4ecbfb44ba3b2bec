"""
Host Bridge

Marshals a SegmentationResult into host-native objects (pydantic response /
plain dict) with stage order and scalar values preserved exactly, and
surfaces non-zero status as an exception for hosts that expect one.
"""

import base64
import logging

from mortar_stager.core.status import describe_status
from mortar_stager.schemas.api_schemas import SegmentResponse, StageResponse
from mortar_stager.schemas.segmentation import SegmentationResult
from mortar_stager.utils.file_io import encode_png

logger = logging.getLogger(__name__)


class SegmentationFailed(RuntimeError):
    """status != 0 을 호스트 예외로 전달 (status 값은 그대로 보존)"""

    def __init__(self, status: int, message: str):
        super().__init__(f"Segmentation failed [{describe_status(status)} {status}]: {message}")
        self.status = status
        self.message = message


def raise_for_status(result: SegmentationResult) -> SegmentationResult:
    if result.status != 0:
        raise SegmentationFailed(result.status, result.message)
    return result


def to_response(result: SegmentationResult, include_images: bool = True) -> SegmentResponse:
    stages = []
    for idx, stage in enumerate(result.stages, start=1):
        image_b64 = None
        if include_images:
            image_b64 = base64.b64encode(encode_png(stage.rgba)).decode("ascii")
        stages.append(
            StageResponse(
                index=idx,
                threshold_q=stage.threshold_q,
                mortar_permille=stage.mortar_permille,
                label_id=stage.label_id,
                image_png_base64=image_b64,
            )
        )

    logger.debug(f"Marshalled {len(stages)} stages (images={include_images})")
    return SegmentResponse(
        status=result.status,
        message=result.message,
        used_k=result.used_k,
        stage_count=len(stages),
        stages=stages,
        label_ids=list(result.label_ids),
    )


def to_summary(result: SegmentationResult) -> dict:
    """JSON 저장용 요약 (이미지 제외)"""
    return to_response(result, include_images=False).model_dump()
