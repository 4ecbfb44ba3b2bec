"""
Segmentation API Router

Upload an image and receive the staged composites with mortar permille per stage.
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status

from mortar_stager.bridge import to_response
from mortar_stager.core.status import SegmentationStatus
from mortar_stager.pipeline import segment_temp_groups
from mortar_stager.schemas.api_schemas import SegmentResponse
from mortar_stager.schemas.segmentation import Params
from mortar_stager.utils.file_io import decode_image_bytes
from mortar_stager.utils.image_utils import ImageValidationError, ensure_rgba
from mortar_stager.utils.roi_parser import RoiParseError, parse_roi

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/segment", tags=["Segmentation"])

_CLIENT_ERRORS = {int(SegmentationStatus.INVALID_INPUT_FORMAT), int(SegmentationStatus.ROI_TOO_SMALL)}


@router.post("", response_model=SegmentResponse)
def segment(
    file: UploadFile = File(...),
    roi: Optional[str] = Form(None),
    region_size: int = Form(30),
    compactness: int = Form(12),
    do_bilateral: bool = Form(False),
    draw_edges: bool = Form(False),
    mrf_lambda: float = Form(0.4),
    max_k: int = Form(5),
    render_max_k: int = Form(5),
    stage_idx: int = Form(1),
    stage_steps: int = Form(6),
    refine_mode: bool = Form(False),
    refine_steps: int = Form(5),
    include_images: bool = Form(True),
) -> SegmentResponse:
    # 동기 엔드포인트 (스레드풀에서 실행)
    data = file.file.read()
    image = decode_image_bytes(data)
    if image is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Could not decode uploaded image")

    try:
        polygon = parse_roi(roi)
        rgba = ensure_rgba(image)
    except (RoiParseError, ImageValidationError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    params = Params(
        region_size=region_size,
        compactness=compactness,
        do_bilateral=do_bilateral,
        draw_edges=draw_edges,
        mrf_lambda=mrf_lambda,
        max_k=max_k,
        render_max_k=render_max_k,
        stage_idx=stage_idx,
        stage_steps=stage_steps,
        refine_mode=refine_mode,
        refine_steps=refine_steps,
    )
    logger.info(f"Segment request: file={file.filename}, shape={rgba.shape}, roi={'yes' if polygon else 'no'}")

    result = segment_temp_groups(rgba, polygon, params)
    if result.status in _CLIENT_ERRORS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"status": result.status, "message": result.message},
        )
    if result.status != 0:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"status": result.status, "message": result.message},
        )

    return to_response(result, include_images=include_images)
