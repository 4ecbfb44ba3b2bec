"""
ROI Masker Module

다각형 ROI를 이진 마스크와 최소 bounding rectangle로 변환합니다.
유효하지 않은 다각형(꼭짓점 3개 미만, 좌표 개수 불일치)은 오류가 아니며,
전체 프레임으로 fallback 합니다. 일직선이거나 프레임 밖으로 클램프된 다각형은
1픽셀 폭 ROI가 되어 이후 픽셀 수 검사에서 걸러집니다.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from mortar_stager.schemas.segmentation import Polygon, Rect

logger = logging.getLogger(__name__)


@dataclass
class RoiMask:
    """
    ROI 마스크 결과

    Attributes:
        mask: 전체 프레임 크기 이진 마스크 (uint8, 255=ROI 내부)
        rect: 이후 모든 픽셀 연산을 자를 bounding rectangle
        is_full_frame: fallback으로 전체 프레임이 사용되었는지 여부
    """

    mask: np.ndarray
    rect: Rect
    is_full_frame: bool

    def cropped(self) -> np.ndarray:
        rows, cols = self.rect.slices()
        return self.mask[rows, cols].copy()


def full_frame_mask(width: int, height: int) -> RoiMask:
    return RoiMask(
        mask=np.full((height, width), 255, dtype=np.uint8),
        rect=Rect(0, 0, width, height),
        is_full_frame=True,
    )


def build_roi_mask(polygon: Optional[Polygon], width: int, height: int) -> RoiMask:
    """
    ROI 마스크 생성

    Args:
        polygon: ROI 다각형 (None이면 전체 프레임)
        width: 프레임 너비 W
        height: 프레임 높이 H

    Returns:
        RoiMask: 전체 프레임 크기 마스크와 bounding rectangle
    """
    if polygon is None or not polygon.is_valid():
        if polygon is not None:
            logger.warning(
                f"Invalid ROI polygon ({len(polygon.xs)} xs, {len(polygon.ys)} ys); using full frame"
            )
        return full_frame_mask(width, height)

    xs = np.clip(np.asarray(polygon.xs, dtype=np.int64), 0, width - 1)
    ys = np.clip(np.asarray(polygon.ys, dtype=np.int64), 0, height - 1)

    pts = np.stack([xs, ys], axis=1).astype(np.int32)

    mask = np.zeros((height, width), dtype=np.uint8)
    cv2.fillPoly(mask, [pts], 255)

    # boundingRect는 양 끝 픽셀을 포함하므로 일직선 다각형도 1픽셀 폭을 가짐
    x, y, w, h = cv2.boundingRect(pts)
    if w <= 0 or h <= 0:
        logger.warning("Empty ROI bounding box; using full frame")
        return full_frame_mask(width, height)

    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + w, width), min(y + h, height)
    rect = Rect(x0, y0, x1 - x0, y1 - y0)

    logger.debug(f"ROI polygon with {len(pts)} vertices -> rect {rect}")
    return RoiMask(mask=mask, rect=rect, is_full_frame=False)
