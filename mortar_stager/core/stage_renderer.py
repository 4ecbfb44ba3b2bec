"""
Stage Renderer Module

임계값 하나당 stage 하나를 렌더링합니다.

1. score >= T 이진화 (ROI crop 전체, 이 단계에서는 ROI gating 없음)
2. (옵션) 3×3 타원 커널 opening으로 잡음 제거
3. ROI 마스크와 AND
4. 선택되지 않은 ROI 픽셀 비율 → mortar permille (소수 2자리)
5. 전체 프레임으로 확장 후 불투명 검정 RGBA 위에 원본 픽셀 합성
"""

import logging
from typing import List, Sequence

import cv2
import numpy as np

from mortar_stager.core.status import RoiTooSmallError
from mortar_stager.schemas.segmentation import Rect, StagePayload

logger = logging.getLogger(__name__)


def permille_of_unselected(selected: int, roi_total: int) -> float:
    """round(ratio * 100000) / 100, ratio = 미선택 / ROI 전체"""
    if roi_total <= 0:
        return 0.0
    unselected = max(0, roi_total - selected)
    ratio = unselected / roi_total
    return round(ratio * 100000.0) / 100.0


class StageRenderer:
    """
    Stage 합성기

    ROI 픽셀 수(permille 분모)는 생성 시 한 번만 계산합니다.
    """

    def __init__(self, rgba: np.ndarray, roi_mask: np.ndarray, rect: Rect, morphology: bool = False):
        """
        Args:
            rgba: 원본 RGBA 프레임 (H × W × 4)
            roi_mask: ROI crop 마스크 (rect 크기)
            rect: ROI bounding rectangle
            morphology: stage 마스크 opening 적용 여부
        """
        self.rgba = rgba
        self.roi_mask = roi_mask
        self.rect = rect
        self.morphology = morphology
        self.kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (3, 3))

        self.roi_total = int(cv2.countNonZero(roi_mask))
        if self.roi_total <= 0:
            raise RoiTooSmallError("Too few pixels in ROI")

    def stage_mask(self, score_map: np.ndarray, threshold: float) -> np.ndarray:
        """ROI crop 크기 stage 마스크 (uint8, 255=선택)"""
        mask = np.where(score_map >= threshold, 255, 0).astype(np.uint8)

        if self.morphology:
            mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, self.kernel)

        return cv2.bitwise_and(mask, self.roi_mask)

    def composite(self, stage_mask: np.ndarray) -> np.ndarray:
        h, w = self.rgba.shape[:2]
        full_mask = np.zeros((h, w), dtype=np.uint8)
        rows, cols = self.rect.slices()
        full_mask[rows, cols] = stage_mask

        canvas = np.zeros((h, w, 4), dtype=np.uint8)
        canvas[:, :, 3] = 255
        selected = full_mask != 0
        canvas[selected] = self.rgba[selected]
        return canvas

    def render(self, score_map: np.ndarray, threshold: float) -> StagePayload:
        mask = self.stage_mask(score_map, threshold)
        selected = int(cv2.countNonZero(mask))
        permille = permille_of_unselected(selected, self.roi_total)

        logger.debug(f"Stage T={threshold:.4f}: selected={selected}/{self.roi_total}, permille={permille:.2f}")

        return StagePayload(
            rgba=self.composite(mask),
            mortar_permille=permille,
            threshold_q=float(threshold),
        )

    def render_all(self, score_map: np.ndarray, thresholds: Sequence[float]) -> List[StagePayload]:
        return [self.render(score_map, t) for t in thresholds]
