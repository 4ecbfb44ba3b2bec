"""
Score Extractor Module

ROI 색상을 Lab 색공간으로 변환하고 픽셀별 score를 계산합니다.

score = 0.80 * clamp(L/100) + 0.20 * (1 - clamp(C/110)),  C = sqrt(a² + b²)

밝고 채도가 낮은(흰색에 가까운) 픽셀일수록 score가 높습니다.
사진 속 밝은 줄눈(mortar)을 주변의 어두운 재료와 구분하는 지표로 사용합니다.
"""

import logging
from dataclasses import dataclass

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class ScoreConfig:
    """
    Score 계산 설정

    Attributes:
        weight_lightness: 정규화 L 가중치
        weight_whiten: whiteness(1 - 정규화 chroma) 가중치
        chroma_norm: chroma 정규화 상수
        bilateral_diameter: bilateral 필터 직경
        bilateral_sigma_color: bilateral 색상 sigma
        bilateral_sigma_space: bilateral 공간 sigma
    """

    weight_lightness: float = 0.80
    weight_whiten: float = 0.20
    chroma_norm: float = 110.0
    bilateral_diameter: int = 5
    bilateral_sigma_color: float = 15.0
    bilateral_sigma_space: float = 3.0


class ScoreExtractor:
    """Lab L/chroma 기반 픽셀 score 추출기"""

    def __init__(self, config: ScoreConfig = None):
        self.config = config or ScoreConfig()

    def smooth(self, image_bgr: np.ndarray) -> np.ndarray:
        """Edge-preserving 평활화 (3채널 uint8 이미지에만 적용)"""
        if image_bgr.ndim != 3 or image_bgr.shape[2] != 3 or image_bgr.dtype != np.uint8:
            return image_bgr
        return cv2.bilateralFilter(
            image_bgr,
            self.config.bilateral_diameter,
            self.config.bilateral_sigma_color,
            self.config.bilateral_sigma_space,
        )

    def to_lab(self, image_bgr: np.ndarray) -> np.ndarray:
        """
        BGR(uint8) → float Lab 변환

        float32 입력을 사용하므로 OpenCV가 표준 범위를 반환:
        L: 0~100, a/b: 약 -127~127
        """
        bgr32 = image_bgr.astype(np.float32) / 255.0
        return cv2.cvtColor(bgr32, cv2.COLOR_BGR2Lab)

    def score_from_lab(self, image_lab: np.ndarray, mask: np.ndarray) -> np.ndarray:
        L = np.clip(image_lab[:, :, 0] / 100.0, 0.0, 1.0)
        a = image_lab[:, :, 1]
        b = image_lab[:, :, 2]
        chroma = np.sqrt(a * a + b * b)
        whiten = 1.0 - np.clip(chroma / self.config.chroma_norm, 0.0, 1.0)

        score = self.config.weight_lightness * L + self.config.weight_whiten * whiten
        score = score.astype(np.float32)
        score[mask == 0] = 0.0
        return score

    def extract(self, roi_bgr: np.ndarray, roi_mask: np.ndarray, smooth: bool = False) -> np.ndarray:
        """
        ROI crop의 score map 계산

        Args:
            roi_bgr: ROI bounding rect로 자른 BGR 이미지 (uint8)
            roi_mask: 같은 크기의 ROI 마스크 (uint8, 255=내부)
            smooth: bilateral 사전 평활화 여부

        Returns:
            float32 score map (마스크 외부는 0)
        """
        if smooth:
            roi_bgr = self.smooth(roi_bgr)

        image_lab = self.to_lab(roi_bgr)
        score = self.score_from_lab(image_lab, roi_mask)

        logger.debug(f"Score map {score.shape}, smooth={smooth}")
        return score
