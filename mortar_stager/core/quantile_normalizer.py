"""
Quantile Normalizer Module

ROI score 분포로부터 256점 경험적 CDF lookup을 만들고,
ROI 내부 score를 quantile rank(0~1)로 덮어씁니다.
임계값을 rank 공간에서 정의하므로 분포 모양(치우침, 다봉)에 강건합니다.
"""

import logging
from dataclasses import dataclass

import numpy as np

from mortar_stager.core.status import RoiTooSmallError

logger = logging.getLogger(__name__)

LUT_SIZE = 256
MIN_ROI_PIXELS = 100
_EPS = 1e-12


@dataclass
class CdfLookup:
    """
    경험적 CDF lookup table

    Attributes:
        values: 정렬된 score 샘플 (LUT_SIZE개, 비감소)
        quantiles: 대응 quantile (i / (LUT_SIZE - 1))
    """

    values: np.ndarray
    quantiles: np.ndarray

    @classmethod
    def build(cls, samples: np.ndarray, size: int = LUT_SIZE) -> "CdfLookup":
        sorted_vals = np.sort(np.asarray(samples, dtype=np.float32).ravel())
        n = sorted_vals.size
        if n == 0:
            raise ValueError("Cannot build CDF lookup from empty samples")

        quantiles = np.arange(size, dtype=np.float64) / (size - 1)
        idx = np.clip(np.rint(quantiles * (n - 1)).astype(np.int64), 0, n - 1)
        return cls(values=sorted_vals[idx].astype(np.float64), quantiles=quantiles)

    def __call__(self, x: np.ndarray) -> np.ndarray:
        """
        Raw score → quantile (구간 선형 보간)

        x <= values[0] 이면 quantiles[0], x >= values[-1] 이면 quantiles[-1],
        그 외에는 values[j] > x 인 최소 j를 찾아 [j-1, j] 구간에서 보간.
        """
        x = np.asarray(x, dtype=np.float64)
        pk, tk = self.values, self.quantiles

        j = np.searchsorted(pk, x, side="right")
        j = np.clip(j, 1, len(pk) - 1)
        i = j - 1
        t = (x - pk[i]) / (pk[j] - pk[i] + _EPS)
        out = tk[i] * (1.0 - t) + tk[j] * t

        # 하한 검사가 우선 (모든 값이 같으면 rank 0)
        out = np.where(x >= pk[-1], tk[-1], out)
        out = np.where(x <= pk[0], tk[0], out)
        return out


class QuantileNormalizer:
    """ROI score를 empirical-CDF rank로 정규화"""

    def __init__(self, min_pixels: int = MIN_ROI_PIXELS, lut_size: int = LUT_SIZE):
        self.min_pixels = min_pixels
        self.lut_size = lut_size

    def normalize(self, score_map: np.ndarray, roi_mask: np.ndarray) -> CdfLookup:
        """
        score_map을 제자리(in place)에서 quantile rank로 덮어쓰기

        Args:
            score_map: float score map (ROI crop 크기)
            roi_mask: 같은 크기의 ROI 마스크

        Returns:
            CdfLookup: 사용된 lookup table

        Raises:
            RoiTooSmallError: ROI 내부 샘플이 min_pixels 미만일 때
        """
        inside = roi_mask != 0
        samples = score_map[inside]
        if samples.size < self.min_pixels:
            logger.debug(f"ROI samples {samples.size} < {self.min_pixels}")
            raise RoiTooSmallError()

        lut = CdfLookup.build(samples, self.lut_size)
        score_map[inside] = np.clip(lut(samples), 0.0, 1.0).astype(score_map.dtype)

        logger.debug(
            f"Quantile LUT built from {samples.size} samples: "
            f"range=[{lut.values[0]:.4f}, {lut.values[-1]:.4f}]"
        )
        return lut
