"""
Stage Planner Module

픽셀 데이터와 무관하게 Params만으로 stage 임계값(quantile) 목록을 생성합니다.

- absolute: N개 임계값을 (0,1) 내부에 균등 배치, q_S = S / (N+1)
- refine: 선택된 coarse stage S 주변 ±0.4 stage 창을 RS개로 재샘플링
"""

import logging
from typing import List

from mortar_stager.schemas.segmentation import Params

logger = logging.getLogger(__name__)

REFINE_HALF_WINDOW = 0.4


def _clamp01(q: float) -> float:
    return min(max(q, 0.0), 1.0)


def absolute_thresholds(stage_steps: int) -> List[float]:
    n = max(1, int(stage_steps))
    return [s / (n + 1) for s in range(1, n + 1)]


def refine_thresholds(stage_steps: int, stage_idx: int, refine_steps: int) -> List[float]:
    """
    Refine 창 임계값

    Args:
        stage_steps: coarse stage 수 N
        stage_idx: 선택된 coarse stage (1..N으로 clamp)
        refine_steps: 창 분할 수 RS

    Returns:
        RS개의 임계값 (sL/(N+1) 부터 sR/(N+1) 까지)
    """
    n = max(1, int(stage_steps))
    rs = max(1, int(refine_steps))
    sidx = min(max(int(stage_idx), 1), n)

    s_left = max(1.0, sidx - REFINE_HALF_WINDOW)
    s_right = min(float(n), sidx + REFINE_HALF_WINDOW)

    if rs == 1:
        return [_clamp01(s_left / (n + 1))]

    thresholds = []
    for k in range(rs):
        t = k / (rs - 1)
        s_frac = s_left * (1.0 - t) + s_right * t
        thresholds.append(_clamp01(s_frac / (n + 1)))
    return thresholds


def plan_thresholds(params: Params) -> List[float]:
    if params.refine_mode:
        thresholds = refine_thresholds(params.stage_steps, params.stage_idx, params.refine_steps)
    else:
        thresholds = absolute_thresholds(params.stage_steps)

    logger.debug(
        f"Planned {len(thresholds)} thresholds (refine={params.refine_mode}): "
        f"{[round(t, 4) for t in thresholds]}"
    )
    return thresholds
