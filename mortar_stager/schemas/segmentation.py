"""
Segmentation Data Schemas

Core data structures shared by the staging pipeline, the CLI and the web layer:
ROI polygon, call parameters, per-stage payloads and the call result.
"""

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class Polygon:
    """
    ROI 다각형 (이미지 좌표, 암묵적으로 닫힘)

    Attributes:
        xs: 꼭짓점 x 좌표
        ys: 꼭짓점 y 좌표
    """

    xs: List[int] = field(default_factory=list)
    ys: List[int] = field(default_factory=list)

    @classmethod
    def from_points(cls, points: Iterable[Tuple[int, int]]) -> "Polygon":
        pts = list(points)
        return cls(xs=[int(x) for x, _ in pts], ys=[int(y) for _, y in pts])

    def is_valid(self) -> bool:
        return len(self.xs) >= 3 and len(self.xs) == len(self.ys)

    def points(self) -> List[Tuple[int, int]]:
        return list(zip(self.xs, self.ys))

    def __len__(self) -> int:
        return len(self.xs)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle (x, y, width, height)."""

    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    def slices(self) -> Tuple[slice, slice]:
        """(row slice, column slice) for numpy indexing."""
        return slice(self.y, self.y + self.height), slice(self.x, self.x + self.width)


# camelCase option names of the native API -> Params field names
_CAMEL_ALIASES: Dict[str, str] = {
    "regionSize": "region_size",
    "compactness": "compactness",
    "doBilateral": "do_bilateral",
    "drawEdges": "draw_edges",
    "mrfLambda": "mrf_lambda",
    "maxK": "max_k",
    "renderMaxK": "render_max_k",
    "stageIdx": "stage_idx",
    "stageSteps": "stage_steps",
    "refineMode": "refine_mode",
    "refineSteps": "refine_steps",
}


@dataclass(frozen=True)
class Params:
    """
    호출 단위 설정 (불변)

    Attributes:
        region_size: 슈퍼픽셀 영역 크기 (예약, 이 경로에서는 미사용)
        compactness: 슈퍼픽셀 compactness (예약)
        do_bilateral: 사전 bilateral 평활화 + 사후 morphology opening
        draw_edges: 경계 시각화 (예약)
        mrf_lambda: 정규화 가중치 (예약)
        max_k: 최대 그룹 수 (1~5로 clamp 후 used_k로 echo)
        render_max_k: 렌더링 그룹 수 (예약)
        stage_idx: 선택된 coarse stage (1-based)
        stage_steps: coarse stage 수 N
        refine_mode: True=refine 창 재샘플링, False=absolute
        refine_steps: refine 창 분할 수 RS
    """

    region_size: int = 30
    compactness: int = 12
    do_bilateral: bool = False
    draw_edges: bool = False
    mrf_lambda: float = 0.4
    max_k: int = 5
    render_max_k: int = 5
    stage_idx: int = 1
    stage_steps: int = 6
    refine_mode: bool = False
    refine_steps: int = 5

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Params":
        """snake_case 또는 camelCase 키를 모두 허용. 알 수 없는 키는 무시."""
        if not data:
            return cls()
        known = {f.name: f.type for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_ALIASES.get(key, key)
            if name not in known:
                logger.warning(f"Ignoring unknown parameter: {key}")
                continue
            if value is None:
                continue
            values[name] = _coerce(value, known[name])
        return cls(**values)


def _coerce(value: Any, type_name: Any) -> Any:
    type_name = getattr(type_name, "__name__", type_name)
    if type_name == "bool":
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if type_name == "int":
        return int(value)
    if type_name == "float":
        return float(value)
    return value


@dataclass
class StagePayload:
    """
    한 stage의 결과

    Attributes:
        rgba: 합성 결과 (H × W × 4, uint8, 입력과 동일 크기)
        mortar_permille: 선택되지 않은 ROI 픽셀 비율 (permille, 소수 2자리)
        threshold_q: 사용된 quantile 임계값
        label_id: 대표 라벨 (이 경로에서는 항상 -1)
    """

    rgba: np.ndarray
    mortar_permille: float = 0.0
    threshold_q: float = 0.0
    label_id: int = -1


@dataclass
class SegmentationResult:
    """
    segment_temp_groups 호출 결과

    Attributes:
        stages: stage별 결과 (임계값 순서)
        label_ids: ROI scanline 순서 라벨 (이 경로에서는 항상 비어 있음)
        used_k: clamp(max_k, 1, 5)
        status: 0=성공, 음수=실패 코드
        message: 사람이 읽을 수 있는 메시지
    """

    stages: List[StagePayload] = field(default_factory=list)
    label_ids: List[int] = field(default_factory=list)
    used_k: int = 0
    status: int = 0
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == 0

    @property
    def permilles(self) -> List[float]:
        return [s.mortar_permille for s in self.stages]

    @property
    def thresholds(self) -> List[float]:
        return [s.threshold_q for s in self.stages]
