"""
ROI Text Encoding

"x1,y1;x2,y2;...;xN,yN" 형식의 ROI 문자열 파싱/생성.
"""

import re
from typing import Optional

from mortar_stager.schemas.segmentation import Polygon

_POINT_PATTERN = re.compile(r"^\s*(-?\d+)\s*,\s*(-?\d+)\s*$")


class RoiParseError(ValueError):
    """ROI 문자열 형식 오류"""

    pass


def parse_roi(text: Optional[str]) -> Optional[Polygon]:
    """
    ROI 문자열을 Polygon으로 변환

    Args:
        text: "x1,y1;x2,y2;..." (None 또는 공백이면 ROI 없음)

    Returns:
        Polygon 또는 None. 꼭짓점이 3개 미만이어도 Polygon을 그대로 반환하며,
        이 경우 코어가 전체 프레임으로 fallback 합니다.

    Raises:
        RoiParseError: 점 형식이 "int,int"가 아닐 때

    Example:
        >>> parse_roi("10,10;50,10;50,40").points()
        [(10, 10), (50, 10), (50, 40)]
    """
    if text is None or not text.strip():
        return None

    xs, ys = [], []
    for segment in text.split(";"):
        if not segment.strip():
            continue
        match = _POINT_PATTERN.match(segment)
        if not match:
            raise RoiParseError(f"Invalid ROI point: '{segment.strip()}' (expected 'x,y')")
        xs.append(int(match.group(1)))
        ys.append(int(match.group(2)))

    if not xs:
        return None
    return Polygon(xs=xs, ys=ys)


def format_roi(polygon: Polygon) -> str:
    return ";".join(f"{x},{y}" for x, y in polygon.points())
