"""
Segmentation Status

호출 결과 status 코드와, 코어 내부에서 발생해 status로 변환되는 예외 정의.

    0: 성공
   -1: 입력 형식 오류 (H × W × 4 uint8 아님)
   -6: ROI 픽셀 부족 (< 100)
 -100: 내부 처리 오류
"""

from enum import IntEnum
from typing import Dict


class SegmentationStatus(IntEnum):
    OK = 0
    INVALID_INPUT_FORMAT = -1
    ROI_TOO_SMALL = -6
    INTERNAL_ERROR = -100


STATUS_MESSAGES: Dict[int, str] = {
    SegmentationStatus.OK: "",
    SegmentationStatus.INVALID_INPUT_FORMAT: "Input must be CV_8UC4 RGBA",
    SegmentationStatus.ROI_TOO_SMALL: "Too few pixels in ROI",
    SegmentationStatus.INTERNAL_ERROR: "Internal processing error",
}


class SegmentationError(Exception):
    """Base class for failures that map onto a status code."""

    status: SegmentationStatus = SegmentationStatus.INTERNAL_ERROR

    def __init__(self, message: str = ""):
        super().__init__(message or STATUS_MESSAGES[self.status])
        self.message = message or STATUS_MESSAGES[self.status]


class InvalidInputFormatError(SegmentationError):
    status = SegmentationStatus.INVALID_INPUT_FORMAT


class RoiTooSmallError(SegmentationError):
    status = SegmentationStatus.ROI_TOO_SMALL


class InternalProcessingError(SegmentationError):
    status = SegmentationStatus.INTERNAL_ERROR


def describe_status(status: int) -> str:
    try:
        return SegmentationStatus(status).name
    except ValueError:
        return f"UNKNOWN({status})"
