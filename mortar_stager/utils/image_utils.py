"""
유틸: 이미지 배열 보조 함수 모음.
"""

from typing import List, Sequence

import cv2
import numpy as np


class ImageValidationError(ValueError):
    """이미지 유효성 오류"""


def _validate_image(image: np.ndarray, name: str = "image") -> None:
    if not isinstance(image, np.ndarray):
        raise ImageValidationError(f"{name} must be numpy.ndarray")
    if image.dtype != np.uint8:
        raise ImageValidationError(f"{name} must have dtype uint8")
    if image.ndim == 2:
        return
    if image.ndim != 3 or image.shape[2] not in (1, 3, 4):
        raise ImageValidationError(f"{name} must have 1, 3 or 4 channels (H, W, C)")


def is_rgba(image: np.ndarray) -> bool:
    """비어 있지 않은 H × W × 4 uint8 배열인지 여부"""
    return (
        isinstance(image, np.ndarray)
        and image.size > 0
        and image.dtype == np.uint8
        and image.ndim == 3
        and image.shape[2] == 4
    )


def ensure_rgba(image: np.ndarray, assume_bgr: bool = True) -> np.ndarray:
    """
    OpenCV로 읽은 이미지를 RGBA로 변환.

    gray / BGR / BGRA(assume_bgr=True) 입력을 모두 허용합니다.
    """
    _validate_image(image)
    if image.ndim == 2 or image.shape[2] == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    if image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGBA if assume_bgr else cv2.COLOR_RGB2RGBA)
    if assume_bgr:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    return image.copy()


def rgba_to_bgra(image: np.ndarray) -> np.ndarray:
    """RGBA 이미지를 BGRA로 변환 (cv2.imwrite 용)."""
    _validate_image(image)
    return cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA)


def rgba_to_bgr(image: np.ndarray) -> np.ndarray:
    _validate_image(image)
    return cv2.cvtColor(image, cv2.COLOR_RGBA2BGR)


def make_contact_sheet(
    images: Sequence[np.ndarray],
    columns: int = 3,
    tile_width: int = 240,
    gap: int = 4,
) -> np.ndarray:
    """
    동일 크기 이미지들을 격자로 배치한 BGR 이미지를 반환.

    각 타일은 종횡비를 유지하며 tile_width 폭으로 리사이즈됩니다.
    """
    if not images:
        raise ImageValidationError("images must not be empty")

    tiles: List[np.ndarray] = []
    for img in images:
        _validate_image(img)
        if img.ndim == 2 or img.shape[2] == 1:
            bgr = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
        elif img.shape[2] == 4:
            bgr = rgba_to_bgr(img)
        else:
            bgr = img
        h, w = bgr.shape[:2]
        tile_h = max(1, int(round(h * tile_width / w)))
        tiles.append(cv2.resize(bgr, (tile_width, tile_h), interpolation=cv2.INTER_AREA))

    columns = max(1, min(columns, len(tiles)))
    rows = (len(tiles) + columns - 1) // columns
    tile_h = tiles[0].shape[0]

    sheet = np.full(
        (rows * tile_h + (rows + 1) * gap, columns * tile_width + (columns + 1) * gap, 3),
        255,
        dtype=np.uint8,
    )
    for i, tile in enumerate(tiles):
        r, c = divmod(i, columns)
        y = gap + r * (tile_h + gap)
        x = gap + c * (tile_width + gap)
        sheet[y : y + tile.shape[0], x : x + tile_width] = tile[:tile_h]
    return sheet
