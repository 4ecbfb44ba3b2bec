import json
from pathlib import Path

import cv2
import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")


@pytest.fixture
def tmp_json(tmp_path: Path):
    def _make(data, name="sample.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        return path

    return _make


@pytest.fixture
def gray_rgba():
    # 100x100 균일 회색 (R=G=B=128, A=255)
    img = np.full((100, 100, 4), 128, dtype=np.uint8)
    img[:, :, 3] = 255
    return img


@pytest.fixture
def gradient_rgba():
    # 50x256 가로 그라데이션: 열 x의 회색 값 = x
    ramp = np.tile(np.arange(256, dtype=np.uint8), (50, 1))
    img = np.dstack([ramp, ramp, ramp, np.full_like(ramp, 255)])
    return img


@pytest.fixture
def random_rgba():
    rng = np.random.default_rng(1234)
    img = rng.integers(0, 256, size=(80, 120, 4), dtype=np.uint8)
    img[:, :, 3] = 255
    return img


@pytest.fixture
def write_png(tmp_path: Path):
    """RGBA 배열을 PNG로 저장하고 경로 반환"""

    def _write(rgba, name="input.png"):
        path = tmp_path / name
        cv2.imwrite(str(path), cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA))
        return path

    return _write
