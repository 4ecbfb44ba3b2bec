import json
from pathlib import Path
from typing import Any, List, Optional

import cv2
import numpy as np

from mortar_stager.utils.image_utils import ensure_rgba, rgba_to_bgra


class FileIO:
    def load_image(self, filepath: Path) -> Optional[np.ndarray]:
        filepath = Path(filepath)
        if not filepath.exists():
            return None
        try:
            # np.fromfile + imdecode로 비ASCII 경로에서도 로딩 안정화
            data = np.fromfile(str(filepath), dtype=np.uint8)
            if data.size == 0:
                return None
            return cv2.imdecode(data, cv2.IMREAD_UNCHANGED)
        except (OSError, cv2.error):
            return None

    def load_rgba(self, filepath: Path) -> Optional[np.ndarray]:
        image = self.load_image(filepath)
        if image is None:
            return None
        return ensure_rgba(image)

    def save_image(self, filepath: Path, image: np.ndarray) -> None:
        filepath = Path(filepath)
        ensure_dir(filepath.parent)
        ext = filepath.suffix or ".png"
        ok, encoded = cv2.imencode(ext, image)
        if not ok:
            raise IOError(f"Failed to encode image as {ext}: {filepath}")
        encoded.tofile(str(filepath))

    def save_rgba(self, filepath: Path, rgba: np.ndarray) -> None:
        self.save_image(filepath, rgba_to_bgra(rgba))


def decode_image_bytes(data: bytes) -> Optional[np.ndarray]:
    buf = np.frombuffer(data, dtype=np.uint8)
    if buf.size == 0:
        return None
    return cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)


def encode_png(rgba: np.ndarray) -> bytes:
    ok, encoded = cv2.imencode(".png", rgba_to_bgra(rgba))
    if not ok:
        raise IOError("Failed to encode PNG")
    return encoded.tobytes()


def stage_output_paths(output: Path, count: int) -> List[Path]:
    """
    Stage 출력 경로 목록.

    stage가 하나면 output 그대로, 여러 개면 <stem>_stage_##<ext>.
    확장자가 없으면 .png를 사용합니다.
    """
    output = Path(output)
    if count == 1:
        return [output]
    ext = output.suffix or ".png"
    stem = output.with_suffix("") if output.suffix else output
    return [stem.parent / f"{stem.name}_stage_{i:02d}{ext}" for i in range(1, count + 1)]


def ensure_dir(path: Path) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def list_files(path: Path, pattern: str = "*.*") -> List[Path]:
    return sorted(p for p in path.glob(pattern) if p.is_file())


def read_json(filepath: Path) -> dict:
    filepath = Path(filepath)
    if filepath.exists():
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)
    return {}


def write_json(data: Any, filepath: Path):
    filepath = Path(filepath)
    ensure_dir(filepath.parent)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=4, ensure_ascii=False)
