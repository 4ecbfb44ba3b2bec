from pathlib import Path
from typing import Any, Dict, Optional

from mortar_stager.schemas.segmentation import Params
from mortar_stager.utils.file_io import read_json, write_json


class ConfigManager:
    def __init__(self, path: Optional[Path] = None, data: Optional[Dict] = None):
        self.config_path = Path(path) if path else None
        self._config: Dict[str, Any] = {}
        if data:
            self._config = data
        elif self.config_path and self.config_path.exists():
            self._config = read_json(self.config_path)

    def get(self, key: str, default: Any = None) -> Any:
        val = self._config
        for k in key.split("."):
            if not isinstance(val, dict) or k not in val:
                return default
            val = val[k]
        return val

    def set(self, key: str, value: Any):
        keys = key.split(".")
        val = self._config
        for k in keys[:-1]:
            val = val.setdefault(k, {})
        val[keys[-1]] = value

    def save(self, path: Optional[Path] = None):
        target = path or self.config_path
        if target:
            write_json(self._config, target)

    def params(self, overrides: Optional[Dict[str, Any]] = None) -> Params:
        """"params" 섹션으로 Params 생성. overrides 값(None 제외)이 우선합니다."""
        merged = dict(self.get("params", {}) or {})
        if overrides:
            merged.update({k: v for k, v in overrides.items() if v is not None})
        return Params.from_dict(merged)


def load_params(path: Path) -> Params:
    return ConfigManager(path=path).params()
