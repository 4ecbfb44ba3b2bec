"""
Stage Visualizer

Contact sheet of stage composites and mortar-permille vs threshold chart.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import cv2
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from mortar_stager.schemas.segmentation import SegmentationResult
from mortar_stager.utils.image_utils import make_contact_sheet


@dataclass
class VisualizerConfig:
    """Visualizer configuration"""

    # Contact sheet
    columns: int = 3
    tile_width: int = 240
    gap: int = 4
    caption_height: int = 22
    caption_font_scale: float = 0.45
    caption_color: Tuple[int, int, int] = (0, 0, 0)  # BGR

    # Chart
    chart_figure_size: Tuple[int, int] = (8, 5)
    chart_dpi: int = 100
    line_color: str = "tab:blue"


class VisualizationError(Exception):
    """Base exception for visualization errors"""

    pass


class StageVisualizer:
    """Visualize stage composites and per-stage mortar permille."""

    def __init__(self, config: VisualizerConfig = None):
        self.config = config or VisualizerConfig()

    def _captioned(self, rgba: np.ndarray, caption: str) -> np.ndarray:
        bgr = cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGR)
        h, w = bgr.shape[:2]
        scale = self.config.tile_width / w
        tile = cv2.resize(bgr, (self.config.tile_width, max(1, int(round(h * scale)))), interpolation=cv2.INTER_AREA)

        band = np.full((self.config.caption_height, tile.shape[1], 3), 255, dtype=np.uint8)
        cv2.putText(
            band,
            caption,
            (4, self.config.caption_height - 7),
            cv2.FONT_HERSHEY_SIMPLEX,
            self.config.caption_font_scale,
            self.config.caption_color,
            1,
            cv2.LINE_AA,
        )
        return np.vstack([tile, band])

    def contact_sheet(self, result: SegmentationResult) -> np.ndarray:
        """All stages tiled with 'S# q=.. pm=..' captions (BGR)."""
        if not result.stages:
            raise VisualizationError("Result has no stages to visualize")

        tiles = [
            self._captioned(s.rgba, f"S{i} q={s.threshold_q:.3f} pm={s.mortar_permille:.2f}")
            for i, s in enumerate(result.stages, start=1)
        ]
        return make_contact_sheet(tiles, columns=self.config.columns, tile_width=self.config.tile_width, gap=self.config.gap)

    def permille_chart(self, result: SegmentationResult) -> Figure:
        if not result.stages:
            raise VisualizationError("Result has no stages to chart")

        fig, ax = plt.subplots(figsize=self.config.chart_figure_size, dpi=self.config.chart_dpi)
        thresholds = result.thresholds
        permilles = result.permilles

        ax.plot(thresholds, permilles, marker="o", color=self.config.line_color)
        for i, (q, pm) in enumerate(zip(thresholds, permilles), start=1):
            ax.annotate(f"S{i}", (q, pm), textcoords="offset points", xytext=(0, 6), ha="center", fontsize=8)

        ax.set_xlabel("Quantile threshold")
        ax.set_ylabel("Mortar ratio (permille, unselected)")
        ax.set_ylim(0, 1000)
        ax.set_xlim(0, 1)
        ax.grid(True, alpha=0.3)
        ax.set_title(f"Mortar permille by stage (used_k={result.used_k})")
        fig.tight_layout()
        return fig

    def save_visualization(self, obj: Union[np.ndarray, Figure], output_path: Path) -> None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if isinstance(obj, np.ndarray):
            ok, encoded = cv2.imencode(output_path.suffix or ".png", obj)
            if not ok:
                raise VisualizationError(f"Failed to encode image: {output_path}")
            encoded.tofile(str(output_path))
        elif isinstance(obj, Figure):
            obj.savefig(str(output_path), dpi=self.config.chart_dpi, bbox_inches="tight")
            plt.close(obj)
        else:
            raise VisualizationError(f"Unsupported visualization type: {type(obj)}")
