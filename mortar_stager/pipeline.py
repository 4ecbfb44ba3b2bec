"""
Staging Pipeline Module

ROI 마스크 → score 추출 → quantile 정규화 → stage 계획 → stage 렌더링 →
결과 조립을 연결하는 순수 함수 segment_temp_groups 와,
파일/배치 처리를 담당하는 SegmentationPipeline.

호출 경계 밖으로 예외가 전달되지 않으며, 모든 실패는 status/message로 반환됩니다.
"""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

import cv2
import numpy as np

from mortar_stager.core.quantile_normalizer import QuantileNormalizer
from mortar_stager.core.roi_masker import build_roi_mask
from mortar_stager.core.score_extractor import ScoreConfig, ScoreExtractor
from mortar_stager.core.stage_planner import plan_thresholds
from mortar_stager.core.stage_renderer import StageRenderer
from mortar_stager.core.status import (
    STATUS_MESSAGES,
    InternalProcessingError,
    InvalidInputFormatError,
    SegmentationError,
    SegmentationStatus,
)
from mortar_stager.schemas.segmentation import Params, Polygon, SegmentationResult
from mortar_stager.utils.file_io import FileIO, ensure_dir
from mortar_stager.utils.image_utils import is_rgba

logger = logging.getLogger(__name__)

USED_K_MAX = 5


class PipelineError(Exception):
    """파이프라인 실행 중 발생하는 예외 (입력 로드 실패 등, 코어 외부)"""

    pass


def _run_core(
    rgba: np.ndarray,
    roi: Optional[Polygon],
    params: Params,
    score_config: Optional[ScoreConfig],
) -> SegmentationResult:
    if not is_rgba(rgba):
        raise InvalidInputFormatError()

    h, w = rgba.shape[:2]

    # 1. ROI 마스크
    logger.debug("Step 1: Building ROI mask")
    roi_mask = build_roi_mask(roi, w, h)
    rect = roi_mask.rect
    rows, cols = rect.slices()
    roi_crop_mask = roi_mask.cropped()

    # 2. Score 추출
    logger.debug("Step 2: Extracting color score")
    bgr = cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGR)
    roi_bgr = bgr[rows, cols].copy()
    score_map = ScoreExtractor(score_config).extract(roi_bgr, roi_crop_mask, smooth=params.do_bilateral)

    # 3. Quantile 정규화 (score_map 제자리 갱신)
    logger.debug("Step 3: Normalizing scores to quantile ranks")
    QuantileNormalizer().normalize(score_map, roi_crop_mask)

    # 4. Stage 렌더링
    logger.debug("Step 4: Rendering stages")
    renderer = StageRenderer(rgba, roi_crop_mask, rect, morphology=params.do_bilateral)
    thresholds = plan_thresholds(params)
    stages = renderer.render_all(score_map, thresholds)

    # 5. 결과 조립
    return SegmentationResult(
        stages=stages,
        label_ids=[],
        used_k=max(1, min(params.max_k, USED_K_MAX)),
        status=int(SegmentationStatus.OK),
        message="",
    )


def segment_temp_groups(
    rgba: np.ndarray,
    roi: Optional[Polygon] = None,
    params: Optional[Params] = None,
    need_label_ids: bool = False,
    score_config: Optional[ScoreConfig] = None,
) -> SegmentationResult:
    """
    RGBA 이미지를 quantile stage 이미지 목록으로 분할.

    Args:
        rgba: 입력 이미지 (H × W × 4, uint8, RGBA)
        roi: ROI 다각형 (None 또는 비정상이면 전체 프레임)
        params: 호출 설정 (None이면 기본값)
        need_label_ids: 라벨 배열 요청 여부 (이 경로에서는 항상 빈 배열)
        score_config: score 상수 (None이면 기본값)

    Returns:
        SegmentationResult: status 0이면 stage 목록 포함, 음수면 stages가 비어 있음
    """
    params = params or Params()
    start_time = datetime.now()

    try:
        try:
            result = _run_core(rgba, roi, params, score_config)
        except cv2.error as e:
            raise InternalProcessingError(str(e)) from e
    except SegmentationError as e:
        if e.status == SegmentationStatus.INTERNAL_ERROR:
            logger.error(f"Internal error during segmentation: {e.message}", exc_info=True)
        else:
            logger.warning(f"Segmentation failed ({e.status.name}): {e.message}")
        return SegmentationResult(status=int(e.status), message=e.message)
    except Exception as e:
        logger.error(f"Unexpected error during segmentation: {e}", exc_info=True)
        message = str(e) or STATUS_MESSAGES[SegmentationStatus.INTERNAL_ERROR]
        return SegmentationResult(status=int(SegmentationStatus.INTERNAL_ERROR), message=message)

    if need_label_ids:
        logger.debug("Label ids requested; this pipeline does not assign per-region labels")

    elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
    logger.info(
        f"Segmentation complete: {len(result.stages)} stages, "
        f"permille={[round(p, 2) for p in result.permilles]}, time={elapsed_ms:.1f}ms"
    )
    return result


class SegmentationPipeline:
    """
    파일 기반 staging 파이프라인.

    FileIO로 이미지를 RGBA로 로드한 뒤 segment_temp_groups를 호출합니다.
    호출마다 입력/출력 버퍼를 따로 가지므로 병렬 배치 처리가 안전합니다.
    """

    def __init__(
        self,
        params: Optional[Params] = None,
        score_config: Optional[ScoreConfig] = None,
        need_label_ids: bool = False,
    ):
        self.params = params or Params()
        self.score_config = score_config
        self.need_label_ids = need_label_ids
        self.file_io = FileIO()

        logger.info(f"SegmentationPipeline initialized: {self.params}")

    def run(self, rgba: np.ndarray, roi: Optional[Polygon] = None) -> SegmentationResult:
        return segment_temp_groups(
            rgba, roi, self.params, need_label_ids=self.need_label_ids, score_config=self.score_config
        )

    def process(self, image_path: str, roi: Optional[Polygon] = None) -> SegmentationResult:
        """
        단일 이미지 처리.

        Raises:
            PipelineError: 이미지를 읽을 수 없을 때
        """
        image_path = Path(image_path)
        logger.info(f"Processing image: {image_path}")

        rgba = self.file_io.load_rgba(image_path)
        if rgba is None:
            raise PipelineError(f"Failed to load image: {image_path}")

        return self.run(rgba, roi)

    def process_batch(
        self,
        image_paths: List[str],
        roi: Optional[Polygon] = None,
        output_csv: Optional[Path] = None,
        continue_on_error: bool = True,
        parallel: bool = False,
        max_workers: int = 4,
    ) -> List[Tuple[str, SegmentationResult]]:
        """
        배치 처리 (옵션으로 병렬 처리 지원).

        Args:
            image_paths: 입력 이미지 경로 리스트
            roi: 모든 이미지에 적용할 ROI
            output_csv: 결과 CSV 저장 경로 (옵션)
            continue_on_error: 로드 실패 시 계속 진행 여부
            parallel: 병렬 처리 사용 여부
            max_workers: 병렬 처리 시 최대 워커 수

        Returns:
            (이미지 경로, 결과) 리스트. 입력 순서를 유지합니다.
        """
        logger.info(f"Batch processing {len(image_paths)} images (parallel={parallel})")

        results: List[Tuple[str, SegmentationResult]] = []
        errors = []

        if parallel and len(image_paths) > 1:
            from concurrent.futures import ThreadPoolExecutor

            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = [(path, executor.submit(self.process, path, roi)) for path in image_paths]
                for path, future in futures:
                    try:
                        results.append((str(path), future.result()))
                    except PipelineError as e:
                        logger.error(f"Error processing {path}: {e}")
                        errors.append((path, str(e)))
                        if not continue_on_error:
                            raise
        else:
            for i, path in enumerate(image_paths):
                logger.info(f"Processing {i+1}/{len(image_paths)}: {path}")
                try:
                    results.append((str(path), self.process(path, roi)))
                except PipelineError as e:
                    logger.error(f"Error processing {path}: {e}")
                    errors.append((path, str(e)))
                    if not continue_on_error:
                        raise

        logger.info(f"Batch processing complete: {len(results)} processed, {len(errors)} failed")

        if output_csv and results:
            self._save_results_csv(results, Path(output_csv))

        return results

    def _save_results_csv(self, results: List[Tuple[str, SegmentationResult]], output_path: Path):
        ensure_dir(output_path.parent)

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["image", "status", "message", "used_k", "stage", "threshold_q", "mortar_permille"])

            for image_path, result in results:
                if not result.stages:
                    writer.writerow([image_path, result.status, result.message, result.used_k, "", "", ""])
                    continue
                for idx, stage in enumerate(result.stages, start=1):
                    writer.writerow(
                        [
                            image_path,
                            result.status,
                            result.message,
                            result.used_k,
                            idx,
                            f"{stage.threshold_q:.6f}",
                            f"{stage.mortar_permille:.2f}",
                        ]
                    )

        logger.info(f"Results saved to {output_path}")
