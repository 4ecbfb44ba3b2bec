"""
Main CLI Entry Point

줄눈(mortar) stage 분할 CLI 프로그램.

Exit codes:
    0: 성공
    1: 인자 오류 (ROI 형식, 설정 파일 등)
    2: 이미지 로드 실패
    3: 분할 실패 (status != 0)
    4: stage 없음
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from mortar_stager.bridge import to_summary
from mortar_stager.data.config_manager import ConfigManager
from mortar_stager.pipeline import SegmentationPipeline, segment_temp_groups
from mortar_stager.utils.file_io import FileIO, ensure_dir, list_files, stage_output_paths
from mortar_stager.utils.roi_parser import parse_roi

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_LOAD_FAILED = 2
EXIT_SEGMENT_FAILED = 3
EXIT_NO_STAGES = 4

IMAGE_PATTERNS = ["*.jpg", "*.jpeg", "*.png", "*.bmp", "*.tif", "*.tiff"]


def setup_logging(debug: bool = False):
    """로깅 설정"""
    level = logging.DEBUG if debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )

    logging.basicConfig(level=level, handlers=[handler], force=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mortar-stager",
        description="Quantile-staged mortar segmentation",
        epilog="When multiple stages are produced, files are written as <stem>_stage_##<ext>",
    )
    parser.add_argument("input", help="Input image, or a directory with --batch")
    parser.add_argument("output", help="Output image path (or output directory with --batch)")

    parser.add_argument("--roi", help="ROI polygon 'x1,y1;x2,y2;...;xN,yN' (>= 3 points)")
    parser.add_argument("--config", type=Path, help="JSON config file with a 'params' section")

    group = parser.add_argument_group("segmentation parameters")
    group.add_argument("--region-size", type=int, dest="region_size")
    group.add_argument("--compactness", type=int)
    group.add_argument("--bilateral", action="store_true", default=None, dest="do_bilateral",
                       help="Pre-smoothing and post-morphology")
    group.add_argument("--draw-edges", action="store_true", default=None, dest="draw_edges")
    group.add_argument("--mrf-lambda", type=float, dest="mrf_lambda")
    group.add_argument("--max-k", type=int, dest="max_k")
    group.add_argument("--render-max-k", type=int, dest="render_max_k")
    group.add_argument("--stage-idx", type=int, dest="stage_idx", help="1-based selected coarse stage")
    group.add_argument("--stage-steps", type=int, dest="stage_steps", help="Coarse stage count N")
    group.add_argument("--refine", action="store_true", default=None, dest="refine_mode",
                       help="Re-sample a window around --stage-idx")
    group.add_argument("--refine-steps", type=int, dest="refine_steps")

    out = parser.add_argument_group("output")
    out.add_argument("--json", type=Path, dest="json_output", help="Write a JSON summary")
    out.add_argument("--contact-sheet", type=Path, help="Write a contact sheet of all stages")
    out.add_argument("--chart", type=Path, help="Write a permille vs threshold chart")
    out.add_argument("--batch", action="store_true", help="Process every image in the input directory")
    out.add_argument("--csv", type=Path, help="Batch: write a per-stage CSV summary")
    out.add_argument("--parallel", action="store_true", help="Batch: process images on a thread pool")
    out.add_argument("--workers", type=int, default=4, help="Batch: thread pool size (default: 4)")
    out.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


PARAM_FIELDS = [
    "region_size",
    "compactness",
    "do_bilateral",
    "draw_edges",
    "mrf_lambda",
    "max_k",
    "render_max_k",
    "stage_idx",
    "stage_steps",
    "refine_mode",
    "refine_steps",
]


def params_from_args(args):
    overrides = {name: getattr(args, name, None) for name in PARAM_FIELDS}
    return ConfigManager(path=args.config).params(overrides)


def write_visualizations(result, args) -> None:
    if not (args.contact_sheet or args.chart):
        return
    from mortar_stager.visualizer import StageVisualizer

    visualizer = StageVisualizer()
    if args.contact_sheet:
        visualizer.save_visualization(visualizer.contact_sheet(result), args.contact_sheet)
        print(f"wrote: {args.contact_sheet}")
    if args.chart:
        visualizer.save_visualization(visualizer.permille_chart(result), args.chart)
        print(f"wrote: {args.chart}")


def write_stage_outputs(
    result, input_path: Path, output_path: Path, params, file_io: FileIO, json_path: Optional[Path] = None
) -> int:
    """stage 이미지와 JSON 요약 저장. 종료 코드 반환."""
    logger = logging.getLogger(__name__)

    if result.status != 0:
        print(f"segment failed: {result.message}", file=sys.stderr)
        return EXIT_SEGMENT_FAILED

    if not result.stages:
        print("no stages returned", file=sys.stderr)
        return EXIT_NO_STAGES

    paths = stage_output_paths(output_path, len(result.stages))
    for path, stage in zip(paths, result.stages):
        file_io.save_rgba(path, stage.rgba)
        print(
            f"wrote: {path}  (mortarPermille={stage.mortar_permille:.2f}, "
            f"labelId={stage.label_id}, q={stage.threshold_q:.6g})"
        )

    print(f'[usedK={result.used_k}] status={result.status} message="{result.message}"')

    if json_path:
        summary = to_summary(result)
        summary["image_path"] = str(input_path)
        summary["outputs"] = [str(p) for p in paths]
        summary["params"] = params.to_dict()
        ensure_dir(json_path.parent)
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2, ensure_ascii=False)
        logger.info(f"Summary saved to {json_path}")

    return EXIT_OK


def process_single_image(
    args, input_path: Path, output_path: Path, params, roi, file_io: FileIO, json_path: Optional[Path] = None
) -> int:
    rgba = file_io.load_rgba(input_path)
    if rgba is None:
        print(f"load fail: {input_path}", file=sys.stderr)
        return EXIT_LOAD_FAILED

    result = segment_temp_groups(rgba, roi, params)
    code = write_stage_outputs(result, input_path, output_path, params, file_io, json_path)
    if code == EXIT_OK:
        write_visualizations(result, args)
    return code


def process_batch(args, params, roi, file_io: FileIO) -> int:
    logger = logging.getLogger(__name__)

    batch_dir = Path(args.input)
    if not batch_dir.is_dir():
        logger.error(f"Batch directory not found: {batch_dir}")
        return EXIT_LOAD_FAILED

    image_paths: List[Path] = []
    for pattern in IMAGE_PATTERNS:
        image_paths.extend(list_files(batch_dir, pattern))
    image_paths = sorted(set(image_paths))

    if not image_paths:
        logger.error(f"No images found in {batch_dir}")
        return EXIT_LOAD_FAILED

    logger.info(f"Found {len(image_paths)} images in {batch_dir}")

    # 파이프라인 초기화
    pipeline = SegmentationPipeline(params)

    # 배치 처리 (로드 실패한 이미지는 결과에서 빠짐)
    results = pipeline.process_batch(
        [str(p) for p in image_paths],
        roi,
        output_csv=args.csv,
        continue_on_error=True,
        parallel=args.parallel,
        max_workers=args.workers,
    )

    worst = EXIT_OK
    if len(results) < len(image_paths):
        print(f"load fail: {len(image_paths) - len(results)} image(s) in {batch_dir}", file=sys.stderr)
        worst = EXIT_LOAD_FAILED

    out_dir = Path(args.output)
    for image_path, result in results:
        stem = Path(image_path).stem
        json_path = out_dir / f"{stem}.json" if args.json_output else None
        code = write_stage_outputs(result, Path(image_path), out_dir / f"{stem}.png", params, file_io, json_path)
        worst = max(worst, code)

    print(f"Processed {len(results)}/{len(image_paths)} images from {batch_dir}")
    return worst


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.debug)

    try:
        roi = parse_roi(args.roi)
        params = params_from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    file_io = FileIO()
    if args.batch:
        return process_batch(args, params, roi, file_io)
    return process_single_image(args, Path(args.input), Path(args.output), params, roi, file_io, args.json_output)


if __name__ == "__main__":
    sys.exit(main())
