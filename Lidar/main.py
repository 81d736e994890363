import sys
import logging
import argparse
from pathlib import Path
from tqdm import tqdm

from config.utils.path_manager import path_manager
from config.logging_config import setup_logging, configure_external_loggers

from Lidar.src.engine.errors import EngineInitError
from Lidar.src.engine.profiler import LayerProfile
from Lidar.src.lidar_models import PointPillarsPipeline
from Lidar.src.lidar_utils import (
    format_detection,
    list_point_files,
    load_points,
    prediction_path,
    save_predictions,
)

logger = logging.getLogger("Lidar.main")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="PointPillars TensorRT inference")
    parser.add_argument('-m', '--model', type=str, default=None, help="ONNX model (used when no engine cache exists)")
    parser.add_argument('-e', '--engine', type=str, default=None, help="Serialized engine: loaded if present, written after a build")
    parser.add_argument('-l', '--data', type=str, default=None, help=".bin point cloud or a directory of them")
    parser.add_argument('-o', '--output', type=str, default=None, help="Directory for the per-frame prediction files")
    parser.add_argument('-d', '--data-type', choices=['fp32', 'fp16'], default=None, help="Engine precision (build only)")
    parser.add_argument('-t', '--nms-iou-thresh', type=float, default=None, help="NMS IoU threshold")
    parser.add_argument('-n', '--max-kept', type=int, default=None, help="Maximum detections kept after NMS")
    parser.add_argument('-c', '--class-names', type=str, default=None, help="Comma separated class names")
    parser.add_argument('-p', '--profile', action='store_true', help="Print per-layer timings")
    parser.add_argument('-v', '--verbose', action='store_true', help="Debug logging on the console")
    args = parser.parse_args(argv)

    if args.nms_iou_thresh is not None and not 0.0 <= args.nms_iou_thresh <= 1.0:
        parser.error(f"--nms-iou-thresh must be in [0, 1], got {args.nms_iou_thresh}")
    if args.max_kept is not None and args.max_kept <= 0:
        parser.error(f"--max-kept must be a positive integer, got {args.max_kept}")
    return args


def run(args) -> int:
    class_names = args.class_names.split(',') if args.class_names else None
    pipeline = PointPillarsPipeline.from_config(
        model_path=args.model,
        engine_path=args.engine,
        precision=args.data_type,
        nms_iou_threshold=args.nms_iou_thresh,
        max_kept=args.max_kept,
        class_names=class_names,
    )

    data_path = Path(args.data) if args.data else path_manager.get("data")
    output_dir = Path(args.output) if args.output else path_manager.get("predictions", create=True)
    do_profile = args.profile or bool(path_manager.get_inference_setting("profile", False))

    frames = list_point_files(data_path)
    if not frames:
        logger.warning(f"No .bin point clouds found in {data_path}")
        return 0

    failed = 0
    with pipeline:
        for frame in tqdm(frames, desc="Inferring", disable=len(frames) == 1):
            logger.info(f"Loading Data: {frame}")
            points = load_points(frame, pipeline.point_dims)

            profile = LayerProfile("perf") if do_profile else None
            result = pipeline.predict(points, profile=profile)
            if not result.ok:
                logger.error(f"Inference failed on {frame.name}, skipping frame")
                failed += 1
                continue

            if profile is not None:
                logger.info("\n" + profile.format_report())

            for box in result.detections:
                logger.info(format_detection(box, pipeline.class_names))
            logger.info(f"TIME: pointpillar: {result.elapsed_ms:.3f} ms.")
            logger.info(f"Bndbox objs: {len(result.detections)}")

            save_predictions(result.detections, prediction_path(frame, output_dir))

    if failed:
        logger.warning(f"{failed} of {len(frames)} frames failed")
    return 1 if failed == len(frames) else 0


def main(argv=None):
    args = parse_args(argv)

    setup_logging(
        log_dir=path_manager.get("logs", create=True),
        level=logging.DEBUG if args.verbose else logging.INFO,
    )
    configure_external_loggers()

    try:
        code = run(args)
    except EngineInitError as e:
        logger.critical(f"Engine initialization failed: {e}")
        sys.exit(1)
    except FileNotFoundError as e:
        logger.critical(str(e))
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
