from __future__ import annotations

import argparse
import dataclasses
import logging
from pathlib import Path
from typing import Optional, Sequence

from .config import DetectorConfig, load_detector_config
from .runtime import LetterboxConfig, load_pipeline
from .visualize import draw_detections, format_detection


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run a grid/anchor (Tiny YOLOv2-style) ONNX detector on one image."
    )
    parser.add_argument("--model", default="data/models/Model.onnx", help="Path to the .onnx model.")
    parser.add_argument("--image", default="data/images/test.jpg", help="Path to the input image.")
    parser.add_argument(
        "--labels", default="data/labels/VOC_pascal_classes.txt", help="Text file with one class label per line."
    )
    parser.add_argument("--config", default=None, help="JSON detector config (geometry, anchors, thresholds).")

    device = parser.add_mutually_exclusive_group()
    device.add_argument("--use-cuda", dest="use_cuda", action="store_true", help="Prefer the CUDA execution provider.")
    device.add_argument("--use-cpu", dest="use_cuda", action="store_false", help="Run on CPU (default).")
    parser.set_defaults(use_cuda=False)

    parser.add_argument("--conf", type=float, default=None, help="Objectness threshold (overrides config).")
    parser.add_argument("--class-threshold", type=float, default=None, help="Score threshold (overrides config).")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS (overrides config).")
    parser.add_argument("--letterbox", action="store_true", help="Resize/pad images that do not match the input size.")
    parser.add_argument("--save", default=None, help="Write an annotated copy of the image here.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...).")
    return parser


def resolve_config(args: argparse.Namespace) -> DetectorConfig:
    cfg = load_detector_config(Path(args.config)) if args.config else DetectorConfig()
    overrides = {}
    if args.conf is not None:
        overrides["confidence_threshold"] = float(args.conf)
    if args.class_threshold is not None:
        overrides["class_threshold"] = float(args.class_threshold)
    if args.iou is not None:
        overrides["iou_threshold"] = float(args.iou)
    return dataclasses.replace(cfg, **overrides) if overrides else cfg


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        cfg = resolve_config(args)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required to read images. Install with `pip install opencv-python`.") from e

    print(f"Inference Execution Provider: {'CUDA' if args.use_cuda else 'CPU'}")

    pipeline = load_pipeline(
        args.model,
        args.labels,
        config=cfg,
        root=Path.cwd(),
        use_cuda=args.use_cuda,
        letterbox_cfg=LetterboxConfig(enabled=bool(args.letterbox)),
    )
    backend = pipeline.backend
    print(f"Input Name: {backend.input_name}")
    print(f"Input Dimensions: {list(backend.input_shape)}")
    print(f"Output Name: {backend.output_name}")
    print(f"Output Dimensions: {list(backend.output_shape)}")

    image = cv2.imread(args.image)
    if image is None:
        raise FileNotFoundError(f"Could not read image at path: {args.image}")

    detections = pipeline(image)
    logger.info("%d detections", len(detections))
    for det in detections:
        print()
        print(format_detection(det))

    if args.save:
        vis = draw_detections(image, detections)
        if not cv2.imwrite(args.save, vis):
            raise RuntimeError(f"Could not write image to: {args.save}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
