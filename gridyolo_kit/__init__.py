"""
Decoding and post-processing for grid/anchor single-shot detectors (Tiny YOLOv2 style).

Works on the NumPy array emitted by ONNX Runtime (or any runtime converted to
NumPy): grid decoding with anchor priors, logistic/softmax transforms, greedy
same-class NMS. OpenCV is only needed for letterboxing and drawing.
"""

from .types import Box, Detection, LabeledDetection
from .activations import sigmoid, softmax
from .geometry import box_intersection, box_iou, box_union, overlap
from .config import DEFAULT_ANCHORS, DetectorConfig, GridGeometry, load_detector_config
from .decode import DecodeConfig, GridDecoder, decode
from .letterbox import letterbox
from .nms import NMSConfig, nms, suppress
from .postprocess import GridPostConfig, GridPostprocessor
from .runtime import GridYoloPipeline, LetterboxConfig, find_project_root, load_pipeline, resolve_path
from .metadata import load_labels
from .visualize import draw_detections, format_detection

__all__ = [
    "Box",
    "Detection",
    "LabeledDetection",
    "sigmoid",
    "softmax",
    "overlap",
    "box_intersection",
    "box_union",
    "box_iou",
    "DEFAULT_ANCHORS",
    "GridGeometry",
    "DetectorConfig",
    "load_detector_config",
    "DecodeConfig",
    "GridDecoder",
    "decode",
    "letterbox",
    "NMSConfig",
    "nms",
    "suppress",
    "GridPostConfig",
    "GridPostprocessor",
    "GridYoloPipeline",
    "LetterboxConfig",
    "load_pipeline",
    "find_project_root",
    "resolve_path",
    "load_labels",
    "draw_detections",
    "format_detection",
]
