from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import DetectorConfig, GridGeometry
from .letterbox import letterbox
from .metadata import load_labels
from .postprocess import GridPostConfig, GridPostprocessor
from .types import LabeledDetection


PathLike = Union[str, Path]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", ".git"),
) -> Path:
    """
    Best-effort project root discovery, so `data/models/...` works from any cwd.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Resolve `path` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against `root`, or the project root when
      `root` is "auto"/None.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


@dataclass(frozen=True)
class LetterboxConfig:
    # Off by default: the image must already match the model input size.
    enabled: bool = False
    color: Tuple[int, int, int] = (0, 0, 0)
    scale_fill: bool = False
    scaleup: bool = True


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    orig_size: Tuple[int, int]
    ratio: Tuple[float, float]
    pad: Tuple[float, float]


class GridYoloPipeline:
    """
    Plug-and-play pipeline: preprocess -> inference -> decode + NMS.

    The pipeline expects BGR images (OpenCV-style) as `np.ndarray` and returns
    `LabeledDetection`s in original image coordinates.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        labels: Sequence[str],
        *,
        geometry: GridGeometry = GridGeometry(),
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
        letterbox_cfg: LetterboxConfig = LetterboxConfig(),
        post_cfg: GridPostConfig = GridPostConfig(),
        pixel_scale: float = 1.0,
    ):
        self._infer_fn = infer_fn
        self.geometry = geometry
        self.backend = backend
        self.backend_name = backend_name
        self.letterbox_cfg = letterbox_cfg
        self.pixel_scale = pixel_scale
        self.post = GridPostprocessor(geometry, labels, post_cfg)

    @property
    def labels(self) -> List[str]:
        return self.post.labels

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        if image_bgr is None or not hasattr(image_bgr, "shape"):
            raise TypeError("image_bgr must be a NumPy array (BGR).")
        if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

        orig_h, orig_w = image_bgr.shape[:2]
        in_w, in_h = self.geometry.input_w, self.geometry.input_h
        if self.letterbox_cfg.enabled:
            img, ratio, pad = letterbox(
                image_bgr,
                new_shape=(in_w, in_h),
                color=self.letterbox_cfg.color,
                scale_fill=self.letterbox_cfg.scale_fill,
                scaleup=self.letterbox_cfg.scaleup,
            )
        else:
            if (orig_w, orig_h) != (in_w, in_h):
                raise ValueError(
                    f"Image size {orig_w}x{orig_h}x3 does not match model input {in_w}x{in_h}x3 "
                    "(enable letterboxing to resize)."
                )
            img, ratio, pad = image_bgr, (1.0, 1.0), (0.0, 0.0)

        # BGR -> RGB, scale, HWC -> CHW, add batch
        blob = img[:, :, ::-1].astype(np.float32) * np.float32(self.pixel_scale)
        blob = np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])

        return PreprocessResult(blob=blob, orig_size=(orig_w, orig_h), ratio=ratio, pad=pad)

    def __call__(self, image_bgr: np.ndarray) -> List[LabeledDetection]:
        prep = self.preprocess(image_bgr)
        preds = self._infer_fn(prep.blob)
        return self.post.process(preds, pad=prep.pad, ratio=prep.ratio)


def load_pipeline(
    model_path: PathLike,
    labels_path: PathLike,
    *,
    config: Optional[DetectorConfig] = None,
    root: Optional[PathLike] = "auto",
    use_cuda: bool = False,
    onnx_providers: Optional[Sequence[str]] = None,
    letterbox_cfg: LetterboxConfig = LetterboxConfig(),
) -> GridYoloPipeline:
    """
    Create a pipeline for an ONNX grid detector on disk.

    Typical usage:
        pipe = load_pipeline("data/models/Model.onnx", "data/labels/VOC_pascal_classes.txt")

    Args:
        model_path: path to the .onnx model; relative paths resolve against project root by default
        labels_path: text file with one class label per line
        config: geometry and thresholds; defaults to Tiny YOLOv2 VOC settings
        use_cuda: prefer the CUDA execution provider (ignored when onnx_providers is given)
    """

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig, select_providers

    cfg = config if config is not None else DetectorConfig()
    resolved = resolve_path(model_path, root=root)
    if resolved.suffix.lower() != ".onnx":
        raise ValueError(f"Expected an .onnx model, got '{resolved.suffix}'.")

    labels = load_labels(resolve_path(labels_path, root=root))
    providers = list(onnx_providers) if onnx_providers is not None else select_providers(use_cuda)

    ort_backend = OnnxRuntimeBackend(resolved, OnnxRuntimeBackendConfig(providers=providers))
    return GridYoloPipeline(
        ort_backend.infer,
        labels,
        geometry=cfg.geometry,
        backend=ort_backend,
        backend_name="onnxruntime",
        letterbox_cfg=letterbox_cfg,
        post_cfg=GridPostConfig.from_detector_config(cfg),
        pixel_scale=cfg.pixel_scale,
    )
