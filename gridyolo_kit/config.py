from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Sequence, Tuple


# Tiny YOLOv2 (VOC) priors, in grid-cell units.
DEFAULT_ANCHORS: Tuple[Tuple[float, float], ...] = (
    (1.08, 1.19),
    (3.42, 4.41),
    (6.63, 11.38),
    (9.42, 5.11),
    (16.62, 10.52),
)


@dataclass(frozen=True)
class GridGeometry:
    """
    Output grid of the detector plus the input resolution it was exported for.

    One anchor (width-prior, height-prior) per box slot in each cell.
    """

    grid_w: int = 13
    grid_h: int = 13
    anchors: Tuple[Tuple[float, float], ...] = DEFAULT_ANCHORS
    input_w: int = 416
    input_h: int = 416

    def __post_init__(self) -> None:
        if self.grid_w <= 0 or self.grid_h <= 0:
            raise ValueError("grid_w and grid_h must be > 0")
        if self.input_w <= 0 or self.input_h <= 0:
            raise ValueError("input_w and input_h must be > 0")
        if not self.anchors:
            raise ValueError("anchors must not be empty")
        for pair in self.anchors:
            if len(pair) != 2:
                raise ValueError(f"anchor must be a (width, height) pair, got {pair!r}")
            if pair[0] < 0 or pair[1] < 0:
                raise ValueError(f"anchor priors must be >= 0, got {pair!r}")

    @property
    def num_anchors(self) -> int:
        return len(self.anchors)

    @property
    def stride_x(self) -> float:
        return self.input_w / self.grid_w

    @property
    def stride_y(self) -> float:
        return self.input_h / self.grid_h

    def tensor_size(self, label_count: int) -> int:
        return self.num_anchors * (5 + label_count) * self.grid_w * self.grid_h


@dataclass(frozen=True)
class DetectorConfig:
    geometry: GridGeometry = field(default_factory=GridGeometry)
    confidence_threshold: float = 0.5
    class_threshold: float = 0.6
    iou_threshold: float = 0.2
    containment_tolerance: float = 1.0
    pixel_scale: float = 1.0

    def __post_init__(self) -> None:
        for name in ("confidence_threshold", "class_threshold", "iou_threshold"):
            value = getattr(self, name)
            if value < 0.0 or value > 1.0:
                raise ValueError(f"{name} must be in [0, 1]")
        if self.containment_tolerance < 0:
            raise ValueError("containment_tolerance must be >= 0")
        if self.pixel_scale <= 0:
            raise ValueError("pixel_scale must be > 0")


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _parse_anchors(value: object) -> Tuple[Tuple[float, float], ...]:
    if not isinstance(value, list) or not value:
        raise ValueError("anchors must be a non-empty list of [width, height] pairs")
    parsed = []
    for item in value:
        if not isinstance(item, Sequence) or isinstance(item, str) or len(item) != 2:
            raise ValueError(f"anchors entries must be [width, height] pairs, got {item!r}")
        if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in item):
            raise ValueError(f"anchors entries must be numbers, got {item!r}")
        parsed.append((float(item[0]), float(item[1])))
    return tuple(parsed)


_GEOMETRY_INT_KEYS = ("grid_w", "grid_h", "input_w", "input_h")
_THRESHOLD_KEYS = (
    "confidence_threshold",
    "class_threshold",
    "iou_threshold",
    "containment_tolerance",
    "pixel_scale",
)


def detector_config_from_dict(payload: Dict[str, Any]) -> DetectorConfig:
    allowed = set(_GEOMETRY_INT_KEYS) | set(_THRESHOLD_KEYS) | {"anchors"}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector config keys: {unknown}")

    geometry_kwargs: Dict[str, Any] = {}
    for key in _GEOMETRY_INT_KEYS:
        if key in payload:
            geometry_kwargs[key] = _require_int(payload, key)
    if "anchors" in payload:
        geometry_kwargs["anchors"] = _parse_anchors(payload["anchors"])

    kwargs: Dict[str, Any] = {"geometry": GridGeometry(**geometry_kwargs)}
    for key in _THRESHOLD_KEYS:
        if key in payload:
            kwargs[key] = _require_number(payload, key)
    return DetectorConfig(**kwargs)


def load_detector_config(path: Path) -> DetectorConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector config must be a JSON object")
    return detector_config_from_dict(payload)
