from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from .types import LabeledDetection


def format_detection(det: LabeledDetection) -> str:
    """
    Human-readable multi-line report for one detection.
    """

    b = det.box
    return "\n".join(
        [
            f"Label: {det.label}",
            f"Bounding Box (X, Y, W, H): ({b.x:g}, {b.y:g}, {b.w:g}, {b.h:g})",
            f"Confidence (IoU): {det.confidence * 100:g}%",
            f"Probability: {det.probability * 100:g}%",
            f"Score: {det.score * 100:g}%",
        ]
    )


def class_color(class_id: int) -> Tuple[int, int, int]:
    """
    Stable BGR color per class, bright enough for white label text.
    """

    rng = np.random.default_rng(class_id)
    b, g, r = rng.integers(64, 256, size=3)
    return int(b), int(g), int(r)


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[LabeledDetection],
    *,
    show_score: bool = True,
    thickness: int = 2,
    font_scale: float = 0.5,
) -> np.ndarray:
    """
    Return a copy of `image_bgr` with each detection's box and caption drawn.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_detections(). Install with `pip install opencv-python`.") from e

    if not isinstance(image_bgr, np.ndarray) or image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected a BGR image of shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    canvas = image_bgr.copy()
    height, width = canvas.shape[:2]
    font = cv2.FONT_HERSHEY_SIMPLEX

    for det in detections:
        left, top, right, bottom = (int(round(v)) for v in det.as_xyxy())
        left, right = max(left, 0), min(right, width - 1)
        top, bottom = max(top, 0), min(bottom, height - 1)
        color = class_color(det.class_id)
        cv2.rectangle(canvas, (left, top), (right, bottom), color, thickness)

        caption = f"{det.label} {det.score * 100:.0f}%" if show_score else det.label
        (text_w, text_h), baseline = cv2.getTextSize(caption, font, font_scale, 1)
        # Caption sits above the box, or just inside it at the top edge.
        text_top = top - text_h - baseline if top - text_h - baseline >= 0 else top
        cv2.rectangle(canvas, (left, text_top), (left + text_w, text_top + text_h + baseline), color, -1)
        cv2.putText(canvas, caption, (left, text_top + text_h), font, font_scale, (255, 255, 255), 1, cv2.LINE_AA)

    return canvas
