from dataclasses import dataclass
import logging
from typing import List, Sequence, Tuple

import numpy as np

from .config import DetectorConfig, GridGeometry
from .decode import DecodeConfig, GridDecoder
from .nms import NMSConfig, nms
from .types import Box, Detection, LabeledDetection


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridPostConfig:
    """
    Thresholds for grid decoding + NMS.
    """
    confidence_threshold: float = 0.5
    class_threshold: float = 0.6
    iou_threshold: float = 0.2
    containment_tolerance: float = 1.0

    @classmethod
    def from_detector_config(cls, cfg: DetectorConfig) -> "GridPostConfig":
        return cls(
            confidence_threshold=cfg.confidence_threshold,
            class_threshold=cfg.class_threshold,
            iou_threshold=cfg.iou_threshold,
            containment_tolerance=cfg.containment_tolerance,
        )


class GridPostprocessor:
    """
    Post-process for grid/anchor (YOLOv2-style) exports:

    - decode every (anchor, row, col) cell into candidates
    - greedy same-class NMS (losers are marked, not removed)
    - keep survivors in scan order and attach their label text

    Input is a NumPy array for a single image; torch outputs should be detached
    and converted beforehand.
    """

    def __init__(self, geometry: GridGeometry, labels: Sequence[str], cfg: GridPostConfig = GridPostConfig()):
        if len(labels) == 0:
            raise ValueError("labels must not be empty.")
        self.geometry = geometry
        self.labels = list(labels)
        self.cfg = cfg
        self.decoder = GridDecoder(
            geometry,
            len(self.labels),
            DecodeConfig(confidence_threshold=cfg.confidence_threshold, class_threshold=cfg.class_threshold),
        )
        self.nms_cfg = NMSConfig(iou_threshold=cfg.iou_threshold, containment_tolerance=cfg.containment_tolerance)

    def candidates(self, preds: np.ndarray) -> List[Detection]:
        """
        Decoded candidates after NMS, suppressed entries included.
        """

        p = np.asarray(preds)
        if p.ndim == 4:
            if p.shape[0] != 1:
                raise ValueError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
            p = p[0]
        detections = self.decoder.decode(p)
        nms(detections, self.nms_cfg)
        return detections

    def process(
        self,
        preds: np.ndarray,
        pad: Tuple[float, float] = (0.0, 0.0),
        ratio: Tuple[float, float] = (1.0, 1.0),
    ) -> List[LabeledDetection]:
        """
        Turn raw model output into labeled detections.

        Arg:
            preds: model output for a single image
            pad: (dw, dh) left/top padding applied by letterbox, if any
            ratio: (rw, rh) resize ratio applied by letterbox, if any
        """

        survivors = [d for d in self.candidates(preds) if not d.suppressed]
        logger.debug("%d detections survived NMS.", len(survivors))
        return [
            LabeledDetection(
                label=self.labels[d.class_id],
                box=self._scale_box(d.box, pad, ratio),
                confidence=d.confidence,
                probability=d.probability,
                class_id=d.class_id,
            )
            for d in survivors
        ]

    # ------------------------------------------------------------------ #
    # Helper internal
    # ------------------------------------------------------------------ #
    @staticmethod
    def _scale_box(box: Box, pad: Tuple[float, float], ratio: Tuple[float, float]) -> Box:
        """
        Map a box from letterboxed model coordinates back to the original image.
        """

        dw, dh = pad
        rw, rh = ratio
        if (dw, dh) == (0.0, 0.0) and (rw, rh) == (1.0, 1.0):
            return box
        return Box(x=(box.x - dw) / rw, y=(box.y - dh) / rh, w=box.w / rw, h=box.h / rh)
