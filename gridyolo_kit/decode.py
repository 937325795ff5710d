from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Union

import numpy as np

from .activations import sigmoid, softmax
from .config import GridGeometry
from .types import Box, Detection


logger = logging.getLogger(__name__)

TensorLike = Union[np.ndarray, Sequence[float]]


@dataclass(frozen=True)
class DecodeConfig:
    # Objectness gate: cells at or below this confidence are skipped.
    confidence_threshold: float = 0.5
    # Candidates need confidence * class probability strictly above this.
    class_threshold: float = 0.6


class GridDecoder:
    """
    Decode the raw output of a grid/anchor detector into candidate detections.

    The tensor is read as `[anchor][channel][row][col]` with channels
    `tx, ty, tw, th, objectness, class logits...`. Any shape works as long as
    the element count matches (flat, `(1, A*(5+C), H, W)`, ...).

    Candidates come out in scan order: anchor-major, then row, then column.
    """

    def __init__(self, geometry: GridGeometry, label_count: int, cfg: DecodeConfig = DecodeConfig()):
        if label_count < 1:
            raise ValueError("label_count must be >= 1 (label list must be non-empty).")
        self.geometry = geometry
        self.label_count = label_count
        self.cfg = cfg
        self._anchors = np.asarray(geometry.anchors, dtype=np.float64)

    @property
    def expected_size(self) -> int:
        return self.geometry.tensor_size(self.label_count)

    def cell_offset(self, b: int, y: int, x: int) -> int:
        """Flat index of channel 0 for anchor `b`, row `y`, column `x`."""
        g = self.geometry
        return b * (self.label_count + 5) * g.grid_w * g.grid_h + y * g.grid_w + x

    def channel_offset(self, base: int, channel: int) -> int:
        g = self.geometry
        return base + channel * g.grid_w * g.grid_h

    def decode(self, tensor: TensorLike) -> List[Detection]:
        g = self.geometry
        flat = np.asarray(tensor, dtype=np.float64).reshape(-1)
        if flat.size != self.expected_size:
            raise ValueError(
                f"Output tensor has {flat.size} values, expected {self.expected_size} "
                f"({g.num_anchors} anchors x (5 + {self.label_count}) x {g.grid_h} x {g.grid_w})."
            )

        grid = flat.reshape(g.num_anchors, 5 + self.label_count, g.grid_h, g.grid_w)

        confidence = sigmoid(grid[:, 4])
        # np.nonzero walks in C order, i.e. anchor, row, column.
        b, y, x = np.nonzero(confidence > self.cfg.confidence_threshold)
        if b.size == 0:
            logger.debug("No cell passed the objectness gate (%.3f).", self.cfg.confidence_threshold)
            return []

        conf = confidence[b, y, x]
        cx = (x + sigmoid(grid[b, 0, y, x])) * g.stride_x
        cy = (y + sigmoid(grid[b, 1, y, x])) * g.stride_y
        bw = np.exp(grid[b, 2, y, x]) * self._anchors[b, 0] * g.stride_x
        bh = np.exp(grid[b, 3, y, x]) * self._anchors[b, 1] * g.stride_y

        probs = softmax(grid[b, 5:, y, x], axis=1)  # (N, C)
        # argmax keeps the first maximum on ties.
        detected = np.argmax(probs, axis=1)
        max_p = probs[np.arange(probs.shape[0]), detected]
        keep = max_p * conf > self.cfg.class_threshold

        detections = [
            Detection(
                box=Box(x=float(cx[i]), y=float(cy[i]), w=float(bw[i]), h=float(bh[i])),
                confidence=float(conf[i]),
                class_id=int(detected[i]),
                probability=float(max_p[i]),
            )
            for i in np.flatnonzero(keep)
        ]
        logger.debug("Decoded %d candidates from %d gated cells.", len(detections), b.size)
        return detections


def decode(
    tensor: TensorLike,
    geometry: GridGeometry,
    label_count: int,
    confidence_threshold: float = 0.5,
    class_threshold: float = 0.6,
) -> List[Detection]:
    decoder = GridDecoder(
        geometry,
        label_count,
        DecodeConfig(confidence_threshold=confidence_threshold, class_threshold=class_threshold),
    )
    return decoder.decode(tensor)
