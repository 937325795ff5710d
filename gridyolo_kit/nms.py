from dataclasses import dataclass
import logging
from typing import List

from .geometry import box_intersection, box_iou
from .types import Detection


logger = logging.getLogger(__name__)


@dataclass
class NMSConfig:
    iou_threshold: float = 0.2
    # Pixels of slack when testing whether one box sits inside the overlap.
    containment_tolerance: float = 1.0


def suppress(detections: List[Detection], iou_threshold: float, containment_tolerance: float = 1.0) -> None:
    """
    Greedy all-pairs NMS over same-class detections, in place.

    Nothing is removed or reordered; the loser of each overlapping pair gets
    `suppressed = True`. A pair overlaps when IoU exceeds `iou_threshold` or
    when the intersection covers either box up to `containment_tolerance`.

    The loser is `j` only when `i` has a strictly greater current probability,
    otherwise `i`. Equal probabilities therefore suppress the outer element.
    Suppressed entries keep competing with probability 0, so they never win.
    """

    count = len(detections)
    for i in range(count):
        a = detections[i].box
        for j in range(count):
            if i == j:
                continue
            if detections[i].class_id != detections[j].class_id:
                continue

            b = detections[j].box
            inter = box_intersection(a, b)
            if (
                box_iou(a, b) > iou_threshold
                or inter >= a.area - containment_tolerance
                or inter >= b.area - containment_tolerance
            ):
                if detections[i].current_probability > detections[j].current_probability:
                    detections[j].suppressed = True
                else:
                    detections[i].suppressed = True


def nms(detections: List[Detection], cfg: NMSConfig) -> int:
    """
    Run `suppress` with `cfg` and return how many entries it newly marked.
    """

    before = sum(1 for d in detections if d.suppressed)
    suppress(detections, cfg.iou_threshold, cfg.containment_tolerance)
    marked = sum(1 for d in detections if d.suppressed) - before
    logger.debug("NMS marked %d of %d candidates as suppressed.", marked, len(detections))
    return marked
