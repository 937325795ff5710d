from .types import Box


def overlap(x1: float, w1: float, x2: float, w2: float) -> float:
    """
    Length shared by two 1-D intervals given as (center, width).

    Negative when the intervals are disjoint.
    """

    left = max(x1 - w1 / 2, x2 - w2 / 2)
    right = min(x1 + w1 / 2, x2 + w2 / 2)
    return right - left


def box_intersection(a: Box, b: Box) -> float:
    w = overlap(a.x, a.w, b.x, b.w)
    h = overlap(a.y, a.h, b.y, b.h)
    if w < 0 or h < 0:
        return 0.0
    return w * h


def box_union(a: Box, b: Box) -> float:
    return a.area + b.area - box_intersection(a, b)


def box_iou(a: Box, b: Box) -> float:
    """
    Intersection over union. Two zero-area boxes count as fully overlapping.
    """

    union = box_union(a, b)
    if union <= 0:
        return 1.0
    return box_intersection(a, b) / union
