from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Box:
    """
    Axis-aligned box in image pixels, stored as center (x, y) and full width/height.
    """

    x: float
    y: float
    w: float
    h: float

    @property
    def area(self) -> float:
        return self.w * self.h

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x - self.w / 2, self.y - self.h / 2, self.x + self.w / 2, self.y + self.h / 2


@dataclass
class Detection:
    """
    One decoded candidate. Only `suppressed` changes after decoding.
    """

    box: Box
    confidence: float
    class_id: int
    probability: float
    suppressed: bool = False

    @property
    def current_probability(self) -> float:
        # A suppressed candidate competes with probability 0 for the rest of NMS.
        return 0.0 if self.suppressed else self.probability

    @property
    def score(self) -> float:
        return self.confidence * self.probability


@dataclass(frozen=True)
class LabeledDetection:
    label: str
    box: Box
    confidence: float
    probability: float
    class_id: int

    @property
    def score(self) -> float:
        return self.confidence * self.probability

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.box.as_xyxy()
