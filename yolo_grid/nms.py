from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .errors import ConfigurationError
from .types import Detection, Rect


@dataclass(frozen=True)
class NMSConfig:
    conf_threshold: float = 0.0
    iou_threshold: float = 0.5
    max_detections: int = 5

    def __post_init__(self) -> None:
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ConfigurationError("conf_threshold must be within [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ConfigurationError("iou_threshold must be within [0, 1]")
        if isinstance(self.max_detections, bool) or not isinstance(self.max_detections, (int, np.integer)):
            raise ConfigurationError("max_detections must be an integer")
        if self.max_detections <= 0:
            raise ConfigurationError("max_detections must be > 0")


def iou(a: Rect, b: Rect) -> float:
    """
    Intersection over union of two (x, y, width, height) rectangles.

    0.0 when either rectangle has no area or they do not overlap.
    """

    area_a = a.width * a.height
    area_b = b.width * b.height
    if area_a <= 0 or area_b <= 0:
        return 0.0

    min_x = max(a.x, b.x)
    min_y = max(a.y, b.y)
    max_x = min(a.x + a.width, b.x + b.width)
    max_y = min(a.y + a.height, b.y + b.height)

    inter = max(max_x - min_x, 0) * max(max_y - min_y, 0)
    union = area_a + area_b - inter
    return inter / union


def iou_one_to_many(box: np.ndarray, others: np.ndarray) -> np.ndarray:
    """
    Vectorized `iou` of one [x, y, w, h] box against (N, 4) boxes.
    """

    box = np.asarray(box, dtype=np.float64)
    others = np.asarray(others, dtype=np.float64)
    if others.size == 0:
        return np.empty((0,), dtype=np.float64)

    area = box[2] * box[3]
    areas = others[:, 2] * others[:, 3]

    xx1 = np.maximum(box[0], others[:, 0])
    yy1 = np.maximum(box[1], others[:, 1])
    xx2 = np.minimum(box[0] + box[2], others[:, 0] + others[:, 2])
    yy2 = np.minimum(box[1] + box[3], others[:, 1] + others[:, 3])

    w = np.maximum(0, xx2 - xx1)
    h = np.maximum(0, yy2 - yy1)
    inter = w * h
    union = area + areas - inter

    valid = (area > 0) & (areas > 0)
    out = np.zeros(others.shape[0], dtype=np.float64)
    out[valid] = inter[valid] / union[valid]
    return out


def suppress(candidates: Sequence[Detection], cfg: NMSConfig) -> List[Detection]:
    """
    Confidence filter + greedy NMS.

    Candidates below `conf_threshold` are dropped, the rest visited in
    descending confidence (stable for ties). Each still-active candidate is
    kept; once `max_detections` are kept the scan stops, otherwise every later
    active candidate whose IoU with it exceeds `iou_threshold` is deactivated.
    """

    kept_in = [d for d in candidates if d.confidence >= cfg.conf_threshold]
    if not kept_in:
        return []

    scores = np.fromiter((d.confidence for d in kept_in), dtype=np.float64, count=len(kept_in))
    order = np.argsort(-scores, kind="stable")
    ordered = [kept_in[i] for i in order]
    boxes = np.array([d.rect for d in ordered], dtype=np.float64).reshape(-1, 4)

    active = np.ones(len(ordered), dtype=bool)
    remaining = len(ordered)
    results: List[Detection] = []

    for i in range(len(ordered)):
        if not active[i]:
            continue
        active[i] = False
        remaining -= 1
        results.append(ordered[i])
        if len(results) >= cfg.max_detections or remaining <= 0:
            break

        later = np.nonzero(active[i + 1 :])[0] + i + 1
        overlaps = iou_one_to_many(boxes[i], boxes[later])
        dropped = later[overlaps > cfg.iou_threshold]
        active[dropped] = False
        remaining -= dropped.size
        if remaining <= 0:
            break

    return results
