from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .activations import sigmoid, softmax


@dataclass(frozen=True)
class LabelTable:
    """
    Class names by index. Indices past the end fall back to their decimal string.
    """

    names: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "names", tuple(str(n) for n in self.names))

    def label_for(self, class_index: int) -> str:
        if 0 <= class_index < len(self.names):
            return self.names[class_index]
        return str(class_index)


@dataclass(frozen=True)
class ClassScores:
    """
    Vectorized class-scoring result over any leading shape.
    """

    box_confidence: np.ndarray
    distribution: np.ndarray
    top_class: np.ndarray
    confidence: np.ndarray


def score_classes(confidence_logits, class_logits) -> ClassScores:
    """
    Sigmoid the box confidence, softmax the class logits (last axis), pick the
    top class (first index wins ties) and combine.

    final confidence = sigmoid(conf_logit) * distribution[top_class]
    """

    box_confidence = np.asarray(sigmoid(confidence_logits), dtype=np.float64)
    distribution = softmax(class_logits, axis=-1)
    top_class = np.argmax(distribution, axis=-1)
    top_score = np.take_along_axis(distribution, top_class[..., None], axis=-1)[..., 0]
    return ClassScores(
        box_confidence=box_confidence,
        distribution=distribution,
        top_class=top_class,
        confidence=box_confidence * top_score,
    )
