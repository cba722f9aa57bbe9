from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError

# (width, height) ratios, in cell units, of the boxes TinyYoloV2 was trained on.
TINY_YOLOV2_ANCHORS: Tuple[Tuple[float, float], ...] = (
    (1.08, 1.19),
    (3.42, 4.41),
    (6.63, 11.38),
    (9.42, 5.11),
    (16.62, 10.52),
)


@dataclass(frozen=True)
class AnchorTable:
    """
    Ordered (width_ratio, height_ratio) priors, one per box slot in a cell.
    """

    pairs: Tuple[Tuple[float, float], ...] = TINY_YOLOV2_ANCHORS

    def __post_init__(self) -> None:
        normalized = []
        for i, pair in enumerate(self.pairs):
            if isinstance(pair, (str, bytes)) or not isinstance(pair, Iterable):
                raise ConfigurationError(f"anchor {i} must be a (width, height) pair")
            values = tuple(pair)
            if len(values) != 2:
                raise ConfigurationError(f"anchor {i} must contain exactly 2 values (width, height), got {len(values)}")
            for v in values:
                if isinstance(v, bool) or not isinstance(v, (int, float, np.integer, np.floating)):
                    raise ConfigurationError(f"anchor {i} values must be numbers")
            normalized.append((float(values[0]), float(values[1])))
        object.__setattr__(self, "pairs", tuple(normalized))

    @classmethod
    def from_flat(cls, values: Sequence[float]) -> "AnchorTable":
        """
        Build from a flat [w0, h0, w1, h1, ...] list.
        """

        if len(values) % 2 != 0:
            raise ConfigurationError("flat anchor list must have an even number of values")
        return cls(tuple((values[i], values[i + 1]) for i in range(0, len(values), 2)))

    def __len__(self) -> int:
        return len(self.pairs)

    def __getitem__(self, index: int) -> Tuple[float, float]:
        return self.pairs[index]

    def validate_for(self, boxes_per_cell: int) -> None:
        if len(self.pairs) != boxes_per_cell:
            raise ConfigurationError(
                f"number of anchors ({len(self.pairs)}) is not equal to boxes_per_cell ({boxes_per_cell})"
            )

    def as_array(self) -> np.ndarray:
        """(boxes_per_cell, 2) float array of [width_ratio, height_ratio]."""
        return np.asarray(self.pairs, dtype=np.float64).reshape(-1, 2)
