from __future__ import annotations

from typing import Tuple

import numpy as np

from .activations import sigmoid
from .anchors import AnchorTable
from .errors import ComputationError
from .layout import LayoutConfig
from .types import Rect


def map_box(
    x_logit,
    y_logit,
    w_logit,
    h_logit,
    row,
    col,
    width_ratio,
    height_ratio,
    cell_width: int,
    cell_height: int,
) -> np.ndarray:
    """
    Map intra-cell box logits to a pixel-space [x, y, width, height].

    NOTE: `row` offsets x and `col` offsets y. This matches the reference
    TinyYoloV2 decoding and is only unambiguous for square grids; check the
    target model's convention before changing it.

    Broadcasts over arrays; returns float values (not yet rounded) with a
    trailing axis of size 4.
    """

    center_x = (np.asarray(row, dtype=np.float64) + sigmoid(x_logit)) * cell_width
    center_y = (np.asarray(col, dtype=np.float64) + sigmoid(y_logit)) * cell_height
    box_width = np.exp(np.asarray(w_logit, dtype=np.float64)) * cell_width * width_ratio
    box_height = np.exp(np.asarray(h_logit, dtype=np.float64)) * cell_height * height_ratio

    top_left_x = center_x - box_width / 2.0
    top_left_y = center_y - box_height / 2.0
    return np.stack(np.broadcast_arrays(top_left_x, top_left_y, box_width, box_height), axis=-1)


def round_rects(boxes: np.ndarray) -> np.ndarray:
    """
    Round [x, y, w, h] to integer pixels (half to even).

    Raises ComputationError for non-finite boxes or values that do not fit
    in int64.
    """

    if not np.isfinite(boxes).all() or (np.abs(boxes) >= 2.0**63).any():
        raise ComputationError("box coordinates are not finite or exceed the int64 pixel range")
    return np.rint(boxes).astype(np.int64)


def decode_grid_boxes(features: np.ndarray, layout: LayoutConfig, anchors: AnchorTable) -> np.ndarray:
    """
    Decode every (row, col, anchor) box in a gathered (R, C, A, F) feature array.

    Returns float boxes shaped (R, C, A, 4).
    """

    rows = np.arange(layout.row_count, dtype=np.float64)[:, None, None]
    cols = np.arange(layout.column_count, dtype=np.float64)[None, :, None]
    ratios = anchors.as_array()
    return map_box(
        features[..., 0],
        features[..., 1],
        features[..., 2],
        features[..., 3],
        rows,
        cols,
        ratios[:, 0],
        ratios[:, 1],
        layout.cell_width,
        layout.cell_height,
    )


def to_rect(box) -> Rect:
    x, y, w, h = (int(v) for v in box)
    return Rect(x, y, w, h)


def cell_rect(
    logits: Tuple[float, float, float, float],
    row: int,
    col: int,
    anchor: Tuple[float, float],
    layout: LayoutConfig,
) -> Rect:
    """
    Single-box convenience wrapper around `map_box` + rounding.
    """

    box = map_box(*logits, row, col, anchor[0], anchor[1], layout.cell_width, layout.cell_height)
    return to_rect(round_rects(box))
