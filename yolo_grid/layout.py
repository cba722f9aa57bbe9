from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import ConfigurationError, ShapeError

# Defaults match the public TinyYoloV2 ONNX model (416x416 input, 13x13 grid, VOC classes).
DEFAULT_ROW_COUNT = 13
DEFAULT_COLUMN_COUNT = 13
DEFAULT_CHANNEL_COUNT = 125
DEFAULT_BOXES_PER_CELL = 5
DEFAULT_CLASS_COUNT = 20
DEFAULT_CELL_WIDTH = 32
DEFAULT_CELL_HEIGHT = 32

DEFAULT_MODEL_INPUT_TENSOR_NAME = "image"
DEFAULT_MODEL_OUTPUT_TENSOR_NAME = "grid"

# x, y, width, height, confidence; followed by one logit per class.
BOX_FEATURE_COUNT = 5

FEATURE_X = 0
FEATURE_Y = 1
FEATURE_WIDTH = 2
FEATURE_HEIGHT = 3
FEATURE_CONFIDENCE = 4


@dataclass(frozen=True)
class LayoutConfig:
    """
    How a grid model's flattened output maps to cells, anchors and features.

    These values must match the loaded model exactly; they determine every
    offset read from the output tensor.
    """

    row_count: int = DEFAULT_ROW_COUNT
    column_count: int = DEFAULT_COLUMN_COUNT
    class_count: int = DEFAULT_CLASS_COUNT
    boxes_per_cell: int = DEFAULT_BOXES_PER_CELL
    cell_width: int = DEFAULT_CELL_WIDTH
    cell_height: int = DEFAULT_CELL_HEIGHT

    def __post_init__(self) -> None:
        for name in ("row_count", "column_count", "class_count", "boxes_per_cell", "cell_width", "cell_height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ConfigurationError(f"{name} must be an integer")
            if value <= 0:
                raise ConfigurationError(f"{name} must be > 0")

    @property
    def box_feature_count(self) -> int:
        return BOX_FEATURE_COUNT

    @property
    def cells_per_channel(self) -> int:
        return self.row_count * self.column_count

    @property
    def values_per_anchor(self) -> int:
        return BOX_FEATURE_COUNT + self.class_count

    @property
    def channel_count(self) -> int:
        return self.boxes_per_cell * self.values_per_anchor

    @property
    def tensor_length(self) -> int:
        return self.channel_count * self.cells_per_channel

    @property
    def input_size(self) -> tuple:
        """(width, height) in pixels of the image the model was fed."""
        return self.column_count * self.cell_width, self.row_count * self.cell_height


class OffsetResolver:
    """
    Flat-index addressing for channel-first, row-major grid outputs.

    Values are packed by channel: every cell's X for anchor 0, then every
    cell's Y for anchor 0, ... then every class logit for anchor 0, then the
    same run for anchor 1, and so on. Within a channel, cells are row-major.
    """

    def __init__(self, layout: LayoutConfig):
        self.layout = layout

    def index(self, row: int, col: int, anchor_index: int, feature_index: int) -> int:
        lay = self.layout
        if not 0 <= row < lay.row_count:
            raise IndexError(f"row {row} out of range [0, {lay.row_count})")
        if not 0 <= col < lay.column_count:
            raise IndexError(f"col {col} out of range [0, {lay.column_count})")
        if not 0 <= anchor_index < lay.boxes_per_cell:
            raise IndexError(f"anchor_index {anchor_index} out of range [0, {lay.boxes_per_cell})")
        if not 0 <= feature_index < lay.values_per_anchor:
            raise IndexError(f"feature_index {feature_index} out of range [0, {lay.values_per_anchor})")

        channel_base = anchor_index * lay.values_per_anchor
        cell_position = row * lay.column_count + col
        return (channel_base + feature_index) * lay.cells_per_channel + cell_position

    def check_length(self, tensor: np.ndarray, image_id=None) -> None:
        expected = self.layout.tensor_length
        if tensor.size != expected:
            raise ShapeError(expected=expected, actual=int(tensor.size), image_id=image_id)

    def gather(self, tensor: np.ndarray) -> np.ndarray:
        """
        View a flat tensor as (row, col, anchor, feature).

        Element [r, c, a, f] equals tensor[self.index(r, c, a, f)].
        """

        flat = np.asarray(tensor).reshape(-1)
        self.check_length(flat)
        lay = self.layout
        planes = flat.reshape(lay.boxes_per_cell, lay.values_per_anchor, lay.row_count, lay.column_count)
        return planes.transpose(2, 3, 0, 1)
