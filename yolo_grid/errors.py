from __future__ import annotations

from typing import Optional


class GridDecodeError(Exception):
    """
    Base class for every error raised while decoding a grid output tensor.
    """


class ConfigurationError(GridDecodeError, ValueError):
    """
    Layout, anchor table or threshold values are unusable.

    Raised eagerly, before any tensor is decoded.
    """


class ShapeError(GridDecodeError, ValueError):
    """
    A single image tensor does not have the length the layout requires.
    """

    def __init__(self, expected: int, actual: int, image_id: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        self.image_id = image_id
        where = f" for image {image_id!r}" if image_id is not None else ""
        super().__init__(f"Expected tensor of {expected} values{where}, got {actual}.")


class ComputationError(GridDecodeError, ArithmeticError):
    """
    Arithmetic failure (NaN / overflow) while decoding one image.
    """
