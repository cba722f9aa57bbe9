from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from .types import Detection

BGR = Tuple[int, int, int]

FALLBACK_COLOR: BGR = (0, 0, 255)

# Khaki, Fuchsia, Silver, RoyalBlue, Green, DarkOrange, Purple, Gold, Red, Aquamarine,
# Lime, AliceBlue, Sienna, Orchid, Tan, LightPink, Yellow, HotPink, OliveDrab, SandyBrown (BGR)
DEFAULT_PALETTE: Tuple[BGR, ...] = (
    (140, 230, 240),
    (255, 0, 255),
    (192, 192, 192),
    (225, 105, 65),
    (0, 128, 0),
    (0, 140, 255),
    (128, 0, 128),
    (0, 215, 255),
    (0, 0, 255),
    (212, 255, 127),
    (0, 255, 0),
    (255, 248, 240),
    (45, 82, 160),
    (214, 112, 218),
    (140, 180, 210),
    (193, 182, 255),
    (0, 255, 255),
    (180, 105, 255),
    (35, 142, 107),
    (96, 164, 244),
)


@dataclass(frozen=True)
class ColorTable:
    """
    Per-class box colors. With fewer colors than classes the table wraps around.
    """

    colors: Tuple[BGR, ...] = DEFAULT_PALETTE

    def color_for(self, class_id: int) -> BGR:
        if not self.colors:
            return FALLBACK_COLOR
        return self.colors[class_id % len(self.colors)]


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    *,
    colors: ColorTable = ColorTable(),
    show_label: bool = True,
    box_thickness: int = 2,
    font_scale: float = 0.4,
) -> np.ndarray:
    """
    Draw decoded boxes on an OpenCV BGR image and return a copy.

    Boxes are in the model's input pixel space, so `image_bgr` should already
    be resized to the decoder's input size.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_detections(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()
    h, w = out.shape[:2]

    for det in detections:
        x1, y1, x2, y2 = det.as_xyxy()
        x1 = int(np.clip(x1, 0, w - 1))
        y1 = int(np.clip(y1, 0, h - 1))
        x2 = int(np.clip(x2 - 1, 0, w - 1))
        y2 = int(np.clip(y2 - 1, 0, h - 1))

        color = colors.color_for(det.class_id)
        cv2.rectangle(out, (x1, y1), (x2, y2), color, thickness=box_thickness)

        if show_label:
            text = f"{det.label} {det.confidence:.2f}"
            cv2.putText(
                out,
                text,
                (x1, max(y1 - 3, 10)),
                cv2.FONT_HERSHEY_SIMPLEX,
                font_scale,
                color,
                thickness=1,
                lineType=cv2.LINE_AA,
            )

    return out
