from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from .anchors import AnchorTable
from .errors import ComputationError, ConfigurationError, GridDecodeError, ShapeError
from .geometry import decode_grid_boxes, round_rects, to_rect
from .layout import BOX_FEATURE_COUNT, FEATURE_CONFIDENCE, LayoutConfig, OffsetResolver
from .nms import NMSConfig, suppress
from .scoring import LabelTable, score_classes
from .types import DecodeFailure, Decoded, Detection, DetectionSet, ImageResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridPostConfig:
    """
    Default thresholds for grid decoding; each can be overridden per batch.
    """

    conf_threshold: float = 0.0
    max_detections: int = 5
    # Boxes overlapping a kept box by more than this IoU are dropped.
    iou_threshold: float = 0.5
    # Thread count for batch decoding; None or 1 decodes sequentially.
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        self.nms_config()
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError("max_workers must be >= 1")

    def nms_config(self) -> NMSConfig:
        return NMSConfig(
            conf_threshold=self.conf_threshold,
            iou_threshold=self.iou_threshold,
            max_detections=self.max_detections,
        )


class GridDecoder:
    """
    Decode flattened grid-model outputs (TinyYoloV2 style) into detections.

    Per image, every (row, col, anchor) slot becomes a candidate box; the
    candidates are then confidence-filtered and reduced with greedy NMS.

    Layout and anchors are validated here and never change afterwards, so a
    decoder can be shared between threads.
    """

    def __init__(
        self,
        layout: LayoutConfig = LayoutConfig(),
        anchors: AnchorTable = AnchorTable(),
        labels: Union[LabelTable, Sequence[str], None] = None,
        cfg: GridPostConfig = GridPostConfig(),
    ):
        anchors.validate_for(layout.boxes_per_cell)
        self.layout = layout
        self.anchors = anchors
        self.labels = labels if isinstance(labels, LabelTable) else LabelTable(tuple(labels or ()))
        self.cfg = cfg
        self.offsets = OffsetResolver(layout)

    # ------------------------------------------------------------------ #
    # Single image
    # ------------------------------------------------------------------ #
    def candidates(self, tensor, image_id: Optional[str] = None) -> List[Detection]:
        """
        Every (row, col, anchor) box of one image, unfiltered, in row / col / anchor order.

        Raises ShapeError on a tensor of the wrong length and ComputationError
        when a decoded value is not finite.
        """

        flat = np.asarray(tensor, dtype=np.float64).reshape(-1)
        self.offsets.check_length(flat, image_id=image_id)
        features = self.offsets.gather(flat)

        with np.errstate(over="ignore", invalid="ignore"):
            boxes = decode_grid_boxes(features, self.layout, self.anchors)
            scores = score_classes(
                features[..., FEATURE_CONFIDENCE],
                features[..., BOX_FEATURE_COUNT:],
            )

        if not (np.isfinite(boxes).all() and np.isfinite(scores.distribution).all() and np.isfinite(scores.confidence).all()):
            raise ComputationError(f"non-finite value while decoding image {image_id!r}")

        rects = round_rects(boxes)
        lay = self.layout
        out: List[Detection] = []
        for row in range(lay.row_count):
            for col in range(lay.column_count):
                for a in range(lay.boxes_per_cell):
                    class_id = int(scores.top_class[row, col, a])
                    out.append(
                        Detection(
                            rect=to_rect(rects[row, col, a]),
                            label=self.labels.label_for(class_id),
                            confidence=float(scores.confidence[row, col, a]),
                            class_scores=tuple(float(s) for s in scores.distribution[row, col, a]),
                            class_id=class_id,
                        )
                    )
        return out

    def decode(self, tensor, nms_cfg: Optional[NMSConfig] = None, image_id: Optional[str] = None) -> List[Detection]:
        nms_cfg = nms_cfg or self.cfg.nms_config()
        found = self.candidates(tensor, image_id=image_id)
        kept = suppress(found, nms_cfg)
        logger.debug("image %r: %d candidates, %d kept", image_id, len(found), len(kept))
        return kept

    def decode_image(self, image_id: str, tensor, nms_cfg: Optional[NMSConfig] = None) -> ImageResult:
        """
        Decode one image of a batch; per-image failures are returned, not raised.
        """

        try:
            return Decoded(image_id=image_id, detections=tuple(self.decode(tensor, nms_cfg, image_id=image_id)))
        except ShapeError as exc:
            logger.warning("skipping image %r: %s", image_id, exc)
            return DecodeFailure(image_id=image_id, error=exc)
        except ComputationError as exc:
            logger.exception("decoding failed for image %r", image_id)
            return DecodeFailure(image_id=image_id, error=exc)
        except ArithmeticError as exc:
            logger.exception("decoding failed for image %r", image_id)
            err: GridDecodeError = ComputationError(f"decoding image {image_id!r} failed: {exc}")
            err.__cause__ = exc
            return DecodeFailure(image_id=image_id, error=err)

    # ------------------------------------------------------------------ #
    # Batch
    # ------------------------------------------------------------------ #
    def decode_batch(
        self,
        tensors_by_image: Mapping[str, object],
        confidence_threshold: Optional[float] = None,
        max_boxes_per_image: Optional[int] = None,
        max_overlap: Optional[float] = None,
        max_workers: Optional[int] = None,
    ) -> DetectionSet:
        """
        Decode a batch keyed by image id.

        Threshold arguments default to this decoder's GridPostConfig. Invalid
        thresholds raise ConfigurationError before any image is touched; a bad
        tensor only fails its own entry.
        """

        nms_cfg = NMSConfig(
            conf_threshold=self.cfg.conf_threshold if confidence_threshold is None else confidence_threshold,
            iou_threshold=self.cfg.iou_threshold if max_overlap is None else max_overlap,
            max_detections=self.cfg.max_detections if max_boxes_per_image is None else max_boxes_per_image,
        )
        workers = max_workers if max_workers is not None else self.cfg.max_workers
        if workers is not None and workers < 1:
            raise ConfigurationError("max_workers must be >= 1")

        items = list(tensors_by_image.items())
        results: Dict[str, ImageResult] = {}

        if workers is None or workers == 1 or len(items) <= 1:
            for image_id, tensor in items:
                results[image_id] = self.decode_image(image_id, tensor, nms_cfg)
        else:
            with ThreadPoolExecutor(max_workers=workers) as ex:
                futures = [ex.submit(self.decode_image, image_id, tensor, nms_cfg) for image_id, tensor in items]
                for (image_id, _), fu in zip(items, futures):
                    results[image_id] = fu.result()

        failed = sum(1 for r in results.values() if not r.ok)
        logger.debug("decoded batch of %d images (%d failed)", len(results), failed)
        return DetectionSet(results)
