"""
Decoding for grid-based (TinyYoloV2 style) object-detection outputs.

Turns the flat tensor a grid model emits per image into labeled,
non-overlapping boxes. Pure NumPy; OpenCV and ONNX Runtime are only needed
for the optional pipeline / drawing helpers.
"""

from .anchors import AnchorTable, TINY_YOLOV2_ANCHORS
from .activations import sigmoid, softmax
from .config import ModelProfile, load_model_profile, profile_from_dict
from .errors import ComputationError, ConfigurationError, GridDecodeError, ShapeError
from .geometry import cell_rect, map_box
from .layout import LayoutConfig, OffsetResolver
from .metadata import load_class_names
from .nms import NMSConfig, iou, suppress
from .postprocess import GridDecoder, GridPostConfig
from .runtime import GridPipeline, PreprocessConfig, find_project_root, load_pipeline, resolve_path
from .scoring import LabelTable, score_classes
from .types import DecodeFailure, Decoded, Detection, DetectionSet, Rect
from .visualize import ColorTable, draw_detections

__all__ = [
    "AnchorTable",
    "TINY_YOLOV2_ANCHORS",
    "sigmoid",
    "softmax",
    "ModelProfile",
    "load_model_profile",
    "profile_from_dict",
    "ComputationError",
    "ConfigurationError",
    "GridDecodeError",
    "ShapeError",
    "cell_rect",
    "map_box",
    "LayoutConfig",
    "OffsetResolver",
    "load_class_names",
    "NMSConfig",
    "iou",
    "suppress",
    "GridDecoder",
    "GridPostConfig",
    "GridPipeline",
    "PreprocessConfig",
    "find_project_root",
    "load_pipeline",
    "resolve_path",
    "LabelTable",
    "score_classes",
    "DecodeFailure",
    "Decoded",
    "Detection",
    "DetectionSet",
    "Rect",
    "ColorTable",
    "draw_detections",
]
