from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .anchors import AnchorTable
from .errors import ConfigurationError
from .layout import DEFAULT_MODEL_INPUT_TENSOR_NAME, DEFAULT_MODEL_OUTPUT_TENSOR_NAME, LayoutConfig


@dataclass(frozen=True)
class ModelProfile:
    """
    Everything needed to decode one grid model's output: tensor layout,
    anchor priors, optional class names / colors and the ONNX tensor names.
    """

    layout: LayoutConfig = field(default_factory=LayoutConfig)
    anchors: AnchorTable = field(default_factory=AnchorTable)
    labels: Tuple[str, ...] = ()
    colors: Optional[Tuple[Tuple[int, int, int], ...]] = None
    input_name: str = DEFAULT_MODEL_INPUT_TENSOR_NAME
    output_name: str = DEFAULT_MODEL_OUTPUT_TENSOR_NAME

    def __post_init__(self) -> None:
        self.anchors.validate_for(self.layout.boxes_per_cell)


_LAYOUT_KEYS = ("row_count", "column_count", "class_count", "boxes_per_cell", "cell_width", "cell_height")


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{key} must be an integer")
    return int(value)


def _require_str(payload: Dict[str, Any], key: str) -> str:
    value = payload[key]
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"{key} must be a non-empty string")
    return value


def _parse_colors(value: Any) -> Tuple[Tuple[int, int, int], ...]:
    if not isinstance(value, list):
        raise ConfigurationError("colors must be a list of [b, g, r] triples")
    colors = []
    for i, item in enumerate(value):
        if not isinstance(item, list) or len(item) != 3:
            raise ConfigurationError(f"colors[{i}] must be a [b, g, r] triple")
        if any(isinstance(c, bool) or not isinstance(c, int) or not 0 <= c <= 255 for c in item):
            raise ConfigurationError(f"colors[{i}] values must be integers in [0, 255]")
        colors.append((item[0], item[1], item[2]))
    return tuple(colors)


def profile_from_dict(payload: Dict[str, Any]) -> ModelProfile:
    allowed = {
        "schema_version",
        "channel_count",
        "anchors",
        "labels",
        "colors",
        "input_name",
        "output_name",
        *_LAYOUT_KEYS,
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ConfigurationError(f"Unknown model profile keys: {unknown}")

    if payload.get("schema_version", 1) != 1:
        raise ConfigurationError("model profile schema_version must be 1")

    layout = LayoutConfig(**{k: _require_int(payload, k) for k in _LAYOUT_KEYS if k in payload})

    if "channel_count" in payload:
        channel_count = _require_int(payload, "channel_count")
        if channel_count != layout.channel_count:
            raise ConfigurationError(
                f"channel_count {channel_count} does not match boxes_per_cell * (5 + class_count) = {layout.channel_count}"
            )

    anchors = AnchorTable()
    if "anchors" in payload:
        raw = payload["anchors"]
        if not isinstance(raw, list):
            raise ConfigurationError("anchors must be a list of [width, height] pairs")
        anchors = AnchorTable(tuple(raw))

    labels: Tuple[str, ...] = ()
    if "labels" in payload:
        raw_labels = payload["labels"]
        if not isinstance(raw_labels, list) or not all(isinstance(x, str) for x in raw_labels):
            raise ConfigurationError("labels must be a list of strings")
        labels = tuple(raw_labels)

    colors = _parse_colors(payload["colors"]) if "colors" in payload else None

    return ModelProfile(
        layout=layout,
        anchors=anchors,
        labels=labels,
        colors=colors,
        input_name=_require_str(payload, "input_name") if "input_name" in payload else DEFAULT_MODEL_INPUT_TENSOR_NAME,
        output_name=_require_str(payload, "output_name") if "output_name" in payload else DEFAULT_MODEL_OUTPUT_TENSOR_NAME,
    )


def load_model_profile(path: Path) -> ModelProfile:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Model profile not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid model profile JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ConfigurationError("Model profile must be a JSON object")
    return profile_from_dict(payload)
