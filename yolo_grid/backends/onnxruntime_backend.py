from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from ..layout import DEFAULT_MODEL_INPUT_TENSOR_NAME, DEFAULT_MODEL_OUTPUT_TENSOR_NAME

PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    ONNX Runtime settings for a grid model.

    - providers: ORT execution providers, in priority order
    - input_name/output_name: model tensor names (TinyYoloV2 uses "image" / "grid");
      None picks the session's first input/output
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = DEFAULT_MODEL_INPUT_TENSOR_NAME
    output_name: Optional[str] = DEFAULT_MODEL_OUTPUT_TENSOR_NAME


class OnnxRuntimeBackend:
    """
    Runs a grid model and returns its output flattened per image.

    Expects an NCHW float32 blob; the result has shape (N, output_length).
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime`."
            ) from e

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), providers=providers)

        inputs = [i.name for i in self.session.get_inputs()]
        outputs = [o.name for o in self.session.get_outputs()]
        self.input_name = cfg.input_name or inputs[0]
        self.output_name = cfg.output_name or outputs[0]
        if self.input_name not in inputs:
            raise ValueError(f"Model has no input tensor {self.input_name!r}; inputs are {inputs}")
        if self.output_name not in outputs:
            raise ValueError(f"Model has no output tensor {self.output_name!r}; outputs are {outputs}")

        logger.debug("loaded %s (input=%s, output=%s)", self.model_path, self.input_name, self.output_name)

    def infer(self, blob: np.ndarray) -> np.ndarray:
        (out,) = self.session.run([self.output_name], {self.input_name: blob})
        out = np.asarray(out)
        return out.reshape(out.shape[0], -1)
