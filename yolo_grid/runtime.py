from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .config import ModelProfile
from .postprocess import GridDecoder, GridPostConfig
from .types import Detection, DetectionSet


PathLike = Union[str, Path]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", "setup.py", ".git"),
) -> Path:
    """
    Best-effort project root discovery, used to resolve relative model paths.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        if any((parent / m).exists() for m in markers):
            return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    p = Path(path)
    if p.is_absolute():
        return p
    base = find_project_root() if root in ("auto", None) else Path(root).resolve()
    return (base / p).resolve()


@dataclass(frozen=True)
class PreprocessConfig:
    # TinyYoloV2 takes raw 0-255 RGB pixels; set scale=1/255 for normalized models.
    scale: float = 1.0
    swap_rb: bool = True


class GridPipeline:
    """
    Resize -> inference -> grid decode.

    Images are OpenCV-style BGR arrays. They are stretched (no letterbox) to
    the decoder's input size, so boxes come back in that pixel space.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        decoder: GridDecoder,
        *,
        backend: Optional[object] = None,
        preprocess_cfg: PreprocessConfig = PreprocessConfig(),
    ):
        self._infer_fn = infer_fn
        self.decoder = decoder
        self.backend = backend
        self.preprocess_cfg = preprocess_cfg

    @property
    def input_size(self) -> Tuple[int, int]:
        return self.decoder.layout.input_size

    def preprocess(self, image_bgr: np.ndarray) -> np.ndarray:
        """
        BGR (H, W, 3) image -> (1, 3, H_in, W_in) float32 blob.
        """

        if image_bgr is None or not hasattr(image_bgr, "shape"):
            raise TypeError("image_bgr must be a NumPy array (BGR).")
        if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

        img = self.resize(image_bgr)
        if self.preprocess_cfg.swap_rb:
            img = img[:, :, ::-1]
        blob = img.astype(np.float32) * np.float32(self.preprocess_cfg.scale)
        return np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])

    def resize(self, image_bgr: np.ndarray) -> np.ndarray:
        in_w, in_h = self.input_size
        h, w = image_bgr.shape[:2]
        if (w, h) == (in_w, in_h):
            return image_bgr
        try:
            import cv2  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("OpenCV is required to resize images. Install with `pip install opencv-python`.") from e
        return cv2.resize(image_bgr, (in_w, in_h), interpolation=cv2.INTER_CUBIC)

    def __call__(self, image_bgr: np.ndarray) -> List[Detection]:
        preds = self._infer_fn(self.preprocess(image_bgr))
        return self.decoder.decode(np.asarray(preds)[0])

    def detect_batch(self, images_by_id: Mapping[str, np.ndarray], **decode_kwargs) -> DetectionSet:
        """
        Run inference image by image, then decode the whole batch.

        `decode_kwargs` are forwarded to GridDecoder.decode_batch.
        """

        tensors = {}
        for image_id, image in images_by_id.items():
            tensors[image_id] = np.asarray(self._infer_fn(self.preprocess(image)))[0]
        return self.decoder.decode_batch(tensors, **decode_kwargs)


def load_pipeline(
    model_path: PathLike,
    profile: ModelProfile = ModelProfile(),
    *,
    root: Optional[PathLike] = "auto",
    post_cfg: GridPostConfig = GridPostConfig(),
    preprocess_cfg: PreprocessConfig = PreprocessConfig(),
    onnx_providers: Optional[Sequence[str]] = None,
) -> GridPipeline:
    """
    Create a pipeline for an ONNX grid model on disk.

        pipe = load_pipeline("models/tinyyolov2-8.onnx")
        detections = pipe(cv2.imread("dog.jpg"))
    """

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    resolved = resolve_path(model_path, root=root)
    backend = OnnxRuntimeBackend(
        resolved,
        OnnxRuntimeBackendConfig(
            providers=onnx_providers,
            input_name=profile.input_name,
            output_name=profile.output_name,
        ),
    )
    decoder = GridDecoder(profile.layout, profile.anchors, labels=profile.labels, cfg=post_cfg)
    return GridPipeline(backend.infer, decoder, backend=backend, preprocess_cfg=preprocess_cfg)
