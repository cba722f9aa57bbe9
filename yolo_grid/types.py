from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Mapping, NamedTuple, Tuple, Union

from .errors import GridDecodeError


class Rect(NamedTuple):
    """
    Axis-aligned rectangle in pixel space: top-left corner plus size.
    """

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class Detection:
    """
    One labeled box decoded from a grid cell / anchor pair.

    `class_scores` is the softmax distribution over all classes; `class_id`
    is the index of its (first) maximum.
    """

    rect: Rect
    label: str
    confidence: float
    class_scores: Tuple[float, ...]
    class_id: int = 0

    def as_xyxy(self) -> Tuple[int, int, int, int]:
        return self.rect.x, self.rect.y, self.rect.right, self.rect.bottom


@dataclass(frozen=True)
class Decoded:
    image_id: str
    detections: Tuple[Detection, ...] = ()

    ok = True


@dataclass(frozen=True)
class DecodeFailure:
    image_id: str
    error: GridDecodeError

    ok = False


ImageResult = Union[Decoded, DecodeFailure]


@dataclass(frozen=True)
class DetectionSet(Mapping[str, ImageResult]):
    """
    Per-image decode results, keyed by image id, in input order.

    Every image passed to a batch decode has an entry: either `Decoded`
    (possibly with no detections) or `DecodeFailure`.
    """

    results: Dict[str, ImageResult] = field(default_factory=dict)

    def __getitem__(self, image_id: str) -> ImageResult:
        return self.results[image_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def detections(self, image_id: str) -> Tuple[Detection, ...]:
        """
        Detections for one image; re-raises the stored error if that image failed.
        """

        result = self.results[image_id]
        if isinstance(result, DecodeFailure):
            raise result.error
        return result.detections

    def successes(self) -> Dict[str, Tuple[Detection, ...]]:
        return {k: r.detections for k, r in self.results.items() if isinstance(r, Decoded)}

    def failures(self) -> Dict[str, GridDecodeError]:
        return {k: r.error for k, r in self.results.items() if isinstance(r, DecodeFailure)}
