"""Image codec interface.

The reconciler only talks to images through this protocol, which keeps
the repair logic testable without real image data.
"""

import math
from dataclasses import dataclass
from typing import Protocol, Tuple

from inventory.model import EncodedFormat


@dataclass(frozen=True)
class ImageInfo:
    width: int
    height: int
    format: str

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height


class ImageCodec(Protocol):
    """Resize/crop/encode operations on encoded image bytes.

    Every method raises ``CorruptFileError`` for undecodable input and
    ``CodecError`` when the operation itself fails.
    """

    def probe(self, data: bytes) -> ImageInfo: ...

    def resize_to_exact(
        self, data: bytes, width: int, height: int, fmt: EncodedFormat
    ) -> bytes: ...

    def crop(
        self,
        data: bytes,
        top_fraction: float,
        bottom_start_fraction: float,
        fmt: EncodedFormat,
    ) -> bytes: ...

    def encode(self, data: bytes, fmt: EncodedFormat) -> bytes: ...


def crop_bands(
    height: int, top_fraction: float, bottom_start_fraction: float
) -> Tuple[int, int, int]:
    """Pixel rows for a two-band crop.

    Returns (top_end, bottom_start, final_height): rows [0, top_end) and
    [bottom_start, height) are kept and stacked.
    """
    if not 0 < top_fraction <= bottom_start_fraction < 1:
        raise ValueError(
            f"Invalid crop fractions: top={top_fraction}, bottom={bottom_start_fraction}"
        )
    top_end = math.floor(height * top_fraction)
    bottom_start = math.floor(height * bottom_start_fraction)
    return top_end, bottom_start, top_end + (height - bottom_start)


def within_tolerance(actual: Tuple[int, int], expected: Tuple[int, int], tolerance: int) -> bool:
    return all(abs(a - e) <= tolerance for a, e in zip(actual, expected))
