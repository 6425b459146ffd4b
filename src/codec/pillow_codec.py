"""Pillow-backed image codec.

Encoder settings follow the catalog's historical output: WebP at quality 80
(method 6) and AVIF at quality 50 (speed 1). Resizing uses Lanczos and
fills the target box exactly, ignoring aspect ratio.
"""

import io

from PIL import Image, UnidentifiedImageError

import constants
from codec.base import ImageInfo, crop_bands
from errors import CodecError, CorruptFileError
from inventory.model import EncodedFormat

_PIL_FORMATS = {
    EncodedFormat.WEBP: "WEBP",
    EncodedFormat.AVIF: "AVIF",
}

_DECODE_ERRORS = (
    UnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    SyntaxError,
    ValueError,
)


class PillowCodec:
    """ImageCodec implementation on top of Pillow."""

    def __init__(
        self,
        webp_quality: int = constants.WEBP_QUALITY,
        webp_method: int = constants.WEBP_METHOD,
        avif_quality: int = constants.AVIF_QUALITY,
        avif_speed: int = constants.AVIF_SPEED,
    ):
        self.webp_quality = webp_quality
        self.webp_method = webp_method
        self.avif_quality = avif_quality
        self.avif_speed = avif_speed

    @classmethod
    def from_settings(cls, settings) -> "PillowCodec":
        return cls(
            webp_quality=settings.webp_quality,
            webp_method=settings.webp_method,
            avif_quality=settings.avif_quality,
            avif_speed=settings.avif_speed,
        )

    def probe(self, data: bytes) -> ImageInfo:
        image = self._open(data)
        return ImageInfo(
            width=image.width,
            height=image.height,
            format=(image.format or "unknown").lower(),
        )

    def resize_to_exact(
        self, data: bytes, width: int, height: int, fmt: EncodedFormat
    ) -> bytes:
        image = self._open(data)
        resized = image.resize((width, height), Image.Resampling.LANCZOS)
        return self._save(resized, fmt)

    def crop(
        self,
        data: bytes,
        top_fraction: float,
        bottom_start_fraction: float,
        fmt: EncodedFormat,
    ) -> bytes:
        image = self._open(data)
        width, height = image.size
        top_end, bottom_start, final_height = crop_bands(
            height, top_fraction, bottom_start_fraction
        )

        top = image.crop((0, 0, width, top_end))
        bottom = image.crop((0, bottom_start, width, height))

        joined = Image.new(image.mode, (width, final_height))
        joined.paste(top, (0, 0))
        joined.paste(bottom, (0, top_end))
        return self._save(joined, fmt)

    def encode(self, data: bytes, fmt: EncodedFormat) -> bytes:
        return self._save(self._open(data), fmt)

    def _open(self, data: bytes) -> Image.Image:
        if not data:
            raise CorruptFileError("Empty image data")
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except _DECODE_ERRORS as exc:
            raise CorruptFileError(f"Cannot decode image: {exc}") from exc

        if image.mode in ("RGB", "RGBA"):
            return image
        has_alpha = "A" in image.mode or "transparency" in image.info
        return image.convert("RGBA" if has_alpha else "RGB")

    def _save(self, image: Image.Image, fmt: EncodedFormat) -> bytes:
        if fmt is EncodedFormat.WEBP:
            options = {"quality": self.webp_quality, "method": self.webp_method}
        else:
            options = {"quality": self.avif_quality, "speed": self.avif_speed}

        buffer = io.BytesIO()
        try:
            image.save(buffer, format=_PIL_FORMATS[fmt], **options)
        except (OSError, KeyError, ValueError) as exc:
            raise CodecError(f"{fmt.value} encoding failed: {exc}") from exc
        return buffer.getvalue()
