"""Image codec interface and the Pillow implementation."""

from codec.base import ImageCodec, ImageInfo, crop_bands, within_tolerance
from codec.pillow_codec import PillowCodec

__all__ = [
    "ImageCodec",
    "ImageInfo",
    "PillowCodec",
    "crop_bands",
    "within_tolerance",
]
