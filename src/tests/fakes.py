"""Test doubles: an in-memory image codec and a scripted image source.

Fake images are plain bytes such as ``b"FAKE:webp:734x1024"`` so tests can
reason about dimensions without decoding real pixels.
"""

import re

from codec.base import ImageInfo, crop_bands
from errors import CorruptFileError, NotFoundError
from inventory.model import CardKey

_FAKE_RE = re.compile(rb"^FAKE:(\w+):(\d+)x(\d+)$")


def fake_image(width: int, height: int, fmt: str = "webp") -> bytes:
    return f"FAKE:{fmt}:{width}x{height}".encode()


class FakeCodec:
    """ImageCodec over fake image bytes; records every operation."""

    def __init__(self):
        self.calls = []

    def probe(self, data: bytes) -> ImageInfo:
        match = _FAKE_RE.match(data or b"")
        if not match:
            raise CorruptFileError("not a fake image")
        return ImageInfo(int(match.group(2)), int(match.group(3)), match.group(1).decode())

    def resize_to_exact(self, data, width, height, fmt):
        self.probe(data)
        self.calls.append(("resize", width, height, fmt))
        return fake_image(width, height, fmt.value)

    def crop(self, data, top_fraction, bottom_start_fraction, fmt):
        info = self.probe(data)
        self.calls.append(("crop", info.height, top_fraction, bottom_start_fraction))
        _, _, final_height = crop_bands(info.height, top_fraction, bottom_start_fraction)
        return fake_image(info.width, final_height, fmt.value)

    def encode(self, data, fmt):
        info = self.probe(data)
        self.calls.append(("encode", fmt))
        return fake_image(info.width, info.height, fmt.value)


class FakeSource:
    """ImageSource returning scripted responses per card number.

    A response is bytes, an exception instance to raise, or a list of those
    consumed one call at a time (the last one repeats).
    """

    def __init__(self, responses=None, default=None):
        self.responses = dict(responses or {})
        self.default = default
        self.calls = []

    def fetch(self, card_key: CardKey) -> bytes:
        self.calls.append(card_key)
        response = self.responses.get(card_key.card_number, self.default)
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if response is None:
            raise NotFoundError(f"{card_key} not scripted")
        if isinstance(response, Exception):
            raise response
        return response

