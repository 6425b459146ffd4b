"""Shared fixtures for the pipeline tests."""

import sys
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from asset_store import AssetStore  # noqa: E402
from config.schema import ReconcileConfig  # noqa: E402
from fakes import FakeCodec, fake_image  # noqa: E402
from inventory.layout import ArtifactLayout  # noqa: E402
from inventory.model import ArtifactRef, EncodedFormat, VariantKind  # noqa: E402


@pytest.fixture
def codec():
    return FakeCodec()


@pytest.fixture
def layout(tmp_path):
    return ArtifactLayout(tmp_path / "cards")


@pytest.fixture
def store(layout):
    return AssetStore(layout)


@pytest.fixture
def make_config():
    def _make(**overrides):
        data = {
            "set_id": "009",
            "languages": ["EN", "IT"],
            "card_range": "42",
            "primary_language": "EN",
            "dry_run": False,
        }
        data.update(overrides)
        return ReconcileConfig(**data)

    return _make


@pytest.fixture
def put(store):
    """Write a fake artifact straight to disk, bypassing verification."""

    def _put(card_key, variant, fmt, width, height, raw=None):
        ref = ArtifactRef(card_key, variant, fmt)
        path = store.path(ref)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(raw if raw is not None else fake_image(width, height, fmt.value))
        return ref

    return _put


@pytest.fixture
def converged_card(put):
    """Lay down every artifact of a card at its expected size."""

    def _converged(card_key, with_art_only=True):
        variants = [VariantKind.ORIGINAL, VariantKind.ART_AND_NAME]
        if with_art_only:
            variants.append(VariantKind.ART_ONLY)
        for variant in variants:
            width, height = variant.expected_dimensions
            for fmt in EncodedFormat:
                put(card_key, variant, fmt, width, height)

    return _converged
