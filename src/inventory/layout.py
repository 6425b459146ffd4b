"""Storage layout for card artifacts.

The directory shape is consumed by the catalog front-end and must not change:

    {root}/{language}/{set}/{number}.{ext}                 original
    {root}/{set}/art_only/{number}.{ext}                   art only (shared)
    {root}/{language}/{set}/art_and_name/{number}.{ext}    art and name
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

import constants
from inventory.model import ArtifactRef, VariantKind

_CARD_FILE_RE = re.compile(r"^(\d+)\.(webp|avif|jpe?g|png)$", re.IGNORECASE)


class ArtifactLayout:
    """Maps artifact refs to paths under a root directory."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def original_dir(self, set_id: str, language: str) -> Path:
        return self.root / language / set_id

    def art_only_dir(self, set_id: str) -> Path:
        return self.root / set_id / constants.ART_ONLY_DIR

    def art_and_name_dir(self, set_id: str, language: str) -> Path:
        return self.original_dir(set_id, language) / constants.ART_AND_NAME_DIR

    def directory(self, ref: ArtifactRef) -> Path:
        key = ref.card_key
        if ref.variant is VariantKind.ART_ONLY:
            return self.art_only_dir(key.set_id)
        if ref.variant is VariantKind.ART_AND_NAME:
            return self.art_and_name_dir(key.set_id, key.language)
        return self.original_dir(key.set_id, key.language)

    def resolve(self, ref: ArtifactRef) -> Path:
        return self.directory(ref) / f"{ref.card_key.card_number}.{ref.fmt.extension}"

    def discover_card_numbers(self, set_id: str, language: str) -> List[str]:
        """Card numbers that already have any file in the original directory."""
        directory = self.original_dir(set_id, language)
        if not directory.is_dir():
            return []

        numbers = set()
        for entry in directory.iterdir():
            match = _CARD_FILE_RE.match(entry.name)
            if match and entry.is_file():
                numbers.add(match.group(1).zfill(constants.CARD_NUMBER_WIDTH))
        return sorted(numbers)
