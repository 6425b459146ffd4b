"""Artifact inventory model.

Describes every image file a card is expected to have and the pipeline
steps that produce them. Everything here is pure: no I/O, no logging.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Iterator, List, Tuple

import constants
from config.schema import ReconcileConfig, pad_number


class VariantKind(str, Enum):
    """The three renditions of a card image."""

    ORIGINAL = "original"
    ART_ONLY = "art_only"
    ART_AND_NAME = "art_and_name"

    @property
    def expected_dimensions(self) -> Tuple[int, int]:
        return constants.EXPECTED_DIMENSIONS[self.value]

    @property
    def crop_fractions(self) -> Tuple[float, float]:
        """(top band end, bottom band start); only defined for cropped variants."""
        return constants.CROP_FRACTIONS[self.value]

    @property
    def is_shared(self) -> bool:
        """Art-only has one copy per card number, independent of language."""
        return self is VariantKind.ART_ONLY


class EncodedFormat(str, Enum):
    """Lossy output formats. WEBP is the primary (RasterA) rendition."""

    WEBP = "webp"
    AVIF = "avif"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def alternate(self) -> "EncodedFormat":
        return EncodedFormat.AVIF if self is EncodedFormat.WEBP else EncodedFormat.WEBP


class PipelineStep(IntEnum):
    """Repair steps in execution order; a step's input comes from earlier steps."""

    DOWNLOAD = 1
    RESIZE_ORIGINAL = 2
    CONVERT_ORIGINAL = 3
    CROP_ART_ONLY = 4
    CONVERT_ART_ONLY = 5
    CROP_ART_AND_NAME = 6
    CONVERT_ART_AND_NAME = 7

    @property
    def label(self) -> str:
        return self.name.lower()


CROP_STEPS = {
    VariantKind.ART_ONLY: PipelineStep.CROP_ART_ONLY,
    VariantKind.ART_AND_NAME: PipelineStep.CROP_ART_AND_NAME,
}

CONVERT_STEPS = {
    VariantKind.ORIGINAL: PipelineStep.CONVERT_ORIGINAL,
    VariantKind.ART_ONLY: PipelineStep.CONVERT_ART_ONLY,
    VariantKind.ART_AND_NAME: PipelineStep.CONVERT_ART_AND_NAME,
}


@dataclass(frozen=True, order=True)
class CardKey:
    """One card in one language.

    Numbers are zero-padded and the language upper-cased on construction, so
    ``CardKey("9", "it", "42") == CardKey("009", "IT", "042")``.
    """

    set_id: str
    language: str
    card_number: str

    def __post_init__(self):
        object.__setattr__(self, "set_id", pad_number(self.set_id, constants.SET_ID_WIDTH))
        object.__setattr__(self, "language", self.language.strip().upper())
        object.__setattr__(
            self, "card_number", pad_number(self.card_number, constants.CARD_NUMBER_WIDTH)
        )

    def __str__(self) -> str:
        return f"{self.set_id}/{self.language}/{self.card_number}"


@dataclass(frozen=True)
class ArtifactRef:
    """One expected file: a card's variant in one format."""

    card_key: CardKey
    variant: VariantKind
    fmt: EncodedFormat

    @property
    def language_segment(self) -> str:
        """Language directory, or ``shared`` for the art-only variant."""
        if self.variant.is_shared:
            return constants.SHARED_SEGMENT
        return self.card_key.language

    def sibling(self, fmt: EncodedFormat) -> "ArtifactRef":
        return ArtifactRef(self.card_key, self.variant, fmt)

    def __str__(self) -> str:
        return (
            f"{self.card_key.set_id}/{self.language_segment}/"
            f"{self.variant.value}/{self.card_key.card_number}.{self.fmt.extension}"
        )


@dataclass(frozen=True)
class Issue:
    """One unit of repair work."""

    card_key: CardKey
    step: PipelineStep
    artifact: ArtifactRef
    reason: str = "missing"

    def __str__(self) -> str:
        return f"{self.step.label} {self.artifact} ({self.reason})"


@dataclass
class ValidationResult:
    """Issues and integrity warnings for one card."""

    card_key: CardKey
    issues: List[Issue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return not self.issues


def sort_issues(issues: List[Issue]) -> List[Issue]:
    """Order issues by pipeline step; ties keep their validation order."""
    return sorted(issues, key=lambda issue: issue.step)


def owns_art_only(card_key: CardKey, config: ReconcileConfig) -> bool:
    return card_key.language == config.primary_language


def expected_artifacts(card_key: CardKey, config: ReconcileConfig) -> List[ArtifactRef]:
    """Every artifact that must exist for ``card_key`` under ``config``."""
    variants = [VariantKind.ORIGINAL]
    if config.include_variants:
        if owns_art_only(card_key, config):
            variants.append(VariantKind.ART_ONLY)
        variants.append(VariantKind.ART_AND_NAME)

    return [
        ArtifactRef(card_key, variant, fmt)
        for variant in variants
        for fmt in (EncodedFormat.WEBP, EncodedFormat.AVIF)
    ]


def _number_order(number: str) -> Tuple[int, int, str]:
    if number.isdigit():
        return (0, int(number), number)
    return (1, 0, number)


def enumerate_card_keys(
    config: ReconcileConfig, language: str, extra_numbers=()
) -> Iterator[CardKey]:
    """Card keys for one language: the configured range plus ``extra_numbers``."""
    numbers = set(config.card_range.numbers())
    numbers.update(pad_number(n, constants.CARD_NUMBER_WIDTH) for n in extra_numbers)
    for number in sorted(numbers, key=_number_order):
        yield CardKey(config.set_id, language, number)
