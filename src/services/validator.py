"""Artifact Validation Service

Inspects every expected artifact of one card and reports what has to be
repaired. Nothing here writes to storage.

Variant policy: a variant whose height equals the full card height is an
uncropped passthrough and gets a crop issue. A variant within tolerance of
its own expected size is accepted. Any other size is a data-integrity
warning and is never auto-repaired; resizing would distort cropped art.
"""

from enum import Enum
from typing import Optional, Tuple

import constants
from asset_store import AssetStore
from codec.base import ImageCodec, ImageInfo, within_tolerance
from config.schema import ReconcileConfig
from core.logging import get_logger
from errors import AssetError, CorruptFileError
from inventory.model import (
    CONVERT_STEPS,
    CROP_STEPS,
    ArtifactRef,
    CardKey,
    EncodedFormat,
    Issue,
    PipelineStep,
    ValidationResult,
    VariantKind,
    owns_art_only,
)

logger = get_logger(__name__)


class ArtifactState(Enum):
    MISSING = "missing"
    CORRUPT = "corrupt"
    PRESENT = "present"


class VariantFit(Enum):
    OK = "ok"
    UNCROPPED = "uncropped"
    MISMATCH = "mismatch"


def _fmt_size(size: Tuple[int, int]) -> str:
    return f"{size[0]}x{size[1]}"


class Validator:
    """Computes the Issues that stand between a card and convergence."""

    def __init__(self, config: ReconcileConfig, store: AssetStore, codec: ImageCodec):
        self.config = config
        self.store = store
        self.codec = codec

    @property
    def tolerance(self) -> int:
        return self.config.tolerance_px

    def inspect(self, ref: ArtifactRef) -> Tuple[ArtifactState, Optional[ImageInfo]]:
        """Probe one artifact on disk."""
        if not self.store.exists(ref):
            return ArtifactState.MISSING, None
        try:
            info = self.codec.probe(self.store.read(ref))
        except (CorruptFileError, AssetError) as exc:
            logger.debug("{} is unreadable: {}", ref, exc)
            return ArtifactState.CORRUPT, None
        return ArtifactState.PRESENT, info

    def classify_variant(self, info: ImageInfo, variant: VariantKind) -> VariantFit:
        """Crop-vs-accept-vs-warn decision for a cropped variant."""
        if info.height == constants.FULL_CARD_HEIGHT:
            return VariantFit.UNCROPPED
        if within_tolerance(info.size, variant.expected_dimensions, self.tolerance):
            return VariantFit.OK
        return VariantFit.MISMATCH

    def validate(self, card_key: CardKey) -> ValidationResult:
        result = ValidationResult(card_key)

        self._check_original(card_key, result)

        if self.config.include_variants:
            if owns_art_only(card_key, self.config):
                self._check_variant(card_key, VariantKind.ART_ONLY, result)
            self._check_variant(card_key, VariantKind.ART_AND_NAME, result)

        if result.issues:
            logger.debug(
                "{}: {} issue(s): {}",
                card_key,
                len(result.issues),
                ", ".join(str(issue) for issue in result.issues),
            )
        return result

    def _issue(self, result, step: PipelineStep, ref: ArtifactRef, reason: str) -> None:
        result.issues.append(Issue(result.card_key, step, ref, reason))

    def _check_original(self, card_key: CardKey, result: ValidationResult) -> None:
        webp = ArtifactRef(card_key, VariantKind.ORIGINAL, EncodedFormat.WEBP)
        avif = webp.sibling(EncodedFormat.AVIF)
        expected = VariantKind.ORIGINAL.expected_dimensions

        state, info = self.inspect(webp)
        if state is not ArtifactState.PRESENT:
            self._issue(result, PipelineStep.DOWNLOAD, webp, state.value)
            # The AVIF sibling has to be rebuilt from whatever gets downloaded
            self._issue(result, PipelineStep.CONVERT_ORIGINAL, avif, "rebuild after download")
            return

        if not within_tolerance(info.size, expected, self.tolerance):
            self._issue(
                result,
                PipelineStep.RESIZE_ORIGINAL,
                webp,
                f"{_fmt_size(info.size)}, expected {_fmt_size(expected)}",
            )
            return

        state, info = self.inspect(avif)
        if state is not ArtifactState.PRESENT:
            self._issue(result, PipelineStep.CONVERT_ORIGINAL, avif, state.value)
        elif not within_tolerance(info.size, expected, self.tolerance):
            self._issue(
                result,
                PipelineStep.CONVERT_ORIGINAL,
                avif,
                f"{_fmt_size(info.size)}, expected {_fmt_size(expected)}",
            )

    def _check_variant(
        self, card_key: CardKey, variant: VariantKind, result: ValidationResult
    ) -> None:
        webp = ArtifactRef(card_key, variant, EncodedFormat.WEBP)
        avif = webp.sibling(EncodedFormat.AVIF)
        crop_step = CROP_STEPS[variant]
        convert_step = CONVERT_STEPS[variant]

        state, info = self.inspect(webp)
        if state is not ArtifactState.PRESENT:
            self._issue(result, crop_step, webp, state.value)
        else:
            fit = self.classify_variant(info, variant)
            if fit is VariantFit.UNCROPPED:
                self._issue(
                    result,
                    crop_step,
                    webp,
                    f"uncropped passthrough {_fmt_size(info.size)}",
                )
            elif fit is VariantFit.MISMATCH:
                self._warn(result, webp, info, variant)
                # Converting from a suspect image would only copy the problem
                return

        state, info = self.inspect(avif)
        if state is not ArtifactState.PRESENT:
            self._issue(result, convert_step, avif, state.value)
            return

        fit = self.classify_variant(info, variant)
        if fit is VariantFit.UNCROPPED:
            self._issue(
                result, convert_step, avif, f"uncropped passthrough {_fmt_size(info.size)}"
            )
        elif fit is VariantFit.MISMATCH:
            self._warn(result, avif, info, variant)

    def _warn(
        self, result: ValidationResult, ref: ArtifactRef, info: ImageInfo, variant: VariantKind
    ) -> None:
        message = (
            f"{ref}: {_fmt_size(info.size)} does not match "
            f"{_fmt_size(variant.expected_dimensions)} (±{self.tolerance}px) "
            "and is not an uncropped original; needs manual review"
        )
        logger.warning(message)
        result.warnings.append(message)
