"""Artifact inventory: what files a card must have and where they live."""

from inventory.layout import ArtifactLayout
from inventory.model import (
    ArtifactRef,
    CardKey,
    EncodedFormat,
    Issue,
    PipelineStep,
    ValidationResult,
    VariantKind,
    enumerate_card_keys,
    expected_artifacts,
    sort_issues,
)

__all__ = [
    "ArtifactLayout",
    "ArtifactRef",
    "CardKey",
    "EncodedFormat",
    "Issue",
    "PipelineStep",
    "ValidationResult",
    "VariantKind",
    "enumerate_card_keys",
    "expected_artifacts",
    "sort_issues",
]
