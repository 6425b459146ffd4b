"""Tests for services/validator.py"""

import pytest

from codec.base import ImageInfo
from inventory.model import ArtifactRef, CardKey, EncodedFormat, PipelineStep, VariantKind
from services.validator import Validator, VariantFit

IT_042 = CardKey("009", "IT", "042")
EN_042 = CardKey("009", "EN", "042")


@pytest.fixture
def validator(make_config, store, codec):
    return Validator(make_config(), store, codec)


def steps(result):
    return [issue.step for issue in result.issues]


class TestOriginal:
    def test_missing_original_needs_download_and_convert(self, validator):
        result = validator.validate(IT_042)

        assert PipelineStep.DOWNLOAD in steps(result)
        assert PipelineStep.CONVERT_ORIGINAL in steps(result)
        assert PipelineStep.RESIZE_ORIGINAL not in steps(result)

    def test_corrupt_original_is_treated_as_missing(self, validator, put, converged_card):
        converged_card(IT_042, with_art_only=False)
        put(IT_042, VariantKind.ORIGINAL, EncodedFormat.WEBP, 0, 0, raw=b"garbage")

        result = validator.validate(IT_042)

        download = [i for i in result.issues if i.step is PipelineStep.DOWNLOAD]
        assert len(download) == 1
        assert download[0].reason == "corrupt"

    def test_wrong_size_original_needs_resize(self, validator, put, converged_card):
        converged_card(IT_042, with_art_only=False)
        put(IT_042, VariantKind.ORIGINAL, EncodedFormat.WEBP, 745, 1040)

        assert steps(validator.validate(IT_042)) == [PipelineStep.RESIZE_ORIGINAL]

    @pytest.mark.parametrize("height", [1022, 1026])
    def test_original_at_tolerance_edge_is_accepted(self, validator, put, converged_card, height):
        converged_card(IT_042, with_art_only=False)
        put(IT_042, VariantKind.ORIGINAL, EncodedFormat.WEBP, 734, height)

        assert validator.validate(IT_042).issues == []

    @pytest.mark.parametrize("height", [1021, 1027])
    def test_original_past_tolerance_is_an_issue(self, validator, put, converged_card, height):
        converged_card(IT_042, with_art_only=False)
        put(IT_042, VariantKind.ORIGINAL, EncodedFormat.WEBP, 734, height)

        assert steps(validator.validate(IT_042)) == [PipelineStep.RESIZE_ORIGINAL]

    def test_missing_avif_only(self, validator, store, converged_card):
        converged_card(IT_042, with_art_only=False)
        store.path(ArtifactRef(IT_042, VariantKind.ORIGINAL, EncodedFormat.AVIF)).unlink()

        assert steps(validator.validate(IT_042)) == [PipelineStep.CONVERT_ORIGINAL]


class TestVariants:
    def test_uncropped_passthrough_gets_crop_not_resize(self, validator, put, converged_card):
        converged_card(IT_042, with_art_only=False)
        put(IT_042, VariantKind.ART_AND_NAME, EncodedFormat.WEBP, 734, 1024)

        result = validator.validate(IT_042)

        assert steps(result) == [PipelineStep.CROP_ART_AND_NAME]
        assert "uncropped" in result.issues[0].reason
        assert result.warnings == []

    def test_uncropped_avif_gets_convert(self, validator, put, converged_card):
        converged_card(IT_042, with_art_only=False)
        put(IT_042, VariantKind.ART_AND_NAME, EncodedFormat.AVIF, 734, 1024)

        assert steps(validator.validate(IT_042)) == [PipelineStep.CONVERT_ART_AND_NAME]

    @pytest.mark.parametrize("height", [765, 769])
    def test_variant_at_tolerance_edge_is_accepted(self, validator, put, converged_card, height):
        converged_card(IT_042, with_art_only=False)
        put(IT_042, VariantKind.ART_AND_NAME, EncodedFormat.WEBP, 734, height)

        result = validator.validate(IT_042)
        assert result.issues == []
        assert result.warnings == []

    @pytest.mark.parametrize("height", [764, 770, 900])
    def test_unexplained_variant_mismatch_is_only_a_warning(
        self, validator, put, converged_card, height
    ):
        converged_card(IT_042, with_art_only=False)
        put(IT_042, VariantKind.ART_AND_NAME, EncodedFormat.WEBP, 734, height)

        result = validator.validate(IT_042)

        assert result.issues == []
        assert len(result.warnings) == 1
        assert f"734x{height}" in result.warnings[0]

    def test_missing_variant_needs_crop_and_convert(self, validator, put):
        put(IT_042, VariantKind.ORIGINAL, EncodedFormat.WEBP, 734, 1024)
        put(IT_042, VariantKind.ORIGINAL, EncodedFormat.AVIF, 734, 1024)

        assert steps(validator.validate(IT_042)) == [
            PipelineStep.CROP_ART_AND_NAME,
            PipelineStep.CONVERT_ART_AND_NAME,
        ]

    def test_classify_variant(self, validator):
        fit = validator.classify_variant
        assert fit(ImageInfo(734, 1024, "webp"), VariantKind.ART_ONLY) is VariantFit.UNCROPPED
        assert fit(ImageInfo(734, 605, "webp"), VariantKind.ART_ONLY) is VariantFit.OK
        assert fit(ImageInfo(734, 606, "webp"), VariantKind.ART_ONLY) is VariantFit.MISMATCH


class TestArtOnlyOwnership:
    def test_secondary_language_never_reports_art_only(self, validator):
        result = validator.validate(IT_042)
        assert PipelineStep.CROP_ART_ONLY not in steps(result)
        assert PipelineStep.CONVERT_ART_ONLY not in steps(result)

    def test_primary_language_reports_art_only(self, validator):
        result = validator.validate(EN_042)
        assert PipelineStep.CROP_ART_ONLY in steps(result)
        assert PipelineStep.CONVERT_ART_ONLY in steps(result)

    def test_no_variants_checked_when_disabled(self, make_config, store, codec, put):
        validator = Validator(make_config(include_variants=False), store, codec)
        put(EN_042, VariantKind.ORIGINAL, EncodedFormat.WEBP, 734, 1024)
        put(EN_042, VariantKind.ORIGINAL, EncodedFormat.AVIF, 734, 1024)

        assert validator.validate(EN_042).issues == []


def test_validation_never_writes(validator, store):
    validator.validate(EN_042)
    assert store.writes == 0
    assert not store.layout.root.exists()
