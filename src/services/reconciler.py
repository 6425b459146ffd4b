"""Card Reconciliation Service

Drives one card to convergence: validate, apply the repair steps in
pipeline order, re-validate, and repeat up to ``max_attempts`` passes.
Every write goes through ``AssetStore.write`` with a verification hook, so
a step either produces a valid artifact or leaves storage unchanged.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from asset_store import AssetStore
from codec.base import ImageCodec, within_tolerance
from config.schema import ReconcileConfig
from core.logging import get_logger
from errors import DimensionMismatchError, PipelineError
from inventory.model import (
    ArtifactRef,
    CardKey,
    EncodedFormat,
    Issue,
    PipelineStep,
    VariantKind,
    sort_issues,
)
from services.validator import Validator
from sources.base import ImageSource

logger = get_logger(__name__)


class CardOutcome(str, Enum):
    """Final state of a card after reconciliation."""

    CONVERGED = "converged"
    PARTIAL = "partial"
    STUCK = "stuck"
    PENDING = "pending"  # dry run with open issues
    ERROR = "error"  # reconciliation itself crashed


class BlockedStep(Exception):
    """A step whose input artifact is not (yet) valid; retried next pass."""


@dataclass
class RepairFailure:
    """A repair step that was attempted and failed."""

    issue: Issue
    cause: str
    attempt: int

    @property
    def step(self) -> PipelineStep:
        return self.issue.step

    def __str__(self) -> str:
        return f"{self.issue.card_key}: {self.step.label} failed: {self.cause}"


@dataclass
class CardReconciliation:
    """Everything that happened to one card."""

    card_key: CardKey
    outcome: CardOutcome = CardOutcome.CONVERGED
    attempts: int = 0
    initial_issues: List[Issue] = field(default_factory=list)
    remaining_issues: List[Issue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    executed: List[PipelineStep] = field(default_factory=list)
    recovered: int = 0
    failures: List[RepairFailure] = field(default_factory=list)
    blocked: int = 0
    error: Optional[str] = None

    @property
    def converged(self) -> bool:
        return self.outcome is CardOutcome.CONVERGED

    @classmethod
    def crashed(cls, card_key: CardKey, exc: Exception) -> "CardReconciliation":
        return cls(
            card_key=card_key,
            outcome=CardOutcome.ERROR,
            error=f"{type(exc).__name__}: {exc}",
        )

    def to_dict(self) -> Dict:
        return {
            "card": str(self.card_key),
            "outcome": self.outcome.value,
            "attempts": self.attempts,
            "initial_issues": [str(issue) for issue in self.initial_issues],
            "remaining_issues": [str(issue) for issue in self.remaining_issues],
            "recovered": self.recovered,
            "failures": [
                {
                    "step": failure.step.label,
                    "artifact": str(failure.issue.artifact),
                    "cause": failure.cause,
                    "attempt": failure.attempt,
                }
                for failure in self.failures
            ],
            "warnings": list(self.warnings),
            "error": self.error,
        }


class Reconciler:
    """Applies repair steps for one card until it converges or runs out of attempts."""

    def __init__(
        self,
        config: ReconcileConfig,
        store: AssetStore,
        codec: ImageCodec,
        source: ImageSource,
        validator: Optional[Validator] = None,
    ):
        self.config = config
        self.store = store
        self.codec = codec
        self.source = source
        self.validator = validator or Validator(config, store, codec)
        self._handlers: Dict[PipelineStep, Callable[[Issue], None]] = {
            PipelineStep.DOWNLOAD: self._download,
            PipelineStep.RESIZE_ORIGINAL: self._resize_original,
            PipelineStep.CONVERT_ORIGINAL: self._convert,
            PipelineStep.CROP_ART_ONLY: self._crop,
            PipelineStep.CONVERT_ART_ONLY: self._convert,
            PipelineStep.CROP_ART_AND_NAME: self._crop,
            PipelineStep.CONVERT_ART_AND_NAME: self._convert,
        }

    @property
    def tolerance(self) -> int:
        return self.config.tolerance_px

    def reconcile(self, card_key: CardKey) -> CardReconciliation:
        """Validate ``card_key`` and, unless dry-run, repair it."""
        initial = self.validator.validate(card_key)
        record = CardReconciliation(
            card_key=card_key,
            initial_issues=list(initial.issues),
            warnings=list(initial.warnings),
        )
        issues = initial.issues

        if self.config.dry_run:
            record.remaining_issues = list(issues)
            record.outcome = CardOutcome.PENDING if issues else CardOutcome.CONVERGED
            return record

        while issues and record.attempts < self.config.max_attempts:
            record.attempts += 1
            self._run_pass(sort_issues(issues), record)
            latest = self.validator.validate(card_key)
            issues = latest.issues
            record.warnings = list(latest.warnings)

        record.remaining_issues = list(issues)
        if not issues:
            record.outcome = CardOutcome.CONVERGED
        elif len(issues) < len(record.initial_issues):
            record.outcome = CardOutcome.PARTIAL
        else:
            record.outcome = CardOutcome.STUCK

        if record.initial_issues:
            log = logger.info if record.converged else logger.warning
            log(
                "{}: {} after {} attempt(s) ({} issue(s) remaining)",
                card_key,
                record.outcome.value,
                record.attempts,
                len(issues),
            )
        return record

    def _run_pass(self, issues: List[Issue], record: CardReconciliation) -> None:
        for issue in issues:
            try:
                self.apply(issue)
            except BlockedStep as exc:
                record.blocked += 1
                logger.debug("{}: {} blocked: {}", issue.card_key, issue.step.label, exc)
                continue
            except PipelineError as exc:
                record.executed.append(issue.step)
                self._record_failure(record, issue, str(exc))
                continue
            except Exception as exc:
                record.executed.append(issue.step)
                logger.exception("Unexpected error while applying {}", issue)
                self._record_failure(record, issue, f"{type(exc).__name__}: {exc}")
                continue

            record.executed.append(issue.step)
            record.recovered += 1
            logger.debug("{}: applied {}", issue.card_key, issue)

    def _record_failure(self, record: CardReconciliation, issue: Issue, cause: str) -> None:
        record.failures.append(RepairFailure(issue, cause, record.attempts))
        logger.warning(
            "{}: {} failed (attempt {}/{}): {}",
            issue.card_key,
            issue.step.label,
            record.attempts,
            self.config.max_attempts,
            cause,
        )

    def apply(self, issue: Issue) -> None:
        """Perform the repair step for one issue.

        Raises BlockedStep if its input is not valid yet, PipelineError
        subclasses if the step itself fails.
        """
        self._handlers[issue.step](issue)

    # -- verification -------------------------------------------------------

    def _verifier(self, expected: Tuple[int, int], tolerance: int) -> Callable[[bytes], None]:
        def verify(data: bytes) -> None:
            info = self.codec.probe(data)
            if not within_tolerance(info.size, expected, tolerance):
                raise DimensionMismatchError(
                    f"Produced {info.width}x{info.height}, "
                    f"expected {expected[0]}x{expected[1]}",
                    actual=info.size,
                    expected=expected,
                )

        return verify

    def _decodable(self, data: bytes) -> None:
        self.codec.probe(data)

    def _load_source(self, ref: ArtifactRef) -> bytes:
        """Read an input artifact that must already be valid for its variant."""
        if not self.store.exists(ref):
            raise BlockedStep(f"{ref} is missing")
        try:
            data = self.store.read(ref)
            info = self.codec.probe(data)
        except PipelineError as exc:
            raise BlockedStep(f"{ref} is unreadable: {exc}") from exc

        expected = ref.variant.expected_dimensions
        if not within_tolerance(info.size, expected, self.tolerance):
            raise BlockedStep(
                f"{ref} is {info.width}x{info.height}, expected {expected[0]}x{expected[1]}"
            )
        return data

    # -- steps --------------------------------------------------------------

    def _download(self, issue: Issue) -> None:
        data = self.source.fetch(issue.card_key)
        if self.codec.probe(data).format != EncodedFormat.WEBP.value:
            data = self.codec.encode(data, EncodedFormat.WEBP)
        self.store.write(issue.artifact, data, verify=self._decodable)

    def _resize_original(self, issue: Issue) -> None:
        width, height = VariantKind.ORIGINAL.expected_dimensions
        verify = self._verifier((width, height), 0)

        webp = issue.artifact.sibling(EncodedFormat.WEBP)
        resized = self.codec.resize_to_exact(
            self.store.read(webp), width, height, EncodedFormat.WEBP
        )
        self.store.write(webp, resized, verify=verify)

        avif = webp.sibling(EncodedFormat.AVIF)
        if self.store.exists(avif):
            resized = self.codec.resize_to_exact(
                self.store.read(avif), width, height, EncodedFormat.AVIF
            )
            self.store.write(avif, resized, verify=verify)

    def _crop(self, issue: Issue) -> None:
        variant = issue.artifact.variant
        original = ArtifactRef(issue.card_key, VariantKind.ORIGINAL, EncodedFormat.WEBP)
        data = self._load_source(original)

        top, bottom = variant.crop_fractions
        cropped = self.codec.crop(data, top, bottom, EncodedFormat.WEBP)
        self.store.write(
            issue.artifact.sibling(EncodedFormat.WEBP),
            cropped,
            verify=self._verifier(variant.expected_dimensions, self.tolerance),
        )

    def _convert(self, issue: Issue) -> None:
        source = issue.artifact.sibling(EncodedFormat.WEBP)
        data = self._load_source(source)

        encoded = self.codec.encode(data, EncodedFormat.AVIF)
        self.store.write(
            issue.artifact.sibling(EncodedFormat.AVIF),
            encoded,
            verify=self._verifier(source.variant.expected_dimensions, self.tolerance),
        )
