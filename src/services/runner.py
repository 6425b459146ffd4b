"""Batch Runner

Runs the reconciler over every card of a set, one language at a time.
The primary language goes first so the shared art-only files are settled
before any other language is touched. Cards inside a language are
independent and may be processed by a thread pool.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional

from asset_store import AssetStore
from codec.base import ImageCodec
from config.schema import ReconcileConfig
from core.logging import get_logger, log_operation
from inventory.model import CardKey, enumerate_card_keys
from services.reconciler import CardReconciliation, Reconciler
from services.report import ReconcileReport
from sources.base import ImageSource

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int, CardReconciliation], None]


class BatchRunner:
    """Validate or reconcile a whole set across languages."""

    def __init__(
        self,
        config: ReconcileConfig,
        store: AssetStore,
        codec: ImageCodec,
        source: ImageSource,
        max_workers: int = 1,
        progress: Optional[ProgressCallback] = None,
    ):
        self.config = config
        self.store = store
        self.max_workers = config.max_workers or max_workers
        self.progress = progress
        self.reconciler = Reconciler(config, store, codec, source)

    def card_keys(self, language: str) -> List[CardKey]:
        extra = []
        if self.config.include_existing:
            extra = self.store.layout.discover_card_numbers(self.config.set_id, language)
        return list(enumerate_card_keys(self.config, language, extra))

    def run(self) -> ReconcileReport:
        report = ReconcileReport(set_id=self.config.set_id, dry_run=self.config.dry_run)

        if self.config.include_variants and (
            self.config.primary_language not in self.config.languages
        ):
            message = (
                f"Primary language {self.config.primary_language} is not part of this "
                "run; art-only variants were not checked"
            )
            logger.warning(message)
            report.warnings.append(message)

        mode = "dry-run" if self.config.dry_run else "repair"
        for language in self.config.ordered_languages():
            with log_operation(
                "Reconciling language",
                set_id=self.config.set_id,
                language=language,
                mode=mode,
            ):
                self.run_language(language, report)

        report.finish()
        logger.info(
            "Set {}: {} card(s), {} issue(s) found, {} failure(s)",
            self.config.set_id,
            len(report.cards),
            report.total_issues,
            report.total_failed,
        )
        return report

    def run_language(self, language: str, report: ReconcileReport) -> None:
        keys = self.card_keys(language)
        report.language(language)
        total = len(keys)

        if self.max_workers <= 1 or total <= 1:
            for done, key in enumerate(keys, start=1):
                self._collect(report, self._reconcile(key), done, total)
            return

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self._reconcile, key): key for key in keys}
            for done, future in enumerate(as_completed(futures), start=1):
                self._collect(report, future.result(), done, total)

    def _collect(
        self, report: ReconcileReport, record: CardReconciliation, done: int, total: int
    ) -> None:
        report.add(record)
        if self.progress is not None:
            self.progress(done, total, record)

    def _reconcile(self, key: CardKey) -> CardReconciliation:
        # One broken card must never abort the batch
        try:
            return self.reconciler.reconcile(key)
        except Exception as exc:
            logger.exception("Reconciliation of {} crashed", key)
            return CardReconciliation.crashed(key, exc)
