"""CLI command handlers.

Each handler takes plain parameters, wires the services together and returns
a Result. The click commands in ``cli.main`` only print and pick exit codes.
"""

from typing import Iterable, Optional

from asset_store import AssetStore
from codec.base import ImageCodec
from codec.pillow_codec import PillowCodec
from config.schema import ReconcileConfig
from config.settings import PipelineSettings, settings as default_settings
from inventory.layout import ArtifactLayout
from result import Result, try_operation
from services.cleanup import CleanupService
from services.runner import BatchRunner, ProgressCallback
from sources.base import ImageSource
from sources.providers import build_image_source


def build_runner(
    config: ReconcileConfig,
    settings: Optional[PipelineSettings] = None,
    *,
    source: Optional[ImageSource] = None,
    codec: Optional[ImageCodec] = None,
    progress: Optional[ProgressCallback] = None,
) -> BatchRunner:
    """Assemble a BatchRunner from settings, with optional injected collaborators."""
    settings = settings or default_settings
    store = AssetStore(ArtifactLayout(settings.cards_root))
    return BatchRunner(
        config,
        store,
        codec or PillowCodec.from_settings(settings),
        source or build_image_source(settings),
        max_workers=settings.max_workers,
        progress=progress,
    )


def handle_validate(
    config: ReconcileConfig,
    settings: Optional[PipelineSettings] = None,
    progress: Optional[ProgressCallback] = None,
    codec: Optional[ImageCodec] = None,
) -> Result:
    """Validate a set without touching storage.

    Returns:
        Result containing the ReconcileReport
    """

    def run_validation():
        dry = config.model_copy(update={"dry_run": True})
        runner = build_runner(
            dry, settings, source=_NoSource(), codec=codec, progress=progress
        )
        return runner.run()

    return try_operation(run_validation)


def handle_reconcile(
    config: ReconcileConfig,
    settings: Optional[PipelineSettings] = None,
    progress: Optional[ProgressCallback] = None,
    source: Optional[ImageSource] = None,
    codec: Optional[ImageCodec] = None,
) -> Result:
    """Validate and (unless ``config.dry_run``) repair a set.

    Returns:
        Result containing the ReconcileReport
    """

    def run_reconcile():
        runner = build_runner(
            config, settings, source=source, codec=codec, progress=progress
        )
        return runner.run()

    return try_operation(run_reconcile)


def handle_cleanup(
    set_id: str,
    languages: Iterable[str],
    settings: Optional[PipelineSettings] = None,
    dry_run: bool = False,
) -> Result:
    """Remove converted source images and stale staging files.

    Returns:
        Result containing the CleanupSummary
    """

    def run_cleanup():
        active = settings or default_settings
        service = CleanupService(ArtifactLayout(active.cards_root), dry_run=dry_run)
        return service.run(set_id, languages)

    return try_operation(run_cleanup)


def handle_show_config(settings: Optional[PipelineSettings] = None) -> Result:
    """Return the effective process settings as JSON-friendly data."""

    def dump():
        return (settings or default_settings).model_dump(mode="json")

    return try_operation(dump)


class _NoSource:
    """Image source for validation runs, where nothing is ever fetched."""

    def fetch(self, card_key):
        raise RuntimeError(f"Validation must not fetch images ({card_key})")
