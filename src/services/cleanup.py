"""Cleanup Service

Removes files a finished pipeline no longer needs:

- source JPG/PNG downloads whose WEBP and AVIF renditions both exist
- ``.part`` staging files left behind by an interrupted run
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

import constants
from core.logging import get_logger
from inventory.layout import ArtifactLayout

logger = get_logger(__name__)


@dataclass
class CleanupSummary:
    removed: List[Path] = field(default_factory=list)
    kept: List[Path] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def removed_count(self) -> int:
        return len(self.removed)

    def to_dict(self) -> dict:
        return {
            "dry_run": self.dry_run,
            "removed": [str(path) for path in self.removed],
            "kept": [str(path) for path in self.kept],
            "errors": list(self.errors),
        }


class CleanupService:
    def __init__(self, layout: ArtifactLayout, dry_run: bool = False):
        self.layout = layout
        self.dry_run = dry_run

    def _remove(self, path: Path, summary: CleanupSummary) -> None:
        if self.dry_run:
            summary.removed.append(path)
            return
        try:
            path.unlink()
        except OSError as exc:
            summary.errors.append(f"{path}: {exc}")
            logger.warning("Could not remove {}: {}", path, exc)
            return
        summary.removed.append(path)

    def _source_dirs(self, set_id: str, languages: Iterable[str]) -> List[Path]:
        dirs = [self.layout.art_only_dir(set_id)]
        for language in languages:
            dirs.append(self.layout.original_dir(set_id, language))
            dirs.append(self.layout.art_and_name_dir(set_id, language))
        return [d for d in dirs if d.is_dir()]

    def remove_converted_sources(
        self, set_id: str, languages: Iterable[str], summary: CleanupSummary = None
    ) -> CleanupSummary:
        """Delete source images once both encoded renditions exist beside them."""
        summary = summary or CleanupSummary(dry_run=self.dry_run)

        for directory in self._source_dirs(set_id, languages):
            for path in sorted(directory.iterdir()):
                if not path.is_file() or path.suffix.lower() not in constants.SOURCE_EXTENSIONS:
                    continue
                webp = path.with_suffix(".webp")
                avif = path.with_suffix(".avif")
                if webp.is_file() and avif.is_file():
                    self._remove(path, summary)
                else:
                    summary.kept.append(path)
                    logger.debug("Keeping {}: not fully converted", path)
        return summary

    def remove_stale_staging(
        self, set_id: str, languages: Iterable[str], summary: CleanupSummary = None
    ) -> CleanupSummary:
        """Delete staging files from interrupted writes."""
        summary = summary or CleanupSummary(dry_run=self.dry_run)

        for directory in self._source_dirs(set_id, languages):
            for path in sorted(directory.glob(f"*{constants.STAGING_SUFFIX}")):
                if path.is_file():
                    self._remove(path, summary)
        return summary

    def run(self, set_id: str, languages: Iterable[str]) -> CleanupSummary:
        languages = list(languages)
        summary = CleanupSummary(dry_run=self.dry_run)
        self.remove_stale_staging(set_id, languages, summary)
        self.remove_converted_sources(set_id, languages, summary)

        logger.info(
            "Cleanup of set {}: {} file(s) {}, {} kept, {} error(s)",
            set_id,
            summary.removed_count,
            "would be removed" if self.dry_run else "removed",
            len(summary.kept),
            len(summary.errors),
        )
        return summary
