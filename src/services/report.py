"""Reconciliation report.

The ``per_language``/``errors``/``warnings`` fields of ``to_dict()`` are the
stable part of the report other tooling reads; per-card detail is extra.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from services.reconciler import CardOutcome, CardReconciliation


@dataclass
class LanguageStats:
    checked: int = 0
    issues_found: int = 0
    recovered: int = 0
    failed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "checked": self.checked,
            "issues_found": self.issues_found,
            "recovered": self.recovered,
            "failed": self.failed,
        }


@dataclass
class ReconcileReport:
    """Aggregated outcome of one batch run."""

    set_id: str
    dry_run: bool
    languages: List[str] = field(default_factory=list)
    per_language: Dict[str, LanguageStats] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    cards: List[CardReconciliation] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    def language(self, language: str) -> LanguageStats:
        if language not in self.per_language:
            self.per_language[language] = LanguageStats()
            self.languages.append(language)
        return self.per_language[language]

    def add(self, record: CardReconciliation) -> None:
        stats = self.language(record.card_key.language)
        stats.checked += 1
        stats.issues_found += len(record.initial_issues)
        stats.recovered += record.recovered
        stats.failed += len(record.failures)

        self.cards.append(record)
        self.errors.extend(str(failure) for failure in record.failures)
        if record.error:
            stats.failed += 1
            self.errors.append(f"{record.card_key}: {record.error}")
        self.warnings.extend(record.warnings)

    def finish(self) -> "ReconcileReport":
        self.cards.sort(key=lambda record: record.card_key)
        self.finished_at = datetime.now(timezone.utc)
        return self

    @property
    def duration(self) -> float:
        end = self.finished_at or datetime.now(timezone.utc)
        return (end - self.started_at).total_seconds()

    def outcomes(self) -> Dict[str, int]:
        counts = {outcome.value: 0 for outcome in CardOutcome}
        for record in self.cards:
            counts[record.outcome.value] += 1
        return counts

    @property
    def total_issues(self) -> int:
        return sum(stats.issues_found for stats in self.per_language.values())

    @property
    def total_failed(self) -> int:
        return sum(stats.failed for stats in self.per_language.values())

    @property
    def unconverged(self) -> List[CardReconciliation]:
        return [record for record in self.cards if not record.converged]

    @property
    def ok(self) -> bool:
        """True when every card converged and no repair failed."""
        return not self.unconverged and not self.errors

    def to_dict(self, include_cards: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "set_id": self.set_id,
            "dry_run": self.dry_run,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_seconds": round(self.duration, 3),
            "per_language": {
                language: self.per_language[language].to_dict()
                for language in self.languages
            },
            "outcomes": self.outcomes(),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }
        if include_cards:
            data["cards"] = [
                record.to_dict()
                for record in self.cards
                if record.initial_issues or record.warnings or record.error
            ]
        return data

    def summary_lines(self) -> List[str]:
        lines = [f"Set {self.set_id} ({'dry run' if self.dry_run else 'repair'}):"]
        for language in self.languages:
            stats = self.per_language[language]
            lines.append(
                f"  {language}: checked={stats.checked} issues={stats.issues_found} "
                f"recovered={stats.recovered} failed={stats.failed}"
            )
        outcomes = self.outcomes()
        lines.append(
            "  cards: "
            + ", ".join(f"{name}={count}" for name, count in outcomes.items() if count)
        )
        if self.warnings:
            lines.append(f"  warnings: {len(self.warnings)}")
        if self.errors:
            lines.append(f"  errors: {len(self.errors)}")
        return lines
