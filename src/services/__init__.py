"""Validation, repair and housekeeping services."""

from services.cleanup import CleanupService, CleanupSummary
from services.reconciler import (
    CardOutcome,
    CardReconciliation,
    Reconciler,
    RepairFailure,
)
from services.report import LanguageStats, ReconcileReport
from services.runner import BatchRunner
from services.validator import Validator

__all__ = [
    "BatchRunner",
    "CardOutcome",
    "CardReconciliation",
    "CleanupService",
    "CleanupSummary",
    "LanguageStats",
    "ReconcileReport",
    "Reconciler",
    "RepairFailure",
    "Validator",
]
