"""Public API surface for ``btc_reconcile``.

The rule engine is split across small modules (classifier, validation,
applier, prompting); this module re-exports the entry points callers need so
they have one stable import path. There is no logic here.
"""

from __future__ import annotations

from .apply import ApplyOutcome, apply_decision
from .classifier import classify, classify_record
from .pre_review import (
    PreReviewContext,
    classify_batch,
    complete_classification,
    initial_result,
)
from .prompting import expand_bulk_action, generate_prompts
from .validation import (
    CategoryAvailability,
    ValidationResult,
    available_categories,
    validate_decision,
)
from .workflows.import_flow import ImportSession, start_import

__all__ = [
    "ApplyOutcome",
    "apply_decision",
    "classify",
    "classify_record",
    "PreReviewContext",
    "classify_batch",
    "complete_classification",
    "initial_result",
    "expand_bulk_action",
    "generate_prompts",
    "CategoryAvailability",
    "ValidationResult",
    "available_categories",
    "validate_decision",
    "ImportSession",
    "start_import",
]
