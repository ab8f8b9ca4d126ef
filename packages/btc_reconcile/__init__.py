"""Public interface for the ``btc_reconcile`` package.

Classifies loosely structured exchange records into tax categories, either
automatically or from a reviewer's decision, and materializes canonical
transactions. This module only re-exports symbols.
"""

from .api import (
    ApplyOutcome,
    CategoryAvailability,
    ImportSession,
    PreReviewContext,
    ValidationResult,
    apply_decision,
    available_categories,
    classify,
    classify_batch,
    classify_record,
    complete_classification,
    expand_bulk_action,
    generate_prompts,
    initial_result,
    start_import,
    validate_decision,
)
from .categories import CATEGORY_RULES, CategoryRule, TaxGroup, ValueRule
from .config import DEFAULT_CONFIG, ClassificationConfig, is_auto_classifiable
from .logging_setup import configure_logging, get_logger
from .models import (
    CanonicalTransaction,
    Category,
    ClassificationDecision,
    ClassificationResult,
    ClassificationState,
    DecisionRejection,
    ImportResult,
    PendingRecord,
    RawRecord,
)
from .prompting import BulkAction, ClassificationPrompt, PromptKind

__all__ = [
    # API
    "classify",
    "classify_record",
    "validate_decision",
    "available_categories",
    "apply_decision",
    "generate_prompts",
    "expand_bulk_action",
    "classify_batch",
    "complete_classification",
    "initial_result",
    "start_import",
    # Results
    "ApplyOutcome",
    "ValidationResult",
    "CategoryAvailability",
    "PreReviewContext",
    "ImportSession",
    # Models / types
    "Category",
    "ClassificationState",
    "RawRecord",
    "ClassificationDecision",
    "ClassificationResult",
    "PendingRecord",
    "CanonicalTransaction",
    "DecisionRejection",
    "ImportResult",
    "BulkAction",
    "ClassificationPrompt",
    "PromptKind",
    # Rules / configuration
    "CATEGORY_RULES",
    "CategoryRule",
    "TaxGroup",
    "ValueRule",
    "ClassificationConfig",
    "DEFAULT_CONFIG",
    "is_auto_classifiable",
    # Logging
    "configure_logging",
    "get_logger",
]
