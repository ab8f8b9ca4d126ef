"""Business constants for the classification heuristics.

Every confidence value and threshold the classifier uses lives on
:class:`ClassificationConfig`, so call sites never repeat a literal and a
single test module can pin the boundary behavior. ``DEFAULT_CONFIG`` holds the
production values; ``load_config_from_env`` layers the optional
``BTC_RECONCILE_AUTO_THRESHOLD`` override on top of it.
"""

from __future__ import annotations

import logging
import math
import os

from pydantic import BaseModel, ConfigDict, field_validator

from .logging_setup import get_logger, log_event

_logger = get_logger("btc_reconcile.config")

_AUTO_THRESHOLD_ENV_VAR = "BTC_RECONCILE_AUTO_THRESHOLD"


class ClassificationConfig(BaseModel):
    """Confidence scores, the auto-classification threshold and amount heuristics."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    purchase_confidence: float = 0.95
    priced_deposit_confidence: float = 0.90
    sale_confidence: float = 0.90
    withdrawal_with_address_confidence: float = 0.90
    round_withdrawal_confidence: float = 0.85
    withdrawal_confidence: float = 0.70
    unpriced_deposit_confidence: float = 0.60
    transfer_confidence: float = 0.60
    fallback_confidence: float = 0.10

    # Records at or above this score skip human review.
    auto_threshold: float = 0.90

    # Round BTC quantities users typically move to their own wallets.
    self_custody_amounts: tuple[float, ...] = (0.001, 0.01, 0.05, 0.1, 1.0)
    # Relative tolerance when matching the amounts above.
    amount_tolerance: float = 0.01
    # Destination addresses must be strictly longer than this to count.
    min_address_length: int = 10

    @field_validator(
        "purchase_confidence",
        "priced_deposit_confidence",
        "sale_confidence",
        "withdrawal_with_address_confidence",
        "round_withdrawal_confidence",
        "withdrawal_confidence",
        "unpriced_deposit_confidence",
        "transfer_confidence",
        "fallback_confidence",
        "auto_threshold",
    )
    @classmethod
    def _in_unit_interval(cls, v: float) -> float:
        fv = float(v)
        if 0.0 <= fv <= 1.0:
            return fv
        raise ValueError("confidence values must be within [0,1]")

    @field_validator("amount_tolerance")
    @classmethod
    def _tolerance_range(cls, v: float) -> float:
        if 0.0 <= v < 1.0:
            return v
        raise ValueError("amount_tolerance must be within [0,1)")

    @field_validator("self_custody_amounts")
    @classmethod
    def _positive_amounts(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        if any(not math.isfinite(a) or a <= 0 for a in v):
            raise ValueError("self_custody_amounts must be positive")
        return tuple(v)

    @field_validator("min_address_length")
    @classmethod
    def _non_negative_length(cls, v: int) -> int:
        if v < 0:
            raise ValueError("min_address_length must be non-negative")
        return v


DEFAULT_CONFIG = ClassificationConfig()


def is_auto_classifiable(
    confidence: float, config: ClassificationConfig = DEFAULT_CONFIG
) -> bool:
    """Return True when ``confidence`` clears the auto-classification threshold."""

    return confidence >= config.auto_threshold


def load_config_from_env(base: ClassificationConfig = DEFAULT_CONFIG) -> ClassificationConfig:
    """Return ``base`` with ``BTC_RECONCILE_AUTO_THRESHOLD`` applied when valid.

    Unparseable or out-of-range values are ignored with a warning so a typo in
    the environment never changes classification behavior silently.
    """

    raw = os.getenv(_AUTO_THRESHOLD_ENV_VAR)
    if not raw:
        return base
    try:
        threshold = float(raw)
    except ValueError:
        threshold = math.nan
    if not (0.0 <= threshold <= 1.0):
        log_event(
            _logger,
            logging.WARNING,
            "config:ignored_env",
            var=_AUTO_THRESHOLD_ENV_VAR,
            value=repr(raw),
        )
        return base
    return base.model_copy(update={"auto_threshold": threshold})


__all__ = [
    "ClassificationConfig",
    "DEFAULT_CONFIG",
    "is_auto_classifiable",
    "load_config_from_env",
]
