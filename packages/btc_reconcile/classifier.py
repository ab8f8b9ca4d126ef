"""Confidence-scored heuristics that suggest a category for a raw record.

Public API:
    - :func:`classify`: pure heuristic verdict (category, confidence, reason).
    - :func:`classify_record`: run the verdict through the auto threshold and
      either materialize the canonical transaction or queue the record for
      human input.

Rules are evaluated top to bottom; the first match wins. All scores come from
:class:`~btc_reconcile.config.ClassificationConfig`.
"""

from __future__ import annotations

import logging

from .apply import apply_decision
from .config import DEFAULT_CONFIG, ClassificationConfig, is_auto_classifiable
from .logging_setup import get_logger, log_event
from .models import (
    CanonicalTransaction,
    Category,
    ClassificationDecision,
    ClassificationResult,
    PendingRecord,
    RawRecord,
)
from .patterns import Signal, detect_signals, is_round_self_custody_amount

_logger = get_logger("btc_reconcile.classifier")


def _has_destination_address(record: RawRecord, config: ClassificationConfig) -> bool:
    addr = record.destination_address
    return addr is not None and len(addr.strip()) > config.min_address_length


def _classify_withdrawal(record: RawRecord, config: ClassificationConfig) -> ClassificationResult:
    round_amount = is_round_self_custody_amount(record.btc_amount, config)
    has_address = _has_destination_address(record, config)

    confidence = config.withdrawal_confidence
    if round_amount:
        confidence = config.round_withdrawal_confidence
    # An external address is the strongest withdrawal signal.
    if has_address:
        confidence = max(confidence, config.withdrawal_with_address_confidence)

    reason = "Withdrawal pattern detected"
    if round_amount:
        reason += " with common self-custody amount"
    if has_address:
        reason += " to external address"
    return ClassificationResult(Category.SELF_CUSTODY_WITHDRAWAL, confidence, reason)


def classify(
    record: RawRecord, config: ClassificationConfig = DEFAULT_CONFIG
) -> ClassificationResult:
    """Suggest a category for ``record`` with a confidence score in ``[0, 1]``."""

    signals = detect_signals(record.detected_type)
    btc = record.btc_amount
    usd = record.usd_amount
    label = record.detected_type

    if Signal.PURCHASE in signals and btc > 0:
        return ClassificationResult(
            Category.PURCHASE,
            config.purchase_confidence,
            f'Transaction type "{label}" matches purchase patterns',
        )

    if Signal.DEPOSIT in signals and btc > 0:
        if usd > 0:
            return ClassificationResult(
                Category.PURCHASE,
                config.priced_deposit_confidence,
                "Receive transaction with USD value - likely a purchase",
            )
        return ClassificationResult(
            Category.PURCHASE,
            config.unpriced_deposit_confidence,
            "Receive transaction without USD value - needs user confirmation",
        )

    if Signal.SALE in signals and btc < 0 and usd > 0:
        return ClassificationResult(
            Category.SALE,
            config.sale_confidence,
            f'Transaction type "{label}" matches sale patterns with USD proceeds',
        )

    if Signal.WITHDRAWAL in signals and btc < 0 and usd <= 0:
        return _classify_withdrawal(record, config)

    if Signal.TRANSFER in signals:
        return ClassificationResult(
            Category.EXCHANGE_TRANSFER,
            config.transfer_confidence,
            f'Transaction type "{label}" suggests transfer between platforms',
        )

    return ClassificationResult(
        Category.SKIP,
        config.fallback_confidence,
        f'Unable to automatically classify transaction type "{label}"',
    )


def classify_record(
    record: RawRecord, config: ClassificationConfig = DEFAULT_CONFIG
) -> CanonicalTransaction | PendingRecord | None:
    """Classify one record and resolve it when confidence allows.

    Returns the canonical transaction for a confident verdict, ``None`` for a
    confident SKIP, and a :class:`PendingRecord` otherwise. A confident verdict
    that the record cannot satisfy (its decision fails validation) is queued
    for human input rather than dropped.
    """

    verdict = classify(record, config)
    log_event(
        _logger,
        logging.DEBUG,
        "classify:verdict",
        id=record.id,
        category=verdict.category,
        confidence=verdict.confidence,
    )

    if is_auto_classifiable(verdict.confidence, config):
        decision = ClassificationDecision(transaction_id=record.id, category=verdict.category)
        outcome = apply_decision(record, decision)
        if outcome.transaction is not None:
            return outcome.transaction
        if verdict.category is Category.SKIP:
            return None
        log_event(
            _logger,
            logging.INFO,
            "classify:auto_rejected",
            id=record.id,
            category=verdict.category,
            reason=outcome.reason,
        )

    return PendingRecord(
        record=record,
        suggested_category=verdict.category,
        confidence=verdict.confidence,
        reason=verdict.reason,
    )


__all__ = ["classify", "classify_record"]
