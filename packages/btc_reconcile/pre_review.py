"""Batch classification before, and decision application after, human review.

This module centralizes the two halves of an import around the review step:

1) :func:`classify_batch` runs the heuristics over every record, materializes
   confident verdicts, and collects the rest (with their suggestions) into
   themed prompts.
2) :func:`complete_classification` applies the reviewer's decisions to the
   pending subset and merges them with the automatic results, in input order.

Both are pure functions of their inputs. ``complete_classification`` can be
called again with corrected decisions; that is the resubmission path for
records whose decision was rejected.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TypeAlias

from .apply import apply_decision
from .classifier import classify_record
from .config import DEFAULT_CONFIG, ClassificationConfig
from .logging_setup import get_logger, log_event
from .models import (
    CanonicalTransaction,
    ClassificationDecision,
    ClassificationState,
    DecisionRejection,
    ImportResult,
    PendingRecord,
    RawRecord,
)
from .pmap import p_map
from .prompting import ClassificationPrompt, generate_prompts

_logger = get_logger("btc_reconcile.pre_review")

# Upstream collaborators hand over either bare records or (record, exchange) pairs.
RawItem: TypeAlias = RawRecord | tuple[RawRecord, str]
Outcome: TypeAlias = CanonicalTransaction | PendingRecord | None


def _as_record(item: RawItem) -> RawRecord:
    if isinstance(item, RawRecord):
        return item
    record, exchange = item
    exchange = (exchange or "").strip()
    if exchange and exchange != record.exchange:
        return record.model_copy(update={"exchange": exchange})
    return record


@dataclass(frozen=True, slots=True)
class PreReviewContext:
    """Per-record outcomes of the automatic pass, aligned with the input order.

    Each outcome is a canonical transaction (auto-classified), ``None``
    (auto-skipped) or a :class:`PendingRecord` awaiting a decision.
    """

    records: tuple[RawRecord, ...]
    outcomes: tuple[Outcome, ...]
    prompts: tuple[ClassificationPrompt, ...]

    @property
    def classified(self) -> list[CanonicalTransaction]:
        return [o for o in self.outcomes if isinstance(o, CanonicalTransaction)]

    @property
    def pending(self) -> list[PendingRecord]:
        return [o for o in self.outcomes if isinstance(o, PendingRecord)]

    @property
    def skipped(self) -> list[RawRecord]:
        return [r for r, o in zip(self.records, self.outcomes, strict=True) if o is None]

    @property
    def needs_classification(self) -> bool:
        return any(isinstance(o, PendingRecord) for o in self.outcomes)

    @property
    def states(self) -> dict[str, ClassificationState]:
        out: dict[str, ClassificationState] = {}
        for record, outcome in zip(self.records, self.outcomes, strict=True):
            out[record.id] = _auto_state(outcome)
        return out


def _auto_state(outcome: Outcome) -> ClassificationState:
    if outcome is None:
        return ClassificationState.SKIPPED
    if isinstance(outcome, PendingRecord):
        return ClassificationState.PENDING_USER_INPUT
    return ClassificationState.CLASSIFIED_AUTO


def classify_batch(
    items: Iterable[RawItem],
    *,
    config: ClassificationConfig = DEFAULT_CONFIG,
    concurrency: int = 1,
) -> PreReviewContext:
    """Classify every record independently and build prompts for the rest.

    ``concurrency > 1`` fans records out over a bounded thread pool; results
    keep the input order either way.
    """

    records = tuple(_as_record(it) for it in items)
    outcomes = tuple(
        p_map(records, lambda r: classify_record(r, config), concurrency=concurrency)
    )
    pending = [o for o in outcomes if isinstance(o, PendingRecord)]
    prompts = tuple(generate_prompts(pending, config))

    ctx = PreReviewContext(records=records, outcomes=outcomes, prompts=prompts)
    log_event(
        _logger,
        logging.INFO,
        "classify_batch:done",
        records=len(records),
        auto=len(ctx.classified),
        pending=len(pending),
        skipped=len(ctx.skipped),
        prompts=len(prompts),
    )
    return ctx


def initial_result(ctx: PreReviewContext) -> ImportResult:
    """Import result before any decision: auto results only, pending counted as ignored."""

    return complete_classification(ctx, ())


def complete_classification(
    ctx: PreReviewContext, decisions: Sequence[ClassificationDecision]
) -> ImportResult:
    """Apply reviewer decisions to the pending records of ``ctx``.

    Decisions are routed by ``transaction_id``; when several target the same
    record the last one wins. A decision that fails validation leaves its
    record pending and is reported in ``rejections`` so the caller can
    correct and resubmit. Decisions for ids with no pending record are
    rejected as well.
    """

    latest: dict[str, ClassificationDecision] = {}
    for decision in decisions:
        latest[decision.transaction_id] = decision

    pending_ids = {o.id for o in ctx.outcomes if isinstance(o, PendingRecord)}
    rejections: list[DecisionRejection] = [
        DecisionRejection(tid, str(d.category), f"No pending record with id {tid!r}")
        for tid, d in latest.items()
        if tid not in pending_ids
    ]

    transactions: list[CanonicalTransaction] = []
    still_pending: list[PendingRecord] = []
    states: dict[str, ClassificationState] = {}
    ignored = 0

    for record, outcome in zip(ctx.records, ctx.outcomes, strict=True):
        if not isinstance(outcome, PendingRecord):
            states[record.id] = _auto_state(outcome)
            if outcome is None:
                ignored += 1
            else:
                transactions.append(outcome)
            continue

        decision = latest.get(outcome.id)
        if decision is None:
            still_pending.append(outcome)
            states[record.id] = ClassificationState.PENDING_USER_INPUT
            ignored += 1
            continue

        applied = apply_decision(outcome.record, decision)
        if applied.transaction is not None:
            transactions.append(applied.transaction)
            states[record.id] = ClassificationState.CLASSIFIED_MANUAL
        elif applied.reason is None:
            states[record.id] = ClassificationState.SKIPPED
            ignored += 1
        else:
            rejections.append(
                DecisionRejection(outcome.id, str(decision.category), applied.reason)
            )
            still_pending.append(outcome)
            states[record.id] = ClassificationState.PENDING_USER_INPUT
            ignored += 1

    result = ImportResult(
        transactions=tuple(transactions),
        imported_count=len(transactions),
        ignored_count=ignored,
        rejections=tuple(rejections),
        still_pending=tuple(still_pending),
        states=states,
    )
    log_event(
        _logger,
        logging.INFO,
        "complete_classification:done",
        decisions=len(latest),
        imported=result.imported_count,
        ignored=result.ignored_count,
        rejected=len(rejections),
    )
    return result


__all__ = [
    "RawItem",
    "PreReviewContext",
    "classify_batch",
    "initial_result",
    "complete_classification",
]
