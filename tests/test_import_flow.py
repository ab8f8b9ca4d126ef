from __future__ import annotations

import logging

from btc_reconcile import (
    CanonicalTransaction,
    Category,
    ClassificationConfig,
    ClassificationState,
    PendingRecord,
    PromptKind,
    classify_batch,
    complete_classification,
    start_import,
)
from tests.helpers.records import mk_decision, mk_record


def _batch():
    return [
        mk_record(0.001, 50, detected_type="Purchase", id="buy"),
        mk_record(-0.01, 0, detected_type="Withdrawal", id="wd"),
        mk_record(-0.02, 1200, detected_type="Sell", id="sell"),
        mk_record(0.0001, 0, detected_type="Interest", id="interest"),
        mk_record(-0.05, 0, detected_type="Sell", id="odd-sell"),
    ]


def test_classify_batch_partitions_records():
    ctx = classify_batch(_batch())
    assert [tx.id for tx in ctx.classified] == ["buy", "sell"]
    assert [p.id for p in ctx.pending] == ["wd", "interest", "odd-sell"]
    assert ctx.skipped == []
    assert ctx.needs_classification

    kinds = {p.kind: [r.id for r in p.records] for p in ctx.prompts}
    assert kinds == {
        PromptKind.OUTGOING: ["wd"],
        PromptKind.SALES: ["odd-sell"],
        PromptKind.OTHER: ["interest"],
    }
    assert ctx.states["buy"] is ClassificationState.CLASSIFIED_AUTO
    assert ctx.states["wd"] is ClassificationState.PENDING_USER_INPUT


def test_initial_result_counts_pending_as_ignored():
    session = start_import(_batch())
    assert session.result.imported_count == 2
    assert session.result.ignored_count == 3
    assert [p.id for p in session.result.still_pending] == ["wd", "interest", "odd-sell"]


def test_complete_merges_decisions_in_input_order():
    session = start_import(_batch())
    batch = {r.id: r for r in session.context.records}
    result = session.complete(
        [
            mk_decision(batch["odd-sell"], Category.SALE, fair_market_value=3000),
            mk_decision(batch["wd"], Category.SELF_CUSTODY_WITHDRAWAL),
            mk_decision(batch["interest"], Category.SKIP),
        ]
    )
    assert [tx.id for tx in result.transactions] == ["buy", "wd", "sell", "odd-sell"]
    assert result.imported_count == 4
    assert result.ignored_count == 1
    assert result.rejections == ()
    assert result.still_pending == ()
    assert result.states == {
        "buy": ClassificationState.CLASSIFIED_AUTO,
        "wd": ClassificationState.CLASSIFIED_MANUAL,
        "sell": ClassificationState.CLASSIFIED_AUTO,
        "interest": ClassificationState.SKIPPED,
        "odd-sell": ClassificationState.CLASSIFIED_MANUAL,
    }
    wd = result.transactions[1]
    assert wd.is_self_custody and not wd.taxable


def test_rejected_decision_can_be_resubmitted():
    session = start_import(_batch())
    wd = session.context.records[1]

    first = session.complete([mk_decision(wd, Category.PURCHASE)])
    assert first.imported_count == 2
    (rejection,) = first.rejections
    assert rejection.transaction_id == "wd"
    assert rejection.category == "purchase"
    assert "positive Bitcoin amount" in rejection.reason
    assert "wd" in [p.id for p in first.still_pending]
    assert first.states["wd"] is ClassificationState.PENDING_USER_INPUT

    second = session.complete([mk_decision(wd, Category.SELF_CUSTODY_WITHDRAWAL)])
    assert second.rejections == ()
    assert second.imported_count == 3
    # The session itself is unchanged by either attempt.
    assert session.result.imported_count == 2


def test_last_decision_per_record_wins():
    session = start_import(_batch())
    wd = session.context.records[1]
    result = session.complete(
        [mk_decision(wd, Category.PURCHASE), mk_decision(wd, Category.EXCHANGE_TRANSFER)]
    )
    assert result.rejections == ()
    (tx,) = [t for t in result.transactions if t.id == "wd"]
    assert tx.category is Category.EXCHANGE_TRANSFER


def test_decisions_for_unknown_or_auto_records_are_rejected():
    session = start_import(_batch())
    buy = session.context.records[0]
    ghost = mk_record(0.1, 0, id="ghost")
    result = session.complete(
        [mk_decision(ghost, Category.GIFT_RECEIVED), mk_decision(buy, Category.SKIP)]
    )
    reasons = {r.transaction_id: r.reason for r in result.rejections}
    assert reasons == {
        "ghost": "No pending record with id 'ghost'",
        "buy": "No pending record with id 'buy'",
    }
    assert result.imported_count == 2


def test_record_exchange_pairs_override_exchange():
    rec = mk_record(0.001, 50, detected_type="Purchase", exchange="")
    ctx = classify_batch([(rec, "Coinbase"), (mk_record(0.002, 90, detected_type="Buy"), " ")])
    assert [tx.exchange for tx in ctx.classified] == ["Coinbase", "strike"]


def test_concurrency_does_not_change_outcomes():
    items = _batch() * 3
    serial = classify_batch(items, concurrency=1)
    parallel = classify_batch(items, concurrency=4)
    assert parallel.outcomes == serial.outcomes
    assert [p.kind for p in parallel.prompts] == [p.kind for p in serial.prompts]


def test_env_threshold_override_auto_classifies_round_withdrawal(monkeypatch):
    monkeypatch.setenv("BTC_RECONCILE_AUTO_THRESHOLD", "0.85")
    session = start_import([mk_record(-0.01, 0, detected_type="Withdrawal", id="wd")])
    assert not session.needs_classification
    (tx,) = session.result.transactions
    assert isinstance(tx, CanonicalTransaction)
    assert tx.category is Category.SELF_CUSTODY_WITHDRAWAL


def test_explicit_config_wins_over_environment(monkeypatch):
    monkeypatch.setenv("BTC_RECONCILE_AUTO_THRESHOLD", "0.5")
    session = start_import(
        [mk_record(-0.01, 0, detected_type="Withdrawal")], config=ClassificationConfig()
    )
    assert session.needs_classification
    assert isinstance(session.context.outcomes[0], PendingRecord)


def test_confident_skips_are_ignored():
    cfg = ClassificationConfig(fallback_confidence=0.95)
    session = start_import(
        [mk_record(0.0001, 0, detected_type="Interest"), mk_record(0.001, 50, detected_type="Buy")],
        config=cfg,
    )
    assert len(session.context.skipped) == 1
    assert session.result.imported_count == 1
    assert session.result.ignored_count == 1
    assert session.prompts == ()


def test_progress_callback_and_logging(caplog):
    lines: list[str] = []
    cfg = ClassificationConfig(fallback_confidence=0.95)
    batch = [
        mk_record(0.001, 50, detected_type="Purchase"),
        mk_record(-0.01, 0, detected_type="Withdrawal"),
        mk_record(0.0001, 0, detected_type="Interest"),
    ]
    with caplog.at_level(logging.INFO, logger="btc_reconcile"):
        start_import(batch, config=cfg, on_progress=lines.append)
    assert lines == [
        "Classified 3 transaction(s): 1 automatic, 1 need review.",
        "Skipped 1 transaction(s).",
    ]
    assert any(
        "classify_batch:done records=3 auto=1 pending=1 skipped=1" in r.getMessage()
        for r in caplog.records
    )


def test_empty_batch():
    session = start_import([])
    assert session.prompts == ()
    assert not session.needs_classification
    result = complete_classification(session.context, [])
    assert result.transactions == ()
    assert result.imported_count == 0
    assert result.ignored_count == 0
