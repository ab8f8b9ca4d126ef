"""Turn a classification decision into a canonical transaction.

Public API:
    - :func:`apply_decision`: validate, then synthesize the canonical record.

USD amount and unit price are derived through :data:`_DERIVATIONS`, one entry
per :class:`~btc_reconcile.categories.ValueRule`, so the tax-relevant formulas
sit in one place. The function is deterministic: the same record and
decision always yield equal transactions.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import NamedTuple, TypeAlias

from .categories import CATEGORY_RULES, ValueRule
from .logging_setup import get_logger, log_event
from .models import CanonicalTransaction, Category, ClassificationDecision, RawRecord
from .validation import validate_decision

_logger = get_logger("btc_reconcile.apply")


class ApplyOutcome(NamedTuple):
    """Result of applying a decision.

    ``transaction`` is ``None`` both for SKIP (``reason`` is ``None``) and for
    a rejected decision (``reason`` explains the rejection).
    """

    transaction: CanonicalTransaction | None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.reason is None


class _Amounts(NamedTuple):
    usd: float
    price: float


_Derivation: TypeAlias = Callable[[RawRecord, ClassificationDecision, float], _Amounts]


def _cost_basis(record: RawRecord, decision: ClassificationDecision, btc: float) -> _Amounts:
    price = record.price or 0.0
    usd = record.usd_amount if record.usd_amount > 0 else price * btc
    if price <= 0:
        price = usd / btc
    return _Amounts(usd, price)


def _fair_value(record: RawRecord, decision: ClassificationDecision, btc: float) -> _Amounts:
    fmv = decision.fair_market_value
    if fmv is not None and fmv > 0:
        return _Amounts(fmv, fmv / btc)
    price = record.price or 0.0
    return _Amounts(price * btc, price)


def _proceeds(record: RawRecord, decision: ClassificationDecision, btc: float) -> _Amounts:
    fmv = decision.fair_market_value
    usd = record.usd_amount if record.usd_amount > 0 else (fmv or 0.0)
    if decision.sale_price is not None and decision.sale_price > 0:
        price = decision.sale_price
    elif record.price is not None and record.price > 0:
        price = record.price
    else:
        price = usd / btc
    return _Amounts(usd, price)


def _no_usd(record: RawRecord, decision: ClassificationDecision, btc: float) -> _Amounts:
    return _Amounts(0.0, record.price or 0.0)


_DERIVATIONS: Mapping[ValueRule, _Derivation] = MappingProxyType(
    {
        ValueRule.COST_BASIS: _cost_basis,
        ValueRule.FAIR_VALUE: _fair_value,
        ValueRule.PROCEEDS: _proceeds,
        ValueRule.NO_USD: _no_usd,
    }
)


def apply_decision(record: RawRecord, decision: ClassificationDecision) -> ApplyOutcome:
    """Validate ``decision`` against ``record`` and build the canonical transaction.

    Rejections are returned, never raised, so one bad decision cannot abort a
    batch. SKIP produces no transaction and no reason.

    Raises
    ------
    ValueError
        Only when ``decision.transaction_id`` differs from ``record.id``. That
        is a routing error by the caller, not a rejected decision, and
        :func:`~btc_reconcile.pre_review.complete_classification` never
        triggers it.
    """

    if decision.transaction_id != record.id:
        raise ValueError(
            f"Decision for {decision.transaction_id!r} applied to record {record.id!r}"
        )

    validation = validate_decision(record, decision)
    if not validation.ok:
        log_event(
            _logger,
            logging.INFO,
            "apply:rejected",
            id=record.id,
            category=decision.category,
            reason=validation.reason,
        )
        return ApplyOutcome(None, validation.reason)

    category = Category.parse(decision.category)
    if category is None or category is Category.SKIP:
        return ApplyOutcome(None, None)

    rule = CATEGORY_RULES[category]
    btc = abs(record.btc_amount)
    amounts = _DERIVATIONS[rule.value_rule](record, decision, btc)

    destination = decision.destination_wallet
    if destination is None:
        destination = rule.default_destination

    tx = CanonicalTransaction(
        id=record.id,
        date=record.date,
        exchange=record.exchange,
        type=rule.label,
        category=category,
        usd_amount=abs(amounts.usd),
        btc_amount=btc,
        price=abs(amounts.price),
        taxable=rule.taxable,
        is_self_custody=rule.self_custody,
        destination_wallet=destination,
        source_exchange=decision.source_exchange,
        counterparty=decision.counterparty,
        goods_services=decision.goods_services,
        notes=decision.notes,
    )
    return ApplyOutcome(tx, None)


__all__ = ["ApplyOutcome", "apply_decision"]
