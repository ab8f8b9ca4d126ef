from __future__ import annotations

import pytest

from btc_reconcile import Category, available_categories, validate_decision
from btc_reconcile.categories import CATEGORY_RULES, TaxGroup, categories_in, is_taxable, rule_for
from tests.helpers.records import mk_decision, mk_record

INCOME_FMV = (
    Category.GIFT_RECEIVED,
    Category.PAYMENT_RECEIVED,
    Category.REIMBURSEMENT_RECEIVED,
    Category.MINING_INCOME,
    Category.STAKING_INCOME,
)
DISPOSAL_FMV = (Category.GIFT_SENT, Category.PAYMENT_SENT)
MOVEMENT = (Category.SELF_CUSTODY_WITHDRAWAL, Category.EXCHANGE_TRANSFER)


def test_rule_table_groups():
    assert categories_in(TaxGroup.INCOME) == (Category.PURCHASE, *INCOME_FMV)
    assert categories_in(TaxGroup.DISPOSAL) == (Category.SALE, *DISPOSAL_FMV)
    assert categories_in(TaxGroup.MOVEMENT) == MOVEMENT
    assert categories_in(TaxGroup.OMISSION) == (Category.SKIP,)
    assert set(CATEGORY_RULES) == set(Category)
    assert rule_for(Category.SELF_CUSTODY_WITHDRAWAL).default_destination == "Self-Custody Wallet"
    taxable = [c for c in Category if is_taxable(c)]
    assert taxable == [*categories_in(TaxGroup.INCOME), *categories_in(TaxGroup.DISPOSAL)]


# ---- Income ------------------------------------------------------------------


def test_purchase_requires_positive_btc_and_usd_or_price():
    rec = mk_record(0.001, 50)
    assert validate_decision(rec, mk_decision(rec, Category.PURCHASE)).ok

    priced = mk_record(0.001, 0, 40000)
    assert validate_decision(priced, mk_decision(priced, Category.PURCHASE)).ok

    outgoing = mk_record(-0.001, 50)
    res = validate_decision(outgoing, mk_decision(outgoing, Category.PURCHASE))
    assert not res.ok
    assert "positive Bitcoin amount" in res.reason

    unpriced = mk_record(0.001, 0)
    res = validate_decision(unpriced, mk_decision(unpriced, Category.PURCHASE))
    assert not res.ok
    assert "USD amount or valid price" in res.reason


@pytest.mark.parametrize("category", INCOME_FMV)
def test_income_requires_fair_market_value_or_price(category):
    rec = mk_record(0.001, 0)
    assert validate_decision(rec, mk_decision(rec, category, fair_market_value=50)).ok

    priced = mk_record(0.000625, 0, 80000)
    assert validate_decision(priced, mk_decision(priced, category)).ok

    res = validate_decision(rec, mk_decision(rec, category))
    assert not res.ok
    assert "fair market value" in res.reason
    assert "taxable income at time of receipt" in res.reason

    outgoing = mk_record(-0.001, 0)
    res = validate_decision(outgoing, mk_decision(outgoing, category, fair_market_value=50))
    assert not res.ok
    assert "positive Bitcoin amount" in res.reason


def test_zero_fair_market_value_does_not_count():
    rec = mk_record(0.001, 0)
    res = validate_decision(rec, mk_decision(rec, Category.GIFT_RECEIVED, fair_market_value=0))
    assert not res.ok


# ---- Disposal ----------------------------------------------------------------


def test_sale_requires_negative_btc_and_proceeds():
    rec = mk_record(-0.001, 60)
    assert validate_decision(rec, mk_decision(rec, Category.SALE)).ok

    via_fmv = mk_record(-0.001, 0)
    assert validate_decision(via_fmv, mk_decision(via_fmv, Category.SALE, fair_market_value=60)).ok

    incoming = mk_record(0.001, 60)
    res = validate_decision(incoming, mk_decision(incoming, Category.SALE))
    assert not res.ok
    assert "negative Bitcoin amount" in res.reason

    res = validate_decision(via_fmv, mk_decision(via_fmv, Category.SALE))
    assert not res.ok
    assert res.reason == "Sales require positive USD proceeds to calculate capital gains/losses"


def test_sale_price_alone_is_not_proceeds():
    rec = mk_record(-0.001, 0)
    res = validate_decision(rec, mk_decision(rec, Category.SALE, sale_price=60000))
    assert not res.ok


def test_gift_sent_reason_mentions_gains():
    rec = mk_record(-0.001, 0)
    assert validate_decision(rec, mk_decision(rec, Category.GIFT_SENT, fair_market_value=50)).ok
    res = validate_decision(rec, mk_decision(rec, Category.GIFT_SENT))
    assert "owe tax on any gains since purchase" in res.reason

    incoming = mk_record(0.001, 0)
    res = validate_decision(incoming, mk_decision(incoming, Category.GIFT_SENT, fair_market_value=50))
    assert "negative Bitcoin amount" in res.reason


def test_payment_sent_accepts_price_as_fair_value():
    lightning = mk_record(-0.0001, 0, 80000)
    assert validate_decision(lightning, mk_decision(lightning, Category.PAYMENT_SENT)).ok

    unpriced = mk_record(-0.0001, 0)
    res = validate_decision(unpriced, mk_decision(unpriced, Category.PAYMENT_SENT))
    assert "taxable capital gains/losses" in res.reason


# ---- Movement ----------------------------------------------------------------


def test_self_custody_requires_outgoing_without_usd():
    rec = mk_record(-0.01, 0)
    assert validate_decision(rec, mk_decision(rec, Category.SELF_CUSTODY_WITHDRAWAL)).ok

    incoming = mk_record(0.01, 0)
    res = validate_decision(incoming, mk_decision(incoming, Category.SELF_CUSTODY_WITHDRAWAL))
    assert "negative Bitcoin amount" in res.reason

    priced = mk_record(-0.01, 50)
    res = validate_decision(priced, mk_decision(priced, Category.SELF_CUSTODY_WITHDRAWAL))
    assert "should not have USD amounts" in res.reason
    assert "you still own the Bitcoin" in res.reason


def test_exchange_transfer_rejects_usd():
    rec = mk_record(-0.01, 50)
    res = validate_decision(rec, mk_decision(rec, Category.EXCHANGE_TRANSFER))
    assert not res.ok
    assert "moving Bitcoin between exchanges" in res.reason


# ---- General rules -----------------------------------------------------------


@pytest.mark.parametrize(
    "rec",
    [mk_record(0.001, 50), mk_record(-0.001, 0), mk_record(0, 0), mk_record(0, 50, 1)],
)
def test_skip_is_always_valid(rec):
    assert validate_decision(rec, mk_decision(rec, Category.SKIP)).ok


@pytest.mark.parametrize("category", [c for c in Category if c is not Category.SKIP])
def test_zero_btc_requires_movement(category):
    rec = mk_record(0, 50, 50000)
    res = validate_decision(rec, mk_decision(rec, category, fair_market_value=50))
    assert not res.ok
    assert res.reason == "Transaction requires Bitcoin movement"


def test_unknown_category_is_invalid_not_raised():
    rec = mk_record(0.001, 50)
    decision = mk_decision(rec, "UNKNOWN_TYPE")
    assert decision.category == "UNKNOWN_TYPE"
    res = validate_decision(rec, decision)
    assert not res.ok
    assert "unknown classification type" in res.reason


def test_category_names_and_values_are_accepted():
    rec = mk_record(-0.001, 60)
    assert mk_decision(rec, "SALE").category is Category.SALE
    assert mk_decision(rec, "sale").category is Category.SALE
    assert validate_decision(rec, mk_decision(rec, " Sale ")).ok


# ---- Availability ------------------------------------------------------------


def test_availability_for_unpriced_incoming():
    avail = available_categories(mk_record(0.001, 0))
    assert avail.is_available(Category.SKIP)
    for category in INCOME_FMV:
        assert avail.is_available(category)
    assert set(avail.needs_fair_market_value) == set(INCOME_FMV)
    assert not avail.is_available(Category.PURCHASE)
    assert "cost basis" in avail.reason_for(Category.PURCHASE)
    assert "negative Bitcoin amount" in avail.reason_for(Category.SALE)
    assert avail.reason_for(Category.SKIP) is None


def test_availability_for_lightning_payment():
    avail = available_categories(mk_record(-0.0001, 0, 80000))
    for category in (*DISPOSAL_FMV, *MOVEMENT):
        assert avail.is_available(category)
    assert avail.needs_fair_market_value == ()
    assert "positive USD proceeds" in avail.reason_for(Category.SALE)
    assert "positive Bitcoin amount" in avail.reason_for(Category.PURCHASE)


def test_availability_for_priced_outgoing():
    avail = available_categories(mk_record(-0.001, 50))
    assert avail.is_available(Category.SALE)
    assert not avail.is_available(Category.SELF_CUSTODY_WITHDRAWAL)
    assert "should not have USD amounts" in avail.reason_for(Category.SELF_CUSTODY_WITHDRAWAL)


def test_availability_for_zero_btc_is_skip_only():
    avail = available_categories(mk_record(0, 50))
    assert avail.available == (Category.SKIP,)
    assert all(d.reason == "Transaction requires Bitcoin movement" for d in avail.disabled)
