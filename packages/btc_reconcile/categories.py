"""Per-category rule table.

Every tax-relevant fact about a category lives in :data:`CATEGORY_RULES`: the
label written on canonical transactions, the tax group, the required Bitcoin
direction, which USD value must back the record, and the user-facing reasons
shown when one of those requirements is not met. The validation engine and
the decision applier both read this table; neither branches on individual
categories.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType

from .models import Category


class TaxGroup(StrEnum):
    INCOME = "income"
    DISPOSAL = "disposal"
    MOVEMENT = "movement"
    OMISSION = "omission"


class ValueRule(StrEnum):
    """Which USD figure a category needs and how the final amounts derive from it.

    - ``COST_BASIS``: the record's USD amount or unit price.
    - ``FAIR_VALUE``: a user-supplied fair market value or the unit price.
    - ``PROCEEDS``: the record's USD amount or a user-supplied value.
    - ``NO_USD``: the record must carry no USD amount.
    - ``NONE``: unconstrained.
    """

    COST_BASIS = "cost_basis"
    FAIR_VALUE = "fair_value"
    PROCEEDS = "proceeds"
    NO_USD = "no_usd"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class CategoryRule:
    category: Category
    label: str
    short_label: str
    group: TaxGroup
    # +1 incoming, -1 outgoing, None unconstrained
    direction: int | None
    value_rule: ValueRule
    direction_reason: str = ""
    value_reason: str = ""
    default_destination: str | None = None

    @property
    def taxable(self) -> bool:
        return self.group in (TaxGroup.INCOME, TaxGroup.DISPOSAL)

    @property
    def self_custody(self) -> bool:
        return self.category is Category.SELF_CUSTODY_WITHDRAWAL


_INCOME_DIRECTION = "{label} requires a positive Bitcoin amount (incoming)"
_DISPOSAL_DIRECTION = "{label} requires a negative Bitcoin amount (outgoing)"
_INCOME_FMV = (
    "{label} requires a fair market value (or a known price) because it is "
    "taxable income at time of receipt"
)
_DISPOSAL_FMV = (
    "{label} requires a fair market value (or a known price) to calculate "
    "taxable capital gains/losses; you may owe tax on any gains since purchase"
)


def _income(category: Category, label: str, short_label: str) -> CategoryRule:
    return CategoryRule(
        category=category,
        label=label,
        short_label=short_label,
        group=TaxGroup.INCOME,
        direction=1,
        value_rule=ValueRule.FAIR_VALUE,
        direction_reason=_INCOME_DIRECTION.format(label=label),
        value_reason=_INCOME_FMV.format(label=label),
    )


def _disposal(category: Category, label: str, short_label: str) -> CategoryRule:
    return CategoryRule(
        category=category,
        label=label,
        short_label=short_label,
        group=TaxGroup.DISPOSAL,
        direction=-1,
        value_rule=ValueRule.FAIR_VALUE,
        direction_reason=_DISPOSAL_DIRECTION.format(label=label),
        value_reason=_DISPOSAL_FMV.format(label=label),
    )


_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        category=Category.PURCHASE,
        label="Purchase",
        short_label="Purchase",
        group=TaxGroup.INCOME,
        direction=1,
        value_rule=ValueRule.COST_BASIS,
        direction_reason="Purchases require positive Bitcoin amount (incoming)",
        value_reason="Purchases require USD amount or valid price to establish cost basis",
    ),
    _income(Category.GIFT_RECEIVED, "Gift Received", "Gift In"),
    _income(Category.PAYMENT_RECEIVED, "Payment Received", "Payment In"),
    _income(Category.REIMBURSEMENT_RECEIVED, "Reimbursement Received", "Reimbursement"),
    _income(Category.MINING_INCOME, "Mining Income", "Mining"),
    _income(Category.STAKING_INCOME, "Staking Income", "Staking"),
    CategoryRule(
        category=Category.SALE,
        label="Sale",
        short_label="Sale",
        group=TaxGroup.DISPOSAL,
        direction=-1,
        value_rule=ValueRule.PROCEEDS,
        direction_reason="Sales require negative Bitcoin amount (outgoing)",
        value_reason="Sales require positive USD proceeds to calculate capital gains/losses",
    ),
    _disposal(Category.GIFT_SENT, "Gift Sent", "Gift Out"),
    _disposal(Category.PAYMENT_SENT, "Payment Sent", "Payment Out"),
    CategoryRule(
        category=Category.SELF_CUSTODY_WITHDRAWAL,
        label="Withdrawal",
        short_label="Self-Custody",
        group=TaxGroup.MOVEMENT,
        direction=-1,
        value_rule=ValueRule.NO_USD,
        direction_reason="Withdrawals require negative Bitcoin amount (outgoing)",
        value_reason=(
            "Self-custody withdrawals should not have USD amounts; "
            "you still own the Bitcoin, so nothing was sold"
        ),
        default_destination="Self-Custody Wallet",
    ),
    CategoryRule(
        category=Category.EXCHANGE_TRANSFER,
        label="Transfer",
        short_label="Exchange Transfer",
        group=TaxGroup.MOVEMENT,
        direction=-1,
        value_rule=ValueRule.NO_USD,
        direction_reason="Exchange transfers require negative Bitcoin amount (outgoing)",
        value_reason=(
            "Exchange transfers should not have USD amounts; "
            "moving Bitcoin between exchanges is not a sale"
        ),
        default_destination="Another Exchange",
    ),
    CategoryRule(
        category=Category.SKIP,
        label="Skip",
        short_label="Skip",
        group=TaxGroup.OMISSION,
        direction=None,
        value_rule=ValueRule.NONE,
    ),
)

CATEGORY_RULES: Mapping[Category, CategoryRule] = MappingProxyType(
    {rule.category: rule for rule in _RULES}
)

if set(CATEGORY_RULES) != set(Category) or len(_RULES) != len(Category):
    raise RuntimeError("CATEGORY_RULES must cover every Category exactly once")


def rule_for(category: Category) -> CategoryRule:
    return CATEGORY_RULES[category]


def is_taxable(category: Category) -> bool:
    return CATEGORY_RULES[category].taxable


def categories_in(group: TaxGroup) -> tuple[Category, ...]:
    """Return the categories of ``group`` in declaration order."""

    return tuple(rule.category for rule in _RULES if rule.group is group)


__all__ = [
    "TaxGroup",
    "ValueRule",
    "CategoryRule",
    "CATEGORY_RULES",
    "rule_for",
    "is_taxable",
    "categories_in",
]
