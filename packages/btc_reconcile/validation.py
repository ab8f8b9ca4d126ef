"""Sign and value contract enforcement for classification decisions.

Public API:
    - :func:`validate_decision`: check one decision against one record.
    - :func:`available_categories`: list the categories a user can pick for a
      record, with the reason each remaining category is disabled.

Validation never raises. A failed check returns a :class:`ValidationResult`
whose ``reason`` is written for the person correcting the decision, not for a
log file.
"""

from __future__ import annotations

from dataclasses import dataclass

from .categories import CATEGORY_RULES, CategoryRule, ValueRule
from .models import Category, ClassificationDecision, RawRecord


@dataclass(frozen=True, slots=True)
class ValidationResult:
    ok: bool
    reason: str | None = None

    @classmethod
    def valid(cls) -> ValidationResult:
        return cls(True, None)

    @classmethod
    def invalid(cls, reason: str) -> ValidationResult:
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.ok


def _positive(value: float | None) -> bool:
    return value is not None and value > 0


def check_direction(record: RawRecord, rule: CategoryRule) -> ValidationResult:
    """Check the Bitcoin sign (and non-zero movement) required by ``rule``."""

    if rule.direction is None:
        return ValidationResult.valid()
    btc = record.btc_amount
    if btc == 0:
        return ValidationResult.invalid("Transaction requires Bitcoin movement")
    if (btc > 0) != (rule.direction > 0):
        return ValidationResult.invalid(rule.direction_reason)
    return ValidationResult.valid()


def check_value(
    record: RawRecord, rule: CategoryRule, fair_market_value: float | None
) -> ValidationResult:
    """Check the USD requirement of ``rule`` given an optional supplied value."""

    match rule.value_rule:
        case ValueRule.COST_BASIS:
            ok = record.usd_amount > 0 or _positive(record.price)
        case ValueRule.FAIR_VALUE:
            ok = _positive(fair_market_value) or _positive(record.price)
        case ValueRule.PROCEEDS:
            ok = record.usd_amount > 0 or _positive(fair_market_value)
        case ValueRule.NO_USD:
            ok = record.usd_amount == 0
        case _:
            ok = True
    return ValidationResult.valid() if ok else ValidationResult.invalid(rule.value_reason)


def validate_decision(record: RawRecord, decision: ClassificationDecision) -> ValidationResult:
    """Return whether ``decision`` is logically possible for ``record``.

    Checks run in a fixed order so the reason names the most fundamental
    problem: unknown category, missing Bitcoin movement, wrong direction,
    then the category's USD requirement. SKIP is valid for any record.
    """

    category = Category.parse(decision.category)
    if category is None:
        return ValidationResult.invalid(
            f"Cannot import: unknown classification type {str(decision.category)!r}"
        )
    if category is Category.SKIP:
        return ValidationResult.valid()

    rule = CATEGORY_RULES[category]
    direction = check_direction(record, rule)
    if not direction.ok:
        return direction
    return check_value(record, rule, decision.fair_market_value)


# ---------------------------------------------------------------------------
# Option discovery for the presentation layer
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DisabledCategory:
    category: Category
    reason: str


@dataclass(frozen=True, slots=True)
class CategoryAvailability:
    """Categories a user may choose for one record.

    ``needs_fair_market_value`` lists available categories that will only pass
    validation once the user supplies a fair market value (the record has no
    usable price).
    """

    available: tuple[Category, ...]
    disabled: tuple[DisabledCategory, ...]
    needs_fair_market_value: tuple[Category, ...] = ()

    def is_available(self, category: Category) -> bool:
        return category in self.available

    def reason_for(self, category: Category) -> str | None:
        for item in self.disabled:
            if item.category is category:
                return item.reason
        return None


def available_categories(record: RawRecord) -> CategoryAvailability:
    """Partition all categories into available and disabled for ``record``.

    A fair-value category stays available whenever the Bitcoin direction fits,
    because the missing value is something the user can still provide. Every
    other requirement is judged on the record alone.
    """

    available: list[Category] = []
    disabled: list[DisabledCategory] = []
    needs_fmv: list[Category] = []

    for category, rule in CATEGORY_RULES.items():
        if category is Category.SKIP:
            available.append(category)
            continue
        direction = check_direction(record, rule)
        if not direction.ok:
            disabled.append(DisabledCategory(category, direction.reason or ""))
            continue
        value = check_value(record, rule, fair_market_value=None)
        if value.ok:
            available.append(category)
        elif rule.value_rule is ValueRule.FAIR_VALUE:
            available.append(category)
            needs_fmv.append(category)
        else:
            disabled.append(DisabledCategory(category, value.reason or ""))

    return CategoryAvailability(
        available=tuple(available),
        disabled=tuple(disabled),
        needs_fair_market_value=tuple(needs_fmv),
    )


__all__ = [
    "ValidationResult",
    "validate_decision",
    "check_direction",
    "check_value",
    "DisabledCategory",
    "CategoryAvailability",
    "available_categories",
]
