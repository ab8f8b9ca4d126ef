"""Group pending records into themed review prompts with bulk suggestions.

The presentation layer decides whether and how to show these prompts; this
module only shapes the data. Grouping reuses the classifier's keyword table:

1. outgoing movement candidates (negative Bitcoin amount and a withdrawal-
   or transfer-like type),
2. sale candidates (sale-like types),
3. everything else.

Groups are disjoint and keep the input order. Bulk actions are advisory: the
decisions they expand into still go through validation one by one.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from .config import DEFAULT_CONFIG, ClassificationConfig
from .models import Category, ClassificationDecision, PendingRecord
from .patterns import Signal, is_round_self_custody_amount, matches


class PromptKind(StrEnum):
    OUTGOING = "outgoing"
    SALES = "sales"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class BulkAction:
    """A one-click suggestion applying ``category`` to part of a prompt group.

    ``condition`` narrows the targets; ``None`` targets every member.
    """

    label: str
    category: Category
    condition: Callable[[PendingRecord], bool] | None = None

    def applies_to(self, item: PendingRecord) -> bool:
        return self.condition is None or self.condition(item)

    def targets(self, items: Iterable[PendingRecord]) -> list[PendingRecord]:
        return [it for it in items if self.applies_to(it)]


@dataclass(frozen=True, slots=True)
class ClassificationPrompt:
    kind: PromptKind
    title: str
    message: str
    records: tuple[PendingRecord, ...]
    bulk_actions: tuple[BulkAction, ...] = ()


def _is_outgoing_candidate(item: PendingRecord) -> bool:
    if item.record.btc_amount >= 0:
        return False
    text = item.record.detected_type
    return matches(text, Signal.WITHDRAWAL) or matches(text, Signal.TRANSFER)


def _is_sale_candidate(item: PendingRecord) -> bool:
    return matches(item.record.detected_type, Signal.SALE)


def generate_prompts(
    pending: Sequence[PendingRecord], config: ClassificationConfig = DEFAULT_CONFIG
) -> list[ClassificationPrompt]:
    """Build the review prompts for records awaiting a decision.

    Empty groups are omitted, so an empty input yields an empty list.
    """

    outgoing: list[PendingRecord] = []
    sales: list[PendingRecord] = []
    other: list[PendingRecord] = []
    for item in pending:
        if _is_outgoing_candidate(item):
            outgoing.append(item)
        elif _is_sale_candidate(item):
            sales.append(item)
        else:
            other.append(item)

    prompts: list[ClassificationPrompt] = []

    if outgoing:

        def _round_amount(item: PendingRecord) -> bool:
            return is_round_self_custody_amount(item.record.btc_amount, config)

        prompts.append(
            ClassificationPrompt(
                kind=PromptKind.OUTGOING,
                title="Outgoing Bitcoin Transactions Detected",
                message=(
                    f"We found {len(outgoing)} outgoing Bitcoin transaction(s). "
                    "Please classify each one:"
                ),
                records=tuple(outgoing),
                bulk_actions=(
                    BulkAction(
                        "Mark All as Self-Custody",
                        Category.SELF_CUSTODY_WITHDRAWAL,
                        _round_amount,
                    ),
                    BulkAction("Mark All as Exchange Transfers", Category.EXCHANGE_TRANSFER),
                ),
            )
        )

    if sales:
        prompts.append(
            ClassificationPrompt(
                kind=PromptKind.SALES,
                title="Potential Sales Detected",
                message=(
                    f"We found {len(sales)} potential sale transaction(s). Please confirm:"
                ),
                records=tuple(sales),
                bulk_actions=(BulkAction("Mark All as Sales", Category.SALE),),
            )
        )

    if other:
        prompts.append(
            ClassificationPrompt(
                kind=PromptKind.OTHER,
                title="Unknown Transactions",
                message=f"We found {len(other)} transaction(s) that need classification:",
                records=tuple(other),
            )
        )

    return prompts


def expand_bulk_action(
    prompt: ClassificationPrompt, action: BulkAction, **fields: Any
) -> list[ClassificationDecision]:
    """Expand ``action`` into one decision per targeted record of ``prompt``.

    ``fields`` are copied onto every decision (e.g. ``destination_wallet``).
    """

    if action not in prompt.bulk_actions:
        raise ValueError(f"Bulk action {action.label!r} does not belong to prompt {prompt.title!r}")
    return [
        ClassificationDecision(transaction_id=item.id, category=action.category, **fields)
        for item in action.targets(prompt.records)
    ]


__all__ = [
    "PromptKind",
    "BulkAction",
    "ClassificationPrompt",
    "generate_prompts",
    "expand_bulk_action",
]
