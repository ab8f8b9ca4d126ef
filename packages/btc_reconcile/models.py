"""Data models for ``btc_reconcile``.

Input DTOs coming from outside the engine (normalized raw records from the
exchange normalizer, classification decisions from the presentation layer)
are Pydantic models so malformed values are rejected at the boundary. Results
produced by the engine are frozen ``dataclass`` instances: they are created
once, compared by value and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Categories and lifecycle states
# ---------------------------------------------------------------------------


class Category(StrEnum):
    """Tax/economic nature of a transaction."""

    # Income / acquisition
    PURCHASE = "purchase"
    GIFT_RECEIVED = "gift_received"
    PAYMENT_RECEIVED = "payment_received"
    REIMBURSEMENT_RECEIVED = "reimbursement_received"
    MINING_INCOME = "mining_income"
    STAKING_INCOME = "staking_income"
    # Disposal
    SALE = "sale"
    GIFT_SENT = "gift_sent"
    PAYMENT_SENT = "payment_sent"
    # Non-taxable movement
    SELF_CUSTODY_WITHDRAWAL = "self_custody_withdrawal"
    EXCHANGE_TRANSFER = "exchange_transfer"
    # Deliberate omission
    SKIP = "skip"

    @classmethod
    def parse(cls, value: Any) -> Category | None:
        """Resolve a member, value or name (case-insensitive); ``None`` if unknown."""

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip()
        for member in cls:
            if key.lower() == member.value or key.upper() == member.name:
                return member
        return None


class ClassificationState(StrEnum):
    """Where a raw record sits in the classification lifecycle."""

    UNCLASSIFIED = "unclassified"
    PENDING_USER_INPUT = "pending_user_input"
    CLASSIFIED_AUTO = "classified_auto"
    CLASSIFIED_MANUAL = "classified_manual"
    SKIPPED = "skipped"


# ---------------------------------------------------------------------------
# Boundary DTOs
# ---------------------------------------------------------------------------


class RawRecord(BaseModel):
    """A normalized exchange row, immutable once created upstream.

    ``btc_amount`` keeps its sign (positive incoming, negative outgoing);
    ``usd_amount`` is always a non-negative magnitude. ``id`` is the stable
    identifier supplied by the identity generator and becomes the canonical
    transaction's primary key.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    id: str
    exchange: str
    date: datetime
    detected_type: str
    btc_amount: float
    usd_amount: float = Field(default=0.0, ge=0.0)
    price: float | None = Field(default=None, ge=0.0)
    destination_address: str | None = None
    tx_hash: str | None = None

    @field_validator("id", "exchange", "detected_type")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()

    @field_validator("destination_address", "tx_hash", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ClassificationDecision(BaseModel):
    """A category choice for one raw record plus optional supplemental fields.

    Known category values are coerced to :class:`Category`. Unknown values are
    kept as plain strings so the validation engine can reject them with a
    readable reason instead of failing at construction time.
    """

    model_config = ConfigDict(
        frozen=True, extra="forbid", allow_inf_nan=False, str_strip_whitespace=True
    )

    transaction_id: str
    category: Category | str
    fair_market_value: float | None = Field(default=None, ge=0.0)
    counterparty: str | None = None
    goods_services: str | None = None
    destination_wallet: str | None = None
    source_exchange: str | None = None
    sale_price: float | None = Field(default=None, ge=0.0)
    notes: str | None = None

    @field_validator("category")
    @classmethod
    def _coerce_category(cls, v: Category | str) -> Category | str:
        parsed = Category.parse(v)
        return parsed if parsed is not None else v

    @field_validator(
        "counterparty",
        "goods_services",
        "destination_wallet",
        "source_exchange",
        "notes",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


# ---------------------------------------------------------------------------
# Engine results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Heuristic verdict for one record: suggested category and confidence."""

    category: Category
    confidence: float
    reason: str


@dataclass(frozen=True, slots=True)
class PendingRecord:
    """A record waiting for a human decision, annotated with the suggestion."""

    record: RawRecord
    suggested_category: Category
    confidence: float
    reason: str

    @property
    def id(self) -> str:
        return self.record.id


@dataclass(frozen=True, slots=True)
class CanonicalTransaction:
    """The materialized transaction handed to storage.

    ``usd_amount`` and ``btc_amount`` are magnitudes; direction is implied by
    ``category``. Supplemental fields are ``None`` when the decision did not
    carry them.
    """

    id: str
    date: datetime
    exchange: str
    type: str
    category: Category
    usd_amount: float
    btc_amount: float
    price: float
    taxable: bool
    is_self_custody: bool = False
    destination_wallet: str | None = None
    source_exchange: str | None = None
    counterparty: str | None = None
    goods_services: str | None = None
    notes: str | None = None

    @property
    def is_taxable(self) -> bool:
        return self.taxable


@dataclass(frozen=True, slots=True)
class DecisionRejection:
    """A submitted decision that failed validation or matched no pending record."""

    transaction_id: str
    category: str
    reason: str


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Outcome of an import pass, shaped for the storage collaborator.

    ``ignored_count`` covers auto-skipped records, records the user chose to
    skip, and records that are still pending (no decision, or a rejected one).
    """

    transactions: tuple[CanonicalTransaction, ...]
    imported_count: int
    ignored_count: int
    rejections: tuple[DecisionRejection, ...] = ()
    still_pending: tuple[PendingRecord, ...] = ()
    states: dict[str, ClassificationState] = field(default_factory=dict)


__all__ = [
    "Category",
    "ClassificationState",
    "RawRecord",
    "ClassificationDecision",
    "ClassificationResult",
    "PendingRecord",
    "CanonicalTransaction",
    "DecisionRejection",
    "ImportResult",
]
