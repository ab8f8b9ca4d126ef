"""Keyword table for free-text "detected type" matching.

Exchanges describe the same movement in many ways ("Buy", "DCA Purchase",
"Send to wallet", ...). All vocabulary lives in :data:`KEYWORDS`; each keyword
set is compiled once into a case-insensitive regex anchored at a word start,
so "sell" matches "Sell BTC" and "Seller fee" but not "Upsell". Add new
exchange vocabularies here and nowhere else.

Sets overlap ("transfer" is both withdrawal- and transfer-like). The
classifier's rule order and its sign and USD guards pick between them.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType

from .config import DEFAULT_CONFIG, ClassificationConfig


class Signal(StrEnum):
    PURCHASE = "purchase"
    SALE = "sale"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    DEPOSIT = "deposit"


KEYWORDS: Mapping[Signal, tuple[str, ...]] = MappingProxyType(
    {
        Signal.PURCHASE: (
            "purchase",
            "buy",
            "bought",
            "acquisition",
            "trade",
            "order",
            "investment",
            "dca",
            "recurring",
        ),
        Signal.SALE: (
            "sale",
            "sell",
            "sold",
            "disposal",
            "liquidation",
            "convert",
            "exchange",
            "cash out",
            "realize",
        ),
        Signal.WITHDRAWAL: (
            "withdrawal",
            "withdraw",
            "send",
            "sent",
            "transfer",
            "moved",
            "outgoing",
            "out",
            "to wallet",
            "to address",
            "self custody",
            "self-custody",
        ),
        Signal.TRANSFER: (
            "transfer",
            "moved",
            "migration",
            "consolidation",
            "internal transfer",
            "exchange transfer",
            "platform transfer",
        ),
        Signal.DEPOSIT: (
            "deposit",
            "receive",
            "received",
            "incoming",
            "credit",
        ),
    }
)


def _compile(words: tuple[str, ...]) -> re.Pattern[str]:
    # Longest first so multi-word phrases win over their prefixes.
    alternation = "|".join(
        r"\s+".join(re.escape(part) for part in w.split())
        for w in sorted(words, key=len, reverse=True)
    )
    return re.compile(rf"\b(?:{alternation})", re.IGNORECASE)


_COMPILED: Mapping[Signal, re.Pattern[str]] = MappingProxyType(
    {signal: _compile(words) for signal, words in KEYWORDS.items()}
)


def matches(text: str | None, signal: Signal) -> bool:
    """Return True when ``text`` contains a keyword of ``signal``."""

    if not text:
        return False
    return _COMPILED[signal].search(text) is not None


def detect_signals(text: str | None) -> frozenset[Signal]:
    """Return every keyword signal present in ``text``."""

    if not text:
        return frozenset()
    return frozenset(s for s, pattern in _COMPILED.items() if pattern.search(text))


def is_round_self_custody_amount(
    btc_amount: float, config: ClassificationConfig = DEFAULT_CONFIG
) -> bool:
    """Return True when ``|btc_amount|`` is within tolerance of a round wallet amount."""

    amount = abs(btc_amount)
    return any(
        abs(amount - common) <= common * config.amount_tolerance
        for common in config.self_custody_amounts
    )


__all__ = [
    "Signal",
    "KEYWORDS",
    "matches",
    "detect_signals",
    "is_round_self_custody_amount",
]
