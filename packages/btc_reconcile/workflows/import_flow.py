"""End-to-end import orchestration for the presentation and storage layers.

:func:`start_import` composes batch classification and prompt generation
behind one call. The returned :class:`ImportSession` carries everything a
review UI needs (prompts, current counts) plus the completion entry point
that turns the reviewer's decisions into the final transaction list.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from ..config import ClassificationConfig, load_config_from_env
from ..models import ClassificationDecision, ImportResult
from ..pre_review import (
    PreReviewContext,
    RawItem,
    classify_batch,
    complete_classification,
    initial_result,
)
from ..prompting import ClassificationPrompt


@dataclass(frozen=True, slots=True)
class ImportSession:
    """An import waiting (or not) on human decisions.

    ``result`` reflects the automatic pass only. Calling :meth:`complete`
    never mutates the session, so a rejected decision can be corrected and the
    whole decision list submitted again.
    """

    context: PreReviewContext
    result: ImportResult

    @property
    def prompts(self) -> tuple[ClassificationPrompt, ...]:
        return self.context.prompts

    @property
    def needs_classification(self) -> bool:
        return self.context.needs_classification

    def complete(self, decisions: Sequence[ClassificationDecision]) -> ImportResult:
        return complete_classification(self.context, decisions)


def start_import(
    items: Iterable[RawItem],
    *,
    config: ClassificationConfig | None = None,
    concurrency: int = 1,
    on_progress: Callable[[str], None] | None = None,
) -> ImportSession:
    """Classify ``items`` and return the session for the review step.

    Parameters
    ----------
    items:
        Normalized raw records, bare or as ``(record, exchange)`` pairs.
    config:
        Heuristic constants. ``None`` uses the defaults with the
        ``BTC_RECONCILE_AUTO_THRESHOLD`` environment override applied.
    concurrency:
        Worker count for the classification pass.
    on_progress:
        Optional callable receiving short status lines (e.g., ``print``).
    """

    cfg = config if config is not None else load_config_from_env()
    ctx = classify_batch(items, config=cfg, concurrency=concurrency)
    result = initial_result(ctx)

    if on_progress:
        on_progress(
            f"Classified {len(ctx.records)} transaction(s): "
            f"{len(ctx.classified)} automatic, {len(ctx.pending)} need review."
        )
        if ctx.skipped:
            on_progress(f"Skipped {len(ctx.skipped)} transaction(s).")

    return ImportSession(context=ctx, result=result)


__all__ = ["ImportSession", "start_import"]
