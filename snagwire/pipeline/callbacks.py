"""Callback Chain - Runs user callbacks over an event draft."""

import logging
from typing import Any, Callable, Iterable, Optional

from ..models import EventDraft, MutationOutcome

logger = logging.getLogger(__name__)

Callback = Callable[[EventDraft], Optional[Any]]


def _suppresses(result: Any) -> bool:
    return result is False or result is MutationOutcome.SUPPRESS


def run_callbacks(draft: EventDraft, callbacks: Iterable[Callback]) -> MutationOutcome:
    """
    Run callbacks in registration order.

    A callback suppresses the event by returning ``False`` or
    ``MutationOutcome.SUPPRESS``; no later callback runs. A callback that
    raises is logged and its changes are rolled back before the chain
    continues.

    Args:
        draft: The draft, mutated in place
        callbacks: Ordered callbacks

    Returns:
        MutationOutcome.SUPPRESS if any callback suppressed the event
    """
    for callback in callbacks:
        checkpoint = draft.checkpoint()
        try:
            result = callback(draft)
        except Exception:
            logger.warning(
                "Callback %s failed, discarding its changes",
                getattr(callback, "__name__", repr(callback)),
                exc_info=True,
            )
            draft.restore(checkpoint)
            continue

        if _suppresses(result):
            return MutationOutcome.SUPPRESS

    return MutationOutcome.PROCEED
