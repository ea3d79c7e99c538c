"""
Status policy and status suggestions.

``DefaultStatusPolicy`` is the stock ``StatusPolicy`` consulted by
``ProcessLifecycleService`` before policy-guarded transitions (lost,
archive, payment, close).  Deployments may inject their own policy; the
service treats the answer as opaque and surfaces ``motivo`` verbatim.

The suggestion helpers tell a caller which status a process should
probably move to next without changing anything.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from licita_kernel.logging_config import get_logger
from licita_modules.processo.models import (
    LOST_ITEM_STATUSES,
    Process,
    ProcessItem,
    ProcessStatus,
    TransitionDecision,
)

logger = get_logger("modules.processo.status_policy")

MOTIVO_ITEMS_STILL_ACTIVE = (
    "Cannot mark as lost: there are accepted or in-analysis items. "
    "Disqualify them first."
)
MOTIVO_PAYMENT_SOURCE = "Only processes in execution can enter payment"
MOTIVO_CLOSE_SOURCE = "Only processes in payment can be closed"
MOTIVO_ARCHIVE_SOURCE = "Only lost or closed processes can be archived"


def all_items_lost(items: Sequence[ProcessItem]) -> bool:
    """True when every item was declassified or disqualified.  Vacuously true when empty."""
    return all(item.status_item in LOST_ITEM_STATUSES for item in items)


class DefaultStatusPolicy:
    """
    Per-target business rules for status changes.

    Contract:
        Returns ``TransitionDecision``; never raises.
    Non-goals:
        Does not check the transition table -- ``PROCESS_WORKFLOW`` does.
    """

    def can_change_status(
        self,
        process: Process,
        items: Sequence[ProcessItem],
        target: ProcessStatus,
    ) -> TransitionDecision:
        current = process.status

        if target == ProcessStatus.PERDIDO:
            if not items or all_items_lost(items):
                return TransitionDecision.allow()
            return TransitionDecision.deny(MOTIVO_ITEMS_STILL_ACTIVE)

        if target == ProcessStatus.PAGAMENTO and current != ProcessStatus.EXECUCAO:
            return TransitionDecision.deny(MOTIVO_PAYMENT_SOURCE)

        if target == ProcessStatus.ENCERRAMENTO and current != ProcessStatus.PAGAMENTO:
            return TransitionDecision.deny(MOTIVO_CLOSE_SOURCE)

        if target == ProcessStatus.ARQUIVADO and current not in (
            ProcessStatus.PERDIDO, ProcessStatus.ENCERRAMENTO,
        ):
            return TransitionDecision.deny(MOTIVO_ARCHIVE_SOURCE)

        return TransitionDecision.allow()


# -----------------------------------------------------------------------------
# Suggestions
# -----------------------------------------------------------------------------


def should_suggest_judging(process: Process, now: datetime) -> bool:
    """Participation whose public session time has passed."""
    return process.status == ProcessStatus.PARTICIPACAO and process.session_has_passed(now)


def should_suggest_lost(process: Process, items: Sequence[ProcessItem]) -> bool:
    """Judging where every (at least one) item was declassified or disqualified."""
    if process.status != ProcessStatus.JULGAMENTO_HABILITACAO:
        return False
    return bool(items) and all_items_lost(items)


def suggest_next_status(
    process: Process,
    items: Sequence[ProcessItem],
    now: datetime,
) -> ProcessStatus | None:
    if should_suggest_judging(process, now):
        return ProcessStatus.JULGAMENTO_HABILITACAO
    if should_suggest_lost(process, items):
        return ProcessStatus.PERDIDO
    return None


__all__ = [
    "DefaultStatusPolicy",
    "all_items_lost",
    "should_suggest_judging",
    "should_suggest_lost",
    "suggest_next_status",
]
