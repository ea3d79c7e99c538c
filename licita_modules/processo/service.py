"""
Process Lifecycle Service (``licita_modules.processo.service``).

Responsibility
--------------
The only writer of ``Process.status``.  Every status change looks its
action up in ``PROCESS_WORKFLOW`` first, then evaluates the guard the
table names: an entity rule, the ``StatusPolicy``, or the payment
settlement check.  Also answers the read-only lifecycle questions
(finalization eligibility, delivery progress, suggested next status) and
runs the periodic automatic transitions.

Architecture position
---------------------
**Modules layer** -- composes ``ItemValuationService`` (payment
confirmation revalues every item), ``LinkageRegistry`` (undelivered
quantities) and the repository port.  Owns no transaction: callers wrap
each call in ``session_scope()``.

Invariants enforced
-------------------
* A process of another company is reported as not found.
* Guard failures raise before any write; ``confirm_payment`` computes
  every item and the final status before saving anything.
* ``StatusTransitionError.motivo`` is the policy's reason verbatim.

Failure modes
-------------
* ``ProcessNotFoundError`` -- unknown process or another company's.
* ``StatusTransitionError`` -- action not legal from the current status,
  or refused by the status policy.
* ``PaymentConfirmationError`` -- payment confirmed outside execution.

Usage::

    lifecycle = ProcessLifecycleService(
        repository, valuation, linkages, clock=clock,
    )
    with session_scope():
        outcome = lifecycle.confirm_payment(empresa_id, processo_id)
    outcome.closed
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from licita_kernel.domain.clock import Clock, SystemClock
from licita_kernel.domain.values import ZERO
from licita_kernel.domain.workflow import Transition
from licita_kernel.exceptions import (
    LicitaKernelError,
    PaymentConfirmationError,
    ProcessNotFoundError,
    StatusTransitionError,
)
from licita_kernel.logging_config import LogContext, get_logger
from licita_modules.processo.config import ProcessoConfig
from licita_modules.processo.linkage import LinkageRegistry
from licita_modules.processo.models import (
    FinalSituation,
    Process,
    ProcessItem,
    ProcessStatus,
)
from licita_modules.processo.ports import ProcessRepository, StatusPolicy
from licita_modules.processo.status_policy import (
    DefaultStatusPolicy,
    should_suggest_judging,
    should_suggest_lost,
    suggest_next_status,
)
from licita_modules.processo.valuation_service import ItemValuationService
from licita_modules.processo.workflows import PROCESS_WORKFLOW

logger = get_logger("modules.processo.service")

MOTIVO_PAYMENT_NOT_IN_EXECUTION = "Only processes in execution can have payment confirmed"
MOTIVO_PROCESS_TERMINAL = "Closed, lost or archived processes cannot be marked as won"

_HUNDRED = Decimal("100")
_ONE_PLACE = Decimal("0.1")


@dataclass(frozen=True)
class PaymentConfirmation:
    """Outcome of ``confirm_payment``: the saved process and items."""

    process: Process
    items: tuple[ProcessItem, ...]
    closed: bool


@dataclass(frozen=True)
class FinalizationCheck:
    pode: bool
    motivo: str = ""
    pending_item_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class DeliverySummary:
    """Delivery progress over the won items of a process."""

    total_itens: int
    itens_completos: int
    itens_pendentes: int
    pode_finalizar: bool
    percentual_completo: Decimal

    def to_dict(self) -> dict[str, object]:
        return {
            "total_itens": self.total_itens,
            "itens_completos": self.itens_completos,
            "itens_pendentes": self.itens_pendentes,
            "pode_finalizar": self.pode_finalizar,
            "percentual_completo": self.percentual_completo,
        }


@dataclass(frozen=True)
class AutomaticTransitionResult:
    """Outcome of one ``apply_automatic_transitions`` run."""

    atualizados: tuple[UUID, ...] = ()
    sugeridos_perdido: tuple[UUID, ...] = ()
    erros: tuple[tuple[UUID, str], ...] = ()


def accepted_items_settled(items: Sequence[ProcessItem]) -> bool:
    """At least one accepted item, and every accepted item received its awarded value."""
    accepted = [item for item in items if item.is_accepted]
    return bool(accepted) and all(item.saldo_a_receber <= ZERO for item in accepted)


class ProcessLifecycleService:
    """
    Guarded status changes and lifecycle queries.

    Contract
    --------
    Every public method takes ``empresa_id`` and ``processo_id`` (except
    ``apply_automatic_transitions``) and either returns the saved result
    or raises before writing.

    Non-goals
    ---------
    * Does not commit; the caller owns the transaction.
    * Does not edit descriptive fields (``Process.with_details``).
    """

    def __init__(
        self,
        repository: ProcessRepository,
        valuation: ItemValuationService,
        linkages: LinkageRegistry,
        policy: StatusPolicy | None = None,
        config: ProcessoConfig | None = None,
        clock: Clock | None = None,
    ):
        self._repository = repository
        self._valuation = valuation
        self._linkages = linkages
        self._policy = policy or DefaultStatusPolicy()
        self._config = config or ProcessoConfig.with_defaults()
        self._clock = clock or SystemClock()

    # =========================================================================
    # Guards
    # =========================================================================

    def _load(self, empresa_id: UUID, processo_id: UUID) -> Process:
        process = self._repository.find_process(empresa_id, processo_id)
        if process is None or process.empresa_id != empresa_id:
            raise ProcessNotFoundError(processo_id, empresa_id)
        return process

    def _transition(self, process: Process, action: str) -> Transition:
        transition = PROCESS_WORKFLOW.transition_for(action, process.status.value)
        if transition is None:
            motivo = f"Action {action} is not allowed from status {process.status.value}"
            logger.warning("status_transition_rejected", extra={
                "action": action,
                "from_status": process.status.value,
                "motivo": motivo,
            })
            raise StatusTransitionError(
                motivo, processo_id=process.id, from_status=process.status.value,
            )
        return transition

    def _require_policy(
        self,
        process: Process,
        items: Sequence[ProcessItem],
        target: ProcessStatus,
    ) -> None:
        decision = self._policy.can_change_status(process, items, target)
        if decision.pode:
            return
        logger.warning("status_transition_rejected", extra={
            "from_status": process.status.value,
            "to_status": target.value,
            "motivo": decision.motivo,
        })
        raise StatusTransitionError(
            decision.motivo,
            processo_id=process.id,
            from_status=process.status.value,
            to_status=target.value,
        )

    def _save_status(self, before: Process, after: Process, action: str) -> Process:
        saved = self._repository.save_process(after)
        logger.info("process_status_changed", extra={
            "action": action,
            "from_status": before.status.value,
            "to_status": saved.status.value,
        })
        return saved

    # =========================================================================
    # Transitions
    # =========================================================================

    def move_to_judging(self, empresa_id: UUID, processo_id: UUID) -> Process:
        with LogContext.bind(empresa_id=empresa_id, processo_id=processo_id):
            process = self._load(empresa_id, processo_id)
            self._transition(process, "move_to_judging")
            return self._save_status(process, process.move_to_judging(), "move_to_judging")

    def mark_won(self, empresa_id: UUID, processo_id: UUID) -> Process:
        with LogContext.bind(empresa_id=empresa_id, processo_id=processo_id):
            process = self._load(empresa_id, processo_id)
            if process.is_terminal:
                logger.warning("status_transition_rejected", extra={
                    "action": "mark_won",
                    "from_status": process.status.value,
                    "motivo": MOTIVO_PROCESS_TERMINAL,
                })
                raise StatusTransitionError(
                    MOTIVO_PROCESS_TERMINAL,
                    processo_id=process.id,
                    from_status=process.status.value,
                )
            transition = self._transition(process, "mark_won")
            updated = process.with_status(ProcessStatus(transition.to_state))
            return self._save_status(process, updated, "mark_won")

    def confirm_payment(
        self,
        empresa_id: UUID,
        processo_id: UUID,
        received_on: date | None = None,
    ) -> PaymentConfirmation:
        """
        Record payment receipt, revalue every item and close when settled.

        Single entry point for the whole confirmation: wrap it in one
        ``session_scope()``.  Nothing is saved until every item has been
        revalued and the final status decided.

        Args:
            received_on: Payment date.  Defaults to the clock's today.

        Raises:
            ProcessNotFoundError: Unknown process or another company's.
            PaymentConfirmationError: Process is not in execution.
        """
        with LogContext.bind(empresa_id=empresa_id, processo_id=processo_id):
            process = self._load(empresa_id, processo_id)
            transition = PROCESS_WORKFLOW.transition_for("confirm_payment", process.status.value)
            if transition is None or not process.is_em_execucao:
                logger.warning("status_transition_rejected", extra={
                    "action": "confirm_payment",
                    "from_status": process.status.value,
                    "motivo": MOTIVO_PAYMENT_NOT_IN_EXECUTION,
                })
                raise PaymentConfirmationError(
                    MOTIVO_PAYMENT_NOT_IN_EXECUTION,
                    processo_id=processo_id,
                    from_status=process.status.value,
                )

            received_on = received_on or self._clock.today()
            paid = process.with_status(process.status, data_recebimento_pagamento=received_on)
            items = self._valuation.revalue_all(
                paid, self._repository.items_for(empresa_id, processo_id),
            )

            closed = self._config.auto_close_on_payment and accepted_items_settled(items)
            final = paid
            if closed:
                close = self._transition(paid, "close_after_payment")
                final = paid.with_status(ProcessStatus(close.to_state))

            saved_items = tuple(self._repository.save_item(item) for item in items)
            saved = self._repository.save_process(final)

            logger.info("payment_confirmed", extra={
                "received_on": received_on,
                "item_count": len(saved_items),
                "closed": closed,
                "status": saved.status.value,
            })
            return PaymentConfirmation(process=saved, items=saved_items, closed=closed)

    def mark_lost(
        self,
        empresa_id: UUID,
        processo_id: UUID,
        motivo_perda: str | None = None,
    ) -> Process:
        """Move to lost, recording the reason.  Archives at once when configured."""
        with LogContext.bind(empresa_id=empresa_id, processo_id=processo_id):
            process = self._load(empresa_id, processo_id)
            self._transition(process, "mark_lost")
            items = self._repository.items_for(empresa_id, processo_id)
            self._require_policy(process, items, ProcessStatus.PERDIDO)

            changes = {}
            if motivo_perda is not None:
                changes["motivo_perda"] = motivo_perda
            updated = process.with_status(ProcessStatus.PERDIDO, **changes)

            if self._config.archive_on_loss:
                self._transition(updated, "archive")
                updated = updated.with_status(
                    ProcessStatus.ARQUIVADO, data_arquivamento=self._clock.now(),
                )
            return self._save_status(process, updated, "mark_lost")

    def archive(self, empresa_id: UUID, processo_id: UUID) -> Process:
        with LogContext.bind(empresa_id=empresa_id, processo_id=processo_id):
            process = self._load(empresa_id, processo_id)
            self._transition(process, "archive")
            items = self._repository.items_for(empresa_id, processo_id)
            self._require_policy(process, items, ProcessStatus.ARQUIVADO)
            updated = process.with_status(
                ProcessStatus.ARQUIVADO, data_arquivamento=self._clock.now(),
            )
            return self._save_status(process, updated, "archive")

    def start_payment(self, empresa_id: UUID, processo_id: UUID) -> Process:
        return self._policy_transition(empresa_id, processo_id, "start_payment")

    def close(self, empresa_id: UUID, processo_id: UUID) -> Process:
        return self._policy_transition(empresa_id, processo_id, "close")

    def _policy_transition(self, empresa_id: UUID, processo_id: UUID, action: str) -> Process:
        with LogContext.bind(empresa_id=empresa_id, processo_id=processo_id):
            process = self._load(empresa_id, processo_id)
            target = ProcessStatus(self._transition(process, action).to_state)
            items = self._repository.items_for(empresa_id, processo_id)
            self._require_policy(process, items, target)
            return self._save_status(process, process.with_status(target), action)

    # =========================================================================
    # Queries
    # =========================================================================

    def _won_items(self, empresa_id: UUID, processo_id: UUID) -> list[ProcessItem]:
        self._load(empresa_id, processo_id)
        return [
            item for item in self._repository.items_for(empresa_id, processo_id)
            if item.situacao_final == FinalSituation.VENCIDO
        ]

    def finalization_check(self, empresa_id: UUID, processo_id: UUID) -> FinalizationCheck:
        """A process may be finalized only when every won item is fully delivered."""
        pending = tuple(
            item.id for item in self._won_items(empresa_id, processo_id)
            if self._linkages.undelivered_quantity(item) > ZERO
        )
        if not pending:
            return FinalizationCheck(pode=True)
        count = len(pending)
        noun = "item has" if count == 1 else "items have"
        return FinalizationCheck(
            pode=False,
            motivo=f"{count} {noun} pending partial deliveries",
            pending_item_ids=pending,
        )

    def delivery_summary(self, empresa_id: UUID, processo_id: UUID) -> DeliverySummary:
        won = self._won_items(empresa_id, processo_id)
        total = len(won)
        complete = sum(1 for item in won if self._linkages.undelivered_quantity(item) <= ZERO)
        pending = total - complete
        if total:
            percent = (Decimal(complete) / Decimal(total) * _HUNDRED).quantize(_ONE_PLACE)
        else:
            percent = Decimal("0.0")
        return DeliverySummary(
            total_itens=total,
            itens_completos=complete,
            itens_pendentes=pending,
            pode_finalizar=pending == 0,
            percentual_completo=percent,
        )

    def suggest_status(self, empresa_id: UUID, processo_id: UUID) -> ProcessStatus | None:
        """The status the process should probably move to next, or ``None``.  Changes nothing."""
        process = self._load(empresa_id, processo_id)
        items = self._repository.items_for(empresa_id, processo_id)
        return suggest_next_status(process, items, self._clock.now())

    # =========================================================================
    # Batch
    # =========================================================================

    def apply_automatic_transitions(self, empresa_id: UUID) -> AutomaticTransitionResult:
        """
        Move elapsed participation processes to judging; count lost suggestions.

        Lost suggestions are never applied automatically.  A failure on one
        process is logged and collected; the batch continues.
        """
        now = self._clock.now()
        updated: list[UUID] = []
        suggested: list[UUID] = []
        errors: list[tuple[UUID, str]] = []

        with LogContext.bind(empresa_id=empresa_id):
            for process in self._repository.processes_with_status(
                empresa_id, ProcessStatus.PARTICIPACAO,
            ):
                if not should_suggest_judging(process, now):
                    continue
                try:
                    transition = self._transition(process, "auto_move_to_judging")
                    self._save_status(
                        process,
                        process.with_status(ProcessStatus(transition.to_state)),
                        "auto_move_to_judging",
                    )
                    updated.append(process.id)
                except LicitaKernelError as exc:
                    logger.error("automatic_transition_failed", extra={
                        "failed_processo_id": str(process.id),
                        "error_code": exc.code,
                        "error": str(exc),
                    })
                    errors.append((process.id, str(exc)))

            for process in self._repository.processes_with_status(
                empresa_id, ProcessStatus.JULGAMENTO_HABILITACAO,
            ):
                items = self._repository.items_for(empresa_id, process.id)
                if should_suggest_lost(process, items):
                    suggested.append(process.id)

            logger.info("automatic_transitions_applied", extra={
                "atualizados": len(updated),
                "sugeridos_perdido": len(suggested),
                "erros": len(errors),
            })

        return AutomaticTransitionResult(
            atualizados=tuple(updated),
            sugeridos_perdido=tuple(suggested),
            erros=tuple(errors),
        )
