"""
licita_modules.processo.orchestrator -- Service wiring for one session.

Responsibility:
    Construct every processo service exactly once over a SQLAlchemy
    ``Session``, in dependency order, and expose them as public attributes.

Architecture position:
    Modules layer.  The only place that binds the SQLAlchemy adapters to
    the ports; services and engines never see a ``Session``.

Non-goals:
    - Does NOT manage transaction boundaries (caller's responsibility).
    - Does NOT own the Session lifecycle (no commit/rollback).
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from licita_kernel.domain.clock import Clock, SystemClock
from licita_modules.processo.balance_service import BalanceService
from licita_modules.processo.config import ProcessoConfig
from licita_modules.processo.invoices import InvoiceLedgerView
from licita_modules.processo.linkage import LinkageRegistry
from licita_modules.processo.linkage_service import LinkageService
from licita_modules.processo.ports import StatusPolicy
from licita_modules.processo.repository import (
    SqlFulfillmentSelector,
    SqlLinkageStore,
    SqlProcessRepository,
)
from licita_modules.processo.service import ProcessLifecycleService
from licita_modules.processo.valuation_service import ItemValuationService


class ProcessoOrchestrator:
    """Central factory for processo services bound to one session.

    Guarantees:
        - All services share the same Session, config and Clock.
        - Writes are attributed to ``actor_id``.
    """

    def __init__(
        self,
        session: Session,
        actor_id: UUID,
        config: ProcessoConfig | None = None,
        clock: Clock | None = None,
        policy: StatusPolicy | None = None,
    ) -> None:
        self.config = config or ProcessoConfig.with_defaults()
        self.clock = clock or SystemClock()

        # Adapters
        self.repository = SqlProcessRepository(session, actor_id)
        self.linkage_store = SqlLinkageStore(session, actor_id)
        self.fulfillment = SqlFulfillmentSelector(session)

        # Read projections
        self.linkages = LinkageRegistry(self.fulfillment, self.config)
        self.ledger = InvoiceLedgerView(self.linkages, self.fulfillment)

        # Services
        self.valuation = ItemValuationService(
            self.repository, self.linkages, self.ledger, self.fulfillment,
        )
        self.linkage_service = LinkageService(
            self.repository,
            self.linkage_store,
            self.linkages,
            self.fulfillment,
            self.valuation,
        )
        self.balance = BalanceService(
            self.repository, self.fulfillment, self.fulfillment, self.fulfillment, self.config,
        )
        self.lifecycle = ProcessLifecycleService(
            self.repository,
            self.valuation,
            self.linkages,
            policy=policy,
            config=self.config,
            clock=self.clock,
        )


def build_processo_services(
    session: Session,
    actor_id: UUID,
    config: ProcessoConfig | None = None,
    clock: Clock | None = None,
) -> ProcessoOrchestrator:
    """Wire the processo services over ``session`` (single entrypoint for production)."""
    return ProcessoOrchestrator(session, actor_id, config=config, clock=clock)
