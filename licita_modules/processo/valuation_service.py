"""
Item valuation service (``licita_modules.processo.valuation_service``).

Responsibility
--------------
Assemble the immutable ``ValuationSnapshot`` of an item (item, parent
payment date, linkages, reachable invoices, chosen quotation), hand it to
the pure ``ItemValuationEngine`` and, when asked, persist the result.
This is the single recomputation entry point: callers invoke it at each
mutation site instead of relying on save observers.

Invariants enforced
-------------------
* Derived item fields are written only here (``ProcessItem.with_valuation``).
* ``revalue`` and ``revalue_all`` never persist; ``recompute_*`` do.
* Each item is valued from its own data only, so ``revalue_all`` is
  order-independent.

Failure modes
-------------
* ``ItemNotFoundError`` / ``ProcessNotFoundError`` when a lookup misses or
  belongs to another company.  Valuation itself never fails.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from uuid import UUID

from licita_engines.valuation import ItemValuationEngine, ValuationSnapshot
from licita_kernel.exceptions import ItemNotFoundError, ProcessNotFoundError
from licita_kernel.logging_config import get_logger
from licita_modules.processo.invoices import InvoiceLedgerView
from licita_modules.processo.linkage import LinkageRegistry
from licita_modules.processo.models import ItemStatus, Process, ProcessItem
from licita_modules.processo.ports import ProcessRepository, QuotationProvider

logger = get_logger("modules.processo.valuation_service")


class ItemValuationService:
    """Snapshot assembly, valuation and persistence of item figures."""

    def __init__(
        self,
        repository: ProcessRepository,
        linkages: LinkageRegistry,
        ledger: InvoiceLedgerView,
        quotations: QuotationProvider,
        engine: ItemValuationEngine | None = None,
    ):
        self._repository = repository
        self._linkages = linkages
        self._ledger = ledger
        self._quotations = quotations
        self._engine = engine or ItemValuationEngine()

    def snapshot_for(self, process: Process, item: ProcessItem) -> ValuationSnapshot:
        quotation = self._quotations.chosen_quotation(item.id)
        return ValuationSnapshot(
            item_id=item.id,
            quantidade=item.quantidade,
            awarded=item.is_vencido,
            valor_arrematado=item.valor_arrematado,
            valor_negociado=item.valor_negociado,
            valor_final_sessao=item.valor_final_sessao,
            valor_estimado=item.valor_estimado,
            linkages=tuple(link.as_linked_amount() for link in self._linkages.links_for(item.id)),
            invoices=self._ledger.invoice_lines(item.id),
            payment_received_on=process.data_recebimento_pagamento,
            unit_cost=quotation.unit_cost if quotation is not None else None,
        )

    def revalue(self, process: Process, item: ProcessItem) -> ProcessItem:
        """Return ``item`` with freshly computed figures.  Nothing is saved."""
        valuation = self._engine.value(snapshot=self.snapshot_for(process, item))
        return item.with_valuation(valuation)

    def revalue_all(
        self, process: Process, items: Iterable[ProcessItem],
    ) -> tuple[ProcessItem, ...]:
        return tuple(self.revalue(process, item) for item in items)

    def recompute_item(self, empresa_id: UUID, item_id: UUID) -> ProcessItem:
        """Revalue one item and persist it."""
        item = self._repository.find_item(empresa_id, item_id)
        if item is None:
            raise ItemNotFoundError(item_id, empresa_id)
        process = self._repository.find_process(empresa_id, item.processo_id)
        if process is None:
            raise ProcessNotFoundError(item.processo_id, empresa_id)

        updated = self._repository.save_item(self.revalue(process, item))
        logger.info("item_recomputed", extra={
            "item_id": str(item.id),
            "processo_id": str(process.id),
            **updated.valuation.to_dict(),
        })
        return updated

    def recompute_process(
        self,
        empresa_id: UUID,
        processo_id: UUID,
        statuses: Collection[ItemStatus] | None = None,
    ) -> tuple[ProcessItem, ...]:
        """Revalue and persist every item of a process, optionally only some statuses."""
        process = self._repository.find_process(empresa_id, processo_id)
        if process is None:
            raise ProcessNotFoundError(processo_id, empresa_id)

        items = self._repository.items_for(empresa_id, processo_id)
        if statuses is not None:
            items = [item for item in items if item.status_item in statuses]

        updated = tuple(
            self._repository.save_item(item) for item in self.revalue_all(process, items)
        )
        logger.info("process_items_recomputed", extra={
            "processo_id": str(processo_id),
            "item_count": len(updated),
        })
        return updated
