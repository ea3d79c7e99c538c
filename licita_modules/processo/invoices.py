"""
Invoice Ledger View (``licita_modules.processo.invoices``).

Responsibility
--------------
Read-only aggregation of the invoices reachable from an item: walk the
item's linkages to their instruments and collect the invoices attached
to each instrument, split by direction and settlement state.

Invariants enforced
-------------------
* Each instrument is visited once, however many linkages reach it, and
  each invoice is counted once.
* Invoices not attached to any instrument are unreachable from items.
* Cancelled outgoing invoices still count toward the unfiltered total.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from licita_engines.documents import (
    InvoiceDirection,
    InvoiceLine,
    InvoiceSettlement,
    sum_invoices,
)
from licita_kernel.logging_config import get_logger
from licita_modules.processo.linkage import LinkageRegistry
from licita_modules.processo.models import Invoice
from licita_modules.processo.ports import InvoiceProvider

logger = get_logger("modules.processo.invoices")


@dataclass(frozen=True)
class DirectionTotals:
    pendente: Decimal
    paga: Decimal
    cancelada: Decimal
    total: Decimal


@dataclass(frozen=True)
class LedgerTotals:
    """Invoice totals of one item split by direction and settlement."""
    item_id: UUID
    saida: DirectionTotals
    entrada: DirectionTotals
    quantidade_notas: int


def _direction_totals(lines: tuple[InvoiceLine, ...], direction: InvoiceDirection) -> DirectionTotals:
    return DirectionTotals(
        pendente=sum_invoices(lines, direction, InvoiceSettlement.PENDENTE),
        paga=sum_invoices(lines, direction, InvoiceSettlement.PAGA),
        cancelada=sum_invoices(lines, direction, InvoiceSettlement.CANCELADA),
        total=sum_invoices(lines, direction),
    )


class InvoiceLedgerView:
    """Invoices reachable through an item's linkages."""

    def __init__(self, linkages: LinkageRegistry, provider: InvoiceProvider):
        self._linkages = linkages
        self._provider = provider

    def reachable_invoices(self, item_id: UUID) -> tuple[Invoice, ...]:
        invoices: list[Invoice] = []
        seen: set[UUID] = set()
        for kind, instrument_id in self._linkages.instruments_for(item_id):
            for invoice in self._provider.invoices_for_instrument(kind, instrument_id):
                if invoice.id in seen:
                    continue
                seen.add(invoice.id)
                invoices.append(invoice)
        return tuple(invoices)

    def invoice_lines(self, item_id: UUID) -> tuple[InvoiceLine, ...]:
        return tuple(invoice.as_line() for invoice in self.reachable_invoices(item_id))

    def invoices_for(
        self,
        item_id: UUID,
        direction: InvoiceDirection,
        settlement: InvoiceSettlement | None = None,
    ) -> Decimal:
        """Sum of reachable invoices matching ``direction`` and ``settlement``."""
        return sum_invoices(self.invoice_lines(item_id), direction, settlement)

    def totals_for(self, item_id: UUID) -> LedgerTotals:
        lines = self.invoice_lines(item_id)
        totals = LedgerTotals(
            item_id=item_id,
            saida=_direction_totals(lines, InvoiceDirection.SAIDA),
            entrada=_direction_totals(lines, InvoiceDirection.ENTRADA),
            quantidade_notas=len(lines),
        )
        logger.debug("item_ledger_totals", extra={
            "item_id": str(item_id),
            "saida_total": str(totals.saida.total),
            "entrada_total": str(totals.entrada.total),
            "quantidade_notas": totals.quantidade_notas,
        })
        return totals
