"""
licita_engines.documents -- Fulfillment document value types.

Responsibility:
    Closed enumerations and frozen line types for the documents the
    engines read: instruments an item is linked to (contract, supply
    authorization, purchase commitment) and the invoices issued against
    them.  Also hosts ``sum_invoices``, the single invoice-summing rule
    shared by the ledger view and the valuation engine.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imported by every engine and by ``licita_modules``.

Invariants enforced:
    - Decimal-only arithmetic; sums are rounded half-up to 2 places.
    - Settlement filtering is exact: ``None`` means every state,
      cancelled invoices included.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID

from licita_kernel.domain.values import ZERO, quantize


class InstrumentKind(str, Enum):
    """Fulfillment instrument a linkage or invoice can target."""

    CONTRATO = "contrato"
    AUTORIZACAO_FORNECIMENTO = "autorizacao_fornecimento"
    EMPENHO = "empenho"


class InvoiceDirection(str, Enum):
    """Invoice ``tipo``: incoming cost or outgoing revenue."""

    ENTRADA = "entrada"
    SAIDA = "saida"


class InvoiceSettlement(str, Enum):
    """Invoice ``situacao``."""

    PENDENTE = "pendente"
    PAGA = "paga"
    CANCELADA = "cancelada"


@dataclass(frozen=True)
class LinkedAmount:
    """The slice of an item bound to one instrument."""

    kind: InstrumentKind
    instrument_id: UUID
    quantidade: Decimal
    valor_total: Decimal


@dataclass(frozen=True)
class InvoiceLine:
    """One invoice as the engines see it."""

    id: UUID
    direction: InvoiceDirection
    settlement: InvoiceSettlement
    valor: Decimal
    instrument_kind: InstrumentKind | None = None
    instrument_id: UUID | None = None
    processo_item_id: UUID | None = None


@dataclass(frozen=True)
class InstrumentTotal:
    """A process-level instrument and its face value."""

    id: UUID
    kind: InstrumentKind
    valor_total: Decimal
    numero: str = ""


def sum_invoices(
    invoices: Iterable[InvoiceLine],
    direction: InvoiceDirection,
    settlement: InvoiceSettlement | None = None,
) -> Decimal:
    """Sum invoice values matching ``direction`` and, when given, ``settlement``."""
    total = ZERO
    for invoice in invoices:
        if invoice.direction != direction:
            continue
        if settlement is not None and invoice.settlement != settlement:
            continue
        total += invoice.valor
    return quantize(total)


def sum_linked(
    linkages: Iterable[LinkedAmount],
    kind: InstrumentKind | None = None,
) -> Decimal:
    """Sum linkage totals, optionally only those targeting ``kind``."""
    total = ZERO
    for link in linkages:
        if kind is None or link.kind == kind:
            total += link.valor_total
    return quantize(total)
