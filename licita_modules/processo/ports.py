"""
Collaborator contracts for the processo module.

The services depend only on these protocols.  ``repository.py`` provides
the SQLAlchemy implementations; tests supply in-memory ones.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from licita_engines.documents import InstrumentKind
from licita_modules.processo.models import (
    Instrument,
    Invoice,
    Linkage,
    Process,
    ProcessItem,
    ProcessStatus,
    Quotation,
    TransitionDecision,
)


class ProcessRepository(Protocol):
    """Reads and writes processes and items.  Lookups are scoped by company."""

    def find_process(self, empresa_id: UUID, processo_id: UUID) -> Process | None: ...

    def find_item(self, empresa_id: UUID, item_id: UUID) -> ProcessItem | None: ...

    def items_for(self, empresa_id: UUID, processo_id: UUID) -> Sequence[ProcessItem]: ...

    def processes_with_status(
        self, empresa_id: UUID, status: ProcessStatus,
    ) -> Sequence[Process]: ...

    def save_process(self, process: Process) -> Process: ...

    def save_item(self, item: ProcessItem) -> ProcessItem: ...


class LinkageProvider(Protocol):
    """Linkages of an item, in creation order."""

    def linkages_for_item(self, item_id: UUID) -> Sequence[Linkage]: ...


class LinkageStore(Protocol):
    """Writes linkages.  Lookups are scoped by company."""

    def find_linkage(self, empresa_id: UUID, linkage_id: UUID) -> Linkage | None: ...

    def save_linkage(self, linkage: Linkage) -> Linkage: ...

    def delete_linkage(self, linkage_id: UUID) -> None: ...


class InvoiceProvider(Protocol):
    def invoices_for_instrument(
        self, kind: InstrumentKind, instrument_id: UUID,
    ) -> Sequence[Invoice]: ...

    def invoices_for_process(self, processo_id: UUID) -> Sequence[Invoice]: ...


class InstrumentProvider(Protocol):
    def instruments_for_process(
        self, processo_id: UUID, kind: InstrumentKind | None = None,
    ) -> Sequence[Instrument]: ...


class QuotationProvider(Protocol):
    def chosen_quotation(self, item_id: UUID) -> Quotation | None: ...


class StatusPolicy(Protocol):
    """Opaque authority consulted before lost/archive style transitions."""

    def can_change_status(
        self,
        process: Process,
        items: Sequence[ProcessItem],
        target: ProcessStatus,
    ) -> TransitionDecision: ...
