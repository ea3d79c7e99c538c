"""
Linkage registration (``licita_modules.processo.linkage_service``).

Binds a slice of an item to one contract, supply authorization or purchase
commitment of the same process, and keeps the item's derived figures in
step by recomputing it after every store, update and delete.

Failure modes
-------------
* ``ProcessNotFoundError`` / ``ItemNotFoundError`` / ``LinkageNotFoundError``
  for unknown ids or ids of another company.
* ``LinkageOwnershipError`` when the item or instrument belongs to another
  process.
* ``LinkageQuantityExceededError`` from the registry in strict mode.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from licita_engines.documents import InstrumentKind
from licita_kernel.domain.values import quantize
from licita_kernel.exceptions import (
    ItemNotFoundError,
    LinkageNotFoundError,
    LinkageOwnershipError,
    ProcessNotFoundError,
)
from licita_kernel.logging_config import LogContext, get_logger
from licita_modules.processo.linkage import LinkageRegistry
from licita_modules.processo.models import Linkage, ProcessItem
from licita_modules.processo.ports import (
    InstrumentProvider,
    LinkageStore,
    ProcessRepository,
)
from licita_modules.processo.valuation_service import ItemValuationService

logger = get_logger("modules.processo.linkage_service")


class LinkageService:
    """Store, update and delete linkages; each write recomputes the item."""

    def __init__(
        self,
        repository: ProcessRepository,
        store: LinkageStore,
        registry: LinkageRegistry,
        instruments: InstrumentProvider,
        valuation: ItemValuationService,
    ):
        self._repository = repository
        self._store = store
        self._registry = registry
        self._instruments = instruments
        self._valuation = valuation

    def _load_item(self, empresa_id: UUID, processo_id: UUID, item_id: UUID) -> ProcessItem:
        if self._repository.find_process(empresa_id, processo_id) is None:
            raise ProcessNotFoundError(processo_id, empresa_id)
        item = self._repository.find_item(empresa_id, item_id)
        if item is None:
            raise ItemNotFoundError(item_id, empresa_id)
        if item.processo_id != processo_id:
            raise LinkageOwnershipError(processo_id, "item", item_id)
        return item

    def _check_instrument(
        self, processo_id: UUID, kind: InstrumentKind, instrument_id: UUID,
    ) -> None:
        ids = {i.id for i in self._instruments.instruments_for_process(processo_id, kind)}
        if instrument_id not in ids:
            raise LinkageOwnershipError(processo_id, kind.value, instrument_id)

    def register(
        self,
        empresa_id: UUID,
        processo_id: UUID,
        item_id: UUID,
        kind: InstrumentKind,
        instrument_id: UUID,
        quantidade: Decimal,
        valor_unitario: Decimal,
        valor_total: Decimal | None = None,
        observacoes: str | None = None,
    ) -> tuple[Linkage, ProcessItem]:
        """
        Bind ``quantidade`` of an item to an instrument.

        Returns:
            The stored linkage and the recomputed item.
        """
        with LogContext.bind(empresa_id=empresa_id, processo_id=processo_id):
            item = self._load_item(empresa_id, processo_id, item_id)
            self._check_instrument(processo_id, kind, instrument_id)
            self._registry.check_quantity(item, kind, quantidade)

            linkage = self._store.save_linkage(Linkage.create(
                empresa_id=empresa_id,
                processo_id=processo_id,
                processo_item_id=item_id,
                kind=kind,
                instrument_id=instrument_id,
                quantidade=quantidade,
                valor_unitario=valor_unitario,
                valor_total=valor_total,
                observacoes=observacoes,
            ))
            logger.info("linkage_registered", extra={
                "linkage_id": str(linkage.id),
                "item_id": str(item_id),
                "kind": kind.value,
                "instrument_id": str(instrument_id),
                "quantidade": str(quantidade),
                "valor_total": str(linkage.valor_total),
            })
            return linkage, self._valuation.recompute_item(empresa_id, item_id)

    def update(
        self,
        empresa_id: UUID,
        linkage_id: UUID,
        quantidade: Decimal,
        valor_unitario: Decimal,
        valor_total: Decimal | None = None,
    ) -> tuple[Linkage, ProcessItem]:
        """Change quantity and values.  The linkage's own quantity does not count against it."""
        current = self._store.find_linkage(empresa_id, linkage_id)
        if current is None:
            raise LinkageNotFoundError(linkage_id)

        with LogContext.bind(empresa_id=empresa_id, processo_id=current.processo_id):
            item = self._load_item(empresa_id, current.processo_id, current.processo_item_id)
            self._registry.check_quantity(
                item, current.kind, quantidade, exclude_linkage_id=linkage_id,
            )
            if valor_total is None:
                valor_total = quantize(quantidade * valor_unitario)
            linkage = self._store.save_linkage(Linkage(
                id=current.id,
                empresa_id=current.empresa_id,
                processo_id=current.processo_id,
                processo_item_id=current.processo_item_id,
                kind=current.kind,
                instrument_id=current.instrument_id,
                quantidade=quantidade,
                valor_unitario=valor_unitario,
                valor_total=valor_total,
                observacoes=current.observacoes,
            ))
            logger.info("linkage_updated", extra={
                "linkage_id": str(linkage_id),
                "quantidade_anterior": str(current.quantidade),
                "quantidade": str(quantidade),
                "valor_total": str(valor_total),
            })
            return linkage, self._valuation.recompute_item(empresa_id, item.id)

    def remove(self, empresa_id: UUID, linkage_id: UUID) -> ProcessItem:
        """Delete a linkage and return the recomputed item."""
        current = self._store.find_linkage(empresa_id, linkage_id)
        if current is None:
            raise LinkageNotFoundError(linkage_id)

        with LogContext.bind(empresa_id=empresa_id, processo_id=current.processo_id):
            item = self._load_item(empresa_id, current.processo_id, current.processo_item_id)
            self._store.delete_linkage(linkage_id)
            logger.info("linkage_removed", extra={
                "linkage_id": str(linkage_id),
                "item_id": str(item.id),
            })
            return self._valuation.recompute_item(empresa_id, item.id)
