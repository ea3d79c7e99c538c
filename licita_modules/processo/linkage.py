"""
Linkage Registry (``licita_modules.processo.linkage``).

Responsibility
--------------
Read projection over the associations between process items and the
fulfillment instruments (contracts, supply authorizations, purchase
commitments) that cover them, plus the quantity checks a caller runs
before registering a new linkage.

Architecture position
---------------------
**Modules layer** -- reads through a ``LinkageProvider``; never writes.

Invariants enforced
-------------------
* ``links_for`` preserves the provider's creation order.
* Quantity availability is tracked per instrument kind: contracts,
  supply authorizations and commitments may each cover the full item
  quantity independently.
* With ``strict_linkage_quantity`` the registry refuses a quantity that
  exceeds what is still available for that kind; otherwise it only logs.

Failure modes
-------------
* ``LinkageQuantityExceededError`` from ``check_quantity`` in strict mode.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from licita_engines.documents import InstrumentKind
from licita_kernel.domain.values import ZERO
from licita_kernel.exceptions import LinkageQuantityExceededError
from licita_kernel.logging_config import get_logger
from licita_modules.processo.config import ProcessoConfig
from licita_modules.processo.models import Linkage, ProcessItem
from licita_modules.processo.ports import LinkageProvider

logger = get_logger("modules.processo.linkage")


class LinkageRegistry:
    """Item-to-instrument linkages and linked quantities."""

    def __init__(self, provider: LinkageProvider, config: ProcessoConfig | None = None):
        self._provider = provider
        self._config = config or ProcessoConfig.with_defaults()

    def links_for(self, item_id: UUID) -> tuple[Linkage, ...]:
        return tuple(self._provider.linkages_for_item(item_id))

    def links_by_kind(self, item_id: UUID, kind: InstrumentKind) -> tuple[Linkage, ...]:
        return tuple(link for link in self.links_for(item_id) if link.kind == kind)

    def instruments_for(self, item_id: UUID) -> tuple[tuple[InstrumentKind, UUID], ...]:
        """Distinct instruments reached by the item's linkages, first-seen order."""
        seen: list[tuple[InstrumentKind, UUID]] = []
        for link in self.links_for(item_id):
            key = (link.kind, link.instrument_id)
            if key not in seen:
                seen.append(key)
        return tuple(seen)

    def linked_quantity(
        self,
        item_id: UUID,
        kind: InstrumentKind | None = None,
        exclude_linkage_id: UUID | None = None,
    ) -> Decimal:
        total = ZERO
        for link in self.links_for(item_id):
            if exclude_linkage_id is not None and link.id == exclude_linkage_id:
                continue
            if kind is None or link.kind == kind:
                total += link.quantidade
        return total

    def available_quantity(
        self,
        item: ProcessItem,
        kind: InstrumentKind,
        exclude_linkage_id: UUID | None = None,
    ) -> Decimal:
        """Quantity of ``item`` not yet bound to instruments of ``kind``."""
        return item.quantidade - self.linked_quantity(item.id, kind, exclude_linkage_id)

    def undelivered_quantity(self, item: ProcessItem) -> Decimal:
        """Quantity not covered by any single instrument kind; never negative."""
        links = self.links_for(item.id)
        covered = ZERO
        for kind in InstrumentKind:
            kind_total = sum((link.quantidade for link in links if link.kind == kind), ZERO)
            covered = max(covered, kind_total)
        return max(ZERO, item.quantidade - covered)

    def check_quantity(
        self,
        item: ProcessItem,
        kind: InstrumentKind,
        quantidade: Decimal,
        exclude_linkage_id: UUID | None = None,
    ) -> Decimal:
        """
        Verify ``quantidade`` fits in what is still available for ``kind``.

        Pass ``exclude_linkage_id`` when re-validating an edited linkage so
        its current quantity does not count against itself.

        Returns:
            The available quantity before the new linkage.

        Raises:
            LinkageQuantityExceededError: strict mode and quantity too large.
        """
        available = self.available_quantity(item, kind, exclude_linkage_id)
        if quantidade <= available:
            return available

        extra = {
            "item_id": str(item.id),
            "kind": kind.value,
            "requested": str(quantidade),
            "available": str(available),
            "item_quantity": str(item.quantidade),
        }
        if self._config.strict_linkage_quantity:
            logger.warning("linkage_quantity_rejected", extra=extra)
            raise LinkageQuantityExceededError(
                item.id, kind.value, str(quantidade), str(available),
            )
        logger.warning("linkage_quantity_exceeded", extra=extra)
        return available
