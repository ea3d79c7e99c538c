"""
SQLAlchemy adapters for the processo ports.

``SqlProcessRepository`` (process/item reads and flush-only writes) and
``SqlLinkageStore`` implement the write-side ports; ``SqlFulfillmentSelector``
implements the read-only linkage, invoice, instrument and quotation
providers.  None of them commits: wrap calls in ``session_scope()``.

Soft-deleted processes (``deleted_at`` set) and their items are invisible.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from licita_engines.documents import InstrumentKind
from licita_kernel.logging_config import get_logger
from licita_kernel.selectors.base import BaseSelector
from licita_kernel.services.base import BaseService
from licita_modules.processo.models import (
    Instrument,
    Invoice,
    Linkage,
    Process,
    ProcessItem,
    ProcessStatus,
    Quotation,
)
from licita_modules.processo.orm import (
    InstrumentoModel,
    NotaFiscalModel,
    OrcamentoModel,
    ProcessoItemModel,
    ProcessoModel,
    VinculoModel,
)

logger = get_logger("modules.processo.repository")


class SqlProcessRepository(BaseService):
    """
    ``ProcessRepository`` over SQLAlchemy.

    Guarantees:
        - Lookups are scoped by ``empresa_id``.
        - ``save_*`` inserts or updates and flushes; never commits.
    """

    def __init__(self, session: Session, actor_id: UUID):
        super().__init__(session)
        self._actor_id = actor_id

    def _visible_process(self, empresa_id: UUID, processo_id: UUID) -> ProcessoModel | None:
        return self.session.execute(
            select(ProcessoModel).where(
                ProcessoModel.id == processo_id,
                ProcessoModel.empresa_id == empresa_id,
                ProcessoModel.deleted_at.is_(None),
            )
        ).scalar_one_or_none()

    def find_process(self, empresa_id: UUID, processo_id: UUID) -> Process | None:
        model = self._visible_process(empresa_id, processo_id)
        return model.to_dto() if model is not None else None

    def find_item(self, empresa_id: UUID, item_id: UUID) -> ProcessItem | None:
        model = self.session.execute(
            select(ProcessoItemModel)
            .join(ProcessoModel, ProcessoModel.id == ProcessoItemModel.processo_id)
            .where(
                ProcessoItemModel.id == item_id,
                ProcessoItemModel.empresa_id == empresa_id,
                ProcessoModel.deleted_at.is_(None),
            )
        ).scalar_one_or_none()
        return model.to_dto() if model is not None else None

    def items_for(self, empresa_id: UUID, processo_id: UUID) -> list[ProcessItem]:
        if self._visible_process(empresa_id, processo_id) is None:
            return []
        models = self.session.execute(
            select(ProcessoItemModel)
            .where(
                ProcessoItemModel.processo_id == processo_id,
                ProcessoItemModel.empresa_id == empresa_id,
            )
            .order_by(ProcessoItemModel.numero_item)
        ).scalars().all()
        return [m.to_dto() for m in models]

    def processes_with_status(self, empresa_id: UUID, status: ProcessStatus) -> list[Process]:
        models = self.session.execute(
            select(ProcessoModel)
            .where(
                ProcessoModel.empresa_id == empresa_id,
                ProcessoModel.status == status.value,
                ProcessoModel.deleted_at.is_(None),
            )
            .order_by(ProcessoModel.data_hora_sessao_publica)
        ).scalars().all()
        return [m.to_dto() for m in models]

    def save_process(self, process: Process) -> Process:
        existing = self.session.get(ProcessoModel, process.id)
        if existing is None:
            self.session.add(ProcessoModel.from_dto(process, created_by_id=self._actor_id))
        else:
            existing.update_from_dto(process, updated_by_id=self._actor_id)
        self.session.flush()
        logger.debug("process_saved", extra={
            "processo_id": str(process.id),
            "status": process.status.value,
        })
        return process

    def save_item(self, item: ProcessItem) -> ProcessItem:
        existing = self.session.get(ProcessoItemModel, item.id)
        if existing is None:
            self.session.add(ProcessoItemModel.from_dto(item, created_by_id=self._actor_id))
        else:
            existing.update_from_dto(item, updated_by_id=self._actor_id)
        self.session.flush()
        return item

    def soft_delete_process(
        self, empresa_id: UUID, processo_id: UUID, deleted_at: datetime,
    ) -> bool:
        """Hide a process and its items.  Returns False when nothing was visible."""
        model = self._visible_process(empresa_id, processo_id)
        if model is None:
            return False
        model.deleted_at = deleted_at
        model.updated_by_id = self._actor_id
        self.session.flush()
        logger.info("process_soft_deleted", extra={"processo_id": str(processo_id)})
        return True

    def add_instrument(self, instrument: Instrument) -> Instrument:
        self.session.add(InstrumentoModel.from_dto(instrument, created_by_id=self._actor_id))
        self.session.flush()
        return instrument

    def add_invoice(self, invoice: Invoice) -> Invoice:
        self.session.add(NotaFiscalModel.from_dto(invoice, created_by_id=self._actor_id))
        self.session.flush()
        return invoice

    def add_quotation(self, quotation: Quotation) -> Quotation:
        self.session.add(OrcamentoModel.from_dto(quotation, created_by_id=self._actor_id))
        self.session.flush()
        return quotation


class SqlLinkageStore(BaseService):
    """``LinkageStore`` over SQLAlchemy.  Flush-only."""

    def __init__(self, session: Session, actor_id: UUID):
        super().__init__(session)
        self._actor_id = actor_id

    def find_linkage(self, empresa_id: UUID, linkage_id: UUID) -> Linkage | None:
        model = self.session.get(VinculoModel, linkage_id)
        if model is None or model.empresa_id != empresa_id:
            return None
        return model.to_dto()

    def save_linkage(self, linkage: Linkage) -> Linkage:
        existing = self.session.get(VinculoModel, linkage.id)
        if existing is None:
            last = self.session.execute(
                select(func.max(VinculoModel.sequencia)).where(
                    VinculoModel.processo_item_id == linkage.processo_item_id,
                )
            ).scalar()
            self.session.add(VinculoModel.from_dto(
                linkage, created_by_id=self._actor_id, sequencia=(last or 0) + 1,
            ))
        else:
            existing.update_from_dto(linkage, updated_by_id=self._actor_id)
        self.session.flush()
        return linkage

    def delete_linkage(self, linkage_id: UUID) -> None:
        model = self.session.get(VinculoModel, linkage_id)
        if model is not None:
            self.session.delete(model)
            self.session.flush()


class SqlFulfillmentSelector(BaseSelector):
    """
    Read side of the fulfillment documents.

    Implements ``LinkageProvider``, ``InvoiceProvider``,
    ``InstrumentProvider`` and ``QuotationProvider``.
    """

    def linkages_for_item(self, item_id: UUID) -> list[Linkage]:
        models = self.session.execute(
            select(VinculoModel)
            .where(VinculoModel.processo_item_id == item_id)
            .order_by(VinculoModel.sequencia)
        ).scalars().all()
        return [m.to_dto() for m in models]

    def invoices_for_instrument(self, kind: InstrumentKind, instrument_id: UUID) -> list[Invoice]:
        models = self.session.execute(
            select(NotaFiscalModel)
            .where(
                NotaFiscalModel.instrument_kind == kind.value,
                NotaFiscalModel.instrument_id == instrument_id,
            )
            .order_by(NotaFiscalModel.numero)
        ).scalars().all()
        return [m.to_dto() for m in models]

    def invoices_for_process(self, processo_id: UUID) -> list[Invoice]:
        models = self.session.execute(
            select(NotaFiscalModel)
            .where(NotaFiscalModel.processo_id == processo_id)
            .order_by(NotaFiscalModel.numero)
        ).scalars().all()
        return [m.to_dto() for m in models]

    def instruments_for_process(
        self, processo_id: UUID, kind: InstrumentKind | None = None,
    ) -> list[Instrument]:
        stmt = select(InstrumentoModel).where(InstrumentoModel.processo_id == processo_id)
        if kind is not None:
            stmt = stmt.where(InstrumentoModel.kind == kind.value)
        models = self.session.execute(stmt.order_by(InstrumentoModel.numero)).scalars().all()
        return [m.to_dto() for m in models]

    def chosen_quotation(self, item_id: UUID) -> Quotation | None:
        model = self.session.execute(
            select(OrcamentoModel)
            .where(
                OrcamentoModel.processo_item_id == item_id,
                OrcamentoModel.fornecedor_escolhido.is_(True),
            )
            .limit(1)
        ).scalar_one_or_none()
        return model.to_dto() if model is not None else None
