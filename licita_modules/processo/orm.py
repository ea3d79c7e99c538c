"""
SQLAlchemy ORM persistence models for the Processo module.

Responsibility
--------------
Database-backed persistence for processes, their items, item-to-instrument
linkages, the instruments themselves (contracts, supply authorizations,
purchase commitments), invoices and supplier quotations.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``repository.py``.  Inherits
from ``TrackedBase`` (kernel db layer).  Services never see these classes;
they receive the frozen DTOs from ``models.py`` via ``to_dto()``.

Invariants enforced
-------------------
* All monetary fields and quantities use ``Decimal`` (Numeric(18,4)) --
  NEVER float.
* Enum fields stored as String(50) for readability and portability.
* Derived item figures are stored in their own columns and only written
  from an ``ItemValuation``.
* ``ProcessoModel.deleted_at`` marks soft deletion; deleted processes are
  invisible to the repository.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from licita_kernel.db.base import TrackedBase

# ---------------------------------------------------------------------------
# ProcessoModel
# ---------------------------------------------------------------------------


class ProcessoModel(TrackedBase):
    """
    A bidding process.

    Maps to the ``Process`` DTO in ``licita_modules.processo.models``.
    """

    __tablename__ = "processos"

    __table_args__ = (
        Index("idx_processo_empresa_status", "empresa_id", "status"),
        Index("idx_processo_sessao", "data_hora_sessao_publica"),
    )

    empresa_id: Mapped[UUID] = mapped_column(nullable=False)
    modalidade: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    numero_modalidade: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    orgao_id: Mapped[UUID | None]
    setor_id: Mapped[UUID | None]
    objeto_resumido: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    data_hora_sessao_publica: Mapped[datetime | None]
    validade_proposta_inicio: Mapped[date | None]
    validade_proposta_fim: Mapped[date | None]
    forma_entrega: Mapped[str | None] = mapped_column(String(100), nullable=True)
    prazo_entrega: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="participacao")
    status_participacao: Mapped[str] = mapped_column(String(50), nullable=False, default="normal")
    data_recebimento_pagamento: Mapped[date | None]
    data_arquivamento: Mapped[datetime | None]
    motivo_perda: Mapped[str | None] = mapped_column(Text, nullable=True)
    observacoes: Mapped[str | None] = mapped_column(Text, nullable=True)
    deleted_at: Mapped[datetime | None]

    itens: Mapped[list["ProcessoItemModel"]] = relationship(
        "ProcessoItemModel",
        back_populates="processo",
        cascade="all",
        lazy="selectin",
        order_by="ProcessoItemModel.numero_item",
    )

    def to_dto(self):
        from licita_modules.processo.models import ParticipationStatus, Process, ProcessStatus

        return Process(
            id=self.id,
            empresa_id=self.empresa_id,
            modalidade=self.modalidade,
            numero_modalidade=self.numero_modalidade,
            orgao_id=self.orgao_id,
            setor_id=self.setor_id,
            objeto_resumido=self.objeto_resumido,
            data_hora_sessao_publica=self.data_hora_sessao_publica,
            validade_proposta_inicio=self.validade_proposta_inicio,
            validade_proposta_fim=self.validade_proposta_fim,
            forma_entrega=self.forma_entrega,
            prazo_entrega=self.prazo_entrega,
            status=ProcessStatus(self.status),
            status_participacao=ParticipationStatus(self.status_participacao),
            data_recebimento_pagamento=self.data_recebimento_pagamento,
            data_arquivamento=self.data_arquivamento,
            motivo_perda=self.motivo_perda,
            observacoes=self.observacoes,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "ProcessoModel":
        model = cls(id=dto.id, empresa_id=dto.empresa_id, created_by_id=created_by_id)
        model.update_from_dto(dto)
        return model

    def update_from_dto(self, dto, updated_by_id: UUID | None = None) -> None:
        self.modalidade = dto.modalidade
        self.numero_modalidade = dto.numero_modalidade
        self.orgao_id = dto.orgao_id
        self.setor_id = dto.setor_id
        self.objeto_resumido = dto.objeto_resumido
        self.data_hora_sessao_publica = dto.data_hora_sessao_publica
        self.validade_proposta_inicio = dto.validade_proposta_inicio
        self.validade_proposta_fim = dto.validade_proposta_fim
        self.forma_entrega = dto.forma_entrega
        self.prazo_entrega = dto.prazo_entrega
        self.status = dto.status.value
        self.status_participacao = dto.status_participacao.value
        self.data_recebimento_pagamento = dto.data_recebimento_pagamento
        self.data_arquivamento = dto.data_arquivamento
        self.motivo_perda = dto.motivo_perda
        self.observacoes = dto.observacoes
        if updated_by_id is not None:
            self.updated_by_id = updated_by_id

    def __repr__(self) -> str:
        return f"<ProcessoModel {self.numero_modalidade} [{self.status}]>"


# ---------------------------------------------------------------------------
# ProcessoItemModel
# ---------------------------------------------------------------------------


class ProcessoItemModel(TrackedBase):
    """
    A line item of a process, with its stored valuation.

    Maps to the ``ProcessItem`` DTO; the eight derived columns map to its
    ``ItemValuation``.
    """

    __tablename__ = "processo_itens"

    __table_args__ = (
        Index("idx_processo_item_processo", "processo_id", "numero_item"),
        Index("idx_processo_item_empresa", "empresa_id"),
    )

    empresa_id: Mapped[UUID] = mapped_column(nullable=False)
    processo_id: Mapped[UUID] = mapped_column(ForeignKey("processos.id"), nullable=False)
    numero_item: Mapped[int] = mapped_column(Integer, nullable=False)
    quantidade: Mapped[Decimal] = mapped_column(nullable=False)
    unidade: Mapped[str] = mapped_column(String(20), nullable=False, default="UN")
    especificacao_tecnica: Mapped[str] = mapped_column(Text, nullable=False, default="")
    valor_estimado: Mapped[Decimal | None]
    valor_minimo_venda: Mapped[Decimal | None]
    valor_final_sessao: Mapped[Decimal | None]
    valor_negociado: Mapped[Decimal | None]
    valor_arrematado: Mapped[Decimal | None]
    status_item: Mapped[str] = mapped_column(String(50), nullable=False, default="pendente")
    situacao_final: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Derived by the valuation engine
    valor_vencido: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    valor_empenhado: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    valor_faturado: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    valor_pago: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    saldo_aberto: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    custo_total: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    lucro_bruto: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    lucro_liquido: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    processo: Mapped["ProcessoModel"] = relationship(
        "ProcessoModel",
        back_populates="itens",
    )

    def to_dto(self):
        from licita_engines.valuation import ItemValuation
        from licita_modules.processo.models import FinalSituation, ItemStatus, ProcessItem

        return ProcessItem(
            id=self.id,
            empresa_id=self.empresa_id,
            processo_id=self.processo_id,
            numero_item=self.numero_item,
            quantidade=self.quantidade,
            unidade=self.unidade,
            especificacao_tecnica=self.especificacao_tecnica,
            valor_estimado=self.valor_estimado,
            valor_minimo_venda=self.valor_minimo_venda,
            valor_final_sessao=self.valor_final_sessao,
            valor_negociado=self.valor_negociado,
            valor_arrematado=self.valor_arrematado,
            status_item=ItemStatus(self.status_item),
            situacao_final=FinalSituation(self.situacao_final) if self.situacao_final else None,
            valuation=ItemValuation(
                valor_vencido=self.valor_vencido,
                valor_empenhado=self.valor_empenhado,
                valor_faturado=self.valor_faturado,
                valor_pago=self.valor_pago,
                saldo_aberto=self.saldo_aberto,
                custo_total=self.custo_total,
                lucro_bruto=self.lucro_bruto,
                lucro_liquido=self.lucro_liquido,
            ),
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "ProcessoItemModel":
        model = cls(
            id=dto.id,
            empresa_id=dto.empresa_id,
            processo_id=dto.processo_id,
            created_by_id=created_by_id,
        )
        model.update_from_dto(dto)
        return model

    def update_from_dto(self, dto, updated_by_id: UUID | None = None) -> None:
        self.numero_item = dto.numero_item
        self.quantidade = dto.quantidade
        self.unidade = dto.unidade
        self.especificacao_tecnica = dto.especificacao_tecnica
        self.valor_estimado = dto.valor_estimado
        self.valor_minimo_venda = dto.valor_minimo_venda
        self.valor_final_sessao = dto.valor_final_sessao
        self.valor_negociado = dto.valor_negociado
        self.valor_arrematado = dto.valor_arrematado
        self.status_item = dto.status_item.value
        self.situacao_final = dto.situacao_final.value if dto.situacao_final else None

        valuation = dto.valuation
        self.valor_vencido = valuation.valor_vencido
        self.valor_empenhado = valuation.valor_empenhado
        self.valor_faturado = valuation.valor_faturado
        self.valor_pago = valuation.valor_pago
        self.saldo_aberto = valuation.saldo_aberto
        self.custo_total = valuation.custo_total
        self.lucro_bruto = valuation.lucro_bruto
        self.lucro_liquido = valuation.lucro_liquido
        if updated_by_id is not None:
            self.updated_by_id = updated_by_id

    def __repr__(self) -> str:
        return f"<ProcessoItemModel #{self.numero_item} [{self.status_item}]>"


# ---------------------------------------------------------------------------
# InstrumentoModel
# ---------------------------------------------------------------------------


class InstrumentoModel(TrackedBase):
    """
    A contract, supply authorization or purchase commitment of a process.

    One table for the three kinds keeps linkages and invoices pointing at
    a single foreign key; ``kind`` tells them apart.
    """

    __tablename__ = "processo_instrumentos"

    __table_args__ = (
        Index("idx_instrumento_processo_kind", "processo_id", "kind"),
    )

    empresa_id: Mapped[UUID] = mapped_column(nullable=False)
    processo_id: Mapped[UUID] = mapped_column(ForeignKey("processos.id"), nullable=False)
    kind: Mapped[str] = mapped_column(String(50), nullable=False)
    numero: Mapped[str] = mapped_column(String(50), nullable=False)
    valor_total: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    data: Mapped[date | None]

    def to_dto(self):
        from licita_engines.documents import InstrumentKind
        from licita_modules.processo.models import Instrument

        return Instrument(
            id=self.id,
            empresa_id=self.empresa_id,
            processo_id=self.processo_id,
            kind=InstrumentKind(self.kind),
            numero=self.numero,
            valor_total=self.valor_total,
            data=self.data,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "InstrumentoModel":
        return cls(
            id=dto.id,
            empresa_id=dto.empresa_id,
            processo_id=dto.processo_id,
            kind=dto.kind.value,
            numero=dto.numero,
            valor_total=dto.valor_total,
            data=dto.data,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<InstrumentoModel {self.kind} {self.numero}>"


# ---------------------------------------------------------------------------
# VinculoModel
# ---------------------------------------------------------------------------


class VinculoModel(TrackedBase):
    """
    A slice of an item bound to one instrument.

    Maps to the ``Linkage`` DTO.
    """

    __tablename__ = "processo_item_vinculos"

    __table_args__ = (
        Index("idx_vinculo_item", "processo_item_id"),
        Index("idx_vinculo_instrumento", "instrument_id"),
    )

    empresa_id: Mapped[UUID] = mapped_column(nullable=False)
    processo_id: Mapped[UUID] = mapped_column(ForeignKey("processos.id"), nullable=False)
    processo_item_id: Mapped[UUID] = mapped_column(
        ForeignKey("processo_itens.id"), nullable=False,
    )
    kind: Mapped[str] = mapped_column(String(50), nullable=False)
    instrument_id: Mapped[UUID] = mapped_column(
        ForeignKey("processo_instrumentos.id"), nullable=False,
    )
    quantidade: Mapped[Decimal] = mapped_column(nullable=False)
    valor_unitario: Mapped[Decimal] = mapped_column(nullable=False)
    valor_total: Mapped[Decimal] = mapped_column(nullable=False)
    observacoes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Creation order; created_at has one-second resolution on some backends.
    sequencia: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def to_dto(self):
        from licita_engines.documents import InstrumentKind
        from licita_modules.processo.models import Linkage

        return Linkage(
            id=self.id,
            empresa_id=self.empresa_id,
            processo_id=self.processo_id,
            processo_item_id=self.processo_item_id,
            kind=InstrumentKind(self.kind),
            instrument_id=self.instrument_id,
            quantidade=self.quantidade,
            valor_unitario=self.valor_unitario,
            valor_total=self.valor_total,
            observacoes=self.observacoes,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID, sequencia: int = 0) -> "VinculoModel":
        model = cls(
            id=dto.id,
            empresa_id=dto.empresa_id,
            processo_id=dto.processo_id,
            processo_item_id=dto.processo_item_id,
            kind=dto.kind.value,
            instrument_id=dto.instrument_id,
            sequencia=sequencia,
            created_by_id=created_by_id,
        )
        model.update_from_dto(dto)
        return model

    def update_from_dto(self, dto, updated_by_id: UUID | None = None) -> None:
        self.quantidade = dto.quantidade
        self.valor_unitario = dto.valor_unitario
        self.valor_total = dto.valor_total
        self.observacoes = dto.observacoes
        if updated_by_id is not None:
            self.updated_by_id = updated_by_id

    def __repr__(self) -> str:
        return f"<VinculoModel {self.kind} qty={self.quantidade}>"


# ---------------------------------------------------------------------------
# NotaFiscalModel
# ---------------------------------------------------------------------------


class NotaFiscalModel(TrackedBase):
    """An invoice.  Written by the fiscal workflows; read-only here."""

    __tablename__ = "notas_fiscais"

    __table_args__ = (
        Index("idx_nota_fiscal_processo", "processo_id"),
        Index("idx_nota_fiscal_instrumento", "instrument_kind", "instrument_id"),
    )

    empresa_id: Mapped[UUID] = mapped_column(nullable=False)
    processo_id: Mapped[UUID] = mapped_column(ForeignKey("processos.id"), nullable=False)
    numero: Mapped[str] = mapped_column(String(50), nullable=False)
    tipo: Mapped[str] = mapped_column(String(50), nullable=False)
    situacao: Mapped[str] = mapped_column(String(50), nullable=False, default="pendente")
    valor: Mapped[Decimal] = mapped_column(nullable=False)
    instrument_kind: Mapped[str | None] = mapped_column(String(50), nullable=True)
    instrument_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("processo_instrumentos.id"), nullable=True,
    )
    processo_item_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("processo_itens.id"), nullable=True,
    )
    data_emissao: Mapped[date | None]

    def to_dto(self):
        from licita_engines.documents import InstrumentKind, InvoiceDirection, InvoiceSettlement
        from licita_modules.processo.models import Invoice

        return Invoice(
            id=self.id,
            empresa_id=self.empresa_id,
            processo_id=self.processo_id,
            numero=self.numero,
            tipo=InvoiceDirection(self.tipo),
            situacao=InvoiceSettlement(self.situacao),
            valor=self.valor,
            instrument_kind=InstrumentKind(self.instrument_kind) if self.instrument_kind else None,
            instrument_id=self.instrument_id,
            processo_item_id=self.processo_item_id,
            data_emissao=self.data_emissao,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "NotaFiscalModel":
        return cls(
            id=dto.id,
            empresa_id=dto.empresa_id,
            processo_id=dto.processo_id,
            numero=dto.numero,
            tipo=dto.tipo.value,
            situacao=dto.situacao.value,
            valor=dto.valor,
            instrument_kind=dto.instrument_kind.value if dto.instrument_kind else None,
            instrument_id=dto.instrument_id,
            processo_item_id=dto.processo_item_id,
            data_emissao=dto.data_emissao,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<NotaFiscalModel {self.numero} {self.tipo} [{self.situacao}]>"


# ---------------------------------------------------------------------------
# OrcamentoModel
# ---------------------------------------------------------------------------


class OrcamentoModel(TrackedBase):
    """A supplier quotation for an item."""

    __tablename__ = "orcamentos"

    __table_args__ = (
        Index("idx_orcamento_item", "processo_item_id", "fornecedor_escolhido"),
    )

    processo_item_id: Mapped[UUID] = mapped_column(
        ForeignKey("processo_itens.id"), nullable=False,
    )
    fornecedor_id: Mapped[UUID | None]
    custo_produto: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    frete: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    frete_incluido: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    fornecedor_escolhido: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def to_dto(self):
        from licita_modules.processo.models import Quotation

        return Quotation(
            id=self.id,
            processo_item_id=self.processo_item_id,
            custo_produto=self.custo_produto,
            frete=self.frete,
            frete_incluido=self.frete_incluido,
            fornecedor_escolhido=self.fornecedor_escolhido,
            fornecedor_id=self.fornecedor_id,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "OrcamentoModel":
        return cls(
            id=dto.id,
            processo_item_id=dto.processo_item_id,
            fornecedor_id=dto.fornecedor_id,
            custo_produto=dto.custo_produto,
            frete=dto.frete,
            frete_incluido=dto.frete_incluido,
            fornecedor_escolhido=dto.fornecedor_escolhido,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<OrcamentoModel item={self.processo_item_id} escolhido={self.fornecedor_escolhido}>"
