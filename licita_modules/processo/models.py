"""
Processo Domain Models.

The nouns of a bid: processes, their items, the instruments items are
linked to, invoices and the chosen supplier quotation.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from licita_engines.documents import (
    InstrumentKind,
    InstrumentTotal,
    InvoiceDirection,
    InvoiceLine,
    InvoiceSettlement,
    LinkedAmount,
)
from licita_engines.valuation import ItemValuation
from licita_kernel.domain.values import ZERO, quantize
from licita_kernel.exceptions import ProcessLockedError, StatusTransitionError
from licita_kernel.logging_config import get_logger

logger = get_logger("modules.processo.models")


class ProcessStatus(str, Enum):
    """Process lifecycle states."""
    PARTICIPACAO = "participacao"
    JULGAMENTO_HABILITACAO = "julgamento_habilitacao"
    VENCIDO = "vencido"  # legacy: won, awaiting execution
    EXECUCAO = "execucao"
    PAGAMENTO = "pagamento"
    ENCERRAMENTO = "encerramento"
    PERDIDO = "perdido"
    ARQUIVADO = "arquivado"


TERMINAL_STATUSES = frozenset({
    ProcessStatus.ENCERRAMENTO,
    ProcessStatus.PERDIDO,
    ProcessStatus.ARQUIVADO,
})

EXECUTION_STATUSES = frozenset({ProcessStatus.EXECUCAO, ProcessStatus.VENCIDO})

# Descriptive fields freeze once the process has been won.
LOCKED_STATUSES = frozenset({
    ProcessStatus.VENCIDO,
    ProcessStatus.EXECUCAO,
    ProcessStatus.PAGAMENTO,
    ProcessStatus.ENCERRAMENTO,
    ProcessStatus.PERDIDO,
    ProcessStatus.ARQUIVADO,
})


class ParticipationStatus(str, Enum):
    """Sub-status while the process is in participation."""
    NORMAL = "normal"
    ADIADO = "adiado"
    SUSPENSO = "suspenso"
    CANCELADO = "cancelado"


class ItemStatus(str, Enum):
    """Judging outcome of an item."""
    PENDENTE = "pendente"
    ACEITO = "aceito"
    ACEITO_HABILITADO = "aceito_habilitado"
    DESCLASSIFICADO = "desclassificado"
    INABILITADO = "inabilitado"
    AGUARDANDO_ENTREGA = "aguardando_entrega"
    EXECUCAO = "execucao"


ACCEPTED_ITEM_STATUSES = frozenset({ItemStatus.ACEITO, ItemStatus.ACEITO_HABILITADO})
LOST_ITEM_STATUSES = frozenset({ItemStatus.DESCLASSIFICADO, ItemStatus.INABILITADO})

_ITEM_STATUS_LABELS = {
    ItemStatus.PENDENTE: "Em Análise",
    ItemStatus.ACEITO: "Aceito",
    ItemStatus.ACEITO_HABILITADO: "Aceito e Habilitado",
    ItemStatus.DESCLASSIFICADO: "Desclassificado",
    ItemStatus.INABILITADO: "Inabilitado",
    ItemStatus.AGUARDANDO_ENTREGA: "Aguardando Entrega",
    ItemStatus.EXECUCAO: "Em Execução",
}


class FinalSituation(str, Enum):
    """Item outcome once judging concludes."""
    VENCIDO = "vencido"
    PERDIDO = "perdido"


@dataclass(frozen=True)
class Process:
    """One bidding procedure."""
    id: UUID
    empresa_id: UUID
    modalidade: str = ""
    numero_modalidade: str = ""
    orgao_id: UUID | None = None
    setor_id: UUID | None = None
    objeto_resumido: str = ""
    data_hora_sessao_publica: datetime | None = None
    validade_proposta_inicio: date | None = None
    validade_proposta_fim: date | None = None
    forma_entrega: str | None = None
    prazo_entrega: str | None = None
    status: ProcessStatus = ProcessStatus.PARTICIPACAO
    status_participacao: ParticipationStatus = ParticipationStatus.NORMAL
    data_recebimento_pagamento: date | None = None
    data_arquivamento: datetime | None = None
    motivo_perda: str | None = None
    observacoes: str | None = None

    @property
    def is_em_execucao(self) -> bool:
        return self.status in EXECUTION_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def can_edit(self) -> bool:
        return self.status not in LOCKED_STATUSES

    @property
    def payment_confirmed(self) -> bool:
        return self.data_recebimento_pagamento is not None

    @property
    def identificacao(self) -> str:
        if self.modalidade and self.numero_modalidade:
            return f"{self.modalidade} {self.numero_modalidade}"
        return self.numero_modalidade or str(self.id)

    def with_details(self, **changes: Any) -> Process:
        """Update descriptive fields.  Status and dates owned by the lifecycle are refused."""
        reserved = {"id", "empresa_id", "status", "data_recebimento_pagamento", "data_arquivamento"}
        touched = reserved.intersection(changes)
        if touched:
            raise ValueError(f"Fields not editable through with_details: {sorted(touched)}")
        if not self.can_edit:
            raise ProcessLockedError(self.id, self.status.value)
        return replace(self, **changes)

    def with_status(self, status: ProcessStatus, **changes: Any) -> Process:
        """Status write.  Only the lifecycle service calls this."""
        return replace(self, status=status, **changes)

    def move_to_judging(self) -> Process:
        """Return a copy in judging.  Legal from participation or judging."""
        if self.status not in (ProcessStatus.PARTICIPACAO, ProcessStatus.JULGAMENTO_HABILITACAO):
            raise StatusTransitionError(
                f"Process cannot move to judging from status {self.status.value}",
                processo_id=self.id,
                from_status=self.status.value,
                to_status=ProcessStatus.JULGAMENTO_HABILITACAO.value,
            )
        return replace(self, status=ProcessStatus.JULGAMENTO_HABILITACAO)

    def session_has_passed(self, now: datetime) -> bool:
        if self.data_hora_sessao_publica is None:
            return False
        session = self.data_hora_sessao_publica
        if session.tzinfo is None and now.tzinfo is not None:
            session = session.replace(tzinfo=now.tzinfo)
        return session <= now

    def is_proposal_expired(self, today: date) -> bool:
        if self.validade_proposta_fim is None:
            return False
        return today > self.validade_proposta_fim

    def proposal_validity(self, today: date) -> str | None:
        """Human-readable proposal validity relative to ``today``."""
        inicio, fim = self.validade_proposta_inicio, self.validade_proposta_fim
        if inicio is None or fim is None:
            return None
        if inicio <= today <= fim:
            remaining = (fim - today).days
            return f"Valid until {fim:%d/%m/%Y} ({remaining} days remaining)"
        if today > fim:
            return f"Expired on {fim:%d/%m/%Y}"
        return f"Valid from {inicio:%d/%m/%Y} to {fim:%d/%m/%Y}"


@dataclass(frozen=True)
class ProcessItem:
    """
    One line item of a process.

    Derived money figures live in ``valuation`` and are replaced only via
    ``with_valuation``.
    """
    id: UUID
    empresa_id: UUID
    processo_id: UUID
    numero_item: int
    quantidade: Decimal
    unidade: str = "UN"
    especificacao_tecnica: str = ""
    valor_estimado: Decimal | None = None
    valor_minimo_venda: Decimal | None = None
    valor_final_sessao: Decimal | None = None
    valor_negociado: Decimal | None = None
    valor_arrematado: Decimal | None = None
    status_item: ItemStatus = ItemStatus.PENDENTE
    situacao_final: FinalSituation | None = None
    valuation: ItemValuation = field(default_factory=ItemValuation)

    def __post_init__(self):
        if self.quantidade < ZERO:
            logger.warning(
                "process_item_negative_quantity",
                extra={"item_id": str(self.id), "quantidade": str(self.quantidade)},
            )
            raise ValueError(f"quantidade cannot be negative ({self.quantidade})")

    @property
    def is_vencido(self) -> bool:
        return (
            self.situacao_final == FinalSituation.VENCIDO
            or self.status_item in ACCEPTED_ITEM_STATUSES
        )

    @property
    def is_perdido(self) -> bool:
        return (
            self.situacao_final == FinalSituation.PERDIDO
            or self.status_item in LOST_ITEM_STATUSES
        )

    @property
    def is_accepted(self) -> bool:
        return self.status_item in ACCEPTED_ITEM_STATUSES

    @property
    def valor_estimado_total(self) -> Decimal:
        return quantize((self.valor_estimado or ZERO) * self.quantidade)

    @property
    def status_description(self) -> str:
        if self.situacao_final is not None:
            return "Vencido" if self.situacao_final == FinalSituation.VENCIDO else "Perdido"
        return _ITEM_STATUS_LABELS.get(self.status_item, "Desconhecido")

    @property
    def candidate_values(self) -> dict[str, Decimal | None]:
        return {
            "valor_estimado": self.valor_estimado,
            "valor_minimo_venda": self.valor_minimo_venda,
            "valor_final_sessao": self.valor_final_sessao,
            "valor_negociado": self.valor_negociado,
            "valor_arrematado": self.valor_arrematado,
            "valor_vencido": self.valor_vencido,
        }

    @property
    def valor_vencido(self) -> Decimal:
        return self.valuation.valor_vencido

    @property
    def valor_empenhado(self) -> Decimal:
        return self.valuation.valor_empenhado

    @property
    def valor_faturado(self) -> Decimal:
        return self.valuation.valor_faturado

    @property
    def valor_pago(self) -> Decimal:
        return self.valuation.valor_pago

    @property
    def saldo_aberto(self) -> Decimal:
        return self.valuation.saldo_aberto

    @property
    def saldo_a_receber(self) -> Decimal:
        """Awarded value not yet received.  Unlike ``saldo_aberto`` the payment override cannot zero it."""
        return quantize(self.valuation.valor_vencido - self.valuation.valor_pago)

    @property
    def lucro_bruto(self) -> Decimal:
        return self.valuation.lucro_bruto

    @property
    def lucro_liquido(self) -> Decimal:
        return self.valuation.lucro_liquido

    def with_valuation(self, valuation: ItemValuation) -> ProcessItem:
        return replace(self, valuation=valuation)


@dataclass(frozen=True)
class Linkage:
    """A slice of an item bound to one contract, supply authorization or commitment."""
    id: UUID
    empresa_id: UUID
    processo_id: UUID
    processo_item_id: UUID
    kind: InstrumentKind
    instrument_id: UUID
    quantidade: Decimal
    valor_unitario: Decimal
    valor_total: Decimal
    observacoes: str | None = None

    def __post_init__(self):
        if self.quantidade < ZERO:
            raise ValueError(f"quantidade cannot be negative ({self.quantidade})")
        if self.valor_unitario < ZERO or self.valor_total < ZERO:
            raise ValueError("linkage values cannot be negative")

    @classmethod
    def create(
        cls,
        *,
        empresa_id: UUID,
        processo_id: UUID,
        processo_item_id: UUID,
        kind: InstrumentKind,
        instrument_id: UUID,
        quantidade: Decimal,
        valor_unitario: Decimal,
        valor_total: Decimal | None = None,
        observacoes: str | None = None,
        id: UUID | None = None,
    ) -> Linkage:
        """Build a linkage, deriving ``valor_total`` from quantity and unit value when absent."""
        if valor_total is None:
            valor_total = quantize(quantidade * valor_unitario)
        return cls(
            id=id or uuid4(),
            empresa_id=empresa_id,
            processo_id=processo_id,
            processo_item_id=processo_item_id,
            kind=kind,
            instrument_id=instrument_id,
            quantidade=quantidade,
            valor_unitario=valor_unitario,
            valor_total=valor_total,
            observacoes=observacoes,
        )

    def as_linked_amount(self) -> LinkedAmount:
        return LinkedAmount(
            kind=self.kind,
            instrument_id=self.instrument_id,
            quantidade=self.quantidade,
            valor_total=self.valor_total,
        )


@dataclass(frozen=True)
class Instrument:
    """A contract, supply authorization or purchase commitment of a process."""
    id: UUID
    empresa_id: UUID
    processo_id: UUID
    kind: InstrumentKind
    numero: str
    valor_total: Decimal = ZERO
    data: date | None = None

    def as_total(self) -> InstrumentTotal:
        return InstrumentTotal(
            id=self.id, kind=self.kind, valor_total=self.valor_total, numero=self.numero,
        )


@dataclass(frozen=True)
class Invoice:
    """A nota fiscal.  Read-only to this module."""
    id: UUID
    empresa_id: UUID
    processo_id: UUID
    numero: str
    tipo: InvoiceDirection
    situacao: InvoiceSettlement
    valor: Decimal
    instrument_kind: InstrumentKind | None = None
    instrument_id: UUID | None = None
    processo_item_id: UUID | None = None
    data_emissao: date | None = None

    def as_line(self) -> InvoiceLine:
        return InvoiceLine(
            id=self.id,
            direction=self.tipo,
            settlement=self.situacao,
            valor=self.valor,
            instrument_kind=self.instrument_kind,
            instrument_id=self.instrument_id,
            processo_item_id=self.processo_item_id,
        )


@dataclass(frozen=True)
class Quotation:
    """A supplier quotation for an item."""
    id: UUID
    processo_item_id: UUID
    custo_produto: Decimal = ZERO
    frete: Decimal = ZERO
    frete_incluido: bool = False
    fornecedor_escolhido: bool = False
    fornecedor_id: UUID | None = None

    @property
    def unit_cost(self) -> Decimal:
        return self.custo_produto + (ZERO if self.frete_incluido else self.frete)


@dataclass(frozen=True)
class TransitionDecision:
    """Answer of a status policy: may the transition happen, and if not why."""
    pode: bool
    motivo: str = ""

    @classmethod
    def allow(cls) -> TransitionDecision:
        return cls(pode=True)

    @classmethod
    def deny(cls, motivo: str) -> TransitionDecision:
        return cls(pode=False, motivo=motivo)
