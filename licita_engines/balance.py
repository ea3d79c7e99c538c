"""
licita_engines.balance -- Process-level balance aggregation.

Responsibility:
    Roll up item valuations and process-level instruments into the four
    balance views of a process: awarded ("vencido"), bound to contracts
    and supply authorizations ("vinculado"), committed ("empenhado") and
    unbound ("nao vinculado"), plus a combined summary.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Fed by ``licita_modules.processo.balance_service``.

Invariants enforced:
    - Only items whose status is in the pending-fulfillment set count
      toward the awarded balance.
    - ``saldo_nao_vinculado == saldo_vencido - total_vinculado``; the
      result may be negative and is never clamped.
    - ``saldo_pendente == valor_total_empenhado - valor_pago``.
    - Percentages are rounded half-up to 2 places; a zero base yields 0.

Failure modes:
    - None.  Empty inputs aggregate to zero balances.

Usage:
    from licita_engines.balance import BalanceAggregator

    balance = BalanceAggregator().aggregate(
        processo_id=processo_id,
        items=lines,
        instruments=instruments,
        commitment_invoices=invoices,
        pending_statuses=frozenset({"aceito", "aceito_habilitado"}),
    )
    balance.to_dict()["resumo"]["total_vencido"]
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID

from licita_engines.documents import (
    InstrumentKind,
    InstrumentTotal,
    InvoiceDirection,
    InvoiceLine,
    InvoiceSettlement,
    sum_invoices,
)
from licita_engines.tracer import traced_engine
from licita_kernel.domain.values import ZERO, quantize
from licita_kernel.logging_config import get_logger

logger = get_logger("engines.balance")

_HUNDRED = Decimal("100")


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    """``part / whole * 100`` rounded to 2 places, or 0 when ``whole`` is 0."""
    if whole == ZERO:
        return quantize(ZERO)
    return quantize(part / whole * _HUNDRED)


@dataclass(frozen=True)
class BalanceItemLine:
    """One item's contribution to the process balance."""

    item_id: UUID
    numero_item: int
    status_item: str
    quantidade: Decimal
    valor_vencido: Decimal
    descricao: str = ""


@dataclass(frozen=True)
class AwardedBalance:
    valor_total: Decimal
    quantidade_itens: int
    itens: tuple[BalanceItemLine, ...] = ()


@dataclass(frozen=True)
class BoundBalance:
    valor_contratos: Decimal
    quantidade_contratos: int
    valor_afs: Decimal
    quantidade_afs: int

    @property
    def total_vinculado(self) -> Decimal:
        return quantize(self.valor_contratos + self.valor_afs)


@dataclass(frozen=True)
class CommittedBalance:
    valor_total_empenhado: Decimal
    quantidade_empenhos: int
    valor_pago: Decimal

    @property
    def saldo_pendente(self) -> Decimal:
        return quantize(self.valor_total_empenhado - self.valor_pago)

    @property
    def percentual_pago(self) -> Decimal:
        return percentage(self.valor_pago, self.valor_total_empenhado)


@dataclass(frozen=True)
class BalanceSummary:
    total_vencido: Decimal
    total_vinculado: Decimal
    total_nao_vinculado: Decimal
    total_empenhado: Decimal
    total_pago: Decimal
    total_pendente: Decimal


@dataclass(frozen=True)
class ProcessBalance:
    """Read-only balance report for one process."""

    processo_id: UUID
    saldo_vencido: AwardedBalance
    saldo_vinculado: BoundBalance
    saldo_empenhado: CommittedBalance
    saldo_nao_vinculado: Decimal
    resumo: BalanceSummary

    def to_dict(self) -> dict[str, Any]:
        """Flat structure: four sections plus the combined summary."""
        return {
            "processo_id": str(self.processo_id),
            "saldo_vencido": {
                "valor_total": self.saldo_vencido.valor_total,
                "quantidade_itens": self.saldo_vencido.quantidade_itens,
                "itens": [
                    {
                        "item_id": str(line.item_id),
                        "numero_item": line.numero_item,
                        "descricao": line.descricao,
                        "status_item": line.status_item,
                        "quantidade": line.quantidade,
                        "valor_vencido": line.valor_vencido,
                    }
                    for line in self.saldo_vencido.itens
                ],
            },
            "saldo_vinculado": {
                "valor_contratos": self.saldo_vinculado.valor_contratos,
                "quantidade_contratos": self.saldo_vinculado.quantidade_contratos,
                "valor_afs": self.saldo_vinculado.valor_afs,
                "quantidade_afs": self.saldo_vinculado.quantidade_afs,
                "total_vinculado": self.saldo_vinculado.total_vinculado,
            },
            "saldo_empenhado": {
                "valor_total_empenhado": self.saldo_empenhado.valor_total_empenhado,
                "quantidade_empenhos": self.saldo_empenhado.quantidade_empenhos,
                "valor_pago": self.saldo_empenhado.valor_pago,
                "saldo_pendente": self.saldo_empenhado.saldo_pendente,
                "percentual_pago": self.saldo_empenhado.percentual_pago,
            },
            "saldo_nao_vinculado": self.saldo_nao_vinculado,
            "resumo": {
                "total_vencido": self.resumo.total_vencido,
                "total_vinculado": self.resumo.total_vinculado,
                "total_nao_vinculado": self.resumo.total_nao_vinculado,
                "total_empenhado": self.resumo.total_empenhado,
                "total_pago": self.resumo.total_pago,
                "total_pendente": self.resumo.total_pendente,
            },
        }


def _total(instruments: Iterable[InstrumentTotal]) -> tuple[Decimal, int]:
    amount = ZERO
    count = 0
    for instrument in instruments:
        amount += instrument.valor_total
        count += 1
    return quantize(amount), count


class BalanceAggregator:
    """
    Stateless balance aggregation.

    Guarantees:
        - Pure: no writes, no clock.
        - Instruments are grouped by kind; kinds other than contract,
          supply authorization and commitment do not exist.
    """

    @traced_engine(
        "balance_aggregation", "1.0",
        fingerprint_fields=("processo_id", "items", "instruments", "pending_statuses"),
    )
    def aggregate(
        self,
        processo_id: UUID,
        items: tuple[BalanceItemLine, ...],
        instruments: tuple[InstrumentTotal, ...],
        commitment_invoices: tuple[InvoiceLine, ...],
        pending_statuses: frozenset[str],
    ) -> ProcessBalance:
        """
        Build the balance report.

        Args:
            processo_id: Process the report belongs to.
            items: Every item of the process with its current valuation.
            instruments: Every contract, supply authorization and
                commitment linked to the process.
            commitment_invoices: Invoices issued against the process's
                commitments; paid outgoing ones count as received.
            pending_statuses: Item statuses that count toward the awarded
                balance.
        """
        awarded_lines = tuple(
            line for line in items if line.status_item in pending_statuses
        )
        awarded = AwardedBalance(
            valor_total=quantize(sum((line.valor_vencido for line in awarded_lines), ZERO)),
            quantidade_itens=len(awarded_lines),
            itens=awarded_lines,
        )

        contracts = _total(i for i in instruments if i.kind == InstrumentKind.CONTRATO)
        afs = _total(
            i for i in instruments if i.kind == InstrumentKind.AUTORIZACAO_FORNECIMENTO
        )
        bound = BoundBalance(
            valor_contratos=contracts[0],
            quantidade_contratos=contracts[1],
            valor_afs=afs[0],
            quantidade_afs=afs[1],
        )

        commitments = _total(i for i in instruments if i.kind == InstrumentKind.EMPENHO)
        committed = CommittedBalance(
            valor_total_empenhado=commitments[0],
            quantidade_empenhos=commitments[1],
            valor_pago=sum_invoices(
                commitment_invoices, InvoiceDirection.SAIDA, InvoiceSettlement.PAGA,
            ),
        )

        unbound = quantize(awarded.valor_total - bound.total_vinculado)

        summary = BalanceSummary(
            total_vencido=awarded.valor_total,
            total_vinculado=bound.total_vinculado,
            total_nao_vinculado=unbound,
            total_empenhado=committed.valor_total_empenhado,
            total_pago=committed.valor_pago,
            total_pendente=committed.saldo_pendente,
        )

        if unbound < ZERO:
            logger.info("balance_unbound_negative", extra={
                "processo_id": str(processo_id),
                "saldo_nao_vinculado": str(unbound),
            })

        return ProcessBalance(
            processo_id=processo_id,
            saldo_vencido=awarded,
            saldo_vinculado=bound,
            saldo_empenhado=committed,
            saldo_nao_vinculado=unbound,
            resumo=summary,
        )
