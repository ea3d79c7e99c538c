"""
licita_engines.cost_comparison -- Planned versus realised cost.

Responsibility:
    Compare the cost a process was priced with (chosen quotations of its
    won items) against the cost actually incurred (incoming invoices of
    the process), in total and per item.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - ``diferenca == custo_real - custo_inicial``; positive means the
      process cost more than quoted.
    - ``variacao_percentual`` is relative to the initial cost, rounded to
      2 places, and 0 when no initial cost exists.
    - The process total counts every incoming invoice of the process;
      item lines count only invoices tagged with that item.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from licita_engines.balance import percentage
from licita_engines.documents import InvoiceDirection, InvoiceLine, sum_invoices
from licita_engines.tracer import traced_engine
from licita_kernel.domain.values import ZERO, quantize


@dataclass(frozen=True)
class PlannedCost:
    """Quoted cost of one won item.  ``unit_cost`` is zero without a quotation."""

    item_id: UUID
    numero_item: int
    quantidade: Decimal
    unit_cost: Decimal

    @property
    def total(self) -> Decimal:
        return quantize(self.unit_cost * self.quantidade)


@dataclass(frozen=True)
class CostLine:
    custo_inicial: Decimal
    custo_real: Decimal
    quantidade_notas_entrada: int = 0

    @property
    def diferenca(self) -> Decimal:
        return quantize(self.custo_real - self.custo_inicial)

    @property
    def variacao_percentual(self) -> Decimal:
        return percentage(self.diferenca, self.custo_inicial)

    def to_dict(self) -> dict[str, object]:
        return {
            "custo_inicial": self.custo_inicial,
            "custo_real": self.custo_real,
            "diferenca": self.diferenca,
            "variacao_percentual": self.variacao_percentual,
            "quantidade_notas_entrada": self.quantidade_notas_entrada,
        }


@dataclass(frozen=True)
class ItemCostLine(CostLine):
    item_id: UUID | None = None
    numero_item: int = 0


@dataclass(frozen=True)
class CostComparison:
    processo_id: UUID
    resumo: CostLine
    itens: tuple[ItemCostLine, ...] = ()

    @property
    def acima_do_previsto(self) -> bool:
        return self.resumo.diferenca > ZERO

    def to_dict(self) -> dict[str, object]:
        return {
            "processo_id": str(self.processo_id),
            "resumo": self.resumo.to_dict(),
            "itens": [
                {"item_id": str(line.item_id), "numero_item": line.numero_item, **line.to_dict()}
                for line in self.itens
            ],
        }


def _incoming(invoices: Iterable[InvoiceLine]) -> tuple[InvoiceLine, ...]:
    return tuple(i for i in invoices if i.direction == InvoiceDirection.ENTRADA)


@traced_engine("cost_comparison", "1.0", fingerprint_fields=("processo_id", "planned"))
def compare_costs(
    processo_id: UUID,
    planned: tuple[PlannedCost, ...],
    invoices: tuple[InvoiceLine, ...],
) -> CostComparison:
    """Initial cost from quotations versus real cost from incoming invoices."""
    incoming = _incoming(invoices)

    lines = []
    for cost in planned:
        item_invoices = tuple(i for i in incoming if i.processo_item_id == cost.item_id)
        lines.append(ItemCostLine(
            item_id=cost.item_id,
            numero_item=cost.numero_item,
            custo_inicial=cost.total,
            custo_real=sum_invoices(item_invoices, InvoiceDirection.ENTRADA),
            quantidade_notas_entrada=len(item_invoices),
        ))

    resumo = CostLine(
        custo_inicial=quantize(sum((p.total for p in planned), ZERO)),
        custo_real=sum_invoices(incoming, InvoiceDirection.ENTRADA),
        quantidade_notas_entrada=len(incoming),
    )
    return CostComparison(processo_id=processo_id, resumo=resumo, itens=tuple(lines))
