"""
licita_engines.valuation -- Item financial valuation.

Responsibility:
    Compute every derived financial figure of one process item from an
    immutable snapshot: awarded value, committed value, invoiced value,
    received value, outstanding balance, total cost and profit.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    The snapshot is assembled by ``licita_modules.processo.valuation_service``,
    which also persists the result.  Nothing here reads a repository or
    calls ``save``.

Invariants enforced:
    - Unit value fallback is strict: awarded -> negotiated -> session-final
      -> estimated -> zero.  Only a missing candidate is skipped; a
      recorded zero is kept.
    - ``saldo_aberto == round(valor_faturado - valor_pago, 2)``.
    - ``lucro_bruto == round(valor_faturado - custo_total, 2)``.
    - ``lucro_liquido == lucro_bruto``.
    - Determinism: identical snapshots produce identical valuations, so
      items can be valued in any order.

Failure modes:
    - None.  Missing candidate values, quotations, linkages or invoices
      degrade to zero figures.  Negative balances are reported as
      computed, never clamped.

Audit relevance:
    Each invocation is traced via ``@traced_engine``.  The valuation
    records which candidate supplied the unit value and whether the
    legacy invoicing correction or the payment-confirmation override
    fired, so a reviewer can explain every figure.

Usage:
    from licita_engines.valuation import ItemValuationEngine, ValuationSnapshot

    engine = ItemValuationEngine()
    valuation = engine.value(snapshot=ValuationSnapshot(
        item_id=item_id,
        quantidade=Decimal("10"),
        awarded=True,
        valor_negociado=Decimal("5"),
    ))
    valuation.valor_vencido  # Decimal("50.00")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from licita_engines.documents import (
    InstrumentKind,
    InvoiceDirection,
    InvoiceLine,
    InvoiceSettlement,
    LinkedAmount,
    sum_invoices,
    sum_linked,
)
from licita_engines.tracer import traced_engine
from licita_kernel.domain.values import ZERO, quantize
from licita_kernel.logging_config import get_logger

logger = get_logger("engines.valuation")


class UnitValueSource(str, Enum):
    """Which candidate unit value priced the awarded total."""

    ARREMATADO = "valor_arrematado"
    NEGOCIADO = "valor_negociado"
    FINAL_SESSAO = "valor_final_sessao"
    ESTIMADO = "valor_estimado"
    NENHUM = "nenhum"


@dataclass(frozen=True)
class ValuationSnapshot:
    """
    Everything the engine needs to value one item.

    ``awarded`` is the item's won flag (final situation won, or status
    accepted / accepted-qualified).  ``unit_cost`` is the chosen
    quotation's product cost plus freight when freight is not included,
    or ``None`` when no quotation is chosen.
    """

    item_id: UUID
    quantidade: Decimal
    awarded: bool
    valor_arrematado: Decimal | None = None
    valor_negociado: Decimal | None = None
    valor_final_sessao: Decimal | None = None
    valor_estimado: Decimal | None = None
    linkages: tuple[LinkedAmount, ...] = ()
    invoices: tuple[InvoiceLine, ...] = ()
    payment_received_on: date | None = None
    unit_cost: Decimal | None = None


@dataclass(frozen=True)
class ItemValuation:
    """Derived financial figures of one item.

    The explanatory fields (``unit_value_source`` and the two correction
    flags) are excluded from equality so a valuation reloaded from storage
    compares equal to a freshly computed one.
    """

    valor_vencido: Decimal = ZERO
    valor_empenhado: Decimal = ZERO
    valor_faturado: Decimal = ZERO
    valor_pago: Decimal = ZERO
    saldo_aberto: Decimal = ZERO
    custo_total: Decimal = ZERO
    lucro_bruto: Decimal = ZERO
    lucro_liquido: Decimal = ZERO
    unit_value_source: UnitValueSource | None = field(default=None, compare=False)
    legacy_correction_applied: bool = field(default=False, compare=False)
    payment_override_applied: bool = field(default=False, compare=False)

    def to_dict(self) -> dict[str, str]:
        return {
            "valor_vencido": str(self.valor_vencido),
            "valor_empenhado": str(self.valor_empenhado),
            "valor_faturado": str(self.valor_faturado),
            "valor_pago": str(self.valor_pago),
            "saldo_aberto": str(self.saldo_aberto),
            "custo_total": str(self.custo_total),
            "lucro_bruto": str(self.lucro_bruto),
            "lucro_liquido": str(self.lucro_liquido),
        }


def _present(value: Decimal | None) -> bool:
    return value is not None


def resolve_unit_value(snapshot: ValuationSnapshot) -> tuple[Decimal, UnitValueSource]:
    """Pick the unit value by strict fallback priority."""
    candidates = (
        (snapshot.valor_arrematado, UnitValueSource.ARREMATADO),
        (snapshot.valor_negociado, UnitValueSource.NEGOCIADO),
        (snapshot.valor_final_sessao, UnitValueSource.FINAL_SESSAO),
        (snapshot.valor_estimado, UnitValueSource.ESTIMADO),
    )
    for value, source in candidates:
        if _present(value):
            return value, source
    return ZERO, UnitValueSource.NENHUM


class ItemValuationEngine:
    """
    Stateless item valuation.

    Contract:
        ``value`` is a pure function of its snapshot.
    Guarantees:
        - Never raises on missing data.
        - All money is rounded half-up to 2 places.
    Non-goals:
        - Does not persist or cascade; the caller saves the result.
        - Does not deduplicate invoices; the snapshot must list each
          invoice once.
    """

    @traced_engine("item_valuation", "1.0", fingerprint_fields=("snapshot",))
    def value(self, snapshot: ValuationSnapshot) -> ItemValuation:
        """Compute the derived figures for ``snapshot``."""
        if snapshot.awarded:
            unit_value, source = resolve_unit_value(snapshot)
            valor_vencido = quantize(unit_value * snapshot.quantidade)
        else:
            source = None
            valor_vencido = quantize(ZERO)

        valor_empenhado = sum_linked(snapshot.linkages, InstrumentKind.EMPENHO)
        valor_faturado = sum_invoices(snapshot.invoices, InvoiceDirection.SAIDA)

        payment_confirmed = snapshot.payment_received_on is not None

        # Processes paid before invoice tracking existed carry only commitments.
        legacy_correction = payment_confirmed and valor_faturado < valor_empenhado
        if legacy_correction:
            valor_faturado = valor_empenhado

        valor_pago = sum_invoices(
            snapshot.invoices, InvoiceDirection.SAIDA, InvoiceSettlement.PAGA,
        )
        payment_override = payment_confirmed and valor_pago < valor_faturado
        if payment_override:
            valor_pago = valor_faturado

        saldo_aberto = quantize(valor_faturado - valor_pago)

        if snapshot.unit_cost is not None:
            custo_total = quantize(snapshot.unit_cost * snapshot.quantidade)
        else:
            custo_total = quantize(ZERO)

        lucro_bruto = quantize(valor_faturado - custo_total)

        valuation = ItemValuation(
            valor_vencido=valor_vencido,
            valor_empenhado=valor_empenhado,
            valor_faturado=valor_faturado,
            valor_pago=valor_pago,
            saldo_aberto=saldo_aberto,
            custo_total=custo_total,
            lucro_bruto=lucro_bruto,
            lucro_liquido=lucro_bruto,
            unit_value_source=source,
            legacy_correction_applied=legacy_correction,
            payment_override_applied=payment_override,
        )

        logger.debug("item_valued", extra={
            "item_id": str(snapshot.item_id),
            "unit_value_source": source.value if source else None,
            "legacy_correction": legacy_correction,
            "payment_override": payment_override,
            **valuation.to_dict(),
        })
        return valuation
