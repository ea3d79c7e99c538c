"""
Module: licita_engines
Responsibility:
    Package entrypoint re-exporting the public symbols of the pure
    calculation engines.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import licita_kernel (domain values and logging).
    MUST NOT import licita_modules.

Invariants enforced:
    - Purity: engines never read the clock; dates arrive as parameters.
    - Decimal-only arithmetic; floats are forbidden.
    - Determinism: identical inputs always produce identical outputs.
"""

from licita_engines.balance import (
    AwardedBalance,
    BalanceAggregator,
    BalanceItemLine,
    BalanceSummary,
    BoundBalance,
    CommittedBalance,
    ProcessBalance,
)
from licita_engines.cost_comparison import (
    CostComparison,
    CostLine,
    ItemCostLine,
    PlannedCost,
    compare_costs,
)
from licita_engines.documents import (
    InstrumentKind,
    InstrumentTotal,
    InvoiceDirection,
    InvoiceLine,
    InvoiceSettlement,
    LinkedAmount,
    sum_invoices,
    sum_linked,
)
from licita_engines.tracer import traced_engine
from licita_engines.valuation import (
    ItemValuation,
    ItemValuationEngine,
    UnitValueSource,
    ValuationSnapshot,
    resolve_unit_value,
)

__all__ = [
    "AwardedBalance",
    "BalanceAggregator",
    "BalanceItemLine",
    "BalanceSummary",
    "BoundBalance",
    "CommittedBalance",
    "ProcessBalance",
    "CostComparison",
    "CostLine",
    "ItemCostLine",
    "PlannedCost",
    "compare_costs",
    "InstrumentKind",
    "InstrumentTotal",
    "InvoiceDirection",
    "InvoiceLine",
    "InvoiceSettlement",
    "LinkedAmount",
    "sum_invoices",
    "sum_linked",
    "traced_engine",
    "ItemValuation",
    "ItemValuationEngine",
    "UnitValueSource",
    "ValuationSnapshot",
    "resolve_unit_value",
]
