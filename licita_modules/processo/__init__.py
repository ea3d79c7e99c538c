"""
Processo Module.

Bid processes from participation to closing: item valuation, process
balances and the guarded status lifecycle.

Entry points:
    build_processo_services(session, actor_id)  -- SQLAlchemy-backed wiring
    ProcessLifecycleService                     -- status transitions
    ItemValuationService                        -- derived item figures
    BalanceService                              -- balance report, cost comparison
    LinkageService                              -- item-to-instrument linkages
"""

from licita_modules.processo.balance_service import BalanceService
from licita_modules.processo.config import ProcessoConfig
from licita_modules.processo.invoices import InvoiceLedgerView, LedgerTotals
from licita_modules.processo.linkage import LinkageRegistry
from licita_modules.processo.linkage_service import LinkageService
from licita_modules.processo.models import (
    FinalSituation,
    Instrument,
    Invoice,
    ItemStatus,
    Linkage,
    ParticipationStatus,
    Process,
    ProcessItem,
    ProcessStatus,
    Quotation,
    TransitionDecision,
)
from licita_modules.processo.orchestrator import ProcessoOrchestrator, build_processo_services
from licita_modules.processo.service import (
    AutomaticTransitionResult,
    DeliverySummary,
    FinalizationCheck,
    PaymentConfirmation,
    ProcessLifecycleService,
)
from licita_modules.processo.status_policy import DefaultStatusPolicy
from licita_modules.processo.valuation_service import ItemValuationService
from licita_modules.processo.workflows import PROCESS_WORKFLOW

__all__ = [
    "AutomaticTransitionResult",
    "BalanceService",
    "DefaultStatusPolicy",
    "DeliverySummary",
    "FinalSituation",
    "FinalizationCheck",
    "Instrument",
    "Invoice",
    "InvoiceLedgerView",
    "ItemStatus",
    "ItemValuationService",
    "LedgerTotals",
    "Linkage",
    "LinkageRegistry",
    "LinkageService",
    "PROCESS_WORKFLOW",
    "ParticipationStatus",
    "PaymentConfirmation",
    "Process",
    "ProcessItem",
    "ProcessLifecycleService",
    "ProcessStatus",
    "ProcessoConfig",
    "ProcessoOrchestrator",
    "Quotation",
    "TransitionDecision",
    "build_processo_services",
]
