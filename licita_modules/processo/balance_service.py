"""
Balance Aggregation Service (``licita_modules.processo.balance_service``).

Responsibility
--------------
Gather a process's items, instruments and commitment invoices through the
ports and hand them to the pure engines that build the balance report and
the planned-versus-real cost comparison.

Both operations are read-only.

Failure modes
-------------
* ``ProcessNotFoundError`` -- unknown process or another company's.
* ``ProcessNotInExecutionError`` -- ``require_execution`` on a process
  that is not in execution.
"""

from __future__ import annotations

from uuid import UUID

from licita_engines.balance import BalanceAggregator, BalanceItemLine, ProcessBalance
from licita_engines.cost_comparison import CostComparison, PlannedCost, compare_costs
from licita_engines.documents import InstrumentKind
from licita_kernel.domain.values import ZERO
from licita_kernel.exceptions import ProcessNotFoundError, ProcessNotInExecutionError
from licita_kernel.logging_config import LogContext, get_logger
from licita_modules.processo.config import ProcessoConfig
from licita_modules.processo.models import Process
from licita_modules.processo.ports import (
    InstrumentProvider,
    InvoiceProvider,
    ProcessRepository,
    QuotationProvider,
)

logger = get_logger("modules.processo.balance_service")


class BalanceService:
    """Process balance report and cost comparison."""

    def __init__(
        self,
        repository: ProcessRepository,
        instruments: InstrumentProvider,
        invoices: InvoiceProvider,
        quotations: QuotationProvider,
        config: ProcessoConfig | None = None,
        aggregator: BalanceAggregator | None = None,
    ):
        self._repository = repository
        self._instruments = instruments
        self._invoices = invoices
        self._quotations = quotations
        self._config = config or ProcessoConfig.with_defaults()
        self._aggregator = aggregator or BalanceAggregator()

    def _load(self, empresa_id: UUID, processo_id: UUID) -> Process:
        process = self._repository.find_process(empresa_id, processo_id)
        if process is None:
            raise ProcessNotFoundError(processo_id, empresa_id)
        return process

    def process_balance(
        self,
        empresa_id: UUID,
        processo_id: UUID,
        require_execution: bool = False,
    ) -> ProcessBalance:
        """
        Build the four-section balance report of a process.

        Item figures are read as persisted; call
        ``ItemValuationService.recompute_process`` first for fresh values.
        """
        with LogContext.bind(empresa_id=empresa_id, processo_id=processo_id):
            process = self._load(empresa_id, processo_id)
            if require_execution and not process.is_em_execucao:
                raise ProcessNotInExecutionError(processo_id, process.status.value)

            items = tuple(
                BalanceItemLine(
                    item_id=item.id,
                    numero_item=item.numero_item,
                    status_item=item.status_item.value,
                    quantidade=item.quantidade,
                    valor_vencido=item.valor_vencido,
                    descricao=item.especificacao_tecnica,
                )
                for item in self._repository.items_for(empresa_id, processo_id)
            )
            instruments = tuple(
                instrument.as_total()
                for instrument in self._instruments.instruments_for_process(processo_id)
            )
            commitment_invoices = tuple(
                invoice.as_line()
                for instrument in instruments
                if instrument.kind == InstrumentKind.EMPENHO
                for invoice in self._invoices.invoices_for_instrument(
                    InstrumentKind.EMPENHO, instrument.id,
                )
            )

            balance = self._aggregator.aggregate(
                processo_id=processo_id,
                items=items,
                instruments=instruments,
                commitment_invoices=commitment_invoices,
                pending_statuses=self._config.pending_status_values,
            )
            logger.info("process_balance_computed", extra={
                "total_vencido": str(balance.resumo.total_vencido),
                "total_vinculado": str(balance.resumo.total_vinculado),
                "total_nao_vinculado": str(balance.resumo.total_nao_vinculado),
                "total_empenhado": str(balance.resumo.total_empenhado),
            })
            return balance

    def cost_comparison(self, empresa_id: UUID, processo_id: UUID) -> CostComparison:
        """Quoted cost of won items versus incoming invoices of the process."""
        with LogContext.bind(empresa_id=empresa_id, processo_id=processo_id):
            self._load(empresa_id, processo_id)

            planned = []
            for item in self._repository.items_for(empresa_id, processo_id):
                if not item.is_vencido:
                    continue
                quotation = self._quotations.chosen_quotation(item.id)
                planned.append(PlannedCost(
                    item_id=item.id,
                    numero_item=item.numero_item,
                    quantidade=item.quantidade,
                    unit_cost=quotation.unit_cost if quotation is not None else ZERO,
                ))

            invoices = tuple(
                invoice.as_line()
                for invoice in self._invoices.invoices_for_process(processo_id)
            )
            comparison = compare_costs(
                processo_id=processo_id, planned=tuple(planned), invoices=invoices,
            )
            logger.info("cost_comparison_computed", extra={
                "custo_inicial": str(comparison.resumo.custo_inicial),
                "custo_real": str(comparison.resumo.custo_real),
                "acima_do_previsto": comparison.acima_do_previsto,
            })
            return comparison
