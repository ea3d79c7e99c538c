"""
Tests for the SQLAlchemy adapters of the processo module.

Runs against SQLite in memory.  Covers:
- DTO round trips and company scoping
- Soft deletion hiding a process and its items
- Linkage creation order and item recomputation through the SQL ports
- Payment confirmation persisted end to end
- Transaction rollback through ``session_scope()``
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from licita_engines.documents import InstrumentKind, InvoiceDirection, InvoiceSettlement
from licita_kernel.db.engine import (
    create_tables,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from licita_kernel.domain.clock import DeterministicClock
from licita_kernel.exceptions import PaymentConfirmationError
from licita_modules.processo.models import (
    Instrument,
    Invoice,
    ItemStatus,
    Process,
    ProcessItem,
    ProcessStatus,
    Quotation,
)
from licita_modules.processo.orchestrator import build_processo_services

ACTOR_ID = uuid4()
CLOCK = DeterministicClock(datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc))


def _seed(services, empresa_id, status=ProcessStatus.EXECUCAO):
    """One process with two accepted items worth 100 each and one commitment."""
    repo = services.repository
    process = repo.save_process(Process(
        id=uuid4(),
        empresa_id=empresa_id,
        modalidade="Pregão Eletrônico",
        numero_modalidade="7/2024",
        objeto_resumido="Material de escritório",
        status=status,
    ))
    items = [
        repo.save_item(ProcessItem(
            id=uuid4(),
            empresa_id=empresa_id,
            processo_id=process.id,
            numero_item=numero,
            quantidade=Decimal("10"),
            valor_arrematado=Decimal("10"),
            status_item=ItemStatus.ACEITO,
        ))
        for numero in (2, 1)
    ]
    commitment = repo.add_instrument(Instrument(
        id=uuid4(),
        empresa_id=empresa_id,
        processo_id=process.id,
        kind=InstrumentKind.EMPENHO,
        numero="2024NE0001",
        valor_total=Decimal("200"),
    ))
    return process, sorted(items, key=lambda i: i.numero_item), commitment


def _invoice(process, commitment, valor, situacao=InvoiceSettlement.PENDENTE, numero="1"):
    return Invoice(
        id=uuid4(),
        empresa_id=process.empresa_id,
        processo_id=process.id,
        numero=numero,
        tipo=InvoiceDirection.SAIDA,
        situacao=situacao,
        valor=Decimal(valor),
        instrument_kind=commitment.kind,
        instrument_id=commitment.id,
    )


class TestSqlProcessRepository:

    @pytest.fixture(autouse=True)
    def _setup(self, session, empresa_id):
        self.empresa_id = empresa_id
        self.services = build_processo_services(session, ACTOR_ID, clock=CLOCK)
        self.repo = self.services.repository
        self.process, self.items, self.commitment = _seed(self.services, empresa_id)

    def test_process_round_trip(self):
        assert self.repo.find_process(self.empresa_id, self.process.id) == self.process

    def test_items_ordered_by_number(self):
        items = self.repo.items_for(self.empresa_id, self.process.id)
        assert [item.numero_item for item in items] == [1, 2]
        assert items[0].quantidade == Decimal("10")
        assert items[0].status_item == ItemStatus.ACEITO

    def test_other_company_sees_nothing(self):
        other = uuid4()
        assert self.repo.find_process(other, self.process.id) is None
        assert self.repo.find_item(other, self.items[0].id) is None
        assert self.repo.items_for(other, self.process.id) == []

    def test_processes_with_status(self):
        found = self.repo.processes_with_status(self.empresa_id, ProcessStatus.EXECUCAO)
        assert [p.id for p in found] == [self.process.id]
        assert self.repo.processes_with_status(self.empresa_id, ProcessStatus.PERDIDO) == []

    def test_save_updates_existing_row(self):
        updated = self.process.with_status(ProcessStatus.PAGAMENTO)
        self.repo.save_process(updated)
        assert self.repo.find_process(self.empresa_id, self.process.id).status == (
            ProcessStatus.PAGAMENTO
        )

    def test_soft_delete_hides_process_and_items(self):
        deleted_at = datetime(2024, 6, 15, tzinfo=timezone.utc)
        assert self.repo.soft_delete_process(self.empresa_id, self.process.id, deleted_at) is True
        assert self.repo.find_process(self.empresa_id, self.process.id) is None
        assert self.repo.find_item(self.empresa_id, self.items[0].id) is None
        assert self.repo.items_for(self.empresa_id, self.process.id) == []
        assert self.repo.soft_delete_process(self.empresa_id, self.process.id, deleted_at) is False

    def test_chosen_quotation(self):
        item = self.items[0]
        self.repo.add_quotation(Quotation(
            id=uuid4(), processo_item_id=item.id, custo_produto=Decimal("1"),
        ))
        chosen = self.repo.add_quotation(Quotation(
            id=uuid4(),
            processo_item_id=item.id,
            custo_produto=Decimal("4"),
            frete=Decimal("1"),
            fornecedor_escolhido=True,
        ))
        found = self.services.fulfillment.chosen_quotation(item.id)
        assert found.id == chosen.id
        assert found.unit_cost == Decimal("5")
        assert self.services.fulfillment.chosen_quotation(self.items[1].id) is None


class TestSqlLinkagesAndValuation:

    @pytest.fixture(autouse=True)
    def _setup(self, session, empresa_id):
        self.empresa_id = empresa_id
        self.services = build_processo_services(session, ACTOR_ID, clock=CLOCK)
        self.process, self.items, self.commitment = _seed(self.services, empresa_id)

    def _register(self, item, quantidade):
        return self.services.linkage_service.register(
            empresa_id=self.empresa_id,
            processo_id=self.process.id,
            item_id=item.id,
            kind=InstrumentKind.EMPENHO,
            instrument_id=self.commitment.id,
            quantidade=Decimal(quantidade),
            valor_unitario=Decimal("10"),
        )

    def test_register_persists_recomputed_item(self):
        self._register(self.items[0], "4")
        stored = self.services.repository.find_item(self.empresa_id, self.items[0].id)
        assert stored.valor_empenhado == Decimal("40.00")
        assert stored.valor_vencido == Decimal("100.00")

    def test_linkages_in_creation_order(self):
        first, _ = self._register(self.items[0], "2")
        second, _ = self._register(self.items[0], "3")
        third, _ = self._register(self.items[0], "1")
        links = self.services.fulfillment.linkages_for_item(self.items[0].id)
        assert [link.id for link in links] == [first.id, second.id, third.id]

    def test_update_and_remove(self):
        linkage, _ = self._register(self.items[0], "2")
        _, item = self.services.linkage_service.update(
            self.empresa_id, linkage.id, Decimal("5"), Decimal("10"),
        )
        assert item.valor_empenhado == Decimal("50.00")
        item = self.services.linkage_service.remove(self.empresa_id, linkage.id)
        assert item.valor_empenhado == Decimal("0.00")
        assert self.services.fulfillment.linkages_for_item(self.items[0].id) == []

    def test_payment_confirmation_persists_and_closes(self):
        for item in self.items:
            self._register(item, "10")
        self.services.repository.add_invoice(
            _invoice(self.process, self.commitment, "200", InvoiceSettlement.PAGA),
        )

        outcome = self.services.lifecycle.confirm_payment(self.empresa_id, self.process.id)

        assert outcome.closed is True
        stored = self.services.repository.find_process(self.empresa_id, self.process.id)
        assert stored.status == ProcessStatus.ENCERRAMENTO
        assert stored.data_recebimento_pagamento == date(2024, 6, 15)
        for item in self.services.repository.items_for(self.empresa_id, self.process.id):
            assert item.valor_pago == Decimal("200.00")
            assert item.saldo_aberto == Decimal("0.00")

    def test_balance_through_sql(self):
        for item in self.items:
            self._register(item, "10")
        self.services.repository.add_invoice(
            _invoice(self.process, self.commitment, "150", InvoiceSettlement.PAGA),
        )
        balance = self.services.balance.process_balance(self.empresa_id, self.process.id)
        assert balance.resumo.total_vencido == Decimal("200.00")
        assert balance.resumo.total_empenhado == Decimal("200.00")
        assert balance.resumo.total_pago == Decimal("150.00")
        assert balance.resumo.total_pendente == Decimal("50.00")


class TestSessionScope:
    """Commit and rollback through the module-level engine."""

    @pytest.fixture(autouse=True)
    def _engine(self, tmp_path):
        init_engine_from_url(f"sqlite:///{tmp_path / 'licita.db'}")
        create_tables()
        yield
        reset_engine()

    def test_rejected_payment_writes_nothing(self, empresa_id):
        with session_scope() as session:
            services = build_processo_services(session, ACTOR_ID, clock=CLOCK)
            process, _, _ = _seed(services, empresa_id, status=ProcessStatus.PARTICIPACAO)

        with pytest.raises(PaymentConfirmationError):
            with session_scope() as session:
                services = build_processo_services(session, ACTOR_ID, clock=CLOCK)
                services.lifecycle.confirm_payment(empresa_id, process.id)

        with session_scope() as session:
            services = build_processo_services(session, ACTOR_ID, clock=CLOCK)
            stored = services.repository.find_process(empresa_id, process.id)
        assert stored.status == ProcessStatus.PARTICIPACAO
        assert stored.data_recebimento_pagamento is None

    def test_error_after_write_rolls_back(self, empresa_id):
        with session_scope() as session:
            services = build_processo_services(session, ACTOR_ID, clock=CLOCK)
            process, _, _ = _seed(services, empresa_id)

        with pytest.raises(RuntimeError):
            with session_scope() as session:
                services = build_processo_services(session, ACTOR_ID, clock=CLOCK)
                services.lifecycle.start_payment(empresa_id, process.id)
                raise RuntimeError("downstream failure")

        with session_scope() as session:
            services = build_processo_services(session, ACTOR_ID, clock=CLOCK)
            assert services.repository.find_process(empresa_id, process.id).status == (
                ProcessStatus.EXECUCAO
            )
