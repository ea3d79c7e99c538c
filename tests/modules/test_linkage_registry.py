"""
Tests for the Linkage Registry and the Invoice Ledger View.

Covers:
- Linked quantities per instrument kind
- Strict and lenient quantity checks
- Undelivered quantity
- Invoice reachability through linkages, deduplicated per instrument
"""

from decimal import Decimal

import pytest

from licita_engines.documents import InstrumentKind, InvoiceDirection, InvoiceSettlement
from licita_kernel.exceptions import LinkageQuantityExceededError
from licita_modules.processo.config import ProcessoConfig
from licita_modules.processo.invoices import InvoiceLedgerView
from licita_modules.processo.linkage import LinkageRegistry


class TestLinkedQuantities:

    @pytest.fixture(autouse=True)
    def _setup(self, store):
        self.store = store
        self.process = store.add_process()
        self.item = store.add_item(self.process, quantidade="10")
        self.contract = store.add_instrument(self.process, InstrumentKind.CONTRATO, "500")
        self.commitment = store.add_instrument(self.process, InstrumentKind.EMPENHO, "500")
        self.registry = LinkageRegistry(store)

    def test_links_keep_creation_order(self):
        first = self.store.link(self.item, self.contract, "3")
        second = self.store.link(self.item, self.commitment, "4")
        assert [link.id for link in self.registry.links_for(self.item.id)] == [first.id, second.id]

    def test_linked_quantity_per_kind(self):
        self.store.link(self.item, self.contract, "3")
        self.store.link(self.item, self.contract, "2")
        self.store.link(self.item, self.commitment, "10")
        assert self.registry.linked_quantity(self.item.id, InstrumentKind.CONTRATO) == Decimal("5")
        assert self.registry.linked_quantity(self.item.id) == Decimal("15")

    def test_each_kind_may_cover_full_quantity(self):
        self.store.link(self.item, self.contract, "10")
        available = self.registry.available_quantity(self.item, InstrumentKind.EMPENHO)
        assert available == Decimal("10")

    def test_links_filtered_by_kind(self):
        self.store.link(self.item, self.contract, "3")
        commitment_link = self.store.link(self.item, self.commitment, "4")
        assert self.registry.links_by_kind(self.item.id, InstrumentKind.EMPENHO) == (commitment_link,)
        assert self.registry.links_by_kind(self.item.id, InstrumentKind.AUTORIZACAO_FORNECIMENTO) == ()

    def test_instruments_reached_once(self):
        self.store.link(self.item, self.contract, "3")
        self.store.link(self.item, self.contract, "2")
        assert self.registry.instruments_for(self.item.id) == (
            (InstrumentKind.CONTRATO, self.contract.id),
        )

    def test_undelivered_uses_best_covered_kind(self):
        self.store.link(self.item, self.contract, "4")
        self.store.link(self.item, self.commitment, "7")
        assert self.registry.undelivered_quantity(self.item) == Decimal("3")

    def test_undelivered_never_negative(self):
        self.store.link(self.item, self.commitment, "12")
        assert self.registry.undelivered_quantity(self.item) == Decimal("0")


class TestQuantityCheck:

    @pytest.fixture(autouse=True)
    def _setup(self, store):
        self.store = store
        process = store.add_process()
        self.item = store.add_item(process, quantidade="10")
        self.contract = store.add_instrument(process, InstrumentKind.CONTRATO, "500")
        self.existing = store.link(self.item, self.contract, "6")

    def test_fits_returns_available(self):
        registry = LinkageRegistry(self.store)
        assert registry.check_quantity(self.item, InstrumentKind.CONTRATO, Decimal("4")) == Decimal("4")

    def test_strict_mode_rejects_excess(self, captured_logs):
        registry = LinkageRegistry(self.store, ProcessoConfig(strict_linkage_quantity=True))
        with pytest.raises(LinkageQuantityExceededError) as exc_info:
            registry.check_quantity(self.item, InstrumentKind.CONTRATO, Decimal("5"))
        assert exc_info.value.available == "4"
        assert exc_info.value.requested == "5"
        assert any(r["message"] == "linkage_quantity_rejected" for r in captured_logs())

    def test_lenient_mode_only_logs(self, captured_logs):
        registry = LinkageRegistry(self.store, ProcessoConfig(strict_linkage_quantity=False))
        assert registry.check_quantity(self.item, InstrumentKind.CONTRATO, Decimal("5")) == Decimal("4")
        assert any(r["message"] == "linkage_quantity_exceeded" for r in captured_logs())

    def test_edited_linkage_does_not_count_against_itself(self):
        registry = LinkageRegistry(self.store)
        available = registry.check_quantity(
            self.item, InstrumentKind.CONTRATO, Decimal("10"),
            exclude_linkage_id=self.existing.id,
        )
        assert available == Decimal("10")


class TestInvoiceLedgerView:

    @pytest.fixture(autouse=True)
    def _setup(self, store):
        self.store = store
        self.process = store.add_process()
        self.item = store.add_item(self.process)
        self.commitment = store.add_instrument(self.process, InstrumentKind.EMPENHO, "1000")
        self.ledger = InvoiceLedgerView(LinkageRegistry(store), store)

    def test_invoice_counted_once_across_linkages(self):
        """Two linkages to one commitment do not double the invoice."""
        self.store.link(self.item, self.commitment, "5")
        self.store.link(self.item, self.commitment, "5")
        self.store.add_invoice(self.process, "300", self.commitment, situacao=InvoiceSettlement.PAGA)

        assert len(self.ledger.reachable_invoices(self.item.id)) == 1
        assert self.ledger.invoices_for(self.item.id, InvoiceDirection.SAIDA) == Decimal("300.00")

    def test_unattached_invoice_is_unreachable(self):
        self.store.link(self.item, self.commitment, "5")
        self.store.add_invoice(self.process, "300")
        assert self.ledger.reachable_invoices(self.item.id) == ()

    def test_totals_split_by_direction_and_settlement(self):
        self.store.link(self.item, self.commitment, "10")
        self.store.add_invoice(self.process, "100", self.commitment, situacao=InvoiceSettlement.PAGA)
        self.store.add_invoice(self.process, "40", self.commitment)
        self.store.add_invoice(
            self.process, "10", self.commitment, situacao=InvoiceSettlement.CANCELADA,
        )
        self.store.add_invoice(
            self.process, "70", self.commitment, tipo=InvoiceDirection.ENTRADA,
            situacao=InvoiceSettlement.PAGA,
        )

        totals = self.ledger.totals_for(self.item.id)
        assert totals.saida.paga == Decimal("100.00")
        assert totals.saida.pendente == Decimal("40.00")
        assert totals.saida.cancelada == Decimal("10.00")
        assert totals.saida.total == Decimal("150.00")
        assert totals.entrada.total == Decimal("70.00")
        assert totals.quantidade_notas == 4
