"""
Tests for LinkageService: registering, updating and removing linkages.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from licita_engines.documents import InstrumentKind
from licita_kernel.exceptions import (
    ItemNotFoundError,
    LinkageNotFoundError,
    LinkageOwnershipError,
    LinkageQuantityExceededError,
    ProcessNotFoundError,
)
from licita_modules.processo.config import ProcessoConfig
from tests.fakes import build_services


class TestRegisterLinkage:

    @pytest.fixture(autouse=True)
    def _setup(self, store, services, empresa_id):
        self.store = store
        self.empresa_id = empresa_id
        self.linkages = services.linkage_service
        self.process = store.add_process()
        self.item = store.add_item(self.process, quantidade="10", valor_arrematado=Decimal("20"))
        self.commitment = store.add_instrument(self.process, InstrumentKind.EMPENHO, "200")

    def _register(self, quantidade="4", **overrides):
        kwargs = {
            "empresa_id": self.empresa_id,
            "processo_id": self.process.id,
            "item_id": self.item.id,
            "kind": InstrumentKind.EMPENHO,
            "instrument_id": self.commitment.id,
            "quantidade": Decimal(quantidade),
            "valor_unitario": Decimal("20"),
        }
        kwargs.update(overrides)
        return self.linkages.register(**kwargs)

    def test_register_stores_and_recomputes(self, captured_logs):
        linkage, item = self._register()
        assert linkage.valor_total == Decimal("80.00")
        assert self.store.linkages[linkage.id] == linkage
        assert item.valor_empenhado == Decimal("80.00")
        assert item.valor_vencido == Decimal("200.00")
        messages = [r["message"] for r in captured_logs()]
        assert "linkage_registered" in messages
        assert "item_recomputed" in messages

    def test_explicit_total_is_kept(self):
        linkage, _ = self._register(valor_total=Decimal("75"))
        assert linkage.valor_total == Decimal("75")

    def test_excess_quantity_rejected_before_write(self):
        self._register("8")
        with pytest.raises(LinkageQuantityExceededError):
            self._register("3")
        assert len(self.store.linkages) == 1

    def test_lenient_config_accepts_excess(self, store, clock):
        lenient = build_services(store, ProcessoConfig(strict_linkage_quantity=False), clock)
        self.linkages = lenient.linkage_service
        self._register("8")
        _, item = self._register("3")
        assert item.valor_empenhado == Decimal("220.00")

    def test_instrument_of_another_process_rejected(self):
        other = self.store.add_process()
        foreign = self.store.add_instrument(other, InstrumentKind.EMPENHO, "10")
        with pytest.raises(LinkageOwnershipError) as exc_info:
            self._register(instrument_id=foreign.id)
        assert exc_info.value.document == "empenho"

    def test_kind_mismatch_rejected(self):
        """A commitment id cannot be linked as a contract."""
        with pytest.raises(LinkageOwnershipError):
            self._register(kind=InstrumentKind.CONTRATO)

    def test_item_of_another_process_rejected(self):
        other = self.store.add_process()
        foreign_item = self.store.add_item(other)
        with pytest.raises(LinkageOwnershipError) as exc_info:
            self._register(item_id=foreign_item.id)
        assert exc_info.value.document == "item"

    def test_unknown_item(self):
        with pytest.raises(ItemNotFoundError):
            self._register(item_id=uuid4())

    def test_other_company(self):
        with pytest.raises(ProcessNotFoundError):
            self._register(empresa_id=uuid4())


class TestUpdateAndRemoveLinkage:

    @pytest.fixture(autouse=True)
    def _setup(self, store, services, empresa_id):
        self.store = store
        self.empresa_id = empresa_id
        self.linkages = services.linkage_service
        process = store.add_process()
        self.item = store.add_item(process, quantidade="10")
        commitment = store.add_instrument(process, InstrumentKind.EMPENHO, "200")
        self.linkage, _ = self.linkages.register(
            empresa_id=empresa_id,
            processo_id=process.id,
            item_id=self.item.id,
            kind=InstrumentKind.EMPENHO,
            instrument_id=commitment.id,
            quantidade=Decimal("6"),
            valor_unitario=Decimal("10"),
        )

    def test_update_may_use_its_own_quantity(self):
        updated, item = self.linkages.update(
            self.empresa_id, self.linkage.id, Decimal("10"), Decimal("10"),
        )
        assert updated.id == self.linkage.id
        assert updated.valor_total == Decimal("100.00")
        assert item.valor_empenhado == Decimal("100.00")

    def test_update_beyond_item_quantity_rejected(self):
        with pytest.raises(LinkageQuantityExceededError):
            self.linkages.update(self.empresa_id, self.linkage.id, Decimal("11"), Decimal("10"))

    def test_remove_recomputes_item(self, captured_logs):
        item = self.linkages.remove(self.empresa_id, self.linkage.id)
        assert self.linkage.id not in self.store.linkages
        assert item.valor_empenhado == Decimal("0.00")
        assert any(r["message"] == "linkage_removed" for r in captured_logs())

    def test_remove_keeps_linkage_when_process_is_gone(self):
        """A soft-deleted process is invisible to the repository."""
        del self.store.processes[self.item.processo_id]
        with pytest.raises(ProcessNotFoundError):
            self.linkages.remove(self.empresa_id, self.linkage.id)
        assert self.linkage.id in self.store.linkages

    def test_unknown_linkage(self):
        with pytest.raises(LinkageNotFoundError):
            self.linkages.remove(self.empresa_id, uuid4())

    def test_linkage_of_other_company_is_not_found(self):
        with pytest.raises(LinkageNotFoundError):
            self.linkages.update(uuid4(), self.linkage.id, Decimal("1"), Decimal("1"))
