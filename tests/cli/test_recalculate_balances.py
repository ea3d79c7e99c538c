"""
Tests for scripts/recalculate_balances.py against a SQLite file database.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from licita_engines.documents import InstrumentKind
from licita_kernel.db.engine import (
    create_tables,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from licita_kernel.domain.clock import DeterministicClock
from licita_modules.processo.models import (
    Instrument,
    ItemStatus,
    Process,
    ProcessItem,
    ProcessStatus,
)
from licita_modules.processo.orchestrator import build_processo_services
from scripts.recalculate_balances import main

ACTOR_ID = uuid4()
CLOCK = DeterministicClock(datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def db_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'licita.db'}"
    init_engine_from_url(url)
    create_tables()
    yield url
    reset_engine()


def _seed_execution(empresa_id) -> Process:
    """A process in execution with one awarded item committed in full."""
    with session_scope() as session:
        services = build_processo_services(session, ACTOR_ID, clock=CLOCK)
        repo = services.repository
        process = repo.save_process(Process(
            id=uuid4(), empresa_id=empresa_id, status=ProcessStatus.EXECUCAO,
        ))
        item = repo.save_item(ProcessItem(
            id=uuid4(),
            empresa_id=empresa_id,
            processo_id=process.id,
            numero_item=1,
            quantidade=Decimal("10"),
            valor_arrematado=Decimal("10"),
            status_item=ItemStatus.ACEITO,
        ))
        commitment = repo.add_instrument(Instrument(
            id=uuid4(),
            empresa_id=empresa_id,
            processo_id=process.id,
            kind=InstrumentKind.EMPENHO,
            numero="2024NE0001",
            valor_total=Decimal("100"),
        ))
        services.linkage_service.register(
            empresa_id=empresa_id,
            processo_id=process.id,
            item_id=item.id,
            kind=InstrumentKind.EMPENHO,
            instrument_id=commitment.id,
            quantidade=Decimal("10"),
            valor_unitario=Decimal("10"),
        )
    return process


def _seed_elapsed_participation(empresa_id) -> Process:
    with session_scope() as session:
        repo = build_processo_services(session, ACTOR_ID, clock=CLOCK).repository
        return repo.save_process(Process(
            id=uuid4(),
            empresa_id=empresa_id,
            status=ProcessStatus.PARTICIPACAO,
            data_hora_sessao_publica=datetime(2020, 1, 10, 9, 0, tzinfo=timezone.utc),
        ))


def _status(empresa_id, processo_id) -> ProcessStatus:
    with session_scope() as session:
        repo = build_processo_services(session, ACTOR_ID, clock=CLOCK).repository
        return repo.find_process(empresa_id, processo_id).status


def test_recalculates_processes_in_execution(db_url, capsys):
    empresa_id = uuid4()
    process = _seed_execution(empresa_id)
    _seed_elapsed_participation(empresa_id)

    code = main(["--empresa-id", str(empresa_id), "--db-url", db_url])

    out = capsys.readouterr().out
    assert code == 0
    assert f"Process {process.id}: 1 items recalculated" in out
    assert "vencido=100.00" in out
    assert "Done: 1 recalculated, 0 failed." in out
    assert "Automatic transitions" not in out


def test_single_process(db_url, capsys):
    empresa_id = uuid4()
    process = _seed_execution(empresa_id)
    _seed_execution(empresa_id)

    code = main([
        "--empresa-id", str(empresa_id),
        "--processo-id", str(process.id),
        "--db-url", db_url,
    ])

    assert code == 0
    assert "Done: 1 recalculated, 0 failed." in capsys.readouterr().out


def test_unknown_process_fails(db_url, capsys):
    code = main([
        "--empresa-id", str(uuid4()),
        "--processo-id", str(uuid4()),
        "--db-url", db_url,
    ])

    captured = capsys.readouterr()
    assert code == 1
    assert "ERROR [PROCESS_NOT_FOUND]" in captured.err
    assert "Done: 0 recalculated, 1 failed." in captured.out


def test_auto_transitions_move_elapsed_participation(db_url, capsys):
    empresa_id = uuid4()
    participation = _seed_elapsed_participation(empresa_id)

    code = main(["--empresa-id", str(empresa_id), "--db-url", db_url, "--auto-transitions"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Automatic transitions: moved 1, lost suggestions 0, errors 0" in out
    assert _status(empresa_id, participation.id) == ProcessStatus.JULGAMENTO_HABILITACAO


def test_missing_config_file(db_url, tmp_path, capsys):
    code = main([
        "--empresa-id", str(uuid4()),
        "--config", str(tmp_path / "absent.yaml"),
        "--db-url", db_url,
    ])

    assert code == 1
    assert "Failed to load config" in capsys.readouterr().err


def test_invalid_config_key(db_url, tmp_path, capsys):
    path = tmp_path / "processo.yaml"
    path.write_text("processo:\n  archive_on_los: true\n")

    code = main(["--empresa-id", str(uuid4()), "--config", str(path), "--db-url", db_url])

    assert code == 1
    assert "archive_on_los" in capsys.readouterr().err
