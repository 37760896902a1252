import pytest

from compliance_orchestrator.storage.memory import InMemoryRunStorage
from compliance_orchestrator.storage.postgres import PostgresRunStorage


def test_save_and_get_run() -> None:
    storage = InMemoryRunStorage()
    storage.migrate()

    record = storage.save_run(
        run_id="run-1",
        process_id="security-compliance/dast-process",
        inputs={"applicationUrl": "https://a"},
        result={"success": True, "artifacts": []},
        executor={"effective_mode": "dry-run"},
    )

    assert record.status == "completed"
    assert record.success is True
    assert storage.get_run("run-1") == record
    assert storage.get_run("run-2") is None


def test_below_threshold_run_is_completed_not_failed() -> None:
    storage = InMemoryRunStorage()

    record = storage.save_run(
        run_id="run-1",
        process_id="security-compliance/iac-security-review",
        inputs={},
        result={"success": False, "securityScore": 40},
        executor=None,
    )

    assert record.status == "completed"
    assert record.success is False
    assert record.failed_phase is None


def test_resave_keeps_creation_time_and_lists_newest_first() -> None:
    storage = InMemoryRunStorage()
    first = storage.save_run(run_id="a", process_id="p", inputs={}, result={}, executor=None)
    storage.save_run(run_id="b", process_id="q", inputs={}, result={}, executor=None)
    again = storage.save_run(
        run_id="a",
        process_id="p",
        inputs={},
        result={"success": False, "failedPhase": "scanning"},
        executor=None,
    )

    assert again.created_at == first.created_at
    assert again.status == "failed"
    assert [record.run_id for record in storage.list_runs()] == ["b", "a"]
    assert [record.run_id for record in storage.list_runs(process_id="p")] == ["a"]
    assert len(storage.list_runs(limit=1)) == 1


def test_postgres_storage_requires_database_url() -> None:
    with pytest.raises(ValueError, match="DATABASE_URL"):
        PostgresRunStorage("")
