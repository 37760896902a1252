import asyncio
import logging

from fastapi.testclient import TestClient

from compliance_orchestrator.api.main import create_app
from compliance_orchestrator.config.settings import Settings
from compliance_orchestrator.storage.memory import InMemoryRunStorage


def _client(**settings) -> TestClient:
    app = create_app(
        storage=InMemoryRunStorage(),
        settings_override=Settings(_env_file=None, executor_mode="dry-run", **settings),
    )
    return TestClient(app)


def test_health_endpoint() -> None:
    response = _client().get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "compliance-orchestrator"}


def test_lists_processes() -> None:
    response = _client().get("/processes")

    assert response.status_code == 200
    processes = response.json()["processes"]
    assert len(processes) == 7
    dast = next(item for item in processes if item["slug"] == "dast-process")
    assert dast["processId"] == "security-compliance/dast-process"
    assert dast["required"] == ["application_url"]


def test_lists_process_tasks_by_id_or_slug() -> None:
    client = _client()

    by_id = client.get("/processes/security-compliance/dast-process/tasks")
    by_slug = client.get("/processes/dast-process/tasks")

    assert by_id.status_code == 200
    assert by_id.json()["tasks"][0] == "assess-environment"
    assert by_id.json() == by_slug.json()
    assert client.get("/processes/nope/tasks").status_code == 404


def test_run_roundtrip() -> None:
    client = _client()

    run_resp = client.post(
        "/runs",
        json={
            "processId": "security-compliance/dast-process",
            "inputs": {"applicationUrl": "https://app.example.com"},
        },
    )
    assert run_resp.status_code == 200
    payload = run_resp.json()
    assert payload["status"] == "completed"
    assert payload["process_id"] == "security-compliance/dast-process"
    assert payload["result"]["criticalIssues"] == 0
    assert payload["executor"]["effective_mode"] == "dry-run"

    get_resp = client.get(f"/runs/{payload['run_id']}")
    assert get_resp.status_code == 200
    assert get_resp.json()["result"] == payload["result"]

    listed = client.get("/runs", params={"process_id": "security-compliance/dast-process"})
    assert [item["run_id"] for item in listed.json()["runs"]] == [payload["run_id"]]


def test_failed_workflow_is_stored_as_data() -> None:
    client = _client()

    response = client.post("/runs", json={"processId": "pci-dss-compliance", "inputs": {}})

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "failed"
    assert payload["success"] is False
    assert payload["failed_phase"] == "inputs"
    assert payload["result"]["details"] == {"missing": ["projectName"]}


def test_llm_mode_without_key_falls_back(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    client = _client(openai_api_key="")

    response = client.post(
        "/runs",
        json={
            "processId": "iso27001-implementation",
            "inputs": {"organization": "Acme"},
            "executorMode": "llm",
        },
    )

    executor = response.json()["executor"]
    assert executor["requested_mode"] == "llm"
    assert executor["effective_mode"] == "dry-run"
    assert executor["fallback_reason"]


def test_unknown_process_and_run_return_404() -> None:
    client = _client()

    assert client.post("/runs", json={"processId": "nope"}).status_code == 404
    assert client.get("/runs/run-missing").status_code == 404


def test_unsupported_executor_mode_is_rejected() -> None:
    response = _client().post(
        "/runs",
        json={"processId": "dast-process", "inputs": {}, "executorMode": "quantum"},
    )

    assert response.status_code == 422


def test_task_catalogue_endpoints() -> None:
    client = _client()

    listed = client.get("/tasks").json()["tasks"]
    assert "assess-environment" in listed
    assert "create-access-control-policies" in listed
    assert listed == sorted(listed)

    detail = client.get("/tasks/active-scan")
    assert detail.status_code == 200
    body = detail.json()
    assert body["name"] == "active-scan"
    assert "criticalCount" in body["outputSchema"]["properties"]
    assert client.get("/tasks/not-a-task").status_code == 404


class _LoopAwareStorage(InMemoryRunStorage):
    def __init__(self) -> None:
        super().__init__()
        self.saved_on_event_loop: bool | None = None

    def save_run(self, **kwargs):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self.saved_on_event_loop = False
        else:
            self.saved_on_event_loop = True
        return super().save_run(**kwargs)


def test_run_is_saved_off_the_event_loop() -> None:
    storage = _LoopAwareStorage()
    app = create_app(
        storage=storage,
        settings_override=Settings(_env_file=None, executor_mode="dry-run"),
    )

    response = TestClient(app).post(
        "/runs",
        json={"processId": "dast-process", "inputs": {"applicationUrl": "https://app.example.com"}},
    )

    assert response.status_code == 200
    assert storage.saved_on_event_loop is False


def test_run_listing_limit_is_bounded() -> None:
    client = _client()

    assert client.get("/runs", params={"limit": 0}).status_code == 422
    assert client.get("/runs", params={"limit": -3}).status_code == 422
    assert client.get("/runs", params={"limit": 501}).status_code == 422
    assert client.get("/runs", params={"limit": 10}).status_code == 200


def test_log_level_setting_applies_to_package_logger() -> None:
    package_logger = logging.getLogger("compliance_orchestrator")
    original = package_logger.level
    try:
        _client(log_level="debug")
        assert package_logger.level == logging.DEBUG
    finally:
        package_logger.setLevel(original)
