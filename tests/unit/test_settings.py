import pytest
from pydantic import ValidationError

from compliance_orchestrator.config.settings import Settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.app_name == "compliance-orchestrator"
    assert settings.executor_mode == "dry-run"
    assert settings.task_max_retries == 1
    assert settings.llm_provider == "openai"


def test_environment_prefix(monkeypatch) -> None:
    monkeypatch.setenv("COMPLIANCE_ORCHESTRATOR_EXECUTOR_MODE", "llm")
    monkeypatch.setenv("COMPLIANCE_ORCHESTRATOR_TASK_TIMEOUT_S", "30")

    settings = Settings(_env_file=None)

    assert settings.executor_mode == "llm"
    assert settings.task_timeout_s == 30.0


def test_fallback_environment_variables(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-fallback")
    monkeypatch.setenv("ORCHESTRATOR_DATABASE_URL", "postgresql://localhost/runs")

    settings = Settings(_env_file=None, openai_api_key="", database_url="")

    assert settings.resolved_openai_api_key() == "sk-fallback"
    assert settings.resolved_database_url() == "postgresql://localhost/runs"
    assert Settings(_env_file=None, openai_api_key="sk-own").resolved_openai_api_key() == "sk-own"


def test_range_constraints() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, task_max_retries=-1)
