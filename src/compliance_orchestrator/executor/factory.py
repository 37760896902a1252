"""Executor resolution for dry-run and LLM-backed execution modes."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from compliance_orchestrator.config.settings import Settings, get_settings
from compliance_orchestrator.executor.base import BaseExecutor
from compliance_orchestrator.executor.dry_run import DryRunExecutor
from compliance_orchestrator.executor.llm import LLMExecutor

logger = logging.getLogger(__name__)

EXECUTOR_MODES = ("dry-run", "llm")


@dataclass(frozen=True)
class ExecutorResolution:
    executor: BaseExecutor
    requested_mode: str
    effective_mode: str
    fallback_reason: str | None = None

    def describe(self) -> dict[str, str | None]:
        return {
            "requested_mode": self.requested_mode,
            "effective_mode": self.effective_mode,
            "implementation": self.executor.implementation,
            "fallback_reason": self.fallback_reason,
        }


def resolve_executor(
    mode: str | None = None,
    *,
    settings: Settings | None = None,
    run_id: str | None = None,
) -> ExecutorResolution:
    """Build the executor for `mode`, degrading to dry-run when LLM setup fails."""
    active = settings or get_settings()
    requested = (mode or active.executor_mode).strip().lower()
    common = {
        "run_id": run_id,
        "timeout_s": active.task_timeout_s,
        "max_retries": active.task_max_retries,
        "backoff_s": active.task_retry_backoff_s,
        "runs_dir": active.runs_dir or None,
    }

    if requested == "llm":
        if active.llm_provider.lower() != "openai":
            reason = f"Unsupported LLM provider '{active.llm_provider}'"
        else:
            try:
                executor = LLMExecutor(
                    api_key=active.resolved_openai_api_key(),
                    model=active.llm_model,
                    base_url=active.llm_base_url,
                    request_timeout_s=active.llm_timeout_s,
                    **common,
                )
            except Exception as exc:  # noqa: BLE001
                reason = str(exc)
            else:
                return ExecutorResolution(
                    executor=executor,
                    requested_mode=requested,
                    effective_mode="llm",
                )
    elif requested == "dry-run":
        return ExecutorResolution(
            executor=DryRunExecutor(**common),
            requested_mode=requested,
            effective_mode="dry-run",
        )
    else:
        reason = f"Unknown executor mode '{requested}'"

    logger.warning(
        "Executor mode '%s' unavailable; falling back to dry-run. reason=%s",
        requested,
        reason,
    )
    return ExecutorResolution(
        executor=DryRunExecutor(**common),
        requested_mode=requested,
        effective_mode="dry-run",
        fallback_reason=reason,
    )
