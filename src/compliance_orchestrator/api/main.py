"""FastAPI app entrypoint for compliance-orchestrator."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from starlette.concurrency import run_in_threadpool

from compliance_orchestrator.config.settings import Settings, get_settings
from compliance_orchestrator.executor.factory import EXECUTOR_MODES, resolve_executor
from compliance_orchestrator.graph.phases import ProcessDefinition
from compliance_orchestrator.graph.workflow import run_process
from compliance_orchestrator.processes import get_process, list_processes
from compliance_orchestrator.storage.base import RunStorage
from compliance_orchestrator.storage.memory import InMemoryRunStorage
from compliance_orchestrator.storage.models import RunRecord
from compliance_orchestrator.storage.postgres import PostgresRunStorage
from compliance_orchestrator.tasks.registry import get_task, list_tasks

logger = logging.getLogger(__name__)


class StartRunRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    process_id: str = Field(min_length=1)
    inputs: dict[str, Any] = Field(default_factory=dict)
    executor_mode: str | None = None


def _ensure_runtime_state(
    app: FastAPI,
    *,
    settings: Settings,
    storage_override: RunStorage | None,
) -> None:
    if not hasattr(app.state, "storage"):
        database_url = settings.resolved_database_url()
        if storage_override is not None:
            app.state.storage = storage_override
        elif database_url:
            app.state.storage = PostgresRunStorage(database_url)
        else:
            logger.warning(
                "No database URL configured; run records are kept in memory only. "
                "Set COMPLIANCE_ORCHESTRATOR_DATABASE_URL or ORCHESTRATOR_DATABASE_URL to persist them."
            )
            app.state.storage = InMemoryRunStorage()
        app.state.storage.migrate()

    if not hasattr(app.state, "settings"):
        app.state.settings = settings


def create_app(
    *,
    storage: RunStorage | None = None,
    settings_override: Settings | None = None,
) -> FastAPI:
    settings = settings_override or get_settings()
    logging.getLogger("compliance_orchestrator").setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _ensure_runtime_state(app, settings=settings, storage_override=storage)
        yield

    app_lifespan = lifespan if storage is None else None
    app = FastAPI(title=settings.app_name, debug=settings.app_debug, lifespan=app_lifespan)

    # Keep test paths reliable when lifespan is not executed by the client.
    if storage is not None:
        _ensure_runtime_state(app, settings=settings, storage_override=storage)

    def _get_run_storage(request: Request) -> RunStorage:
        if not hasattr(request.app.state, "storage"):
            _ensure_runtime_state(request.app, settings=settings, storage_override=storage)
        return request.app.state.storage

    def _lookup_process(process_id: str) -> ProcessDefinition:
        try:
            return get_process(process_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Process not found") from exc

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "service": settings.app_name}

    @app.get("/processes")
    def processes() -> dict[str, list[dict[str, Any]]]:
        return {
            "processes": [
                {
                    "processId": definition.process_id,
                    "slug": definition.slug,
                    "title": definition.title,
                    "description": definition.description,
                    "required": list(definition.required),
                    "labels": list(definition.labels),
                }
                for definition in list_processes()
            ]
        }

    @app.get("/processes/{process_id:path}/tasks")
    def process_tasks(process_id: str) -> dict[str, Any]:
        definition = _lookup_process(process_id)
        return {"processId": definition.process_id, "tasks": definition.task_names()}

    @app.get("/tasks")
    def tasks() -> dict[str, list[str]]:
        return {"tasks": list_tasks()}

    @app.get("/tasks/{task_name}")
    def task_detail(task_name: str) -> dict[str, Any]:
        try:
            descriptor = get_task(task_name)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Task not found") from exc
        return {
            "name": descriptor.name,
            "title": descriptor.title,
            "kind": descriptor.kind,
            "agentName": descriptor.agent_name,
            "labels": list(descriptor.labels),
            "outputSchema": descriptor.output_schema(),
        }

    @app.post("/runs", response_model=RunRecord)
    async def start_run(payload: StartRunRequest, request: Request) -> RunRecord:
        run_storage = await run_in_threadpool(_get_run_storage, request)
        definition = _lookup_process(payload.process_id)
        mode = payload.executor_mode or settings.executor_mode
        if mode.strip().lower() not in EXECUTOR_MODES:
            raise HTTPException(status_code=422, detail=f"Unsupported executor mode '{mode}'")

        resolution = resolve_executor(mode, settings=settings)
        executor = resolution.executor
        result = await run_process(definition, payload.inputs, executor)
        logger.info(
            "api_run event=stored run_id=%s process=%s success=%s mode=%s",
            executor.run_id,
            definition.process_id,
            result.get("success"),
            resolution.effective_mode,
        )
        return await run_in_threadpool(
            run_storage.save_run,
            run_id=executor.run_id,
            process_id=definition.process_id,
            inputs=payload.inputs,
            result=result,
            executor=resolution.describe(),
        )

    @app.get("/runs")
    def runs(
        request: Request,
        process_id: str | None = None,
        limit: int = Query(default=50, ge=1, le=500),
    ) -> dict[str, Any]:
        run_storage = _get_run_storage(request)
        records = run_storage.list_runs(process_id=process_id, limit=limit)
        return {"runs": [record.model_dump(mode="json", exclude={"inputs", "result"}) for record in records]}

    @app.get("/runs/{run_id}", response_model=RunRecord)
    def get_run(run_id: str, request: Request) -> RunRecord:
        run_storage = _get_run_storage(request)
        record = run_storage.get_run(run_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Run not found")
        return record

    return app


app = create_app()
