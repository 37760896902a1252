"""Executor capability interface shared by every task runtime."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Literal, Mapping, Protocol, Sequence, TypeVar
from uuid import uuid4

from pydantic import BaseModel, Field

from compliance_orchestrator.tasks.base import TaskDescriptor, TaskOutput, jsonable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskFailure(RuntimeError):
    """A delegated task failed or returned a result violating its contract."""

    def __init__(
        self,
        task_name: str,
        message: str,
        *,
        attempts: int = 1,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"Task '{task_name}' failed: {message}")
        self.task_name = task_name
        self.attempts = attempts
        self.details = details or {}


class ParallelFailure(RuntimeError):
    """At least one member of a fork-join group failed."""

    def __init__(self, failures: list[tuple[int, BaseException]]) -> None:
        summary = "; ".join(f"#{index}: {error}" for index, error in failures)
        super().__init__(f"{len(failures)} parallel task(s) failed: {summary}")
        self.failures = failures


class GateRequest(BaseModel):
    """Checkpoint or breakpoint payload handed to the external reviewer."""

    kind: Literal["checkpoint", "breakpoint"]
    title: str
    message: str | None = None
    question: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def checkpoint(cls, title: str, message: str, **context: Any) -> GateRequest:
        return cls(kind="checkpoint", title=title, message=message, context=context)

    @classmethod
    def breakpoint(cls, title: str, question: str, **context: Any) -> GateRequest:
        return cls(kind="breakpoint", title=title, question=question, context=context)


@dataclass(frozen=True)
class TaskCall:
    effect_id: str
    task: str
    title: str
    args: dict[str, Any] = field(repr=False)


class Executor(Protocol):
    run_id: str

    async def run_task(self, descriptor: TaskDescriptor, args: Mapping[str, Any]) -> TaskOutput: ...

    async def run_parallel(self, calls: Sequence[Callable[[], Awaitable[T]]]) -> list[T]: ...

    async def checkpoint(self, request: GateRequest) -> None: ...

    async def breakpoint(self, request: GateRequest) -> None: ...

    def now(self) -> datetime: ...

    def log(self, level: str, message: str) -> None: ...


class BaseExecutor:
    """Run descriptors through a backend with validation, timeout and retries.

    Subclasses only implement `_invoke`, which turns a rendered descriptor
    into the raw JSON result reported by the worker.
    """

    implementation = "base"

    def __init__(
        self,
        *,
        run_id: str | None = None,
        timeout_s: float = 600.0,
        max_retries: int = 0,
        backoff_s: float = 0.0,
        runs_dir: str | Path | None = None,
    ) -> None:
        self.run_id = run_id or f"run-{uuid4().hex[:12]}"
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self.backoff_s = backoff_s
        self.runs_dir = Path(runs_dir) if runs_dir else None
        self.calls: list[TaskCall] = []
        self.gates: list[GateRequest] = []

    async def run_task(self, descriptor: TaskDescriptor, args: Mapping[str, Any]) -> TaskOutput:
        effect_id = self._next_effect_id()
        payload = jsonable(dict(args))
        rendered = descriptor.render(payload, effect_id=effect_id)
        self.calls.append(
            TaskCall(effect_id=effect_id, task=descriptor.name, title=rendered["title"], args=payload)
        )
        self._materialize(rendered["io"]["inputJsonPath"], rendered)

        started_at = time.perf_counter()
        final_error = "unknown error"
        attempts = 0
        for attempt in range(self.max_retries + 1):
            attempts = attempt + 1
            try:
                raw = await asyncio.wait_for(
                    self._invoke(descriptor, rendered), timeout=self.timeout_s
                )
                result = descriptor.output_model.model_validate(raw)
            except TimeoutError:
                final_error = f"timed out after {self.timeout_s:.2f}s"
            except Exception as exc:  # noqa: BLE001
                final_error = str(exc)
            else:
                self._materialize(rendered["io"]["outputJsonPath"], jsonable(result))
                logger.info(
                    "task_run event=completed run_id=%s task=%s effect_id=%s "
                    "implementation=%s attempts=%s duration_ms=%s",
                    self.run_id,
                    descriptor.name,
                    effect_id,
                    self.implementation,
                    attempts,
                    _duration_ms(started_at),
                )
                return result
            if attempt < self.max_retries and self.backoff_s > 0:
                await asyncio.sleep(self.backoff_s)

        logger.warning(
            "task_run event=failed run_id=%s task=%s effect_id=%s attempts=%s error=%s",
            self.run_id,
            descriptor.name,
            effect_id,
            attempts,
            final_error,
        )
        raise TaskFailure(
            descriptor.name,
            final_error,
            attempts=attempts,
            details={"effectId": effect_id, "attempts": attempts},
        )

    async def run_parallel(self, calls: Sequence[Callable[[], Awaitable[T]]]) -> list[T]:
        outcomes = await asyncio.gather(*(call() for call in calls), return_exceptions=True)
        failures = [
            (index, outcome)
            for index, outcome in enumerate(outcomes)
            if isinstance(outcome, BaseException)
        ]
        if failures:
            raise ParallelFailure(failures)
        return list(outcomes)

    async def checkpoint(self, request: GateRequest) -> None:
        self._record_gate(request)

    async def breakpoint(self, request: GateRequest) -> None:
        self._record_gate(request)

    def now(self) -> datetime:
        return datetime.now(UTC)

    def log(self, level: str, message: str) -> None:
        levelno = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
        logger.log(levelno, "run_id=%s %s", self.run_id, message)

    def task_names(self) -> list[str]:
        return [call.task for call in self.calls]

    async def _invoke(self, descriptor: TaskDescriptor, rendered: dict[str, Any]) -> Any:
        raise NotImplementedError

    def _next_effect_id(self) -> str:
        return uuid4().hex

    def _record_gate(self, request: GateRequest) -> None:
        self.gates.append(request)
        logger.info(
            "gate event=%s run_id=%s title=%s",
            request.kind,
            self.run_id,
            request.title,
        )

    def _materialize(self, relative_path: str, payload: Any) -> None:
        if self.runs_dir is None:
            return
        target = self.runs_dir / self.run_id / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(payload, indent=2, ensure_ascii=True), encoding="utf-8")


def _duration_ms(started_at: float) -> float:
    return round((time.perf_counter() - started_at) * 1000.0, 2)
