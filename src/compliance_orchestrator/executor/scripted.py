"""Deterministic executor used to exercise workflows in tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Mapping, Union

from compliance_orchestrator.executor.base import BaseExecutor
from compliance_orchestrator.executor.dry_run import placeholder
from compliance_orchestrator.tasks.base import TaskDescriptor

ScriptedResponse = Union[
    Mapping[str, Any],
    Callable[[dict[str, Any]], Mapping[str, Any]],
    BaseException,
]

DEFAULT_START = datetime(2025, 1, 1, tzinfo=UTC)


class ScriptedExecutor(BaseExecutor):
    """Answer tasks from a script keyed by task name.

    A response may be a mapping merged over the placeholder result, a callable
    receiving the task arguments, or an exception to raise. The clock starts
    at 2025-01-01T00:00:00Z and advances one tick per `now()` call, and effect
    ids count up from `effect-0001`, so runs are reproducible.
    """

    implementation = "scripted"

    def __init__(
        self,
        responses: Mapping[str, ScriptedResponse] | None = None,
        *,
        run_id: str = "det-run-0001",
        start: datetime = DEFAULT_START,
        tick: timedelta = timedelta(seconds=1),
        **kwargs: Any,
    ) -> None:
        super().__init__(run_id=run_id, **kwargs)
        self.responses = dict(responses or {})
        self._clock = start
        self._tick = tick
        self._effect_counter = 0

    def now(self) -> datetime:
        current = self._clock
        self._clock = current + self._tick
        return current

    async def _invoke(self, descriptor: TaskDescriptor, rendered: dict[str, Any]) -> Any:
        response = self.responses.get(descriptor.name)
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            response = response(rendered["agent"]["prompt"]["context"])
        return {**placeholder(descriptor.output_model), **dict(response or {})}

    def _next_effect_id(self) -> str:
        self._effect_counter += 1
        return f"effect-{self._effect_counter:04d}"
