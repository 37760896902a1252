"""Building blocks for declaring a workflow as an ordered list of steps."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Mapping, Union

from compliance_orchestrator.executor.base import GateRequest
from compliance_orchestrator.tasks.base import Artifact, TaskDescriptor

RESERVED_NODE_NAMES = frozenset(
    {"finalize", "run_id", "process_id", "started_at", "inputs", "results", "artifacts",
     "trail", "failure", "output"}
)


@dataclass(frozen=True)
class PhaseView:
    """Read-only window on a run, passed to argument, gate and result builders."""

    run_id: str
    inputs: Any
    results: Mapping[str, Any]
    artifacts: tuple[Artifact, ...] = ()

    @classmethod
    def from_state(cls, state: Mapping[str, Any]) -> PhaseView:
        return cls(
            run_id=state.get("run_id", ""),
            inputs=state.get("inputs"),
            results=dict(state.get("results") or {}),
            artifacts=tuple(state.get("artifacts") or ()),
        )

    def result(self, name: str) -> Any:
        return self.results.get(name)

    def ran(self, name: str) -> bool:
        return self.results.get(name) is not None

    def with_result(self, name: str, result: Any, batch: Iterable[Artifact]) -> PhaseView:
        return replace(
            self,
            results={**self.results, name: result},
            artifacts=self.artifacts + tuple(batch),
        )


Predicate = Callable[[PhaseView], bool]
GateBuilder = Callable[[PhaseView], Union[GateRequest, None]]


@dataclass(frozen=True)
class TaskPhase:
    """Run one task; its result is stored under `name`."""

    name: str
    task: TaskDescriptor
    args: Callable[[PhaseView], dict[str, Any]]
    when: Predicate | None = None
    gate: GateBuilder | None = None
    announce: str | None = None

    @property
    def tasks(self) -> tuple[TaskDescriptor, ...]:
        return (self.task,)


@dataclass(frozen=True)
class Member:
    key: str
    task: TaskDescriptor
    args: dict[str, Any]


@dataclass(frozen=True)
class ParallelPhase:
    """Fork-join group; the stored result maps each member key to its result."""

    name: str
    tasks: tuple[TaskDescriptor, ...]
    members: Callable[[PhaseView], list[Member]]
    when: Predicate | None = None
    gate: GateBuilder | None = None
    announce: str | None = None


@dataclass(frozen=True)
class Gate:
    """Stand-alone checkpoint or breakpoint with no task attached."""

    name: str
    build: GateBuilder
    when: Predicate | None = None

    @property
    def tasks(self) -> tuple[TaskDescriptor, ...]:
        return ()


Step = Union[TaskPhase, ParallelPhase, Gate]


@dataclass(frozen=True)
class ProcessDefinition:
    process_id: str
    title: str
    inputs_model: type
    steps: tuple[Step, ...]
    finalize: Callable[[PhaseView], dict[str, Any]]
    required: tuple[str, ...] = ()
    metadata: Callable[[Any], dict[str, Any]] | None = None
    description: str = ""
    labels: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError(f"Process '{self.process_id}' has no steps")
        seen: set[str] = set()
        for step in self.steps:
            if step.name in RESERVED_NODE_NAMES:
                raise ValueError(f"Step name '{step.name}' is reserved")
            if step.name in seen:
                raise ValueError(f"Duplicate step name '{step.name}' in '{self.process_id}'")
            seen.add(step.name)

    @property
    def slug(self) -> str:
        return self.process_id.rsplit("/", 1)[-1]

    def task_names(self) -> list[str]:
        names: list[str] = []
        for step in self.steps:
            for task in step.tasks:
                if task.name not in names:
                    names.append(task.name)
        return names


def files(artifacts: Iterable[Artifact], *, limit: int | None = None) -> list[dict[str, Any]]:
    """Reviewer-facing projection of artifacts: references only, no content."""
    projected = [
        artifact.model_dump(include={"path", "format", "label", "language"}, exclude_none=True)
        for artifact in artifacts
    ]
    return projected if limit is None else projected[:limit]


def file_ref(path: str | None, label: str, fmt: str = "markdown") -> list[dict[str, Any]]:
    """Single named file for gate contexts; empty when the path is unknown."""
    if not path:
        return []
    return [{"path": path, "format": fmt, "label": label}]
