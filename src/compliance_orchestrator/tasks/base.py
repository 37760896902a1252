"""Declarative task descriptors handed to the agent runtime.

A descriptor is static data: a prompt bundle plus the output contract the
delegated worker must satisfy. Rendering one with concrete arguments produces
the JSON object the runtime consumes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Artifact(BaseModel):
    """Reference to a file produced by a phase, never its content."""

    model_config = ConfigDict(extra="allow")

    path: str
    format: str = "markdown"
    label: str | None = None
    language: str | None = None


class TaskOutput(BaseModel):
    """Base contract shared by every task result.

    Agents answer in camelCase JSON; attributes are snake_case. Extra fields
    reported by the agent are kept so later phases and reviewers still see them.
    """

    model_config = ConfigDict(extra="allow", alias_generator=to_camel, populate_by_name=True)

    artifacts: list[Artifact]


class CheckedOutput(TaskOutput):
    """Result carrying an explicit success flag; false stops the run."""

    success: bool


class ResultItem(BaseModel):
    """Nested record inside a task result (finding, control, policy...)."""

    model_config = ConfigDict(extra="allow", alias_generator=to_camel, populate_by_name=True)


@dataclass(frozen=True)
class AgentPrompt:
    role: str
    task: str
    instructions: tuple[str, ...]
    output_format: str


@dataclass(frozen=True)
class TaskIO:
    input_json_path: str
    output_json_path: str

    @classmethod
    def for_effect(cls, effect_id: str) -> TaskIO:
        return cls(
            input_json_path=f"tasks/{effect_id}/input.json",
            output_json_path=f"tasks/{effect_id}/result.json",
        )


@dataclass(frozen=True)
class TaskDescriptor:
    name: str
    title: str
    prompt: AgentPrompt
    output_model: type[TaskOutput]
    labels: tuple[str, ...] = ()
    agent_name: str = "general-purpose"
    kind: str = "agent"

    def output_schema(self) -> dict[str, Any]:
        return self.output_model.model_json_schema(by_alias=True)

    def render(self, args: dict[str, Any], *, effect_id: str) -> dict[str, Any]:
        """Build the runtime-facing descriptor object for one invocation."""
        io = TaskIO.for_effect(effect_id)
        return {
            "kind": self.kind,
            "title": interpolate(self.title, args),
            "agent": {
                "name": self.agent_name,
                "prompt": {
                    "role": self.prompt.role,
                    "task": self.prompt.task,
                    "context": args,
                    "instructions": list(self.prompt.instructions),
                    "outputFormat": self.prompt.output_format,
                },
                "outputSchema": self.output_schema(),
            },
            "io": {
                "inputJsonPath": io.input_json_path,
                "outputJsonPath": io.output_json_path,
            },
            "labels": [interpolate(label, args) for label in self.labels],
        }


def define_task(
    name: str,
    output_model: type[TaskOutput],
    *,
    title: str,
    role: str,
    task: str,
    instructions: list[str] | tuple[str, ...],
    labels: list[str] | tuple[str, ...] = (),
    agent_name: str = "general-purpose",
    output_format: str | None = None,
) -> TaskDescriptor:
    return TaskDescriptor(
        name=name,
        title=title,
        prompt=AgentPrompt(
            role=role,
            task=task,
            instructions=tuple(instructions),
            output_format=output_format or describe_output(output_model),
        ),
        output_model=output_model,
        labels=tuple(labels),
        agent_name=agent_name,
    )


def describe_output(model: type[BaseModel]) -> str:
    """One-line output format hint listing the required result keys."""
    required = [
        info.alias or to_camel(name)
        for name, info in model.model_fields.items()
        if info.is_required() and name != "artifacts"
    ]
    optional = [
        info.alias or to_camel(name)
        for name, info in model.model_fields.items()
        if not info.is_required()
    ]
    text = "JSON object with " + ", ".join([*required, "artifacts"])
    if optional:
        text += "; optionally " + ", ".join(optional)
    return text


def interpolate(template: str, args: dict[str, Any]) -> str:
    return template.format_map(_BlankMissing(args))


def jsonable(value: Any) -> Any:
    """Convert task results nested in argument payloads into plain JSON data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, dict):
        return {str(key): jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(item) for item in value]
    return value


class _BlankMissing(dict):
    def __missing__(self, key: str) -> str:
        return ""
