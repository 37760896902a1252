"""Offline executor returning schema-shaped placeholder results."""

from __future__ import annotations

import types
from typing import Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel

from compliance_orchestrator.executor.base import BaseExecutor
from compliance_orchestrator.tasks.base import TaskDescriptor


class DryRunExecutor(BaseExecutor):
    """Walk a workflow end to end without contacting any agent runtime.

    Every task answers with the smallest result its output model accepts:
    empty strings and lists, numbers at their lower bound, the first enum
    member, and booleans set to true so gated phases keep running.
    """

    implementation = "dry-run"

    async def _invoke(self, descriptor: TaskDescriptor, rendered: dict[str, Any]) -> Any:
        return placeholder(descriptor.output_model)


def placeholder(model: type[BaseModel]) -> dict[str, Any]:
    generator = model.model_config.get("alias_generator")
    payload: dict[str, Any] = {}
    for name, info in model.model_fields.items():
        if not info.is_required():
            continue
        key = info.alias or (generator(name) if callable(generator) else name)
        payload[key] = _placeholder_value(info.annotation, info.metadata)
    return payload


def _placeholder_value(annotation: Any, metadata: list[Any]) -> Any:
    origin = get_origin(annotation)
    if origin is Literal:
        return get_args(annotation)[0]
    if origin in (Union, types.UnionType):
        members = [item for item in get_args(annotation) if item is not type(None)]
        return _placeholder_value(members[0], metadata) if members else None
    if annotation in (list, tuple, set) or origin in (list, tuple, set):
        return []
    if annotation is dict or origin is dict:
        return {}
    if annotation is bool:
        return True
    if annotation in (int, float):
        return _lower_bound(annotation, metadata)
    if annotation is str:
        return ""
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return placeholder(annotation)
    return None


def _lower_bound(number_type: type, metadata: list[Any]) -> int | float:
    for constraint in metadata:
        bound = getattr(constraint, "ge", None)
        if bound is not None:
            return number_type(bound)
    return number_type(0)
