"""Shared input handling for workflow definitions."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel


class ProcessInputs(BaseModel):
    """Configuration for one run; immutable once resolved.

    Callers may use camelCase (as the agent runtime does) or snake_case keys.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    output_dir: str = "output"


class ProcessInputError(ValueError):
    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class MissingInputError(ProcessInputError):
    """A required input was absent or empty."""


class InvalidInputError(ProcessInputError):
    """An input failed type or value validation."""


def resolve_inputs(
    model: type[ProcessInputs],
    required: tuple[str, ...],
    raw: Mapping[str, Any],
) -> ProcessInputs:
    try:
        inputs = model.model_validate(dict(raw))
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise InvalidInputError("Invalid process inputs", details={"errors": errors}) from exc

    missing = [to_camel(name) for name in required if not getattr(inputs, name, None)]
    if missing:
        raise MissingInputError(
            f"Missing required input: {', '.join(missing)}",
            details={"missing": missing},
        )
    return inputs


def count(value: Any) -> int:
    """Length of an optional collection; agents sometimes omit empty lists."""
    return len(value) if value else 0


def pick(inputs: ProcessInputs, *names: str) -> dict[str, Any]:
    """Selected input options in the camelCase form agents receive."""
    return inputs.model_dump(mode="json", by_alias=True, include=set(names))
