"""Merged descriptor registry across every workflow's task catalogue."""

from __future__ import annotations

from functools import lru_cache

from compliance_orchestrator.tasks import (
    dast,
    data_classification,
    iac_security,
    iso27001,
    pci_dss,
    sca_dependency,
    security_policies,
)
from compliance_orchestrator.tasks.base import TaskDescriptor

CATALOGUES = (
    dast,
    pci_dss,
    iso27001,
    data_classification,
    iac_security,
    sca_dependency,
    security_policies,
)


def build_registry() -> dict[str, TaskDescriptor]:
    registry: dict[str, TaskDescriptor] = {}
    for catalogue in CATALOGUES:
        for descriptor in catalogue.TASKS:
            if descriptor.name in registry:
                raise ValueError(f"Duplicate task name '{descriptor.name}' in {catalogue.__name__}")
            registry[descriptor.name] = descriptor
    return registry


@lru_cache(maxsize=1)
def _registry() -> dict[str, TaskDescriptor]:
    return build_registry()


def list_tasks() -> list[str]:
    return sorted(_registry())


def get_task(name: str) -> TaskDescriptor:
    try:
        return _registry()[name]
    except KeyError:
        raise KeyError(f"Unknown task '{name}'") from None
