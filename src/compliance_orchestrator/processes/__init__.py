"""Workflow definitions keyed by process id."""

from __future__ import annotations

from compliance_orchestrator.graph.phases import ProcessDefinition
from compliance_orchestrator.processes import (
    dast,
    data_classification,
    iac_security,
    iso27001,
    pci_dss,
    sca_dependency,
    security_policies,
)

PROCESSES: dict[str, ProcessDefinition] = {
    module.DEFINITION.process_id: module.DEFINITION
    for module in (
        dast,
        pci_dss,
        iso27001,
        data_classification,
        iac_security,
        sca_dependency,
        security_policies,
    )
}


def get_process(process: str) -> ProcessDefinition:
    """Look up a workflow by full process id or by its trailing slug."""
    if process in PROCESSES:
        return PROCESSES[process]
    for definition in PROCESSES.values():
        if definition.slug == process:
            return definition
    raise KeyError(f"Unknown process '{process}'")


def list_processes() -> list[ProcessDefinition]:
    return list(PROCESSES.values())


__all__ = ["PROCESSES", "get_process", "list_processes"]
