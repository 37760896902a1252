"""Storage backends and models."""

from compliance_orchestrator.storage.base import RunStorage
from compliance_orchestrator.storage.memory import InMemoryRunStorage
from compliance_orchestrator.storage.models import RunRecord
from compliance_orchestrator.storage.postgres import PostgresRunStorage

__all__ = [
    "InMemoryRunStorage",
    "PostgresRunStorage",
    "RunRecord",
    "RunStorage",
]
