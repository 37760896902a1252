"""Task execution backends behind a single capability interface."""

from compliance_orchestrator.executor.base import (
    BaseExecutor,
    Executor,
    GateRequest,
    ParallelFailure,
    TaskCall,
    TaskFailure,
)
from compliance_orchestrator.executor.dry_run import DryRunExecutor, placeholder
from compliance_orchestrator.executor.factory import ExecutorResolution, resolve_executor
from compliance_orchestrator.executor.llm import LLMExecutor
from compliance_orchestrator.executor.scripted import ScriptedExecutor

__all__ = [
    "BaseExecutor",
    "DryRunExecutor",
    "Executor",
    "ExecutorResolution",
    "GateRequest",
    "LLMExecutor",
    "ParallelFailure",
    "ScriptedExecutor",
    "TaskCall",
    "TaskFailure",
    "placeholder",
    "resolve_executor",
]
