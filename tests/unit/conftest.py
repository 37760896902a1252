import asyncio

import pytest

from compliance_orchestrator.executor.scripted import ScriptedExecutor
from compliance_orchestrator.graph.workflow import run_process


@pytest.fixture
def run_workflow():
    def _run(process_id, inputs, responses=None, **executor_kwargs):
        executor = ScriptedExecutor(responses, **executor_kwargs)
        result = asyncio.run(run_process(process_id, inputs, executor))
        return result, executor

    return _run
