"""Executor delegating tasks to an OpenAI-compatible chat completions API."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from urllib import error, request

from compliance_orchestrator.executor.base import BaseExecutor
from compliance_orchestrator.tasks.base import TaskDescriptor


class LLMExecutor(BaseExecutor):
    implementation = "llm"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str,
        request_timeout_s: float,
        **kwargs: Any,
    ) -> None:
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY is missing")
        super().__init__(**kwargs)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.request_timeout_s = request_timeout_s

    async def _invoke(self, descriptor: TaskDescriptor, rendered: dict[str, Any]) -> Any:
        request_body = _task_request_body(model=self.model, rendered=rendered)
        response_json = await asyncio.to_thread(
            _request_once,
            api_key=self.api_key,
            base_url=self.base_url,
            timeout_s=self.request_timeout_s,
            request_body=request_body,
        )
        return _extract_json_content(response_json, context=descriptor.name)


def _task_request_body(*, model: str, rendered: dict[str, Any]) -> dict[str, Any]:
    prompt = rendered["agent"]["prompt"]
    instructions = "\n".join(f"- {line}" for line in prompt["instructions"])
    return {
        "model": model,
        "temperature": 0,
        "response_format": {"type": "json_object"},
        "messages": [
            {
                "role": "system",
                "content": (
                    f"You are a {prompt['role']}. Return JSON only. "
                    "The JSON must satisfy the output schema given by the user. "
                    "Every result must include an 'artifacts' array of "
                    "{path, format, label} records for files you produced."
                ),
            },
            {
                "role": "user",
                "content": (
                    f"Task: {prompt['task']}\n\n"
                    f"Instructions:\n{instructions}\n\n"
                    f"Context JSON:\n{json.dumps(prompt['context'], ensure_ascii=True)}\n\n"
                    f"Output format: {prompt['outputFormat']}\n\n"
                    "Output schema:\n"
                    f"{json.dumps(rendered['agent']['outputSchema'], ensure_ascii=True)}"
                ),
            },
        ],
    }


def _request_once(
    *,
    api_key: str,
    base_url: str,
    timeout_s: float,
    request_body: dict[str, Any],
) -> dict[str, Any]:
    url = f"{base_url.rstrip('/')}/chat/completions"

    req = request.Request(
        url=url,
        data=json.dumps(request_body).encode("utf-8"),
        method="POST",
        headers={
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        },
    )
    try:
        with request.urlopen(req, timeout=timeout_s) as response:
            raw = response.read().decode("utf-8")
    except error.HTTPError as exc:
        message = exc.read().decode("utf-8", errors="replace")
        raise RuntimeError(
            f"LLM task request failed with status {exc.code}: {message[:400]}"
        ) from exc
    except error.URLError as exc:
        raise RuntimeError(f"LLM task request failed: {exc.reason}") from exc

    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RuntimeError("LLM task returned non-JSON response") from exc


def _extract_json_content(response_json: dict[str, Any], *, context: str) -> dict[str, Any]:
    choices = response_json.get("choices", [])
    if not choices:
        raise RuntimeError(f"LLM {context} response missing choices")

    message = choices[0].get("message", {})
    content = message.get("content")

    if isinstance(content, str):
        text = content.strip()
    elif isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict) and isinstance(item.get("text"), str):
                parts.append(item["text"])
        text = "".join(parts).strip()
    else:
        text = ""

    if not text:
        raise RuntimeError(f"LLM {context} response content is empty")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"LLM {context} content was not valid JSON") from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(f"LLM {context} content must be a JSON object")
    parsed.setdefault("artifacts", [])
    return parsed
