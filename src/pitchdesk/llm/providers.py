from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from openai import OpenAI

from pitchdesk.config import Settings
from pitchdesk.types import ModelResponse

logger = logging.getLogger(__name__)

_FENCED_OBJECT = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


@dataclass(slots=True)
class ProviderConfig:
    name: str
    base_url: str
    api_key: str
    timeout_sec: int


class LLMProvider:
    """One OpenAI-compatible endpoint.

    Requests go to the responses API first. Servers that do not implement it
    (most local runtimes answer 404) are retried once on chat completions.
    """

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.client = OpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout=float(config.timeout_sec),
        )

    def complete_text(self, *, model: str, prompt: str, system: str = "") -> ModelResponse:
        try:
            return self._via_responses(model, prompt, system)
        except Exception as exc:
            if not _responses_unsupported(exc):
                raise
            logger.warning(
                "Responses API unavailable provider=%s; using chat.completions (%s)",
                self.config.name,
                exc,
            )
            return self._via_chat(model, prompt, system)

    def complete_json(self, *, model: str, prompt: str, system: str = "") -> dict[str, Any]:
        return parse_json(self.complete_text(model=model, prompt=prompt, system=system).content)

    def _via_responses(self, model: str, prompt: str, system: str) -> ModelResponse:
        request: dict[str, Any] = {
            "model": model,
            "input": [{"role": "user", "content": [{"type": "input_text", "text": prompt}]}],
        }
        if system:
            request["instructions"] = system
        response = self.client.responses.create(**request)
        return ModelResponse(content=getattr(response, "output_text", "") or "", raw={"api_path": "responses"})

    def _via_chat(self, model: str, prompt: str, system: str) -> ModelResponse:
        messages = [{"role": "system", "content": system}] if system else []
        messages.append({"role": "user", "content": prompt})
        response = self.client.chat.completions.create(model=model, messages=messages)

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        return ModelResponse(content=content or "", raw={"api_path": "chat_completions"})


def _responses_unsupported(exc: Exception) -> bool:
    if getattr(exc, "status_code", None) == 404:
        return True
    message = str(exc).lower()
    return "404" in message or "not found" in message


def parse_json(content: str) -> dict[str, Any]:
    """Decode a model reply that should hold one JSON object, fenced or bare."""
    candidate = content.strip()
    match = _FENCED_OBJECT.search(candidate)
    if match:
        candidate = match.group(1)
    if not candidate:
        return {}

    try:
        value = json.loads(candidate)
    except json.JSONDecodeError:
        logger.warning("Model reply was not valid JSON")
        return {}
    return value if isinstance(value, dict) else {}


class ProviderPool:
    """Lazily built providers keyed by name ("openai" or "local")."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._providers: dict[str, LLMProvider] = {}

    def get(self, name: str) -> LLMProvider:
        if name not in self._providers:
            self._providers[name] = LLMProvider(self._config(name))
        return self._providers[name]

    def _config(self, name: str) -> ProviderConfig:
        s = self.settings
        if name == "local":
            return ProviderConfig("local", s.local_llm_base_url, s.local_llm_api_key, s.local_llm_timeout_sec)
        return ProviderConfig("openai", s.openai_base_url, s.openai_api_key, s.openai_timeout_sec)
