"""Chat-completion client for the reasoning service (Gemini via its OpenAI-compatible API)."""
from __future__ import annotations

import json
import re
from typing import Any

from careerai.config import Settings
from careerai.log import get_logger

log = get_logger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class LlmNotConfiguredError(RuntimeError):
    pass


class LlmClient:
    def __init__(self, api_key: str, model: str, base_url: str) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self._client = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "LlmClient":
        return cls(settings.gemini_api_key, settings.llm_model, settings.llm_base_url)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _openai(self):
        if self._client is None:
            from openai import OpenAI

            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    def complete(self, prompt: str, *, max_tokens: int = 4000, temperature: float = 0.2) -> str:
        if not self.configured:
            raise LlmNotConfiguredError("GEMINI_API_KEY is not configured")
        resp = self._openai().chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        return (resp.choices[0].message.content or "").strip()


def strip_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` block if the model added one."""
    return _FENCE_RE.sub("", text.strip()).strip()


def parse_json(text: str, expect: type) -> Any:
    """Parse the model reply as JSON of type *expect* (list or dict).

    Falls back to the outermost bracket pair when the reply has prose around it.
    Raises ValueError when nothing parseable of the right type is found.
    """
    cleaned = strip_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        open_ch, close_ch = ("[", "]") if expect is list else ("{", "}")
        start = cleaned.find(open_ch)
        end = cleaned.rfind(close_ch) + 1
        if start == -1 or end == 0:
            raise ValueError("LLM did not return valid JSON")
        try:
            data = json.loads(cleaned[start:end])
        except json.JSONDecodeError as exc:
            raise ValueError(f"LLM returned invalid JSON: {exc}") from exc
    if not isinstance(data, expect):
        raise ValueError(f"LLM returned {type(data).__name__}, expected {expect.__name__}")
    return data
