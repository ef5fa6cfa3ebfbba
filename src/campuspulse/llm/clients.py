"""Text-generation client wrappers."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Protocol

import requests
from requests import RequestException

from campuspulse.errors import UPSTREAM_TRANSPORT, UPSTREAM_UNPARSABLE, UpstreamError

logger = logging.getLogger(__name__)

GROQ_ENDPOINT = "https://api.groq.com/openai/v1"
GROQ_MODEL = "llama-3.3-70b-versatile"


class BaseLLMClient(Protocol):
    def generate(self, prompt: str) -> str:
        """Generate text from a prompt."""
        ...


@dataclass
class OpenAICompatibleClient:
    endpoint: str
    model: str
    api_key: str | None = None
    temperature: float = 0.7
    max_tokens: int = 2000
    timeout_seconds: float = 8

    def generate(self, prompt: str) -> str:
        url = f"{self.endpoint.rstrip('/')}/chat/completions"
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            response = requests.post(url, json=payload, headers=headers, timeout=self.timeout_seconds)
            response.raise_for_status()
        except RequestException as exc:
            raise UpstreamError(UPSTREAM_TRANSPORT, f"Text generation request to {url} failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError(UPSTREAM_UNPARSABLE, "Text generation service returned a non-JSON body.") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return ""
        if content is None:
            return ""
        if not isinstance(content, str):
            raise UpstreamError(UPSTREAM_UNPARSABLE, f"Message content is {type(content).__name__}, not text.")
        return content


def build_llm_client(cfg: Dict[str, Any]) -> BaseLLMClient | None:
    """Build the configured client, or None when generation is disabled or unconfigured."""
    llm_cfg = cfg.get("llm") or {}
    if not llm_cfg.get("enabled", True):
        return None

    provider = str(llm_cfg.get("provider", "groq")).lower()
    if provider == "none":
        return None
    if provider == "groq":
        defaults = {"endpoint": GROQ_ENDPOINT, "model": GROQ_MODEL, "api_key_env": "GROQ_API_KEY"}
    elif provider in {"lmstudio", "openai_compatible"}:
        defaults = {"endpoint": "http://127.0.0.1:1234/v1", "model": "local-model", "api_key_env": None}
    else:
        raise ValueError(f"Unsupported LLM provider: {provider}")

    api_key = None
    key_env = llm_cfg.get("api_key_env", defaults["api_key_env"])
    if key_env:
        api_key = os.environ.get(key_env)
        if not api_key:
            logger.warning("%s is not set; recommendations will use the rule engine.", key_env)
            return None

    return OpenAICompatibleClient(
        endpoint=llm_cfg.get("endpoint") or defaults["endpoint"],
        model=llm_cfg.get("model") or defaults["model"],
        api_key=api_key,
        temperature=float(llm_cfg.get("temperature", 0.7)),
        max_tokens=int(llm_cfg.get("max_tokens", 2000)),
        timeout_seconds=float(llm_cfg.get("timeout_seconds", 8)),
    )
