from __future__ import annotations
import logging
import os
from typing import Any, Callable, List, Optional
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_mistralai import ChatMistralAI

logger = logging.getLogger(__name__)

PROVIDERS = {"auto", "gemini", "mistral"}


def _get_secret(name: str) -> Optional[str]:
    value = os.getenv(name)
    return value.strip() if value and value.strip() else None


def normalize_provider(p: str | None) -> str:
    if not p:
        return "auto"
    p = p.strip().lower()
    if p in PROVIDERS:
        return p
    return "auto"


def build_gemini(temperature: float = 0.2, timeout: float | None = None) -> ChatGoogleGenerativeAI:
    # Prefer GEMINI_API_KEY, fallback to GOOGLE_API_KEY
    key = _get_secret("GEMINI_API_KEY") or _get_secret("GOOGLE_API_KEY")
    if not key:
        raise RuntimeError("GEMINI_API_KEY (or GOOGLE_API_KEY) is missing. Set it in the environment or .env.")
    model = _get_secret("GEMINI_MODEL") or "gemini-2.0-flash"
    return ChatGoogleGenerativeAI(model=model, temperature=temperature, timeout=timeout, google_api_key=key)


def build_mistral(temperature: float = 0.2, timeout: float | None = None) -> ChatMistralAI:
    key = _get_secret("MISTRAL_API_KEY")
    if not key:
        raise RuntimeError("MISTRAL_API_KEY is missing. Set it in the environment or .env.")
    model = _get_secret("MISTRAL_MODEL") or "mistral-large-latest"
    kwargs: dict[str, Any] = {"model": model, "temperature": temperature, "api_key": key}
    if timeout is not None:
        kwargs["timeout"] = int(timeout)
    return ChatMistralAI(**kwargs)


class MultiProviderLLM:
    """Try multiple provider builders in order. Build lazily and failover on errors."""

    def __init__(self, builders: List[Callable[[], Any]]):
        self.builders = builders
        self._instances: List[Any | None] = [None] * len(builders)

    def invoke(self, messages: list[Any]) -> Any:
        # Called from several worker threads at once, so errors stay local to the call.
        errors: List[str] = []
        last_exc: Optional[Exception] = None
        for i, b in enumerate(self.builders):
            if self._instances[i] is None:
                try:
                    self._instances[i] = b()
                except Exception as e:
                    errors.append(f"build[{i}]: {e}")
                    last_exc = e
                    continue
            model = self._instances[i]
            try:
                return model.invoke(messages)
            except Exception as e:
                logger.warning(f"Provider {i} failed, trying next: {e}")
                errors.append(f"invoke[{i}]: {e}")
                last_exc = e
                continue
        raise RuntimeError("All providers failed: " + "; ".join(errors)) from last_exc


def get_llm(provider: str = "auto", temperature: float = 0.2, timeout: float | None = None) -> Any:
    p = normalize_provider(provider)
    if p == "gemini":
        return build_gemini(temperature, timeout)
    if p == "mistral":
        return build_mistral(temperature, timeout)
    # auto
    return MultiProviderLLM([
        lambda: build_gemini(temperature, timeout),
        lambda: build_mistral(temperature, timeout),
    ])
