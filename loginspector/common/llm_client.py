"""
Provider-agnostic LLM client for log analysis.

Supports Anthropic, OpenAI, and Google Gemini behind one text-generation
interface. Provider SDKs are imported lazily so a missing package only
disables summarization instead of breaking retrieval.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Dict, Optional

from .config import LLMConfig

logger = logging.getLogger("loginspector.common.llm_client")

LOG_ANALYST_SYSTEM_PROMPT = (
    "You are a log analyst helping engineers investigate incidents. "
    "Only use the log entries you are given, never invent events, "
    "and state your confidence as High, Medium or Low."
)


class LLMClient:
    """Unified text generation client across LLM providers."""

    def __init__(
        self,
        provider: str = "anthropic",
        model: str = "",
        api_key: Optional[str] = None,
        max_tokens: int = 1024,
        timeout: float = 30.0,
    ) -> None:
        self.provider = (provider or "anthropic").lower()
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = None
        self._google_models: Dict[str, object] = {}

        if self.provider == "auto":
            raise ValueError('"auto" provider must be resolved to a concrete provider first')

        if self.provider not in ("anthropic", "openai", "google"):
            logger.warning("Unsupported LLM provider: %s", self.provider)
            return

        if not api_key:
            logger.info("%s API key not provided, LLM client unavailable", self.provider)
            return

        try:
            self._client = self._connect(api_key)
        except ImportError:
            logger.warning("%s SDK package not installed", self.provider)
        except Exception as e:
            logger.warning("Failed to initialize %s client: %s", self.provider, e)

    @classmethod
    def from_config(cls, config: LLMConfig) -> "LLMClient":
        return cls(
            provider=config.provider,
            model=config.model,
            api_key=config.api_key,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )

    def _connect(self, api_key: str):
        if self.provider == "anthropic":
            import anthropic

            return anthropic.Anthropic(api_key=api_key)

        if self.provider == "openai":
            from openai import OpenAI

            return OpenAI(api_key=api_key)

        import google.generativeai as genai

        genai.configure(api_key=api_key)
        return genai  # the module; models are built per system prompt

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = LOG_ANALYST_SYSTEM_PROMPT,
        max_tokens: Optional[int] = None,
    ) -> str:
        if not self.is_available:
            raise RuntimeError("LLM client is not available")

        max_tokens = max_tokens or self.max_tokens

        if self.provider == "anthropic":
            kwargs = {}
            if system:
                kwargs["system"] = system
            response = self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
                timeout=self.timeout,
                **kwargs,
            )
            return response.content[0].text.strip()

        if self.provider == "openai":
            messages = []
            if system:
                messages.append({"role": "system", "content": system})
            messages.append({"role": "user", "content": prompt})
            response = self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=messages,
                timeout=self.timeout,
            )
            return (response.choices[0].message.content or "").strip()

        cache_key = hashlib.md5((system or "").encode()).hexdigest()
        if cache_key not in self._google_models:
            kwargs = {"model_name": self.model}
            if system:
                kwargs["system_instruction"] = system
            self._google_models[cache_key] = self._client.GenerativeModel(**kwargs)
        response = self._google_models[cache_key].generate_content(
            prompt,
            generation_config={"max_output_tokens": max_tokens},
            request_options={"timeout": self.timeout},
        )
        return response.text.strip()

    def invoke(self, prompt: str) -> Dict[str, str]:
        """Text-generation collaborator boundary: ``{"content": <text>}``."""
        return {"content": self.generate(prompt)}
