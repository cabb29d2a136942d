"""Thin chat-completion client for the sentiment model (OpenAI-compatible or Gemini)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import requests

logger = logging.getLogger(__name__)

SENTIMENT_SYSTEM_PROMPT = (
    "You are a Wall Street equity research analyst. Provide specific, data-driven sentiment "
    "analysis. Always cite specific headlines, numbers, or events. Never give vague or generic "
    "assessments. Respond with valid JSON only."
)

SENTIMENT_PROMPT_TEMPLATE = """\
You are an expert financial analyst providing actionable sentiment analysis for {symbol} stock.

NEWS HEADLINES:
{headlines}

ANALYSIS REQUIREMENTS:
1. Focus ONLY on headlines directly related to {symbol}, its products, services, earnings, or market position
2. Ignore generic market news unless it specifically impacts {symbol}
3. Provide specific, actionable insights - not vague observations
4. Reference specific events, numbers, or developments from the headlines
5. If headlines aren't relevant to {symbol}, state this clearly but still assess any indirect implications

Respond with this JSON format:
{{
  "score": <-1.0 to 1.0>,
  "label": "<Bullish|Bearish|Neutral>",
  "rationale": "<2-3 sentences with SPECIFIC details: mention actual news items, earnings figures, product names, or market developments that drive your assessment. Be concrete, not generic.>"
}}

JSON only, no other text."""

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "gemini": "gemini-2.5-flash",
}


def _parse_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return default
    return value if value >= 0 else default


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return default
    return value if value > 0 else default


class LLMError(RuntimeError):
    """The model call failed or returned something unusable."""


class LLMNotConfigured(LLMError):
    """No provider or API key in the environment."""


@dataclass
class LLMClient:
    provider: str
    api_key: str
    model: Optional[str] = None
    timeout: float = 30.0
    temperature: float = 0.4
    max_tokens: int = 350

    @classmethod
    def from_env(cls) -> "LLMClient":
        provider = (os.getenv("LLM_PROVIDER") or "").lower()
        if not provider:
            if os.getenv("OPENAI_API_KEY"):
                provider = "openai"
            elif os.getenv("GEMINI_API_KEY"):
                provider = "gemini"
        if provider not in DEFAULT_MODELS:
            raise LLMNotConfigured("LLM_PROVIDER is not set and no API key was found")

        api_key = os.getenv("OPENAI_API_KEY" if provider == "openai" else "GEMINI_API_KEY")
        if not api_key:
            raise LLMNotConfigured(f"API key missing for LLM provider {provider}")

        return cls(
            provider=provider,
            api_key=api_key,
            model=os.getenv("LLM_MODEL") or DEFAULT_MODELS[provider],
            timeout=_parse_float("LLM_TIMEOUT", 30.0) or 30.0,
            temperature=_parse_float("LLM_TEMPERATURE", 0.4),
            max_tokens=_parse_int("LLM_MAX_TOKENS", 350),
        )

    def analyze_headlines(self, symbol: str, headlines: Sequence[str]) -> str:
        """Raw model reply for the sentiment prompt; parsing is the caller's job."""
        return self.chat(build_sentiment_messages(symbol, headlines))

    def chat(self, messages: Sequence[Dict[str, str]]) -> str:
        messages = list(messages)
        if not messages:
            raise LLMError("empty prompt")
        logger.debug("Calling %s model %s with %d messages", self.provider, self.model, len(messages))
        if self.provider == "openai":
            return self._call_openai(messages)
        if self.provider == "gemini":
            return self._call_gemini(messages)
        raise LLMError(f"Unsupported LLM provider: {self.provider}")

    def _call_openai(self, messages: List[Dict[str, str]]) -> str:
        base_url = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        data = self._post(
            f"{base_url}/chat/completions",
            payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        try:
            return data["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise LLMError(f"Unexpected OpenAI response: {data}") from exc

    def _call_gemini(self, messages: List[Dict[str, str]]) -> str:
        base_url = os.getenv(
            "GEMINI_BASE_URL",
            f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent",
        )
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        contents = [
            {
                "role": "model" if m["role"] == "assistant" else "user",
                "parts": [{"text": m["content"]}],
            }
            for m in messages
            if m["role"] != "system"
        ]
        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
            },
        }
        if system_parts:
            payload["systemInstruction"] = {"parts": [{"text": "\n".join(system_parts)}]}
        data = self._post(base_url, payload, params={"key": self.api_key})
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise LLMError(f"Unexpected Gemini response: {data}") from exc

    def _post(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        try:
            resp = requests.post(
                url,
                headers={"Content-Type": "application/json", **(headers or {})},
                params=params,
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise LLMError(f"{self.provider} request failed: {exc}") from exc
        if resp.status_code != 200:
            raise LLMError(f"{self.provider} request failed ({resp.status_code}): {resp.text}")
        try:
            return resp.json()
        except ValueError as exc:
            raise LLMError(f"{self.provider} returned non-JSON body") from exc


def build_sentiment_messages(symbol: str, headlines: Sequence[str]) -> List[Dict[str, str]]:
    numbered = "\n".join(f"{i}. {headline}" for i, headline in enumerate(headlines, start=1))
    return [
        {"role": "system", "content": SENTIMENT_SYSTEM_PROMPT},
        {"role": "user", "content": SENTIMENT_PROMPT_TEMPLATE.format(symbol=symbol, headlines=numbered)},
    ]
