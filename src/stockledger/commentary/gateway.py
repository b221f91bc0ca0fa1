from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

import httpx

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


@dataclass
class LLMResponse:
    content: str
    model: str
    provider: str
    token_usage: dict  # {"prompt_tokens": N, "completion_tokens": M, "total_tokens": T}
    latency_ms: int
    finish_reason: str = "stop"


@dataclass
class ProviderConfig:
    name: str
    base_url: str
    api_key: str
    default_model: str
    rpm_limit: int = 60
    timeout_seconds: int = 30
    max_retries: int = 3

    @property
    def is_anthropic(self) -> bool:
        return self.name == "anthropic"


@dataclass
class _RateLimiter:
    """Sliding one-minute window."""

    rpm_limit: int
    _timestamps: list[float] = field(default_factory=list)

    async def acquire(self) -> None:
        now = time.monotonic()
        self._timestamps = [t for t in self._timestamps if now - t < 60]
        if len(self._timestamps) >= self.rpm_limit:
            wait = 60 - (now - self._timestamps[0])
            if wait > 0:
                logger.info("Rate limit: waiting %.1fs", wait)
                await asyncio.sleep(wait)
        self._timestamps.append(time.monotonic())


class LLMGateway:
    """Chat-completion gateway for the commentary providers.

    DeepSeek and Groq speak the OpenAI chat completions format; Anthropic's
    Messages API is translated on the way in and out.
    """

    def __init__(self) -> None:
        self._providers: dict[str, ProviderConfig] = {}
        self._limiters: dict[str, _RateLimiter] = {}
        self._client: httpx.AsyncClient | None = None

    @property
    def providers(self) -> list[str]:
        return sorted(self._providers)

    def register_provider(self, config: ProviderConfig) -> None:
        self._providers[config.name] = config
        self._limiters[config.name] = _RateLimiter(rpm_limit=config.rpm_limit)

    async def start(self) -> None:
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(120.0))

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def call(
        self,
        provider: str,
        system_prompt: str,
        user_prompt: str,
        model: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> LLMResponse:
        """Send one system + user exchange to a registered provider."""
        if provider not in self._providers:
            raise ValueError(f"Unknown provider: {provider}")

        config = self._providers[provider]
        target_model = model or config.default_model

        if not self._client:
            await self.start()

        await self._limiters[provider].acquire()

        url, headers, body = _build_request(
            config, target_model, system_prompt, user_prompt, max_tokens, temperature
        )

        last_error: Exception | None = None
        for attempt in range(config.max_retries):
            try:
                start_time = time.monotonic()
                response = await self._client.post(
                    url, json=body, headers=headers, timeout=config.timeout_seconds
                )
                latency_ms = int((time.monotonic() - start_time) * 1000)
                response.raise_for_status()
                result = _parse_response(config, target_model, response.json(), latency_ms)
                logger.info(
                    "Provider %s (%s) answered in %dms, %d tokens",
                    provider,
                    result.model,
                    latency_ms,
                    result.token_usage.get("total_tokens", 0),
                )
                return result
            except (httpx.HTTPStatusError, httpx.RequestError) as e:
                last_error = e
                if attempt < config.max_retries - 1:
                    wait = 2**attempt
                    logger.warning(
                        "Provider %s attempt %d failed: %s. Retrying in %ds",
                        provider,
                        attempt + 1,
                        e,
                        wait,
                    )
                    await asyncio.sleep(wait)

        raise RuntimeError(
            f"Provider {provider} failed after {config.max_retries} retries: {last_error}"
        )

    @classmethod
    def from_config(cls, config) -> LLMGateway:
        """Register a provider for every API key present in the AppConfig."""
        gw = cls()
        if config.deepseek_api_key:
            gw.register_provider(
                ProviderConfig(
                    name="deepseek",
                    base_url="https://api.deepseek.com/v1",
                    api_key=config.deepseek_api_key,
                    default_model="deepseek-chat",
                    rpm_limit=60,
                    timeout_seconds=120,
                )
            )
        if config.groq_api_key:
            gw.register_provider(
                ProviderConfig(
                    name="groq",
                    base_url="https://api.groq.com/openai/v1",
                    api_key=config.groq_api_key,
                    default_model="llama-3.3-70b-versatile",
                    rpm_limit=30,
                    timeout_seconds=30,
                )
            )
        if config.anthropic_api_key:
            gw.register_provider(
                ProviderConfig(
                    name="anthropic",
                    base_url="https://api.anthropic.com/v1",
                    api_key=config.anthropic_api_key,
                    default_model="claude-sonnet-4-5-20250929",
                    rpm_limit=60,
                    timeout_seconds=60,
                )
            )
        return gw


def _build_request(
    config: ProviderConfig,
    model: str,
    system_prompt: str,
    user_prompt: str,
    max_tokens: int,
    temperature: float,
) -> tuple[str, dict, dict]:
    if config.is_anthropic:
        headers = {
            "x-api-key": config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }
        body = {
            "model": model,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        return f"{config.base_url}/messages", headers, body

    headers = {
        "Authorization": f"Bearer {config.api_key}",
        "Content-Type": "application/json",
    }
    body = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    return f"{config.base_url}/chat/completions", headers, body


def _parse_response(
    config: ProviderConfig, model: str, data: dict, latency_ms: int
) -> LLMResponse:
    usage = data.get("usage", {})

    if config.is_anthropic:
        content = "".join(
            block.get("text", "")
            for block in data.get("content", [])
            if block.get("type") == "text"
        )
        prompt_tokens = usage.get("input_tokens", 0)
        completion_tokens = usage.get("output_tokens", 0)
        return LLMResponse(
            content=content,
            model=data.get("model", model),
            provider=config.name,
            token_usage={
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
            latency_ms=latency_ms,
            finish_reason=data.get("stop_reason", "end_turn"),
        )

    choice = data["choices"][0]
    return LLMResponse(
        content=choice["message"]["content"],
        model=data.get("model", model),
        provider=config.name,
        token_usage={
            "prompt_tokens": usage.get("prompt_tokens", 0),
            "completion_tokens": usage.get("completion_tokens", 0),
            "total_tokens": usage.get("total_tokens", 0),
        },
        latency_ms=latency_ms,
        finish_reason=choice.get("finish_reason", "stop"),
    )
