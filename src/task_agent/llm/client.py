# src/task_agent/llm/client.py

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, List, Optional

import httpx
import openai
from openai import OpenAI

from ..config import Settings

logger = logging.getLogger(__name__)

INTERPRETER_SYSTEM_PROMPT = (
    "You are an AI assistant that helps schedule meetings and send emails. "
    "Restate the user's command as a short, concrete action plan."
)

BAD_MODEL_COOLDOWN_SECONDS = 3600.0


def _is_auth_error(exc: Exception) -> bool:
    return isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError))


def _is_rate_limit_error(exc: Exception) -> bool:
    return isinstance(exc, openai.RateLimitError)


def _is_connection_error(exc: Exception) -> bool:
    # APITimeoutError is a subclass of APIConnectionError.
    return isinstance(exc, (openai.APIConnectionError, httpx.TimeoutException))


def _is_not_found_error(exc: Exception) -> bool:
    return isinstance(exc, openai.NotFoundError)


class OpenRouterLLMClient:
    """
    OpenAI-compatible chat client (OpenRouter).

    Tries models in the configured order:
    - 404 (model not available) -> cool the model down, try next.
    - Rate limit / network issues -> try next.
    - Auth issues -> fail fast (no retries across models).
    """

    def __init__(
        self,
        settings: Settings,
        *,
        connect_timeout: float = 5.0,
        read_timeout: float = 25.0,
    ) -> None:
        api_key = settings.openrouter_api_key
        base_url = settings.openrouter_base_url or ""

        if not api_key or not str(api_key).strip():
            raise RuntimeError("LLM API key is not set. Set TASK_AGENT_OPENROUTER_API_KEY in your .env.")
        if not base_url.strip():
            raise RuntimeError("LLM base URL is not set. Set TASK_AGENT_OPENROUTER_BASE_URL in your .env.")

        self._models: List[str] = [m.strip() for m in settings.llm_models if m and m.strip()]
        if not self._models:
            raise RuntimeError("LLM model list is empty. Set TASK_AGENT_LLM_MODELS in your .env.")

        self._headers: Dict[str, str] = dict(settings.extra_headers or {})
        self._bad_models: dict[str, float] = {}  # model -> retry_at (monotonic)

        # Retries are disabled so a failing model falls through to the next one quickly.
        self._client = OpenAI(
            base_url=str(base_url),
            api_key=str(api_key),
            timeout=httpx.Timeout(connect=connect_timeout, read=read_timeout, write=10.0, pool=connect_timeout),
            max_retries=0,
        )

    def _complete_once(self, model: str, messages: list[dict[str, str]]) -> str:
        response: Any = self._client.chat.completions.create(
            model=model,
            messages=messages,  # type: ignore[arg-type]
            extra_headers=self._headers or None,
        )
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError):
            content = None
        return (content or "").strip()

    def complete(self, messages: Iterable[Dict[str, str]], system_prompt: str) -> str:
        payload = [{"role": "system", "content": system_prompt}, *messages]
        last_error: Optional[Exception] = None
        now = time.monotonic()

        for model in self._models:
            retry_at = self._bad_models.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info("LLM: trying model=%s", model)
            t0 = time.monotonic()
            try:
                text = self._complete_once(model, payload)
            except Exception as e:
                last_error = e

                if _is_auth_error(e):
                    raise RuntimeError(
                        "LLM authentication failed. Check your API key (TASK_AGENT_OPENROUTER_API_KEY)."
                    ) from e

                if _is_not_found_error(e):
                    self._bad_models[model] = time.monotonic() + BAD_MODEL_COOLDOWN_SECONDS
                    logger.info("LLM: model not available (404): %s", model)
                elif _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                elif _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                else:
                    logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)
                continue

            if text:
                logger.debug("LLM: completed with model=%s (%.2fs)", model, time.monotonic() - t0)
                return text
            last_error = RuntimeError(f"Model returned no content: {model}")

        if last_error is not None:
            if _is_rate_limit_error(last_error):
                raise RuntimeError("LLM is rate-limited. Try again later.") from last_error
            if _is_connection_error(last_error):
                raise RuntimeError("LLM network/timeout error. Try again later or change models.") from last_error
            raise RuntimeError("All LLM models failed.") from last_error
        raise RuntimeError("All LLM models failed.")


class OpenRouterInterpreter:
    """Language collaborator backed by OpenRouterLLMClient."""

    def __init__(self, client: OpenRouterLLMClient, system_prompt: str = INTERPRETER_SYSTEM_PROMPT) -> None:
        self._client = client
        self._system_prompt = system_prompt

    async def process_command(self, text: str) -> str:
        messages = [{"role": "user", "content": f"Process this command: {text}"}]
        # The SDK call blocks; keep the event loop (and the scheduler) responsive.
        return await asyncio.to_thread(self._client.complete, messages, self._system_prompt)


def friendly_llm_error_message(err: Exception) -> str:
    msg = str(err).strip() or "LLM error."
    if "LLM API key is not set" in msg:
        return "Language model is not configured (missing API key). Set TASK_AGENT_OPENROUTER_API_KEY in .env."
    if "LLM model list is empty" in msg:
        return "Language model is not configured (no models). Set TASK_AGENT_LLM_MODELS in .env."
    return msg
