"""Generation provider client.

Invokes the external chat-completions provider, or synthesizes a plan
locally in mock mode. Both paths return the same GenerationResult shape.

Policy: one attempt per call, explicit timeout, no retry. Any non-2xx
status, transport failure or response without message content is a
ProviderError.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from app.config.settings import DEFAULT_PROVIDER_API_URL, Settings
from app.core.clock import Clock, utc_now
from app.plans.errors import ProviderError
from app.plans.mock_plan import build_mock_plan
from app.plans.prompt_builder import PromptPackage

_MAX_LOGGED_BODY_CHARS = 500


@dataclass(frozen=True)
class GenerationResult:
    used_mock: bool
    raw_provider_response: dict[str, Any] | None
    content: str


def _extract_content(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, str) or not content:
        return None
    return content


class GenerationClient:
    """Client for the plan generation provider.

    Mock mode is active when forced or when no API key is configured.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str = DEFAULT_PROVIDER_API_URL,
        *,
        mock_mode: bool = False,
        timeout_seconds: float = 60.0,
        clock: Clock = utc_now,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize generation client.

        Args:
            api_key: Provider credential. Empty selects mock mode.
            api_url: Chat-completions endpoint
            mock_mode: Force mock mode even when a credential is present
            timeout_seconds: Total timeout for the single provider call
            clock: Time source for mock generation timestamps
            transport: Optional httpx transport (tests inject httpx.MockTransport)
        """
        self.api_key = (api_key or "").strip()
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self._force_mock = mock_mode
        self._clock = clock
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = utc_now) -> GenerationClient:
        return cls(
            api_key=settings.provider_api_key,
            api_url=settings.provider_api_url,
            mock_mode=settings.provider_mock_mode,
            timeout_seconds=settings.provider_timeout_seconds,
            clock=clock,
        )

    @property
    def is_mock_mode(self) -> bool:
        return self._force_mock or not self.api_key

    def invoke(self, prompt: PromptPackage) -> GenerationResult:
        """Generate plan content for a prompt.

        Args:
            prompt: Prompt package from build_plan_prompt

        Returns:
            GenerationResult; raw_provider_response is None in mock mode

        Raises:
            ProviderError: If the provider call fails or returns no content
        """
        if self.is_mock_mode:
            logger.info("Generating plan in mock mode", model=prompt.model)
            plan = build_mock_plan(prompt.prompt_context, self._clock(), model=prompt.model)
            return GenerationResult(
                used_mock=True,
                raw_provider_response=None,
                content=json.dumps(plan, indent=2),
            )

        return self._invoke_provider(prompt)

    def _invoke_provider(self, prompt: PromptPackage) -> GenerationResult:
        body = {
            "model": prompt.model,
            "messages": prompt.messages,
            "response_format": prompt.response_format,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        logger.info("Calling generation provider", model=prompt.model, timeout_seconds=self.timeout_seconds)
        try:
            with httpx.Client(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = client.post(self.api_url, json=body, headers=headers)
        except httpx.TimeoutException as e:
            raise ProviderError(f"Generation provider request timed out after {self.timeout_seconds}s") from e
        except httpx.RequestError as e:
            raise ProviderError(f"Generation provider request failed: {e}") from e

        if not response.is_success:
            response_text = response.text
            logger.error(
                "Generation provider returned an error status",
                status_code=response.status_code,
                body=response_text[:_MAX_LOGGED_BODY_CHARS],
            )
            raise ProviderError(
                f"Generation provider request failed with status {response.status_code}: {response_text}",
                status_code=response.status_code,
                body=response_text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                "Generation provider returned a non-JSON response.",
                status_code=response.status_code,
                body=response.text,
            ) from e

        content = _extract_content(data)
        if content is None:
            raise ProviderError("Generation provider response missing message content.", status_code=response.status_code)

        return GenerationResult(used_mock=False, raw_provider_response=data, content=content)
