"""LLM completion client for AI-assisted code review using OpenAI or OpenRouter."""

import os
from typing import Any, Literal, Protocol

import httpx
from loguru import logger

from .exceptions import CompletionCapabilityUnavailableError, CompletionError

# Type alias for provider
LLMProvider = Literal["openai", "openrouter"]


class CompletionCapability(Protocol):
    """Anything that turns a system prompt plus user content into text."""

    async def complete(self, system_prompt: str, user_content: str) -> str: ...


class LLMClient:
    """Chat-completion client for OpenAI and OpenRouter.

    Provider Selection Priority:
    1. Explicit provider parameter
    2. Auto-detect: OpenAI if available, otherwise OpenRouter
    """

    DEFAULT_MODELS = {
        "openai": "gpt-4o-mini",
        "openrouter": "anthropic/claude-3-haiku",
    }

    API_ENDPOINTS = {
        "openai": "https://api.openai.com/v1/chat/completions",
        "openrouter": "https://openrouter.ai/api/v1/chat/completions",
    }

    TIMEOUT_SECONDS = 60.0

    def __init__(
        self,
        model: str | None = None,
        timeout: float = TIMEOUT_SECONDS,
        provider: LLMProvider | None = None,
        openai_api_key: str | None = None,
        openrouter_api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize LLM client.

        Args:
            model: Model to use (defaults based on provider)
            timeout: Request timeout in seconds
            provider: Explicit provider ('openai' or 'openrouter')
            openai_api_key: OpenAI API key (or use OPENAI_API_KEY env var)
            openrouter_api_key: OpenRouter API key (or use OPENROUTER_API_KEY env var)
            transport: Optional httpx transport (used by tests)

        Raises:
            CompletionCapabilityUnavailableError: If no API key is found
        """
        self.openai_key = openai_api_key or os.environ.get("OPENAI_API_KEY")
        self.openrouter_key = openrouter_api_key or os.environ.get("OPENROUTER_API_KEY")

        if provider:
            self.provider: LLMProvider = provider
            if provider == "openai" and not self.openai_key:
                raise CompletionCapabilityUnavailableError(
                    "OpenAI provider specified but OPENAI_API_KEY not found. "
                    "Please set OPENAI_API_KEY environment variable."
                )
            elif provider == "openrouter" and not self.openrouter_key:
                raise CompletionCapabilityUnavailableError(
                    "OpenRouter provider specified but OPENROUTER_API_KEY not found. "
                    "Please set OPENROUTER_API_KEY environment variable."
                )
        else:
            if self.openai_key:
                self.provider = "openai"
            elif self.openrouter_key:
                self.provider = "openrouter"
            else:
                raise CompletionCapabilityUnavailableError(
                    "No API key found. Please set OPENAI_API_KEY or OPENROUTER_API_KEY "
                    "environment variable, or pass openai_api_key or openrouter_api_key parameter."
                )

        # Select model: explicit > env var > default model
        if self.provider == "openai":
            self.api_key = self.openai_key
            self.api_endpoint = self.API_ENDPOINTS["openai"]
            self.model = model or os.environ.get(
                "OPENAI_MODEL", self.DEFAULT_MODELS["openai"]
            )
        else:
            self.api_key = self.openrouter_key
            self.api_endpoint = self.API_ENDPOINTS["openrouter"]
            self.model = model or os.environ.get(
                "OPENROUTER_MODEL", self.DEFAULT_MODELS["openrouter"]
            )

        self.timeout = timeout
        self._transport = transport

        logger.debug(
            f"Initialized LLM client with provider: {self.provider}, model: {self.model}"
        )

    async def complete(self, system_prompt: str, user_content: str) -> str:
        """Run one non-streaming completion and return the message text.

        Args:
            system_prompt: Instructions for the model
            user_content: Code and context to analyze

        Returns:
            Assistant message content ("" when the response carries none)

        Raises:
            CompletionError: If the API request fails
        """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ]
        response = await self._chat_completion(messages)
        choices = response.get("choices") or [{}]
        return choices[0].get("message", {}).get("content") or ""

    async def _chat_completion(self, messages: list[dict[str, str]]) -> dict[str, Any]:
        """Make chat completion request to OpenAI or OpenRouter API.

        Args:
            messages: List of message dictionaries with role and content

        Returns:
            API response dictionary

        Raises:
            CompletionError: If API request fails
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        # OpenRouter-specific headers
        if self.provider == "openrouter":
            headers["X-Title"] = "Code Review Engine"

        payload = {
            "model": self.model,
            "messages": messages,
        }

        provider_name = self.provider.capitalize()

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.api_endpoint,
                    headers=headers,
                    json=payload,
                )

                response.raise_for_status()
                return response.json()

        except httpx.TimeoutException as e:
            logger.error(f"{provider_name} API timeout after {self.timeout}s")
            raise CompletionError(
                f"LLM request timed out after {self.timeout} seconds."
            ) from e

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            error_msg = f"{provider_name} API error (HTTP {status_code})"

            if status_code == 401:
                env_var = (
                    "OPENAI_API_KEY"
                    if self.provider == "openai"
                    else "OPENROUTER_API_KEY"
                )
                error_msg = f"Invalid {provider_name} API key. Please check {env_var} environment variable."
            elif status_code == 429:
                error_msg = f"{provider_name} API rate limit exceeded. Please wait and try again."
            elif status_code >= 500:
                error_msg = f"{provider_name} API server error. Please try again later."

            logger.error(error_msg)
            raise CompletionError(error_msg, context={"status_code": status_code}) from e

        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"{provider_name} API request failed: {e}")
            raise CompletionError(f"LLM request failed: {e}") from e
