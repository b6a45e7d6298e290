"""
Meta Llama provider served through an OpenAI-compatible gateway.

Llama models are reached through OpenRouter by default; any gateway exposing
the chat completions API works by changing ``base_url``.
"""

from typing import Optional

from .openai_provider import OpenAICompatibleProvider

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class MetaProvider(OpenAICompatibleProvider):
    """Text-only Llama completions via an OpenAI-compatible endpoint."""

    vendor = "meta"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        max_retries: int = 0,
        credential_env: str = "OPENROUTER_API_KEY",
    ) -> None:
        super().__init__(
            api_key=api_key,
            base_url=base_url or DEFAULT_BASE_URL,
            timeout=timeout,
            max_retries=max_retries,
            credential_env=credential_env,
            # Not every gateway model honours response_format
            json_mode=False,
        )
