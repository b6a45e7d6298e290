"""
OpenAI provider implementation for text and vision completions.

Also provides the OpenAI-compatible base used by vendors that expose the same
chat completions API behind a different base URL.

Example:
    >>> provider = OpenAIProvider(api_key="sk-proj-...", timeout=60.0)
    >>> reply = provider.generate_text(
    ...     ProviderRequest.text("Suggest a filename", system_prompt="..."),
    ...     model="gpt-4o-mini",
    ... )
    >>> print(reply.content)

Note:
    Requires 'openai' package: pip install openai>=1.0.0
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ...models.data_structures import AdapterReply, ContentKind, ProviderRequest
from ...utils.error_handlers import ProviderError
from ...utils.logging_setup import mask_secret
from .base_provider import TextGenerator, VisionGenerator, detect_image_mime

if TYPE_CHECKING:
    from openai import OpenAI

logger = logging.getLogger(__name__)


# ============================================================================
# OpenAI-compatible base
# ============================================================================


class OpenAICompatibleProvider(TextGenerator):
    """
    Text completions over the OpenAI chat completions API.

    Attributes:
        api_key: API authentication key.
        base_url: Optional custom API endpoint URL.
        timeout: Request timeout in seconds.
        max_retries: SDK-level retries; 0 so that fallback stays with the engine.
        json_mode: Whether text requests ask for a JSON object response.
    """

    vendor = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 0,
        credential_env: str = "OPENAI_API_KEY",
        json_mode: bool = True,
    ) -> None:
        """
        Initialize the provider. A missing key leaves it unconfigured.

        Args:
            api_key: API key, or None when the credential is absent.
            base_url: Optional base URL for OpenAI-compatible endpoints.
            timeout: Request timeout in seconds (default: 60.0).
            max_retries: SDK retry attempts (default: 0).
            credential_env: Environment variable the key was read from.
            json_mode: Request ``{"type": "json_object"}`` for text calls.
        """
        super().__init__(api_key=api_key, credential_env=credential_env)
        self.base_url: Optional[str] = base_url
        self.timeout: float = timeout
        self.max_retries: int = max_retries
        self.json_mode = json_mode
        self._client: Optional["OpenAI"] = None

        if self.api_key:
            logger.info(
                f"{self.vendor} provider initialized (key: {mask_secret(self.api_key)})"
            )

    def _get_client(self) -> "OpenAI":
        """
        Lazy initialization of the OpenAI client.

        Returns:
            OpenAI: Configured client instance, cached after first use.
        """
        if self._client is None:
            self._require_configured()
            from openai import OpenAI

            client_kwargs: Dict[str, Any] = {
                "api_key": self.api_key,
                "timeout": self.timeout,
                "max_retries": self.max_retries,
            }
            if self.base_url:
                client_kwargs["base_url"] = self.base_url

            self._client = OpenAI(**client_kwargs)
            logger.debug(f"{self.vendor} client initialized")

        return self._client

    def _build_messages(self, request: ProviderRequest) -> List[Dict[str, Any]]:
        """
        Build the chat messages for a request.

        Vision requests carry the image as a data URL next to the prompt.
        """
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": request.effective_system_prompt}
        ]

        if request.kind is ContentKind.VISION and request.image_base64:
            mime = detect_image_mime(request.image_bytes())
            messages.append(
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": request.prompt},
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": f"data:{mime};base64,{request.image_base64}"
                            },
                        },
                    ],
                }
            )
        else:
            messages.append({"role": "user", "content": request.prompt})

        return messages

    def _complete(
        self, request: ProviderRequest, model: str, json_mode: bool
    ) -> AdapterReply:
        client = self._get_client()
        kwargs: Dict[str, Any] = {
            "model": model,
            "messages": self._build_messages(request),
            "max_tokens": request.max_tokens or 1024,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        logger.debug(
            f"{self.vendor} API call: model={model}, max_tokens={kwargs['max_tokens']}, "
            f"kind={request.kind.value}"
        )

        try:
            response = client.chat.completions.create(**kwargs)
        except Exception as e:
            raise ProviderError(
                message=f"{self.vendor} API error: {e}",
                provider=self.vendor,
                model=model,
                status_code=getattr(e, "status_code", None),
                original_error=e,
            ) from e

        if not response.choices:
            raise ProviderError(
                message=f"{self.vendor} API returned empty choices list",
                provider=self.vendor,
                model=model,
            )

        return AdapterReply(content=response.choices[0].message.content or "")

    def generate_text(self, request: ProviderRequest, model: str) -> AdapterReply:
        return self._complete(request, model, json_mode=self.json_mode)

    def close(self) -> None:
        """Close the HTTP client if it was created."""
        if self._client is not None:
            try:
                self._client.close()
            finally:
                self._client = None
                logger.debug(f"{self.vendor} client closed")


# ============================================================================
# OpenAI
# ============================================================================


class OpenAIProvider(OpenAICompatibleProvider, VisionGenerator):
    """
    OpenAI provider for text and vision completions.

    Text requests use JSON mode; vision requests return free text, matching
    how the vendor rejects JSON mode for some image prompts.
    """

    vendor = "openai"

    def generate_vision(self, request: ProviderRequest, model: str) -> AdapterReply:
        return self._complete(request, model, json_mode=False)
