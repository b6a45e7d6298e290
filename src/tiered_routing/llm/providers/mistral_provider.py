"""
Mistral provider implementation for text completions.

Note:
    Requires 'mistralai' package: pip install mistralai
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from ...models.data_structures import AdapterReply, ProviderRequest
from ...utils.error_handlers import ProviderError
from ...utils.logging_setup import mask_secret
from .base_provider import TextGenerator

if TYPE_CHECKING:
    from mistralai import Mistral

logger = logging.getLogger(__name__)


class MistralProvider(TextGenerator):
    """Mistral chat completions with JSON object responses."""

    vendor = "mistral"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        credential_env: str = "MISTRAL_API_KEY",
    ) -> None:
        super().__init__(api_key=api_key, credential_env=credential_env)
        self.timeout = timeout
        self._client: Optional["Mistral"] = None

        if self.api_key:
            logger.info(f"Mistral provider initialized (key: {mask_secret(self.api_key)})")

    def _get_client(self) -> "Mistral":
        if self._client is None:
            self._require_configured()
            from mistralai import Mistral

            self._client = Mistral(
                api_key=self.api_key, timeout_ms=int(self.timeout * 1000)
            )
        return self._client

    def generate_text(self, request: ProviderRequest, model: str) -> AdapterReply:
        client = self._get_client()
        kwargs: Dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": request.effective_system_prompt},
                {"role": "user", "content": request.prompt},
            ],
            "max_tokens": request.max_tokens or 1024,
            "response_format": {"type": "json_object"},
        }

        logger.debug(f"Mistral API call: model={model}, max_tokens={kwargs['max_tokens']}")

        try:
            response = client.chat.complete(**kwargs)
        except Exception as e:
            raise ProviderError(
                message=f"Mistral API error: {e}",
                provider=self.vendor,
                model=model,
                status_code=getattr(e, "status_code", None),
                original_error=e,
            ) from e

        if response is None or not response.choices:
            raise ProviderError(
                message="Mistral API returned empty choices list",
                provider=self.vendor,
                model=model,
            )

        content = response.choices[0].message.content
        return AdapterReply(content=content if isinstance(content, str) else str(content or ""))

    def close(self) -> None:
        self._client = None
