"""Anthropic (Claude) provider implementation.

Claude models are not part of the built-in tier chains; they become
reachable when a configured tier override lists a Claude catalog model.

Note:
    Anthropic's API does not support structured output formats natively,
    so JSON is requested through the system prompt only.
"""

import logging
from functools import cached_property
from typing import Any, Dict, List, Optional

import anthropic

from ...models.data_structures import AdapterReply, ContentKind, ProviderRequest
from ...utils.error_handlers import ProviderError
from ...utils.logging_setup import mask_secret
from .base_provider import TextGenerator, VisionGenerator, detect_image_mime

logger = logging.getLogger(__name__)


class AnthropicProvider(TextGenerator, VisionGenerator):
    """Claude text and vision completions."""

    vendor = "anthropic"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 0,
        credential_env: str = "ANTHROPIC_API_KEY",
    ) -> None:
        super().__init__(api_key=api_key, credential_env=credential_env)
        self.timeout = timeout
        self.max_retries = max_retries

        if self.api_key:
            logger.info(
                f"Anthropic provider initialized (key: {mask_secret(self.api_key)})"
            )

    @cached_property
    def client(self) -> anthropic.Anthropic:
        """Lazily created Anthropic client."""
        self._require_configured()
        return anthropic.Anthropic(
            api_key=self.api_key, timeout=self.timeout, max_retries=self.max_retries
        )

    def _build_content(self, request: ProviderRequest) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = []
        if request.kind is ContentKind.VISION and request.image_base64:
            content.append(
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": detect_image_mime(request.image_bytes()),
                        "data": request.image_base64,
                    },
                }
            )
        content.append({"type": "text", "text": request.prompt})
        return content

    def _call(self, request: ProviderRequest, model: str) -> AdapterReply:
        logger.debug(f"Anthropic API call: model={model}, kind={request.kind.value}")
        try:
            response = self.client.messages.create(
                model=model,
                max_tokens=request.max_tokens or 1024,
                system=request.effective_system_prompt,
                messages=[{"role": "user", "content": self._build_content(request)}],
            )
        except anthropic.APIError as e:
            raise ProviderError(
                message=f"Anthropic API error: {e}",
                provider=self.vendor,
                model=model,
                status_code=getattr(e, "status_code", None),
                original_error=e,
            ) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        return AdapterReply(content=text)

    def generate_text(self, request: ProviderRequest, model: str) -> AdapterReply:
        return self._call(request, model)

    def generate_vision(self, request: ProviderRequest, model: str) -> AdapterReply:
        return self._call(request, model)

    def close(self) -> None:
        client = self.__dict__.pop("client", None)
        if client is not None:
            client.close()
