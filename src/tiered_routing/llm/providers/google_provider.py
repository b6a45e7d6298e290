"""
Google AI (Gemini) provider implementation for text and vision completions.

Text requests ask for an ``application/json`` response; vision requests pass
the image as a PIL image next to the prompt.

Note:
    Requires 'google-generativeai' package: pip install google-generativeai
"""

import io
import logging
import types
from typing import Any, Dict, List, Optional, Union

from PIL import Image

from ...models.data_structures import AdapterReply, ContentKind, ProviderRequest
from ...utils.error_handlers import ProviderError
from ...utils.logging_setup import mask_secret
from .base_provider import TextGenerator, VisionGenerator

logger = logging.getLogger(__name__)


class GoogleProvider(TextGenerator, VisionGenerator):
    """
    Gemini provider for text and vision completions.

    Attributes:
        api_key: Google AI Studio API key.
        timeout: Request timeout in seconds, passed as request option.
    """

    vendor = "google"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        credential_env: str = "GOOGLE_API_KEY",
    ) -> None:
        super().__init__(api_key=api_key, credential_env=credential_env)
        self.timeout = timeout
        self._genai: Optional[types.ModuleType] = None

        if self.api_key:
            logger.info(f"Google provider initialized (key: {mask_secret(self.api_key)})")

    def _get_genai(self) -> types.ModuleType:
        """
        Lazy initialization of the google.generativeai module.

        Returns:
            The configured google.generativeai module.
        """
        if self._genai is None:
            self._require_configured()
            import google.generativeai as genai

            genai.configure(api_key=self.api_key)
            logger.debug("Google AI Studio configured successfully")
            self._genai = genai

        return self._genai

    def _build_content(
        self, request: ProviderRequest
    ) -> Union[str, List[Union[str, Image.Image]]]:
        """
        Build Gemini content parts.

        Raises:
            ProviderError: If the image payload cannot be decoded.
        """
        if request.kind is not ContentKind.VISION:
            return request.prompt

        try:
            pil_image = Image.open(io.BytesIO(request.image_bytes() or b""))
        except Exception as e:
            raise ProviderError(
                message=f"Failed to convert image to PIL format: {e}",
                provider=self.vendor,
                recoverable=False,
                original_error=e,
            ) from e
        return [request.prompt, pil_image]

    def _generate(self, request: ProviderRequest, model: str, json_mode: bool) -> AdapterReply:
        genai = self._get_genai()
        content = self._build_content(request)

        generation_config: Dict[str, Any] = {
            "max_output_tokens": request.max_tokens or 1024,
        }
        if json_mode:
            generation_config["response_mime_type"] = "application/json"

        logger.debug(
            f"Google AI API call: model={model}, kind={request.kind.value}, "
            f"max_tokens={generation_config['max_output_tokens']}"
        )

        try:
            model_instance = genai.GenerativeModel(
                model, system_instruction=request.effective_system_prompt
            )
            response = model_instance.generate_content(
                content,
                generation_config=generation_config,
                request_options={"timeout": self.timeout},
            )
            text = response.text
        except Exception as e:
            raise ProviderError(
                message=f"Google AI API error: {e}",
                provider=self.vendor,
                model=model,
                status_code=getattr(e, "code", None),
                original_error=e,
            ) from e

        return AdapterReply(content=text or "")

    def generate_text(self, request: ProviderRequest, model: str) -> AdapterReply:
        return self._generate(request, model, json_mode=True)

    def generate_vision(self, request: ProviderRequest, model: str) -> AdapterReply:
        return self._generate(request, model, json_mode=False)

    def close(self) -> None:
        self._genai = None
