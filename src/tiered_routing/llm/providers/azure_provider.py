"""
Azure OpenAI provider for vision completions.

Azure deployments use the same chat completions API as OpenAI; the model
argument is the deployment name. The adapter is configured only when both the
API key and the resource endpoint are present.
"""

import logging
from typing import TYPE_CHECKING, Optional

from .openai_provider import OpenAIProvider

if TYPE_CHECKING:
    from openai import AzureOpenAI

logger = logging.getLogger(__name__)


class AzureOpenAIProvider(OpenAIProvider):
    """OpenAI provider bound to an Azure OpenAI resource."""

    vendor = "azure-openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        api_version: str = "2024-06-01",
        timeout: float = 60.0,
        max_retries: int = 0,
        credential_env: str = "AZURE_OPENAI_API_KEY",
        endpoint_env: str = "AZURE_OPENAI_ENDPOINT",
    ) -> None:
        super().__init__(
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            credential_env=credential_env,
        )
        self.endpoint: Optional[str] = (endpoint or "").strip() or None
        self.endpoint_env = endpoint_env
        self.api_version = api_version

    def is_configured(self) -> bool:
        return self.api_key is not None and self.endpoint is not None

    def unconfigured_reason(self) -> Optional[str]:
        if self.api_key is None:
            return f"{self.credential_env} not configured"
        if self.endpoint is None:
            return f"{self.endpoint_env} not configured"
        return None

    def _get_client(self) -> "AzureOpenAI":
        if self._client is None:
            self._require_configured()
            from openai import AzureOpenAI

            self._client = AzureOpenAI(
                api_key=self.api_key,
                azure_endpoint=self.endpoint,
                api_version=self.api_version,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )
            logger.debug(f"Azure OpenAI client initialized for {self.endpoint}")
        return self._client
