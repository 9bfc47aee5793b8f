"""
OpenAI embedding provider.

Calls ``POST {base_url}/embeddings`` with the whole batch as ``input``.
"""

from typing import Any, Dict, List, Optional

import requests

from ..core.exceptions import EmbeddingProviderError
from ..core.types import EmbedderConfig
from .base import HttpEmbedder


class OpenAIEmbedder(HttpEmbedder):
    """
    Embedder for the OpenAI embeddings API.

    Example:
        >>> config = EmbedderConfig(provider="openai", api_key="sk-...")
        >>> embedder = OpenAIEmbedder(config)
        >>> vectors = embedder.embed(["def main():", "fn main() {"])
    """

    provider_name = "openai"
    endpoint = "/embeddings"

    def __init__(self, config: EmbedderConfig, session: Optional[requests.Session] = None):
        if not config.api_key:
            raise EmbeddingProviderError(
                "An API key is required for OpenAI embeddings (set OPENAI_API_KEY)",
                provider=self.provider_name,
            )
        super().__init__(config, session=session)

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    def _build_payload(self, texts: List[str]) -> Dict[str, Any]:
        return {
            "model": self.model,
            "input": texts,
        }

    def _parse_vectors(self, result: Any) -> List[List[float]]:
        data = result.get("data") if isinstance(result, dict) else None
        if not isinstance(data, list):
            raise EmbeddingProviderError(
                "OpenAI response has no 'data' list",
                provider=self.provider_name,
            )

        # items carry their input position; do not rely on response order
        indexed = []
        for position, item in enumerate(data):
            if not isinstance(item, dict):
                raise EmbeddingProviderError(
                    "Malformed item in OpenAI response",
                    provider=self.provider_name,
                )
            index = item.get("index", position)
            indexed.append((index, self._as_vector(item.get("embedding"))))

        indexed.sort(key=lambda pair: pair[0])
        return [vector for _, vector in indexed]
