"""
Ollama embedding provider.

Calls the native ``POST {base_url}/api/embed`` endpoint, which accepts a
list of inputs and answers with ``{"embeddings": [[...], ...]}``.
"""

from typing import Any, Dict, List

from ..core.exceptions import EmbeddingProviderError
from .base import HttpEmbedder


class OllamaEmbedder(HttpEmbedder):
    """Embedder for a local or remote Ollama server."""

    provider_name = "ollama"
    endpoint = "/api/embed"

    def _build_payload(self, texts: List[str]) -> Dict[str, Any]:
        return {
            "model": self.model,
            "input": texts,
        }

    def _parse_vectors(self, result: Any) -> List[List[float]]:
        embeddings = result.get("embeddings") if isinstance(result, dict) else None
        if not isinstance(embeddings, list):
            raise EmbeddingProviderError(
                "Ollama response has no 'embeddings' list",
                provider=self.provider_name,
            )
        return [self._as_vector(vector) for vector in embeddings]
