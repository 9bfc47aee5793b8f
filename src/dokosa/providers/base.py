"""
Embedding provider base classes.

An embedder turns a batch of strings into a batch of vectors, one per input
and in the same order. Any failure is reported as a single
EmbeddingProviderError for the whole batch; nothing is retried.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..core.exceptions import EmbeddingProviderError
from ..core.types import EmbedderConfig


logger = logging.getLogger(__name__)


class Embedder(ABC):
    """Interface implemented by every embedding provider."""

    provider_name: str = ""

    @abstractmethod
    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed a batch of texts.

        Args:
            texts: Input strings

        Returns:
            One vector per input, in input order

        Raises:
            EmbeddingProviderError: If the batch cannot be embedded
        """


class HttpEmbedder(Embedder):
    """
    Embedder backed by a JSON-over-HTTP API.

    Subclasses provide the endpoint path, request payload and response
    parsing; this class owns the session, the timeout and error mapping.
    """

    endpoint: str = ""

    def __init__(self, config: EmbedderConfig, session: Optional[requests.Session] = None):
        """
        Initialize the embedder.

        Args:
            config: Provider configuration
            session: Optional requests session (a new one is created if omitted)
        """
        self.config = config
        self.model = config.resolved_model()
        self.base_url = config.resolved_base_url()
        self.timeout = config.timeout_seconds
        self.session = session or requests.Session()

        logger.debug(
            f"Initialized {type(self).__name__}: base_url={self.base_url}, model={self.model}"
        )

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        texts = list(texts)
        if not texts:
            return []

        payload = self._build_payload(texts)
        payload.update(self.config.extra_params)
        result = self._post(payload)

        vectors = self._parse_vectors(result)
        if len(vectors) != len(texts):
            raise EmbeddingProviderError(
                f"{self.provider_name} returned {len(vectors)} embeddings for {len(texts)} inputs",
                provider=self.provider_name,
            )
        return vectors

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    @abstractmethod
    def _build_payload(self, texts: List[str]) -> Dict[str, Any]:
        """Build the request body for a batch."""

    @abstractmethod
    def _parse_vectors(self, result: Any) -> List[List[float]]:
        """Extract vectors, in input order, from a decoded response body."""

    def _post(self, payload: Dict[str, Any]) -> Any:
        """
        POST a JSON payload and decode the JSON response.

        Raises:
            EmbeddingProviderError: On transport errors, non-2xx status or
                an undecodable body
        """
        url = f"{self.base_url}{self.endpoint}"
        logger.debug(f"Requesting {len(payload.get('input', []))} embeddings from {url}")

        try:
            response = self.session.post(
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to connect to {self.provider_name}: {e}")
            raise EmbeddingProviderError(
                f"Failed to connect to {self.provider_name} at {self.base_url}: {e}",
                provider=self.provider_name,
            ) from e

        if not 200 <= response.status_code < 300:
            body = response.text[:500]
            logger.error(f"HTTP error from {self.provider_name}: {response.status_code} - {body}")
            raise EmbeddingProviderError(
                f"{self.provider_name} API error: {response.status_code} - {body}",
                provider=self.provider_name,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise EmbeddingProviderError(
                f"Invalid JSON response from {self.provider_name}: {e}",
                provider=self.provider_name,
                status_code=response.status_code,
            ) from e

    def _as_vector(self, value: Any) -> List[float]:
        if not isinstance(value, list) or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in value
        ):
            raise EmbeddingProviderError(
                f"Malformed embedding in {self.provider_name} response",
                provider=self.provider_name,
            )
        return [float(v) for v in value]
