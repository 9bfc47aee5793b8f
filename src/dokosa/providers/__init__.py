"""
Embedding providers for dokosa.
"""

from typing import Optional

import requests

from ..core.exceptions import ConfigError
from ..core.types import EmbedderConfig
from .base import Embedder, HttpEmbedder
from .ollama_embedder import OllamaEmbedder
from .openai_embedder import OpenAIEmbedder


PROVIDERS = {
    "openai": OpenAIEmbedder,
    "ollama": OllamaEmbedder,
}


def create_embedder(
    config: EmbedderConfig,
    session: Optional[requests.Session] = None,
) -> Embedder:
    """
    Build the embedder named by ``config.provider``.

    Raises:
        ConfigError: If the provider is unknown
    """
    embedder_cls = PROVIDERS.get(config.provider)
    if embedder_cls is None:
        raise ConfigError(
            f"Unknown embedding provider: {config.provider!r} "
            f"(expected one of: {', '.join(sorted(PROVIDERS))})"
        )
    return embedder_cls(config, session=session)


__all__ = [
    "Embedder",
    "HttpEmbedder",
    "OllamaEmbedder",
    "OpenAIEmbedder",
    "PROVIDERS",
    "create_embedder",
]
