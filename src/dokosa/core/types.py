"""
Core configuration types for dokosa.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional


DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"

DEFAULT_MODELS = {
    "openai": "text-embedding-3-small",
    "ollama": "nomic-embed-text",
}

DEFAULT_BASE_URLS = {
    "openai": DEFAULT_OPENAI_BASE_URL,
    "ollama": DEFAULT_OLLAMA_BASE_URL,
}


@dataclass
class EmbedderConfig:
    """
    Configuration for an embedding provider.

    Attributes:
        provider: Provider name ('openai' or 'ollama')
        model: Embedding model identifier
        base_url: Base URL for the provider API
        api_key: API key (required by 'openai')
        timeout_seconds: Request timeout in seconds
        extra_params: Additional provider-specific request fields
    """
    provider: str = "openai"
    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_seconds: int = 120
    extra_params: Dict[str, Any] = field(default_factory=dict)

    def resolved_model(self) -> str:
        """Model name, falling back to the provider default."""
        return self.model or DEFAULT_MODELS.get(self.provider, "")

    def resolved_base_url(self) -> str:
        """Base URL without trailing slash, falling back to the provider default."""
        base_url = self.base_url or DEFAULT_BASE_URLS.get(self.provider, "")
        return base_url.rstrip("/")


@dataclass
class DokosaConfig:
    """
    Settings shared by all dokosa commands.

    Attributes:
        index_file: Path of the index log
        embedding_provider: Provider name ('openai' or 'ollama')
        embedding_model: Model name (provider default when unset)
        embedding_base_url: Provider base URL (provider default when unset)
        api_key: Provider API key
        timeout_seconds: HTTP timeout for embedding requests
        chunk_window_size: Lines per chunk for newly added repositories
        chunk_step_size: Lines between chunk starts for newly added repositories
        search_count: Default maximum number of search results
        similarity_threshold: Default minimum similarity for search results
    """
    index_file: Optional[str] = None
    embedding_provider: str = "openai"
    embedding_model: Optional[str] = None
    embedding_base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_seconds: int = 120
    chunk_window_size: int = 50
    chunk_step_size: int = 25
    search_count: int = 10
    similarity_threshold: float = 0.3

    @classmethod
    def field_names(cls) -> set:
        """Names accepted in a config file."""
        return {f.name for f in fields(cls)}

    def embedder_config(self) -> EmbedderConfig:
        """Build the provider configuration for the embedder factory."""
        return EmbedderConfig(
            provider=self.embedding_provider,
            model=self.embedding_model,
            base_url=self.embedding_base_url,
            api_key=self.api_key,
            timeout_seconds=self.timeout_seconds,
        )
