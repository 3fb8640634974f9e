"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class EmbeddingProvider(str, Enum):
    """Where embeddings are computed."""

    LOCAL = "local"
    HTTP = "http"


class ModelSource(str, Enum):
    """Where the local embedding model is loaded from.

    LOCAL_THEN_REMOTE tries the local path first and falls back to the
    model hub. No source ever relaxes TLS verification.
    """

    LOCAL_ONLY = "local_only"
    REMOTE_ONLY = "remote_only"
    LOCAL_THEN_REMOTE = "local_then_remote"


class EmbeddingSettings(BaseSettings):
    """Embedding generator configuration."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    provider: EmbeddingProvider = Field(
        default=EmbeddingProvider.LOCAL,
        description="Embedding backend (in-process model or HTTP service)",
    )
    model: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        description="Embedding model name",
    )
    local_model_path: str = Field(
        default="all-MiniLM-L6-v2",
        description="Filesystem path of a locally downloaded model",
    )
    model_source: ModelSource = Field(
        default=ModelSource.LOCAL_THEN_REMOTE,
        description="Model loading policy for the local provider",
    )
    device: str = Field(
        default="cpu",
        description="Torch device for local inference",
    )
    base_url: str = Field(
        default="http://localhost:8080",
        description="Embedding service base URL (http provider)",
    )
    timeout: float = Field(
        default=60.0,
        description="HTTP request timeout in seconds",
    )
    verify_tls: bool = Field(
        default=True,
        description="Verify TLS certificates of the embedding service",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )
    collection_name: str = Field(
        default="drab_embeddings",
        description="Collection holding text embeddings",
    )
    vector_size: int = Field(
        default=384,
        gt=0,
        description="Fixed embedding dimension of the collection",
    )
    timeout: int = Field(
        default=30,
        description="Qdrant request timeout in seconds",
    )


class SearchSettings(BaseSettings):
    """Similarity search limits."""

    model_config = SettingsConfigDict(env_prefix="SEARCH_")

    max_limit: int = Field(
        default=100,
        gt=0,
        description="Upper bound applied to caller-supplied limits",
    )
    default_limit: int = Field(
        default=10,
        gt=0,
        description="Limit used when the caller gives none",
    )
    default_threshold: float = Field(
        default=0.0,
        ge=0.0,
        description="Score threshold used when the caller gives none",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=3500,
        description="API server port",
    )

    # Nested settings
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
