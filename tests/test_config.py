"""Tests for application configuration."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from src.config import (
    EmbeddingProvider,
    EmbeddingSettings,
    Environment,
    ModelSource,
    QdrantSettings,
    SearchSettings,
    Settings,
    get_settings,
)


class TestEmbeddingSettings:
    """Tests for embedding configuration."""

    def test_default_values(self) -> None:
        """Defaults select the local MiniLM model."""
        settings = EmbeddingSettings()
        assert settings.provider == EmbeddingProvider.LOCAL
        assert settings.model == "sentence-transformers/all-MiniLM-L6-v2"
        assert settings.model_source == ModelSource.LOCAL_THEN_REMOTE
        assert settings.device == "cpu"

    def test_tls_verified_by_default(self) -> None:
        """TLS verification is on unless explicitly disabled."""
        assert EmbeddingSettings().verify_tls is True

    def test_model_source_env_override(self) -> None:
        """Model source can be set via environment."""
        with patch.dict(os.environ, {"EMBEDDING_MODEL_SOURCE": "remote_only"}):
            settings = EmbeddingSettings()
            assert settings.model_source == ModelSource.REMOTE_ONLY

    def test_invalid_model_source(self) -> None:
        """Unknown model sources are rejected."""
        with patch.dict(os.environ, {"EMBEDDING_MODEL_SOURCE": "insecure"}):
            with pytest.raises(ValidationError):
                EmbeddingSettings()

    def test_provider_env_override(self) -> None:
        """Environment variables override defaults."""
        with patch.dict(os.environ, {"EMBEDDING_PROVIDER": "http"}):
            settings = EmbeddingSettings()
            assert settings.provider == EmbeddingProvider.HTTP


class TestQdrantSettings:
    """Tests for Qdrant configuration."""

    def test_default_values(self) -> None:
        """Default values for Qdrant."""
        settings = QdrantSettings()
        assert settings.url == "http://localhost:6333"
        assert settings.api_key is None
        assert settings.collection_name == "drab_embeddings"
        assert settings.vector_size == 384

    def test_api_key_is_secret_when_set(self) -> None:
        """API key should be masked when set."""
        with patch.dict(os.environ, {"QDRANT_API_KEY": "secret-key"}):
            settings = QdrantSettings()
            assert settings.api_key is not None
            assert "secret-key" not in str(settings.api_key)
            assert settings.api_key.get_secret_value() == "secret-key"

    def test_vector_size_must_be_positive(self) -> None:
        """Zero dimension is rejected."""
        with patch.dict(os.environ, {"QDRANT_VECTOR_SIZE": "0"}):
            with pytest.raises(ValidationError):
                QdrantSettings()


class TestSearchSettings:
    """Tests for search limits."""

    def test_default_values(self) -> None:
        """Default limits."""
        settings = SearchSettings()
        assert settings.max_limit == 100
        assert settings.default_limit == 10
        assert settings.default_threshold == 0.0


class TestSettings:
    """Tests for main application settings."""

    def test_default_environment(self) -> None:
        """Default environment is development."""
        settings = Settings()
        assert settings.environment == Environment.DEVELOPMENT

    def test_default_api_settings(self) -> None:
        """Default API host and port."""
        settings = Settings()
        assert settings.api_host == "0.0.0.0"
        assert settings.api_port == 3500

    def test_nested_settings_loaded(self) -> None:
        """Nested settings are initialized."""
        settings = Settings()
        assert isinstance(settings.embedding, EmbeddingSettings)
        assert isinstance(settings.qdrant, QdrantSettings)
        assert isinstance(settings.search, SearchSettings)

    def test_environment_enum(self) -> None:
        """Environment can be set via string."""
        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            settings = Settings()
            assert settings.environment == Environment.PRODUCTION


class TestGetSettings:
    """Tests for settings singleton."""

    def test_returns_settings_instance(self) -> None:
        """get_settings returns a Settings instance."""
        get_settings.cache_clear()
        settings = get_settings()
        assert isinstance(settings, Settings)

    def test_caching(self) -> None:
        """Settings are cached."""
        get_settings.cache_clear()
        settings1 = get_settings()
        settings2 = get_settings()
        assert settings1 is settings2
