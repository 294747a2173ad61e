"""Environment configuration management for the Lines of Thought server."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
import os

class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Allow extra env vars without error
    )

    # Server configuration
    APP_NAME: str = "Lines of Thought API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Database connections
    REDIS_URL: str = "redis://localhost:6379"
    NEO4J_URI: str = "bolt://localhost:7687"
    NEO4J_USER: str = "neo4j"
    NEO4J_PASSWORD: str = "password"
    NEO4J_DATABASE: Optional[str] = None

    # Model services (Ollama)
    OLLAMA_URL: str = "http://localhost:11434"
    EMBEDDING_MODEL: str = "all-minilm"
    EMBEDDING_DIMENSIONS: int = 384
    EMBEDDING_CACHE_ENABLED: bool = True
    EMBEDDING_CACHE_TTL: int = 7 * 24 * 60 * 60  # 7 days

    # Quality gate
    SIMILARITY_THRESHOLD: float = 0.9
    MAX_TEXT_LENGTH: int = 5000
    MAX_PERSPECTIVE_LENGTH: int = 500
    # Moderation is fail-open, originality checks are always fail-closed
    MODERATION_FAIL_OPEN: bool = True

    # Ranking
    SEARCH_VECTOR_WEIGHT: float = 0.7
    SEARCH_KEYWORD_WEIGHT: float = 0.3
    SEARCH_DEFAULT_LIMIT: int = 10
    SEARCH_MAX_LIMIT: int = 50

    # Listing and retrieval
    PAGE_DEFAULT_LIMIT: int = 9
    PAGE_MAX_LIMIT: int = 100
    MAX_BATCH_IDS: int = 50

    # CORS settings
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    CORS_CREDENTIALS: bool = True
    CORS_METHODS: list[str] = ["*"]
    CORS_HEADERS: list[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Global settings instance
settings = Settings()

def is_development() -> bool:
    """Check if running in development mode."""
    return settings.DEBUG or os.getenv("ENVIRONMENT", "development") == "development"

def get_cors_config() -> dict:
    """Get CORS configuration."""
    return {
        "allow_origins": settings.CORS_ORIGINS,
        "allow_credentials": settings.CORS_CREDENTIALS,
        "allow_methods": settings.CORS_METHODS,
        "allow_headers": settings.CORS_HEADERS,
    }
