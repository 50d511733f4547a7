"""Configuration and environment variables"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Provider credentials (request-supplied keys take precedence)
    openrouter_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # Provider endpoints
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openai_base_url: str = "https://api.openai.com/v1"
    # Host only, as the Anthropic SDK reads ANTHROPIC_BASE_URL
    anthropic_base_url: str = "https://api.anthropic.com"
    anthropic_version: str = "2023-06-01"

    # Per-provider fallback models when a request names none
    openai_model: str = "gpt-4o"
    anthropic_model: str = "claude-3-5-sonnet-20241022"

    # Model Configuration
    default_provider: str = "openrouter"
    default_model: str = "google/gemini-2.5-flash-lite-preview-06-17"
    default_temperature: float = 0.7
    max_output_tokens: int = 8000
    request_timeout: float = 120.0

    # Storage Configuration
    storage_dir: str = "./storage"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    allowed_mime_types: list = ["image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"]
    default_language: str = "en-to-cn"

    # Backend Configuration
    port: int = 3001
    log_level: str = "INFO"

    # CORS Settings
    cors_origins: list = ["http://localhost:3000", "http://127.0.0.1:3000"]

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
