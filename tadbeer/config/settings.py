"""Application Settings - Central Configuration"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "tadbeer_dev"

    # Auth tokens
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expires_days: int = 7

    # AI provider (OpenAI-compatible, OpenRouter by default)
    ai_api_key: str = ""
    ai_base_url: str = "https://openrouter.ai/api/v1"
    ai_model: str = "openai/gpt-3.5-turbo"
    ai_max_tokens: int = 600
    ai_temperature: float = 0.2
    ai_app_title: str = "Tadbeer Ticketing System"
    ai_app_url: str = "http://localhost:8000"

    # Folders scanned by the assistant's knowledge search (comma-separated)
    knowledge_roots: str = "docs,tadbeer"

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    # CORS - set to "*" to allow all origins
    cors_origins: str = "http://localhost:5173"

    # Environment
    environment: str = "development"
    debug: bool = True

    # Bootstrap admin (used by scripts/seed_data.py)
    # Change these in production!
    bootstrap_name: str = "Tadbeer Admin"
    bootstrap_email: str = "admin@tadbeer.io"
    bootstrap_password: str = "Admin@12345"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def knowledge_roots_list(self) -> List[str]:
        """Parse knowledge roots string to list"""
        return [root.strip() for root in self.knowledge_roots.split(",") if root.strip()]

    @property
    def ai_enabled(self) -> bool:
        """Whether an AI provider key is configured"""
        return bool(self.ai_api_key.strip())

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
