from functools import lru_cache

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from chat_relay.core.errors import ConfigError


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    ENVIRONMENT: str = "development"

    # Ollama (OpenAI-compatible endpoint)
    OLLAMA_HOST: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3.2"
    OLLAMA_API_KEY: str = "ollama"

    # Generation
    TEMPERATURE: float = 0.7
    MAX_TOKENS: int = 2048
    REQUEST_TIMEOUT_SECS: float = 120.0

    # Web server
    SERVER_PORT: int = 3000
    STATIC_DIR: str = "dist"

    @property
    def openai_base_url(self) -> str:
        return f"{self.OLLAMA_HOST.rstrip('/')}/v1"

    def validate_config(self) -> None:
        """Check values that the type system alone cannot express."""
        if not self.OLLAMA_HOST.startswith(("http://", "https://")):
            raise ConfigError(f"OLLAMA_HOST must start with http:// or https://, got '{self.OLLAMA_HOST}'")
        if not self.OLLAMA_MODEL.strip():
            raise ConfigError("OLLAMA_MODEL must not be empty")
        if not 0.0 <= self.TEMPERATURE <= 2.0:
            raise ConfigError(f"TEMPERATURE must be between 0.0 and 2.0, got {self.TEMPERATURE}")
        if self.MAX_TOKENS <= 0:
            raise ConfigError(f"MAX_TOKENS must be positive, got {self.MAX_TOKENS}")
        if self.REQUEST_TIMEOUT_SECS <= 0:
            raise ConfigError(f"REQUEST_TIMEOUT_SECS must be positive, got {self.REQUEST_TIMEOUT_SECS}")


def load_settings() -> Settings:
    """Build a fresh Settings instance, re-reading the environment."""
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigError(str(e)) from e


@lru_cache
def get_settings() -> Settings:
    return load_settings()
