from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List, Optional
import os


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )
    # Application
    app_name: str = "Standup Agent"
    app_version: str = "1.0.0"
    debug: bool = Field(default=False)

    # Storage
    storage_backend: str = Field(default="memory")  # none, memory, file, database
    file_storage_path: str = Field(default=".data")
    database_url: str = Field(default="sqlite+aiosqlite:///./standup.db")
    database_echo: bool = Field(default=False)
    database_name: str = Field(default="StandupDB")
    group_container: str = "StandupGroups"
    history_container: str = "StandupHistory"
    user_settings_container: str = "UserSettings"
    team_container: str = "Teams"

    # Webhook authentication
    bot_auth_secret: Optional[str] = Field(default=None)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # OpenAI-compatible LLM configuration
    openai_api_key: str = Field(default="not-needed")
    openai_api_base: Optional[str] = Field(default=None)
    openai_model: str = Field(default="gpt-4o-mini")
    openai_temperature: float = Field(default=0.3)
    max_tokens: int = Field(default=2000)

    # Ollama Configuration
    use_ollama: bool = Field(default=False)
    ollama_base_url: str = Field(default="http://localhost:11434")
    ollama_model: str = Field(default="llama3.2")

    # Agent behaviour
    max_tool_iterations: int = Field(default=5)
    display_timezone: str = Field(default="America/Los_Angeles")

    # External note storage (OneNote)
    graph_base_url: str = Field(default="https://graph.microsoft.com/v1.0")
    note_retry_attempts: int = Field(default=3)
    note_retry_delay: float = Field(default=1.0)  # seconds, multiplied by attempt

    # CORS
    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"]
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)


# Environment-specific configurations
class DevelopmentConfig(Settings):
    debug: bool = True
    log_level: str = "DEBUG"


class ProductionConfig(Settings):
    debug: bool = False
    storage_backend: str = "database"
    log_level: str = "WARNING"


class TestingConfig(Settings):
    storage_backend: str = "memory"
    database_url: str = "sqlite+aiosqlite:///./test.db"
    openai_api_key: str = "test-openai-key"


def get_settings() -> Settings:
    """Factory function to get settings based on environment"""
    env = os.getenv("ENVIRONMENT", "development").lower()

    if env == "production":
        return ProductionConfig()
    elif env == "testing":
        return TestingConfig()
    else:
        return DevelopmentConfig()
