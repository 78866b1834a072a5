"""Configuration management for toolchat."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # API Settings
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    api_allowed_origins: str | list[str] = Field(default=["*"], alias="API_ALLOWED_ORIGINS")

    # Database Settings
    database_url: str = Field(default="sqlite+aiosqlite:///./toolchat.db", alias="DATABASE_URL")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    # MCP Settings
    mcp_connect_timeout_seconds: float = Field(default=10.0, alias="MCP_CONNECT_TIMEOUT_SECONDS")
    mcp_tool_call_timeout_seconds: float = Field(default=30.0, alias="MCP_TOOL_CALL_TIMEOUT_SECONDS")
    mcp_client_name: str = Field(default="toolchat", alias="MCP_CLIENT_NAME")
    mcp_protocol_version: str = Field(default="2024-11-05", alias="MCP_PROTOCOL_VERSION")

    # Agent Settings
    agent_max_steps: int = Field(default=5, ge=1, alias="AGENT_MAX_STEPS")
    agent_step_timeout_seconds: float = Field(default=60.0, alias="AGENT_STEP_TIMEOUT_SECONDS")
    agent_reasoning_tag: str = Field(default="think", alias="AGENT_REASONING_TAG")
    turn_max_duration_seconds: float = Field(default=60.0, alias="TURN_MAX_DURATION_SECONDS")

    # Stream smoothing
    stream_smooth_chunking: Literal["line", "sentence"] = Field(
        default="line", alias="STREAM_SMOOTH_CHUNKING"
    )
    stream_smooth_delay_ms: int = Field(default=5, alias="STREAM_SMOOTH_DELAY_MS")
    stream_smooth_max_delay_ms: int = Field(default=250, alias="STREAM_SMOOTH_MAX_DELAY_MS")

    # LLM Settings (provider API keys are read by LiteLLM from the environment)
    default_model: str = Field(default="claude-3-5-sonnet", alias="DEFAULT_MODEL")
    llm_max_tokens: int = Field(default=4096, alias="LLM_MAX_TOKENS")
    llm_temperature: float = Field(default=0.7, alias="LLM_TEMPERATURE")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("stream_smooth_chunking", mode="before")
    @classmethod
    def normalize_chunking(cls, value: str | None) -> str:
        """Normalize chunking mode value from environment."""
        if value is None:
            return "line"
        normalized = str(value).strip().lower()
        if normalized in {"line", "sentence"}:
            return normalized
        raise ValueError("STREAM_SMOOTH_CHUNKING must be one of: line, sentence")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str | None) -> str:
        if value is None:
            return "INFO"
        return str(value).strip().upper()

    @field_validator("api_allowed_origins", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
