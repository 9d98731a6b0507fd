"""
Configuration management using pydantic-settings.
All settings loaded from environment variables (12-factor app).
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    db_path: str = Field(default="./data/foresight.duckdb", description="DuckDB file path")

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_reload: bool = Field(default=True, description="Enable hot reload")
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="CORS allowed origins (comma-separated)",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")

    # Cascade engine
    propagation_floor: float = Field(
        default=0.05, gt=0.0, lt=1.0, description="Probability below which a branch terminates"
    )
    confidence_decay: float = Field(
        default=0.85, gt=0.0, lt=1.0, description="Per-order confidence decay factor"
    )
    node_visit_budget: int = Field(
        default=10000, ge=1, description="Hard cap on node expansions per analysis"
    )
    mitigation_top_n: int = Field(
        default=5, ge=1, le=50, description="Consequences that receive mitigations"
    )

    # Multiverse simulator
    max_universes: int = Field(default=8, ge=1, le=8, description="Upper bound on branch count")

    # Registry defaults
    default_cascade_mode: str = Field(default="due-diligence", description="Cascade mode when none given")
    default_simulation_mode: str = Field(default="balanced", description="Simulation mode when none given")
    default_industry: str = Field(default="general", description="Industry when none given")

    # Graph
    load_sample_graph_on_startup: bool = Field(
        default=True, description="Load the bundled sample graph at startup"
    )

    # Remote engine
    engine_base_url: Optional[str] = Field(
        default=None, description="Base URL of a remote Foresight engine"
    )
    engine_timeout_seconds: float = Field(default=10.0, gt=0.0, description="Remote engine timeout")

    # Development
    dev_mode: bool = Field(default=True, description="Development mode")
    debug: bool = Field(default=False, description="Debug mode")
    testing: bool = Field(default=False, description="Testing mode")

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, v: str) -> List[str]:
        """Parse comma-separated CORS origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
