"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ProofBackendMode(str, Enum):
    """Proof system backend selection."""

    SIMULATED = "simulated"
    SNARKJS = "snarkjs"


class ProofSettings(BaseSettings):
    """Proof backend configuration."""

    model_config = SettingsConfigDict(env_prefix="PROOF_")

    backend: ProofBackendMode = ProofBackendMode.SIMULATED

    # snarkjs circuit artefacts (wasm, proving key, verification key)
    build_dir: Path = Field(
        default_factory=lambda: Path(__file__).parent.parent.parent / "circuits" / "build"
    )
    circuit_name: str = "age_verification"

    # Upper bound for a single prove call, enforced by the service layer
    timeout_seconds: float = Field(default=30.0, gt=0)

    # Key for the simulated backend; a random key is used when empty
    signing_key: SecretStr = SecretStr("")


class CredentialSettings(BaseSettings):
    """Credential cache configuration."""

    model_config = SettingsConfigDict(env_prefix="CREDENTIAL_")

    shard_count: int = Field(default=16, ge=1, le=1024)
    sweep_interval_seconds: float = Field(default=300.0, gt=0)


class CORSSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class ServicePorts(BaseSettings):
    """Service port configuration."""

    age_verification: int = Field(default=6300, alias="AGE_VERIFICATION_PORT")


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: LogLevel = LogLevel.INFO

    # Project paths
    project_root: Path = Field(default_factory=lambda: Path(__file__).parent.parent.parent)

    # Service ports
    ports: ServicePorts = Field(default_factory=ServicePorts)

    # Proofs and credentials
    proof: ProofSettings = Field(default_factory=ProofSettings)
    credentials: CredentialSettings = Field(default_factory=CredentialSettings)

    # Security
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
