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
    mongo_db: str = "operation_auth_dev"

    # Access tokens
    token_default_ttl_seconds: int = 300  # 5 minutes
    enabled_operation_kinds: str = "status_change,asset_assignment,leave_approval,stock_in,stock_out,stock_transfer"
    single_active_token_per_target: bool = True
    token_sweep_interval_seconds: int = 60

    # Identity (tokens are minted by the identity subsystem with a shared secret)
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    # Roles allowed to issue access tokens, per module
    admin_roles: str = "superadmin,admin"
    hr_issuer_roles: str = "hr_manager"
    stock_issuer_roles: str = "stock_manager,manager"

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"
    log_file_name: str = "opauth.log"
    error_log_file_name: str = "opauth-error.log"
    log_max_bytes: int = 10 * 1024 * 1024  # 10MB
    log_backup_count: int = 5

    # API server
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # Seconds a client should wait before retrying after a storage outage
    storage_retry_after_seconds: int = 1

    # CORS - set to "*" to allow all origins
    cors_origins: str = "*"

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def enabled_operation_kinds_list(self) -> List[str]:
        """Parse enabled operation kinds string to list"""
        return [kind.strip() for kind in self.enabled_operation_kinds.split(",") if kind.strip()]

    @property
    def admin_roles_list(self) -> List[str]:
        return _split_csv(self.admin_roles)

    @property
    def hr_issuer_roles_list(self) -> List[str]:
        return _split_csv(self.hr_issuer_roles)

    @property
    def stock_issuer_roles_list(self) -> List[str]:
        return _split_csv(self.stock_issuer_roles)

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment.lower() == "production"


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
