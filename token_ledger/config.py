"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class TokenLedgerConfig(BaseSettings):
    """Token ledger configuration"""

    # Storage configuration
    storage_backend: str = "sqlite"  # sqlite or memory
    database_path: str = "token_ledger.db"
    ledger_table: str = "ERC20Table"
    ledger_key: str = "ALL"

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090
    caller_header: str = "X-Caller-Id"

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # Notification configuration
    notification_webhook_url: str = ""  # Empty = webhook disabled
    notification_timeout: float = 2.0
    notification_log: bool = True
    default_caller: Optional[str] = None  # Used when a request carries no caller

    class Config:
        env_prefix = "TOKEN_LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = TokenLedgerConfig()


def get_config() -> TokenLedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> TokenLedgerConfig:
    """Reload configuration from environment"""
    global config
    config = TokenLedgerConfig()
    return config
