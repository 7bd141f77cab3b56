"""
Configuration management for Disperse.

Supports configuration via environment variables and .env files.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ZERO_ADDRESS = "0x" + "0" * 40


class DisperseConfig(BaseSettings):
    """
    Configuration settings for the batch distributor.

    All settings can be configured via environment variables with the DISPERSE_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="DISPERSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Amount settings
    amount_bits: int = Field(
        default=256,
        ge=8,
        le=4096,
        description="Width of the unsigned amount type; larger values are rejected"
    )

    # Identity settings
    null_address: str = Field(
        default=ZERO_ADDRESS,
        description="Address treated as the null recipient"
    )
    distributor_address: str = Field(
        default="0x" + "d15e" * 10,
        description="Account the distributor holds custody under"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @field_validator("null_address", "distributor_address")
    @classmethod
    def _normalize_address(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def max_amount(self) -> int:
        """Largest amount representable in the configured width."""
        return (1 << self.amount_bits) - 1

    def is_null_address(self, address: Optional[str]) -> bool:
        """Check whether an address is the null identity."""
        if address is None:
            return True
        normalized = str(address).strip().lower()
        return normalized == "" or normalized == self.null_address


# Global config instance
_config: Optional[DisperseConfig] = None


def get_config() -> DisperseConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = DisperseConfig()
    return _config


def set_config(config: Optional[DisperseConfig]) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
