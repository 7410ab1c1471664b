#!/usr/bin/env python3
"""
Configuration Management for NFT Trader

Handles environment-based configuration with secure defaults and validation.
Supports multiple environments (development, test, production) with appropriate
settings for each.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

SUPPORTED_CHAINS = ("ethereum", "base", "sepolia")


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass
class OpenSeaConfig:
    """OpenSea API configuration."""

    api_key: str | None = None
    base_url: str = "https://api.opensea.io"
    timeout: int = 60
    retries: int = 3


@dataclass
class CacheConfig:
    """Wallet holdings cache configuration."""

    cache_dir: Path
    expiry_hours: int = 24


@dataclass
class FlowConfig:
    """Interactive flow configuration."""

    session_dir: Path
    max_history_size: int = 20


@dataclass
class ListingConfig:
    """Listing defaults."""

    pending_dir: Path
    default_chain: str = "base"
    default_expiration: str = "1h"
    marketplaces: str = "opensea"


@dataclass
class Config:
    """
    Main configuration class for the NFT trader application.

    Loads configuration from environment variables with secure defaults
    and validation for each environment type.
    """

    environment: Environment

    # Core directories
    data_dir: Path

    # Component configurations
    opensea: OpenSeaConfig
    cache: CacheConfig
    flow: FlowConfig
    listing: ListingConfig

    # Application settings
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(os.getenv("NFTTRADER_ENV", "development"))

        if env == Environment.TEST:
            default_test_dir = Path(tempfile.gettempdir()) / "test_nfttrader"
            data_dir = Path(os.getenv("NFTTRADER_DATA_DIR", str(default_test_dir)))
        else:
            data_dir = Path(os.getenv("NFTTRADER_DATA_DIR", "./data")).expanduser().resolve()

        data_dir.mkdir(parents=True, exist_ok=True)

        opensea = OpenSeaConfig(
            api_key=os.getenv("OPENSEA_API_KEY"),
            base_url=os.getenv("OPENSEA_BASE_URL", "https://api.opensea.io"),
            timeout=int(os.getenv("OPENSEA_TIMEOUT", "60")),
            retries=int(os.getenv("OPENSEA_RETRIES", "3")),
        )

        cache = CacheConfig(
            cache_dir=Path(os.getenv("CACHE_DIR", str(data_dir / ".cache"))),
            expiry_hours=int(os.getenv("CACHE_EXPIRY_HOURS", "24")),
        )

        flow = FlowConfig(
            session_dir=data_dir / "sessions",
            max_history_size=int(os.getenv("FLOW_MAX_HISTORY", "20")),
        )

        listing = ListingConfig(
            pending_dir=data_dir / "listings" / "pending",
            default_chain=os.getenv("DEFAULT_CHAIN", "base").lower(),
        )

        return cls(
            environment=env,
            data_dir=data_dir,
            opensea=opensea,
            cache=cache,
            flow=flow,
            listing=listing,
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.data_dir.exists():
            errors.append(f"data_dir does not exist: {self.data_dir}")

        # API key is optional locally, pricing lookups just fail without it
        if self.environment == Environment.PRODUCTION and not self.opensea.api_key:
            errors.append("OPENSEA_API_KEY is required in production")

        if self.opensea.timeout <= 0:
            errors.append("OpenSea timeout must be positive")
        if self.opensea.retries < 1:
            errors.append("OpenSea retries must be at least 1")
        if self.cache.expiry_hours <= 0:
            errors.append("Cache expiry hours must be positive")
        if self.flow.max_history_size < 1:
            errors.append("Flow max history size must be at least 1")
        if self.listing.default_chain not in SUPPORTED_CHAINS:
            errors.append(
                f"Unsupported default chain: {self.listing.default_chain}. "
                f"Supported chains: {', '.join(SUPPORTED_CHAINS)}"
            )

        return errors

    def setup_logging(self) -> None:
        """Configure logging based on configuration."""
        level = getattr(logging, self.log_level, logging.INFO)

        # Configure format based on environment
        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

        # Reduce noise from external libraries in production
        if self.environment == Environment.PRODUCTION:
            logging.getLogger("urllib3").setLevel(logging.WARNING)
            logging.getLogger("requests").setLevel(logging.WARNING)

    def get_sensitive_fields(self) -> list:
        """Get list of field names that contain sensitive data."""
        return ["opensea.api_key"]

    def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
        """Convert configuration to dictionary, optionally excluding sensitive data."""
        result: dict[str, Any] = {}

        for field_name, field_value in self.__dict__.items():
            if hasattr(field_value, "__dict__") and not isinstance(field_value, Enum):
                nested_dict: dict[str, Any] = {}
                for nested_name, nested_value in field_value.__dict__.items():
                    full_field_name = f"{field_name}.{nested_name}"

                    if not include_sensitive and full_field_name in self.get_sensitive_fields():
                        nested_dict[nested_name] = "***REDACTED***" if nested_value else None
                    elif isinstance(nested_value, Path):
                        nested_dict[nested_name] = str(nested_value)
                    else:
                        nested_dict[nested_name] = nested_value

                result[field_name] = nested_dict
            elif isinstance(field_value, Path):
                result[field_name] = str(field_value)
            elif isinstance(field_value, Enum):
                result[field_name] = field_value.value
            else:
                result[field_name] = field_value

        return result


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_environment()

        errors = _config.validate()
        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        _config.setup_logging()

    return _config


def reload_config() -> Config:
    """Reload configuration from environment (useful for testing)."""
    global _config
    _config = None
    return get_config()
