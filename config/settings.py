"""
Configuration management for the broker relay
"""

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from broker_relay.core.enums import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_AFTER,
    MAX_RETRY_AFTER,
    DEPLOY_POLL_INTERVAL,
    DEPLOY_POLL_ATTEMPTS,
    TRADE_HISTORY_DAYS,
    Platform,
)
from broker_relay.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class RelayConfig:
    """Main configuration for the relay"""

    # API Configuration
    metaapi_token: str = ""
    region: str = "london"
    domain: str = "agiliumtrade.ai"
    request_timeout: float = 30.0

    # 202 retry handling
    max_retries: int = DEFAULT_MAX_RETRIES
    default_retry_after: float = DEFAULT_RETRY_AFTER
    max_retry_after: float = MAX_RETRY_AFTER

    # Account provisioning
    deploy_poll_interval: float = DEPLOY_POLL_INTERVAL
    deploy_poll_attempts: int = DEPLOY_POLL_ATTEMPTS
    existing_lookup_attempts: int = 3
    account_name_prefix: str = "relay"
    default_platform: str = Platform.MT5.value

    # Trade history
    trade_history_days: int = TRADE_HISTORY_DAYS

    # Storage
    store_path: str = "data/links.json"

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = False

    @property
    def provisioning_url(self) -> str:
        return f"https://mt-provisioning-api-v1.{self.region}.{self.domain}"

    @property
    def client_url(self) -> str:
        return f"https://mt-client-api-v1.{self.region}.{self.domain}"

    @property
    def metastats_url(self) -> str:
        return f"https://metastats-api-v1.{self.region}.{self.domain}"

    def validate(self) -> bool:
        """Validate configuration parameters"""

        if not self.metaapi_token:
            logger.error("metaapi_token is required")
            return False

        if not self.region or not self.domain:
            logger.error("region and domain are required")
            return False

        if self.max_retries < 0:
            logger.error("max_retries must not be negative")
            return False

        if self.max_retry_after <= 0 or self.default_retry_after < 0:
            logger.error("retry waits must be positive")
            return False

        if self.deploy_poll_attempts < 1 or self.deploy_poll_interval < 0:
            logger.error("deploy polling needs at least one attempt and a non-negative interval")
            return False

        if self.existing_lookup_attempts < 1:
            logger.error("existing_lookup_attempts must be at least 1")
            return False

        if self.default_platform not in {p.value for p in Platform}:
            logger.error(f"Unsupported platform: {self.default_platform}")
            return False

        if self.default_retry_after > self.max_retry_after:
            logger.warning(
                f"default_retry_after {self.default_retry_after}s exceeds "
                f"max_retry_after, clamping to {self.max_retry_after}s"
            )
            self.default_retry_after = self.max_retry_after

        return True

    def to_dict(self, mask_secrets: bool = True) -> Dict:
        """Convert config to dictionary"""
        config_dict = {f.name: getattr(self, f.name) for f in fields(self)}
        if mask_secrets and self.metaapi_token:
            config_dict["metaapi_token"] = mask_token(self.metaapi_token)
        return config_dict

    def save(self, filepath: str) -> None:
        """Save configuration to file, secrets masked"""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Configuration saved to {filepath}")


def mask_token(token: str) -> str:
    return f"{token[:4]}..." if len(token) > 8 else "***"


def _env_number(name: str, cast):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def load_env_config() -> Dict[str, Any]:
    """Load configuration from environment variables"""

    env_config: Dict[str, Any] = {}

    # API
    env_config['metaapi_token'] = os.getenv('METAAPI_TOKEN', '')
    env_config['region'] = os.getenv('METAAPI_REGION', '')
    env_config['domain'] = os.getenv('METAAPI_DOMAIN', '')

    # Numbers
    env_config['max_retries'] = _env_number('RELAY_MAX_RETRIES', int)
    env_config['request_timeout'] = _env_number('RELAY_REQUEST_TIMEOUT', float)

    # Storage and logging
    env_config['store_path'] = os.getenv('RELAY_STORE_PATH', '')
    env_config['log_level'] = os.getenv('RELAY_LOG_LEVEL', '')

    return {k: v for k, v in env_config.items() if v is not None and v != ''}


def load_config_file(filepath: str) -> Dict:
    """Load configuration from JSON file"""

    if not os.path.exists(filepath):
        logger.warning(f"Config file not found: {filepath}")
        return {}

    try:
        with open(filepath, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Error loading config file {filepath}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {filepath} must contain a JSON object")
    return data


def create_config(
    config_path: Optional[str] = None,
    **overrides: Any
) -> RelayConfig:
    """Create configuration with precedence: overrides > env vars > config file > defaults"""

    config_data: Dict[str, Any] = {}

    # Load from config file if provided
    if config_path:
        config_data.update(load_config_file(config_path))
    else:
        default_config_path = Path(__file__).parent / "relay_config.json"
        if default_config_path.exists():
            config_data.update(load_config_file(str(default_config_path)))

    # Override with environment variables
    config_data.update(load_env_config())

    # Explicit overrides win
    config_data.update({k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in fields(RelayConfig)}
    unknown = set(config_data) - known
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {sorted(unknown)}")

    return RelayConfig(**{k: v for k, v in config_data.items() if k in known})


def validate_config(config: RelayConfig) -> bool:
    """Validate configuration and log warnings"""

    if not config.validate():
        return False

    # Additional validation warnings
    polling_budget = config.deploy_poll_interval * config.deploy_poll_attempts
    if polling_budget > 120:
        logger.warning(f"Deploy polling may run for up to {polling_budget:.0f}s")

    if config.max_retries > 10:
        logger.warning(f"High max_retries: {config.max_retries}")

    return True
