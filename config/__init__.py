"""
Configuration management
"""

from .settings import RelayConfig, create_config, validate_config

__all__ = ["RelayConfig", "create_config", "validate_config"]
