"""
XCM Bridges Configuration

Loads xcmbridges.toml; environment variables override TOML values.
"""

from .loader import (
    ChainsConfig,
    FinalityConfig,
    HarnessConfig,
    LoggingConfig,
    load_config,
)

__all__ = [
    "ChainsConfig",
    "FinalityConfig",
    "HarnessConfig",
    "LoggingConfig",
    "load_config",
]
