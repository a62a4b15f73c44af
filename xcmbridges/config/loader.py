"""
XCM Bridges TOML Configuration Loader

Loads xcmbridges.toml with environment variable overrides.
Each [section] maps onto a dataclass with from_dict / apply_env.

Environment variable mapping:
    [chains] KusamaBridgeHub   → XCMB_KUSAMA_BRIDGE_HUB
    [finality] max_retries     → XCMB_FINALITY_MAX_RETRIES
    [finality] base_delay      → XCMB_FINALITY_BASE_DELAY
    [logging] level            → XCMB_LOG_LEVEL
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import BASE_DELAY, CHAIN_ENDPOINTS, LOG_FILE_OUTPUT, LOG_LEVEL, MAX_RETRIES
from ..exceptions import ConfigurationError, UnknownChainError

logger = logging.getLogger(__name__)


def _env_name(chain_name: str) -> str:
    """KusamaBridgeHub -> XCMB_KUSAMA_BRIDGE_HUB"""
    return "XCMB_" + re.sub(r"(?<!^)(?=[A-Z])", "_", chain_name).upper()


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------


@dataclass
class ChainsConfig:
    """[chains] section: chain name → WebSocket endpoint."""
    endpoints: Dict[str, str] = field(default_factory=lambda: dict(CHAIN_ENDPOINTS))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainsConfig":
        endpoints = dict(CHAIN_ENDPOINTS)
        endpoints.update({str(k): str(v) for k, v in data.items()})
        return cls(endpoints=endpoints)

    def apply_env(self) -> None:
        for name in list(self.endpoints):
            if v := os.environ.get(_env_name(name)):
                self.endpoints[name] = v

    def endpoint(self, chain_name: str) -> str:
        try:
            return self.endpoints[chain_name]
        except KeyError:
            raise UnknownChainError(f"No endpoint configured for chain {chain_name!r}") from None


@dataclass
class FinalityConfig:
    """[finality] section."""
    max_retries: int = MAX_RETRIES
    base_delay: float = BASE_DELAY

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FinalityConfig":
        return cls(
            max_retries=data.get("max_retries", MAX_RETRIES),
            base_delay=data.get("base_delay", BASE_DELAY),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("XCMB_FINALITY_MAX_RETRIES"):
            self.max_retries = int(v)
        if v := os.environ.get("XCMB_FINALITY_BASE_DELAY"):
            self.base_delay = float(v)


@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = LOG_LEVEL
    file_output: bool = LOG_FILE_OUTPUT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=data.get("level", LOG_LEVEL),
            file_output=data.get("file_output", LOG_FILE_OUTPUT),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("XCMB_LOG_LEVEL"):
            self.level = v


# -----------------------------------------------------------------------
# Top-level config
# -----------------------------------------------------------------------

@dataclass
class HarnessConfig:
    """
    Harness configuration.

    Loads every section of xcmbridges.toml and applies environment variable
    overrides.
    """
    chains: ChainsConfig = field(default_factory=ChainsConfig)
    finality: FinalityConfig = field(default_factory=FinalityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HarnessConfig":
        """Create HarnessConfig from a parsed TOML dict."""
        return cls(
            chains=ChainsConfig.from_dict(data.get("chains", {})),
            finality=FinalityConfig.from_dict(data.get("finality", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "HarnessConfig":
        """
        Load configuration from a TOML file.

        A missing file is not an error: defaults plus environment overrides
        are used instead.
        """
        path = Path(config_path)
        if not path.exists():
            logger.debug("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        with open(path, "rb") as f:
            try:
                raw = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.chains.apply_env()
        self.finality.apply_env()
        self.logging.apply_env()

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        if self.finality.max_retries < 1:
            raise ConfigurationError("finality.max_retries must be >= 1")
        if self.finality.base_delay < 0:
            raise ConfigurationError("finality.base_delay must be >= 0")
        if self.logging.level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Invalid logging.level: {self.logging.level}")
        for name, endpoint in self.chains.endpoints.items():
            if not endpoint.startswith(("ws://", "wss://")):
                raise ConfigurationError(f"Endpoint for {name} must be a ws:// or wss:// URL: {endpoint}")
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "chains": dict(self.chains.endpoints),
            "finality": {
                "max_retries": self.finality.max_retries,
                "base_delay": self.finality.base_delay,
            },
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
            },
        }


def load_config(path: Optional[str] = None) -> HarnessConfig:
    """
    Load harness configuration.

    Resolution order:
        1. Explicit *path* argument
        2. XCMB_CONFIG env var
        3. ./xcmbridges.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("XCMB_CONFIG", "xcmbridges.toml")

    return HarnessConfig.from_file(path)
