"""
XCM Bridges Harness Constants

Fixed protocol values and the environment-driven defaults of the harness.
Settings are read from the process environment first, then from a ``.env``
file in the working directory, then fall back to the defaults below.
"""
import os

from dotenv import dotenv_values

_dotenv = dotenv_values(".env")


def env_setting(key: str, default: str) -> str:
    value = os.environ.get(key)
    if value is None:
        value = _dotenv.get(key)
    return default if value is None else value


def env_flag(key: str, default: bool = False) -> bool:
    return env_setting(key, str(default)).strip().lower() in ("1", "true", "yes", "on")


# ----------------------------------------------------------------------------
# Endpoints (chopsticks forks on their usual local ports)
# ----------------------------------------------------------------------------
CHAIN_ENDPOINTS = {
    'PolkadotAssetHub':  env_setting('XCMB_POLKADOT_ASSET_HUB', 'ws://localhost:8000'),
    'KusamaBridgeHub':   env_setting('XCMB_KUSAMA_BRIDGE_HUB', 'ws://localhost:8001'),
    'KusamaAssetHub':    env_setting('XCMB_KUSAMA_ASSET_HUB', 'ws://localhost:8003'),
    'PolkadotBridgeHub': env_setting('XCMB_POLKADOT_BRIDGE_HUB', 'ws://localhost:8004'),
}

# Opt-in switch for the tests that talk to real nodes
XCMB_LIVE = env_flag('XCMB_LIVE')


# ----------------------------------------------------------------------------
# Logging
# ----------------------------------------------------------------------------
LOG_LEVEL = env_setting('LOG_LEVEL', 'INFO')
LOG_FORMAT = env_setting('LOG_FORMAT', '%(asctime)s - %(levelname)s - %(name)s - %(message)s')
LOG_DATE_FORMAT = env_setting('LOG_DATE_FORMAT', '%Y-%m-%dT%H:%M:%S')
LOG_CONSOLE_HIGHLIGHTING = env_flag('LOG_CONSOLE_HIGHLIGHTING', True)
LOG_FILE_OUTPUT = env_flag('LOG_FILE_OUTPUT')
LOG_MAX_FILE_SIZE = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


# ----------------------------------------------------------------------------
# XCM
# ----------------------------------------------------------------------------
# Version passed to DryRunApi.dry_run_call and expected in bridged messages
XCM_VERSION = 5

# Well-known development mnemonic, never a production secret
DEV_PHRASE = 'bottom drive obey lake curtain smoke basket hold race lonely fit walk'


# ----------------------------------------------------------------------------
# Finality wait
# ----------------------------------------------------------------------------
MAX_RETRIES = 8
# Seconds; doubled after every attempt
BASE_DELAY = 1.0


# ----------------------------------------------------------------------------
# Network
# ----------------------------------------------------------------------------
# Seconds allowed for the HTTP health probe
PROBE_TIMEOUT = 5.0
