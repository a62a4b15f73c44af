"""
XCM Bridges Exceptions

Custom exception classes for the harness. Dry-run and dispatch failures are
reported through return values, not through these.
"""


class XcmBridgesException(Exception):
    """Base exception for the harness."""
    pass


class ConfigurationError(XcmBridgesException):
    """Configuration error."""
    pass


class UnknownChainError(ConfigurationError):
    """No endpoint is configured for the requested chain name."""
    pass


class ChainConnectionError(XcmBridgesException):
    """Could not connect to or talk with a chain RPC endpoint."""
    pass


class BridgeMessageDecodeError(XcmBridgesException):
    """Bridged outbound message does not match the expected byte layout."""
    pass


class UnsupportedRuntimeError(XcmBridgesException):
    """The chain's runtime metadata lacks a type the harness relies on."""
    pass
