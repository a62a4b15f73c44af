"""
XCM Bridges Test Harness

Helpers and scenarios for testing XCM between the Polkadot and Kusama
ecosystems over their bridge hubs.

Core imports are lazily loaded so that importing a light module (e.g. the
bridge message decoder) does not pull in the RPC client stack:

    from xcmbridges.finality import wait_for_next_block
    from xcmbridges.dry_run import dry_run_xcm_extrinsic
    from xcmbridges.bridge_message import decode_outbound_message
"""

__version__ = "0.1.0"

_LAZY = {
    'ChainClient': ('client', 'ChainClient'),
    'create_api_client': ('client', 'create_api_client'),
    'ScenarioContext': ('scenarios', 'ScenarioContext'),
    'wait_for_next_block': ('finality', 'wait_for_next_block'),
    'dry_run_execute_xcm': ('dry_run', 'dry_run_execute_xcm'),
    'dry_run_xcm_extrinsic': ('dry_run', 'dry_run_xcm_extrinsic'),
    'sign_and_submit': ('dispatch', 'sign_and_submit'),
    'pretty_string': ('pretty', 'pretty_string'),
    'derive_alice': ('keys', 'derive_alice'),
}


def __getattr__(name):
    """Lazy module loading to keep imports light."""
    if name in _LAZY:
        import importlib
        module_name, attr = _LAZY[name]
        return getattr(importlib.import_module(f".{module_name}", __name__), attr)
    raise AttributeError(f"module 'xcmbridges' has no attribute {name!r}")

__all__ = list(_LAZY)
