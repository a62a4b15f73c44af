"""
Shared fakes for the harness tests.

FakeChainClient implements the ChainClient surface used by the helpers and
scenarios, scripted with canned responses and recording every call.
"""

import os
import sys
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from scalecodec.base import RuntimeConfigurationObject
from scalecodec.type_registry import load_type_registry_preset

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from xcmbridges.types import BlockReference, DispatchOutcome


class FakeClock:
    """Records sleeps instead of performing them."""

    def __init__(self):
        self.sleeps: List[float] = []

    @property
    def elapsed(self) -> float:
        return sum(self.sleeps)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


class FakeCall:
    def __init__(self, module: str, function: str, params: dict):
        self.value = {"call_module": module, "call_function": function, "call_args": params}


class FakeChainClient:
    def __init__(
        self,
        name: str = "FakeChain",
        finalized: Optional[List[BlockReference]] = None,
        storage: Optional[Dict[tuple, Any]] = None,
        raw_storage: Optional[Dict[tuple, bytes]] = None,
        maps: Optional[Dict[tuple, list]] = None,
        runtime: Optional[Dict[tuple, Any]] = None,
        events: Optional[List[dict]] = None,
        outcome: Optional[DispatchOutcome] = None,
        decoded: Optional[Dict[str, Any]] = None,
    ):
        self.name = name
        self.finalized = list(finalized or [BlockReference(1, "0x01")])
        self.storage = storage or {}
        self.raw_storage = raw_storage or {}
        self.maps = maps or {}
        self.runtime = runtime or {}
        self.events = events or []
        self.outcome = outcome or DispatchOutcome(ok=True)
        self.decoded = decoded or {}
        self.calls: List[tuple] = []
        self.closed = False

    async def get_finalized_block(self) -> BlockReference:
        self.calls.append(("get_finalized_block",))
        # Last scripted block repeats forever
        if len(self.finalized) > 1:
            return self.finalized.pop(0)
        return self.finalized[0]

    async def has_storage(self, module, storage_function):
        return (module, storage_function) in self.storage

    async def query(self, module, storage_function, params=None, block_hash=None):
        self.calls.append(("query", module, storage_function, params, block_hash))
        return self.storage.get((module, storage_function))

    async def query_raw(self, module, storage_function, params=None, block_hash=None):
        self.calls.append(("query_raw", module, storage_function, params, block_hash))
        return self.raw_storage.get((module, storage_function))

    async def query_map(self, module, storage_function, params=None, block_hash=None):
        self.calls.append(("query_map", module, storage_function, params, block_hash))
        return self.maps.get((module, storage_function), [])

    async def get_events(self, block_hash=None):
        self.calls.append(("get_events", block_hash))
        return list(self.events)

    async def call_runtime_api(self, api, method, params, result_type):
        self.calls.append(("call_runtime_api", api, method, list(params), result_type))
        return self.runtime[(api, method)]

    async def decode(self, type_string, data):
        self.calls.append(("decode", type_string, data))
        return self.decoded.get(type_string)

    async def compose_call(self, module, function, params=None):
        self.calls.append(("compose_call", module, function, params))
        return FakeCall(module, function, params or {})

    async def submit(self, call, signer):
        self.calls.append(("submit", call, signer))
        return self.outcome

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_clock():
    return FakeClock()


# ══════════════════════════════════════════════════════════════════════
#  PORTABLE TYPE REGISTRY
# ══════════════════════════════════════════════════════════════════════

EXECUTION_ERRORS = [
    "Overflow", "Unimplemented", "UntrustedReserveLocation", "UntrustedTeleportLocation",
    "LocationFull", "LocationNotInvertible", "BadOrigin", "InvalidLocation",
    "AssetNotFound", "FailedToTransactAsset", "NotWithdrawable", "LocationCannotHold",
]

# (id, path, stand-in definition); the v4 Outcome comes first on purpose
PORTABLE_TYPES = [
    (10, ["staging_xcm", "v4", "traits", "Outcome"], "u8"),
    (1, ["xcm", "VersionedXcm"], "u16"),
    (2, ["xcm", "VersionedLocation"], "u8"),
    (3, ["asset_hub_polkadot_runtime", "RuntimeCall"], "u8"),
    (4, ["asset_hub_polkadot_runtime", "RuntimeEvent"], "u8"),
    (5, ["asset_hub_polkadot_runtime", "OriginCaller"], "u8"),
    (6, ["staging_xcm", "v5", "traits", "Outcome"], {
        "type": "enum", "type_mapping": [["Complete", "u64"], ["Incomplete", "u64"]],
    }),
    (7, ["sp_runtime", "DispatchError"], "u8"),
    (8, ["sp_weights", "weight_v2", "Weight"], "u64"),
    (9, ["frame_support", "dispatch", "Pays"], "u8"),
    # PolkadotXcm error, with the nested execution error at index 26
    (900, ["pallet_xcm", "pallet", "Error"], {
        "type": "enum",
        "type_mapping": [[f"Unused{i}", "Null"] for i in range(26)]
        + [["LocalExecutionIncompleteWithError", "scale_info::901"]],
    }),
    (901, [], {"type": "struct", "type_mapping": [["index", "u8"], ["error", "scale_info::902"]]}),
    (902, ["pallet_xcm", "pallet", "ExecutionError"], {"type": "enum", "value_list": EXECUTION_ERRORS}),
]


def portable_runtime():
    """A real runtime configuration holding stand-ins for portable registry types."""
    config = RuntimeConfigurationObject()
    config.update_type_registry(load_type_registry_preset("core"))
    config.update_type_registry_types({f"scale_info::{i}": definition for i, _, definition in PORTABLE_TYPES})
    metadata = SimpleNamespace(
        portable_registry=SimpleNamespace(value={"types": [
            {"id": i, "type": {"path": path, "params": [], "def": {}, "docs": []}}
            for i, path, _ in PORTABLE_TYPES
        ]}),
        pallets=[SimpleNamespace(value={"index": 31, "name": "PolkadotXcm", "error": {"ty": 900}})],
    )
    return config, metadata


@pytest.fixture
def runtime_substrate():
    """MagicMock SubstrateInterface whose type handling is the real scalecodec registry."""
    config, metadata = portable_runtime()
    substrate = MagicMock()
    substrate.runtime_config = config
    substrate.metadata = metadata
    substrate.create_scale_object.side_effect = config.create_scale_object
    return substrate
