"""
XCM Bridges Chain Client

Async facade over ``substrateinterface.SubstrateInterface``.

The underlying client is blocking; every call is pushed to a worker thread so
each RPC round trip is a suspension point of the scenario's task. A client is
owned by exactly one scenario and closed when that scenario ends.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx
from scalecodec.base import ScaleBytes, ScaleType
from substrateinterface import Keypair, SubstrateInterface
from substrateinterface.exceptions import SubstrateRequestException
from websocket import WebSocketException

from .constants import PROBE_TIMEOUT
from .exceptions import ChainConnectionError
from .logger import get_logger
from .registry import CALL_DRY_RUN_RESULT, harness_types
from .types import BlockReference, DispatchOutcome

logger = get_logger(__name__)


def _value(obj: Any) -> Any:
    """Unwrap a SCALE object into plain Python data."""
    return getattr(obj, "value", obj)


def tagged(value: Any) -> Any:
    """
    Convert substrate-interface's enum encoding into ``{"type", "value"}`` form.

    ``{"Module": {...}}`` becomes ``{"type": "Module", "value": {...}}`` and a
    bare variant name ``"BadOrigin"`` becomes ``{"type": "BadOrigin", "value": None}``.
    """
    if isinstance(value, str):
        return {"type": value, "value": None}
    if isinstance(value, dict) and len(value) == 1:
        (variant, payload), = value.items()
        return {"type": variant, "value": payload}
    return value


def event_record(raw: Any) -> Dict[str, Any]:
    """Flatten a System.Events record into ``{"module", "event", "attributes", "phase"}``."""
    data = _value(raw)
    event = data.get("event", {})
    return {
        "module": data.get("module_id") or event.get("module_id"),
        "event": data.get("event_id") or event.get("event_id"),
        "attributes": data.get("attributes", event.get("attributes")),
        "phase": data.get("phase"),
    }


def innermost_variant(payload: Any) -> Optional[str]:
    """
    Name of the deepest enum variant inside a decoded error payload.

    ``{"index": 3, "error": "FailedToTransactAsset"}`` gives
    ``"FailedToTransactAsset"``; a payload without a nested variant gives None.
    """
    while isinstance(payload, dict):
        if "error" in payload:
            payload = payload["error"]
        elif len(payload) == 1:
            (variant, nested), = payload.items()
            if not isinstance(nested, (dict, str)):
                return variant
            payload = nested
        else:
            return None
    return payload if isinstance(payload, str) else None


class ChainClient:
    """
    One RPC connection to a named chain.

    Attributes:
        name: Human-readable chain label used in every log line
        endpoint: WebSocket endpoint the client is connected to
    """

    def __init__(self, name: str, substrate: SubstrateInterface, endpoint: str = ""):
        self.name = name
        self.endpoint = endpoint or getattr(substrate, "url", "")
        self._substrate = substrate
        self._closed = False

    async def __aenter__(self) -> "ChainClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def substrate(self) -> SubstrateInterface:
        return self._substrate

    async def _call(self, fn, *args, **kwargs):
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except (OSError, WebSocketException) as e:
            raise ChainConnectionError(f"{self.name}: RPC failure on {self.endpoint}: {e}") from e

    # ── Blocks ──────────────────────────────────────────────────────

    async def get_finalized_block(self) -> BlockReference:
        block_hash = await self._call(self._substrate.get_chain_finalised_head)
        number = await self._call(self._substrate.get_block_number, block_hash)
        return BlockReference(number=number, hash=block_hash)

    # ── Storage ─────────────────────────────────────────────────────

    async def has_storage(self, module: str, storage_function: str) -> bool:
        meta = await self._call(self._substrate.get_metadata_storage_function, module, storage_function)
        return meta is not None

    async def query(
        self,
        module: str,
        storage_function: str,
        params: Optional[list] = None,
        block_hash: Optional[str] = None,
    ) -> Any:
        result = await self._call(
            self._substrate.query, module, storage_function, params or [], block_hash=block_hash
        )
        return _value(result)

    async def query_raw(
        self,
        module: str,
        storage_function: str,
        params: Optional[list] = None,
        block_hash: Optional[str] = None,
    ) -> Optional[bytes]:
        """Storage value as stored, SCALE length prefixes included."""
        def fetch():
            result = self._substrate.query(module, storage_function, params or [], block_hash=block_hash)
            data = getattr(result, "data", None)
            if data is None or result.value is None:
                return None
            return bytes(data.data)
        return await self._call(fetch)

    async def query_map(
        self,
        module: str,
        storage_function: str,
        params: Optional[list] = None,
        block_hash: Optional[str] = None,
    ) -> List[Tuple[Any, Any]]:
        def fetch():
            result = self._substrate.query_map(module, storage_function, params or [], block_hash=block_hash)
            return [(_value(k), _value(v)) for k, v in result]
        return await self._call(fetch)

    async def get_events(self, block_hash: Optional[str] = None) -> List[Dict[str, Any]]:
        raw = await self._call(self._substrate.get_events, block_hash)
        return [event_record(ev) for ev in raw]

    # ── Runtime APIs ────────────────────────────────────────────────

    def _ensure_harness_types(self) -> None:
        """Register the harness types against the current runtime's metadata."""
        self._substrate.init_runtime()
        config = self._substrate.runtime_config
        if config.get_decoder_class(CALL_DRY_RUN_RESULT) is None:
            config.update_type_registry_types(harness_types(self._substrate.metadata))
            logger.debug("%s: Registered harness types", self.name)

    def _encode(self, type_string: str, value: Any) -> bytes:
        if isinstance(value, ScaleType):
            # composed calls carry their encoding already
            return bytes(value.data.data)
        return bytes(self._substrate.create_scale_object(type_string).encode(value).data)

    def _decode_now(self, type_string: str, data: Any, check_remaining: bool = True) -> Any:
        payload = data if isinstance(data, str) else "0x" + bytes(data).hex()
        obj = self._substrate.create_scale_object(type_string, data=ScaleBytes(payload))
        return obj.decode(check_remaining=check_remaining)

    async def call_runtime_api(
        self,
        api: str,
        method: str,
        params: Sequence[Tuple[str, Any]],
        result_type: str,
    ) -> Any:
        """
        Call ``{api}_{method}`` through ``state_call``.

        Args:
            params: ``(type string, value)`` pairs, encoded in order
            result_type: Registry type the returned bytes decode as
        """
        def run():
            self._ensure_harness_types()
            data = b"".join(self._encode(type_string, value) for type_string, value in params)
            response = self._substrate.rpc_request("state_call", [f"{api}_{method}", "0x" + data.hex(), None])
            return self._decode_now(result_type, response["result"])
        return await self._call(run)

    # ── Calls and extrinsics ────────────────────────────────────────

    async def compose_call(self, module: str, function: str, params: Optional[dict] = None):
        return await self._call(
            self._substrate.compose_call,
            call_module=module, call_function=function, call_params=params or {},
        )

    async def submit(self, call, signer: Keypair) -> DispatchOutcome:
        """Sign, submit and wait for finalization of ``call``."""
        def submit_and_wait():
            extrinsic = self._substrate.create_signed_extrinsic(call=call, keypair=signer)
            receipt = self._substrate.submit_extrinsic(
                extrinsic, wait_for_inclusion=True, wait_for_finalization=True
            )
            events = [event_record(ev) for ev in receipt.triggered_events]
            dispatch_error = None
            if not receipt.is_success:
                dispatch_error = self._dispatch_error(events, receipt.error_message)
            return DispatchOutcome(
                ok=receipt.is_success,
                dispatch_error=dispatch_error,
                block_hash=receipt.block_hash,
                extrinsic_hash=receipt.extrinsic_hash,
                events=events,
            )

        try:
            return await self._call(submit_and_wait)
        except SubstrateRequestException as e:
            # Pool rejections never reach a block; report them as a dispatch failure
            return DispatchOutcome(ok=False, dispatch_error={"type": "Rejected", "value": _rpc_error(e)})

    def _dispatch_error(self, events: List[Dict[str, Any]], error_message: Any) -> Dict[str, Any]:
        for ev in events:
            if ev["module"] == "System" and ev["event"] == "ExtrinsicFailed":
                attributes = ev["attributes"] or {}
                raw = attributes.get("dispatch_error", attributes) if isinstance(attributes, dict) else attributes
                error = tagged(raw)
                if isinstance(error, dict) and error.get("type") == "Module":
                    error["value"] = self._module_error_path(error["value"], error_message)
                return error
        return {"type": "Unknown", "value": error_message}

    def _pallet(self, index: Any) -> Optional[Dict[str, Any]]:
        try:
            for pallet in self._substrate.metadata.pallets:
                if pallet.value["index"] == index:
                    return pallet.value
        except (AttributeError, KeyError, TypeError):
            logger.debug("%s: metadata has no pallet list", self.name)
        return None

    def _module_error_path(self, module_error: Any, error_message: Any) -> Dict[str, Any]:
        """
        ``{"index", "error"}`` → ``{"type": pallet, "value": {"type": error, "value": inner}}``

        The error bytes are decoded with the pallet's error type, so a nested
        payload such as ``LocalExecutionIncompleteWithError`` yields the name
        of its innermost variant. Without that type, the nested payload is
        reported as hex.
        """
        if not isinstance(module_error, dict):
            return {"type": str(module_error), "value": None}
        index = module_error.get("index")
        error_bytes = module_error.get("error")
        if isinstance(error_bytes, str):
            error_bytes = bytes.fromhex(error_bytes[2:] if error_bytes.startswith("0x") else error_bytes)

        pallet = self._pallet(index)
        pallet_name = pallet["name"] if pallet else f"Pallet#{index}"
        error_name = error_message.get("name") if isinstance(error_message, dict) else None

        inner = None
        if error_bytes and len(error_bytes) > 2 and any(error_bytes[1:]):
            inner = {"error": {"type": "0x" + bytes(error_bytes[1:]).hex()}}

        error_type = ((pallet or {}).get("error") or {}).get("ty")
        if error_bytes and error_type is not None:
            try:
                decoded = self._decode_now(f"scale_info::{error_type}", error_bytes, check_remaining=False)
            except (ValueError, KeyError, IndexError, TypeError, NotImplementedError) as e:
                logger.debug("%s: cannot decode %s error bytes: %s", self.name, pallet_name, e)
            else:
                variant = tagged(decoded)
                if isinstance(variant, dict):
                    error_name = variant["type"]
                    nested = innermost_variant(variant["value"])
                    inner = {"error": {"type": nested}} if nested else None
        return {"type": pallet_name, "value": {"type": error_name, "value": inner}}

    # ── Type registry ───────────────────────────────────────────────

    async def decode(self, type_string: str, data: bytes) -> Any:
        """Decode an opaque SCALE payload; harness type names are accepted."""
        def run():
            self._ensure_harness_types()
            return self._decode_now(type_string, data)
        return await self._call(run)

    # ── Lifecycle ───────────────────────────────────────────────────

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await asyncio.to_thread(self._substrate.close)
        logger.debug("%s: Disconnected from %s", self.name, self.endpoint)


def _rpc_error(e: SubstrateRequestException) -> Any:
    return e.args[0] if e.args else str(e)


async def create_api_client(endpoint: str, name: str = "") -> ChainClient:
    """Connect to ``endpoint`` and return a ready :class:`ChainClient`."""
    name = name or endpoint
    try:
        substrate = await asyncio.to_thread(SubstrateInterface, url=endpoint)
    except (OSError, WebSocketException) as e:
        raise ChainConnectionError(f"{name}: cannot connect to {endpoint}: {e}") from e
    logger.info(f"{name}: Connected to {endpoint}")
    return ChainClient(name, substrate, endpoint)


def http_url(endpoint: str) -> str:
    """Substrate nodes serve HTTP JSON-RPC on the WebSocket port."""
    if endpoint.startswith("wss://"):
        return "https://" + endpoint[len("wss://"):]
    if endpoint.startswith("ws://"):
        return "http://" + endpoint[len("ws://"):]
    return endpoint


async def probe_endpoint(
    endpoint: str,
    timeout: float = PROBE_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """Return True when the node at ``endpoint`` answers ``system_health``."""
    payload = {"id": 1, "jsonrpc": "2.0", "method": "system_health", "params": []}
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(http_url(endpoint), json=payload)
            response.raise_for_status()
            return "result" in response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.debug(f"Probe of {endpoint} failed: {e}")
        return False
