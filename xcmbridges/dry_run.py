"""
Dry runs of calls and XCM programs, with one success flag for both shapes.

``DryRunApi.dry_run_call`` reports ``execution_result`` as ``{"success": ...}``
while ``DryRunApi.dry_run_xcm`` reports an outcome ``{"type": "Complete", ...}``.
After :func:`handle_dry_run_result` both carry a boolean
``value.execution_result.success``.
"""

from typing import Any, Dict, MutableMapping

from .constants import XCM_VERSION
from .logger import get_logger
from .pretty import pretty_string
from .registry import (
    CALL_DRY_RUN_RESULT,
    ORIGIN_CALLER,
    RUNTIME_CALL,
    VERSIONED_LOCATION,
    VERSIONED_XCM,
    XCM_DRY_RUN_RESULT,
)
from .types import classify_execution_result, execution_succeeded

logger = get_logger(__name__)

DRY_RUN_API = "DryRunApi"
MODE_XCM = "dry_run_xcm"
MODE_CALL = "dry_run_call"


def dry_run_succeeded(dry_run_result: MutableMapping[str, Any]) -> bool:
    """Outer ``success`` and the inner execution result must both succeed."""
    if dry_run_result.get("success") is not True:
        return False
    value = dry_run_result.get("value")
    if not isinstance(value, MutableMapping):
        return False
    return execution_succeeded(classify_execution_result(value.get("execution_result")))


def handle_dry_run_result(
    mode: str,
    chain_name: str,
    xcm_or_call: Any,
    dry_run_result: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """
    Write the unified success flag into ``dry_run_result`` and return it.

    Only ``value.execution_result.success`` is written. On failure the
    simulated payload and the full result value are logged; nothing is raised.
    """
    success = dry_run_succeeded(dry_run_result)
    if not success:
        logger.info(f"Dry Run XCM ({mode}) on {chain_name}: {pretty_string(xcm_or_call)}")
        logger.info(
            f"Dry Run Result ({mode}) on {chain_name}: {pretty_string(dry_run_result.get('value'))}"
        )

    value = dry_run_result.get("value")
    if isinstance(value, MutableMapping):
        execution_result = value.get("execution_result")
        if isinstance(execution_result, MutableMapping):
            execution_result["success"] = success
        else:
            value["execution_result"] = {"success": success}
    return dry_run_result


async def dry_run_execute_xcm(
    chain_name: str,
    client,
    origin_location: Dict[str, Any],
    xcm: Dict[str, Any],
) -> MutableMapping[str, Any]:
    """Simulate executing ``xcm`` as if it arrived from ``origin_location``."""
    params = [(VERSIONED_LOCATION, origin_location), (VERSIONED_XCM, xcm)]
    result = await client.call_runtime_api(DRY_RUN_API, MODE_XCM, params, XCM_DRY_RUN_RESULT)
    return handle_dry_run_result(MODE_XCM, chain_name, xcm, as_dry_run_result(result))


async def dry_run_xcm_extrinsic(
    chain_name: str,
    client,
    origin: Dict[str, Any],
    call: Any,
) -> MutableMapping[str, Any]:
    """Simulate dispatching ``call`` from ``origin`` without committing it."""
    params = [(ORIGIN_CALLER, origin), (RUNTIME_CALL, call), ("u32", XCM_VERSION)]
    result = await client.call_runtime_api(DRY_RUN_API, MODE_CALL, params, CALL_DRY_RUN_RESULT)
    return handle_dry_run_result(MODE_CALL, chain_name, getattr(call, "value", call), as_dry_run_result(result))


def _as_result(raw: Any) -> Any:
    """``{"Ok": T}`` / ``{"Err": E}`` → ``{"success": bool, "value": ...}``"""
    if isinstance(raw, MutableMapping) and len(raw) == 1:
        if "Ok" in raw:
            return {"success": True, "value": raw["Ok"]}
        if "Err" in raw:
            return {"success": False, "value": raw["Err"]}
    return raw


def _as_execution_result(raw: Any) -> Any:
    """
    Bring an ``execution_result`` into one of the two known shapes.

    ``DispatchResultWithPostInfo`` becomes ``{"success": bool, ...}`` and an
    XCM ``Outcome`` enum such as ``{"Complete": {...}}`` becomes
    ``{"type": "Complete", "value": {...}}``.
    """
    if not isinstance(raw, MutableMapping) or "success" in raw or "type" in raw:
        return raw
    result = _as_result(raw)
    if result is not raw:
        return result
    if len(raw) == 1:
        (variant, payload), = raw.items()
        return {"type": variant, "value": payload}
    return raw


def as_dry_run_result(raw: Any) -> MutableMapping[str, Any]:
    """
    Bring a runtime API result into ``{"success", "value"}`` form.

    substrate-interface decodes ``Result<T, E>`` as ``{"Ok": T}`` or ``{"Err": E}``.
    Values already in ``{"success", "value"}`` form keep their outer shape.
    """
    result = _as_result(raw)
    if not isinstance(result, MutableMapping) or "success" not in result:
        return {"success": False, "value": {"error": raw, "execution_result": None}}
    value = result.get("value")
    if not isinstance(value, MutableMapping):
        result["value"] = {"error": value, "execution_result": None}
    elif "execution_result" in value:
        value["execution_result"] = _as_execution_result(value["execution_result"])
    else:
        value["execution_result"] = None
    return result
