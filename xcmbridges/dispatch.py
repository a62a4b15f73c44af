"""
Extrinsic submission with dispatch error reporting.
"""

from typing import Any, Dict, Optional

from .logger import get_logger
from .pretty import pretty_string
from .types import DispatchOutcome

logger = get_logger(__name__)


def _variant(value: Any) -> Optional[str]:
    return value.get("type") if isinstance(value, dict) else None


def format_module_error(chain_name: str, dispatch_error: Dict[str, Any]) -> str:
    """``Dispatch Error in Module on <chain>: <pallet> → <error> (<inner>)``"""
    module_error = dispatch_error.get("value") or {}
    local_error = module_error.get("value") if isinstance(module_error, dict) else None
    inner_error = None
    if isinstance(local_error, dict) and isinstance(local_error.get("value"), dict):
        inner_error = _variant(local_error["value"].get("error"))
    return (
        f"Dispatch Error in Module on {chain_name}: "
        f"{_variant(module_error)} → {_variant(local_error)} ({inner_error})"
    )


def report_dispatch_error(chain_name: str, dispatch_error: Optional[Dict[str, Any]]) -> None:
    if _variant(dispatch_error) == "Module":
        logger.error(format_module_error(chain_name, dispatch_error))
    else:
        logger.error(f"Dispatch Error on {chain_name} {pretty_string(dispatch_error)}")


async def sign_and_submit(chain_name: str, client, call, signer) -> DispatchOutcome:
    """
    Submit ``call`` signed by ``signer`` and wait for it to be finalized.

    The outcome is returned as is; on failure the dispatch error has already
    been logged. Nothing is raised for a rejected dispatch.
    """
    outcome = await client.submit(call, signer)
    if not outcome.ok:
        report_dispatch_error(chain_name, outcome.dispatch_error)
    return outcome
