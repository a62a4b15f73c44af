"""
XCM Helpers

Builders and inspectors for XCM values in the JSON form substrate-interface
encodes and decodes: enum variants are ``{"Variant": payload}`` or a bare
``"Variant"`` string for unit variants.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from .constants import XCM_VERSION

SET_TOPIC = "SetTopic"


# ══════════════════════════════════════════════════════════════════════
#  LOCATIONS
# ══════════════════════════════════════════════════════════════════════

def location(parents: int, *junctions: Dict[str, Any]) -> Dict[str, Any]:
    if not junctions:
        return {"parents": parents, "interior": "Here"}
    return {"parents": parents, "interior": {f"X{len(junctions)}": list(junctions)}}


def remote_parachain_location(network: str, para_id: int) -> Dict[str, Any]:
    """A parachain in another consensus system, seen from a parachain."""
    return location(2, {"GlobalConsensus": network}, {"Parachain": para_id})


def account_id32(account_id: str, network: Optional[str] = None) -> Dict[str, Any]:
    return {"AccountId32": {"network": network, "id": account_id}}


def versioned(value: Any, version: int = XCM_VERSION) -> Dict[str, Any]:
    return {f"V{version}": value}


def unversioned(value: Any) -> Any:
    """Strip a ``{"V5": ...}`` wrapper; other values are returned as is."""
    if isinstance(value, dict) and len(value) == 1:
        (key, inner), = value.items()
        if isinstance(key, str) and key[:1] == "V" and key[1:].isdigit():
            return inner
    return value


def locations_match(a: Any, b: Any) -> bool:
    return unversioned(a) == unversioned(b)


def signed_origin(address: str) -> Dict[str, Any]:
    """``OriginCaller::system(RawOrigin::Signed(address))``"""
    return {"system": {"Signed": address}}


# ══════════════════════════════════════════════════════════════════════
#  PROGRAMS
# ══════════════════════════════════════════════════════════════════════

def instructions(xcm: Any) -> List[Any]:
    program = unversioned(xcm)
    return list(program) if isinstance(program, (list, tuple)) else []


def instruction_name(instruction: Any) -> Optional[str]:
    if isinstance(instruction, str):
        return instruction
    if isinstance(instruction, dict):
        if "type" in instruction:
            return instruction["type"]
        if len(instruction) == 1:
            return next(iter(instruction))
    return None


def last_instruction(xcm: Any) -> Any:
    program = instructions(xcm)
    return program[-1] if program else None


def is_set_topic(instruction: Any) -> bool:
    return instruction_name(instruction) == SET_TOPIC


def forwarded_messages(dry_run_value: Dict[str, Any]) -> List[Tuple[Any, Any]]:
    """
    Flatten ``forwarded_xcms`` of a dry-run result into (destination, message) pairs.
    """
    pairs: List[Tuple[Any, Any]] = []
    for entry in dry_run_value.get("forwarded_xcms") or []:
        if isinstance(entry, dict):
            destination, messages = entry.get("destination"), entry.get("messages")
        else:
            destination, messages = entry
        pairs.extend((destination, message) for message in messages or [])
    return pairs


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

def find_events(events: Iterable[Dict[str, Any]], module: str, event: str) -> List[Dict[str, Any]]:
    """Select flattened event records by pallet and event name."""
    return [ev for ev in events if ev.get("module") == module and ev.get("event") == event]
