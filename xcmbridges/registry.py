"""
XCM Bridges Type Registry

Named types the harness adds to a chain's SCALE type registry.

With V14 metadata, substrate-interface only knows runtime types as
``scale_info::<id>``, and the bundled registry has no definition for
``DryRunApi``. This module resolves the XCM and runtime types the harness
needs by their metadata path and describes the ``DryRunApi`` results on top of
them, so runtime API calls can be made with ``state_call`` and decoded
through the chain's own types.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from .exceptions import UnsupportedRuntimeError

VERSIONED_XCM = "XcmbVersionedXcm"
VERSIONED_LOCATION = "XcmbVersionedLocation"
ORIGIN_CALLER = "XcmbOriginCaller"
RUNTIME_CALL = "XcmbRuntimeCall"

CALL_DRY_RUN_RESULT = "XcmbCallDryRunResult"
XCM_DRY_RUN_RESULT = "XcmbXcmDryRunResult"

# alias -> (accepted last path segments, preferred path segments in order)
PORTABLE_TYPES = {
    VERSIONED_XCM: (("VersionedXcm",), (None,)),
    VERSIONED_LOCATION: (("VersionedLocation", "VersionedMultiLocation"), (None,)),
    ORIGIN_CALLER: (("OriginCaller",), (None,)),
    RUNTIME_CALL: (("RuntimeCall",), (None,)),
    "XcmbRuntimeEvent": (("RuntimeEvent",), (None,)),
    "XcmbOutcome": (("Outcome",), ("v5", "v4", None)),
    "XcmbDispatchError": (("DispatchError",), ("sp_runtime",)),
    "XcmbWeight": (("Weight",), ("weight_v2",)),
    "XcmbPays": (("Pays",), ("frame_support",)),
}

FORWARDED_XCMS = f"Vec<({VERSIONED_LOCATION}, Vec<{VERSIONED_XCM}>)>"

DRY_RUN_TYPES = {
    "XcmbPostDispatchInfo": {
        "type": "struct",
        "type_mapping": [["actual_weight", "Option<XcmbWeight>"], ["pays_fee", "XcmbPays"]],
    },
    "XcmbDispatchErrorWithPostInfo": {
        "type": "struct",
        "type_mapping": [["post_info", "XcmbPostDispatchInfo"], ["error", "XcmbDispatchError"]],
    },
    "XcmbDispatchResultWithPostInfo": {
        "type": "enum",
        "type_mapping": [["Ok", "XcmbPostDispatchInfo"], ["Err", "XcmbDispatchErrorWithPostInfo"]],
    },
    "XcmbCallDryRunEffects": {
        "type": "struct",
        "type_mapping": [
            ["execution_result", "XcmbDispatchResultWithPostInfo"],
            ["emitted_events", "Vec<XcmbRuntimeEvent>"],
            ["local_xcm", f"Option<{VERSIONED_XCM}>"],
            ["forwarded_xcms", FORWARDED_XCMS],
        ],
    },
    "XcmbXcmDryRunEffects": {
        "type": "struct",
        "type_mapping": [
            ["execution_result", "XcmbOutcome"],
            ["emitted_events", "Vec<XcmbRuntimeEvent>"],
            ["forwarded_xcms", FORWARDED_XCMS],
        ],
    },
    "XcmbDryRunError": {
        "type": "enum",
        "value_list": ["Unimplemented", "VersionedConversionFailed"],
    },
    CALL_DRY_RUN_RESULT: {
        "type": "enum",
        "type_mapping": [["Ok", "XcmbCallDryRunEffects"], ["Err", "XcmbDryRunError"]],
    },
    XCM_DRY_RUN_RESULT: {
        "type": "enum",
        "type_mapping": [["Ok", "XcmbXcmDryRunEffects"], ["Err", "XcmbDryRunError"]],
    },
}


def portable_paths(metadata: Any) -> List[Tuple[Tuple[str, ...], int]]:
    """(path, type id) of every type in the metadata's portable registry."""
    registry = metadata.portable_registry
    data = getattr(registry, "value", registry)
    entries = data["types"] if isinstance(data, dict) else data
    return [(tuple(entry["type"]["path"]), entry["id"]) for entry in entries]


def find_type_id(
    paths: Sequence[Tuple[Tuple[str, ...], int]],
    names: Sequence[str],
    within: Sequence[Optional[str]] = (None,),
) -> int:
    """
    Id of the first type whose path ends with one of ``names``.

    ``within`` lists path segments to prefer, tried in order; ``None``
    accepts any path.

    Raises:
        UnsupportedRuntimeError: when the runtime has no such type
    """
    for segment in within:
        for name in names:
            for path, type_id in paths:
                if path and path[-1] == name and (segment is None or segment in path):
                    return type_id
    raise UnsupportedRuntimeError(f"Runtime metadata has no {' / '.join(names)} type")


def harness_types(metadata: Any) -> Dict[str, Any]:
    """Type registry entries for the harness, resolved against ``metadata``."""
    paths = portable_paths(metadata)
    types: Dict[str, Any] = {
        alias: f"scale_info::{find_type_id(paths, names, within)}"
        for alias, (names, within) in PORTABLE_TYPES.items()
    }
    types.update(DRY_RUN_TYPES)
    return types
