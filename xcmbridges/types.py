"""
XCM Bridges Types

Transient, request-scoped values exchanged between the chain client and the
scenario helpers.

Defines:
  - BlockReference for a point in a chain's finalized history
  - ExecutionResult tagged union over the two dry-run result shapes
  - DispatchOutcome for a submitted and finalized extrinsic
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union


# ══════════════════════════════════════════════════════════════════════
#  BLOCK REFERENCE
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BlockReference:
    """
    A finalized block as reported by a chain client.

    Attributes:
        number: Block number
        hash: Block hash (0x-prefixed hex)
    """
    number: int
    hash: str

    def __post_init__(self):
        if self.number < 0:
            raise ValueError("number must be non-negative")

    def advanced_past(self, other: "BlockReference") -> bool:
        return self.number > other.number


# ══════════════════════════════════════════════════════════════════════
#  DRY-RUN EXECUTION RESULT
# ══════════════════════════════════════════════════════════════════════

COMPLETE = "Complete"


@dataclass(frozen=True)
class FlagExecutionResult:
    """Execution result carrying an explicit ``success`` flag (dry_run_call)."""
    success: bool


@dataclass(frozen=True)
class OutcomeExecutionResult:
    """Execution result carrying an outcome discriminant (dry_run_xcm)."""
    type: str


ExecutionResult = Union[FlagExecutionResult, OutcomeExecutionResult, None]


def classify_execution_result(raw: Any) -> ExecutionResult:
    """
    Map a raw ``execution_result`` value onto the tagged union.

    The two runtime APIs never present both fields. A mapping with neither,
    or a non-mapping, classifies as ``None`` (not successful).
    """
    if not isinstance(raw, Mapping):
        return None
    if "success" in raw:
        return FlagExecutionResult(success=raw["success"] is True)
    if "type" in raw:
        return OutcomeExecutionResult(type=str(raw["type"]))
    return None


def execution_succeeded(result: ExecutionResult) -> bool:
    if isinstance(result, FlagExecutionResult):
        return result.success
    if isinstance(result, OutcomeExecutionResult):
        return result.type == COMPLETE
    return False


# ══════════════════════════════════════════════════════════════════════
#  DISPATCH OUTCOME
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DispatchOutcome:
    """
    Result of a signed extrinsic that was submitted and finalized.

    Attributes:
        ok: Whether the runtime dispatched the call successfully
        dispatch_error: Tagged ``{"type": ..., "value": ...}`` error when not ok
        block_hash: Hash of the block that included the extrinsic
        extrinsic_hash: Hash of the submitted extrinsic
        events: Decoded events triggered by the extrinsic
    """
    ok: bool
    dispatch_error: Optional[Dict[str, Any]] = None
    block_hash: Optional[str] = None
    extrinsic_hash: Optional[str] = None
    events: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_module_error(self) -> bool:
        return bool(self.dispatch_error) and self.dispatch_error.get("type") == "Module"
