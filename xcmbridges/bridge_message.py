"""
Decoder for bridged outbound messages.

``BridgeXxxMessages.OutboundMessages`` stores each message as a SCALE
``Vec<u8>``. Its payload starts with the universal destination of the message
followed by the versioned XCM program:

    offset  field
    0..1    compact length prefix of the payload
    2       VersionedInteriorLocation version (5)
    3       junctions variant (X1..X8 = number of junctions)
    4..5    GlobalConsensus junction   (0x09, NetworkId)
    6..8    Parachain junction         (0x00, compact u32)
    9..     VersionedXcm program

The layout is owned by the bridge pallets. Any change must surface here as a
``BridgeMessageDecodeError``, not as a silent mis-read further down.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .constants import XCM_VERSION
from .exceptions import BridgeMessageDecodeError


class _Reader:
    """Cursor over a byte buffer."""

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def take(self, n: int, what: str) -> bytes:
        if self.remaining < n:
            raise BridgeMessageDecodeError(
                f"Truncated message: need {n} byte(s) for {what} at offset {self.offset}, "
                f"{self.remaining} left"
            )
        chunk = self.data[self.offset:self.offset + n]
        self.offset += n
        return chunk

    def u8(self, what: str) -> int:
        return self.take(1, what)[0]

    def compact(self, what: str) -> int:
        mode = self.take(1, what)[0] & 0b11
        self.offset -= 1
        if mode == 0b00:
            return self.u8(what) >> 2
        if mode == 0b01:
            return int.from_bytes(self.take(2, what), "little") >> 2
        if mode == 0b10:
            return int.from_bytes(self.take(4, what), "little") >> 2
        length = (self.u8(what) >> 2) + 4
        return int.from_bytes(self.take(length, what), "little")


# ══════════════════════════════════════════════════════════════════════
#  JUNCTIONS
# ══════════════════════════════════════════════════════════════════════

NETWORK_IDS: Dict[int, str] = {
    2: "Polkadot",
    3: "Kusama",
    8: "BitcoinCore",
    9: "BitcoinCash",
    10: "PolkadotBulletin",
}


def _network_id(reader: _Reader) -> Union[str, Dict[str, Any]]:
    index = reader.u8("NetworkId")
    if index in NETWORK_IDS:
        return NETWORK_IDS[index]
    if index == 0:
        return {"ByGenesis": "0x" + reader.take(32, "ByGenesis hash").hex()}
    if index == 1:
        block_number = int.from_bytes(reader.take(8, "ByFork block number"), "little")
        block_hash = "0x" + reader.take(32, "ByFork block hash").hex()
        return {"ByFork": {"block_number": block_number, "block_hash": block_hash}}
    if index == 7:
        return {"Ethereum": {"chain_id": reader.compact("Ethereum chain id")}}
    raise BridgeMessageDecodeError(f"Unknown NetworkId {index} at offset {reader.offset - 1}")


# discriminant → (junction name, payload decoder)
JUNCTION_LAYOUT: Dict[int, Tuple[str, Callable[[_Reader], Any]]] = {
    0x00: ("Parachain", lambda r: r.compact("parachain id")),
    0x09: ("GlobalConsensus", _network_id),
}

MAX_JUNCTIONS = 8


@dataclass(frozen=True)
class Junction:
    kind: str
    value: Any
    offset: int

    def to_dict(self) -> Dict[str, Any]:
        return {self.kind: self.value}


def _junction(reader: _Reader) -> Junction:
    offset = reader.offset
    discriminant = reader.u8("junction")
    if discriminant not in JUNCTION_LAYOUT:
        raise BridgeMessageDecodeError(f"Unsupported junction 0x{discriminant:02x} at offset {offset}")
    kind, decode = JUNCTION_LAYOUT[discriminant]
    return Junction(kind=kind, value=decode(reader), offset=offset)


# ══════════════════════════════════════════════════════════════════════
#  MESSAGE
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BridgeMessage:
    """
    A decoded bridged outbound message.

    Attributes:
        version: Version of the universal destination location
        junctions: Universal destination junctions, in order
        program: Raw VersionedXcm bytes, version byte included
        program_version: XCM version of the program
        instruction_count: Number of instructions in the program
        program_offset: Offset of ``program`` in the original storage value
    """
    version: int
    junctions: Tuple[Junction, ...]
    program: bytes
    program_version: int
    instruction_count: int
    program_offset: int

    def junction(self, kind: str) -> Optional[Junction]:
        return next((j for j in self.junctions if j.kind == kind), None)

    @property
    def global_consensus(self) -> Any:
        j = self.junction("GlobalConsensus")
        return j.value if j else None

    @property
    def parachain(self) -> Optional[int]:
        j = self.junction("Parachain")
        return j.value if j else None

    def universal_destination(self) -> Dict[str, Any]:
        interior: List[Dict[str, Any]] = [j.to_dict() for j in self.junctions]
        return {f"V{self.version}": {f"X{len(interior)}": interior}}


def _to_bytes(data: Union[bytes, bytearray, str]) -> bytes:
    if isinstance(data, str):
        text = data[2:] if data.startswith("0x") else data
        try:
            return bytes.fromhex(text)
        except ValueError as e:
            raise BridgeMessageDecodeError(f"Message is not valid hex: {e}") from e
    return bytes(data)


def decode_outbound_message(data: Union[bytes, bytearray, str], expected_version: int = XCM_VERSION) -> BridgeMessage:
    """
    Decode an outbound message storage value.

    Args:
        data: SCALE ``Vec<u8>`` storage value, raw or 0x hex
        expected_version: Required version of the destination location

    Raises:
        BridgeMessageDecodeError: when the bytes do not follow the layout
    """
    reader = _Reader(_to_bytes(data))

    length = reader.compact("length prefix")
    if length != reader.remaining:
        raise BridgeMessageDecodeError(
            f"Length prefix says {length} byte(s) but {reader.remaining} follow"
        )

    version_offset = reader.offset
    version = reader.u8("location version")
    if version != expected_version:
        raise BridgeMessageDecodeError(
            f"Unexpected location version {version} at offset {version_offset}, expected {expected_version}"
        )

    count_offset = reader.offset
    count = reader.u8("junctions variant")
    if count > MAX_JUNCTIONS:
        raise BridgeMessageDecodeError(f"Invalid junctions variant {count} at offset {count_offset}")
    junctions = tuple(_junction(reader) for _ in range(count))

    program_offset = reader.offset
    program = reader.data[program_offset:]
    program_version = reader.u8("program version")
    instruction_count = reader.compact("instruction count")

    return BridgeMessage(
        version=version,
        junctions=junctions,
        program=program,
        program_version=program_version,
        instruction_count=instruction_count,
        program_offset=program_offset,
    )
