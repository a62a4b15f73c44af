"""
XCM Bridges Scenarios

Scripted sequences of RPC calls against the bridge hubs and asset hubs of the
Polkadot and Kusama ecosystems. Each scenario receives a ``ScenarioContext``
holding the chain clients it is allowed to use; assertions are left to the
caller so the same scenarios run against live nodes and against fakes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .bridge_message import BridgeMessage, decode_outbound_message
from .client import ChainClient, create_api_client
from .config import HarnessConfig, load_config
from .dispatch import sign_and_submit
from .dry_run import dry_run_succeeded, dry_run_xcm_extrinsic
from .finality import wait_for_next_block
from .keys import ss58_address
from .logger import get_logger, log_manager
from .pretty import pretty_string, redact
from .registry import VERSIONED_XCM
from .types import BlockReference, DispatchOutcome
from .xcm import (
    account_id32,
    find_events,
    forwarded_messages,
    is_set_topic,
    last_instruction,
    location,
    locations_match,
    signed_origin,
    versioned,
)

logger = get_logger(__name__)

KUSAMA_BRIDGE_HUB = "KusamaBridgeHub"
POLKADOT_BRIDGE_HUB = "PolkadotBridgeHub"
POLKADOT_ASSET_HUB = "PolkadotAssetHub"

# Pallet may be named PolkadotXcm or XcmPallet depending on runtime
XCM_PALLETS = ("PolkadotXcm", "XcmPallet")


# ══════════════════════════════════════════════════════════════════════
#  CONTEXT
# ══════════════════════════════════════════════════════════════════════

class ScenarioContext:
    """
    Chain clients owned by one scenario.

    Every client is closed when the context exits, in the order they were
    opened. Nothing is shared between contexts.
    """

    def __init__(self, clients: Dict[str, ChainClient], config: Optional[HarnessConfig] = None):
        self.clients = dict(clients)
        self.config = config or HarnessConfig()

    @classmethod
    async def connect(cls, *chain_names: str, config: Optional[HarnessConfig] = None) -> "ScenarioContext":
        config = config or load_config()
        log_manager.apply(config.logging.level, config.logging.file_output)
        ctx = cls({}, config)
        try:
            for name in chain_names:
                ctx.clients[name] = await create_api_client(config.chains.endpoint(name), name)
        except BaseException:
            await ctx.close()
            raise
        return ctx

    def __getitem__(self, chain_name: str) -> ChainClient:
        return self.clients[chain_name]

    async def __aenter__(self) -> "ScenarioContext":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        for client in self.clients.values():
            await client.close()
        self.clients.clear()


# ══════════════════════════════════════════════════════════════════════
#  XCM VERSION
# ══════════════════════════════════════════════════════════════════════

async def read_safe_xcm_version(client: ChainClient) -> Optional[int]:
    for pallet in XCM_PALLETS:
        if await client.has_storage(pallet, "SafeXcmVersion"):
            return await client.query(pallet, "SafeXcmVersion")
    return None


async def read_safe_xcm_versions(
    ctx: ScenarioContext,
    chains=(KUSAMA_BRIDGE_HUB, POLKADOT_BRIDGE_HUB),
) -> Dict[str, Optional[int]]:
    versions = {name: await read_safe_xcm_version(ctx[name]) for name in chains}
    logger.info(f"SafeXcmVersion: {versions}")
    return versions


# ══════════════════════════════════════════════════════════════════════
#  RECEIVE MESSAGES PROOF
# ══════════════════════════════════════════════════════════════════════

@dataclass
class MessagesProof:
    """Arguments of ``receive_messages_proof`` for one lane and nonce range."""
    bridged_header_hash: str
    storage_proof: List[str]
    lane: str
    nonces_start: int
    nonces_end: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bridged_header_hash": self.bridged_header_hash,
            "storage_proof": list(self.storage_proof),
            "lane": self.lane,
            "nonces_start": self.nonces_start,
            "nonces_end": self.nonces_end,
        }


async def dry_run_receive_messages_proof(
    ctx: ScenarioContext,
    proof: MessagesProof,
    relayer_id_at_bridged_chain: str,
    messages_count: int,
    dispatch_weight: Dict[str, int],
    origin_address: str,
    chain: str = KUSAMA_BRIDGE_HUB,
    messages_pallet: str = "BridgePolkadotMessages",
):
    """Dry-run delivery of bridged messages on ``chain`` as a signed relayer."""
    client = ctx[chain]
    call = await client.compose_call(messages_pallet, "receive_messages_proof", {
        "relayer_id_at_bridged_chain": relayer_id_at_bridged_chain,
        "proof": proof.to_dict(),
        "messages_count": messages_count,
        "dispatch_weight": dispatch_weight,
    })
    return await dry_run_xcm_extrinsic(chain, client, signed_origin(origin_address), call)


# ══════════════════════════════════════════════════════════════════════
#  MESSAGE ACCEPTED
# ══════════════════════════════════════════════════════════════════════

@dataclass
class MessageAcceptedReport:
    """What the sending bridge hub recorded for one accepted message."""
    accepted_events: List[Dict[str, Any]]
    outbound_lane: Any = None
    message: Optional[BridgeMessage] = None
    program: Any = None
    relayer_rewards: List[Any] = field(default_factory=list)

    @property
    def accepted(self) -> Optional[Dict[str, Any]]:
        return self.accepted_events[-1] if self.accepted_events else None


async def inspect_message_accepted(
    ctx: ScenarioContext,
    lane_id: str,
    nonce: int,
    block_hash: str,
    chain: str = POLKADOT_BRIDGE_HUB,
    messages_pallet: str = "BridgeKusamaMessages",
) -> MessageAcceptedReport:
    """
    Collect the ``MessageAccepted`` event, lane state, message payload and
    relayer rewards at ``block_hash`` on ``chain``.
    """
    client = ctx[chain]
    events = await client.get_events(block_hash)
    report = MessageAcceptedReport(accepted_events=find_events(events, messages_pallet, "MessageAccepted"))
    logger.info(f"MessageAccepted Event at {block_hash}: {pretty_string(report.accepted)}")

    report.outbound_lane = await client.query(messages_pallet, "OutboundLanes", [lane_id], block_hash=block_hash)
    logger.info(f"Outbound Lane Summary: {pretty_string(report.outbound_lane)}")

    raw = await client.query_raw(
        messages_pallet, "OutboundMessages", [{"lane_id": lane_id, "nonce": nonce}], block_hash=block_hash
    )
    if raw is not None:
        report.message = decode_outbound_message(raw)
        logger.info(f"Outbound Message: {pretty_string(report.message)}")
        report.program = await client.decode(VERSIONED_XCM, report.message.program)
        logger.info(f"Bridged Program: {pretty_string(report.program)}")

    report.relayer_rewards = await client.query_map("BridgeRelayers", "RelayerRewards", block_hash=block_hash)
    return report


async def bridged_header_hashes(
    ctx: ScenarioContext,
    chain: str = KUSAMA_BRIDGE_HUB,
    parachains_pallet: str = "BridgePolkadotParachains",
) -> List[str]:
    """Best known head hash of every bridged parachain tracked on ``chain``."""
    paras_info = await ctx[chain].query_map(parachains_pallet, "ParasInfo")
    logger.info(f"ParasInfo: {pretty_string(paras_info)}")
    return [info["best_head_hash"]["head_hash"] for _, info in paras_info]


# ══════════════════════════════════════════════════════════════════════
#  TWO-HOP TRANSFER
# ══════════════════════════════════════════════════════════════════════

@dataclass
class TransferReport:
    """Everything a two-hop transfer scenario observed on the source chain."""
    dry_run: Any
    destination: Any = None
    forwarded: List[Any] = field(default_factory=list)
    outcome: Optional[DispatchOutcome] = None
    finalized_block: Optional[BlockReference] = None
    transfer_events: List[Dict[str, Any]] = field(default_factory=list)
    xcmp_events: List[Dict[str, Any]] = field(default_factory=list)
    sent_events: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def dry_run_ok(self) -> bool:
        return self.dry_run["value"]["execution_result"]["success"] is True

    @property
    def last_forwarded_instruction(self) -> Any:
        if len(self.forwarded) != 1:
            return None
        return last_instruction(self.forwarded[0][1])

    @property
    def sent_to_destination(self) -> bool:
        """Whether a PolkadotXcm.Sent event names the requested destination."""
        return any(
            locations_match((ev["attributes"] or {}).get("destination"), self.destination)
            for ev in self.sent_events
        )


async def transfer_two_hops(
    ctx: ScenarioContext,
    signer,
    destination: Dict[str, Any],
    beneficiary: str,
    amount: int = 100_000,
    chain: str = POLKADOT_ASSET_HUB,
) -> TransferReport:
    """
    Transfer ``amount`` of the relay native asset from ``chain`` to
    ``destination`` two consensus hops away, with ``chain`` as the reserve of
    both the asset and the fees. On arrival all of it is deposited to
    ``beneficiary``.

    The call is dry-run first. It is only submitted when the dry run
    succeeds and forwards exactly one message ending with ``SetTopic``.
    """
    client = ctx[chain]
    relay_asset = location(1)
    call = await client.compose_call("PolkadotXcm", "transfer_assets_using_type_and_then", {
        "dest": versioned(destination),
        "assets": versioned([{"id": relay_asset, "fun": {"Fungible": amount}}]),
        "assets_transfer_type": "LocalReserve",
        "remote_fees_id": versioned(relay_asset),
        "fees_transfer_type": "LocalReserve",
        "custom_xcm_on_dest": versioned([{"DepositAsset": {
            "assets": {"Wild": {"AllCounted": 1}},
            "beneficiary": location(0, account_id32(beneficiary)),
        }}]),
        "weight_limit": "Unlimited",
    })

    origin = signed_origin(ss58_address(signer.public_key))
    dry_run = await dry_run_xcm_extrinsic(chain, client, origin, call)
    report = TransferReport(dry_run=dry_run, destination=destination)
    if not dry_run_succeeded(dry_run):
        return report

    report.forwarded = forwarded_messages(dry_run["value"])
    if len(report.forwarded) != 1 or not is_set_topic(report.last_forwarded_instruction):
        logger.warning(f"Unexpected forwarded messages on {chain}: {pretty_string(report.forwarded)}")
        return report

    current = await client.get_finalized_block()
    report.outcome = await sign_and_submit(chain, client, call, signer)
    report.finalized_block = await wait_for_next_block(
        client,
        current,
        max_retries=ctx.config.finality.max_retries,
        base_delay=ctx.config.finality.base_delay,
    )

    events = report.outcome.events
    report.transfer_events = find_events(events, "Balances", "Transfer")
    report.xcmp_events = find_events(events, "XcmpQueue", "XcmpMessageSent")
    report.sent_events = find_events(events, "PolkadotXcm", "Sent")
    return report


# ══════════════════════════════════════════════════════════════════════
#  EVENT SNAPSHOTS
# ══════════════════════════════════════════════════════════════════════

async def check_system_events(
    client: ChainClient,
    module: Optional[str] = None,
    event: Optional[str] = None,
    block_hash: Optional[str] = None,
    number: int = 2,
    hash: bool = True,
) -> List[Dict[str, Any]]:
    """
    System events at ``block_hash``, optionally filtered, redacted for
    comparison against a stored snapshot.
    """
    events = await client.get_events(block_hash)
    selected = [
        {"module": ev["module"], "event": ev["event"], "attributes": ev["attributes"]}
        for ev in events
        if (module is None or ev["module"] == module) and (event is None or ev["event"] == event)
    ]
    return redact(selected, number=number, hash=hash)
