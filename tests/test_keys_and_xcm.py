"""
Development keys and XCM value helpers.
"""

from xcmbridges.keys import derive_alice, derive_dev_keypair, ss58_address
from xcmbridges.xcm import (
    account_id32,
    find_events,
    forwarded_messages,
    instruction_name,
    is_set_topic,
    last_instruction,
    location,
    locations_match,
    remote_parachain_location,
    unversioned,
    versioned,
)

ALICE_PUBLIC_KEY = "d43593c715fdd31c61141abd04a99fd6822c8558854ccde39a5684e7a56da27d"


# ══════════════════════════════════════════════════════════════════════
#  SECTION 1: KEYS
# ══════════════════════════════════════════════════════════════════════

class TestDevKeys:

    def test_alice_is_deterministic(self):
        alice = derive_alice()
        assert alice.public_key.hex() == ALICE_PUBLIC_KEY
        assert alice.ss58_address == "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"

    def test_named_derivation_differs(self):
        assert derive_dev_keypair("Bob").public_key != derive_alice().public_key

    def test_polkadot_address(self):
        assert ss58_address(bytes.fromhex(ALICE_PUBLIC_KEY), 0) == "15oF4uVJwmo4TdGW7VfQxNLavjCXviqxT9S1MgbjMNHr6Sp5"
        assert ss58_address("0x" + ALICE_PUBLIC_KEY, 42) == "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"


# ══════════════════════════════════════════════════════════════════════
#  SECTION 2: LOCATIONS
# ══════════════════════════════════════════════════════════════════════

class TestLocations:

    def test_here(self):
        assert location(1) == {"parents": 1, "interior": "Here"}

    def test_remote_parachain(self):
        assert remote_parachain_location("Kusama", 1000) == {
            "parents": 2,
            "interior": {"X2": [{"GlobalConsensus": "Kusama"}, {"Parachain": 1000}]},
        }

    def test_versioning(self):
        loc = location(1, {"Parachain": 1000})
        assert versioned(loc) == {"V5": loc}
        assert unversioned(versioned(loc, 4)) == loc
        assert unversioned({"Parachain": 1}) == {"Parachain": 1}
        assert locations_match(versioned(loc), loc)

    def test_account(self):
        assert account_id32("0x" + ALICE_PUBLIC_KEY) == {
            "AccountId32": {"network": None, "id": "0x" + ALICE_PUBLIC_KEY}
        }


# ══════════════════════════════════════════════════════════════════════
#  SECTION 3: PROGRAMS AND EVENTS
# ══════════════════════════════════════════════════════════════════════

PROGRAM = {"V5": [
    {"WithdrawAsset": []},
    "ClearOrigin",
    {"SetTopic": "0x" + "11" * 32},
]}


class TestPrograms:

    def test_instruction_names(self):
        assert instruction_name("ClearOrigin") == "ClearOrigin"
        assert instruction_name({"SetTopic": "0x00"}) == "SetTopic"
        assert instruction_name({"type": "SetTopic", "value": "0x00"}) == "SetTopic"
        assert instruction_name(7) is None

    def test_last_instruction_is_topic(self):
        assert is_set_topic(last_instruction(PROGRAM))
        assert last_instruction({"V5": []}) is None

    def test_forwarded_messages_tuple_form(self):
        dest = versioned(location(1, {"Parachain": 1002}))
        value = {"forwarded_xcms": [(dest, [PROGRAM])]}
        assert forwarded_messages(value) == [(dest, PROGRAM)]

    def test_forwarded_messages_dict_form(self):
        dest = versioned(location(1, {"Parachain": 1002}))
        value = {"forwarded_xcms": [{"destination": dest, "messages": [PROGRAM, PROGRAM]}]}
        assert len(forwarded_messages(value)) == 2

    def test_no_forwarded(self):
        assert forwarded_messages({}) == []


class TestFindEvents:

    def test_filters_by_module_and_event(self):
        events = [
            {"module": "Balances", "event": "Withdraw", "attributes": {}},
            {"module": "Balances", "event": "Transfer", "attributes": {"amount": 1}},
            {"module": "XcmpQueue", "event": "XcmpMessageSent", "attributes": {}},
        ]
        assert find_events(events, "Balances", "Transfer") == [events[1]]
        assert find_events(events, "PolkadotXcm", "Sent") == []
