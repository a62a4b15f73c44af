"""
Deterministic development keypairs and address helpers.
"""

from typing import Union

from substrateinterface import Keypair, KeypairType
from substrateinterface.utils.ss58 import ss58_encode

from .constants import DEV_PHRASE

# Generic Substrate prefix; Polkadot is 0, Kusama is 2
GENERIC_SS58_FORMAT = 42


def derive_dev_keypair(name: str, ss58_format: int = GENERIC_SS58_FORMAT) -> Keypair:
    """Derive ``//<name>`` from the well-known development mnemonic."""
    return Keypair.create_from_uri(
        f"{DEV_PHRASE}//{name}",
        ss58_format=ss58_format,
        crypto_type=KeypairType.SR25519,
    )


def derive_alice(ss58_format: int = GENERIC_SS58_FORMAT) -> Keypair:
    return derive_dev_keypair("Alice", ss58_format)


def ss58_address(public_key: Union[str, bytes], ss58_format: int = 0) -> str:
    """Encode a raw public key (bytes or 0x hex) as an SS58 address."""
    if isinstance(public_key, bytes):
        public_key = "0x" + public_key.hex()
    return ss58_encode(public_key, ss58_format=ss58_format)
