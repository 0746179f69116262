"""
Chain parameters for the supported Decred networks.
"""

from __future__ import annotations

from dataclasses import dataclass

from dcrms.errors import ConfigError


@dataclass(frozen=True)
class NetParams:
    name: str
    # Two-byte address prefixes
    pubkey_addr_id: bytes
    pubkey_hash_addr_id: bytes
    pkh_edwards_addr_id: bytes
    pkh_schnorr_addr_id: bytes
    script_hash_addr_id: bytes
    # Default service endpoints
    wallet_url: str
    dcrdata_url: str
    insight_url: str


MAINNET = NetParams(
    name="mainnet",
    pubkey_addr_id=bytes([0x13, 0x86]),  # Dk
    pubkey_hash_addr_id=bytes([0x07, 0x3F]),  # Ds
    pkh_edwards_addr_id=bytes([0x07, 0x1F]),  # De
    pkh_schnorr_addr_id=bytes([0x07, 0x01]),  # DS
    script_hash_addr_id=bytes([0x07, 0x1A]),  # Dc
    wallet_url="wss://localhost:9110/ws",
    dcrdata_url="https://explorer.dcrdata.org/api",
    insight_url="https://explorer.dcrdata.org/insight/api",
)

TESTNET3 = NetParams(
    name="testnet3",
    pubkey_addr_id=bytes([0x28, 0xF7]),  # Tk
    pubkey_hash_addr_id=bytes([0x0F, 0x21]),  # Ts
    pkh_edwards_addr_id=bytes([0x0F, 0x01]),  # Te
    pkh_schnorr_addr_id=bytes([0x0E, 0xE3]),  # TS
    script_hash_addr_id=bytes([0x0E, 0xFC]),  # Tc
    wallet_url="wss://localhost:19110/ws",
    dcrdata_url="https://testnet.dcrdata.org/api",
    insight_url="https://testnet.dcrdata.org/insight/api",
)

NETWORKS: dict[str, NetParams] = {
    MAINNET.name: MAINNET,
    TESTNET3.name: TESTNET3,
}


def get_params(net: str) -> NetParams:
    """Look up network parameters by name."""
    try:
        return NETWORKS[net]
    except KeyError:
        raise ConfigError(f"invalid net: {net}") from None
