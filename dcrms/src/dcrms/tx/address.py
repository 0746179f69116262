"""
Decred address encoding and decoding.

Addresses are base58(netID[2] || payload || checksum[4]) where the checksum is
the first four bytes of BLAKE-256(BLAKE-256(netID || payload)).
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum

import base58
from blake256.blake256 import blake_hash
from coincurve import PublicKey

from dcrms.errors import InvalidAddress
from dcrms.netparams import NETWORKS, NetParams
from dcrms.tx import script as txscript

CHECKSUM_SIZE = 4


class AddressType(str, Enum):
    P2PKH = "p2pkh"
    P2PKH_EDWARDS = "p2pkh-ed25519"
    P2PKH_SCHNORR = "p2pkh-schnorr"
    P2SH = "p2sh"
    P2PK = "p2pk"


def blake256(data: bytes) -> bytes:
    """BLAKE-256 digest."""
    return bytes(blake_hash(data))


def hash160(data: bytes) -> bytes:
    """RIPEMD160(BLAKE-256(data))"""
    h = hashlib.new("ripemd160")
    h.update(blake256(data))
    return h.digest()


def checksum(data: bytes) -> bytes:
    return blake256(blake256(data))[:CHECKSUM_SIZE]


def check_encode(payload: bytes, net_id: bytes) -> str:
    """Base58 encode payload with a two-byte network prefix and checksum."""
    data = net_id + payload
    return base58.b58encode(data + checksum(data)).decode("ascii")


def check_decode(text: str) -> tuple[bytes, bytes]:
    """
    Decode a base58 string with two-byte prefix and checksum.

    Returns:
        (net_id, payload)
    """
    try:
        decoded = base58.b58decode(text)
    except ValueError as e:
        raise InvalidAddress(f"invalid base58 encoding: {text}") from e

    if len(decoded) < 2 + CHECKSUM_SIZE:
        raise InvalidAddress(f"address too short: {text}")

    data, cksum = decoded[:-CHECKSUM_SIZE], decoded[-CHECKSUM_SIZE:]
    if checksum(data) != cksum:
        raise InvalidAddress(f"checksum mismatch: {text}")
    return data[:2], data[2:]


def _address_types(params: NetParams) -> dict[bytes, AddressType]:
    return {
        params.pubkey_hash_addr_id: AddressType.P2PKH,
        params.pkh_edwards_addr_id: AddressType.P2PKH_EDWARDS,
        params.pkh_schnorr_addr_id: AddressType.P2PKH_SCHNORR,
        params.script_hash_addr_id: AddressType.P2SH,
        params.pubkey_addr_id: AddressType.P2PK,
    }


@dataclass(frozen=True)
class Address:
    """A decoded address bound to its network."""

    kind: AddressType
    payload: bytes
    params: NetParams

    def encode(self) -> str:
        net_id = {v: k for k, v in _address_types(self.params).items()}[self.kind]
        if self.kind == AddressType.P2PK:
            # Type byte carries the y-parity in its high bit
            type_byte = 0x80 if self.payload[0] == 0x03 else 0x00
            return check_encode(bytes([type_byte]) + self.payload[1:], net_id)
        return check_encode(self.payload, net_id)

    def pay_to_script(self) -> bytes:
        """Locking script paying to this address."""
        if self.kind == AddressType.P2PKH:
            return txscript.p2pkh_script(self.payload)
        if self.kind == AddressType.P2PKH_EDWARDS:
            return txscript.p2pkh_script(self.payload, txscript.SIG_TYPE_ED25519)
        if self.kind == AddressType.P2PKH_SCHNORR:
            return txscript.p2pkh_script(self.payload, txscript.SIG_TYPE_SCHNORR_SECP256K1)
        if self.kind == AddressType.P2SH:
            return txscript.p2sh_script(self.payload)
        return txscript.p2pk_script(self.payload)

    def __str__(self) -> str:
        return self.encode()


def decode_address(text: str, params: NetParams) -> Address:
    """
    Decode an address string for the given network.

    Raises:
        InvalidAddress: On bad encoding, checksum, length or network mismatch
    """
    net_id, payload = check_decode(text)

    kind = _address_types(params).get(net_id)
    if kind is None:
        for other in NETWORKS.values():
            if other is not params and net_id in _address_types(other):
                raise InvalidAddress(f"address {text} is for {other.name}, not {params.name}")
        raise InvalidAddress(f"unknown address prefix {net_id.hex()}: {text}")

    if kind == AddressType.P2PK:
        if len(payload) != 33 or payload[0] & 0x7F != 0:
            raise InvalidAddress(f"unsupported public key address: {text}")
        # Recover the compressed key from the y-parity bit
        prefix = 0x03 if payload[0] & 0x80 else 0x02
        payload = bytes([prefix]) + payload[1:]
    elif len(payload) != 20:
        raise InvalidAddress(f"invalid hash length {len(payload)}: {text}")

    return Address(kind=kind, payload=payload, params=params)


def pubkey_address(pubkey: bytes, params: NetParams) -> Address:
    """
    Pay-to-pubkey address for a serialized secp256k1 public key.

    Raises:
        InvalidAddress: If the key is not a valid secp256k1 point
    """
    try:
        compressed = PublicKey(pubkey).format(compressed=True)
    except (ValueError, TypeError) as e:
        raise InvalidAddress(f"invalid public key {pubkey.hex()}: {e}") from e
    return Address(kind=AddressType.P2PK, payload=compressed, params=params)


def script_hash_address(redeem_script: bytes, params: NetParams) -> Address:
    """Pay-to-script-hash address for a redeem script."""
    return Address(kind=AddressType.P2SH, payload=hash160(redeem_script), params=params)
