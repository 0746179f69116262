"""
Tests for Decred address encoding.
"""

from __future__ import annotations

import pytest
from conftest import make_pubkeys

from dcrms.errors import InvalidAddress
from dcrms.netparams import MAINNET, TESTNET3
from dcrms.tx.address import (
    Address,
    AddressType,
    check_encode,
    decode_address,
    hash160,
    pubkey_address,
    script_hash_address,
)

HASH = bytes(range(20))


class TestPrefixes:
    @pytest.mark.parametrize(
        "kind,mainnet,testnet",
        [
            (AddressType.P2PKH, "Ds", "Ts"),
            (AddressType.P2PKH_EDWARDS, "De", "Te"),
            (AddressType.P2PKH_SCHNORR, "DS", "TS"),
            (AddressType.P2SH, "Dc", "Tc"),
        ],
    )
    def test_hash_address_prefix(self, kind: AddressType, mainnet: str, testnet: str) -> None:
        assert Address(kind, HASH, MAINNET).encode().startswith(mainnet)
        assert Address(kind, HASH, TESTNET3).encode().startswith(testnet)

    def test_pubkey_address_prefix(self) -> None:
        pubkey = make_pubkeys(1)[0]
        assert pubkey_address(pubkey, MAINNET).encode().startswith("Dk")
        assert pubkey_address(pubkey, TESTNET3).encode().startswith("Tk")


class TestDecode:
    @pytest.mark.parametrize("kind", list(AddressType))
    def test_round_trip(self, kind: AddressType) -> None:
        if kind == AddressType.P2PK:
            address = pubkey_address(make_pubkeys(1)[0], MAINNET)
        else:
            address = Address(kind, HASH, MAINNET)
        decoded = decode_address(address.encode(), MAINNET)
        assert decoded == address
        assert str(decoded) == address.encode()

    def test_pubkey_round_trip_keeps_parity(self) -> None:
        for pubkey in make_pubkeys(8):
            decoded = decode_address(pubkey_address(pubkey, MAINNET).encode(), MAINNET)
            assert decoded.payload == pubkey

    def test_wrong_network(self) -> None:
        encoded = Address(AddressType.P2PKH, HASH, MAINNET).encode()
        with pytest.raises(InvalidAddress, match="is for mainnet, not testnet3"):
            decode_address(encoded, TESTNET3)

    def test_bad_checksum(self) -> None:
        encoded = Address(AddressType.P2SH, HASH, MAINNET).encode()
        tampered = encoded[:-1] + ("2" if encoded[-1] != "2" else "3")
        with pytest.raises(InvalidAddress):
            decode_address(tampered, MAINNET)

    def test_invalid_base58(self) -> None:
        with pytest.raises(InvalidAddress):
            decode_address("Ds0OIl", MAINNET)

    def test_too_short(self) -> None:
        with pytest.raises(InvalidAddress):
            decode_address("1111", MAINNET)

    def test_wrong_hash_length(self) -> None:
        encoded = check_encode(bytes(19), MAINNET.pubkey_hash_addr_id)
        with pytest.raises(InvalidAddress, match="hash length"):
            decode_address(encoded, MAINNET)

    def test_unknown_prefix(self) -> None:
        encoded = check_encode(HASH, b"\x00\x00")
        with pytest.raises(InvalidAddress, match="unknown address prefix"):
            decode_address(encoded, MAINNET)


class TestScripts:
    def test_pay_to_script_sizes(self) -> None:
        assert len(Address(AddressType.P2PKH, HASH, MAINNET).pay_to_script()) == 25
        assert len(Address(AddressType.P2SH, HASH, MAINNET).pay_to_script()) == 23
        assert len(Address(AddressType.P2PKH_EDWARDS, HASH, MAINNET).pay_to_script()) == 26

    def test_p2sh_script_commits_to_hash(self) -> None:
        script = Address(AddressType.P2SH, HASH, MAINNET).pay_to_script()
        assert script == bytes([0xA9, 0x14]) + HASH + bytes([0x87])

    def test_script_hash_address(self, redeem_script: bytes) -> None:
        address = script_hash_address(redeem_script, MAINNET)
        assert address.kind == AddressType.P2SH
        assert address.payload == hash160(redeem_script)
        assert len(address.payload) == 20

    def test_invalid_pubkey(self) -> None:
        with pytest.raises(InvalidAddress):
            pubkey_address(bytes(33), MAINNET)
