"""
Test configuration and fakes for dcrms tests.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest
from coincurve import PrivateKey

from dcrms.backends.base import BlockExplorer, WalletSigner
from dcrms.errors import RPCError
from dcrms.models import (
    AddressInfo,
    BalanceResult,
    CreateMultisigResult,
    MultisigOutInfo,
    SignRawTransactionResult,
    UnspentOutput,
    ValidateAddressResult,
)
from dcrms.netparams import MAINNET
from dcrms.tx.address import Address, AddressType, hash160, script_hash_address
from dcrms.tx.script import multisig_script
from dcrms.tx.wire import MsgTx, OutPoint, TxIn, TxOut


class FakeWallet(WalletSigner):
    """In-memory WalletSigner recording every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []
        self.balance = BalanceResult(total_spendable=Decimal("100"))
        self.new_address = "DsNewAddress"
        self.validation = ValidateAddressResult(
            is_valid=True, is_mine=True, pubkey_addr="DkNewPubKeyAddress"
        )
        self.multisig_info: MultisigOutInfo | Exception | None = None
        self.sign_result = SignRawTransactionResult(hex="", complete=True)
        self.sent_txid = "ab" * 32

    def _record(self, method: str, *args) -> None:
        self.calls.append((method, args))

    @property
    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]

    async def get_balance(self) -> BalanceResult:
        self._record("getbalance")
        return self.balance

    async def get_new_address(self, account: str = "default", gap_policy: str = "wrap") -> str:
        self._record("getnewaddress", account, gap_policy)
        return self.new_address

    async def validate_address(self, address: str) -> ValidateAddressResult:
        self._record("validateaddress", address)
        return self.validation

    async def create_multisig(self, n_required: int, keys: list[str]) -> CreateMultisigResult:
        self._record("createmultisig", n_required, keys)
        return CreateMultisigResult(address="DcMultisig", redeem_script="5221")

    async def send_to_address(self, address: str, amount: Decimal) -> str:
        self._record("sendtoaddress", address, amount)
        return self.sent_txid

    async def get_multisig_out_info(self, txid: str, vout: int) -> MultisigOutInfo:
        self._record("getmultisigoutinfo", txid, vout)
        if isinstance(self.multisig_info, Exception):
            raise self.multisig_info
        if self.multisig_info is None:
            raise RPCError("getmultisigoutinfo", -5, "unknown output")
        return self.multisig_info

    async def sign_raw_transaction(self, tx_hex: str) -> SignRawTransactionResult:
        self._record("signrawtransaction", tx_hex)
        return self.sign_result

    async def send_raw_transaction(self, tx_hex: str) -> str:
        self._record("sendrawtransaction", tx_hex)
        return self.sent_txid

    async def import_script(self, script_hex: str, rescan: bool = True) -> None:
        self._record("importscript", script_hex, rescan)


class FakeExplorer(BlockExplorer):
    """In-memory BlockExplorer serving fixed UTXOs and raw transactions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.utxos: dict[str, list[UnspentOutput]] = {}
        self.raw_txs: dict[str, str] = {}
        self.balances: dict[str, Decimal] = {}
        self.closed = False

    async def get_address_info(self, address: str) -> AddressInfo:
        self.calls.append(("addr", address))
        return AddressInfo(address=address, balance=self.balances.get(address, Decimal(0)))

    async def get_utxos(self, address: str) -> list[UnspentOutput]:
        self.calls.append(("utxo", address))
        return list(self.utxos.get(address, []))

    async def get_raw_transaction(self, txid: str) -> str:
        self.calls.append(("tx", txid))
        return self.raw_txs[txid]

    async def close(self) -> None:
        self.closed = True

    def add_parent(
        self, address: str, parent: MsgTx, vout: int, confirmations: int
    ) -> UnspentOutput:
        """Register parent and expose its output vout as a UTXO of address."""
        txid = parent.txid()
        self.raw_txs[txid] = parent.serialize().hex()
        utxo = UnspentOutput(
            txid=txid,
            vout=vout,
            atoms=parent.tx_out[vout].value,
            confirmations=confirmations,
            address=address,
        )
        self.utxos.setdefault(address, []).append(utxo)
        return utxo


def make_pubkeys(count: int) -> list[bytes]:
    return [
        PrivateKey(bytes([i + 1]) * 32).public_key.format(compressed=True) for i in range(count)
    ]


def make_parent_tx(values: list[int], pk_script: bytes, seed: int = 1) -> MsgTx:
    """Regular transaction paying each value to pk_script."""
    tx = MsgTx()
    tx.add_tx_in(TxIn(previous_outpoint=OutPoint(hash=bytes([seed]) * 32, index=0)))
    for value in values:
        tx.add_tx_out(TxOut(value=value, pk_script=pk_script))
    return tx


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def explorer() -> FakeExplorer:
    return FakeExplorer()


@pytest.fixture
def pubkeys() -> list[bytes]:
    return make_pubkeys(3)


@pytest.fixture
def redeem_script(pubkeys: list[bytes]) -> bytes:
    """2-of-3 multisig redeem script."""
    return multisig_script(2, pubkeys)


@pytest.fixture
def multisig_address(redeem_script: bytes) -> Address:
    return script_hash_address(redeem_script, MAINNET)


@pytest.fixture
def destination_address() -> Address:
    pubkey = make_pubkeys(4)[3]
    return Address(kind=AddressType.P2PKH, payload=hash160(pubkey), params=MAINNET)


@pytest.fixture
def multisig_info(
    multisig_address: Address, redeem_script: bytes, pubkeys: list[bytes]
) -> MultisigOutInfo:
    return MultisigOutInfo(
        address=multisig_address.encode(),
        redeem_script=redeem_script.hex(),
        m=2,
        n=3,
        pubkeys=[pk.hex() for pk in pubkeys],
    )


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolated home directory with no DCRMS_* environment."""
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in (
        "NET", "WALLET", "CERT", "USER", "PASSWORD", "LOG_LEVEL", "DCRDATA_URL", "INSIGHT_URL"
    ):
        monkeypatch.delenv(f"DCRMS_{name}", raising=False)
    return tmp_path
