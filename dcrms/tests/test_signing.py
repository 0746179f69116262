"""
Tests for signing and broadcast coordination.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from conftest import FakeWallet, make_parent_tx

from dcrms.errors import MalformedHex, MalformedTransaction, NetworkError, SigningIncomplete
from dcrms.models import SignRawTransactionError, SignRawTransactionResult
from dcrms.signing import SignResult, broadcast_transaction, sign_transaction
from dcrms.tx.script import p2pkh_script


@pytest.fixture
def tx_hex() -> str:
    return make_parent_tx([5000], p2pkh_script(bytes(20))).serialize().hex()


class TestSign:
    @pytest.mark.asyncio
    async def test_complete(self, wallet: FakeWallet, tx_hex: str) -> None:
        wallet.sign_result = SignRawTransactionResult(hex=tx_hex, complete=True)

        result = await sign_transaction(wallet, tx_hex)

        assert result.complete
        assert result.incomplete is None
        assert wallet.calls == [("signrawtransaction", (tx_hex,))]

    @pytest.mark.asyncio
    async def test_scenario_d_incomplete_is_not_an_error(
        self, wallet: FakeWallet, tx_hex: str
    ) -> None:
        wallet.sign_result = SignRawTransactionResult(
            hex="deadbeef",
            complete=False,
            errors=[
                SignRawTransactionError(
                    txid="aa" * 32, vout=0, error="missing signature"
                )
            ],
        )

        result = await sign_transaction(wallet, tx_hex)

        assert not result.complete
        assert result.hex == "deadbeef"
        incomplete = result.incomplete
        assert isinstance(incomplete, SigningIncomplete)
        assert "transaction signing not complete" in str(incomplete)
        assert f"{'aa' * 32}:0" in str(incomplete)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad", ["abc", "zz" * 10, "01 00"])
    async def test_malformed_hex_never_reaches_wallet(self, wallet: FakeWallet, bad: str) -> None:
        with pytest.raises(MalformedHex):
            await sign_transaction(wallet, bad)
        assert wallet.calls == []

    @pytest.mark.asyncio
    async def test_malformed_tx_never_reaches_wallet(self, wallet: FakeWallet) -> None:
        with pytest.raises(MalformedTransaction):
            await sign_transaction(wallet, "0100")
        assert wallet.calls == []


class TestBroadcast:
    @pytest.mark.asyncio
    async def test_broadcast(self, wallet: FakeWallet, tx_hex: str) -> None:
        txid = await broadcast_transaction(wallet, tx_hex)
        assert txid == wallet.sent_txid
        assert wallet.calls == [("sendrawtransaction", (tx_hex,))]

    @pytest.mark.asyncio
    async def test_rejection_propagates(self, tx_hex: str) -> None:
        wallet = AsyncMock()
        wallet.send_raw_transaction = AsyncMock(
            side_effect=NetworkError("sendrawtransaction: rejected", status_code=500)
        )

        with pytest.raises(NetworkError, match="rejected"):
            await broadcast_transaction(wallet, tx_hex)
        wallet.send_raw_transaction.assert_awaited_once_with(tx_hex)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad", ["abc", "xyz0", "0a0b0c0d0e0f0g"])
    async def test_scenario_e_malformed_hex(self, wallet: FakeWallet, bad: str) -> None:
        with pytest.raises(MalformedHex):
            await broadcast_transaction(wallet, bad)
        assert wallet.calls == []


def test_sign_result_incomplete_without_errors() -> None:
    result = SignResult(hex="00", complete=False)
    assert str(result.incomplete) == "transaction signing not complete"
