"""
Tests for the dcrdata and dcrwallet clients using httpx.MockTransport.
"""

from __future__ import annotations

import base64
import json
from decimal import Decimal

import httpx
import pytest

from dcrms.backends.dcrdata import DcrdataClient
from dcrms.backends.dcrwallet import DcrwalletClient, rpc_url_from_wallet_url
from dcrms.errors import ConfigError, NetworkError, RPCError

DCRDATA = "https://dcrdata.test/api"
INSIGHT = "https://dcrdata.test/insight/api"
TXID = "ab" * 32


def _dcrdata(handler) -> DcrdataClient:
    return DcrdataClient(DCRDATA, INSIGHT, transport=httpx.MockTransport(handler))


class TestDcrdataClient:
    @pytest.mark.asyncio
    async def test_get_utxos(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(
                200,
                json=[
                    {
                        "address": "DcAddr",
                        "txid": TXID,
                        "vout": 1,
                        "scriptPubKey": "a914" + "00" * 20 + "87",
                        "amount": 1.5,
                        "satoshis": 150_000_000,
                        "height": 100,
                        "confirmations": 7,
                    },
                    {"txid": "cd" * 32, "vout": 0, "amount": 0.25, "confirmations": 0},
                ],
            )

        client = _dcrdata(handler)
        utxos = await client.get_utxos("DcAddr")
        await client.close()

        assert seen == [f"{INSIGHT}/addr/DcAddr/utxo"]
        assert len(utxos) == 2
        assert utxos[0].atoms == 150_000_000
        assert utxos[0].confirmations == 7
        assert utxos[0].outpoint == f"{TXID}:1"
        # atoms derived from amount when satoshis is absent
        assert utxos[1].atoms == 25_000_000

    @pytest.mark.asyncio
    async def test_get_address_info(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/insight/api/addr/DcAddr"
            return httpx.Response(
                200, json={"addrStr": "DcAddr", "balance": 12.5, "balanceSat": 1_250_000_000}
            )

        client = _dcrdata(handler)
        info = await client.get_address_info("DcAddr")
        await client.close()

        assert info.address == "DcAddr"
        assert info.balance == Decimal("12.5")
        assert info.balance_atoms == 1_250_000_000

    @pytest.mark.asyncio
    async def test_get_raw_transaction(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == f"{DCRDATA}/tx/hex/{TXID}"
            return httpx.Response(200, text='"0100abcd"\n')

        client = _dcrdata(handler)
        assert await client.get_raw_transaction(TXID) == "0100abcd"
        await client.close()

    @pytest.mark.asyncio
    async def test_http_error_carries_status_and_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="not found")

        client = _dcrdata(handler)
        with pytest.raises(NetworkError) as exc_info:
            await client.get_raw_transaction(TXID)
        await client.close()

        assert exc_info.value.status_code == 404
        assert exc_info.value.body == "not found"
        assert TXID in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = _dcrdata(handler)
        with pytest.raises(NetworkError, match="timeout"):
            await client.get_utxos("DcAddr")
        await client.close()

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        client = _dcrdata(handler)
        with pytest.raises(NetworkError, match="invalid JSON"):
            await client.get_utxos("DcAddr")
        await client.close()

    @pytest.mark.asyncio
    async def test_unexpected_shape(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"error": "nope"})

        client = _dcrdata(handler)
        with pytest.raises(NetworkError, match="unexpected utxo response"):
            await client.get_utxos("DcAddr")
        await client.close()


class TestWalletUrl:
    @pytest.mark.parametrize(
        "wallet_url,rpc_url",
        [
            ("wss://localhost:9110/ws", "https://localhost:9110/"),
            ("ws://127.0.0.1:19110/ws", "http://127.0.0.1:19110/"),
            ("https://wallet.local:9110", "https://wallet.local:9110/"),
        ],
    )
    def test_rpc_url(self, wallet_url: str, rpc_url: str) -> None:
        assert rpc_url_from_wallet_url(wallet_url) == rpc_url


class TestDcrwalletClient:
    def _client(self, handler) -> DcrwalletClient:
        return DcrwalletClient(
            "wss://localhost:9110/ws", "user", "secret", transport=httpx.MockTransport(handler)
        )

    @pytest.mark.asyncio
    async def test_request_shape(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"result": "DsNew", "error": None, "id": 1})

        address = await self._client(handler).get_new_address()

        assert address == "DsNew"
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://localhost:9110/"
        expected_auth = "Basic " + base64.b64encode(b"user:secret").decode()
        assert request.headers["authorization"] == expected_auth
        body = json.loads(request.content)
        assert body["method"] == "getnewaddress"
        assert body["params"] == ["default", "wrap"]

    @pytest.mark.asyncio
    async def test_get_balance(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            result = {"totalspendable": 3.25, "cumulativetotal": 4, "balances": []}
            return httpx.Response(200, json={"result": result, "error": None, "id": 1})

        balance = await self._client(handler).get_balance()
        assert balance.total_spendable == Decimal("3.25")

    @pytest.mark.asyncio
    async def test_get_multisig_out_info(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content)["params"] == [TXID, 2]
            result = {
                "address": "DcAddr",
                "redeemscript": "5221",
                "m": 2,
                "n": 3,
                "pubkeys": ["02" + "11" * 32],
                "txhash": TXID,
                "amount": 1.0,
            }
            return httpx.Response(200, json={"result": result, "error": None, "id": 1})

        info = await self._client(handler).get_multisig_out_info(TXID, 2)
        assert info.redeem_script == "5221"
        assert (info.m, info.n) == (2, 3)

    @pytest.mark.asyncio
    async def test_sign_raw_transaction(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            result = {
                "hex": "0100",
                "complete": False,
                "errors": [{"txid": TXID, "vout": 0, "scriptSig": "", "error": "bad"}],
            }
            return httpx.Response(200, json={"result": result, "error": None, "id": 1})

        result = await self._client(handler).sign_raw_transaction("0100")
        assert not result.complete
        assert str(result.errors[0]) == f"{TXID}:0: bad"

    @pytest.mark.asyncio
    async def test_send_to_address_amount(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content)["params"] == ["DcAddr", 1.5]
            return httpx.Response(200, json={"result": TXID, "error": None, "id": 1})

        assert await self._client(handler).send_to_address("DcAddr", Decimal("1.5")) == TXID

    @pytest.mark.asyncio
    async def test_rpc_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            error = {"code": -5, "message": "Invalid address"}
            return httpx.Response(500, json={"result": None, "error": error, "id": 1})

        with pytest.raises(RPCError) as exc_info:
            await self._client(handler).validate_address("bogus")

        assert exc_info.value.code == -5
        assert exc_info.value.rpc_message == "Invalid address"
        assert "validateaddress" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unauthorized(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="")

        with pytest.raises(NetworkError) as exc_info:
            await self._client(handler).get_balance()
        assert not isinstance(exc_info.value, RPCError)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError, match="connection refused"):
            await self._client(handler).send_raw_transaction("0100")

    @pytest.mark.asyncio
    async def test_unexpected_result(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"result": "oops", "error": None, "id": 1})

        with pytest.raises(NetworkError, match="unexpected result"):
            await self._client(handler).create_multisig(2, ["a", "b"])

    @pytest.mark.parametrize(
        "ca_pem", [b"\xff\xfe not ascii", b"-----BEGIN CERTIFICATE-----\nxx\n"]
    )
    def test_corrupt_certificate(self, ca_pem: bytes) -> None:
        with pytest.raises(ConfigError, match="invalid wallet certificate"):
            DcrwalletClient("wss://localhost:9110/ws", "user", "secret", ca_pem=ca_pem)
