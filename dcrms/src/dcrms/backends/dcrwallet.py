"""
dcrwallet JSON-RPC client.

Every call opens its own TLS connection, verified against the wallet's
self-signed certificate, and authenticates with HTTP basic auth.
"""

from __future__ import annotations

import ssl
from decimal import Decimal
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from dcrms.backends.base import WalletSigner
from dcrms.constants import DEFAULT_RPC_TIMEOUT
from dcrms.errors import ConfigError, NetworkError, RPCError
from dcrms.models import (
    BalanceResult,
    CreateMultisigResult,
    MultisigOutInfo,
    SignRawTransactionResult,
    ValidateAddressResult,
)


def rpc_url_from_wallet_url(wallet_url: str) -> str:
    """
    Map a wallet websocket URL to its HTTP POST JSON-RPC endpoint.

    wss://localhost:9110/ws -> https://localhost:9110
    """
    parts = urlsplit(wallet_url)
    scheme = {"wss": "https", "ws": "http"}.get(parts.scheme, parts.scheme)
    path = parts.path
    if path.rstrip("/").endswith("/ws"):
        path = path.rstrip("/")[: -len("/ws")]
    return urlunsplit((scheme, parts.netloc, path or "/", "", ""))


class DcrwalletClient(WalletSigner):
    """WalletSigner backed by dcrwallet's JSON-RPC server."""

    def __init__(
        self,
        wallet_url: str,
        rpc_user: str,
        rpc_password: str,
        ca_pem: bytes | None = None,
        timeout: float = DEFAULT_RPC_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.rpc_url = rpc_url_from_wallet_url(wallet_url)
        self.rpc_user = rpc_user
        self.rpc_password = rpc_password
        self.timeout = timeout
        self.transport = transport
        self._verify: ssl.SSLContext | bool = True
        if ca_pem is not None:
            try:
                self._verify = ssl.create_default_context(cadata=ca_pem.decode("ascii"))
            except (ValueError, ssl.SSLError) as e:
                raise ConfigError(f"invalid wallet certificate: {e}") from e
        self._request_id = 0

    async def _rpc_call(self, method: str, params: list | None = None) -> Any:
        """
        Make an RPC call to the wallet.

        Args:
            method: RPC method name
            params: Method parameters

        Returns:
            RPC result

        Raises:
            RPCError: If the wallet returns an error object
            NetworkError: On connection, timeout or HTTP errors
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "1.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }
        logger.debug(f"walletCall: {method}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                auth=(self.rpc_user, self.rpc_password),
                verify=self._verify,
                transport=self.transport,
            ) as client:
                response = await client.post(self.rpc_url, json=payload)
        except httpx.TimeoutException as e:
            logger.error(f"RPC call timed out: {method} - {e}")
            raise NetworkError(f"{method}: wallet timeout") from e
        except httpx.HTTPError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise NetworkError(f"{method}: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("error"):
            error_info = data["error"]
            if isinstance(error_info, dict):
                code = error_info.get("code", "unknown")
                message = error_info.get("message", str(error_info))
            else:
                code, message = "unknown", str(error_info)
            logger.error(f"RPC error: {method} {code} {message}")
            raise RPCError(method, code, message)

        if not response.is_success or not isinstance(data, dict):
            raise NetworkError(
                f"{method}: wallet error: {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        result = data.get("result")
        logger.trace(f"{method}: {result!r}")
        return result

    async def _rpc_model(self, model: type[BaseModel], method: str, params: list) -> Any:
        result = await self._rpc_call(method, params)
        try:
            return model.model_validate(result)
        except ValidationError as e:
            raise NetworkError(f"{method}: unexpected result: {e}") from e

    async def get_balance(self) -> BalanceResult:
        return await self._rpc_model(BalanceResult, "getbalance", [])

    async def get_new_address(self, account: str = "default", gap_policy: str = "wrap") -> str:
        return str(await self._rpc_call("getnewaddress", [account, gap_policy]))

    async def validate_address(self, address: str) -> ValidateAddressResult:
        return await self._rpc_model(ValidateAddressResult, "validateaddress", [address])

    async def create_multisig(self, n_required: int, keys: list[str]) -> CreateMultisigResult:
        return await self._rpc_model(CreateMultisigResult, "createmultisig", [n_required, keys])

    async def send_to_address(self, address: str, amount: Decimal) -> str:
        txid = await self._rpc_call("sendtoaddress", [address, float(amount)])
        logger.info(f"Sent {amount} to {address}: {txid}")
        return str(txid)

    async def get_multisig_out_info(self, txid: str, vout: int) -> MultisigOutInfo:
        return await self._rpc_model(MultisigOutInfo, "getmultisigoutinfo", [txid, vout])

    async def sign_raw_transaction(self, tx_hex: str) -> SignRawTransactionResult:
        return await self._rpc_model(SignRawTransactionResult, "signrawtransaction", [tx_hex])

    async def send_raw_transaction(self, tx_hex: str) -> str:
        txid = await self._rpc_call("sendrawtransaction", [tx_hex])
        logger.info(f"Broadcast transaction: {txid}")
        return str(txid)

    async def import_script(self, script_hex: str, rescan: bool = True) -> None:
        await self._rpc_call("importscript", [script_hex, rescan])
