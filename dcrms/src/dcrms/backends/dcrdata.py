"""
dcrdata block explorer client.

Uses the insight-compatible API for address queries and the native dcrdata
API for raw transactions.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger
from pydantic import TypeAdapter, ValidationError

from dcrms.backends.base import BlockExplorer
from dcrms.constants import DEFAULT_HTTP_TIMEOUT
from dcrms.errors import NetworkError
from dcrms.models import AddressInfo, UnspentOutput

_UTXO_LIST = TypeAdapter(list[UnspentOutput])


class DcrdataClient(BlockExplorer):
    """HTTP GET client for dcrdata."""

    def __init__(
        self,
        dcrdata_url: str,
        insight_url: str,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.dcrdata_url = dcrdata_url.rstrip("/")
        self.insight_url = insight_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def _get(self, url: str) -> httpx.Response:
        """
        GET a URL.

        Raises:
            NetworkError: On transport errors, timeouts and non-200 responses
        """
        logger.debug(f"httpRequest: {url}")
        try:
            response = await self.client.get(url)
        except httpx.TimeoutException as e:
            logger.error(f"dcrdata request timed out: {url} - {e}")
            raise NetworkError(f"dcrdata timeout: {url}") from e
        except httpx.HTTPError as e:
            logger.error(f"dcrdata request failed: {url} - {e}")
            raise NetworkError(f"dcrdata error: {url}: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise NetworkError(
                f"dcrdata error: {response.status_code} {url} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return response

    async def _get_json(self, url: str) -> Any:
        response = await self._get(url)
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"dcrdata returned invalid JSON: {url}") from e

    async def get_address_info(self, address: str) -> AddressInfo:
        data = await self._get_json(f"{self.insight_url}/addr/{address}")
        try:
            info = AddressInfo.model_validate(data)
        except ValidationError as e:
            raise NetworkError(f"unexpected address response for {address}: {e}") from e
        logger.trace(f"{info!r}")
        return info

    async def get_utxos(self, address: str) -> list[UnspentOutput]:
        data = await self._get_json(f"{self.insight_url}/addr/{address}/utxo")
        try:
            utxos = _UTXO_LIST.validate_python(data)
        except ValidationError as e:
            raise NetworkError(f"unexpected utxo response for {address}: {e}") from e
        logger.debug(f"Found {len(utxos)} UTXOs for {address}")
        logger.trace(f"{utxos!r}")
        return utxos

    async def get_raw_transaction(self, txid: str) -> str:
        response = await self._get(f"{self.dcrdata_url}/tx/hex/{txid}")
        raw = response.text.strip().strip('"')
        logger.trace(f"{txid}: {raw}")
        return raw

    async def close(self) -> None:
        await self.client.aclose()
