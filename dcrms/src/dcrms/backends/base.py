"""
Capability interfaces for the external services.

The assembly pipeline only talks to these abstractions so it can be exercised
against fakes; concrete clients live in dcrwallet.py and dcrdata.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from dcrms.models import (
    AddressInfo,
    BalanceResult,
    CreateMultisigResult,
    MultisigOutInfo,
    SignRawTransactionResult,
    UnspentOutput,
    ValidateAddressResult,
)


class WalletSigner(ABC):
    """
    Wallet signing service.
    Holds the private keys; signs and broadcasts raw transactions.
    """

    @abstractmethod
    async def get_balance(self) -> BalanceResult:
        """Wallet balances"""

    @abstractmethod
    async def get_new_address(self, account: str = "default", gap_policy: str = "wrap") -> str:
        """Derive a new address"""

    @abstractmethod
    async def validate_address(self, address: str) -> ValidateAddressResult:
        """Validate an address and report ownership"""

    @abstractmethod
    async def create_multisig(self, n_required: int, keys: list[str]) -> CreateMultisigResult:
        """Create an n_required-of-len(keys) multisig address"""

    @abstractmethod
    async def send_to_address(self, address: str, amount: Decimal) -> str:
        """Send amount coins to address, returns txid"""

    @abstractmethod
    async def get_multisig_out_info(self, txid: str, vout: int) -> MultisigOutInfo:
        """Redeem script and signer metadata of a multisig output"""

    @abstractmethod
    async def sign_raw_transaction(self, tx_hex: str) -> SignRawTransactionResult:
        """Add the wallet's signatures to a raw transaction"""

    @abstractmethod
    async def send_raw_transaction(self, tx_hex: str) -> str:
        """Broadcast a raw transaction, returns txid"""

    @abstractmethod
    async def import_script(self, script_hex: str, rescan: bool = True) -> None:
        """Import a redeem script into the wallet"""


class BlockExplorer(ABC):
    """Read-only block explorer data service."""

    @abstractmethod
    async def get_address_info(self, address: str) -> AddressInfo:
        """Balance summary for an address"""

    @abstractmethod
    async def get_utxos(self, address: str) -> list[UnspentOutput]:
        """All unspent outputs of an address, in explorer order"""

    @abstractmethod
    async def get_raw_transaction(self, txid: str) -> str:
        """Raw transaction hex by txid"""

    async def close(self) -> None:
        """Close connections"""
        pass
