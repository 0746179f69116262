"""
Signing and broadcast of multisig transactions.

Each co-signer runs signing against their own wallet and hands the resulting
hex to the next one. Both stages decode the transaction locally before any
wallet call so malformed input never reaches the wallet.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from dcrms.backends.base import WalletSigner
from dcrms.errors import SigningIncomplete
from dcrms.tx.wire import decode_tx


@dataclass
class SignResult:
    """Outcome of one signing round."""

    hex: str
    complete: bool
    errors: list[str] = field(default_factory=list)

    @property
    def incomplete(self) -> SigningIncomplete | None:
        """SigningIncomplete describing the missing signatures, or None if complete."""
        if self.complete:
            return None
        return SigningIncomplete(self.errors)


async def sign_transaction(wallet: WalletSigner, tx_hex: str) -> SignResult:
    """
    Add this wallet's signatures to a transaction.

    An incomplete result is not an error: more co-signers may still have to sign.

    Raises:
        MalformedHex, MalformedTransaction: Before contacting the wallet
        NetworkError: If the wallet call fails
    """
    tx = decode_tx(tx_hex)
    logger.debug(f"Signing transaction {tx.txid()} ({len(tx.tx_in)} inputs)")

    result = await wallet.sign_raw_transaction(tx_hex)
    errors = [str(error) for error in result.errors]
    if result.complete:
        logger.info("Transaction signing complete")
    else:
        logger.info(f"Transaction signing not complete ({len(errors)} input errors)")
        for error in errors:
            logger.debug(f"Sign error: {error}")

    return SignResult(hex=result.hex, complete=result.complete, errors=errors)


async def broadcast_transaction(wallet: WalletSigner, tx_hex: str) -> str:
    """
    Submit a transaction to the network through the wallet.

    Completeness of signatures is left for the network to judge.

    Returns:
        Transaction id reported by the wallet

    Raises:
        MalformedHex, MalformedTransaction: Before contacting the wallet
        NetworkError: If the wallet rejects or fails to relay the transaction
    """
    tx = decode_tx(tx_hex)
    logger.debug(f"Broadcasting transaction {tx.txid()}")
    return await wallet.send_raw_transaction(tx_hex)
