"""
UTXO selection for multisig spends.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from dcrms.amount import to_coins
from dcrms.backends.base import BlockExplorer
from dcrms.errors import DuplicateOutput, InsufficientFunds, NoUtxosFound
from dcrms.models import UnspentOutput


@dataclass
class UtxoSelection:
    """Result of UTXO selection"""

    utxos: list[UnspentOutput]
    found_atoms: int

    @property
    def found_amount(self) -> Decimal:
        return to_coins(self.found_atoms)


def filter_confirmed(
    utxos: list[UnspentOutput], min_confirmations: int
) -> list[UnspentOutput]:
    """
    Keep UTXOs with at least min_confirmations, preserving order.

    Raises:
        DuplicateOutput: If two upstream entries share a txid
    """
    seen: set[str] = set()
    for utxo in utxos:
        if utxo.txid in seen:
            raise DuplicateOutput(f"duplicate tx id: {utxo.txid}")
        seen.add(utxo.txid)

    return [utxo for utxo in utxos if utxo.confirmations >= min_confirmations]


def accumulate(utxos: list[UnspentOutput], target_atoms: int) -> UtxoSelection:
    """
    Take the shortest prefix of utxos whose sum strictly exceeds target_atoms.

    Raises:
        NoUtxosFound: If utxos is empty
        InsufficientFunds: If all of utxos together do not exceed target_atoms
    """
    if not utxos:
        raise NoUtxosFound("0 utxos found to assemble transaction")

    selected: list[UnspentOutput] = []
    found = 0
    for utxo in utxos:
        selected.append(utxo)
        found += utxo.atoms
        if found > target_atoms:
            break

    if found <= target_atoms:
        raise InsufficientFunds(f"not enough total value: {to_coins(found)}")
    return UtxoSelection(utxos=selected, found_atoms=found)


async def select_utxos(
    explorer: BlockExplorer, address: str, min_confirmations: int, target_atoms: int
) -> UtxoSelection:
    """Fetch the UTXOs of address and select enough of them to cover target_atoms."""
    utxos = await explorer.get_utxos(address)
    confirmed = filter_confirmed(utxos, min_confirmations)
    logger.debug(
        f"{len(confirmed)} of {len(utxos)} UTXOs for {address} have "
        f">= {min_confirmations} confirmations"
    )

    selection = accumulate(confirmed, target_atoms)
    logger.debug(
        f"Selected {len(selection.utxos)} UTXOs totalling {selection.found_amount} "
        f"for target {to_coins(target_atoms)}"
    )
    return selection
