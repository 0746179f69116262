"""
Unsigned multisig transaction assembly.

Builds a transaction spending UTXOs of a P2SH multisig address:
- one payment output to the destination
- one change output back to the multisig address
- one input per selected UTXO, with an empty signature script

Signatures are added later by the wallet; assembly never touches keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from dcrms.amount import format_coins, to_atoms
from dcrms.backends.base import BlockExplorer, WalletSigner
from dcrms.constants import DEFAULT_CONFIRMATIONS, DEFAULT_RELAY_FEE_PER_KB, P2SH_PK_SCRIPT_SIZE
from dcrms.errors import (
    AmountConversionError,
    ArgumentError,
    DecodeError,
    InsufficientWalletBalance,
    MalformedTransaction,
    NegativeChange,
    RedeemInfoUnavailable,
)
from dcrms.models import UnspentOutput
from dcrms.netparams import NetParams
from dcrms.redeem import RedeemScriptInfo, resolve_redeem_script
from dcrms.selection import UtxoSelection, select_utxos
from dcrms.tx.address import decode_address, script_hash_address
from dcrms.tx.stake import tx_tree
from dcrms.tx.txsizes import estimate_fee, multisig_sig_script_size
from dcrms.tx.wire import MsgTx, OutPoint, TxIn, TxOut, TxTree, decode_tx


@dataclass
class SpendableInput:
    """A UTXO whose outpoint tree has been resolved."""

    utxo: UnspentOutput
    tree: TxTree

    @property
    def outpoint(self) -> OutPoint:
        return OutPoint.from_txid(self.utxo.txid, self.utxo.vout, self.tree)

    def to_tx_in(self) -> TxIn:
        """Unsigned input: empty signature script, value-in set to the UTXO amount."""
        return TxIn(previous_outpoint=self.outpoint, value_in=self.utxo.atoms)


@dataclass
class AssembledTx:
    """An unsigned multisig transaction and how it was built."""

    tx: MsgTx
    selection: UtxoSelection
    redeem: RedeemScriptInfo
    inputs: list[SpendableInput]
    amount_atoms: int
    change_atoms: int
    fee: int
    estimated_size: int

    def serialize(self) -> bytes:
        return self.tx.serialize()

    @property
    def hex(self) -> str:
        return self.serialize().hex()


async def resolve_spendable_input(explorer: BlockExplorer, utxo: UnspentOutput) -> SpendableInput:
    """
    Determine the tree of a UTXO by classifying the transaction that created it.

    Raises:
        MalformedHex, MalformedTransaction: If the parent transaction can't be
            decoded or does not match the UTXO
    """
    raw = await explorer.get_raw_transaction(utxo.txid)
    try:
        parent = decode_tx(raw)
    except DecodeError as e:
        raise type(e)(f"parent transaction {utxo.txid}: {e}") from e

    if parent.txid() != utxo.txid:
        raise MalformedTransaction(
            f"explorer returned transaction {parent.txid()} for {utxo.txid}"
        )
    if utxo.vout >= len(parent.tx_out):
        raise MalformedTransaction(
            f"{utxo.outpoint}: parent transaction has only {len(parent.tx_out)} outputs"
        )

    tree = tx_tree(parent)
    logger.debug(f"{utxo.outpoint} is in the {tree.name.lower()} tree")
    return SpendableInput(utxo=utxo, tree=tree)


async def resolve_spendable_inputs(
    explorer: BlockExplorer, utxos: list[UnspentOutput]
) -> list[SpendableInput]:
    """Resolve every UTXO in order, one explorer request each."""
    return [await resolve_spendable_input(explorer, utxo) for utxo in utxos]


async def assemble_multisig_tx(
    wallet: WalletSigner,
    explorer: BlockExplorer,
    params: NetParams,
    change_address: str,
    destination_address: str,
    amount: str | Decimal | float,
    confirmations: int = DEFAULT_CONFIRMATIONS,
    relay_fee_per_kb: int = DEFAULT_RELAY_FEE_PER_KB,
) -> AssembledTx:
    """
    Assemble an unsigned transaction paying amount from a multisig address.

    Args:
        wallet: Wallet signing service (balance check, redeem script lookup)
        explorer: Block explorer (UTXOs, parent transactions)
        params: Active network parameters
        change_address: The multisig address being spent; receives the change
        destination_address: Payment destination
        amount: Payment amount in coins
        confirmations: Minimum confirmations of spent UTXOs
        relay_fee_per_kb: Fee rate in atoms per kB

    Returns:
        AssembledTx with the unsigned transaction

    Raises:
        InvalidAddress, AmountConversionError, InsufficientWalletBalance,
        NoUtxosFound, DuplicateOutput, InsufficientFunds, RedeemInfoUnavailable,
        ScriptDecodeError, NegativeChange, NetworkError
    """
    change = decode_address(change_address, params)
    destination = decode_address(destination_address, params)

    amount_atoms = to_atoms(amount)
    if amount_atoms <= 0:
        raise AmountConversionError(f"amount must be positive: {amount}")
    if confirmations < 0:
        raise ArgumentError(f"confirmations must not be negative: {confirmations}")

    # Coarse check before touching the explorer
    balance = await wallet.get_balance()
    if to_atoms(balance.total_spendable) < amount_atoms:
        raise InsufficientWalletBalance(
            f"balance too low: available {balance.total_spendable}"
        )

    selection = await select_utxos(explorer, change_address, confirmations, amount_atoms)

    first = selection.utxos[0]
    redeem = await resolve_redeem_script(wallet, first.txid, first.vout)
    if script_hash_address(redeem.redeem_script, params) != change:
        raise RedeemInfoUnavailable(
            f"redeem script of {first.outpoint} does not hash to {change_address}"
        )

    inputs = await resolve_spendable_inputs(explorer, selection.utxos)

    unsigned_tx = MsgTx()
    payment_script = destination.pay_to_script()
    unsigned_tx.add_tx_out(TxOut(value=amount_atoms, pk_script=payment_script))

    sig_script_size = multisig_sig_script_size(redeem.m, redeem.redeem_script)
    size, fee = estimate_fee(
        input_sizes=[sig_script_size] * len(inputs),
        output_sizes=[len(payment_script)],
        change_script_size=P2SH_PK_SCRIPT_SIZE,
        relay_fee_per_kb=relay_fee_per_kb,
    )

    change_atoms = selection.found_atoms - amount_atoms - fee
    if change_atoms <= 0:
        raise NegativeChange(
            f"change would be {format_coins(change_atoms)}: inputs "
            f"{format_coins(selection.found_atoms)}, amount {format_coins(amount_atoms)}, "
            f"fee {format_coins(fee)}"
        )
    unsigned_tx.add_tx_out(TxOut(value=change_atoms, pk_script=change.pay_to_script()))

    for spendable in inputs:
        unsigned_tx.add_tx_in(spendable.to_tx_in())

    logger.info(
        f"Assembled {len(inputs)}-input transaction: amount {format_coins(amount_atoms)}, "
        f"fee {format_coins(fee)} (~{size} bytes), change {format_coins(change_atoms)}"
    )
    logger.trace(f"{unsigned_tx!r}")

    return AssembledTx(
        tx=unsigned_tx,
        selection=selection,
        redeem=redeem,
        inputs=inputs,
        amount_atoms=amount_atoms,
        change_atoms=change_atoms,
        fee=fee,
        estimated_size=size,
    )
