"""
Structural stake transaction classification.

Outputs created by stake transactions (tickets, votes, revocations and
treasury transactions) live in the stake tree, so an input spending them
must reference its outpoint with the stake tree tag.
"""

from __future__ import annotations

from enum import Enum

from dcrms.constants import MAX_PREV_OUT_INDEX, TX_VERSION_TREASURY
from dcrms.errors import ScriptDecodeError
from dcrms.tx.script import (
    OP_RETURN,
    OP_SSGEN,
    OP_SSRTX,
    OP_SSTX,
    OP_SSTXCHANGE,
    OP_TADD,
    OP_TGEN,
    OP_TSPEND,
    first_opcode,
    iter_script_ops,
)
from dcrms.tx.wire import MsgTx, TxIn, TxOut, TxTree

TREASURY_VOTE_MARKER = b"TV"


class TxType(str, Enum):
    REGULAR = "regular"
    TICKET = "ticket"
    VOTE = "vote"
    REVOCATION = "revocation"
    TREASURY_ADD = "treasury-add"
    TREASURY_SPEND = "treasury-spend"
    TREASURY_BASE = "treasury-base"


def _is_null_outpoint(tx_in: TxIn) -> bool:
    op = tx_in.previous_outpoint
    return op.index == MAX_PREV_OUT_INDEX and not any(op.hash)


def _opcodes(tx: MsgTx) -> list[int | None]:
    return [first_opcode(out.pk_script) for out in tx.tx_out]


def is_ticket(tx: MsgTx) -> bool:
    """
    Ticket purchase: first output tagged OP_SSTX, followed by pairs of
    OP_RETURN commitments and OP_SSTXCHANGE outputs.
    """
    ops = _opcodes(tx)
    if not tx.tx_in or len(ops) < 3 or len(ops) % 2 == 0 or ops[0] != OP_SSTX:
        return False
    return all(
        op == (OP_RETURN if i % 2 == 1 else OP_SSTXCHANGE) for i, op in enumerate(ops[1:], start=1)
    )


def _is_treasury_vote(out: TxOut) -> bool:
    """OP_RETURN output carrying a "TV" treasury spend vote."""
    try:
        ops = list(iter_script_ops(out.pk_script))
    except ScriptDecodeError:
        return False
    return (
        len(ops) == 2
        and ops[0][0] == OP_RETURN
        and ops[1][1] is not None
        and ops[1][1].startswith(TREASURY_VOTE_MARKER)
    )


def is_vote(tx: MsgTx) -> bool:
    """
    Vote: stakebase input, two OP_RETURN outputs, then OP_SSGEN outputs.

    Treasury-version votes may end with an OP_RETURN "TV" output.
    """
    ops = _opcodes(tx)
    if len(tx.tx_in) != 2 or len(ops) < 3 or not _is_null_outpoint(tx.tx_in[0]):
        return False
    if tx.version == TX_VERSION_TREASURY and _is_treasury_vote(tx.tx_out[-1]):
        ops = ops[:-1]
    if len(ops) < 3:
        return False
    return ops[0] == OP_RETURN and ops[1] == OP_RETURN and all(op == OP_SSGEN for op in ops[2:])


def is_revocation(tx: MsgTx) -> bool:
    """Revocation: every output tagged OP_SSRTX."""
    ops = _opcodes(tx)
    return len(tx.tx_in) == 1 and bool(ops) and all(op == OP_SSRTX for op in ops)


def is_treasury_add(tx: MsgTx) -> bool:
    """Treasury add: first output is exactly OP_TADD, optional OP_SSTXCHANGE change."""
    if tx.version != TX_VERSION_TREASURY or not tx.tx_in or not tx.tx_out:
        return False
    if tx.tx_out[0].pk_script != bytes([OP_TADD]):
        return False
    return all(first_opcode(out.pk_script) == OP_SSTXCHANGE for out in tx.tx_out[1:])


def is_treasury_spend(tx: MsgTx) -> bool:
    """Treasury spend: single null input ending in OP_TSPEND, OP_RETURN then OP_TGEN outputs."""
    if tx.version != TX_VERSION_TREASURY or len(tx.tx_in) != 1 or len(tx.tx_out) < 2:
        return False
    sig_script = tx.tx_in[0].signature_script
    if not sig_script or sig_script[-1] != OP_TSPEND:
        return False
    ops = _opcodes(tx)
    return ops[0] == OP_RETURN and all(op == OP_TGEN for op in ops[1:])


def is_treasury_base(tx: MsgTx) -> bool:
    """Treasury base: null input, OP_TADD output followed by an OP_RETURN."""
    if tx.version != TX_VERSION_TREASURY or len(tx.tx_in) != 1 or len(tx.tx_out) != 2:
        return False
    if not _is_null_outpoint(tx.tx_in[0]):
        return False
    return tx.tx_out[0].pk_script == bytes([OP_TADD]) and first_opcode(
        tx.tx_out[1].pk_script
    ) == OP_RETURN


def determine_tx_type(tx: MsgTx) -> TxType:
    """Classify a transaction."""
    if is_treasury_add(tx):
        return TxType.TREASURY_ADD
    if is_treasury_spend(tx):
        return TxType.TREASURY_SPEND
    if is_treasury_base(tx):
        return TxType.TREASURY_BASE
    if is_ticket(tx):
        return TxType.TICKET
    if is_vote(tx):
        return TxType.VOTE
    if is_revocation(tx):
        return TxType.REVOCATION
    return TxType.REGULAR


def tx_tree(tx: MsgTx) -> TxTree:
    """Tree in which the outputs of tx live."""
    if determine_tx_type(tx) == TxType.REGULAR:
        return TxTree.REGULAR
    return TxTree.STAKE
