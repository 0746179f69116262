"""
Worst case serialize size estimation and relay fee calculation.
"""

from __future__ import annotations

from dcrms.constants import (
    DEFAULT_RELAY_FEE_PER_KB,
    MAX_AMOUNT,
    REDEEM_P2PKH_SIG_SCRIPT_SIZE,
    TX_OVERHEAD_SIZE,
)
from dcrms.tx.script import push_data
from dcrms.tx.wire import varint_size


def estimate_input_size(script_size: int) -> int:
    """
    Serialized size of one input with a signature script of script_size.

    Prefix: 32 hash + 4 index + 1 tree + 4 sequence
    Witness: 8 value + 4 height + 4 index + varint + script
    """
    return 32 + 4 + 1 + 8 + 4 + 4 + varint_size(script_size) + script_size + 4


def estimate_output_size(script_size: int) -> int:
    """Serialized size of one output: 8 value + 2 version + varint + script."""
    return 8 + 2 + varint_size(script_size) + script_size


def estimate_serialize_size_from_script_sizes(
    input_sizes: list[int], output_sizes: list[int], change_script_size: int
) -> int:
    """
    Estimated full serialization size of a transaction.

    A change_script_size of zero means no change output.
    """
    ins_size = sum(estimate_input_size(size) for size in input_sizes)
    outs_size = sum(estimate_output_size(size) for size in output_sizes)

    output_count = len(output_sizes)
    change_size = 0
    if change_script_size > 0:
        change_size = estimate_output_size(change_script_size)
        output_count += 1

    # Input count appears in both prefix and witness
    return (
        TX_OVERHEAD_SIZE
        + 2 * varint_size(len(input_sizes))
        + varint_size(output_count)
        + ins_size
        + outs_size
        + change_size
    )


def multisig_sig_script_size(signers: int, redeem_script: bytes) -> int:
    """
    Signature script size for spending a P2SH multisig output.

    One signature push per required signer (sized like a P2PKH redemption,
    which slightly overpays) plus the push of the redeem script.
    """
    return REDEEM_P2PKH_SIG_SCRIPT_SIZE * signers + len(push_data(redeem_script))


def fee_for_serialize_size(relay_fee_per_kb: int, tx_serialize_size: int) -> int:
    """
    Fee in atoms for a transaction of the given size, rounded up.

    Never zero when the rate is positive, never above MAX_AMOUNT.
    """
    fee = -(-relay_fee_per_kb * tx_serialize_size // 1000)
    if fee == 0 and relay_fee_per_kb > 0:
        fee = relay_fee_per_kb
    if fee < 0 or fee > MAX_AMOUNT:
        fee = MAX_AMOUNT
    return fee


def estimate_fee(
    input_sizes: list[int],
    output_sizes: list[int],
    change_script_size: int,
    relay_fee_per_kb: int = DEFAULT_RELAY_FEE_PER_KB,
) -> tuple[int, int]:
    """
    Returns:
        (estimated size, fee in atoms)
    """
    size = estimate_serialize_size_from_script_sizes(input_sizes, output_sizes, change_script_size)
    return size, fee_for_serialize_size(relay_fee_per_kb, size)
