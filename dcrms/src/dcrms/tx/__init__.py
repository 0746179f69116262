"""
Decred transaction primitives: wire codec, addresses, scripts, stake
classification and size estimation.
"""

from dcrms.tx.address import Address, AddressType, decode_address, pubkey_address
from dcrms.tx.stake import TxType, determine_tx_type, tx_tree
from dcrms.tx.wire import (
    MsgTx,
    OutPoint,
    TxIn,
    TxOut,
    TxSerializeType,
    TxTree,
    decode_hex,
    decode_tx,
    encode_tx,
)

__all__ = [
    "Address",
    "AddressType",
    "MsgTx",
    "OutPoint",
    "TxIn",
    "TxOut",
    "TxSerializeType",
    "TxTree",
    "TxType",
    "decode_address",
    "decode_hex",
    "decode_tx",
    "determine_tx_type",
    "encode_tx",
    "pubkey_address",
    "tx_tree",
]
