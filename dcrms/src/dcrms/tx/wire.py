"""
Decred transaction wire format.

A serialized transaction starts with a uint32 whose low 16 bits are the
transaction version and high 16 bits the serialization type:

- full: prefix followed by witness
- no-witness: prefix only (this is what the transaction hash commits to)
- only-witness: witness only

Prefix:  varint(#in) [hash(32) index(u32) tree(i8) sequence(u32)]...
         varint(#out) [value(i64) version(u16) varint(len) script]...
         locktime(u32) expiry(u32)
Witness: varint(#in) [value_in(i64) height(u32) index(u32) varint(len) script]...
"""

from __future__ import annotations

import binascii
import struct
from dataclasses import dataclass, field
from enum import IntEnum

from dcrms.constants import (
    DEFAULT_PK_SCRIPT_VERSION,
    HASH_SIZE,
    MAX_TX_IN_SEQUENCE_NUM,
    NULL_BLOCK_HEIGHT,
    NULL_BLOCK_INDEX,
    TX_VERSION,
)
from dcrms.errors import MalformedHex, MalformedTransaction
from dcrms.tx.address import blake256

# Minimum serialized sizes, used to bound counts read from untrusted input
MIN_TX_IN_PREFIX_SIZE = HASH_SIZE + 4 + 1 + 4
MIN_TX_OUT_SIZE = 8 + 2 + 1
MIN_TX_IN_WITNESS_SIZE = 8 + 4 + 4 + 1


class TxTree(IntEnum):
    REGULAR = 0
    STAKE = 1


class TxSerializeType(IntEnum):
    FULL = 0
    NO_WITNESS = 1
    ONLY_WITNESS = 2


def varint(n: int) -> bytes:
    """Encode integer as a varint."""
    if n < 0xFD:
        return bytes([n])
    elif n <= 0xFFFF:
        return bytes([0xFD]) + struct.pack("<H", n)
    elif n <= 0xFFFFFFFF:
        return bytes([0xFE]) + struct.pack("<I", n)
    else:
        return bytes([0xFF]) + struct.pack("<Q", n)


def varint_size(n: int) -> int:
    """Serialized size of a varint."""
    if n < 0xFD:
        return 1
    elif n <= 0xFFFF:
        return 3
    elif n <= 0xFFFFFFFF:
        return 5
    return 9


def var_bytes(data: bytes) -> bytes:
    return varint(len(data)) + data


class _Reader:
    """Bounds checked cursor over a byte buffer."""

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def read(self, n: int) -> bytes:
        if n > self.remaining:
            raise MalformedTransaction(
                f"unexpected end of data at offset {self.offset}: "
                f"need {n} bytes, have {self.remaining}"
            )
        chunk = self.data[self.offset : self.offset + n]
        self.offset += n
        return chunk

    def unpack(self, fmt: str) -> int:
        return struct.unpack(fmt, self.read(struct.calcsize(fmt)))[0]

    def read_varint(self) -> int:
        discriminant = self.read(1)[0]
        if discriminant < 0xFD:
            return discriminant

        fmt, minimum = {0xFD: ("<H", 0xFD), 0xFE: ("<I", 0x10000), 0xFF: ("<Q", 0x100000000)}[
            discriminant
        ]
        value = self.unpack(fmt)
        if value < minimum:
            raise MalformedTransaction(
                f"non-canonical varint {value} encoded with discriminant {discriminant:#x}"
            )
        return value

    def read_count(self, min_item_size: int, what: str) -> int:
        count = self.read_varint()
        if count * min_item_size > self.remaining:
            raise MalformedTransaction(
                f"{what} count {count} exceeds the {self.remaining} remaining bytes"
            )
        return count

    def read_var_bytes(self, what: str) -> bytes:
        length = self.read_varint()
        if length > self.remaining:
            raise MalformedTransaction(
                f"{what} length {length} exceeds the {self.remaining} remaining bytes"
            )
        return self.read(length)


@dataclass
class OutPoint:
    """Reference to a previous transaction output."""

    hash: bytes = bytes(HASH_SIZE)
    index: int = 0
    tree: int = TxTree.REGULAR

    @classmethod
    def from_txid(cls, txid: str, index: int, tree: int) -> OutPoint:
        """Build an outpoint from an RPC-format (byte reversed) txid."""
        try:
            hash_bytes = bytes.fromhex(txid)[::-1]
        except ValueError:
            raise MalformedHex(f"invalid txid: {txid}") from None
        if len(hash_bytes) != HASH_SIZE:
            raise MalformedHex(f"invalid txid length: {txid}")
        return cls(hash=hash_bytes, index=index, tree=tree)

    @property
    def txid(self) -> str:
        return self.hash[::-1].hex()

    def __str__(self) -> str:
        return f"{self.txid}:{self.index}"


@dataclass
class TxIn:
    """Transaction input."""

    previous_outpoint: OutPoint = field(default_factory=OutPoint)
    sequence: int = MAX_TX_IN_SEQUENCE_NUM
    value_in: int = 0
    block_height: int = NULL_BLOCK_HEIGHT
    block_index: int = NULL_BLOCK_INDEX
    signature_script: bytes = b""

    def serialize_prefix(self) -> bytes:
        op = self.previous_outpoint
        return op.hash + struct.pack("<IbI", op.index, op.tree, self.sequence)

    def serialize_witness(self) -> bytes:
        result = struct.pack("<qII", self.value_in, self.block_height, self.block_index)
        result += var_bytes(self.signature_script)
        return result


@dataclass
class TxOut:
    """Transaction output."""

    value: int
    pk_script: bytes
    version: int = DEFAULT_PK_SCRIPT_VERSION

    def serialize(self) -> bytes:
        return struct.pack("<qH", self.value, self.version) + var_bytes(self.pk_script)


@dataclass
class MsgTx:
    """A Decred transaction."""

    version: int = TX_VERSION
    ser_type: TxSerializeType = TxSerializeType.FULL
    tx_in: list[TxIn] = field(default_factory=list)
    tx_out: list[TxOut] = field(default_factory=list)
    lock_time: int = 0
    expiry: int = 0

    def add_tx_in(self, tx_in: TxIn) -> None:
        self.tx_in.append(tx_in)

    def add_tx_out(self, tx_out: TxOut) -> None:
        self.tx_out.append(tx_out)

    def _serialize_prefix(self) -> bytes:
        result = varint(len(self.tx_in))
        for tx_in in self.tx_in:
            result += tx_in.serialize_prefix()
        result += varint(len(self.tx_out))
        for tx_out in self.tx_out:
            result += tx_out.serialize()
        result += struct.pack("<II", self.lock_time, self.expiry)
        return result

    def _serialize_witness(self) -> bytes:
        result = varint(len(self.tx_in))
        for tx_in in self.tx_in:
            result += tx_in.serialize_witness()
        return result

    def serialize(self, ser_type: TxSerializeType | None = None) -> bytes:
        """Serialize with the given (default: own) serialization type."""
        ser_type = self.ser_type if ser_type is None else ser_type
        result = struct.pack("<I", self.version | (int(ser_type) << 16))
        if ser_type != TxSerializeType.ONLY_WITNESS:
            result += self._serialize_prefix()
        if ser_type != TxSerializeType.NO_WITNESS:
            result += self._serialize_witness()
        return result

    def serialize_size(self) -> int:
        return len(self.serialize())

    def tx_hash(self) -> bytes:
        """BLAKE-256 of the prefix serialization."""
        return blake256(self.serialize(TxSerializeType.NO_WITNESS))

    def txid(self) -> str:
        return self.tx_hash()[::-1].hex()

    @classmethod
    def deserialize(cls, data: bytes) -> MsgTx:
        """
        Parse a serialized transaction.

        Raises:
            MalformedTransaction: On any structural error, including trailing data
        """
        reader = _Reader(data)
        raw_version = reader.unpack("<I")
        try:
            ser_type = TxSerializeType(raw_version >> 16)
        except ValueError:
            raise MalformedTransaction(
                f"unsupported serialization type {raw_version >> 16}"
            ) from None

        tx = cls(version=raw_version & 0xFFFF, ser_type=ser_type)

        if ser_type != TxSerializeType.ONLY_WITNESS:
            tx._decode_prefix(reader)
        if ser_type != TxSerializeType.NO_WITNESS:
            tx._decode_witness(reader, with_prefix=ser_type == TxSerializeType.FULL)

        if reader.remaining:
            raise MalformedTransaction(f"{reader.remaining} trailing bytes after transaction")
        return tx

    def _decode_prefix(self, reader: _Reader) -> None:
        for _ in range(reader.read_count(MIN_TX_IN_PREFIX_SIZE, "input")):
            hash_bytes = reader.read(HASH_SIZE)
            index, tree, sequence = struct.unpack("<IbI", reader.read(9))
            self.tx_in.append(
                TxIn(previous_outpoint=OutPoint(hash_bytes, index, tree), sequence=sequence)
            )

        for _ in range(reader.read_count(MIN_TX_OUT_SIZE, "output")):
            value, version = struct.unpack("<qH", reader.read(10))
            pk_script = reader.read_var_bytes("pk script")
            self.tx_out.append(TxOut(value=value, pk_script=pk_script, version=version))

        self.lock_time, self.expiry = struct.unpack("<II", reader.read(8))

    def _decode_witness(self, reader: _Reader, with_prefix: bool) -> None:
        count = reader.read_count(MIN_TX_IN_WITNESS_SIZE, "witness")
        if with_prefix and count != len(self.tx_in):
            raise MalformedTransaction(
                f"mismatched witness/prefix input counts: {count} != {len(self.tx_in)}"
            )
        if not with_prefix:
            self.tx_in = [TxIn() for _ in range(count)]

        for tx_in in self.tx_in:
            tx_in.value_in, tx_in.block_height, tx_in.block_index = struct.unpack(
                "<qII", reader.read(16)
            )
            tx_in.signature_script = reader.read_var_bytes("signature script")


def decode_hex(text: str) -> bytes:
    """
    Strict hex decode.

    Raises:
        MalformedHex: On odd length or any non-hex character, whitespace included
    """
    try:
        return binascii.unhexlify(text)
    except ValueError as e:
        raise MalformedHex(f"invalid hex: {e}") from e


def encode_tx(tx: MsgTx) -> str:
    """Hex encode a transaction."""
    return tx.serialize().hex()


def decode_tx(text: str) -> MsgTx:
    """
    Decode a hex encoded transaction.

    Raises:
        MalformedHex: If the text is not valid hex
        MalformedTransaction: If the bytes are not a valid transaction
    """
    return MsgTx.deserialize(decode_hex(text))
