"""
Decred script helpers.

Builds pay-to-address locking scripts, parses standard multisig redeem
scripts and disassembles scripts for display.
"""

from __future__ import annotations

import struct
from collections.abc import Iterator

from dcrms.errors import ScriptDecodeError

OP_0 = 0x00
OP_DATA_20 = 0x14
OP_DATA_33 = 0x21
OP_DATA_75 = 0x4B
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E
OP_1NEGATE = 0x4F
OP_1 = 0x51
OP_2 = 0x52
OP_16 = 0x60
OP_RETURN = 0x6A
OP_DUP = 0x76
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88
OP_HASH160 = 0xA9
OP_CHECKSIG = 0xAC
OP_CHECKMULTISIG = 0xAE
OP_SSTX = 0xBA
OP_SSGEN = 0xBB
OP_SSRTX = 0xBC
OP_SSTXCHANGE = 0xBD
OP_CHECKSIGALT = 0xBE
OP_TADD = 0xC1
OP_TSPEND = 0xC2
OP_TGEN = 0xC3

# Signature types used by OP_CHECKSIGALT
SIG_TYPE_ED25519 = 1
SIG_TYPE_SCHNORR_SECP256K1 = 2

_NAMED_OPCODES = {
    0x4C: "OP_PUSHDATA1",
    0x4D: "OP_PUSHDATA2",
    0x4E: "OP_PUSHDATA4",
    0x4F: "OP_1NEGATE",
    0x50: "OP_RESERVED",
    0x61: "OP_NOP",
    0x62: "OP_VER",
    0x63: "OP_IF",
    0x64: "OP_NOTIF",
    0x65: "OP_VERIF",
    0x66: "OP_VERNOTIF",
    0x67: "OP_ELSE",
    0x68: "OP_ENDIF",
    0x69: "OP_VERIFY",
    0x6A: "OP_RETURN",
    0x6B: "OP_TOALTSTACK",
    0x6C: "OP_FROMALTSTACK",
    0x6D: "OP_2DROP",
    0x6E: "OP_2DUP",
    0x6F: "OP_3DUP",
    0x70: "OP_2OVER",
    0x71: "OP_2ROT",
    0x72: "OP_2SWAP",
    0x73: "OP_IFDUP",
    0x74: "OP_DEPTH",
    0x75: "OP_DROP",
    0x76: "OP_DUP",
    0x77: "OP_NIP",
    0x78: "OP_OVER",
    0x79: "OP_PICK",
    0x7A: "OP_ROLL",
    0x7B: "OP_ROT",
    0x7C: "OP_SWAP",
    0x7D: "OP_TUCK",
    0x7E: "OP_CAT",
    0x7F: "OP_SUBSTR",
    0x80: "OP_LEFT",
    0x81: "OP_RIGHT",
    0x82: "OP_SIZE",
    0x83: "OP_INVERT",
    0x84: "OP_AND",
    0x85: "OP_OR",
    0x86: "OP_XOR",
    0x87: "OP_EQUAL",
    0x88: "OP_EQUALVERIFY",
    0x89: "OP_ROTR",
    0x8A: "OP_ROTL",
    0x8B: "OP_1ADD",
    0x8C: "OP_1SUB",
    0x8D: "OP_2MUL",
    0x8E: "OP_2DIV",
    0x8F: "OP_NEGATE",
    0x90: "OP_ABS",
    0x91: "OP_NOT",
    0x92: "OP_0NOTEQUAL",
    0x93: "OP_ADD",
    0x94: "OP_SUB",
    0x95: "OP_MUL",
    0x96: "OP_DIV",
    0x97: "OP_MOD",
    0x98: "OP_LSHIFT",
    0x99: "OP_RSHIFT",
    0x9A: "OP_BOOLAND",
    0x9B: "OP_BOOLOR",
    0x9C: "OP_NUMEQUAL",
    0x9D: "OP_NUMEQUALVERIFY",
    0x9E: "OP_NUMNOTEQUAL",
    0x9F: "OP_LESSTHAN",
    0xA0: "OP_GREATERTHAN",
    0xA1: "OP_LESSTHANOREQUAL",
    0xA2: "OP_GREATERTHANOREQUAL",
    0xA3: "OP_MIN",
    0xA4: "OP_MAX",
    0xA5: "OP_WITHIN",
    0xA6: "OP_RIPEMD160",
    0xA7: "OP_SHA1",
    0xA8: "OP_BLAKE256",
    0xA9: "OP_HASH160",
    0xAA: "OP_HASH256",
    0xAB: "OP_CODESEPARATOR",
    0xAC: "OP_CHECKSIG",
    0xAD: "OP_CHECKSIGVERIFY",
    0xAE: "OP_CHECKMULTISIG",
    0xAF: "OP_CHECKMULTISIGVERIFY",
    0xB0: "OP_NOP1",
    0xB1: "OP_CHECKLOCKTIMEVERIFY",
    0xB2: "OP_CHECKSEQUENCEVERIFY",
    0xBA: "OP_SSTX",
    0xBB: "OP_SSGEN",
    0xBC: "OP_SSRTX",
    0xBD: "OP_SSTXCHANGE",
    0xBE: "OP_CHECKSIGALT",
    0xBF: "OP_CHECKSIGALTVERIFY",
    0xC0: "OP_SHA256",
    0xC1: "OP_TADD",
    0xC2: "OP_TSPEND",
    0xC3: "OP_TGEN",
    0xFF: "OP_INVALIDOPCODE",
}
for _n in range(4, 11):
    _NAMED_OPCODES[0xB0 + _n - 1] = f"OP_NOP{_n}"


def opcode_name(opcode: int) -> str:
    """Return the canonical name of an opcode."""
    if opcode == OP_0:
        return "OP_0"
    if opcode <= OP_DATA_75:
        return f"OP_DATA_{opcode}"
    if OP_1 <= opcode <= OP_16:
        return f"OP_{opcode - OP_1 + 1}"
    return _NAMED_OPCODES.get(opcode, f"OP_UNKNOWN{opcode}")


def iter_script_ops(script: bytes) -> Iterator[tuple[int, bytes | None]]:
    """
    Yield (opcode, pushed data) pairs for a script.

    Raises:
        ScriptDecodeError: If a data push runs past the end of the script
    """
    offset = 0
    while offset < len(script):
        opcode = script[offset]
        offset += 1

        if opcode > OP_PUSHDATA4:
            yield opcode, None
            continue

        if opcode <= OP_DATA_75:
            length = opcode
        else:
            width = {OP_PUSHDATA1: 1, OP_PUSHDATA2: 2, OP_PUSHDATA4: 4}[opcode]
            if offset + width > len(script):
                raise ScriptDecodeError(
                    f"{opcode_name(opcode)} at offset {offset - 1} is missing its length"
                )
            length = int.from_bytes(script[offset : offset + width], "little")
            offset += width

        if offset + length > len(script):
            raise ScriptDecodeError(
                f"{opcode_name(opcode)} requires {length} bytes, "
                f"only {len(script) - offset} remaining"
            )
        yield opcode, script[offset : offset + length]
        offset += length


def push_data(data: bytes) -> bytes:
    """Return the canonical (minimal) push of data."""
    length = len(data)
    if length == 0 or (length == 1 and data[0] == 0):
        return bytes([OP_0])
    if length == 1 and 1 <= data[0] <= 16:
        return bytes([OP_1 + data[0] - 1])
    if length == 1 and data[0] == 0x81:
        return bytes([OP_1NEGATE])
    if length <= OP_DATA_75:
        return bytes([length]) + data
    if length <= 0xFF:
        return bytes([OP_PUSHDATA1, length]) + data
    if length <= 0xFFFF:
        return bytes([OP_PUSHDATA2]) + struct.pack("<H", length) + data
    return bytes([OP_PUSHDATA4]) + struct.pack("<I", length) + data


def small_int(opcode: int) -> int:
    """Decode OP_0 / OP_1..OP_16 to an integer."""
    if opcode == OP_0:
        return 0
    if OP_1 <= opcode <= OP_16:
        return opcode - OP_1 + 1
    raise ScriptDecodeError(f"{opcode_name(opcode)} is not a small integer")


def p2pkh_script(pubkey_hash: bytes, sig_type: int | None = None) -> bytes:
    """
    Pay-to-pubkey-hash script.

    ECDSA secp256k1 uses OP_CHECKSIG, alternative signature types use
    <sigtype> OP_CHECKSIGALT.
    """
    if len(pubkey_hash) != 20:
        raise ValueError(f"Invalid pubkey hash length: {len(pubkey_hash)}")
    script = bytes([OP_DUP, OP_HASH160, OP_DATA_20]) + pubkey_hash + bytes([OP_EQUALVERIFY])
    if sig_type is None:
        return script + bytes([OP_CHECKSIG])
    return script + bytes([OP_1 + sig_type - 1, OP_CHECKSIGALT])


def p2sh_script(script_hash: bytes) -> bytes:
    """Pay-to-script-hash script: OP_HASH160 <20-byte hash> OP_EQUAL."""
    if len(script_hash) != 20:
        raise ValueError(f"Invalid script hash length: {len(script_hash)}")
    return bytes([OP_HASH160, OP_DATA_20]) + script_hash + bytes([OP_EQUAL])


def p2pk_script(pubkey: bytes) -> bytes:
    """Pay-to-pubkey script for a compressed secp256k1 key."""
    if len(pubkey) != 33:
        raise ValueError(f"Invalid compressed pubkey length: {len(pubkey)}")
    return bytes([OP_DATA_33]) + pubkey + bytes([OP_CHECKSIG])


def multisig_script(m: int, pubkeys: list[bytes]) -> bytes:
    """Standard M-of-N multisig redeem script."""
    n = len(pubkeys)
    if not 1 <= m <= n <= 16:
        raise ValueError(f"Invalid multisig threshold {m}-of-{n}")
    script = bytes([OP_1 + m - 1])
    for pubkey in pubkeys:
        script += push_data(pubkey)
    return script + bytes([OP_1 + n - 1, OP_CHECKMULTISIG])


def parse_multisig_script(script: bytes) -> tuple[int, list[bytes]]:
    """
    Parse a standard multisig script: OP_M <pubkey>... OP_N OP_CHECKMULTISIG.

    Returns:
        (required signatures, public keys)

    Raises:
        ScriptDecodeError: If the script is not a standard multisig script
    """
    ops = list(iter_script_ops(script))
    if len(ops) < 4 or ops[-1][0] != OP_CHECKMULTISIG:
        raise ScriptDecodeError("not a multisig script")

    m = small_int(ops[0][0])
    n = small_int(ops[-2][0])
    pubkeys = []
    for opcode, data in ops[1:-2]:
        if data is None or len(data) not in (33, 65):
            raise ScriptDecodeError(f"unexpected {opcode_name(opcode)} in multisig script")
        pubkeys.append(data)

    if n != len(pubkeys) or not 1 <= m <= n:
        raise ScriptDecodeError(f"invalid multisig threshold {m}-of-{n} with {len(pubkeys)} keys")
    return m, pubkeys


def first_opcode(script: bytes) -> int | None:
    """First opcode of a script, or None if empty."""
    return script[0] if script else None


def disasm_string(script: bytes) -> str:
    """
    Disassemble a script into a one-line human readable form.

    Data pushes are printed as hex, small integers as numbers, everything
    else by opcode name.

    Raises:
        ScriptDecodeError: If the script is malformed; the message carries
            the partial disassembly followed by '[error]'
    """
    parts: list[str] = []
    try:
        for opcode, data in iter_script_ops(script):
            if opcode == OP_0:
                parts.append("0")
            elif data is not None:
                parts.append(data.hex())
            elif opcode == OP_1NEGATE:
                parts.append("-1")
            elif OP_1 <= opcode <= OP_16:
                parts.append(str(small_int(opcode)))
            else:
                parts.append(opcode_name(opcode))
    except ScriptDecodeError as e:
        parts.append("[error]")
        raise ScriptDecodeError(f"{' '.join(parts)}: {e}") from e
    return " ".join(parts)
