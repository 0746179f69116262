"""
Multisig redeem script resolution.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from dcrms.backends.base import WalletSigner
from dcrms.errors import MalformedHex, RedeemInfoUnavailable, RPCError, ScriptDecodeError
from dcrms.tx.script import parse_multisig_script
from dcrms.tx.wire import decode_hex


@dataclass
class RedeemScriptInfo:
    """Redeem script and signer threshold of a multisig address."""

    address: str
    redeem_script: bytes
    m: int
    n: int
    pubkeys: list[str]


async def resolve_redeem_script(wallet: WalletSigner, txid: str, vout: int) -> RedeemScriptInfo:
    """
    Look up the redeem script behind a multisig output.

    Any one output of a multisig address is representative of the address.

    Raises:
        ScriptDecodeError: If the redeem script is not valid hex
        RedeemInfoUnavailable: If the wallet does not know the output as multisig
    """
    try:
        info = await wallet.get_multisig_out_info(txid, vout)
    except RPCError as e:
        raise RedeemInfoUnavailable(f"getmultisigoutinfo {txid}:{vout}: {e.rpc_message}") from e

    if not info.redeem_script or info.m <= 0:
        raise RedeemInfoUnavailable(f"{txid}:{vout} is not a known multisig output")

    try:
        redeem_script = decode_hex(info.redeem_script)
    except MalformedHex as e:
        raise ScriptDecodeError(f"decode redeem script: {e}") from e

    try:
        m, pubkeys = parse_multisig_script(redeem_script)
    except ScriptDecodeError as e:
        raise RedeemInfoUnavailable(f"{txid}:{vout}: {e}") from e

    if m != info.m or (info.n and len(pubkeys) != info.n):
        raise RedeemInfoUnavailable(
            f"{txid}:{vout}: redeem script is {m}-of-{len(pubkeys)}, "
            f"wallet reports {info.m}-of-{info.n}"
        )

    logger.debug(f"Redeem script for {info.address}: {m}-of-{len(pubkeys)}")
    return RedeemScriptInfo(
        address=info.address,
        redeem_script=redeem_script,
        m=info.m,
        n=info.n or len(pubkeys),
        pubkeys=info.pubkeys or [pk.hex() for pk in pubkeys],
    )
