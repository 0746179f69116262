"""
Command actions.

Each action takes the service context and its key=value arguments and
returns the text to print on stdout. Errors propagate to the CLI.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from dcrms.amount import to_atoms, to_coins
from dcrms.assembler import assemble_multisig_tx
from dcrms.backends.base import BlockExplorer, WalletSigner
from dcrms.constants import DEFAULT_CONFIRMATIONS
from dcrms.errors import (
    ArgumentError,
    DcrmsError,
    MalformedHex,
    RedeemInfoUnavailable,
    RPCError,
    ScriptDecodeError,
    Unimplemented,
)
from dcrms.netparams import NetParams
from dcrms.signing import broadcast_transaction, sign_transaction
from dcrms.tx.address import decode_address, pubkey_address
from dcrms.tx.script import disasm_string
from dcrms.tx.wire import MsgTx, decode_hex, decode_tx


@dataclass
class Context:
    """Services available to actions."""

    wallet: WalletSigner
    explorer: BlockExplorer
    params: NetParams


Args = dict[str, str]


def parse_args(args: list[str]) -> Args:
    """
    Parse key=value arguments. A bare key maps to the empty string.

    Raises:
        ArgumentError: On an empty key or a duplicate key
    """
    parsed: Args = {}
    for arg in args:
        key, _, value = arg.partition("=")
        if not key:
            raise ArgumentError(f"no argument: {arg}")
        if key in parsed:
            raise ArgumentError(f"duplicate argument: {key}")
        parsed[key] = value
    return parsed


def arg_as_str(name: str, args: Args) -> str:
    try:
        return args[name]
    except KeyError:
        raise ArgumentError(f"argument not found: {name}") from None


def arg_as_int(name: str, args: Args, default: int | None = None) -> int:
    if name not in args and default is not None:
        return default
    value = arg_as_str(name, args)
    try:
        return int(value, 10)
    except ValueError:
        raise ArgumentError(f"invalid integer for {name}: {value!r}") from None


def arg_as_uint(name: str, args: Args, default: int | None = None) -> int:
    value = arg_as_int(name, args, default)
    if value < 0:
        raise ArgumentError(f"{name} must not be negative: {value}")
    return value


def arg_as_list(name: str, args: Args) -> list[str]:
    return arg_as_str(name, args).split(",")


def arg_as_amount(name: str, args: Args) -> Decimal:
    """Coin amount argument, validated by converting to atoms."""
    value = arg_as_str(name, args)
    return to_coins(to_atoms(value))


async def get_multisig_balance(ctx: Context, args: Args) -> str:
    address = arg_as_str("address", args)
    info = await ctx.explorer.get_address_info(address)
    return f"{info.balance}"


async def get_wallet_balance(ctx: Context, args: Args) -> str:
    balance = await ctx.wallet.get_balance()
    return f"{balance.total_spendable}"


async def get_new_key(ctx: Context, args: Args) -> str:
    """New wallet key, printed as its public key address for sharing."""
    address = await ctx.wallet.get_new_address()
    logger.trace(f"New address: {address}")

    result = await ctx.wallet.validate_address(address)
    if not result.is_valid:
        raise DcrmsError(f"address is not valid: {address}")
    if not result.is_mine:
        raise DcrmsError(f"we don't control this address: {address}")
    return result.pubkey_addr


async def create_multisig_address(ctx: Context, args: Args) -> str:
    n_required = arg_as_uint("n", args)
    keys = arg_as_list("keys", args)
    result = await ctx.wallet.create_multisig(n_required, keys)
    return f"{result.address}\n{result.redeem_script}"


async def send_to_multisig(ctx: Context, args: Args) -> str:
    address = arg_as_str("address", args)
    amount = arg_as_amount("amount", args)
    return await ctx.wallet.send_to_address(address, amount)


async def create_multisig_tx(ctx: Context, args: Args) -> str:
    """Unsigned transaction hex spending from a multisig address."""
    assembled = await assemble_multisig_tx(
        ctx.wallet,
        ctx.explorer,
        ctx.params,
        change_address=arg_as_str("address", args),
        destination_address=arg_as_str("to", args),
        amount=arg_as_str("amount", args),
        confirmations=arg_as_uint("confirmations", args, DEFAULT_CONFIRMATIONS),
    )
    return assembled.hex


async def sign_multisig_tx(ctx: Context, args: Args) -> str:
    result = await sign_transaction(ctx.wallet, arg_as_str("tx", args))
    if result.complete:
        status = "Transaction signing complete"
    else:
        status = "Transaction signing not complete"
    return f"{status}\n{result.hex}"


async def broadcast_multisig_tx(ctx: Context, args: Args) -> str:
    return await broadcast_transaction(ctx.wallet, arg_as_str("tx", args))


async def multisig_info(ctx: Context, args: Args) -> str:
    """Participants and threshold of a multisig address, looked up through one of its UTXOs."""
    address = arg_as_str("address", args)
    decode_address(address, ctx.params)

    utxos = await ctx.explorer.get_utxos(address)
    if not utxos:
        raise RedeemInfoUnavailable(f"no information available for: {address}")

    first = utxos[0]
    try:
        info = await ctx.wallet.get_multisig_out_info(first.txid, first.vout)
    except RPCError as e:
        raise RedeemInfoUnavailable(f"getmultisigoutinfo: {e.rpc_message}") from e

    lines = [
        f"Address      : {info.address}",
        f"M            : {info.m}",
        f"N            : {info.n}",
    ]
    for pubkey in info.pubkeys:
        try:
            key_address = pubkey_address(decode_hex(pubkey), ctx.params)
        except DcrmsError as e:
            lines.append(f"Could not decode {pubkey}: {e}")
            continue
        lines.append(f"Public key   : {key_address}")
    lines.append(f"Redeem script: {info.redeem_script}")
    return "\n".join(lines)


async def import_redeem_script(ctx: Context, args: Args) -> str:
    script = arg_as_str("script", args)
    try:
        decode_hex(script)
    except MalformedHex as e:
        raise ScriptDecodeError(f"decode redeem script: {e}") from e
    await ctx.wallet.import_script(script, rescan=True)
    return ""


async def sweep_multisig(ctx: Context, args: Args) -> str:
    raise Unimplemented("sweepmultisig is not implemented yet")


def describe_tx(tx: MsgTx) -> str:
    """Human readable dump of a transaction, with disassembled signature scripts."""
    lines = [
        f"txid: {tx.txid()}",
        f"version: {tx.version}",
        f"serialization: {tx.ser_type.name.lower()}",
        f"locktime: {tx.lock_time}",
        f"expiry: {tx.expiry}",
        f"inputs: {len(tx.tx_in)}",
    ]
    for i, tx_in in enumerate(tx.tx_in):
        outpoint = tx_in.previous_outpoint
        lines.append(
            f"  {i}: {outpoint} tree={outpoint.tree} sequence={tx_in.sequence} "
            f"value_in={tx_in.value_in} height={tx_in.block_height} "
            f"index={tx_in.block_index}"
        )
    lines.append(f"outputs: {len(tx.tx_out)}")
    for i, tx_out in enumerate(tx.tx_out):
        lines.append(
            f"  {i}: value={tx_out.value} version={tx_out.version} "
            f"script={tx_out.pk_script.hex()}"
        )

    for i, tx_in in enumerate(tx.tx_in):
        lines.append(tx_in.signature_script.hex())
        try:
            lines.append(f"{i}: {disasm_string(tx_in.signature_script)}")
        except ScriptDecodeError as e:
            lines.append(f"could not decode script {i}: {e}")
    return "\n".join(lines)


async def deserialize_tx(ctx: Context, args: Args) -> str:
    return describe_tx(decode_tx(arg_as_str("tx", args)))


Action = Callable[[Context, Args], Awaitable[str]]

ACTIONS: dict[str, Action] = {
    "getmultisigbalance": get_multisig_balance,
    "getwalletbalance": get_wallet_balance,
    "getnewkey": get_new_key,
    "createmultisigaddress": create_multisig_address,
    "sendtomultisig": send_to_multisig,
    "createmultisigtx": create_multisig_tx,
    "signmultisigtx": sign_multisig_tx,
    "broadcastmultisigtx": broadcast_multisig_tx,
    "multisiginfo": multisig_info,
    "importredeemscript": import_redeem_script,
    "deserializetx": deserialize_tx,
    "sweepmultisig": sweep_multisig,
}


async def dispatch(ctx: Context, action: str, args: list[str]) -> str:
    """
    Run an action by name.

    Raises:
        ArgumentError: On an unknown action or bad arguments
        DcrmsError: Whatever the action raises
    """
    handler = ACTIONS.get(action)
    if handler is None:
        raise ArgumentError(f"invalid action: {action}")
    parsed = parse_args(args)
    logger.debug(f"Running {action} with {sorted(parsed)}")
    return await handler(ctx, parsed)
