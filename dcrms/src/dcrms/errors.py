"""
Error taxonomy for the multisig pipeline.

Every component raises one of these to its caller. Only the CLI renders them.
"""

from __future__ import annotations


class DcrmsError(Exception):
    """Base class for all dcrms errors."""


class ConfigError(DcrmsError):
    """Configuration or credential resolution failed."""


class ArgumentError(DcrmsError):
    """Missing, malformed or duplicate command argument."""


class AmountConversionError(ArgumentError):
    """Amount could not be converted to atoms."""


class DecodeError(DcrmsError):
    """Hex, address or script decode failure."""


class MalformedHex(DecodeError):
    pass


class MalformedTransaction(DecodeError):
    pass


class InvalidAddress(DecodeError):
    pass


class ScriptDecodeError(DecodeError):
    pass


class NetworkError(DcrmsError):
    """HTTP or RPC transport failure."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RPCError(NetworkError):
    """The wallet answered with a JSON-RPC error object."""

    def __init__(self, method: str, code: int | str, message: str):
        super().__init__(f"{method}: RPC error {code}: {message}")
        self.method = method
        self.code = code
        self.rpc_message = message


class InsufficientFunds(DcrmsError):
    pass


class InsufficientWalletBalance(InsufficientFunds):
    pass


class NoUtxosFound(DcrmsError):
    pass


class DuplicateOutput(DcrmsError):
    pass


class RedeemInfoUnavailable(DcrmsError):
    pass


class NegativeChange(DcrmsError):
    pass


class SigningIncomplete(DcrmsError):
    """
    More signatures are required.

    Informational only: returned alongside a partially signed transaction,
    never raised by the signing pipeline.
    """

    def __init__(self, errors: list[str] | None = None):
        self.errors = errors or []
        message = "transaction signing not complete"
        if self.errors:
            message += ": " + "; ".join(self.errors)
        super().__init__(message)


class Unimplemented(DcrmsError, NotImplementedError):
    pass
