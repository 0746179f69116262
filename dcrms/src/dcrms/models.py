"""
Wallet RPC and block explorer response models.

Field aliases follow the JSON keys returned by dcrwallet and the dcrdata
insight API.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dcrms.amount import to_atoms, to_coins


class _Response(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class AddressInfo(_Response):
    """Insight /addr/{address}"""

    address: str = Field(default="", alias="addrStr")
    balance: Decimal = Decimal(0)
    balance_atoms: int = Field(default=0, alias="balanceSat")
    total_received: Decimal = Field(default=Decimal(0), alias="totalReceived")
    total_sent: Decimal = Field(default=Decimal(0), alias="totalSent")
    tx_count: int = Field(default=0, alias="txApperances")


class UnspentOutput(_Response):
    """Insight /addr/{address}/utxo entry."""

    txid: str
    vout: int = Field(..., ge=0)
    amount: Decimal = Decimal(0)
    atoms: int = Field(default=-1, alias="satoshis")
    confirmations: int = 0
    script_pubkey: str = Field(default="", alias="scriptPubKey")
    address: str = ""
    height: int | None = None

    @model_validator(mode="after")
    def fill_amounts(self) -> UnspentOutput:
        """Derive whichever of amount/atoms the explorer left out."""
        if self.atoms < 0:
            object.__setattr__(self, "atoms", to_atoms(self.amount))
        elif not self.amount:
            object.__setattr__(self, "amount", to_coins(self.atoms))
        return self

    @property
    def outpoint(self) -> str:
        return f"{self.txid}:{self.vout}"


class BalanceResult(_Response):
    """dcrwallet getbalance"""

    total_spendable: Decimal = Field(default=Decimal(0), alias="totalspendable")
    total_unconfirmed: Decimal = Field(default=Decimal(0), alias="totalunconfirmed")
    total_locked_by_tickets: Decimal = Field(default=Decimal(0), alias="totallockedbytickets")
    cumulative_total: Decimal = Field(default=Decimal(0), alias="cumulativetotal")


class ValidateAddressResult(_Response):
    """dcrwallet validateaddress"""

    is_valid: bool = Field(default=False, alias="isvalid")
    address: str = ""
    is_mine: bool = Field(default=False, alias="ismine")
    pubkey_addr: str = Field(default="", alias="pubkeyaddr")
    pubkey: str = ""
    is_script: bool = Field(default=False, alias="isscript")


class CreateMultisigResult(_Response):
    """dcrwallet createmultisig"""

    address: str
    redeem_script: str = Field(..., alias="redeemScript")


class MultisigOutInfo(_Response):
    """dcrwallet getmultisigoutinfo"""

    address: str = ""
    redeem_script: str = Field(default="", alias="redeemscript")
    m: int = 0
    n: int = 0
    pubkeys: list[str] = Field(default_factory=list)
    txhash: str = ""
    spent: bool = False
    amount: Decimal = Decimal(0)


class SignRawTransactionError(_Response):
    txid: str = ""
    vout: int = 0
    script_sig: str = Field(default="", alias="scriptSig")
    sequence: int = 0
    error: str = ""

    def __str__(self) -> str:
        return f"{self.txid}:{self.vout}: {self.error}"


class SignRawTransactionResult(_Response):
    """dcrwallet signrawtransaction"""

    hex: str
    complete: bool = False
    errors: list[SignRawTransactionError] = Field(default_factory=list)
