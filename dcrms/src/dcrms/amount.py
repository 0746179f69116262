"""
Conversion between coin amounts and atoms.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from dcrms.constants import ATOMS_PER_COIN, MAX_AMOUNT
from dcrms.errors import AmountConversionError


def to_atoms(amount: str | int | float | Decimal) -> int:
    """
    Convert a coin amount to atoms, rounding half away from zero.

    Raises:
        AmountConversionError: On malformed, non-finite or out of range input
    """
    if isinstance(amount, bool):
        raise AmountConversionError(f"invalid amount: {amount!r}")
    try:
        value = Decimal(str(amount).strip()) if isinstance(amount, str) else Decimal(amount)
    except (InvalidOperation, ValueError, TypeError):
        raise AmountConversionError(f"invalid amount: {amount!r}") from None

    if not value.is_finite():
        raise AmountConversionError(f"invalid amount: {amount!r}")
    # values this large would overflow the decimal context when scaled
    if abs(value) > MAX_AMOUNT // ATOMS_PER_COIN + 1:
        raise AmountConversionError(f"amount out of range: {amount}")

    atoms = int((value * ATOMS_PER_COIN).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    if abs(atoms) > MAX_AMOUNT:
        raise AmountConversionError(f"amount out of range: {amount}")
    return atoms


def to_coins(atoms: int) -> Decimal:
    """Convert atoms to a coin amount."""
    return Decimal(atoms) / ATOMS_PER_COIN


def format_coins(atoms: int) -> str:
    """Format atoms as a coin string with eight decimals, e.g. '1.50000000 DCR'."""
    return f"{to_coins(atoms):.8f} DCR"
