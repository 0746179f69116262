"""
dcrms - Decred multisig transaction tool

Assembles, signs and broadcasts M-of-N multisig transactions using a
dcrwallet instance for keys and dcrdata for chain data.
"""

__version__ = "1.0.0"

from dcrms.errors import DcrmsError
from dcrms.netparams import MAINNET, TESTNET3, NetParams, get_params

__all__ = [
    "DcrmsError",
    "MAINNET",
    "NetParams",
    "TESTNET3",
    "__version__",
    "get_params",
]
