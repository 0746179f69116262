"""
External service clients.

Available backends:
- DcrwalletClient: wallet signing service via dcrwallet JSON-RPC (TLS + basic auth)
- DcrdataClient: block explorer data via the dcrdata and insight HTTP APIs
"""

from dcrms.backends.base import BlockExplorer, WalletSigner
from dcrms.backends.dcrdata import DcrdataClient
from dcrms.backends.dcrwallet import DcrwalletClient

__all__ = [
    "BlockExplorer",
    "DcrdataClient",
    "DcrwalletClient",
    "WalletSigner",
]
