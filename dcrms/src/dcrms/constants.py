"""
Decred wire, script and fee constants.

Values follow dcrd/wire, dcrd/txscript and dcrwallet/wallet/txsizes.
"""

from __future__ import annotations

# Atoms per coin
ATOMS_PER_COIN = 100_000_000

# Maximum amount that can ever exist (21 million DCR)
MAX_AMOUNT = 21_000_000 * ATOMS_PER_COIN

# Default minimum confirmations for spendable multisig outputs
DEFAULT_CONFIRMATIONS = 6

# Default relay fee (atoms per kB)
DEFAULT_RELAY_FEE_PER_KB = 10_000

# Explorer request timeout (seconds)
DEFAULT_HTTP_TIMEOUT = 5.0

# Wallet RPC timeout (seconds)
DEFAULT_RPC_TIMEOUT = 30.0

# Transaction wire constants
TX_VERSION = 1
TX_VERSION_TREASURY = 3
MAX_TX_IN_SEQUENCE_NUM = 0xFFFFFFFF
MAX_PREV_OUT_INDEX = 0xFFFFFFFF
NULL_BLOCK_HEIGHT = 0x00000000
NULL_BLOCK_INDEX = 0xFFFFFFFF
DEFAULT_PK_SCRIPT_VERSION = 0
HASH_SIZE = 32

# Script sizes used for fee estimation (txsizes)
# OP_DATA_73 <sig> OP_DATA_33 <compressed pubkey>
REDEEM_P2PKH_SIG_SCRIPT_SIZE = 1 + 73 + 1 + 33
# OP_DUP OP_HASH160 OP_DATA_20 <hash> OP_EQUALVERIFY OP_CHECKSIG
P2PKH_PK_SCRIPT_SIZE = 1 + 1 + 1 + 20 + 1 + 1
# OP_HASH160 OP_DATA_20 <hash> OP_EQUAL
P2SH_PK_SCRIPT_SIZE = 1 + 1 + 20 + 1

# Version, locktime and expiry
TX_OVERHEAD_SIZE = 12
