"""Nutlet - local state layer of a Cashu ecash wallet.

Tracks trusted mints, caches their key material and keeps the wallet's
unspent proofs per mint.
"""

from .ledger import ProofLedger
from .registry import MintRegistry
from .session import WalletSession
from .store import JsonFileStore, MemoryStore, Store
from .types import (
    ConfigError,
    LedgerError,
    MintConfig,
    MintMetadata,
    SelectionError,
    SyncFailure,
    WalletError,
    WalletOptions,
)
from .wallet import Wallet

__all__ = [
    # Main wallet class
    "Wallet",
    # State components
    "MintRegistry",
    "ProofLedger",
    "WalletSession",
    # Storage
    "Store",
    "MemoryStore",
    "JsonFileStore",
    # Types
    "MintConfig",
    "MintMetadata",
    "WalletOptions",
    # Errors
    "WalletError",
    "ConfigError",
    "SyncFailure",
    "SelectionError",
    "LedgerError",
]
