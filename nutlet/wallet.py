from __future__ import annotations

import logging
from typing import Callable, Iterable

from .config import Settings
from .history import TransactionLog
from .ledger import ProofLedger, ProofPredicate
from .mint import Mint
from .registry import MintRegistry
from .session import WalletSession
from .store import JsonFileStore, Store
from .types import (
    ConfigError,
    MintConfig,
    MintMetadata,
    Proof,
    SyncFailure,
    TransactionType,
    WalletOptions,
)

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Wallet implementation
# ──────────────────────────────────────────────────────────────────────────────


class Wallet:
    """Local wallet state: mint registry, proof ledger and the active session.

    Components are built in dependency order: store, registry, ledger,
    history. The session is bound lazily to the active mint and dropped
    whenever the active mint or its metadata changes.
    """

    def __init__(
        self,
        store: Store,
        *,
        client_factory: Callable[[str], Mint] = Mint,
        default_mints: Iterable[MintConfig] | None = None,
        options: WalletOptions | None = None,
    ) -> None:
        self.store = store
        self.registry = MintRegistry(
            store, client_factory=client_factory, default_mints=default_mints
        )
        self.ledger = ProofLedger(store)
        self.history = TransactionLog(store)
        self.options = options or WalletOptions()

        self._session: WalletSession | None = None
        self._unsubscribe = self.registry.subscribe(self._on_registry_change)

    @classmethod
    def open(cls, settings: Settings | None = None) -> Wallet:
        """Open the wallet stored in ``settings.data_dir``."""
        settings = settings or Settings.from_env()

        def client_factory(url: str) -> Mint:
            return Mint(url, timeout=settings.mint_timeout)

        return cls(
            JsonFileStore(settings.data_dir),
            client_factory=client_factory,
            default_mints=settings.default_mints,
            options=WalletOptions(unit=settings.unit),
        )

    async def initialize(
        self, *, sync: bool = True
    ) -> dict[str, MintMetadata | SyncFailure]:
        """Fetch metadata for every configured mint."""
        if not sync:
            return {}
        return await self.registry.sync_all()

    # ───────────────────────── Session ─────────────────────────────────

    def _on_registry_change(self, event: str, url: str | None) -> None:
        if event == "active" or (
            event == "metadata" and url == self.registry.active_url
        ):
            self._session = None

    @property
    def session(self) -> WalletSession:
        """Session bound to the active mint.

        Raises:
            ConfigError: If no mint is active
        """
        if self._session is None:
            url = self.registry.active_url
            if url is None:
                raise ConfigError("No active mint")
            self._session = WalletSession.bind(
                self.registry.get_client(url),
                self.registry.active_metadata,
                self.options,
            )
        return self._session

    # ───────────────────────── Proofs ─────────────────────────────────

    def credit(
        self,
        mint_url: str,
        proofs: Iterable[Proof],
        kind: TransactionType = "redeemed",
    ) -> int:
        """Store proofs received or minted at a mint and log the transaction."""
        proofs = list(proofs)
        self.ledger.add_proofs(mint_url, proofs)
        amount = sum(p["amount"] for p in proofs)
        if amount:
            self.history.record(kind, amount, mint_url)
        return amount

    def debit(
        self,
        mint_url: str,
        match: ProofPredicate | str | Iterable[str],
        kind: TransactionType = "sent",
    ) -> int:
        """Remove spent proofs and log the transaction."""
        removed = self.ledger.remove_proofs(mint_url, match)
        amount = sum(p["amount"] for p in removed)
        if amount:
            self.history.record(kind, amount, mint_url)
        return amount

    def get_balance(self, mint_url: str | None = None) -> int:
        """Balance at one mint, or across all mints."""
        if mint_url is None:
            return self.ledger.total_balance()
        return self.ledger.balance_for(mint_url)

    # ─────────────────────────────── Cleanup ──────────────────────────────────

    async def aclose(self) -> None:
        """Close underlying HTTP clients."""
        self._unsubscribe()
        self._session = None
        await self.registry.aclose()

    async def __aenter__(self) -> Wallet:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
