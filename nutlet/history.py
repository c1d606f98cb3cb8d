"""Transaction history of the wallet."""

from __future__ import annotations

import logging
import secrets
import time
from typing import cast

from .mint import normalize_mint_url
from .store import Store
from .types import Transaction, TransactionType

logger = logging.getLogger(__name__)

HISTORY_KEY = "history.transactions"

TRANSACTION_TYPES = ("sent", "redeemed", "minted")


class TransactionLog:
    def __init__(self, store: Store) -> None:
        self.store = store
        self._entries: list[Transaction] = [
            cast(Transaction, dict(t)) for t in self.store.load(HISTORY_KEY, []) or []
        ]

    def record(
        self, type: TransactionType, amount: int, mint_url: str
    ) -> Transaction:
        if type not in TRANSACTION_TYPES:
            raise ValueError(f"Unknown transaction type: {type}")
        entry: Transaction = {
            "id": secrets.token_hex(8),
            "amount": amount,
            "date": int(time.time()),
            "type": type,
            "mint": normalize_mint_url(mint_url),
        }
        self._entries = [*self._entries, entry]
        self.store.save(HISTORY_KEY, self._entries)
        logger.debug("Recorded %s of %d at %s", type, amount, entry["mint"])
        return cast(Transaction, dict(entry))

    def entries(self, mint_url: str | None = None) -> list[Transaction]:
        """Transactions, newest first, optionally for one mint only."""
        entries = self._entries
        if mint_url is not None:
            url = normalize_mint_url(mint_url)
            entries = [t for t in entries if t["mint"] == url]
        return [cast(Transaction, dict(t)) for t in reversed(entries)]
