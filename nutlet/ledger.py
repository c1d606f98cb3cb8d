"""Unspent proofs held by the wallet, partitioned by issuing mint."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, cast

from .mint import normalize_mint_url
from .store import Store
from .types import LedgerError, Proof

logger = logging.getLogger(__name__)

PROOFS_KEY = "ledger.proofs_by_mint"

ProofPredicate = Callable[[Proof], bool]


class ProofLedger:
    """Mapping of mint URL to the proofs held from that mint.

    Balances are never stored; they are summed from the live proof lists.
    Every mutation swaps in a new list for the affected mint, so a reader
    sees either the old or the new list, never one in between.
    """

    def __init__(self, store: Store) -> None:
        self.store = store
        self._proofs: dict[str, list[Proof]] = {}
        self.load()

    def load(self) -> None:
        """(Re)hydrate from the store."""
        raw = self.store.load(PROOFS_KEY, {}) or {}
        proofs_by_mint: dict[str, list[Proof]] = {}
        for url, proofs in raw.items():
            if not proofs:
                continue
            # "https://a/" and "https://a" are the same mint
            url = normalize_mint_url(url)
            proofs_by_mint[url] = proofs_by_mint.get(url, []) + [
                cast(Proof, dict(p)) for p in proofs
            ]
        self._proofs = proofs_by_mint

    def _persist(self) -> None:
        self.store.save(PROOFS_KEY, self._proofs)

    # ───────────────────────── Reads ─────────────────────────────────

    def proofs_for(self, mint_url: str) -> list[Proof]:
        """Proofs held from a mint (empty for unknown mints)."""
        proofs = self._proofs.get(normalize_mint_url(mint_url), [])
        return [cast(Proof, dict(p)) for p in proofs]

    def balance_for(self, mint_url: str) -> int:
        return sum(p["amount"] for p in self._proofs.get(normalize_mint_url(mint_url), []))

    def balances(self) -> dict[str, int]:
        """Balance per mint for every mint with proofs."""
        return {url: self.balance_for(url) for url in self._proofs}

    def total_balance(self) -> int:
        return sum(self.balances().values())

    def mint_urls(self) -> list[str]:
        return list(self._proofs)

    def mint_of(self, secret: str) -> str | None:
        """URL of the mint a proof secret is held under, if any."""
        for url, proofs in self._proofs.items():
            if any(p["secret"] == secret for p in proofs):
                return url
        return None

    # ───────────────────────── Mutations ─────────────────────────────────

    def add_proofs(self, mint_url: str, proofs: Iterable[Proof]) -> None:
        """Append proofs received or minted at ``mint_url``.

        Raises:
            LedgerError: If a proof belongs to another mint
        """
        mint_url = normalize_mint_url(mint_url)
        new_proofs = [cast(Proof, dict(p)) for p in proofs]
        if not new_proofs:
            return

        existing = self._proofs.get(mint_url, [])
        held_secrets = {p["secret"] for p in existing}
        for proof in new_proofs:
            tagged = proof.get("mint")
            if tagged is not None and normalize_mint_url(tagged) != mint_url:
                raise LedgerError(
                    f"Proof from {tagged} cannot be stored under {mint_url}"
                )
            owner = self.mint_of(proof["secret"])
            if owner is not None and owner != mint_url:
                raise LedgerError(f"Proof already held under mint {owner}")
            if proof["secret"] in held_secrets:
                logger.warning("Duplicate proof added for %s", mint_url)
            held_secrets.add(proof["secret"])

        self._proofs = {**self._proofs, mint_url: existing + new_proofs}
        self._persist()
        logger.debug("Stored %d proofs for %s", len(new_proofs), mint_url)

    def remove_proofs(
        self, mint_url: str, match: ProofPredicate | str | Iterable[str]
    ) -> list[Proof]:
        """Remove proofs that were spent or melted.

        Args:
            mint_url: Mint the proofs are held under
            match: Predicate over proofs, a proof secret, or a collection
                of proof secrets

        Returns:
            The removed proofs (empty if nothing matched)
        """
        mint_url = normalize_mint_url(mint_url)
        existing = self._proofs.get(mint_url, [])
        if callable(match):
            predicate = match
        else:
            secrets = {match} if isinstance(match, str) else set(match)
            predicate = lambda p: p["secret"] in secrets  # noqa: E731

        removed: list[Proof] = []
        kept: list[Proof] = []
        for proof in existing:
            if predicate(proof):
                removed.append(proof)
            else:
                kept.append(proof)
        if not removed:
            return []

        proofs = dict(self._proofs)
        if kept:
            proofs[mint_url] = kept
        else:
            del proofs[mint_url]
        self._proofs = proofs
        self._persist()
        logger.debug("Removed %d proofs for %s", len(removed), mint_url)
        return [cast(Proof, dict(p)) for p in removed]

    def forget_mint(self, mint_url: str) -> list[Proof]:
        """Drop every proof held from a mint and return them."""
        return self.remove_proofs(mint_url, lambda p: True)
