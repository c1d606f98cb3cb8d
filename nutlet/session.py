"""Wallet session bound to a single mint."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable

from .denominations import get_keyset_denominations, keep_amounts, split_amounts
from .mint import Mint
from .types import (
    CurrencyUnit,
    Keyset,
    KeysetInfo,
    MintInfo,
    MintMetadata,
    Proof,
    WalletError,
    WalletOptions,
)

logger = logging.getLogger(__name__)


class WalletSession:
    """Thin composition of a mint client, its cached metadata and options.

    A session holds no state of its own. It is discarded and rebuilt
    whenever the active mint changes.
    """

    def __init__(
        self,
        mint: Mint,
        metadata: MintMetadata | None = None,
        options: WalletOptions | None = None,
    ) -> None:
        self.mint = mint
        self.metadata = metadata
        self.options = options or WalletOptions()

    @classmethod
    def bind(
        cls,
        mint: Mint,
        metadata: MintMetadata | None = None,
        options: WalletOptions | None = None,
        **overrides,
    ) -> WalletSession:
        """Create a session for ``mint``.

        Keyword overrides (``unit``, ``keys``, ``keysets``, ``mint_info``,
        ``bip39seed``, ``denomination_target``) take precedence over
        ``options``, which take precedence over the fetched metadata.
        """
        if metadata is not None and metadata.url != mint.url:
            raise WalletError(
                f"Metadata for {metadata.url} cannot be bound to {mint.url}"
            )
        options = replace(options or WalletOptions(), **overrides)
        logger.debug("Binding session to %s (unit=%s)", mint.url, options.unit)
        return cls(mint, metadata, options)

    @property
    def mint_url(self) -> str:
        return self.mint.url

    @property
    def unit(self) -> CurrencyUnit:
        return self.options.unit

    @property
    def info(self) -> MintInfo | None:
        if self.options.mint_info is not None:
            return self.options.mint_info
        return self.metadata.info if self.metadata else None

    @property
    def keys(self) -> list[Keyset]:
        if self.options.keys is not None:
            return self.options.keys
        return self.metadata.keys if self.metadata else []

    @property
    def keysets(self) -> list[KeysetInfo]:
        if self.options.keysets is not None:
            return self.options.keysets
        return self.metadata.keysets if self.metadata else []

    @property
    def active_keyset(self) -> Keyset | None:
        """Keys of the first active keyset in the session unit."""
        active_ids = [
            ks["id"]
            for ks in self.keysets
            if ks.get("active", True) and ks["unit"] == self.unit
        ]
        keys_by_id = {k["id"]: k for k in self.keys if k["unit"] == self.unit}
        for keyset_id in active_ids:
            if keyset_id in keys_by_id:
                return keys_by_id[keyset_id]
        # descriptors not fetched: any keyset served by /v1/keys is active
        if not self.keysets and keys_by_id:
            return next(iter(keys_by_id.values()))
        return None

    @property
    def denominations(self) -> list[int]:
        keyset = self.active_keyset
        return get_keyset_denominations(keyset) if keyset else []

    def split(self, amount: int, held: Iterable[Proof] = ()) -> list[int]:
        """Output amounts to request from the mint for ``amount``.

        With a ``denomination_target`` the split tops up denominations the
        wallet holds fewer than ``target`` proofs of. The amounts always sum
        to ``amount``.

        Raises:
            ValueError: If ``amount`` is negative or cannot be expressed in
                the keyset's denominations
        """
        if amount < 0:
            raise ValueError("Amount must be non-negative")
        if amount == 0:
            return []
        if self.options.denomination_target:
            return keep_amounts(
                amount, self.denominations, held, self.options.denomination_target
            )
        return split_amounts(amount, self.denominations)
