"""Registry of trusted mints, their cached metadata and the active mint."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable

import httpx

from .config import DEFAULT_MINTS
from .mint import Mint, normalize_mint_url, validate_mint_url
from .store import Store
from .types import (
    ConfigError,
    MintConfig,
    MintError,
    MintMetadata,
    SelectionError,
    SyncFailure,
    WalletError,
)

logger = logging.getLogger(__name__)

MINTS_KEY = "mints.config"
ACTIVE_KEY = "mints.active_url"
METADATA_KEY = "mints.metadata"

_MISSING = object()

# (event, url) with event one of "mints", "active", "metadata"
Listener = Callable[[str, "str | None"], None]


class MintRegistry:
    """Known mints, fetched metadata and the active mint pointer.

    ``active_mint`` and ``active_metadata`` are computed on every access, so
    they always reflect the latest state of the underlying maps.

    Metadata syncs are ordered per mint by request sequence: a sync is only
    applied if no sync issued after it has already been applied, so a slow
    early request can never overwrite a fast later one.
    """

    def __init__(
        self,
        store: Store,
        *,
        client_factory: Callable[[str], Mint] = Mint,
        default_mints: Iterable[MintConfig] | None = None,
    ) -> None:
        self.store = store
        self.client_factory = client_factory
        self.default_mints = list(
            DEFAULT_MINTS if default_mints is None else default_mints
        )

        self._mints: list[MintConfig] = []
        self._metadata: dict[str, MintMetadata] = {}
        self._active_url: str | None = None
        self._clients: dict[str, Mint] = {}
        self._retired_clients: list[Mint] = []
        self._request_seq = 0
        self._applied_seq: dict[str, int] = {}
        self._pending: set[asyncio.Task] = set()
        self._listeners: list[Listener] = []

        self.load()

    # ───────────────────────── Persistence ─────────────────────────────────

    def load(self) -> None:
        """(Re)hydrate from the store, seeding defaults on first run."""
        raw_mints = self.store.load(MINTS_KEY)
        if raw_mints is None:
            mints: list[MintConfig] = []
            for config in self.default_mints:
                url = normalize_mint_url(config.url)
                if url not in (m.url for m in mints):
                    mints.append(MintConfig(url=url, name=config.name))
            self._mints = mints
            self._save_mints()
        else:
            self._mints = [MintConfig.from_dict(m) for m in raw_mints]

        raw_metadata = self.store.load(METADATA_KEY, {}) or {}
        self._metadata = {
            url: MintMetadata.from_dict(data)
            for url, data in raw_metadata.items()
            if self._index(url) is not None
        }

        active = self.store.load(ACTIVE_KEY, _MISSING)
        if active is _MISSING:
            active = self._default_url()
        elif active is not None and self._index(active) is None:
            logger.warning("Stored active mint %s is not configured", active)
            active = self._default_url()
        self._active_url = active
        self.store.save(ACTIVE_KEY, active)

    def _save_mints(self) -> None:
        self.store.save(MINTS_KEY, [m.to_dict() for m in self._mints])

    def _save_metadata(self) -> None:
        self.store.save(
            METADATA_KEY, {url: m.to_dict() for url, m in self._metadata.items()}
        )

    # ───────────────────────── Observers ─────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str, url: str | None) -> None:
        for listener in list(self._listeners):
            listener(event, url)

    # ───────────────────────── Reads ─────────────────────────────────

    def _index(self, url: str) -> int | None:
        for i, mint in enumerate(self._mints):
            if mint.url == url:
                return i
        return None

    def _default_url(self) -> str | None:
        return self._mints[0].url if self._mints else None

    def list_mints(self) -> list[MintConfig]:
        return list(self._mints)

    def get_mint(self, url: str) -> MintConfig | None:
        index = self._index(normalize_mint_url(url))
        return self._mints[index] if index is not None else None

    def metadata_for(self, url: str) -> MintMetadata | None:
        return self._metadata.get(normalize_mint_url(url))

    def get_client(self, url: str) -> Mint:
        """Get or create mint client for URL."""
        url = normalize_mint_url(url)
        if url not in self._clients:
            self._clients[url] = self.client_factory(url)
        return self._clients[url]

    @property
    def active_url(self) -> str | None:
        return self._active_url

    @property
    def active_mint(self) -> MintConfig | None:
        return self.get_mint(self._active_url) if self._active_url else None

    @property
    def active_metadata(self) -> MintMetadata | None:
        return self.metadata_for(self._active_url) if self._active_url else None

    # ───────────────────────── Mutations ─────────────────────────────────

    def _set_active(self, url: str | None) -> None:
        if url == self._active_url:
            return
        self._active_url = url
        self.store.save(ACTIVE_KEY, url)
        logger.info("Active mint is now %s", url)
        self._notify("active", url)

    def add_mint(self, config: MintConfig, *, sync: bool = True) -> bool:
        """Add a mint and schedule a metadata sync for it.

        Returns:
            False if the mint was already configured, True otherwise

        Raises:
            ConfigError: If the URL is malformed
        """
        url = normalize_mint_url(config.url)
        if not validate_mint_url(url):
            raise ConfigError(f"Invalid mint URL: {config.url!r}")
        if self._index(url) is not None:
            logger.info("Mint %s is already configured", url)
            return False

        self._mints = [*self._mints, MintConfig(url=url, name=config.name)]
        self._save_mints()
        self._notify("mints", url)
        if self._active_url is None:
            self._set_active(url)
        if sync:
            self._schedule_sync(url)
        return True

    def remove_mint(self, url: str) -> None:
        """Remove a mint and its cached metadata.

        Raises:
            ConfigError: If the mint is not configured
        """
        url = normalize_mint_url(url)
        if self._index(url) is None:
            raise ConfigError(f"Unknown mint: {url}")

        self._mints = [m for m in self._mints if m.url != url]
        # syncs already in flight for this mint must not be applied
        self._applied_seq[url] = self._request_seq
        if url in self._metadata:
            self._metadata = {k: v for k, v in self._metadata.items() if k != url}
            self._save_metadata()
        client = self._clients.pop(url, None)
        if client is not None:
            self._retired_clients.append(client)
        self._save_mints()
        self._notify("mints", url)

        if self._active_url == url:
            self._set_active(self._default_url())

    def select_mint(self, url: str) -> None:
        """Make a configured mint the active one.

        Selecting an unknown mint falls back to the default (first
        configured) mint before raising.

        Raises:
            SelectionError: If the mint is not configured
        """
        url = normalize_mint_url(url)
        if self._index(url) is not None:
            self._set_active(url)
            return

        fallback = self._default_url()
        self._set_active(fallback)
        logger.error("Mint %s not found, selecting default mint %s", url, fallback)
        raise SelectionError(url, fallback)

    # ───────────────────────── Synchronization ─────────────────────────────

    async def sync_mint(self, url: str) -> MintMetadata:
        """Fetch info, keysets and keys for a mint and cache them together.

        Returns:
            The metadata now cached for the mint

        Raises:
            ConfigError: If the mint is not configured
            SyncFailure: If any fetch fails, or the mint was removed meanwhile
        """
        url = normalize_mint_url(url)
        if self._index(url) is None:
            raise ConfigError(f"Unknown mint: {url}")

        self._request_seq += 1
        seq = self._request_seq
        client = self.get_client(url)
        logger.debug("Sync #%d for %s started", seq, url)

        try:
            info, keysets, keys = await asyncio.gather(
                client.get_info(), client.get_keysets(), client.get_keys()
            )
        except (
            MintError,
            httpx.HTTPError,
            httpx.InvalidURL,
            ValueError,
            KeyError,
            TypeError,
        ) as e:
            logger.warning("Failed to init mint %s: %s", url, e)
            raise SyncFailure(url, str(e)) from e

        if self._index(url) is None:
            logger.info("Discarding sync for removed mint %s", url)
            raise SyncFailure(url, "mint was removed while syncing")

        if seq <= self._applied_seq.get(url, 0):
            logger.debug("Discarding stale sync #%d for %s", seq, url)
            current = self._metadata.get(url)
            if current is None:
                raise SyncFailure(url, "superseded by a newer request")
            return current

        metadata = MintMetadata(url=url, info=info, keys=keys, keysets=keysets)
        self._applied_seq[url] = seq
        self._metadata = {**self._metadata, url: metadata}
        self._save_metadata()
        logger.info("Synced mint %s (%d keysets)", url, len(keysets))
        self._notify("metadata", url)
        return metadata

    async def sync_all(self) -> dict[str, MintMetadata | SyncFailure]:
        """Sync every configured mint concurrently.

        Failures are isolated per mint and returned, never raised.
        """
        urls = [m.url for m in self._mints]
        results = await asyncio.gather(
            *(self.sync_mint(url) for url in urls), return_exceptions=True
        )

        outcome: dict[str, MintMetadata | SyncFailure] = {}
        for url, result in zip(urls, results):
            if isinstance(result, SyncFailure):
                outcome[url] = result
            elif isinstance(result, Exception):
                outcome[url] = SyncFailure(url, str(result))
            elif isinstance(result, BaseException):
                # cancellation
                raise result
            else:
                outcome[url] = result

        failed = [url for url, r in outcome.items() if isinstance(r, SyncFailure)]
        if failed:
            logger.warning("Could not sync mints: %s", ", ".join(failed))
        return outcome

    def _schedule_sync(self, url: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, not syncing %s now", url)
            return
        task = loop.create_task(self._background_sync(url))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _background_sync(self, url: str) -> None:
        try:
            await self.sync_mint(url)
        except WalletError as e:
            logger.warning("Background sync of %s failed: %s", url, e)

    async def wait_for_syncs(self) -> None:
        """Wait for syncs scheduled by ``add_mint`` to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # ─────────────────────────────── Cleanup ──────────────────────────────────

    async def aclose(self) -> None:
        """Cancel scheduled syncs and close mint clients."""
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

        clients = [*self._clients.values(), *self._retired_clients]
        self._clients = {}
        self._retired_clients = []
        for client in clients:
            await client.aclose()
