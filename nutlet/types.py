"""Type definitions for the nutlet package following NUT-00 specifications."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Literal, TypedDict


class ProofRequired(TypedDict):
    """Required proof fields (NUT-00)."""

    id: str  # keyset ID
    amount: int
    secret: str
    C: str  # hex encoded unblinded signature


class Proof(ProofRequired, total=False):
    """Proof held by the wallet.

    The secret is the proof's identity. ``mint`` and ``unit`` are optional
    annotations; when ``mint`` is present it must match the ledger key the
    proof is stored under.
    """

    mint: str
    unit: CurrencyUnit
    witness: str
    dleq: dict[str, Any]


class WalletError(Exception):
    """Base class for wallet errors."""


class MintError(WalletError):
    """Raised by the mint client on HTTP or payload errors."""


class ConfigError(WalletError):
    """Duplicate, unknown or malformed mint reference."""


class SyncFailure(WalletError):
    """Fetching metadata from a mint failed."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Failed to sync mint {url}: {message}")
        self.url = url


class SelectionError(WalletError):
    """Tried to select a mint that is not configured."""

    def __init__(self, url: str, fallback: str | None) -> None:
        super().__init__(
            f"Mint {url} not found, selecting default mint {fallback}"
        )
        self.url = url
        self.fallback = fallback


class LedgerError(WalletError):
    """A proof would be attributed to the wrong mint."""


# Standard currency units as per NUT-00 specification
CurrencyUnit = Literal[
    "btc",  # Bitcoin
    "sat",  # Satoshi (1e-8 BTC)
    "msat",  # Millisatoshi (1e-11 BTC)
    "usd",  # US Dollar
    "eur",  # Euro
    "gbp",  # British Pound
    "jpy",  # Japanese Yen
    "cny",  # Chinese Yuan
    "cad",  # Canadian Dollar
    "chf",  # Swiss Franc
    "aud",  # Australian Dollar
    "inr",  # Indian Rupee
    # Special units
    "auth",  # Authentication tokens
    # Stablecoins
    "usdt",  # Tether
    "usdc",  # USD Coin
    "dai",  # DAI Stablecoin
]

DEFAULT_UNIT: CurrencyUnit = "sat"


class MintInfo(TypedDict, total=False):
    """Mint information response (GET /v1/info)."""

    name: str
    pubkey: str
    version: str
    description: str
    description_long: str
    contact: list[dict[str, str]]
    icon_url: str
    motd: str
    nuts: dict[str, dict[str, Any]]


class Keyset(TypedDict):
    """Individual keyset per NUT-01 specification."""

    id: str  # keyset identifier
    unit: CurrencyUnit  # currency unit
    keys: dict[str, str]  # amount -> compressed secp256k1 pubkey mapping


class KeysetInfoRequired(TypedDict):
    """Required fields for keyset information."""

    id: str
    unit: CurrencyUnit
    active: bool


class KeysetInfo(KeysetInfoRequired, total=False):
    """Keyset descriptor from the /v1/keysets endpoint."""

    input_fee_ppk: int  # input fee in parts per thousand


@dataclass(frozen=True)
class MintConfig:
    """A mint the user trusts."""

    url: str
    name: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MintConfig:
        return cls(url=data["url"], name=data.get("name", ""))


@dataclass(frozen=True)
class MintMetadata:
    """Everything fetched from a mint in one synchronization round-trip.

    Instances are replaced as a whole, never mutated.
    """

    url: str
    info: MintInfo
    keys: list[Keyset] = field(default_factory=list)
    keysets: list[KeysetInfo] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MintMetadata:
        return cls(
            url=data["url"],
            info=data.get("info", {}),
            keys=list(data.get("keys", [])),
            keysets=list(data.get("keysets", [])),
        )


@dataclass
class WalletOptions:
    """Overrides used when binding a wallet session to a mint."""

    unit: CurrencyUnit = DEFAULT_UNIT
    keys: list[Keyset] | None = None
    keysets: list[KeysetInfo] | None = None
    mint_info: MintInfo | None = None
    bip39seed: bytes | None = None
    denomination_target: int | None = None


TransactionType = Literal["sent", "redeemed", "minted"]


class Transaction(TypedDict):
    """Entry in the wallet's transaction history."""

    id: str
    amount: int
    date: int  # unix timestamp
    type: TransactionType
    mint: str
