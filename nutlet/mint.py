"""
Cashu Mint API client wrapper.

Only the read endpoints needed to cache a mint's metadata are wrapped here;
minting, melting and swapping belong to the external transaction protocol.
"""

from __future__ import annotations

import logging
from typing import Any, cast

import httpx

from .types import Keyset, KeysetInfo, MintError, MintInfo

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


# ──────────────────────────────────────────────────────────────────────────────
# Mint API client
# ──────────────────────────────────────────────────────────────────────────────


class InvalidKeysetError(MintError):
    """Raised when keyset structure is invalid per NUT-01."""


class Mint:
    def __init__(self, url: str, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        # Normalize URL by removing trailing slashes
        self.url = normalize_mint_url(url)
        self.client = httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make HTTP request to mint."""
        logger.debug("%s request to %s%s", method, self.url, path)
        try:
            response = await self.client.request(
                method,
                f"{self.url}{path}",
                params=params,
            )
        except httpx.InvalidURL as e:
            raise MintError(f"Invalid mint URL {self.url}: {e}") from e

        if response.status_code >= 400:
            raise MintError(f"Mint returned {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise MintError(f"Mint returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MintError("Mint returned a non-object response")
        return data

    def _validate_keyset(self, keyset: dict[str, Any]) -> bool:
        """Validate keyset structure per NUT-01 specification.

        Args:
            keyset: Keyset dictionary to validate

        Returns:
            True if valid, False otherwise
        """
        required_fields = ["id", "unit", "keys"]
        if not all(field in keyset for field in required_fields):
            return False

        keys = keyset.get("keys", {})
        if not isinstance(keys, dict):
            return False

        for amount_str, pubkey in keys.items():
            if not _is_positive_amount(amount_str):
                return False
            if not _is_valid_compressed_pubkey(pubkey):
                return False

        return True

    def _validate_keys_response(self, response: dict[str, Any]) -> list[Keyset]:
        """Validate and cast response to NUT-01 compliant keysets.

        Raises:
            InvalidKeysetError: If response doesn't match NUT-01 specification
        """
        if "keysets" not in response:
            raise InvalidKeysetError("Response missing 'keysets' field")

        keysets = response["keysets"]
        if not isinstance(keysets, list):
            raise InvalidKeysetError("'keysets' must be a list")

        for i, keyset in enumerate(keysets):
            if not isinstance(keyset, dict) or not self._validate_keyset(keyset):
                raise InvalidKeysetError(f"Invalid keyset at index {i}")

        return cast(list[Keyset], keysets)

    def validate_keyset_info(self, keyset: dict[str, Any]) -> bool:
        """Validate a keyset descriptor according to NUT-02.

        Example:
            keyset = {"id": "00a1b2c3d4e5f6a7", "unit": "sat", "active": True}
            is_valid = mint.validate_keyset_info(keyset)
        """
        for field in ("id", "unit", "active"):
            if field not in keyset:
                return False

        keyset_id = keyset["id"]
        if not isinstance(keyset_id, str) or not keyset_id:
            return False
        try:
            int(keyset_id, 16)
        except ValueError:
            # legacy base64 keyset ids
            if len(keyset_id) != 12:
                return False

        if not isinstance(keyset["active"], bool):
            return False

        if "input_fee_ppk" in keyset:
            try:
                if int(keyset["input_fee_ppk"]) < 0:
                    return False
            except (ValueError, TypeError):
                return False

        return True

    # ───────────────────────── Info & Keys ─────────────────────────────────

    async def get_info(self) -> MintInfo:
        """Get mint information."""
        return cast(MintInfo, await self._request("GET", "/v1/info"))

    async def get_keys(self) -> list[Keyset]:
        """Get the public keys of all active keysets (NUT-01)."""
        response = await self._request("GET", "/v1/keys")
        return self._validate_keys_response(response)

    async def get_keysets(self) -> list[KeysetInfo]:
        """Get all keyset descriptors, active and inactive (NUT-02)."""
        response = await self._request("GET", "/v1/keysets")
        keysets = response.get("keysets")
        if not isinstance(keysets, list):
            raise InvalidKeysetError("'keysets' must be a list")
        for i, keyset in enumerate(keysets):
            if not isinstance(keyset, dict) or not self.validate_keyset_info(keyset):
                raise InvalidKeysetError(f"Invalid keyset descriptor at index {i}")
        return cast(list[KeysetInfo], keysets)


def _is_positive_amount(amount_str: Any) -> bool:
    try:
        return int(amount_str) > 0
    except (ValueError, TypeError):
        return False


def _is_valid_compressed_pubkey(pubkey: Any) -> bool:
    """Validate that pubkey is a valid compressed secp256k1 public key."""
    # Compressed secp256k1 pubkeys are 33 bytes (66 hex chars)
    if not isinstance(pubkey, str) or len(pubkey) != 66:
        return False

    # Must start with 02 or 03 for compressed format
    if not pubkey.startswith(("02", "03")):
        return False

    try:
        bytes.fromhex(pubkey)
    except ValueError:
        return False
    return True


# ──────────────────────────────────────────────────────────────────────────────
# Mint URLs
# ──────────────────────────────────────────────────────────────────────────────


def normalize_mint_url(url: str) -> str:
    return url.strip().rstrip("/")


def validate_mint_url(url: str) -> bool:
    """Validate that a mint URL has the correct format.

    Args:
        url: Mint URL to validate (already normalized)

    Returns:
        True if URL appears valid, False otherwise
    """
    if not url:
        return False

    # Basic URL validation - should start with http:// or https://
    if not (url.startswith("http://") or url.startswith("https://")):
        return False

    # Should not end with slash for consistency
    if url.endswith("/"):
        return False

    # Host and port must be something httpx can actually request
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return False
    return bool(parsed.host)
