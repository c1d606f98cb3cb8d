"""Unit tests for the mint client using a mocked HTTP transport."""

import httpx
import pytest

from helpers import KEYSET_ID, MINT_A, make_keys
from nutlet.mint import InvalidKeysetError, Mint, normalize_mint_url, validate_mint_url
from nutlet.types import MintError


def make_mint(handler) -> Mint:
    mint = Mint(MINT_A + "/")
    mint.client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return mint


def routes(responses: dict):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path not in responses:
            return httpx.Response(404, text="not found")
        status, body = responses[request.url.path]
        return httpx.Response(status, json=body)

    return handler


class TestMintEndpoints:
    """Test the metadata endpoints."""

    def test_url_is_normalized(self):
        assert Mint(MINT_A + "//").url == MINT_A

    @pytest.mark.asyncio
    async def test_get_info(self):
        mint = make_mint(routes({"/v1/info": (200, {"name": "Test", "version": "1"})}))
        try:
            assert await mint.get_info() == {"name": "Test", "version": "1"}
        finally:
            await mint.aclose()

    @pytest.mark.asyncio
    async def test_get_keys(self):
        mint = make_mint(routes({"/v1/keys": (200, {"keysets": [make_keys()]})}))
        try:
            keys = await mint.get_keys()
            assert keys[0]["id"] == KEYSET_ID
            assert len(keys[0]["keys"]) == 8
        finally:
            await mint.aclose()

    @pytest.mark.asyncio
    async def test_get_keys_rejects_invalid_pubkey(self):
        keyset = make_keys()
        keyset["keys"]["1"] = "04" + "ab" * 32
        mint = make_mint(routes({"/v1/keys": (200, {"keysets": [keyset]})}))
        try:
            with pytest.raises(InvalidKeysetError, match="index 0"):
                await mint.get_keys()
        finally:
            await mint.aclose()

    @pytest.mark.asyncio
    async def test_get_keys_rejects_missing_keysets(self):
        mint = make_mint(routes({"/v1/keys": (200, {"keys": {}})}))
        try:
            with pytest.raises(InvalidKeysetError, match="missing"):
                await mint.get_keys()
        finally:
            await mint.aclose()

    @pytest.mark.asyncio
    async def test_get_keysets(self):
        keysets = [
            {"id": KEYSET_ID, "unit": "sat", "active": True, "input_fee_ppk": 100},
            {"id": "I2yN+iRYfkzT", "unit": "sat", "active": False},
        ]
        mint = make_mint(routes({"/v1/keysets": (200, {"keysets": keysets})}))
        try:
            assert await mint.get_keysets() == keysets
        finally:
            await mint.aclose()

    @pytest.mark.asyncio
    async def test_get_keysets_rejects_negative_fee(self):
        keysets = [{"id": KEYSET_ID, "unit": "sat", "active": True, "input_fee_ppk": -1}]
        mint = make_mint(routes({"/v1/keysets": (200, {"keysets": keysets})}))
        try:
            with pytest.raises(InvalidKeysetError):
                await mint.get_keysets()
        finally:
            await mint.aclose()

    @pytest.mark.asyncio
    async def test_http_error_raises_mint_error(self):
        mint = make_mint(routes({}))
        try:
            with pytest.raises(MintError, match="404"):
                await mint.get_info()
        finally:
            await mint.aclose()

    @pytest.mark.asyncio
    async def test_invalid_json_raises_mint_error(self):
        mint = make_mint(lambda request: httpx.Response(200, text="<html>"))
        try:
            with pytest.raises(MintError, match="invalid JSON"):
                await mint.get_info()
        finally:
            await mint.aclose()

    @pytest.mark.asyncio
    async def test_unrequestable_url_raises_mint_error(self):
        mint = Mint("https://[::1")
        try:
            with pytest.raises(MintError, match="Invalid mint URL"):
                await mint.get_info()
        finally:
            await mint.aclose()


class TestMintUrls:
    def test_normalize(self):
        assert normalize_mint_url(" https://mint.example/ ") == "https://mint.example"

    def test_validate(self):
        assert validate_mint_url("https://mint.example")
        assert validate_mint_url("http://localhost:3338")
        assert not validate_mint_url("")
        assert not validate_mint_url("mint.example")
        assert not validate_mint_url("https://mint.example/")

    @pytest.mark.parametrize(
        "url", ["https://[::1", "https://exämple..com", "https://:3338", "http://"]
    )
    def test_validate_rejects_unparseable_hosts(self, url):
        assert not validate_mint_url(url)
