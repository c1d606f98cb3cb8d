"""Constants and doubles shared by the unit tests."""

from unittest.mock import AsyncMock, Mock

from nutlet.types import Proof

MINT_A = "https://mint-a.example"
MINT_B = "https://mint-b.example"
MINT_C = "https://mint-c.example"

KEYSET_ID = "009a1f293253e41e"
PUBKEY = "02" + "ab" * 32


def make_keys(keyset_id: str = KEYSET_ID, unit: str = "sat") -> dict:
    return {
        "id": keyset_id,
        "unit": unit,
        "keys": {str(2**i): PUBKEY for i in range(8)},
    }


def make_client(url: str) -> Mock:
    """Mint client double answering the three metadata endpoints."""
    client = Mock()
    client.url = url
    client.get_info = AsyncMock(return_value={"name": f"Mint at {url}"})
    client.get_keysets = AsyncMock(
        return_value=[
            {"id": KEYSET_ID, "unit": "sat", "active": True, "input_fee_ppk": 0}
        ]
    )
    client.get_keys = AsyncMock(return_value=[make_keys()])
    client.aclose = AsyncMock()
    return client


def make_proof(amount: int, secret: str, keyset_id: str = KEYSET_ID) -> Proof:
    return {"id": keyset_id, "amount": amount, "secret": secret, "C": PUBKEY}
