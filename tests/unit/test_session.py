"""Unit tests for wallet sessions and denomination helpers."""

import pytest

from helpers import KEYSET_ID, MINT_A, MINT_B, make_client, make_keys, make_proof
from nutlet.denominations import (
    calculate_optimal_split,
    get_keyset_denominations,
    keep_amounts,
    split_amounts,
)
from nutlet.session import WalletSession
from nutlet.types import MintMetadata, WalletError, WalletOptions

USD_KEYSET_ID = "00c0ffee00c0ffee"
OLD_KEYSET_ID = "00deadbeef000000"


def make_metadata(url: str = MINT_A) -> MintMetadata:
    return MintMetadata(
        url=url,
        info={"name": "Test mint"},
        keys=[make_keys(), make_keys(USD_KEYSET_ID, "usd")],
        keysets=[
            {"id": OLD_KEYSET_ID, "unit": "sat", "active": False},
            {"id": KEYSET_ID, "unit": "sat", "active": True},
            {"id": USD_KEYSET_ID, "unit": "usd", "active": True},
        ],
    )


class TestSessionBinding:
    """Test binding a session to a mint."""

    def test_bind_defaults(self):
        session = WalletSession.bind(make_client(MINT_A), make_metadata())

        assert session.mint_url == MINT_A
        assert session.unit == "sat"
        assert session.info == {"name": "Test mint"}
        assert len(session.keys) == 2
        assert len(session.keysets) == 3

    def test_bind_without_metadata(self):
        session = WalletSession.bind(make_client(MINT_A))

        assert session.info is None
        assert session.keys == []
        assert session.keysets == []
        assert session.active_keyset is None
        assert session.denominations == []

    def test_options_override_metadata(self):
        keys = [make_keys("00aaaaaaaaaaaaaa")]
        options = WalletOptions(
            unit="usd", keys=keys, keysets=[], mint_info={"name": "override"}
        )
        session = WalletSession.bind(make_client(MINT_A), make_metadata(), options)

        assert session.unit == "usd"
        assert session.keys == keys
        assert session.keysets == []
        assert session.info == {"name": "override"}

    def test_keyword_overrides_take_precedence(self):
        options = WalletOptions(unit="usd")
        session = WalletSession.bind(
            make_client(MINT_A), make_metadata(), options, unit="sat", bip39seed=b"\x01"
        )

        assert session.unit == "sat"
        assert session.options.bip39seed == b"\x01"
        assert options.unit == "usd"

    def test_unknown_override_raises(self):
        with pytest.raises(TypeError):
            WalletSession.bind(make_client(MINT_A), make_metadata(), colour="red")

    def test_metadata_of_other_mint_is_rejected(self):
        with pytest.raises(WalletError, match="cannot be bound"):
            WalletSession.bind(make_client(MINT_A), make_metadata(MINT_B))


class TestSessionKeysets:
    """Test keyset selection for the session unit."""

    def test_active_keyset_for_unit(self):
        session = WalletSession.bind(make_client(MINT_A), make_metadata())
        assert session.active_keyset["id"] == KEYSET_ID

        usd = WalletSession.bind(make_client(MINT_A), make_metadata(), unit="usd")
        assert usd.active_keyset["id"] == USD_KEYSET_ID

    def test_no_keyset_for_unit(self):
        session = WalletSession.bind(make_client(MINT_A), make_metadata(), unit="eur")

        assert session.active_keyset is None
        assert session.split(10) == [2, 8]

    def test_keys_without_descriptors(self):
        session = WalletSession.bind(
            make_client(MINT_A), keys=[make_keys()], keysets=[]
        )
        assert session.active_keyset["id"] == KEYSET_ID

    def test_denominations(self):
        session = WalletSession.bind(make_client(MINT_A), make_metadata())
        assert session.denominations == [1, 2, 4, 8, 16, 32, 64, 128]


class TestSplit:
    """Test output amount selection."""

    def test_split_greedy(self):
        session = WalletSession.bind(make_client(MINT_A), make_metadata())

        assert session.split(0) == []
        assert session.split(13) == [1, 4, 8]
        assert sum(session.split(1000)) == 1000

    def test_split_negative_raises(self):
        session = WalletSession.bind(make_client(MINT_A), make_metadata())

        with pytest.raises(ValueError):
            session.split(-1)

    def test_split_never_exceeds_amount(self):
        even_keys = {"id": KEYSET_ID, "unit": "sat", "keys": {"2": "x", "4": "y"}}
        session = WalletSession.bind(make_client(MINT_A), keys=[even_keys], keysets=[])

        assert session.split(6) == [2, 4]
        with pytest.raises(ValueError):
            session.split(5)

    def test_split_with_denomination_target(self):
        session = WalletSession.bind(
            make_client(MINT_A), make_metadata(), denomination_target=2
        )
        held = [make_proof(1, "a"), make_proof(1, "b"), make_proof(2, "c")]

        amounts = session.split(7, held)

        assert sum(amounts) == 7
        assert amounts == [1, 2, 4]

    def test_split_with_target_tops_up_small_denominations(self):
        session = WalletSession.bind(
            make_client(MINT_A), make_metadata(), denomination_target=3
        )

        amounts = session.split(10)

        assert amounts == [1, 1, 1, 1, 2, 2, 2]


class TestDenominations:
    """Test denomination helpers."""

    def test_keyset_denominations_skip_bad_amounts(self):
        keyset = {"id": KEYSET_ID, "unit": "sat", "keys": {"4": "x", "1": "y", "z": "w"}}
        assert get_keyset_denominations(keyset) == [1, 4]

    def test_optimal_split(self):
        assert calculate_optimal_split(7, [1, 2, 4]) == {4: 1, 2: 1, 1: 1}

    def test_split_is_exact_when_greedy_falls_short(self):
        assert calculate_optimal_split(6, [3, 4]) == {3: 2}
        assert split_amounts(10, [3, 4]) == [3, 3, 4]

    def test_inexpressible_amount_raises(self):
        with pytest.raises(ValueError, match="cannot be split"):
            calculate_optimal_split(3, [2])
        with pytest.raises(ValueError):
            split_amounts(5, [2, 4])

    def test_default_split_without_keyset(self):
        split = calculate_optimal_split(1000, [])
        assert sum(d * c for d, c in split.items()) == 1000

    def test_split_amounts_sorted(self):
        assert split_amounts(12, [1, 2, 4, 8]) == [4, 8]

    def test_keep_amounts_respects_budget(self):
        amounts = keep_amounts(3, [1, 2, 4], [], 3)
        assert sum(amounts) == 3
        assert amounts == [1, 1, 1]
