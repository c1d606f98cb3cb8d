from typing import Callable
from unittest.mock import Mock

import pytest

from helpers import MINT_A, MINT_B, make_client
from nutlet.store import MemoryStore
from nutlet.types import MintConfig


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def clients() -> dict[str, Mock]:
    """Mint client doubles by URL, created on first use."""
    return {}


@pytest.fixture
def client_factory(clients: dict[str, Mock]) -> Callable[[str], Mock]:
    def factory(url: str) -> Mock:
        if url not in clients:
            clients[url] = make_client(url)
        return clients[url]

    return factory


@pytest.fixture
def two_mints() -> list[MintConfig]:
    return [MintConfig(url=MINT_A, name="A"), MintConfig(url=MINT_B, name="B")]
