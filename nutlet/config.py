"""Runtime configuration read from the environment and ``.env``."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .types import CurrencyUnit, DEFAULT_UNIT, MintConfig

MINTS_ENV_VAR = "CASHU_MINTS"
DIR_ENV_VAR = "NUTLET_DIR"
UNIT_ENV_VAR = "NUTLET_UNIT"
LOG_LEVEL_ENV_VAR = "NUTLET_LOG_LEVEL"
TIMEOUT_ENV_VAR = "MINT_TIMEOUT"

DEFAULT_DIR = "~/.nutlet"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Seed list used the first time the wallet starts
DEFAULT_MINTS = [
    MintConfig(url="https://mint.minibits.cash/Bitcoin", name="Minibits"),
    MintConfig(url="https://mint2.nutmix.cash", name="Nutmix"),
    MintConfig(url="https://mint.lnvoltz.com", name="Voltz"),
]


def get_mints_from_env() -> list[MintConfig]:
    """Get seed mints from the ``CASHU_MINTS`` environment variable.

    Expected format: comma-separated URLs
    Example: CASHU_MINTS="https://mint1.com,https://mint2.com"

    Returns:
        Mints from the environment, empty list if not set
    """
    env_mints = os.getenv(MINTS_ENV_VAR)
    if not env_mints:
        return []
    # Filter out empty strings and remove duplicates while preserving order
    urls = dict.fromkeys(
        url.strip().rstrip("/") for url in env_mints.split(",") if url.strip()
    )
    return [MintConfig(url=url, name=url) for url in urls]


@dataclass
class Settings:
    data_dir: Path = field(default_factory=lambda: Path(DEFAULT_DIR).expanduser())
    default_mints: list[MintConfig] = field(
        default_factory=lambda: list(DEFAULT_MINTS)
    )
    unit: CurrencyUnit = DEFAULT_UNIT
    log_level: str = "WARNING"
    mint_timeout: float = 10.0

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> Settings:
        """Build settings from environment variables (and ``.env`` in cwd)."""
        if dotenv:
            load_dotenv(Path.cwd() / ".env")

        settings = cls()
        if data_dir := os.getenv(DIR_ENV_VAR):
            settings.data_dir = Path(data_dir).expanduser()
        if env_mints := get_mints_from_env():
            settings.default_mints = env_mints
        if unit := os.getenv(UNIT_ENV_VAR):
            settings.unit = unit.lower()  # type: ignore[assignment]
        if level := os.getenv(LOG_LEVEL_ENV_VAR):
            settings.log_level = level.upper()
        if timeout := os.getenv(TIMEOUT_ENV_VAR):
            try:
                settings.mint_timeout = float(timeout)
            except ValueError:
                logging.getLogger(__name__).warning(
                    "Ignoring invalid %s=%r", TIMEOUT_ENV_VAR, timeout
                )
        return settings


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
