#!/usr/bin/env python3
"""Example: Sync a set of mints and inspect the active wallet session.

Shows how to open the wallet, add a mint, wait for its keys to be fetched
and read the session bound to the active mint.
"""

import asyncio
import logging

from nutlet import MintConfig, SyncFailure, Wallet

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


async def main():
    async with Wallet.open() as wallet:
        results = await wallet.initialize()
        for url, result in results.items():
            if isinstance(result, SyncFailure):
                print(f"❌ {url}: {result}")
            else:
                print(f"✅ {url}: {result.info.get('name', '?')}")

        wallet.registry.add_mint(
            MintConfig(url="https://testnut.cashu.space", name="Testnut")
        )
        await wallet.registry.wait_for_syncs()
        wallet.registry.select_mint("https://testnut.cashu.space")

        session = wallet.session
        print(f"Active mint: {session.mint_url} ({session.unit})")
        print(f"Denominations: {session.denominations}")
        print(f"Outputs for 100 {session.unit}: {session.split(100)}")
        print(f"Balance: {wallet.get_balance(session.mint_url)}")


if __name__ == "__main__":
    asyncio.run(main())
