"""Denomination helpers driven by a mint's keyset keys."""

from __future__ import annotations

from typing import Iterable

from .types import Keyset, Proof


def get_keyset_denominations(keyset: Keyset) -> list[int]:
    """Extract denominations from keyset keys.

    Returns:
        Sorted list of denominations (ascending order)
    """
    denominations = []

    # Keys are stored as dict with amount strings as keys
    if isinstance(keyset.get("keys"), dict):
        for amount_str in keyset["keys"]:
            try:
                denominations.append(int(amount_str))
            except (ValueError, TypeError):
                continue

    return sorted(denominations)


def calculate_optimal_split(
    amount: int, available_denominations: list[int]
) -> dict[int, int]:
    """Calculate optimal denomination breakdown for an amount.

    Uses a greedy algorithm to minimize the number of tokens while
    preferring the available denominations from the keyset. When greedy
    leaves a remainder, the fewest-token exact split is searched instead.

    Args:
        amount: Total amount to split
        available_denominations: List of available denominations

    Returns:
        Dict of denomination -> count, summing exactly to ``amount``

    Raises:
        ValueError: If the amount cannot be expressed in the denominations
    """
    if not available_denominations:
        return _default_split(amount)

    denominations: dict[int, int] = {}
    remaining = amount

    for denom in sorted({d for d in available_denominations if d > 0}, reverse=True):
        if remaining >= denom:
            count = remaining // denom
            denominations[denom] = count
            remaining -= denom * count

    if remaining > 0:
        return _exact_split(amount, available_denominations)

    return denominations


def _exact_split(amount: int, available_denominations: list[int]) -> dict[int, int]:
    """Fewest-token split for denomination sets where greedy falls short."""
    denoms = sorted({d for d in available_denominations if d > 0})
    # last[n] is the denomination that completes a best split of n
    fewest = [0] + [-1] * amount
    last = [0] * (amount + 1)
    for n in range(1, amount + 1):
        for denom in denoms:
            if denom > n:
                break
            prev = fewest[n - denom]
            if prev >= 0 and (fewest[n] < 0 or prev + 1 < fewest[n]):
                fewest[n] = prev + 1
                last[n] = denom

    if fewest[amount] < 0:
        raise ValueError(
            f"Amount {amount} cannot be split into denominations {denoms}"
        )

    denominations: dict[int, int] = {}
    n = amount
    while n:
        denominations[last[n]] = denominations.get(last[n], 0) + 1
        n -= last[n]
    return denominations


def _default_split(amount: int) -> dict[int, int]:
    """Default split using powers of 2."""
    denominations: dict[int, int] = {}
    remaining = amount
    denom = 1 << 14

    while denom >= 1:
        if remaining >= denom:
            count = remaining // denom
            denominations[denom] = count
            remaining -= denom * count
        denom >>= 1

    return denominations


def split_amounts(amount: int, available_denominations: list[int]) -> list[int]:
    """Flatten an optimal split into a sorted list of output amounts."""
    split = calculate_optimal_split(amount, available_denominations)
    return sorted(denom for denom, count in split.items() for _ in range(count))


def keep_amounts(
    amount: int,
    available_denominations: list[int],
    held: Iterable[Proof],
    target_count: int,
) -> list[int]:
    """Choose output amounts that top up each denomination to ``target_count``.

    Small denominations the wallet is short of are filled first; whatever is
    left of ``amount`` is split with ``split_amounts``.
    """
    held_amounts = [p["amount"] for p in held]
    wanted: list[int] = []

    for denom in sorted(available_denominations):
        missing = max(target_count - held_amounts.count(denom), 0)
        for _ in range(missing):
            if sum(wanted) + denom > amount:
                break
            wanted.append(denom)

    remainder = amount - sum(wanted)
    if remainder:
        wanted.extend(split_amounts(remainder, available_denominations))
    return sorted(wanted)
