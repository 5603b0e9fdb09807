"""Utility functions for handling ticker symbols."""

from typing import Iterable


def normalize_symbol(symbol: str) -> str:
    """Canonical form used for every cache and history key: trimmed, uppercase."""
    return symbol.strip().upper()


def unique_symbols(symbols: Iterable[str]) -> list[str]:
    """Normalize and de-duplicate symbols, keeping first-seen order.

    Blank entries are dropped.
    """
    seen: set[str] = set()
    result: list[str] = []
    for symbol in symbols:
        if not symbol or not symbol.strip():
            continue
        normalized = normalize_symbol(symbol)
        if normalized not in seen:
            seen.add(normalized)
            result.append(normalized)
    return result
