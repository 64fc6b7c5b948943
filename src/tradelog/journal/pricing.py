"""Instrument pricing profiles (pip size, pip value, spread).

Since the journal does not query a broker for instrument specs, a
static table of common symbols ships here.  Users extend or override it
through ``AppSettings.pairs_config``; anything unknown resolves to the
``"Other"`` profile instead of failing.
"""

from __future__ import annotations

import logging

from tradelog.core.models import OTHER_PAIR, PairConfig

logger = logging.getLogger(__name__)

# (pip_size, pip_value per standard lot, typical spread in pips)
_PAIR_SPECS: dict[str, tuple[float, float, float]] = {
    # Forex majors
    "EURUSD": (0.0001, 10, 0.9),
    "GBPUSD": (0.0001, 10, 1.1),
    "USDJPY": (0.01, 8.86, 1.0),
    "AUDUSD": (0.0001, 10, 0.9),
    "USDCAD": (0.0001, 10, 1.5),
    "USDCHF": (0.0001, 10, 1.4),
    "NZDUSD": (0.0001, 10, 1.4),
    # Forex minors
    "EURGBP": (0.0001, 13.56, 1.0),
    "EURJPY": (0.01, 6.77, 1.6),
    "EURAUD": (0.0001, 6.458, 2.0),
    "EURCAD": (0.0001, 7.222, 2.5),
    "EURCHF": (0.0001, 12.5522, 2.0),
    "GBPJPY": (0.01, 6.7719, 2.5),
    "GBPAUD": (0.0001, 6.6481, 2.5),
    "GBPCAD": (0.0001, 7.222, 3.0),
    "AUDJPY": (0.01, 6.771949, 1.6),
    "CADJPY": (0.01, 6.771948, 1.8),
    "CHFJPY": (0.01, 6.771948, 2.0),
    # Metals
    "XAUUSD": (0.1, 10, 1.12),
    "XAGUSD": (0.001, 5, 3.6),
    # Indices
    "US30": (1, 1, 2.6),
    "US500": (0.1, 1, 5.9),
    "USTEC": (0.1, 1, 20.1),
    "DE30": (1, 1, 8.5),
    "UK100": (0.1, 1, 66.6),
    # Crypto
    "BTCUSD": (0.01, 0.01, 25.0),
    "ETHUSD": (0.01, 1, 1.5),
    # Oil
    "USOIL": (0.01, 10, 0.8),
    # Default
    OTHER_PAIR: (0.0001, 10, 2.0),
}

_FALLBACK = PairConfig(pip_size=0.0001, pip_value=10, spread=2.0)


def default_pairs_config() -> dict[str, PairConfig]:
    """Build the shipped symbol table as ``PairConfig`` objects."""
    return {
        symbol: PairConfig(pip_size=size, pip_value=value, spread=spread)
        for symbol, (size, value, spread) in _PAIR_SPECS.items()
    }


def normalize_symbol(symbol: str) -> str:
    """``"eur/usd"`` -> ``"EURUSD"``."""
    return "".join(ch for ch in symbol.upper() if ch not in "/_- .")


def resolve_pricing(symbol: str, pairs_config: dict[str, PairConfig]) -> PairConfig:
    """Map a symbol to its pricing profile.

    Lookup order: exact key, normalized key, ``"Other"``, then a built-in
    fallback so a settings table without ``"Other"`` still prices trades.
    """
    if symbol in pairs_config:
        return pairs_config[symbol]

    wanted = normalize_symbol(symbol)
    for key, profile in pairs_config.items():
        if normalize_symbol(key) == wanted:
            return profile

    other = pairs_config.get(OTHER_PAIR)
    if other is not None:
        return other

    logger.warning("No pricing for %s and no '%s' profile; using fallback", symbol, OTHER_PAIR)
    return _FALLBACK
