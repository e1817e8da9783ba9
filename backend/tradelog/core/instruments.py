"""
Instrument Metadata Resolver

Maps a traded symbol to the dollar value of a one-point move for one
contract. Futures are recognized by their root code appearing anywhere in
the symbol (``NQZ4``, ``MESH5``); anything else is treated as a plain
equity with a multiplier of 1.

Matching is a case-insensitive substring test over an ordered table, first
match wins, so micro contracts are listed before their full-size roots.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

DEFAULT_MULTIPLIER = 1.0


@dataclass(frozen=True)
class Instrument:
    """Static point-value entry for a futures root."""
    root: str
    point_value: float
    description: str = ""


# Order matters: first substring match wins.
FUTURES_POINT_VALUES: Tuple[Instrument, ...] = (
    Instrument("MNQ", 2.0, "Micro E-mini Nasdaq-100"),
    Instrument("MES", 5.0, "Micro E-mini S&P 500"),
    Instrument("MYM", 0.5, "Micro E-mini Dow"),
    Instrument("M2K", 5.0, "Micro E-mini Russell 2000"),
    Instrument("MCL", 100.0, "Micro WTI Crude Oil"),
    Instrument("MGC", 10.0, "Micro Gold"),
    Instrument("NQ", 20.0, "E-mini Nasdaq-100"),
    Instrument("ES", 50.0, "E-mini S&P 500"),
    Instrument("YM", 5.0, "E-mini Dow"),
    Instrument("RTY", 50.0, "E-mini Russell 2000"),
    Instrument("CL", 1000.0, "WTI Crude Oil"),
    Instrument("GC", 100.0, "Gold"),
)


class InstrumentResolver:
    """Resolves point-value multipliers from an ordered instrument table."""
    
    def __init__(self, table: Sequence[Instrument] = FUTURES_POINT_VALUES, default: float = DEFAULT_MULTIPLIER):
        self._table = tuple(table)
        self._default = default
    
    def lookup(self, symbol: str) -> Optional[Instrument]:
        """Return the first table entry whose root occurs in the symbol."""
        if not symbol:
            return None
        normalized = symbol.strip().upper()
        for instrument in self._table:
            if instrument.root.upper() in normalized:
                return instrument
        return None
    
    def resolve(self, symbol: str) -> float:
        """Point-value multiplier for a symbol, default 1 when unmatched."""
        instrument = self.lookup(symbol)
        return instrument.point_value if instrument else self._default
    
    def is_futures(self, symbol: str) -> bool:
        return self.lookup(symbol) is not None


default_resolver = InstrumentResolver()


def resolve_multiplier(symbol: str) -> float:
    """Module-level shortcut over the default instrument table."""
    return default_resolver.resolve(symbol)
