"""Errors surfaced by the market data services to their callers."""


class HistoryPersistenceError(Exception):
    """Replacing a symbol's stored history failed and was rolled back.

    The previously stored rows are left untouched; callers must not treat
    the refetch as having happened.
    """

    def __init__(self, symbol: str, message: str = ""):
        self.symbol = symbol
        super().__init__(message or f"Failed to store history for {symbol}")
