"""Exceptions raised while acquiring data from the financial-data provider."""

from __future__ import annotations

from value_screener.models import ErrorKind


class ScreenerError(Exception):
    """Base class for all screener errors."""


class DataUnavailable(ScreenerError):
    """A resource for one symbol could not be retrieved or understood.

    Raised by the Finnhub client; the orchestrator turns it into an
    ``ERROR`` outcome for that symbol only.
    """

    kind: ErrorKind = ErrorKind.UPSTREAM_SHAPE

    def __init__(self, symbol: str, reason: str) -> None:
        super().__init__(f"{symbol}: {reason}")
        self.symbol = symbol
        self.reason = reason


class NetworkError(DataUnavailable):
    """Transport failure or timeout reaching the provider."""

    kind = ErrorKind.NETWORK


class UpstreamStatusError(DataUnavailable):
    """The provider answered with a non-2xx status."""

    kind = ErrorKind.UPSTREAM_STATUS

    def __init__(self, symbol: str, reason: str, status_code: int) -> None:
        super().__init__(symbol, reason)
        self.status_code = status_code


class UpstreamShapeError(DataUnavailable):
    """The response did not parse into the expected structure."""

    kind = ErrorKind.UPSTREAM_SHAPE


class ListingUnavailable(ScreenerError):
    """The symbol listing for an exchange could not be fetched.

    This is the only failure that aborts a whole batch.
    """

    def __init__(self, exchange: str, cause: DataUnavailable) -> None:
        super().__init__(f"Symbol listing for exchange {exchange} unavailable: {cause.reason}")
        self.exchange = exchange
        self.cause = cause
