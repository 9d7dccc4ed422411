"""
MEXC REST market data clients for spot and futures.

Both markets expose the same capabilities (recent candle volumes, 24h
ticker) under different URLs and response shapes. Each variant normalizes
its payloads so callers always get an oldest-first list of non-negative
quote volumes. Failures are returned as DataUnavailable, never raised.
"""
import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import aiohttp

from core.models import DataUnavailable, MarketType, Ticker24h
from core.volume_anomaly_detector import coerce_volume

logger = logging.getLogger(__name__)

SPOT_REST_URL = "https://api.mexc.com"
FUTURES_REST_URL = "https://contract.mexc.com"
DEFAULT_REQUEST_TIMEOUT = 10.0

SPOT_INTERVALS = {1: "1m", 5: "5m", 15: "15m", 30: "30m", 60: "60m"}
FUTURES_INTERVALS = {1: "Min1", 5: "Min5", 15: "Min15", 30: "Min30", 60: "Min60"}

# Spot kline row: [openTime, open, high, low, close, volume, closeTime, quoteVolume]
SPOT_QUOTE_VOLUME_INDEX = 7

VolumeSeries = Union[List[float], DataUnavailable]


class UpstreamError(Exception):
    """Request or payload problem; converted to DataUnavailable at the public boundary."""


class MarketDataSource(ABC):
    """Market data client for one market type."""

    market_type: MarketType

    def __init__(
        self,
        base_url: str,
        get_session: Callable[[], Awaitable[aiohttp.ClientSession]],
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ):
        self.base_url = base_url.rstrip("/")
        self._get_session = get_session
        self._timeout = aiohttp.ClientTimeout(total=request_timeout)
        self._clock = clock

    def _unavailable(self, symbol: str, reason: str) -> DataUnavailable:
        logger.debug(f"{self.market_type.label} data unavailable for {symbol}: {reason}")
        return DataUnavailable(symbol=symbol, market_type=self.market_type, reason=reason)

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a JSON document, raising UpstreamError on any failure."""
        session = await self._get_session()
        url = f"{self.base_url}{path}"

        try:
            async with session.get(url, params=params, timeout=self._timeout) as response:
                if response.status != 200:
                    raise UpstreamError(f"HTTP {response.status}")
                return await response.json(content_type=None)
        except asyncio.TimeoutError:
            raise UpstreamError("request timed out") from None
        except aiohttp.ClientError as e:
            raise UpstreamError(f"network error: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"invalid JSON: {e}") from e

    async def fetch_recent_volume_series(self, symbol: str, interval_minutes: int = 5, count: int = 12) -> VolumeSeries:
        """
        Fetch the last `count` candle quote volumes.

        Returns:
            Oldest-first list of non-negative floats, or DataUnavailable
        """
        try:
            volumes = await self._fetch_volumes(symbol, interval_minutes, count)
        except UpstreamError as e:
            return self._unavailable(symbol, str(e))

        if not volumes:
            return self._unavailable(symbol, "empty candle series")

        return volumes[-count:]

    async def fetch_ticker(self, symbol: str) -> Union[Ticker24h, DataUnavailable]:
        """Fetch the 24h ticker summary for one symbol."""
        try:
            return await self._fetch_ticker(symbol)
        except UpstreamError as e:
            return self._unavailable(symbol, str(e))

    async def fetch_24h_volume(self, symbol: str) -> Union[float, DataUnavailable]:
        """24h quote volume (informational, not used for detection)."""
        ticker = await self.fetch_ticker(symbol)
        if isinstance(ticker, DataUnavailable):
            return ticker
        return ticker.quote_volume

    async def fetch_all_tickers(self) -> Union[List[Ticker24h], DataUnavailable]:
        """Fetch 24h tickers for every listed symbol."""
        try:
            return await self._fetch_all_tickers()
        except UpstreamError as e:
            return self._unavailable("*", str(e))

    @abstractmethod
    async def _fetch_volumes(self, symbol: str, interval_minutes: int, count: int) -> List[float]:
        ...

    @abstractmethod
    async def _fetch_ticker(self, symbol: str) -> Ticker24h:
        ...

    @abstractmethod
    async def _fetch_all_tickers(self) -> List[Ticker24h]:
        ...


class SpotMarketData(MarketDataSource):
    """MEXC spot API (api/v3)."""

    market_type = MarketType.SPOT

    async def _fetch_volumes(self, symbol: str, interval_minutes: int, count: int) -> List[float]:
        interval = SPOT_INTERVALS.get(interval_minutes)
        if interval is None:
            raise UpstreamError(f"unsupported interval {interval_minutes}m")

        data = await self._get_json(
            "/api/v3/klines",
            params={"symbol": symbol, "interval": interval, "limit": count},
        )
        return parse_spot_klines(data)

    async def _fetch_ticker(self, symbol: str) -> Ticker24h:
        data = await self._get_json("/api/v3/ticker/24hr", params={"symbol": symbol})
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict):
            raise UpstreamError("unexpected ticker payload")
        return parse_spot_ticker(data, symbol)

    async def _fetch_all_tickers(self) -> List[Ticker24h]:
        data = await self._get_json("/api/v3/ticker/24hr")
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise UpstreamError("unexpected ticker payload")
        return [parse_spot_ticker(item, item.get("symbol", "")) for item in data if isinstance(item, dict)]


class FuturesMarketData(MarketDataSource):
    """MEXC contract (futures) API (api/v1/contract)."""

    market_type = MarketType.FUTURES

    async def _get_envelope(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Unwrap the {"success": ..., "data": ...} envelope."""
        payload = await self._get_json(path, params=params)
        if not isinstance(payload, dict) or not payload.get("success"):
            code = payload.get("code") if isinstance(payload, dict) else None
            raise UpstreamError(f"request not successful (code={code})")
        return payload.get("data")

    async def _fetch_volumes(self, symbol: str, interval_minutes: int, count: int) -> List[float]:
        interval = FUTURES_INTERVALS.get(interval_minutes)
        if interval is None:
            raise UpstreamError(f"unsupported interval {interval_minutes}m")

        end = int(self._clock())
        start = end - count * interval_minutes * 60

        data = await self._get_envelope(
            f"/api/v1/contract/kline/{symbol}",
            params={"interval": interval, "start": start, "end": end},
        )
        return parse_futures_klines(data)

    async def _fetch_ticker(self, symbol: str) -> Ticker24h:
        data = await self._get_envelope("/api/v1/contract/ticker", params={"symbol": symbol})
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict):
            raise UpstreamError("unexpected ticker payload")
        return parse_futures_ticker(data, symbol)

    async def _fetch_all_tickers(self) -> List[Ticker24h]:
        data = await self._get_envelope("/api/v1/contract/ticker")
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise UpstreamError("unexpected ticker payload")
        return [parse_futures_ticker(item, item.get("symbol", "")) for item in data if isinstance(item, dict)]


def parse_spot_klines(data: Any) -> List[float]:
    """Extract quote volumes from a spot kline array-of-arrays."""
    if not isinstance(data, list):
        raise UpstreamError("unexpected kline payload")

    volumes = []
    for row in data:
        if isinstance(row, (list, tuple)) and len(row) > SPOT_QUOTE_VOLUME_INDEX:
            volumes.append(coerce_volume(row[SPOT_QUOTE_VOLUME_INDEX]))
        else:
            volumes.append(0.0)
    return volumes


def parse_futures_klines(data: Any) -> List[float]:
    """Extract quote volumes from a futures kline object of parallel arrays."""
    if not isinstance(data, dict):
        raise UpstreamError("unexpected kline payload")

    amounts = data.get("amount") or []
    times = data.get("time") or []
    if not isinstance(amounts, list):
        raise UpstreamError("kline 'amount' is not a list")

    volumes = [coerce_volume(v) for v in amounts]

    # Order by candle open time when timestamps line up with the volumes
    if isinstance(times, list) and len(times) == len(volumes):
        ordered = sorted(zip((coerce_volume(t) for t in times), volumes), key=lambda pair: pair[0])
        volumes = [volume for _, volume in ordered]

    return volumes


def parse_spot_ticker(data: Dict[str, Any], symbol: str) -> Ticker24h:
    return Ticker24h(
        symbol=data.get("symbol") or symbol,
        market_type=MarketType.SPOT,
        quote_volume=coerce_volume(data.get("quoteVolume")),
        price_change_percent=_to_float(data.get("priceChangePercent")),
        last_price=coerce_volume(data.get("lastPrice")),
    )


def parse_futures_ticker(data: Dict[str, Any], symbol: str) -> Ticker24h:
    # amount24 is turnover in USDT; volume24 (contracts) is a fallback
    quote_volume = data.get("amount24")
    if quote_volume is None:
        quote_volume = data.get("volume24")

    return Ticker24h(
        symbol=data.get("symbol") or symbol,
        market_type=MarketType.FUTURES,
        quote_volume=coerce_volume(quote_volume),
        price_change_percent=_to_float(data.get("riseFallRate")) * 100,
        last_price=coerce_volume(data.get("lastPrice")),
    )


def _to_float(value) -> float:
    """Signed float conversion (0.0 if malformed)."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class MarketDataRouter:
    """
    Dispatches requests to the spot or futures client by market type.
    Owns the shared aiohttp session.
    """

    def __init__(
        self,
        spot_url: str = SPOT_REST_URL,
        futures_url: str = FUTURES_REST_URL,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._session = session
        self._owns_session = session is None
        self._sources: Dict[MarketType, MarketDataSource] = {
            MarketType.SPOT: SpotMarketData(spot_url, self._ensure_session, request_timeout, clock),
            MarketType.FUTURES: FuturesMarketData(futures_url, self._ensure_session, request_timeout, clock),
        }

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session exists."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self):
        """Close the aiohttp session if we created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def for_market(self, market_type: MarketType) -> MarketDataSource:
        return self._sources[MarketType(market_type)]

    async def fetch_recent_volume_series(
        self, symbol: str, market_type: MarketType, interval_minutes: int = 5, count: int = 12
    ) -> VolumeSeries:
        return await self.for_market(market_type).fetch_recent_volume_series(symbol, interval_minutes, count)

    async def fetch_24h_volume(self, symbol: str, market_type: MarketType) -> Union[float, DataUnavailable]:
        return await self.for_market(market_type).fetch_24h_volume(symbol)

    async def fetch_all_tickers(self, market_type: MarketType) -> Union[List[Ticker24h], DataUnavailable]:
        return await self.for_market(market_type).fetch_all_tickers()
