"""Plain price-feed aggregation straight from the Pyth service."""
from __future__ import annotations

import logging
import time
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

from ..errors import describe_error
from ..interfaces.price_oracle import PriceFeedSource
from ..models import PriceFeedSnapshot, PriceQuote, PythPrice
from .polling import PollingTask

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_SECONDS = 15.0
DEFAULT_STALE_SECONDS = 300


class PriceFeedAggregator:
    """Polls reference prices for the denoms that have a configured feed id.

    A failed fetch keeps the previous prices and records the error message;
    the next successful fetch clears it.
    """

    def __init__(
        self,
        source: PriceFeedSource,
        feeds: Mapping[str, str],
        denoms: Iterable[str] | None = None,
        refresh_seconds: float = DEFAULT_REFRESH_SECONDS,
        stale_seconds: int = DEFAULT_STALE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._clock = clock
        self.stale_seconds = stale_seconds
        wanted = set(feeds) if denoms is None else set(denoms)
        self._feeds = {d: fid for d, fid in feeds.items() if d in wanted and fid}
        self._snapshot = PriceFeedSnapshot()
        self._poller = PollingTask(
            "price-feeds",
            self.collect,
            self._publish,
            refresh_seconds,
            on_error=self._record_error,
        )

    @property
    def snapshot(self) -> PriceFeedSnapshot:
        return self._snapshot

    def price(self, denom: str) -> PriceQuote | None:
        return self._snapshot.prices.get(denom)

    async def collect(self) -> dict[str, PythPrice]:
        """Fetch one batch; keys are denoms."""
        if not self._feeds:
            return {}
        quotes = await self._source.fetch_quotes(sorted(set(self._feeds.values())))
        return {
            denom: quotes[feed_id]
            for denom, feed_id in self._feeds.items()
            if feed_id in quotes
        }

    def _publish(self, raw: Mapping[str, PythPrice]) -> None:
        now = self._clock()
        prices = {
            denom: PriceQuote(
                denom=denom,
                value=quote.price,
                confidence=quote.confidence,
                published_at=quote.publish_time,
            )
            for denom, quote in raw.items()
        }
        is_stale = any(now - q.publish_time > self.stale_seconds for q in raw.values())
        self._snapshot = PriceFeedSnapshot(
            prices=MappingProxyType(prices),
            raw_prices=MappingProxyType(dict(raw)),
            error=None,
            last_updated=now,
            is_stale=is_stale,
        )

    def _record_error(self, error: BaseException) -> None:
        previous = self._snapshot
        self._snapshot = PriceFeedSnapshot(
            prices=previous.prices,
            raw_prices=previous.raw_prices,
            error=describe_error(error),
            last_updated=previous.last_updated,
            is_stale=previous.is_stale,
        )

    async def refresh(self) -> PriceFeedSnapshot:
        await self._poller.run_once()
        return self._snapshot

    def start(self) -> None:
        self._poller.start()

    async def stop(self) -> None:
        await self._poller.stop()
