"""Pyth Network (Hermes) price feed source."""
import logging
import ssl
from typing import Iterable

import aiohttp
import certifi

from ..config import PythConfig
from ..errors import PriceSourceError
from ..models import PriceQuote, PythPrice
from ..numeric import scale_by_exponent

logger = logging.getLogger(__name__)


def normalize_feed_id(feed_id: str) -> str:
    """Hermes reports ids lowercase without the ``0x`` prefix."""
    feed_id = feed_id.strip().lower()
    if feed_id.startswith("0x"):
        feed_id = feed_id[2:]
    return feed_id


class PythOracle:
    """Fetch prices from the Pyth Hermes REST service."""

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.timeout = config.request_timeout
        self.price_feeds = {
            denom: normalize_feed_id(feed_id) for denom, feed_id in config.feeds.items()
        }

    async def fetch_quotes(self, feed_ids: Iterable[str]) -> dict[str, PythPrice]:
        """Fetch the latest price for each feed id in one request.

        Keys of the result are normalised feed ids. Feeds the service does not
        return are simply absent.

        Raises:
            PriceSourceError: Hermes answered with a non-200 status.
        """
        ids = sorted({normalize_feed_id(fid) for fid in feed_ids if fid})
        if not ids:
            return {}

        query_params = "&".join(f"ids[]={fid}" for fid in ids)
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.get(
                url, timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                if response.status != 200:
                    raise PriceSourceError(
                        f"Error fetching prices from Pyth: HTTP {response.status}"
                    )
                data = await response.json()

        quotes: dict[str, PythPrice] = {}
        for item in data.get("parsed", []):
            feed_id = normalize_feed_id(str(item.get("id", "")))
            price_data = item.get("price") or {}
            if not feed_id or "price" not in price_data:
                continue

            expo = int(price_data.get("expo", 0))
            quotes[feed_id] = PythPrice(
                feed_id=feed_id,
                price=scale_by_exponent(price_data["price"], expo),
                confidence=scale_by_exponent(price_data.get("conf", 0), expo),
                expo=expo,
                publish_time=int(price_data.get("publish_time", 0)),
            )

        logger.debug("Fetched %d/%d Pyth prices", len(quotes), len(ids))
        return quotes

    async def fetch_prices(self, denoms: list[str] | None = None) -> dict[str, PriceQuote]:
        """Fetch prices for configured denoms (all of them when ``denoms`` is None).

        Several denoms may share a feed id; each gets its own quote.
        """
        feeds = self.price_feeds
        if denoms is not None:
            feeds = {k: v for k, v in self.price_feeds.items() if k in denoms}
        if not feeds:
            return {}

        quotes = await self.fetch_quotes(feeds.values())

        prices: dict[str, PriceQuote] = {}
        for denom, feed_id in feeds.items():
            quote = quotes.get(feed_id)
            if quote is None:
                continue
            prices[denom] = PriceQuote(
                denom=denom,
                value=quote.price,
                confidence=quote.confidence,
                published_at=quote.publish_time,
            )

        for denom, quote in sorted(prices.items()):
            logger.debug("  %s: $%s", denom, quote.value)
        return prices
