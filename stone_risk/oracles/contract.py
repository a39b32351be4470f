"""Read-only client for an on-chain oracle contract."""
from __future__ import annotations

import logging
from typing import Any

from ..interfaces.chain import ContractQuerier
from ..models import OracleConfig, PriceFeed, PriceQuote
from ..numeric import to_decimal

logger = logging.getLogger(__name__)


class OracleContractReader:
    """Wraps the three queries an oracle contract answers.

    Each call fails independently and raises; turning failures into display
    messages is the aggregator's job.
    """

    def __init__(self, querier: ContractQuerier, address: str) -> None:
        self._querier = querier
        self.address = address

    async def config(self) -> OracleConfig:
        data = await self._querier.query_smart(self.address, {"config": {}})
        ratio = data.get("max_confidence_ratio")
        return OracleConfig(
            owner=str(data.get("owner", "")),
            price_source_address=str(data.get("pyth_contract_addr", "")),
            max_confidence_ratio=to_decimal(ratio) if ratio is not None else None,
        )

    async def price_feeds(self) -> tuple[PriceFeed, ...]:
        data = await self._querier.query_smart(self.address, {"all_price_feeds": {}})
        # The contract returns a bare list; older builds wrapped it in {"feeds": [...]}
        if isinstance(data, dict):
            data = data.get("feeds", [])
        return tuple(
            PriceFeed(denom=str(f["denom"]), feed_id=str(f["feed_id"]))
            for f in data or []
        )

    async def price(self, denom: str) -> PriceQuote:
        """Current price for ``denom``.

        Raises:
            ValueError: the contract answered with a non-numeric price.
        """
        data: dict[str, Any] = await self._querier.query_smart(
            self.address, {"price": {"denom": denom}}
        )
        value = to_decimal(data.get("price"))
        if value is None:
            raise ValueError(f"Malformed price for {denom}: {data.get('price')!r}")
        return PriceQuote(
            denom=str(data.get("denom", denom)),
            value=value,
            published_at=int(data.get("updated_at", 0)),
        )
