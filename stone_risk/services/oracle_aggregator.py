"""Multi-oracle price aggregation.

Fans out config, feed-list and per-denom price queries across every oracle
contract the configured markets use, captures each failure as a display
message, and publishes the results as one read-only map.
"""
from __future__ import annotations

import asyncio
import logging
import time
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from ..errors import describe_error
from ..interfaces.chain import ContractQuerier
from ..models import OracleRequirement, OracleSourceState
from ..oracles.contract import OracleContractReader
from .polling import PollingTask

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_SECONDS = 10.0


def merge_requirements(
    requirements: Iterable[OracleRequirement],
) -> tuple[OracleRequirement, ...]:
    """One entry per oracle address with the union of requested denoms.

    Address order follows first appearance; denoms are sorted.
    """
    merged: dict[str, set[str]] = {}
    for req in requirements:
        if not req.address:
            continue
        merged.setdefault(req.address, set()).update(d for d in req.denoms if d)
    return tuple(
        OracleRequirement(address=address, denoms=tuple(sorted(denoms)))
        for address, denoms in merged.items()
    )


async def query_oracle(
    reader: OracleContractReader,
    denoms: Iterable[str],
    now: float | None = None,
) -> OracleSourceState:
    """Query one oracle contract; never raises for query failures.

    Config, the feed list and every unique denom's price are requested
    concurrently and each result is captured independently, so a bad denom
    or an unreachable config query leaves the rest of the state intact.
    """
    unique_denoms = list(dict.fromkeys(denoms))
    results = await asyncio.gather(
        reader.config(),
        reader.price_feeds(),
        *(reader.price(denom) for denom in unique_denoms),
        return_exceptions=True,
    )
    config_result, feeds_result, *price_results = results

    prices: dict[str, Any] = {}
    price_errors: dict[str, str] = {}
    for denom, result in zip(unique_denoms, price_results):
        if isinstance(result, BaseException):
            price_errors[denom] = describe_error(result)
            logger.warning(
                "Price query for %s on %s failed: %s",
                denom, reader.address, price_errors[denom],
            )
        else:
            prices[denom] = result

    config_error = None
    if isinstance(config_result, BaseException):
        config_error = describe_error(config_result)
        logger.warning("Config query on %s failed: %s", reader.address, config_error)
        config_result = None

    feeds_error = None
    if isinstance(feeds_result, BaseException):
        feeds_error = describe_error(feeds_result)
        logger.warning("Feed list query on %s failed: %s", reader.address, feeds_error)
        feeds_result = ()

    return OracleSourceState(
        address=reader.address,
        config=config_result,
        config_error=config_error,
        price_feeds=tuple(feeds_result),
        price_feeds_error=feeds_error,
        prices=MappingProxyType(prices),
        price_errors=MappingProxyType(price_errors),
        last_refreshed_at=time.time() if now is None else now,
    )


class OracleAggregator:
    """Periodically refreshes every required oracle and publishes a snapshot.

    The published map is replaced in a single assignment, so readers see
    either the previous cycle's results or the new ones, never a mix.
    """

    def __init__(
        self,
        querier: ContractQuerier,
        requirements: Iterable[OracleRequirement] = (),
        refresh_seconds: float = DEFAULT_REFRESH_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._querier = querier
        self._clock = clock
        self._requirements = merge_requirements(requirements)
        self._states: Mapping[str, OracleSourceState] = MappingProxyType({})
        self._last_updated: float | None = None
        self._poller = PollingTask(
            "oracle-aggregator", self.collect, self._publish, refresh_seconds
        )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def requirements(self) -> tuple[OracleRequirement, ...]:
        return self._requirements

    @property
    def snapshot(self) -> Mapping[str, OracleSourceState]:
        return self._states

    @property
    def last_updated(self) -> float | None:
        return self._last_updated

    @property
    def is_loading(self) -> bool:
        return self._last_updated is None

    def state(self, address: str) -> OracleSourceState | None:
        return self._states.get(address)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def set_requirements(self, requirements: Iterable[OracleRequirement]) -> None:
        """Replace the requirement set; takes effect from the next cycle."""
        self._requirements = merge_requirements(requirements)

    async def collect(self) -> dict[str, OracleSourceState]:
        """Query every required oracle once, without publishing."""
        requirements = self._requirements
        now = self._clock()
        states = await asyncio.gather(
            *(
                query_oracle(OracleContractReader(self._querier, req.address), req.denoms, now)
                for req in requirements
            )
        )
        logger.debug("Queried %d oracle(s)", len(states))
        return {state.address: state for state in states}

    def _publish(self, states: Mapping[str, OracleSourceState]) -> None:
        self._states = MappingProxyType(dict(states))
        self._last_updated = self._clock()

    async def refresh(self) -> Mapping[str, OracleSourceState]:
        """Run one cycle immediately and return the published snapshot."""
        await self._poller.run_once()
        return self._states

    def start(self) -> None:
        self._poller.start()

    async def stop(self) -> None:
        await self._poller.stop()
