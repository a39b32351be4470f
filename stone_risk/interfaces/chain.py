"""Chain client protocol — read-only smart contract queries."""
from typing import Any, Protocol


class ContractQuerier(Protocol):
    """Abstract interface for smart queries against a deployed contract."""

    async def query_smart(self, contract_address: str, query: dict[str, Any]) -> Any: ...
