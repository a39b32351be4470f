"""Protocol interfaces for the market risk engine."""
from .chain import ContractQuerier
from .position_source import PositionSource
from .price_oracle import PriceFeedSource
from .snapshot_store import SnapshotStore

__all__ = ["ContractQuerier", "PositionSource", "PriceFeedSource", "SnapshotStore"]
