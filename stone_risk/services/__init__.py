"""Service modules"""
from .dashboard import RiskDashboard
from .oracle_aggregator import OracleAggregator, merge_requirements, query_oracle
from .polling import PollingTask
from .price_feeds import PriceFeedAggregator

__all__ = [
    "OracleAggregator",
    "PollingTask",
    "PriceFeedAggregator",
    "RiskDashboard",
    "merge_requirements",
    "query_oracle",
]
