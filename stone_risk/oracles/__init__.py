"""Price sources: the Pyth Hermes service and on-chain oracle contracts."""
from .contract import OracleContractReader
from .pyth import PythOracle

__all__ = ["OracleContractReader", "PythOracle"]
