"""Market risk engine for collateralized lending markets."""

__version__ = "0.1.0"
