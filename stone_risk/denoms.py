"""Denom registry — resolves IBC hashes and display names to chain denoms.

IBC denoms on Neutron are opaque ``ibc/<hash>`` strings. Reference prices are
keyed by the underlying chain denom (``uatom``) and reports show a symbol
(``ATOM``), so every market denom goes through this table first.
"""
from __future__ import annotations

from typing import Mapping

from .models import DenomInfo

IBC_DENOMS: dict[str, DenomInfo] = {
    # ATOM from the Cosmos Hub
    "ibc/C4CFF46FD6DE35CA4CF4CE031E643C8FDC9BA4B99AE598E9B0ED98FE3A2319F9": DenomInfo(
        symbol="ATOM", chain_denom="uatom", name="Cosmos Hub ATOM"
    ),
    # Noble USDC
    "ibc/B559A80D62249C8AA07A380E2A2BEA6E5CA9A6F079C912C3A9E9B494105E4F81": DenomInfo(
        symbol="USDC", chain_denom="uusdc", name="Noble USDC"
    ),
    # OSMO from Osmosis
    "ibc/376222D6D9DAE23092E29740E56B758580935A6D77C24C2ABD57A6A78A1F3955": DenomInfo(
        symbol="OSMO", chain_denom="uosmo", name="Osmosis"
    ),
}

NATIVE_DENOMS: dict[str, DenomInfo] = {
    "uatom": DenomInfo(symbol="ATOM", chain_denom="uatom", name="Cosmos Hub ATOM"),
    "uusdc": DenomInfo(symbol="USDC", chain_denom="uusdc", name="USD Coin"),
    "uosmo": DenomInfo(symbol="OSMO", chain_denom="uosmo", name="Osmosis"),
    "untrn": DenomInfo(symbol="NTRN", chain_denom="untrn", name="Neutron"),
    "ustone": DenomInfo(symbol="STONE", chain_denom="ustone", name="Stone Token"),
    # Local testnet
    "stake": DenomInfo(symbol="STAKE", chain_denom="stake", name="Stake Token"),
}


class DenomRegistry:
    """Built-in denom tables, optionally extended from config.

    Extra entries whose key starts with ``ibc/`` go to the IBC table, the rest
    to the native one; either way they override built-ins.
    """

    def __init__(self, extra: Mapping[str, DenomInfo] | None = None) -> None:
        self._ibc = dict(IBC_DENOMS)
        self._native = dict(NATIVE_DENOMS)
        for denom, info in (extra or {}).items():
            table = self._ibc if denom.startswith("ibc/") else self._native
            table[denom] = info

    def get_denom_info(self, denom: str) -> DenomInfo | None:
        """Look up a denom, then its lowercase form, then ``u`` + lowercase.

        IBC denoms are matched exactly, never by variant.
        """
        if denom.startswith("ibc/"):
            return self._ibc.get(denom)

        lower = denom.lower()
        for candidate in (denom, lower, f"u{lower}"):
            info = self._native.get(candidate)
            if info is not None:
                return info
        return None

    def chain_denom(self, denom: str) -> str:
        """Denom to use for reference-price lookups."""
        info = self.get_denom_info(denom)
        if info is not None:
            return info.chain_denom
        if "/" in denom:
            # Unknown ibc/ or factory/ path; no micro-unit form to derive
            return denom
        lower = denom.lower()
        return lower if lower.startswith("u") else f"u{lower}"

    def display_symbol(self, denom: str) -> str:
        info = self.get_denom_info(denom)
        if info is not None:
            return info.symbol
        if denom.startswith("ibc/"):
            return "IBC"
        lower = denom.lower()
        if lower.startswith("u"):
            return lower[1:].upper()
        return denom.upper()

    def decimals(self, denom: str, default: int = 6) -> int:
        info = self.get_denom_info(denom)
        return info.decimals if info is not None else default


DEFAULT_REGISTRY = DenomRegistry()


def get_denom_info(denom: str) -> DenomInfo | None:
    return DEFAULT_REGISTRY.get_denom_info(denom)


def chain_denom(denom: str) -> str:
    return DEFAULT_REGISTRY.chain_denom(denom)


def display_symbol(denom: str) -> str:
    return DEFAULT_REGISTRY.display_symbol(denom)
