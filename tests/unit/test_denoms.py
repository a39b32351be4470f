"""Unit tests for the denom registry."""
from __future__ import annotations

import pytest

from stone_risk.denoms import (
    DenomRegistry,
    chain_denom,
    display_symbol,
    get_denom_info,
)
from stone_risk.models import DenomInfo

ATOM_IBC = "ibc/C4CFF46FD6DE35CA4CF4CE031E643C8FDC9BA4B99AE598E9B0ED98FE3A2319F9"
USDC_IBC = "ibc/B559A80D62249C8AA07A380E2A2BEA6E5CA9A6F079C912C3A9E9B494105E4F81"
UNKNOWN_IBC = "ibc/0000000000000000000000000000000000000000000000000000000000000000"


class TestGetDenomInfo:
    def test_known_ibc_hash(self) -> None:
        info = get_denom_info(ATOM_IBC)
        assert info is not None
        assert info.symbol == "ATOM"
        assert info.chain_denom == "uatom"
        assert info.decimals == 6

    def test_unknown_ibc_hash(self) -> None:
        assert get_denom_info(UNKNOWN_IBC) is None

    def test_ibc_hash_is_case_sensitive(self) -> None:
        assert get_denom_info(ATOM_IBC.lower()) is None

    @pytest.mark.parametrize("denom", ["uatom", "UATOM", "ATOM", "atom"])
    def test_native_variants(self, denom: str) -> None:
        info = get_denom_info(denom)
        assert info is not None and info.chain_denom == "uatom"

    def test_non_micro_native(self) -> None:
        info = get_denom_info("stake")
        assert info is not None and info.symbol == "STAKE"

    def test_unknown_native(self) -> None:
        assert get_denom_info("ubtc") is None


class TestChainDenom:
    @pytest.mark.parametrize(
        ("denom", "expected"),
        [
            (ATOM_IBC, "uatom"),
            (USDC_IBC, "uusdc"),
            ("OSMO", "uosmo"),
            ("ubtc", "ubtc"),
            ("BTC", "ubtc"),
            ("UBTC", "ubtc"),
            (UNKNOWN_IBC, UNKNOWN_IBC),
        ],
    )
    def test_resolves(self, denom: str, expected: str) -> None:
        assert chain_denom(denom) == expected


class TestDisplaySymbol:
    @pytest.mark.parametrize(
        ("denom", "expected"),
        [
            (ATOM_IBC, "ATOM"),
            ("untrn", "NTRN"),
            ("ubtc", "BTC"),
            ("weth", "WETH"),
            (UNKNOWN_IBC, "IBC"),
        ],
    )
    def test_resolves(self, denom: str, expected: str) -> None:
        assert display_symbol(denom) == expected


class TestConfiguredEntries:
    def test_extra_ibc_entry(self) -> None:
        registry = DenomRegistry(
            {UNKNOWN_IBC: DenomInfo(symbol="TIA", chain_denom="utia", decimals=6)}
        )
        assert registry.chain_denom(UNKNOWN_IBC) == "utia"
        assert registry.display_symbol(UNKNOWN_IBC) == "TIA"
        # default registry is untouched
        assert display_symbol(UNKNOWN_IBC) == "IBC"

    def test_extra_native_overrides_builtin(self) -> None:
        registry = DenomRegistry({"uusdc": DenomInfo(symbol="axlUSDC", chain_denom="uusdc")})
        assert registry.display_symbol("USDC") == "axlUSDC"

    def test_decimals(self) -> None:
        registry = DenomRegistry({"wei": DenomInfo(symbol="ETH", chain_denom="weth", decimals=18)})
        assert registry.decimals("wei") == 18
        assert registry.decimals("ubtc") == 6
