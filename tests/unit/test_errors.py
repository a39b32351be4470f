"""Unit tests for error message extraction."""
from __future__ import annotations

from stone_risk.errors import ContractQueryError, describe_error


class TestDescribeError:
    def test_extracts_contract_error(self) -> None:
        err = ContractQueryError(
            "rpc error: code = Unknown desc = error executing WasmQuery: "
            "PriceStale: price is older than 60s: query wasm contract failed"
        )
        assert describe_error(err) == "PriceStale: price is older than 60s"

    def test_extracts_to_end_of_message(self) -> None:
        err = RuntimeError("error executing query: ConfidenceTooHigh")
        assert describe_error(err) == "ConfidenceTooHigh"

    def test_known_code_without_wrapper(self) -> None:
        assert describe_error(RuntimeError("Generic failure: ConfidenceTooHigh (ratio 0.02)")) == "ConfidenceTooHigh"

    def test_not_found_maps_to_unconfigured_feed(self) -> None:
        assert describe_error(RuntimeError("feed for uatom not found")) == "PriceFeedNotConfigured"

    def test_long_message_truncated(self) -> None:
        message = "x" * 150
        described = describe_error(RuntimeError(message))
        assert described == "x" * 100 + "..."

    def test_short_message_unchanged(self) -> None:
        assert describe_error(RuntimeError("connection reset")) == "connection reset"

    def test_empty_message_uses_type_name(self) -> None:
        assert describe_error(TimeoutError()) == "TimeoutError"
