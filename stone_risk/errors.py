"""Exception types and error-message extraction for oracle queries."""
from __future__ import annotations

import re

_MAX_MESSAGE_LENGTH = 100

_CONTRACT_ERROR_RE = re.compile(r"error executing.*?:(.*?)(?:$|query wasm)", re.IGNORECASE)

# (substring, reported code) in match order
_KNOWN_ERRORS: tuple[tuple[str, str], ...] = (
    ("ConfidenceTooHigh", "ConfidenceTooHigh"),
    ("PriceFeedNotConfigured", "PriceFeedNotConfigured"),
    ("PriceStale", "PriceStale"),
    ("not found", "PriceFeedNotConfigured"),
)


class StoneRiskError(Exception):
    """Base class for errors raised by the risk engine's I/O layer."""


class ContractQueryError(StoneRiskError):
    """A smart query reached the chain but the contract returned an error."""


class EndpointUnavailableError(StoneRiskError):
    """No configured endpoint could be reached."""


class PriceSourceError(StoneRiskError):
    """The price-reporting service answered with an error."""


def describe_error(error: BaseException) -> str:
    """Turn a failed call into a short message suitable for display.

    Contract failures usually arrive wrapped in several layers of node
    text, e.g. ``"... error executing WasmQuery: PriceStale: query wasm
    contract failed"``. The contract part is extracted when it can be found,
    then known error codes are matched, and otherwise the raw message is cut
    to a bounded length.
    """
    message = str(error)
    if not message:
        return type(error).__name__

    match = _CONTRACT_ERROR_RE.search(message)
    if match:
        extracted = match.group(1).strip().rstrip(":").strip()
        if extracted:
            return extracted

    for needle, code in _KNOWN_ERRORS:
        if needle in message:
            return code

    if len(message) > _MAX_MESSAGE_LENGTH:
        return message[:_MAX_MESSAGE_LENGTH] + "..."
    return message
