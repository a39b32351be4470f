"""Price freshness classification."""
from __future__ import annotations

from dataclasses import dataclass

from ..config import FreshnessConfig
from ..models import FreshnessClass, OracleSourceState


@dataclass(frozen=True)
class FreshnessThresholds:
    """Age boundaries in seconds, ascending.

    ``caution_seconds`` only drives the colour grading in ``freshness_shade``;
    classification uses ``fresh_seconds`` and ``stale_seconds``.
    """

    fresh_seconds: int = 60
    stale_seconds: int = 300
    caution_seconds: int = 180

    @classmethod
    def from_config(cls, config: FreshnessConfig) -> FreshnessThresholds:
        return cls(fresh_seconds=config.fresh_seconds, stale_seconds=config.stale_seconds)


DEFAULT_THRESHOLDS = FreshnessThresholds()

_STATUS_EMOJI = {
    FreshnessClass.FRESH: "🟢",
    FreshnessClass.WARNING: "🟡",
    FreshnessClass.STALE: "🔴",
    FreshnessClass.ERROR: "❌",
    FreshnessClass.LOADING: "⏳",
}


def classify_freshness(
    updated_at: int | None,
    has_error: bool,
    now: float,
    thresholds: FreshnessThresholds = DEFAULT_THRESHOLDS,
) -> FreshnessClass:
    """Classify a price by age.

    An error always wins, then a missing timestamp means the first result is
    still outstanding. Otherwise the age ``now - updated_at`` is compared with
    the thresholds, boundaries inclusive on the fresher side.
    """
    if has_error:
        return FreshnessClass.ERROR
    if updated_at is None:
        return FreshnessClass.LOADING

    age = now - updated_at
    if age <= thresholds.fresh_seconds:
        return FreshnessClass.FRESH
    if age <= thresholds.stale_seconds:
        return FreshnessClass.WARNING
    return FreshnessClass.STALE


def quote_freshness(
    state: OracleSourceState | None,
    denom: str,
    now: float,
    thresholds: FreshnessThresholds = DEFAULT_THRESHOLDS,
) -> FreshnessClass:
    """Freshness of one denom's price inside an oracle's published state."""
    if state is None:
        return FreshnessClass.LOADING
    quote = state.prices.get(denom)
    return classify_freshness(
        quote.published_at if quote is not None else None,
        denom in state.price_errors,
        now,
        thresholds,
    )


def freshness_label(freshness: FreshnessClass) -> str:
    """e.g. ``"🟡 warning"``."""
    return f"{_STATUS_EMOJI[freshness]} {freshness.value}"


def freshness_shade(
    age_seconds: float, thresholds: FreshnessThresholds = DEFAULT_THRESHOLDS
) -> FreshnessClass:
    """Colour grade for a display: green, then yellow up to the caution mark, then red."""
    if age_seconds <= thresholds.fresh_seconds:
        return FreshnessClass.FRESH
    if age_seconds <= thresholds.caution_seconds:
        return FreshnessClass.WARNING
    return FreshnessClass.STALE
