"""Package orchestrator outcomes and the selected quote into an AggregationResult."""
from __future__ import annotations

from typing import Optional, Sequence

from .models import AggregationResult, ProviderOutcome, Quote


def _completion_order(outcome: ProviderOutcome) -> int:
    # Timed-out slots are stamped on expiry, so every settled slot has a sequence
    return outcome.sequence if outcome.sequence is not None else 1 << 62


def assemble_result(
    outcomes: Sequence[ProviderOutcome],
    best: Optional[Quote],
    cached: bool = False,
) -> AggregationResult:
    """
    Build the caller-facing result.

    Quotes and failures are listed in completion order; attempted providers
    keep registry order.
    """
    settled = sorted(outcomes, key=_completion_order)
    return AggregationResult(
        best=best,
        quotes=[outcome.quote for outcome in settled if outcome.quote is not None],
        failed_providers=[outcome.failure for outcome in settled if outcome.failure is not None],
        attempted_providers=[outcome.provider for outcome in outcomes],
        cached=cached,
    )
