# ABOUTME: Builds run results and summary counters from item outcomes
# ABOUTME: Also hosts the caller-side success-rate check

from zenless_harvest.core.models import FailureEntry, ItemOutcome, RunResult, RunSummary, SourceEntry
from zenless_harvest.errors import SuccessRateError


def summarize(
    outcomes: list[ItemOutcome], elapsed_ms: int = 0, interrupted: bool = False, not_started: int = 0
) -> RunSummary:
    succeeded = sum(1 for outcome in outcomes if outcome.success)
    return RunSummary(
        total=len(outcomes),
        succeeded=succeeded,
        failed=len(outcomes) - succeeded,
        total_bytes=sum(outcome.bytes_written for outcome in outcomes),
        elapsed_ms=elapsed_ms,
        interrupted=interrupted,
        not_started=not_started,
    )


def build_run_result(
    entries: list[SourceEntry],
    outcomes: list[ItemOutcome],
    elapsed_ms: int = 0,
    interrupted: bool = False,
    not_started: int = 0,
) -> RunResult:
    """Collect records, assets and failures in outcome order."""
    return RunResult(
        outcomes=outcomes,
        records=[outcome.record for outcome in outcomes if outcome.success and outcome.record is not None],
        assets=[outcome.asset for outcome in outcomes if outcome.success and outcome.asset is not None],
        failures=[
            FailureEntry(id=outcome.entry_id, error=outcome.error or "unknown error", error_type=outcome.error_type)
            for outcome in outcomes
            if not outcome.success
        ],
        summary=summarize(outcomes, elapsed_ms, interrupted, not_started),
        entries=list(entries),
    )


def check_success_rate(result: RunResult, minimum: float) -> None:
    """Raises SuccessRateError when the processed entries fall below ``minimum``."""
    summary = result.summary
    if summary.success_rate < minimum:
        raise SuccessRateError(
            failed_ids=[failure.id for failure in result.failures],
            total=summary.total,
            success_rate=summary.success_rate,
            minimum=minimum,
        )


def merge_retry_result(previous: RunResult, retried: RunResult) -> RunResult:
    """Replace the outcomes of re-run entries in ``previous`` with their new outcomes."""
    replacements = {outcome.entry_id: outcome for outcome in retried.outcomes}
    outcomes = [replacements.get(outcome.entry_id, outcome) for outcome in previous.outcomes]
    return build_run_result(
        previous.entries,
        outcomes,
        elapsed_ms=previous.summary.elapsed_ms + retried.summary.elapsed_ms,
        interrupted=previous.summary.interrupted or retried.summary.interrupted,
        not_started=previous.summary.not_started,
    )
