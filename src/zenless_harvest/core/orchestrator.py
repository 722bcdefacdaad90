# ABOUTME: Batch orchestrator running item pipelines in fixed-size concurrency windows
# ABOUTME: Staggered starts, sequential fallback, inter-window pacing, progress callbacks and graceful stop

import asyncio
import time
from collections.abc import Awaitable, Callable

from zenless_harvest.config import HarvestConfig
from zenless_harvest.core.models import ItemOutcome, ProgressUpdate, RunResult, SourceEntry
from zenless_harvest.core.pipeline import ItemPipeline
from zenless_harvest.core.report import build_run_result
from zenless_harvest.errors import SetupError
from zenless_harvest.sources.enumerator import ensure_unique_ids
from zenless_harvest.utils.logging import get_logger, with_pipeline_context

ProgressCallback = Callable[[ProgressUpdate], None]


class BatchOrchestrator:
    """Runs a pipeline over a list of entries, one window at a time.

    Windows never overlap: a window's outcomes are collected before the next
    window starts, so the outcome list has a single writer.

    Args:
        pipeline: Item pipeline applied to each entry
        config: Run configuration (window size, pacing)
        progress_callback: Called after every window with running totals
        sleep: Replacement for ``asyncio.sleep`` (tests)
    """

    def __init__(
        self,
        pipeline: ItemPipeline,
        config: HarvestConfig,
        progress_callback: ProgressCallback | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ):
        self.pipeline = pipeline
        self.config = config
        self.progress_callback = progress_callback
        self._sleep = sleep or asyncio.sleep
        self._stop_requested = False
        self.interrupted = False
        self.not_started = 0
        self.logger = get_logger(__name__)

    def request_stop(self) -> None:
        """Finish the in-flight window, then start no new one."""
        if not self._stop_requested:
            self.logger.warning("Stop requested, finishing current window")
        self._stop_requested = True

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    async def run(
        self,
        entries: list[SourceEntry],
        concurrency_limit: int | None = None,
        inter_batch_delay_ms: int | None = None,
    ) -> list[ItemOutcome]:
        """Process every entry and return one outcome per processed entry.

        Raises:
            SetupError: If the entry list is empty, has duplicate ids or the
                window size is invalid
        """
        limit = self.config.concurrency_limit if concurrency_limit is None else concurrency_limit
        delay_ms = self.config.inter_batch_delay_ms if inter_batch_delay_ms is None else inter_batch_delay_ms
        if limit < 1:
            raise SetupError(f"concurrency limit must be at least 1, got {limit}")
        if delay_ms < 0:
            raise SetupError(f"inter-batch delay must not be negative, got {delay_ms}")
        if not entries:
            raise SetupError("no entries to process")
        ensure_unique_ids(entries)

        windows = [entries[i : i + limit] for i in range(0, len(entries), limit)]
        outcomes: list[ItemOutcome] = []
        self.interrupted = False
        self.not_started = 0
        started = time.monotonic()

        with with_pipeline_context(self.pipeline.name, total=len(entries), windows=len(windows)) as logger:
            logger.info("Starting batch run", concurrency_limit=limit)

            for index, window in enumerate(windows, start=1):
                if self._stop_requested:
                    self.interrupted = True
                    self.not_started = sum(len(w) for w in windows[index - 1 :])
                    logger.warning("Run interrupted", completed_windows=index - 1, not_started=self.not_started)
                    break

                outcomes.extend(await self._run_window(window, index))
                self._report_progress(index, len(windows), outcomes, len(entries), started)

                if index < len(windows) and delay_ms > 0 and not self._stop_requested:
                    await self._sleep(delay_ms / 1000)

            logger.info(
                "Batch run finished",
                processed=len(outcomes),
                succeeded=sum(1 for o in outcomes if o.success),
                interrupted=self.interrupted,
            )

        return outcomes

    async def execute(self, entries: list[SourceEntry]) -> RunResult:
        """Run the batch and build records, failures and summary counters."""
        started = time.monotonic()
        outcomes = await self.run(entries)
        elapsed_ms = int((time.monotonic() - started) * 1000)
        return build_run_result(
            entries,
            outcomes,
            elapsed_ms=elapsed_ms,
            interrupted=self.interrupted,
            not_started=self.not_started,
        )

    async def retry_failed(self, previous: RunResult) -> RunResult:
        """Re-run only the entries that failed in ``previous``.

        Returns:
            A result covering the re-run entries only; an empty result when
            nothing failed
        """
        failed = previous.failed_entries
        if not failed:
            self.logger.info("No failed entries to retry")
            return RunResult()
        self.logger.info("Retrying failed entries", count=len(failed))
        return await self.execute(failed)

    async def _run_window(self, window: list[SourceEntry], index: int) -> list[ItemOutcome]:
        try:
            return await self._run_concurrently(window)
        except Exception as e:
            # The gather itself failed, not an item: degrade to one entry at a time
            self.logger.error(
                "Concurrent window failed, processing sequentially", window=index, error=str(e), exc_info=True
            )
            return await self._run_sequentially(window)

    async def _run_concurrently(self, window: list[SourceEntry]) -> list[ItemOutcome]:
        tasks = [self._staggered(entry, position) for position, entry in enumerate(window)]
        return list(await asyncio.gather(*tasks))

    async def _staggered(self, entry: SourceEntry, position: int) -> ItemOutcome:
        if position and self.config.stagger_ms:
            await self._sleep(self.config.stagger_ms * position / 1000)
        return await self.pipeline.process(entry)

    async def _run_sequentially(self, window: list[SourceEntry]) -> list[ItemOutcome]:
        outcomes = []
        for entry in window:
            outcomes.append(await self.pipeline.process(entry))
        return outcomes

    def _report_progress(
        self, index: int, window_count: int, outcomes: list[ItemOutcome], total: int, started: float
    ) -> None:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        average_ms = elapsed_ms / index
        update = ProgressUpdate(
            window_index=index,
            window_count=window_count,
            processed=len(outcomes),
            total=total,
            succeeded=sum(1 for o in outcomes if o.success),
            failed=sum(1 for o in outcomes if not o.success),
            elapsed_ms=elapsed_ms,
            eta_ms=int(average_ms * (window_count - index)),
        )
        self.logger.info(
            "Window complete",
            window=index,
            windows=window_count,
            processed=update.processed,
            failed=update.failed,
            eta_ms=update.eta_ms,
        )
        if self.progress_callback is not None:
            try:
                self.progress_callback(update)
            except Exception as e:
                self.logger.warning("Progress callback failed", error=str(e))
