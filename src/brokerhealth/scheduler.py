"""Fixed-interval tick loop driving a HealthAggregator."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Iterable, List, Optional

from .health.health_aggregator import HealthAggregator
from .health.health_types import TickReport
from .sinks import ReportSink

logger = logging.getLogger(__name__)

SINK_ERRORS = (OSError, RuntimeError, ValueError, TypeError)


class HealthScheduler:
    """
    Run aggregator ticks on interval-aligned slots.

    Ticks never overlap: each tick is awaited before the next slot is
    computed. When a tick overruns its slot the missed slots are skipped and
    the next tick starts right away.
    """

    def __init__(
        self,
        aggregator: HealthAggregator,
        interval_seconds: float,
        *,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        sinks: Iterable[ReportSink] = (),
    ):
        """
        Initialize scheduler.

        Args:
            aggregator: Aggregator whose ``run_tick`` is driven
            interval_seconds: Time between tick slots
            clock: Wall clock returning epoch seconds
            sleep: Coroutine used to wait for the next slot
            sinks: Receivers of every TickReport, in order
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive (got {interval_seconds})")
        self.aggregator = aggregator
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.sleep = sleep
        self.sinks: List[ReportSink] = list(sinks)
        self.shutdown_requested = False
        self.ticks_run = 0
        self.skipped_slots = 0

    def stop(self) -> None:
        """Request the loop to end after the current tick."""
        self.shutdown_requested = True

    async def run(self, max_ticks: Optional[int] = None) -> Optional[TickReport]:
        """
        Run ticks until stopped or ``max_ticks`` ticks have completed.

        Args:
            max_ticks: Stop after this many ticks; None runs until ``stop()``

        Returns:
            The last TickReport produced, or None if no tick ran
        """
        logger.info("Health scheduler started (interval: %.3fs, elements: %d)", self.interval_seconds, len(self.aggregator.elements))
        last_report: Optional[TickReport] = None
        next_slot = self.clock()

        while not self.shutdown_requested:
            if max_ticks is not None and self.ticks_run >= max_ticks:
                break

            now = self.clock()
            if now < next_slot:
                await self.sleep(next_slot - now)
                if self.shutdown_requested:
                    break

            tick_time = next_slot
            last_report = await self.aggregator.run_tick(tick_time)
            self.ticks_run += 1
            self._publish(last_report)

            next_slot = tick_time + self.interval_seconds
            finished = self.clock()
            if finished >= next_slot:
                missed = int((finished - next_slot) // self.interval_seconds)
                if missed:
                    self.skipped_slots += missed
                    logger.warning("Tick at %.3f overran its interval; skipping %d slot(s)", tick_time, missed)
                next_slot = finished

        logger.info("Health scheduler stopped after %d tick(s)", self.ticks_run)
        return last_report

    def _publish(self, report: TickReport) -> None:
        for sink in self.sinks:
            try:
                sink.emit(report)
            except SINK_ERRORS:
                logger.exception("Report sink %s failed", type(sink).__name__)


__all__ = ["HealthScheduler"]
