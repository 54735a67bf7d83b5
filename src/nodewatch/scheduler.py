"""Poller: run every node alert spec once per tick.

Specs run one after another in file order. A fetch failure aborts only the
spec it happened in; it is logged and the next spec still runs.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

from nodewatch.cluster import NodeFetcher
from nodewatch.config import WatchConfig
from nodewatch.errors import FetchError
from nodewatch.observability.logging import get_logger
from nodewatch.poll import poll_node
from nodewatch.types import DispatchFn

logger = get_logger(__name__)


@dataclass
class CycleResult:
    cycle: int
    specs: int
    errors: list[FetchError] = field(default_factory=list)
    duration_s: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.errors


class Poller:
    """Drives poll_node for each spec at a fixed interval."""

    def __init__(
        self,
        config: WatchConfig,
        fetcher: NodeFetcher,
        dispatch: DispatchFn,
        tick_interval: int,
    ) -> None:
        if tick_interval <= 0:
            raise ValueError(f"tick_interval must be positive, got {tick_interval}")
        self.config = config
        self.fetcher = fetcher
        self.dispatch = dispatch
        self.tick_interval = tick_interval
        self._cycles = 0

    def poll_once(self) -> CycleResult:
        self._cycles += 1
        start = time.monotonic()
        result = CycleResult(cycle=self._cycles, specs=len(self.config.nodes))
        for spec in self.config.nodes:
            try:
                poll_node(
                    spec,
                    self.tick_interval,
                    self.dispatch,
                    self.config.alerters,
                    self.fetcher,
                )
            except FetchError as exc:
                result.errors.append(exc)
                logger.error(
                    "poll.failed",
                    spec=spec.describe(),
                    target=exc.target,
                    error=str(exc),
                )
        result.duration_s = time.monotonic() - start
        logger.info(
            "poll.cycle_completed",
            cycle=result.cycle,
            specs=result.specs,
            failures=len(result.errors),
            duration_s=round(result.duration_s, 3),
        )
        return result

    def run(self, stop: threading.Event | None = None, max_cycles: int | None = None) -> int:
        """Poll every ``tick_interval`` seconds until ``stop`` is set.

        Returns the number of cycles run.
        """
        stop = stop or threading.Event()
        logger.info(
            "poller.started",
            specs=len(self.config.nodes),
            tick_interval=self.tick_interval,
        )
        ran = 0
        while not stop.is_set():
            self.poll_once()
            ran += 1
            if max_cycles is not None and ran >= max_cycles:
                break
            stop.wait(self.tick_interval)
        logger.info("poller.stopped", cycles=ran)
        return ran
