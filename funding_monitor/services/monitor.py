"""
Funding Monitor Service.

Runs the periodic cycle: discover pairs, fetch funding rates, build the
arbitrage report, deliver it, and persist the settlement ledger.
"""

import asyncio
import logging
from typing import Callable, Awaitable, List, Optional

from funding_monitor.bot.formatters import ReportFormatter
from funding_monitor.bot.notifier import TelegramNotifier
from funding_monitor.config import Config, get_config
from funding_monitor.database import LedgerData, LedgerDatabase
from funding_monitor.exchanges.registry import ExchangeRegistry
from funding_monitor.models import ArbitrageReport, RetrievalResult
from .arbitrage_analyzer import ArbitrageAnalyzer, AnalyzerConfig
from .funding_collector import FundingRateCollector
from .pair_discovery import PairDiscovery
from .rate_calculator import NegativeRateFeePolicy
from .retrieval import RetrievalOrchestrator
from .settlement_tracker import SettlementTracker

logger = logging.getLogger(__name__)

ReportHandler = Callable[[ArbitrageReport, List[RetrievalResult]], Awaitable[None]]


class FundingMonitor:
    """
    One monitor instance runs one cycle at a time.

    Both reports are built from the snapshot right after retrieval, before
    the next cycle clears it. The ledger flush runs as a background task and
    never blocks or fails a cycle.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        exchanges: Optional[List[str]] = None,
        discovery: Optional[PairDiscovery] = None,
        notifier: Optional[TelegramNotifier] = None,
        database: Optional[LedgerDatabase] = None,
        orchestrator: Optional[RetrievalOrchestrator] = None,
        report_handler: Optional[ReportHandler] = None,
    ):
        """
        Args:
            config: Application config (default: global config)
            exchanges: Exchange names to monitor (default: config)
            discovery: Symbol universe provider
            notifier: Telegram delivery (unused when report_handler is set)
            database: Ledger storage; None disables persistence
            orchestrator: Retrieval orchestrator (default: built from config)
            report_handler: Replaces Telegram delivery, e.g. for console output
        """
        self.config = config or get_config()
        funding = self.config.funding

        if orchestrator is None:
            names = exchanges or self.config.exchange.active_exchanges()
            adapters = ExchangeRegistry.create_exchanges(
                names,
                self.config.exchange.endpoints,
                self.config.retrieval,
            )
            orchestrator = RetrievalOrchestrator(adapters)
        self.orchestrator = orchestrator

        exchange_names = list(self.orchestrator.exchanges.keys())
        self.tracker = SettlementTracker(
            default_frequencies={name: funding.payments_per_day_for(name) for name in exchange_names},
            default_frequency=funding.default_payments_per_day,
        )
        self.collector = FundingRateCollector(
            exchange_names,
            tracker=self.tracker,
            fee_percent=funding.fee_percent,
            negative_fee_policy=NegativeRateFeePolicy(funding.negative_rate_fee_policy),
        )
        self.analyzer = ArbitrageAnalyzer(AnalyzerConfig(
            min_positive_apr=funding.min_positive_apr,
            min_negative_apr=funding.min_negative_apr,
            fee_percent=funding.fee_percent,
            filter_negative_daily_net=funding.filter_negative_daily_net,
        ))
        self.formatter = ReportFormatter(
            min_positive_apr=funding.min_positive_apr,
            min_negative_apr=funding.min_negative_apr,
            fee_percent=funding.fee_percent,
        )

        self.discovery = discovery or PairDiscovery(
            endpoints=self.config.exchange.endpoints[self.config.discovery.source_exchange],
            config=self.config.discovery,
            request_timeout=self.config.retrieval.rest_timeout,
        )
        self.notifier = notifier or TelegramNotifier(self.config.telegram)
        self.database = database
        self.report_handler = report_handler

        self._flush_task: Optional[asyncio.Task] = None
        self._cycle_count = 0

    async def start(self) -> None:
        """Load the persisted ledger once."""
        if self.database is None:
            return

        try:
            if not self.database.is_connected:
                await self.database.connect()
            self.tracker.load(await self.database.load_ledger())
        except Exception as e:
            logger.error(f"[Monitor] Failed to load settlement ledger, starting empty: {e}")

    async def stop(self) -> None:
        """Finish pending ledger writes and close connections."""
        if self._flush_task is not None:
            await asyncio.gather(self._flush_task, return_exceptions=True)
            self._flush_task = None

        if self.database is not None and self.tracker.is_dirty:
            await self._flush(self._take_ledger())

        await self.orchestrator.close()
        await self.notifier.close()
        if self.database is not None:
            await self.database.close()

    async def run_cycle(self) -> Optional[ArbitrageReport]:
        """
        Run one monitoring cycle.

        Returns:
            The cycle's report, or None if there were no symbols to fetch
        """
        self._cycle_count += 1

        pairs = await self.discovery.fetch_top_pairs()
        if not pairs:
            logger.warning("[Monitor] No pairs available, skipping cycle")
            return None

        logger.info(f"[Monitor] Cycle {self._cycle_count}: {len(pairs)} pairs")

        self.collector.clear()
        results = await self.orchestrator.fetch_all(self.collector, pairs)

        report = self.analyzer.analyze(self.collector.snapshot)
        await self.publish(report, results)

        self.schedule_flush()
        return report

    async def publish(
        self,
        report: ArbitrageReport,
        results: Optional[List[RetrievalResult]] = None,
    ) -> None:
        """Deliver the single-leg report and, if any, the cross-exchange report."""
        if self.report_handler is not None:
            await self.report_handler(report, results or [])
            return

        await self.notifier.send(self.formatter.format_single_leg(report))

        cross_message = self.formatter.format_cross_exchange(report)
        if cross_message:
            await self.notifier.send(cross_message)
            logger.info("[Monitor] Sent cross-exchange opportunities")

    def _take_ledger(self) -> LedgerData:
        ledger = self.tracker.ledger
        self.tracker.mark_persisted()
        return ledger

    def schedule_flush(self) -> Optional[asyncio.Task]:
        """Start a background ledger write if the ledger changed."""
        if self.database is None or not self.tracker.is_dirty:
            return None

        if self._flush_task is not None and not self._flush_task.done():
            # Still dirty, picked up by the next cycle
            logger.debug("[Monitor] Previous ledger flush still running")
            return None

        self._flush_task = asyncio.create_task(self._flush(self._take_ledger()))
        return self._flush_task

    async def _flush(self, ledger: LedgerData) -> None:
        try:
            # Storage may have been unavailable at start()
            if not self.database.is_connected:
                await self.database.connect()
            written = await self.database.save_ledger(ledger)
            logger.debug(f"[Monitor] Persisted {written} ledger entries")
        except Exception as e:
            self.tracker.mark_dirty()
            logger.error(f"[Monitor] Failed to persist settlement ledger: {e}")

    async def run_forever(self, interval: Optional[int] = None) -> None:
        """Run cycles until cancelled."""
        interval = interval or self.config.monitor.push_interval

        while True:
            try:
                await self.run_cycle()
            except Exception as e:
                logger.error(f"[Monitor] Cycle failed: {e}", exc_info=True)

            await asyncio.sleep(interval)
