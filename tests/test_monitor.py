"""Tests for the monitoring cycle."""

import asyncio

import pytest

from funding_monitor.config import Config, FundingConfig
from funding_monitor.database import LedgerDatabase
from funding_monitor.models import RateTuple
from funding_monitor.services import RetrievalOrchestrator
from funding_monitor.services.monitor import FundingMonitor

from fakes import FakeDiscovery, FakeExchange, FakeNotifier

T = 1_700_000_000_000


def make_config() -> Config:
    return Config(funding=FundingConfig(
        min_positive_apr=50.0,
        min_negative_apr=-50.0,
        fee_percent=0.06,
        filter_negative_daily_net=True,
        negative_rate_fee_policy="absolute",
        default_payments_per_day=3,
    ))


def make_exchanges():
    return {
        "binance": FakeExchange("binance", rest=[RateTuple("BTCUSDT", 0.001, T)]),
        "okx": FakeExchange("okx", rest=[RateTuple("BTC-USDT-SWAP", -0.0005, T)]),
    }


class FailingDatabase:
    is_connected = True

    async def load_ledger(self):
        return {"binance": {"BTCUSDT": T - 8 * 3_600_000}}

    async def save_ledger(self, ledger):
        raise OSError("disk full")

    async def close(self):
        pass


def test_cycle_sends_both_reports():
    notifier = FakeNotifier()
    monitor = FundingMonitor(
        config=make_config(),
        discovery=FakeDiscovery(["BTCUSDT"]),
        notifier=notifier,
        orchestrator=RetrievalOrchestrator(make_exchanges()),
    )

    report = asyncio.run(monitor.run_cycle())

    assert [o.exchange for o in report.positive] == ["binance"]
    assert [o.exchange for o in report.negative] == ["okx"]
    assert len(report.cross_exchange) == 1
    assert report.cross_exchange[0].long_exchange == "okx"
    assert report.cross_exchange[0].net_profit_percent == pytest.approx(0.03)

    assert len(notifier.messages) == 2
    assert "Funding Rate Update" in notifier.messages[0]
    assert "Cross-Exchange Arbitrage" in notifier.messages[1]


def test_no_cross_exchange_message_when_absent():
    notifier = FakeNotifier()
    exchanges = {"binance": FakeExchange("binance", rest=[RateTuple("BTCUSDT", 0.001, T)])}
    monitor = FundingMonitor(
        config=make_config(),
        discovery=FakeDiscovery(["BTCUSDT"]),
        notifier=notifier,
        orchestrator=RetrievalOrchestrator(exchanges),
    )

    asyncio.run(monitor.run_cycle())

    assert len(notifier.messages) == 1


def test_empty_pairs_skip_cycle():
    exchanges = make_exchanges()
    notifier = FakeNotifier()
    monitor = FundingMonitor(
        config=make_config(),
        discovery=FakeDiscovery([]),
        notifier=notifier,
        orchestrator=RetrievalOrchestrator(exchanges),
    )

    assert asyncio.run(monitor.run_cycle()) is None
    assert exchanges["binance"].rest_calls == 0
    assert notifier.messages == []


def test_each_cycle_starts_from_an_empty_snapshot():
    exchanges = make_exchanges()
    monitor = FundingMonitor(
        config=make_config(),
        discovery=FakeDiscovery(["BTCUSDT"]),
        notifier=FakeNotifier(),
        orchestrator=RetrievalOrchestrator(exchanges),
    )

    async def scenario():
        await monitor.run_cycle()
        exchanges["okx"].rest = [RateTuple("ETH-USDT-SWAP", 0.0001, T)]
        return await monitor.run_cycle()

    report = asyncio.run(scenario())

    assert set(monitor.collector.snapshot.get_exchange("okx")) == {"ETH-USDT-SWAP"}
    assert report.negative == []
    assert report.cross_exchange == []


def test_report_handler_replaces_telegram():
    handled = []
    notifier = FakeNotifier()

    async def handler(report, results):
        handled.append((report, results))

    monitor = FundingMonitor(
        config=make_config(),
        discovery=FakeDiscovery(["BTCUSDT"]),
        notifier=notifier,
        orchestrator=RetrievalOrchestrator(make_exchanges()),
        report_handler=handler,
    )

    asyncio.run(monitor.run_cycle())

    assert notifier.messages == []
    report, results = handled[0]
    assert {r.exchange for r in results} == {"binance", "okx"}


def test_ledger_is_loaded_and_persisted(tmp_path):
    db_path = str(tmp_path / "ledger.db")

    async def seed():
        db = LedgerDatabase(db_path)
        await db.connect()
        await db.save_ledger({"binance": {"BTCUSDT": T - 8 * 3_600_000}})
        await db.close()

    async def scenario():
        monitor = FundingMonitor(
            config=make_config(),
            discovery=FakeDiscovery(["BTCUSDT"]),
            notifier=FakeNotifier(),
            database=LedgerDatabase(db_path),
            orchestrator=RetrievalOrchestrator(make_exchanges()),
        )
        await monitor.start()
        report = await monitor.run_cycle()
        await monitor.stop()

        db = LedgerDatabase(db_path)
        await db.connect()
        try:
            return report, await db.load_ledger()
        finally:
            await db.close()

    asyncio.run(seed())
    report, ledger = asyncio.run(scenario())

    assert report.positive[0].interval_label == "8.0h"
    assert ledger == {"binance": {"BTCUSDT": T}, "okx": {"BTC-USDT-SWAP": T}}


def test_failed_flush_keeps_ledger_dirty():
    monitor = FundingMonitor(
        config=make_config(),
        discovery=FakeDiscovery(["BTCUSDT"]),
        notifier=FakeNotifier(),
        database=FailingDatabase(),
        orchestrator=RetrievalOrchestrator(make_exchanges()),
    )

    async def scenario():
        await monitor.start()
        report = await monitor.run_cycle()
        await monitor._flush_task
        return report

    report = asyncio.run(scenario())

    assert report is not None
    assert monitor.tracker.is_dirty
    assert monitor.tracker.get_last("binance", "BTCUSDT") == T


def test_flush_reconnects_after_failed_startup(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    db_path = blocker / "ledger.db"

    monitor = FundingMonitor(
        config=make_config(),
        discovery=FakeDiscovery(["BTCUSDT"]),
        notifier=FakeNotifier(),
        database=LedgerDatabase(str(db_path)),
        orchestrator=RetrievalOrchestrator(make_exchanges()),
    )

    async def scenario():
        await monitor.start()
        assert not monitor.database.is_connected

        blocker.unlink()
        await monitor.run_cycle()
        await monitor._flush_task
        await monitor.stop()

        db = LedgerDatabase(str(db_path))
        await db.connect()
        try:
            return await db.load_ledger()
        finally:
            await db.close()

    ledger = asyncio.run(scenario())

    assert not monitor.tracker.is_dirty
    assert ledger == {"binance": {"BTCUSDT": T}, "okx": {"BTC-USDT-SWAP": T}}


def test_per_exchange_default_frequency_from_config():
    config = make_config()
    config.funding.payments_per_day_overrides = {"okx": 6}

    monitor = FundingMonitor(
        config=config,
        discovery=FakeDiscovery(["BTCUSDT"]),
        notifier=FakeNotifier(),
        orchestrator=RetrievalOrchestrator(make_exchanges()),
    )

    assert monitor.tracker.default_for("okx").frequency_per_day == 6
    assert monitor.tracker.default_for("binance").frequency_per_day == 3


def test_payments_per_day_overrides_read_from_environment(monkeypatch):
    monkeypatch.setenv("DEFAULT_PAYMENTS_PER_DAY", "3")
    monkeypatch.setenv("DEFAULT_PAYMENTS_PER_DAY_BYBIT", "24")
    monkeypatch.setenv("DEFAULT_PAYMENTS_PER_DAY_GATE", "often")

    funding = FundingConfig()

    assert funding.payments_per_day_overrides == {"bybit": 24}
    assert funding.payments_per_day_for("bybit") == 24
    assert funding.payments_per_day_for("binance") == 3
