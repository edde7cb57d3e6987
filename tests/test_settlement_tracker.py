"""Tests for settlement frequency inference and the ledger."""

from funding_monitor.services.settlement_tracker import (
    MS_PER_HOUR,
    SettlementTracker,
    infer_frequency,
)

T = 1_700_000_000_000


def test_eight_hour_interval():
    frequency = infer_frequency(T + 8 * MS_PER_HOUR, T)

    assert frequency.frequency_per_day == 3
    assert frequency.interval_hours == 8.0
    assert frequency.is_inferred


def test_interval_bounds_are_inclusive():
    assert infer_frequency(T + MS_PER_HOUR, T).frequency_per_day == 24
    assert infer_frequency(T + 24 * MS_PER_HOUR, T).frequency_per_day == 1


def test_rejected_intervals():
    assert infer_frequency(T + 30 * 60 * 1000, T) is None
    assert infer_frequency(T + 25 * MS_PER_HOUR, T) is None
    assert infer_frequency(T, T) is None
    assert infer_frequency(T - MS_PER_HOUR, T) is None
    assert infer_frequency(None, T) is None
    assert infer_frequency(T, None) is None


def test_odd_interval_rounds():
    frequency = infer_frequency(T + 7 * MS_PER_HOUR, T)

    # 24 / 7 = 3.43
    assert frequency.frequency_per_day == 3
    assert frequency.interval_hours == 7.0


def test_first_observation_uses_default_and_records():
    tracker = SettlementTracker(default_frequencies={"gate": 3, "binance": 6})

    frequency = tracker.observe("binance", "BTCUSDT", T)

    assert frequency.frequency_per_day == 6
    assert frequency.interval_hours is None
    assert tracker.get_last("binance", "BTCUSDT") == T
    assert tracker.is_dirty


def test_half_hour_interval_falls_back_to_default():
    tracker = SettlementTracker(default_frequency=3, ledger={"okx": {"BTC-USDT-SWAP": T}})

    frequency = tracker.observe("okx", "BTC-USDT-SWAP", T + 30 * 60 * 1000)

    assert frequency.frequency_per_day == 3
    assert not frequency.is_inferred
    assert tracker.get_last("okx", "BTC-USDT-SWAP") == T + 30 * 60 * 1000


def test_rollover_infers_frequency():
    tracker = SettlementTracker(ledger={"bybit": {"ETHUSDT": T}})
    assert not tracker.is_dirty

    frequency = tracker.observe("bybit", "ETHUSDT", T + 4 * MS_PER_HOUR)

    assert frequency.frequency_per_day == 6
    assert frequency.interval_hours == 4.0
    assert tracker.is_dirty


def test_unchanged_timestamp_keeps_inferred_interval():
    tracker = SettlementTracker(ledger={"bybit": {"ETHUSDT": T}})
    tracker.observe("bybit", "ETHUSDT", T + 4 * MS_PER_HOUR)
    tracker.mark_persisted()

    frequency = tracker.observe("bybit", "ETHUSDT", T + 4 * MS_PER_HOUR)

    assert frequency.frequency_per_day == 6
    assert frequency.interval_hours == 4.0
    assert not tracker.is_dirty


def test_anomalous_interval_discards_earlier_inference():
    tracker = SettlementTracker(default_frequency=3, ledger={"gate": {"BTC_USDT": T}})
    tracker.observe("gate", "BTC_USDT", T + 8 * MS_PER_HOUR)

    frequency = tracker.observe("gate", "BTC_USDT", T + 56 * MS_PER_HOUR)
    assert frequency.frequency_per_day == 3
    assert not frequency.is_inferred

    # Same timestamp again: nothing remembered to reuse
    frequency = tracker.observe("gate", "BTC_USDT", T + 56 * MS_PER_HOUR)
    assert not frequency.is_inferred


def test_missing_timestamp_leaves_ledger_untouched():
    tracker = SettlementTracker(ledger={"gate": {"BTC_USDT": T}})

    frequency = tracker.observe("gate", "BTC_USDT", None)

    assert not frequency.is_inferred
    assert tracker.get_last("gate", "BTC_USDT") == T
    assert not tracker.is_dirty


def test_ledger_property_is_a_copy():
    tracker = SettlementTracker()
    tracker.observe("binance", "BTCUSDT", T)

    ledger = tracker.ledger
    ledger["binance"]["BTCUSDT"] = 0

    assert tracker.get_last("binance", "BTCUSDT") == T


def test_dirty_flag_round_trip():
    tracker = SettlementTracker()
    tracker.observe("binance", "BTCUSDT", T)
    tracker.mark_persisted()
    assert not tracker.is_dirty

    tracker.mark_dirty()
    assert tracker.is_dirty


def test_half_day_fraction_rounds_up():
    # 24 / 9.6 = 2.5
    frequency = infer_frequency(T + 9 * MS_PER_HOUR + 36 * 60_000, T)

    assert frequency.frequency_per_day == 3
    assert frequency.interval_hours == 9.6
