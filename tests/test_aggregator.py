from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest
from hypothesis import given, strategies as st

from conftest import make_exchange
from didperf.metrics import CheckResult, DistributionValue, MetricAggregator


def _iteration(agg: MetricAggregator, outcomes: list[bool], vu_id: int = 1, iteration: int = 1) -> None:
    tally = agg.begin_iteration(vu_id, iteration)
    for passed in outcomes:
        agg.record_request_completion()
        agg.record_duration(make_exchange(200), tally)
        agg.record_check_outcome(tally, passed)
    agg.end_iteration(tally)


def test_error_rate_counts_iterations_not_groups() -> None:
    agg = MetricAggregator()
    _iteration(agg, [True, False, False])
    _iteration(agg, [True, True])
    _iteration(agg, [False])
    snapshot = agg.finalize(1.0)
    assert snapshot.rates["errors"].total == 3
    assert snapshot.rates["errors"].hits == 2
    assert snapshot.counters["error_events"] == 3
    assert snapshot.counters["iterations"] == 3
    assert snapshot.counters["http_reqs"] == 6
    assert snapshot.distributions["http_req_duration"].count == 6


def test_iteration_without_exchange_is_not_observed_by_error_rate() -> None:
    agg = MetricAggregator()
    tally = agg.begin_iteration(1, 1)
    agg.end_iteration(tally)
    snapshot = agg.finalize(1.0)
    assert snapshot.rates["errors"].total == 0
    assert snapshot.rates["errors"].rate == 0.0
    assert snapshot.counters["iterations"] == 1


def test_checks_rate_is_per_check() -> None:
    agg = MetricAggregator()
    agg.record_checks([CheckResult("a", True), CheckResult("b", False), CheckResult("c", True)])
    snapshot = agg.snapshot(1.0)
    assert snapshot.values("checks") == {"rate": pytest.approx(2 / 3), "passes": 2, "fails": 1}


def test_request_failures_and_data_counters() -> None:
    agg = MetricAggregator()
    agg.record_request_completion(failed=True)
    agg.record_request_completion(failed=False)
    agg.record_duration(make_exchange(200, b"12345"))
    snapshot = agg.snapshot(2.0)
    assert snapshot.rates["http_req_failed"].rate == 0.5
    assert snapshot.counters["data_received"] == 5
    assert snapshot.values("http_reqs") == {"count": 2, "rate": 1.0}


def test_concurrent_updates_are_not_lost() -> None:
    agg = MetricAggregator()

    def hammer(vu_id: int) -> None:
        for i in range(500):
            _iteration(agg, [i % 2 == 0], vu_id=vu_id, iteration=i)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(hammer, range(8)))

    snapshot = agg.finalize(1.0)
    assert snapshot.counters["http_reqs"] == 4000
    assert snapshot.rates["errors"].total == 4000
    assert snapshot.rates["errors"].hits == 2000
    assert snapshot.distributions["http_req_duration"].count == 4000


def test_snapshots_never_see_a_half_recorded_exchange() -> None:
    agg = MetricAggregator()
    exchange = make_exchange(500)

    def record(_: int) -> None:
        for _ in range(500):
            agg.record_exchange(exchange, failed=True)

    def observe(_: int) -> list[tuple[int, int, int]]:
        seen = []
        for _ in range(500):
            snapshot = agg.snapshot(1.0)
            seen.append(
                (
                    snapshot.counters["http_reqs"],
                    snapshot.distributions["http_req_duration"].count,
                    snapshot.rates["http_req_failed"].hits,
                )
            )
        return seen

    with ThreadPoolExecutor(max_workers=5) as pool:
        writers = [pool.submit(record, i) for i in range(4)]
        observed = pool.submit(observe, 0).result()
        for writer in writers:
            writer.result()

    assert all(reqs == samples == failed for reqs, samples, failed in observed)
    assert agg.snapshot(1.0).counters["http_reqs"] == 2000


def test_finalized_aggregator_rejects_updates_until_reset() -> None:
    agg = MetricAggregator()
    _iteration(agg, [False])
    agg.finalize(1.0)
    with pytest.raises(RuntimeError):
        agg.record_request_completion()
    agg.reset()
    agg.record_request_completion()
    snapshot = agg.snapshot(1.0)
    assert snapshot.counters["http_reqs"] == 1
    assert snapshot.rates["errors"].total == 0


def test_p95_uses_linear_interpolation() -> None:
    dist = DistributionValue((100.0, 100.0, 100.0, 100.0, 2000.0))
    assert dist.percentile(95) == pytest.approx(1620.0)
    assert dist.med() == 100.0
    assert dist.avg() == pytest.approx(480.0)


def test_empty_distribution_reports_zero() -> None:
    dist = DistributionValue(())
    assert dist.percentile(95) == 0.0
    assert dist.avg() == 0.0
    assert dist.max() == 0.0


@given(st.lists(st.lists(st.booleans(), min_size=1, max_size=3), max_size=40))
def test_error_rate_stays_within_bounds(iterations: list[list[bool]]) -> None:
    agg = MetricAggregator()
    for i, outcomes in enumerate(iterations):
        _iteration(agg, outcomes, iteration=i)
    snapshot = agg.finalize(1.0)
    errors = snapshot.rates["errors"]
    assert errors.total == len(iterations)
    assert errors.hits == sum(1 for outcomes in iterations if not all(outcomes))
    assert 0.0 <= errors.rate <= 1.0
