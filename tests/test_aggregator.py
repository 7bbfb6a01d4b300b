import pytest

from aggregator import SCORE_WINDOW, ScoreAggregator


def test_window_keeps_only_the_last_thirty_samples():
    agg = ScoreAggregator()
    samples = [i / 100 for i in range(1, 41)]
    for v in samples:
        agg.observe("horizontalScore", v)

    assert agg.count("horizontalScore") == SCORE_WINDOW == 30
    assert agg.mean("horizontalScore") == pytest.approx(sum(samples[10:]) / 30)
    assert agg.mean("horizontalScore") != pytest.approx(sum(samples[:30]) / 30)


def test_partial_window_mean():
    agg = ScoreAggregator()
    agg.observe("shoulderTiltScore", 0.2)
    agg.observe("shoulderTiltScore", 0.6)
    assert agg.mean("shoulderTiltScore") == pytest.approx(0.4)


def test_unobserved_metric_has_no_mean():
    agg = ScoreAggregator()
    assert agg.mean("horizontalScore") is None
    assert agg.count("horizontalScore") == 0
    assert agg.means() == {}


def test_metrics_are_buffered_independently():
    agg = ScoreAggregator(window=3)
    for v in (1.0, 1.0, 1.0, 1.0):
        agg.observe("a", v)
    agg.observe("b", 0.0)

    assert agg.count("a") == 3
    assert agg.count("b") == 1
    assert agg.means() == {"a": 1.0, "b": 0.0}


def test_observe_all_feeds_every_metric():
    agg = ScoreAggregator()
    agg.observe_all({"horizontalScore": 0.5, "shoulderTiltScore": 1.0})
    agg.observe_all({"horizontalScore": 0.7, "shoulderTiltScore": 0.0})
    assert agg.means() == pytest.approx({"horizontalScore": 0.6, "shoulderTiltScore": 0.5})


def test_reset_clears_all_buffers():
    agg = ScoreAggregator()
    agg.observe("a", 0.3)
    agg.reset()
    assert agg.mean("a") is None


def test_window_must_be_positive():
    with pytest.raises(ValueError):
        ScoreAggregator(window=0)
