# tests/test_stats.py
import pytest

from pinger.fping.stats import StatsAggregator

REDIRECTED = "8.8.8.8 : [0], 84 bytes, 0.61 ms (0.61 avg, 0% loss) [<- 192.168.1.2]"


def feed(agg, *lines):
    return agg.feed(lines)


def test_statistics_only_count_marked_packets():
    agg = StatsAggregator(["8.8.8.8"], 5)
    host = agg.get("8.8.8.8")
    host.status[:] = [True, True, True, False, True]

    feed(agg, "8.8.8.8 : 91.7 37.0 29.2 - 36.8")

    assert host.received == 4
    assert host.sent == 5
    assert host.min == pytest.approx(0.0292)
    assert host.max == pytest.approx(0.0917)
    assert host.sum == pytest.approx((91.7 + 37.0 + 29.2 + 36.8) / 1000)


def test_redirect_disallowed_leaves_bit_clear():
    agg = StatsAggregator(["8.8.8.8"], 3, allow_redirect=False)
    feed(agg, REDIRECTED)
    assert agg.get("8.8.8.8").status == [False, False, False]


def test_redirect_allowed_sets_bit():
    agg = StatsAggregator(["8.8.8.8"], 3, allow_redirect=True)
    feed(agg, REDIRECTED)
    assert agg.get("8.8.8.8").status == [True, False, False]


def test_timed_out_and_out_of_range_indexes_are_ignored():
    agg = StatsAggregator(["7.7.7.7"], 2)
    feed(agg,
         "7.7.7.7 : [0], timed out (NaN avg, 100% loss)",
         "7.7.7.7 : [2], 64 bytes, 1.00 ms (1.00 avg, 0% loss)",
         "7.7.7.7 : [-1], 64 bytes, 1.00 ms (1.00 avg, 0% loss)")
    assert agg.get("7.7.7.7").status == [False, False]


def test_unknown_host_and_duplicates_mutate_nothing():
    agg = StatsAggregator(["8.8.8.8"], 2)
    before = agg.results()
    matched = feed(agg,
                   "1.1.1.1 : [0], 64 bytes, 1.00 ms (1.00 avg, 0% loss)",
                   "1.1.1.1 : 1.00 2.00",
                   "8.8.8.8 : duplicate for [0], 96 bytes, 0.19 ms")
    assert agg.results() == before
    assert agg.get("8.8.8.8").status == [False, False]
    assert matched == 1   # the duplicate still belongs to a batch host


def test_full_transcript():
    agg = StatsAggregator(["8.8.8.8", "7.7.7.7"], 3)
    matched = feed(agg,
                   "8.8.8.8 : [0], 64 bytes, 9.37 ms (9.37 avg, 0% loss)",
                   "7.7.7.7 : [0], timed out (NaN avg, 100% loss)",
                   "8.8.8.8 : [1], 64 bytes, 8.72 ms (9.05 avg, 0% loss)",
                   "7.7.7.7 : [1], timed out (NaN avg, 100% loss)",
                   "8.8.8.8 : [2], 64 bytes, 7.28 ms (8.46 avg, 0% loss)",
                   "7.7.7.7 : [2], timed out (NaN avg, 100% loss)",
                   "",
                   "7.7.7.7 : - - -",
                   "8.8.8.8 : 9.37 8.72 7.28")
    assert matched == 8

    up, down = agg.results()
    assert up["address"] == "8.8.8.8"
    assert (up["sent"], up["received"], up["loss"]) == (3, 3, 0.0)
    assert up["min"] == pytest.approx(0.00728)
    assert up["max"] == pytest.approx(0.00937)
    assert up["min"] <= up["avg"] <= up["max"]

    assert down == {"address": "7.7.7.7", "sent": 3, "received": 0,
                    "min": None, "max": None, "avg": None, "loss": 1.0}


def test_broadcast_quirk_counts_missing_value_as_zero():
    agg = StatsAggregator(["10.0.0.255"], 1)
    feed(agg, "10.0.0.255 : [0], 64 bytes, 0.10 ms (0.10 avg, 0% loss)", "10.0.0.255 : -")
    host = agg.get("10.0.0.255")
    assert (host.received, host.min, host.max) == (1, 0.0, 0.0)


def test_dual_stack_second_pass_is_counted_independently():
    lines = ("8.8.8.8 : [0], 64 bytes, 1.00 ms (1.00 avg, 0% loss)",
             "8.8.8.8 : [1], 64 bytes, 2.00 ms (1.50 avg, 0% loss)",
             "8.8.8.8 : 1.00 2.00",
             # fping6 cannot reach an IPv4 host
             "8.8.8.8 : - -")

    dual = StatsAggregator(["8.8.8.8"], 2, dual_stack=True)
    feed(dual, *lines)
    host = dual.get("8.8.8.8")
    assert (host.sent, host.received) == (4, 2)
    assert host.min == pytest.approx(0.001)

    # without the reset the "-" tokens of the second pass would be credited
    single = StatsAggregator(["8.8.8.8"], 2, dual_stack=False)
    feed(single, *lines)
    assert single.get("8.8.8.8").received == 4


def test_received_never_exceeds_sent():
    agg = StatsAggregator(["8.8.8.8"], 2)
    feed(agg,
         "8.8.8.8 : [0], 64 bytes, 1.00 ms (1.00 avg, 0% loss)",
         "8.8.8.8 : [1], 64 bytes, 2.00 ms (1.50 avg, 0% loss)",
         "8.8.8.8 : 1.00 2.00 3.00 4.00")
    r = agg.results()[0]
    assert r["sent"] == 2
    assert r["received"] == 2


def test_one_record_per_batch_position():
    agg = StatsAggregator(["8.8.8.8", "8.8.8.8"], 1)
    feed(agg, "8.8.8.8 : [0], 64 bytes, 1.00 ms (1.00 avg, 0% loss)", "8.8.8.8 : 1.00")
    first, second = agg.results()
    assert (first["sent"], first["received"]) == (1, 1)
    assert second == {"address": "8.8.8.8", "sent": 0, "received": 0,
                      "min": None, "max": None, "avg": None, "loss": None}
