from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.services.pairs import (
    compute_pair_metrics,
    group_pairs,
    leg_payout,
    resolve_pair,
    resolve_pairs,
    summarize_pairs,
    summarize_report,
)


def make_leg(position: str, status: str, stake=100.0, payout=200.0, pair_id="p1"):
    return SimpleNamespace(
        pair_id=pair_id,
        bet_position=position,
        status=status,
        stake=stake,
        payout=payout,
        game_date="27-09-2025",
    )


def test_compute_pair_metrics():
    metrics = compute_pair_metrics(100, 100, 250, 0)

    assert metrics.total_stake == 200
    assert metrics.profit_percentage_a == pytest.approx(25)
    assert metrics.profit_percentage_b == pytest.approx(-100)


def test_compute_pair_metrics_zero_total():
    metrics = compute_pair_metrics(0, 0, 0, 0)

    assert metrics.total_stake == 0
    assert metrics.profit_percentage_a == 0
    assert metrics.profit_percentage_b == 0


def test_leg_payout_rounds_to_cents():
    assert leg_payout(Decimal("102.44"), Decimal("2.05")) == Decimal("210.00")
    assert leg_payout(Decimal("33.33"), Decimal("1.915")) == Decimal("63.83")


@pytest.mark.parametrize(
    "status_a, status_b",
    [("pending", "won"), ("won", "pending"), ("pending", "pending"), ("lost", "pending")],
)
def test_any_pending_leg_keeps_pair_pending(status_a, status_b):
    resolution = resolve_pair(make_leg("A", status_a), make_leg("B", status_b))

    assert resolution.status == "pending"
    assert resolution.net_result == 0
    assert resolution.total_stake == 200


@pytest.mark.parametrize("status_a, status_b", [("won", "lost"), ("lost", "won")])
def test_won_pair_nets_winner_payout_minus_total(status_a, status_b):
    resolution = resolve_pair(
        make_leg("A", status_a, payout=250.0), make_leg("B", status_b, payout=250.0)
    )

    assert resolution.status == "won"
    assert resolution.net_result == pytest.approx(50)


def test_both_won_uses_leg_a_payout():
    resolution = resolve_pair(
        make_leg("A", "won", payout=210.0), make_leg("B", "won", payout=300.0)
    )

    assert resolution.status == "won"
    assert resolution.net_result == pytest.approx(10)


def test_won_with_returned_leg_adds_refund():
    resolution = resolve_pair(
        make_leg("A", "won", stake=100.0, payout=210.0),
        make_leg("B", "returned", stake=100.0),
    )

    assert resolution.status == "won"
    assert resolution.net_result == pytest.approx(110)


def test_returned_pair_nets_zero():
    resolution = resolve_pair(make_leg("A", "returned"), make_leg("B", "returned"))

    assert resolution.status == "returned"
    assert resolution.net_result == 0


def test_lost_pair_with_one_refund():
    resolution = resolve_pair(make_leg("A", "lost"), make_leg("B", "returned", stake=50.0))

    assert resolution.status == "lost"
    assert resolution.net_result == pytest.approx(-100)


def test_missing_leg_marks_pair_incomplete():
    resolution = resolve_pair(make_leg("A", "won", stake=80.0), None)

    assert resolution.status == "pending"
    assert resolution.incomplete is True
    assert resolution.total_stake == 80
    assert resolution.net_result == 0

    resolution = resolve_pair(None, make_leg("B", "lost", stake=40.0))
    assert resolution.incomplete is True
    assert resolution.total_stake == 40


def test_both_legs_missing_is_an_error():
    with pytest.raises(ValueError):
        resolve_pair(None, None)


def test_group_and_resolve_pairs():
    bets = [
        make_leg("B", "lost", pair_id="p1"),
        make_leg("A", "won", payout=250.0, pair_id="p1"),
        make_leg("A", "pending", pair_id="p2"),
    ]

    grouped = group_pairs(bets)
    assert list(grouped) == ["p1", "p2"]
    assert set(grouped["p1"]) == {"A", "B"}

    resolutions = resolve_pairs(bets)
    assert [r.status for r in resolutions] == ["won", "pending"]
    assert resolutions[1].incomplete is True


def test_summarize_pairs_counts_incomplete_separately():
    bets = [
        make_leg("A", "won", payout=250.0, pair_id="won"),
        make_leg("B", "lost", pair_id="won"),
        make_leg("A", "lost", pair_id="lost"),
        make_leg("B", "lost", pair_id="lost"),
        make_leg("A", "pending", pair_id="pending"),
        make_leg("B", "pending", pair_id="pending"),
        make_leg("A", "returned", pair_id="returned"),
        make_leg("B", "returned", pair_id="returned"),
        make_leg("A", "pending", pair_id="orphan"),
    ]

    stats = summarize_pairs(resolve_pairs(bets), total_bets=len(bets))

    assert stats.total_pairs == 5
    assert stats.complete_pairs == 4
    assert stats.incomplete_pairs == 1
    assert stats.pending_pairs == 1
    assert stats.won_pairs == 1
    assert stats.lost_pairs == 1
    assert stats.returned_pairs == 1
    assert stats.total_bets == 9
    assert stats.total_staked == pytest.approx(900)
    assert stats.total_profit == pytest.approx(50)
    assert stats.total_loss == pytest.approx(200)
    assert stats.net_profit == pytest.approx(-150)
    assert stats.win_rate == pytest.approx(50)


def test_summarize_no_pairs():
    stats = summarize_pairs([], total_bets=0)

    assert stats.total_pairs == 0
    assert stats.win_rate == 0


def test_summarize_report_over_resolved_pairs():
    legs = [
        make_leg("A", "won", payout=210.0, pair_id="won"),
        make_leg("B", "lost", payout=205.0, pair_id="won"),
        make_leg("A", "returned", pair_id="void"),
        make_leg("B", "returned", pair_id="void"),
        make_leg("A", "pending", pair_id="open"),
        make_leg("B", "won", pair_id="open"),
        make_leg("A", "won", pair_id="half"),
        make_leg("A", "lost", pair_id="lost"),
        make_leg("B", "lost", pair_id="lost"),
    ]

    report = summarize_report(resolve_pairs(legs))

    assert report.total_pairs == 4
    assert (report.won_pairs, report.lost_pairs, report.returned_pairs) == (1, 1, 1)
    assert report.pending_pairs == 1
    assert report.resolved_pairs == 3
    assert report.total_stake == pytest.approx(800)
    assert report.resolved_stake == pytest.approx(600)
    assert report.total_payout == pytest.approx(410)
    assert report.total_profit == pytest.approx(-190)
    assert report.profit_percentage == pytest.approx(-190 / 600 * 100)
    assert "half" not in [pair.pair_id for pair in report.pairs]


def test_summarize_report_without_resolved_pairs():
    report = summarize_report(resolve_pairs([make_leg("A", "pending"), make_leg("B", "pending")]))

    assert report.total_pairs == 1
    assert report.profit_percentage == 0
    assert report.total_payout == 0
