"""Pair-level arithmetic: metrics at creation time and resolution on read."""

from __future__ import annotations

from collections import OrderedDict
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Sequence

from app.domain import PairMetrics, PairResolution, PairStatistics, ReportSummary
from app.models import BetPosition, BetStatus

_CENTS = Decimal("0.01")


def leg_payout(stake: Decimal, odds: Decimal) -> Decimal:
    """Gross return of a winning leg, rounded to cents."""

    return (stake * odds).quantize(_CENTS, rounding=ROUND_HALF_UP)


def compute_pair_metrics(
    stake_a: float,
    stake_b: float,
    payout_a: float,
    payout_b: float,
) -> PairMetrics:
    """Return the combined stake and each leg's ROI if that leg wins.

    A zero combined stake yields 0% for both legs.
    """

    total_stake = float(stake_a) + float(stake_b)
    if total_stake > 0:
        profit_a = (float(payout_a) - total_stake) / total_stake * 100
        profit_b = (float(payout_b) - total_stake) / total_stake * 100
    else:
        profit_a = profit_b = 0.0
    return PairMetrics(
        total_stake=total_stake,
        profit_percentage_a=profit_a,
        profit_percentage_b=profit_b,
    )


def _number(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value)


def resolve_pair(leg_a: Any | None, leg_b: Any | None) -> PairResolution:
    """Derive pair status and net result from the two legs' current statuses.

    Legs are any objects exposing ``stake``, ``payout``, ``status``,
    ``pair_id`` and ``game_date``. A single missing leg gives a pending,
    ``incomplete`` pair; both missing is a caller error.
    """

    if leg_a is None and leg_b is None:
        raise ValueError("resolve_pair requires at least one leg")

    if leg_a is None or leg_b is None:
        existing = leg_a if leg_a is not None else leg_b
        return PairResolution(
            pair_id=existing.pair_id,
            status=BetStatus.PENDING.value,
            total_stake=_number(existing.stake),
            net_result=0.0,
            game_date=existing.game_date,
            incomplete=True,
            legs=[existing],
        )

    stake_a = _number(leg_a.stake)
    stake_b = _number(leg_b.stake)
    total_stake = stake_a + stake_b
    status_a = leg_a.status
    status_b = leg_b.status
    returned_amount = (stake_a if status_a == BetStatus.RETURNED.value else 0.0) + (
        stake_b if status_b == BetStatus.RETURNED.value else 0.0
    )

    # A before B when both claim a win.
    if status_a == BetStatus.WON.value:
        winner = leg_a
    elif status_b == BetStatus.WON.value:
        winner = leg_b
    else:
        winner = None

    if BetStatus.PENDING.value in (status_a, status_b):
        status, net_result = BetStatus.PENDING.value, 0.0
    elif status_a == status_b == BetStatus.RETURNED.value:
        status, net_result = BetStatus.RETURNED.value, 0.0
    elif winner is not None:
        status = BetStatus.WON.value
        net_result = _number(winner.payout) + returned_amount - total_stake
    else:
        status = BetStatus.LOST.value
        net_result = returned_amount - total_stake

    return PairResolution(
        pair_id=leg_a.pair_id,
        status=status,
        total_stake=total_stake,
        net_result=net_result,
        game_date=leg_a.game_date,
        incomplete=False,
        legs=[leg_a, leg_b],
    )


def group_pairs(bets: Iterable[Any]) -> "OrderedDict[str, dict[str, Any]]":
    """Group legs by pair id, keyed by position, preserving first-seen order."""

    grouped: OrderedDict[str, dict[str, Any]] = OrderedDict()
    for bet in bets:
        grouped.setdefault(bet.pair_id, {})[bet.bet_position] = bet
    return grouped


def resolve_pairs(bets: Iterable[Any]) -> list[PairResolution]:
    return [
        resolve_pair(legs.get(BetPosition.A.value), legs.get(BetPosition.B.value))
        for legs in group_pairs(bets).values()
        if legs.get(BetPosition.A.value) is not None or legs.get(BetPosition.B.value) is not None
    ]


def summarize_pairs(pairs: Sequence[PairResolution], *, total_bets: int) -> PairStatistics:
    """Aggregate dashboard figures; incomplete pairs are counted on their own."""

    stats = PairStatistics(total_pairs=len(pairs), total_bets=total_bets)
    for pair in pairs:
        stats.total_staked += pair.total_stake
        if pair.incomplete:
            stats.incomplete_pairs += 1
            continue
        stats.complete_pairs += 1
        if pair.status == BetStatus.PENDING.value:
            stats.pending_pairs += 1
        elif pair.status == BetStatus.WON.value:
            stats.won_pairs += 1
            stats.total_profit += pair.net_result
        elif pair.status == BetStatus.LOST.value:
            stats.lost_pairs += 1
            stats.total_loss += pair.net_result
        elif pair.status == BetStatus.RETURNED.value:
            stats.returned_pairs += 1

    stats.total_loss = abs(stats.total_loss)
    stats.net_profit = stats.total_profit - stats.total_loss
    settled = stats.won_pairs + stats.lost_pairs
    stats.win_rate = stats.won_pairs / settled * 100 if settled else 0.0
    return stats


def summarize_report(pairs: Sequence[PairResolution]) -> ReportSummary:
    """Aggregate report figures over complete pairs; incomplete ones are skipped.

    A returned stake counts as payout, so ``total_profit`` equals the sum of
    resolved net results.
    """

    report = ReportSummary()
    for pair in pairs:
        if pair.incomplete:
            continue
        report.pairs.append(pair)
        report.total_pairs += 1
        report.total_stake += pair.total_stake
        if pair.status == BetStatus.PENDING.value:
            report.pending_pairs += 1
            continue
        report.resolved_pairs += 1
        report.resolved_stake += pair.total_stake
        report.total_payout += pair.total_stake + pair.net_result
        if pair.status == BetStatus.WON.value:
            report.won_pairs += 1
        elif pair.status == BetStatus.LOST.value:
            report.lost_pairs += 1
        elif pair.status == BetStatus.RETURNED.value:
            report.returned_pairs += 1

    report.total_profit = report.total_payout - report.resolved_stake
    if report.resolved_stake > 0:
        report.profit_percentage = report.total_profit / report.resolved_stake * 100
    return report
