"""Checks run on a verified slip before its two legs are persisted."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from app.domain import ExtractedLeg, ExtractedSlip
from extraction.normalize import parse_decimal

__all__ = [
    "SlipValidationError",
    "ValidationReport",
    "normalize_team",
    "validate_bet_pair",
    "validate_slip",
]

# Largest values the Numeric(10, 2) and Numeric(7, 2) columns hold.
MAX_AMOUNT = Decimal("99999999.99")
MAX_PERCENTAGE = Decimal("99999.99")


class SlipValidationError(ValueError):
    """Raised with every field-keyed problem found on a slip."""

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{key}: {message}" for key, message in self.errors.items()))


@dataclass(slots=True)
class ValidationReport:
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add(self, key: str, message: str) -> None:
        self.errors.setdefault(key, message)

    def raise_for_errors(self) -> None:
        if self.errors:
            raise SlipValidationError(self.errors)


def normalize_team(name: str | None) -> str:
    return (name or "").strip().casefold()


def _require_text(report: ValidationReport, key: str, value: str | None, label: str) -> None:
    if not (value or "").strip():
        report.add(key, f"{label} is required")


def _require_positive(report: ValidationReport, key: str, value: Any, label: str) -> Decimal | None:
    number = parse_decimal(value)
    if number is None or number <= 0:
        report.add(key, f"{label} must be a number greater than 0")
        return None
    if number > MAX_AMOUNT:
        report.add(key, f"{label} must not exceed {MAX_AMOUNT}")
        return None
    return number


def _require_number(report: ValidationReport, key: str, value: Any, label: str) -> None:
    number = parse_decimal(value)
    if number is None:
        report.add(key, f"{label} must be a number")
    elif abs(number) > MAX_AMOUNT:
        report.add(key, f"{label} must not exceed {MAX_AMOUNT}")


def _validate_leg(report: ValidationReport, prefix: str, leg: ExtractedLeg) -> Decimal | None:
    """Check one leg and return its payout when stake and odds are usable."""

    _require_text(report, f"{prefix}.betting_house", leg.betting_house, "Betting house")
    _require_text(report, f"{prefix}.team_a", leg.team_a, "Team A")
    _require_text(report, f"{prefix}.team_b", leg.team_b, "Team B")
    _require_text(report, f"{prefix}.bet_type", leg.bet_type, "Bet type")
    odds = _require_positive(report, f"{prefix}.odds", leg.odds, "Odds")
    stake = _require_positive(report, f"{prefix}.stake", leg.stake, "Stake")
    _require_number(report, f"{prefix}.profit", leg.profit, "Profit")
    if odds is None or stake is None:
        return None
    if stake * odds > MAX_AMOUNT:
        report.add(f"{prefix}.payout", f"Stake x odds must not exceed {MAX_AMOUNT}")
        return None
    return stake * odds


def _validate_pair_totals(
    report: ValidationReport, slip: ExtractedSlip, payouts: dict[str, Decimal]
) -> None:
    total_stake = parse_decimal(slip.bet_a.stake) + parse_decimal(slip.bet_b.stake)
    if total_stake > MAX_AMOUNT:
        report.add("total_stake", f"Combined stake must not exceed {MAX_AMOUNT}")
        return
    for prefix, payout in payouts.items():
        if abs((payout - total_stake) / total_stake * 100) > MAX_PERCENTAGE:
            report.add(
                f"{prefix}.profit_percentage",
                f"Profit percentage must not exceed {MAX_PERCENTAGE}",
            )


def validate_slip(slip: ExtractedSlip) -> ValidationReport:
    """Collect every problem on ``slip`` instead of stopping at the first."""

    report = ValidationReport()
    payouts = {
        prefix: _validate_leg(report, prefix, leg)
        for prefix, leg in (("bet_a", slip.bet_a), ("bet_b", slip.bet_b))
    }
    if all(payout is not None for payout in payouts.values()):
        _validate_pair_totals(report, slip, payouts)

    _require_text(report, "game_date", slip.game_date, "Game date")
    _require_text(report, "sport", slip.sport, "Sport")
    _require_text(report, "league", slip.league, "League")
    percentage = (slip.total_profit_percentage or "").replace("%", "")
    _require_number(report, "total_profit_percentage", percentage, "Total profit percentage")

    if normalize_team(slip.bet_a.team_a) != normalize_team(slip.bet_b.team_a) or normalize_team(
        slip.bet_a.team_b
    ) != normalize_team(slip.bet_b.team_b):
        report.add("teams", "Teams must match on both bets")
    return report


def validate_bet_pair(leg_a: Any, leg_b: Any) -> ValidationReport:
    """Cross-check two leg records that are meant to form one pair."""

    report = ValidationReport()
    if leg_a.pair_id != leg_b.pair_id:
        report.add("pair_id", "Bets must share the same pair id")
    if normalize_team(leg_a.team_a) != normalize_team(leg_b.team_a) or normalize_team(
        leg_a.team_b
    ) != normalize_team(leg_b.team_b):
        report.add("teams", "Teams must match on both bets")
    if leg_a.bet_position == leg_b.bet_position:
        report.add("bet_position", "Bets must take different positions (A and B)")
    return report
