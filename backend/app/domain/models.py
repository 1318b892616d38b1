"""Typed domain representations used across extraction, persistence, and APIs."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any


@dataclass(slots=True)
class ExtractedLeg:
    """One leg as read off a slip; every value is an editable string."""

    betting_house: str = ""
    team_a: str = ""
    team_b: str = ""
    bet_type: str = ""
    odds: str = "0"
    stake: str = "0"
    profit: str = "0"


@dataclass(slots=True)
class ExtractedSlip:
    """Both legs plus the match context shared by the pair."""

    bet_a: ExtractedLeg = field(default_factory=ExtractedLeg)
    bet_b: ExtractedLeg = field(default_factory=ExtractedLeg)
    game_date: str = ""
    game_time: str = ""
    sport: str = ""
    league: str = ""
    total_profit_percentage: str = "0"

    def set_teams(self, team_a: str, team_b: str) -> None:
        for leg in (self.bet_a, self.bet_b):
            leg.team_a = team_a
            leg.team_b = team_b


@dataclass(slots=True)
class NewBet:
    """Leg terms ready for persistence."""

    team_a: str
    team_b: str
    bet_type: str
    betting_house: str
    odds: Decimal
    stake: Decimal
    payout: Decimal
    game_date: str
    game_time: str
    sport: str
    league: str
    pair_id: str
    bet_position: str
    selected_side: str | None = None
    status: str = "pending"
    is_verified: bool = False
    total_pair_stake: Decimal | None = None
    profit_percentage: Decimal | None = None


@dataclass(slots=True)
class PairMetrics:
    total_stake: float
    profit_percentage_a: float
    profit_percentage_b: float


@dataclass(slots=True)
class PairResolution:
    """Aggregate view over the (at most two) legs sharing a pair id."""

    pair_id: str
    status: str
    total_stake: float
    net_result: float
    game_date: str | None
    incomplete: bool
    legs: list[Any] = field(default_factory=list)


@dataclass(slots=True)
class PairStatistics:
    total_pairs: int = 0
    complete_pairs: int = 0
    incomplete_pairs: int = 0
    total_bets: int = 0
    pending_pairs: int = 0
    won_pairs: int = 0
    lost_pairs: int = 0
    returned_pairs: int = 0
    total_staked: float = 0.0
    total_profit: float = 0.0
    total_loss: float = 0.0
    net_profit: float = 0.0
    win_rate: float = 0.0


@dataclass(slots=True)
class ReportSummary:
    """Totals over the complete pairs left after report filters are applied.

    ``profit_percentage`` relates ``total_profit`` to the stake of resolved
    pairs only; pending pairs carry no result yet.
    """

    total_pairs: int = 0
    pending_pairs: int = 0
    resolved_pairs: int = 0
    won_pairs: int = 0
    lost_pairs: int = 0
    returned_pairs: int = 0
    total_stake: float = 0.0
    resolved_stake: float = 0.0
    total_payout: float = 0.0
    total_profit: float = 0.0
    profit_percentage: float = 0.0
    date_from: str | None = None
    date_to: str | None = None
    pairs: list[PairResolution] = field(default_factory=list)
