"""Higher-level conveniences for recording and reading bet pairs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import uuid4

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain import ExtractedLeg, ExtractedSlip, NewBet
from app.models import BetPosition, BetStatus
from app.repositories import BetRepository
from app.schemas import Bet, BetCreate, CreatedPair, Pair, PairStatistics, Report
from extraction.normalize import canonical_date, format_display_date, parse_canonical_date, parse_decimal

from .pairs import (
    compute_pair_metrics,
    group_pairs,
    leg_payout,
    resolve_pair,
    resolve_pairs,
    summarize_pairs,
    summarize_report,
)
from .validation import validate_bet_pair, validate_slip

_CENTS = Decimal("0.01")
_VALID_STATUSES = {status.value for status in BetStatus}


class PairConflictError(ValueError):
    """Raised when a leg would give a pair a third leg or a duplicate position."""


class InvalidStatusError(ValueError):
    """Raised for a status outside pending/won/lost/returned."""


class PairPersistenceError(RuntimeError):
    """Raised when a pair could only be partially written.

    Legs already committed stay in place; the pair is left incomplete.
    """

    def __init__(self, pair_id: str, saved_positions: list[str]):
        self.pair_id = pair_id
        self.saved_positions = saved_positions
        super().__init__(
            f"Failed to save pair {pair_id}; saved positions: {', '.join(saved_positions) or 'none'}"
        )


@dataclass(slots=True)
class BetQuery:
    """Leg filters shared by the bet, pair and report listings."""

    status: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    min_stake: float | None = None
    max_stake: float | None = None
    min_profit: float | None = None
    max_profit: float | None = None
    search: str | None = None
    sort: str = "created"

    def to_repository_kwargs(self) -> dict[str, Any]:
        """Filters the database can apply; game dates are DD-MM-YYYY text and handled here."""

        return {
            "status": self.status,
            "min_stake": self.min_stake,
            "max_stake": self.max_stake,
            "min_profit": self.min_profit,
            "max_profit": self.max_profit,
            "search": self.search,
            "sort": self.sort,
        }

    def matches_game_date(self, game_date: str | None) -> bool:
        if self.date_from is None and self.date_to is None:
            return True
        played = parse_canonical_date(game_date or "")
        if played is None:
            return False
        if self.date_from is not None and played < self.date_from:
            return False
        if self.date_to is not None and played > self.date_to:
            return False
        return True


def _quantize(value: float | Decimal) -> Decimal:
    return Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)


class BetService:
    """Facade over bet persistence used by the API and scripts."""

    def __init__(self, session: Session):
        self._session = session
        self._bet_repo = BetRepository(session)

    # ------------------------------------------------------------------
    # Legs

    def list_bets(self, query: BetQuery | None = None) -> list[Bet]:
        return [Bet.model_validate(record) for record in self._query_legs(query)]

    def get_bet(self, bet_id: str) -> Bet | None:
        record = self._bet_repo.get_bet(bet_id)
        if record is None:
            return None
        return Bet.model_validate(record)

    def list_pair_bets(self, pair_id: str) -> list[Bet]:
        return [Bet.model_validate(record) for record in self._bet_repo.list_pair(pair_id)]

    def create_bet(self, payload: BetCreate) -> Bet:
        existing = self._bet_repo.list_pair(payload.pair_id)
        if len(existing) >= 2:
            raise PairConflictError(f"Pair {payload.pair_id} already has two bets")
        for leg in existing:
            if leg.bet_position == payload.bet_position:
                raise PairConflictError(
                    f"Pair {payload.pair_id} already has a bet in position {payload.bet_position}"
                )
            validate_bet_pair(leg, payload).raise_for_errors()

        new_bet = NewBet(
            team_a=payload.team_a.strip(),
            team_b=payload.team_b.strip(),
            bet_type=payload.bet_type,
            selected_side=payload.selected_side,
            betting_house=payload.betting_house,
            odds=_quantize(payload.odds),
            stake=_quantize(payload.stake),
            payout=_quantize(payload.payout),
            game_date=canonical_date(payload.game_date),
            game_time=payload.game_time or "00:00",
            sport=payload.sport,
            league=payload.league,
            pair_id=payload.pair_id,
            bet_position=payload.bet_position,
            status=payload.status,
            is_verified=payload.is_verified,
            total_pair_stake=(
                _quantize(payload.total_pair_stake) if payload.total_pair_stake is not None else None
            ),
            profit_percentage=(
                _quantize(payload.profit_percentage)
                if payload.profit_percentage is not None
                else None
            ),
        )
        return Bet.model_validate(self._commit_leg(new_bet))

    def update_status(self, bet_id: str, status: str) -> Bet | None:
        if status not in _VALID_STATUSES:
            raise InvalidStatusError(f"Invalid status '{status}'")
        try:
            record = self._bet_repo.update_status(bet_id, status)
            if record is None:
                return None
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise
        logger.info("Bet {} resolved as {}", bet_id, status)
        return Bet.model_validate(record)

    def delete_bet(self, bet_id: str) -> bool:
        try:
            deleted = self._bet_repo.delete_bet(bet_id)
            if deleted:
                self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise
        if deleted:
            logger.info("Bet {} deleted", bet_id)
        return deleted

    # ------------------------------------------------------------------
    # Pairs

    def create_pair(self, slip: ExtractedSlip) -> CreatedPair:
        """Validate a verified slip and persist its two legs under a new pair id.

        Legs are committed one at a time. If leg B fails, leg A stays and the
        pair is reported incomplete until the user deals with it.
        """

        validate_slip(slip).raise_for_errors()

        stake_a, odds_a = parse_decimal(slip.bet_a.stake), parse_decimal(slip.bet_a.odds)
        stake_b, odds_b = parse_decimal(slip.bet_b.stake), parse_decimal(slip.bet_b.odds)
        payout_a = leg_payout(stake_a, odds_a)
        payout_b = leg_payout(stake_b, odds_b)
        metrics = compute_pair_metrics(stake_a, stake_b, payout_a, payout_b)

        pair_id = uuid4().hex
        legs = (
            (BetPosition.A.value, slip.bet_a, stake_a, odds_a, payout_a, metrics.profit_percentage_a),
            (BetPosition.B.value, slip.bet_b, stake_b, odds_b, payout_b, metrics.profit_percentage_b),
        )

        saved: list[Bet] = []
        for position, leg, stake, odds, payout, profit_percentage in legs:
            new_bet = self._new_leg(
                slip,
                leg,
                pair_id=pair_id,
                position=position,
                stake=stake,
                odds=odds,
                payout=payout,
                total_stake=metrics.total_stake,
                profit_percentage=profit_percentage,
            )
            try:
                record = self._commit_leg(new_bet)
            except SQLAlchemyError as exc:
                logger.error(
                    "Failed to save bet {} of pair {} after saving {}: {}",
                    position,
                    pair_id,
                    [bet.bet_position for bet in saved] or "none",
                    exc,
                )
                raise PairPersistenceError(pair_id, [bet.bet_position for bet in saved]) from exc
            saved.append(Bet.model_validate(record))

        logger.info(
            "Saved pair {} ({} vs {}) total_stake={:.2f}",
            pair_id,
            slip.bet_a.team_a,
            slip.bet_a.team_b,
            metrics.total_stake,
        )
        return CreatedPair(pair_id=pair_id, legs=saved)

    def list_pairs(self, query: BetQuery | None = None) -> list[Pair]:
        """Resolve every pair with at least one leg matching ``query``.

        Resolution always uses both stored legs, so a filter never turns a
        complete pair into an incomplete one.
        """

        if query is None:
            resolved = resolve_pairs(self._bet_repo.list_bets())
        else:
            stored = group_pairs(self._bet_repo.list_bets())
            resolved = [
                resolve_pair(stored[pair_id].get(BetPosition.A.value), stored[pair_id].get(BetPosition.B.value))
                for pair_id in group_pairs(self._query_legs(query))
            ]
        return [Pair.model_validate(pair) for pair in resolved]

    def report(self, query: BetQuery | None = None) -> Report:
        """Summarize complete pairs whose two legs both pass ``query``."""

        query = query or BetQuery()
        summary = summarize_report(resolve_pairs(self._query_legs(query)))
        summary.date_from = format_display_date(query.date_from) if query.date_from else None
        summary.date_to = format_display_date(query.date_to) if query.date_to else None
        logger.debug(
            "Report over {} pairs ({} resolved) profit={:.2f}",
            summary.total_pairs,
            summary.resolved_pairs,
            summary.total_profit,
        )
        return Report.model_validate(summary)

    def get_pair(self, pair_id: str) -> Pair | None:
        legs = {leg.bet_position: leg for leg in self._bet_repo.list_pair(pair_id)}
        if not legs:
            return None
        resolution = resolve_pair(legs.get(BetPosition.A.value), legs.get(BetPosition.B.value))
        return Pair.model_validate(resolution)

    def statistics(self) -> PairStatistics:
        bets = self._bet_repo.list_bets()
        summary = summarize_pairs(resolve_pairs(bets), total_bets=len(bets))
        return PairStatistics.model_validate(summary)

    # ------------------------------------------------------------------
    # Helpers

    def _query_legs(self, query: BetQuery | None) -> list[Any]:
        query = query or BetQuery()
        records = [
            record
            for record in self._bet_repo.list_bets(**query.to_repository_kwargs())
            if query.matches_game_date(record.game_date)
        ]
        if query.sort == "date":
            # Stable sort keeps newest-created first among legs on the same day.
            records.sort(key=lambda record: parse_canonical_date(record.game_date or "") or date.min, reverse=True)
        return records

    def _commit_leg(self, new_bet: NewBet):
        try:
            record = self._bet_repo.create_bet(new_bet)
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise
        logger.debug("Saved bet {} of pair {}", new_bet.bet_position, new_bet.pair_id)
        return record

    @staticmethod
    def _new_leg(
        slip: ExtractedSlip,
        leg: ExtractedLeg,
        *,
        pair_id: str,
        position: str,
        stake: Decimal,
        odds: Decimal,
        payout: Decimal,
        total_stake: float,
        profit_percentage: float,
    ) -> NewBet:
        return NewBet(
            team_a=leg.team_a.strip(),
            team_b=leg.team_b.strip(),
            bet_type=leg.bet_type.strip(),
            selected_side=leg.bet_type.strip(),
            betting_house=leg.betting_house.strip(),
            odds=_quantize(odds),
            stake=_quantize(stake),
            payout=payout,
            game_date=canonical_date(slip.game_date),
            game_time=slip.game_time or "00:00",
            sport=slip.sport.strip(),
            league=slip.league.strip(),
            pair_id=pair_id,
            bet_position=position,
            is_verified=True,
            total_pair_stake=_quantize(total_stake),
            profit_percentage=_quantize(profit_percentage),
        )


__all__ = [
    "BetService",
    "InvalidStatusError",
    "PairConflictError",
    "PairPersistenceError",
]
