"""Bet-focused data access helpers."""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import desc, or_, select
from sqlalchemy.orm import Session

from app.domain import NewBet
from app.models import Bet, BetStatus


class BetRepository:
    """Encapsulate all bet persistence concerns; callers own the transaction."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Mutations

    def create_bet(self, bet: NewBet) -> Bet:
        record = Bet(
            team_a=bet.team_a,
            team_b=bet.team_b,
            bet_type=bet.bet_type,
            selected_side=bet.selected_side or bet.bet_type or "Unknown",
            betting_house=bet.betting_house,
            odds=bet.odds,
            stake=bet.stake,
            payout=bet.payout,
            game_date=bet.game_date,
            game_time=bet.game_time,
            sport=bet.sport,
            league=bet.league,
            status=bet.status or BetStatus.PENDING.value,
            is_verified=bet.is_verified,
            pair_id=bet.pair_id,
            bet_position=bet.bet_position,
            total_pair_stake=bet.total_pair_stake,
            profit_percentage=bet.profit_percentage,
        )
        self._session.add(record)
        self._session.flush()
        return record

    def update_status(self, bet_id: str, status: str) -> Bet | None:
        record = self._session.get(Bet, bet_id)
        if record is None:
            return None
        record.status = status
        self._session.flush()
        return record

    def delete_bet(self, bet_id: str) -> bool:
        record = self._session.get(Bet, bet_id)
        if record is None:
            return False
        self._session.delete(record)
        self._session.flush()
        return True

    # ------------------------------------------------------------------
    # Queries

    def get_bet(self, bet_id: str) -> Bet | None:
        return self._session.get(Bet, bet_id)

    def list_bets(
        self,
        *,
        status: str | None = None,
        min_stake: float | None = None,
        max_stake: float | None = None,
        min_profit: float | None = None,
        max_profit: float | None = None,
        search: str | None = None,
        sort: str = "created",
    ) -> Sequence[Bet]:
        """Return legs matching the filters, newest first unless ``sort`` says otherwise.

        Profit is the leg's payout minus its stake. ``search`` matches the
        betting house or bet type case-insensitively.
        """

        filters: list[Any] = []
        if status:
            filters.append(Bet.status == status)
        if min_stake is not None:
            filters.append(Bet.stake >= min_stake)
        if max_stake is not None:
            filters.append(Bet.stake <= max_stake)
        if min_profit is not None:
            filters.append(Bet.payout - Bet.stake >= min_profit)
        if max_profit is not None:
            filters.append(Bet.payout - Bet.stake <= max_profit)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            filters.append(or_(Bet.betting_house.ilike(pattern), Bet.bet_type.ilike(pattern)))

        sort_column = {
            "stake": Bet.stake,
            "odds": Bet.odds,
        }.get(sort, Bet.created_at)

        query = select(Bet).where(*filters).order_by(desc(sort_column), desc(Bet.created_at), desc(Bet.id))
        return self._session.execute(query).scalars().all()

    def list_pair(self, pair_id: str) -> Sequence[Bet]:
        query = select(Bet).where(Bet.pair_id == pair_id).order_by(Bet.bet_position)
        return self._session.execute(query).scalars().all()


__all__ = ["BetRepository"]
