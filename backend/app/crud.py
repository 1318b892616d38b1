from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy.orm import Session

from app.domain import NewBet
from app.repositories import BetRepository

from .models import Bet


def create_bet(session: Session, bet: NewBet) -> Bet:
    return BetRepository(session).create_bet(bet)


def update_bet_status(session: Session, bet_id: str, status: str) -> Bet | None:
    return BetRepository(session).update_status(bet_id, status)


def delete_bet(session: Session, bet_id: str) -> bool:
    return BetRepository(session).delete_bet(bet_id)


def get_bet(session: Session, bet_id: str) -> Bet | None:
    return BetRepository(session).get_bet(bet_id)


def list_bets(session: Session, **filters: Any) -> Sequence[Bet]:
    return BetRepository(session).list_bets(**filters)


def list_pair(session: Session, pair_id: str) -> Sequence[Bet]:
    return BetRepository(session).list_pair(pair_id)
