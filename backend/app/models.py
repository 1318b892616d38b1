from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


class BetStatus(str, Enum):
    PENDING = "pending"
    WON = "won"
    LOST = "lost"
    RETURNED = "returned"


class BetPosition(str, Enum):
    A = "A"
    B = "B"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_bet_id() -> str:
    return uuid4().hex


class Bet(Base):
    """One leg of a surebet; two legs share a ``pair_id``."""

    __tablename__ = "bets"
    __table_args__ = (
        UniqueConstraint("pair_id", "bet_position", name="uq_bets_pair_position"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_bet_id)
    team_a: Mapped[str] = mapped_column(Text, nullable=False)
    team_b: Mapped[str] = mapped_column(Text, nullable=False)
    bet_type: Mapped[str] = mapped_column(Text, nullable=False)
    selected_side: Mapped[str] = mapped_column(Text, nullable=False)
    betting_house: Mapped[str] = mapped_column(Text, nullable=False)
    odds: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    stake: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payout: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    # DD-MM-YYYY, kept as text so no timezone can shift the calendar day.
    game_date: Mapped[str] = mapped_column(String(10), nullable=False)
    game_time: Mapped[str] = mapped_column(String(5), nullable=False)
    sport: Mapped[str] = mapped_column(Text, nullable=False)
    league: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=BetStatus.PENDING.value
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pair_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    bet_position: Mapped[str] = mapped_column(String(1), nullable=False)
    total_pair_stake: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    profit_percentage: Mapped[Decimal | None] = mapped_column(Numeric(7, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
