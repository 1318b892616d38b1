from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.domain import ExtractedLeg, ExtractedSlip
from extraction.normalize import canonical_date

BetStatusValue = Literal["pending", "won", "lost", "returned"]
BetPositionValue = Literal["A", "B"]

# Upper bounds of the Numeric(10, 2) and Numeric(7, 2) columns.
AMOUNT_LIMIT = 100_000_000
PERCENT_LIMIT = 100_000


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class BetBase(CamelModel):
    team_a: str = Field(min_length=1)
    team_b: str = Field(min_length=1)
    bet_type: str = Field(min_length=1)
    selected_side: str | None = None
    betting_house: str = Field(min_length=1)
    odds: float = Field(gt=0, lt=AMOUNT_LIMIT, allow_inf_nan=False)
    stake: float = Field(gt=0, lt=AMOUNT_LIMIT, allow_inf_nan=False)
    payout: float = Field(gt=-AMOUNT_LIMIT, lt=AMOUNT_LIMIT, allow_inf_nan=False)
    game_date: str
    game_time: str = "00:00"
    sport: str
    league: str
    pair_id: str = Field(min_length=1)
    bet_position: BetPositionValue
    total_pair_stake: float | None = Field(default=None, ge=0, lt=AMOUNT_LIMIT, allow_inf_nan=False)
    profit_percentage: float | None = Field(
        default=None, gt=-PERCENT_LIMIT, lt=PERCENT_LIMIT, allow_inf_nan=False
    )
    is_verified: bool = False

    @field_validator("odds", "stake", "payout", "total_pair_stake", "profit_percentage", mode="before")
    @classmethod
    def _coerce_decimal(cls, value: Any) -> float | None:
        if value is None:
            return None
        if isinstance(value, str):
            value = value.replace(",", ".").strip()
        return float(value)

    @field_validator("game_date", mode="before")
    @classmethod
    def _canonical_game_date(cls, value: Any) -> str:
        return canonical_date(value)


class BetCreate(BetBase):
    status: BetStatusValue = "pending"


class Bet(BetBase):
    id: str
    status: BetStatusValue
    selected_side: str
    created_at: datetime


class BetStatusUpdate(CamelModel):
    status: str


class ExtractedLegSchema(CamelModel):
    betting_house: str = ""
    team_a: str = ""
    team_b: str = ""
    bet_type: str = ""
    odds: str = "0"
    stake: str = "0"
    profit: str = "0"

    @field_validator("odds", "stake", "profit", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:
        if value is None:
            return "0"
        return str(value)


class SlipSchema(CamelModel):
    bet_a: ExtractedLegSchema = Field(default_factory=ExtractedLegSchema)
    bet_b: ExtractedLegSchema = Field(default_factory=ExtractedLegSchema)
    game_date: str = ""
    game_time: str = ""
    sport: str = ""
    league: str = ""
    total_profit_percentage: str = "0"

    @field_validator("game_date", mode="before")
    @classmethod
    def _canonical_game_date(cls, value: Any) -> str:
        return canonical_date(value)

    @field_validator("total_profit_percentage", mode="before")
    @classmethod
    def _stringify_percentage(cls, value: Any) -> str:
        if value is None:
            return "0"
        return str(value).replace("%", "").strip()

    def to_domain(self) -> ExtractedSlip:
        return ExtractedSlip(
            bet_a=ExtractedLeg(**self.bet_a.model_dump()),
            bet_b=ExtractedLeg(**self.bet_b.model_dump()),
            game_date=self.game_date,
            game_time=self.game_time,
            sport=self.sport,
            league=self.league,
            total_profit_percentage=self.total_profit_percentage,
        )


class ImagePayload(CamelModel):
    image_base64: str | None = None


class TextPayload(CamelModel):
    text: str


class Pair(CamelModel):
    pair_id: str
    status: BetStatusValue
    total_stake: float
    net_result: float
    game_date: str | None = None
    incomplete: bool
    legs: list[Bet] = Field(default_factory=list)


class PairList(CamelModel):
    total: int
    items: list[Pair]


class CreatedPair(CamelModel):
    pair_id: str
    legs: list[Bet]


class PairStatistics(CamelModel):
    total_pairs: int
    complete_pairs: int
    incomplete_pairs: int
    total_bets: int
    pending_pairs: int
    won_pairs: int
    lost_pairs: int
    returned_pairs: int
    total_staked: float
    total_profit: float
    total_loss: float
    net_profit: float
    win_rate: float


class Report(CamelModel):
    total_pairs: int
    pending_pairs: int
    resolved_pairs: int
    won_pairs: int
    lost_pairs: int
    returned_pairs: int
    total_stake: float
    resolved_stake: float
    total_payout: float
    total_profit: float
    profit_percentage: float
    date_from: str | None = None
    date_to: str | None = None
    pairs: list[Pair] = Field(default_factory=list)
