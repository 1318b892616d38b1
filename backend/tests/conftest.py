from __future__ import annotations

import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.db import Base
from app.domain import ExtractedLeg, ExtractedSlip

SAMPLE_SLIP_TEXT = """\
Flamengo – Palmeiras
Futebol / Brasil - Serie A
Evento em 1 dia (2025-09-27 13:00-03:00)
Lucro 1.45% ROI: 120.00%
Pinnacle (BR) H1(+1.5) 2.10 [E 100 USD 110.00
Betano (BR) H2(-1.5) 2.05 [E 102.44 USD 107.56
"""


@pytest.fixture
def sample_slip_text() -> str:
    return SAMPLE_SLIP_TEXT


@pytest.fixture
def verified_slip() -> ExtractedSlip:
    slip = ExtractedSlip(
        bet_a=ExtractedLeg(
            betting_house="Pinnacle",
            bet_type="H1(+1.5)",
            odds="2.10",
            stake="100",
            profit="110.00",
        ),
        bet_b=ExtractedLeg(
            betting_house="Betano",
            bet_type="H2(-1.5)",
            odds="2.05",
            stake="102.44",
            profit="107.56",
        ),
        game_date="27-09-2025",
        game_time="13:00",
        sport="Futebol",
        league="Brasil - Serie A",
        total_profit_percentage="1.45",
    )
    slip.set_teams("Flamengo", "Palmeiras")
    return slip


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False, future=True)
    session = factory()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def test_settings(monkeypatch) -> Settings:
    settings = Settings(
        database_url="sqlite:///:memory:",
        llm_default_provider="openai",
        openai_api_key="sk-test",
        gemini_api_key="gm-test",
    )
    monkeypatch.setattr("app.core.config.get_settings", lambda: settings)
    monkeypatch.setattr("app.core.config.settings", settings)
    return settings
