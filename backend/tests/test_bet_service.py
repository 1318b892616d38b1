from __future__ import annotations

from datetime import date
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.schemas import BetCreate
from app.services.bet_service import (
    BetQuery,
    BetService,
    InvalidStatusError,
    PairConflictError,
    PairPersistenceError,
)
from app.services.validation import SlipValidationError


def bet_payload(**overrides) -> BetCreate:
    values = {
        "teamA": "Flamengo",
        "teamB": "Palmeiras",
        "betType": "H1(+1.5)",
        "bettingHouse": "Pinnacle",
        "odds": "2.10",
        "stake": 100,
        "payout": 210,
        "gameDate": "27/09/2025",
        "sport": "Futebol",
        "league": "Brasil - Serie A",
        "pairId": "pair-1",
        "betPosition": "A",
    }
    values.update(overrides)
    return BetCreate.model_validate(values)


def test_create_pair_persists_both_legs_with_metrics(db_session, verified_slip):
    service = BetService(db_session)

    created = service.create_pair(verified_slip)

    assert len(created.legs) == 2
    leg_a, leg_b = created.legs
    assert {leg.pair_id for leg in created.legs} == {created.pair_id}
    assert (leg_a.bet_position, leg_b.bet_position) == ("A", "B")
    assert leg_a.payout == pytest.approx(210.00)
    assert leg_b.payout == pytest.approx(210.00)
    assert leg_a.total_pair_stake == pytest.approx(202.44)
    assert leg_a.profit_percentage == pytest.approx(3.73)
    assert leg_a.game_date == "27-09-2025"
    assert leg_a.status == "pending"
    assert leg_a.is_verified is True


def test_create_pair_rejects_invalid_slip(db_session, verified_slip):
    verified_slip.bet_b.team_a = "Vasco"

    with pytest.raises(SlipValidationError) as excinfo:
        BetService(db_session).create_pair(verified_slip)

    assert "teams" in excinfo.value.errors
    assert BetService(db_session).list_bets() == []


def test_failure_on_second_leg_leaves_incomplete_pair(db_session, verified_slip):
    service = BetService(db_session)
    original = service._bet_repo.create_bet
    calls = {"count": 0}

    def flaky_create(new_bet):
        calls["count"] += 1
        if calls["count"] == 2:
            raise OperationalError("INSERT", {}, Exception("disk full"))
        return original(new_bet)

    with patch.object(service._bet_repo, "create_bet", side_effect=flaky_create):
        with pytest.raises(PairPersistenceError) as excinfo:
            service.create_pair(verified_slip)

    assert excinfo.value.saved_positions == ["A"]
    pair = service.get_pair(excinfo.value.pair_id)
    assert pair.incomplete is True
    assert pair.status == "pending"
    assert [leg.bet_position for leg in pair.legs] == ["A"]


def test_create_bet_enforces_two_distinct_positions(db_session):
    service = BetService(db_session)
    service.create_bet(bet_payload())

    with pytest.raises(PairConflictError):
        service.create_bet(bet_payload(bettingHouse="Betano"))

    service.create_bet(bet_payload(betPosition="B", bettingHouse="Betano"))

    with pytest.raises(PairConflictError):
        service.create_bet(bet_payload(betPosition="B"))

    assert len(service.list_pair_bets("pair-1")) == 2


def test_create_bet_rejects_mismatched_teams(db_session):
    service = BetService(db_session)
    service.create_bet(bet_payload())

    with pytest.raises(SlipValidationError):
        service.create_bet(bet_payload(betPosition="B", teamA="Vasco"))


def test_status_updates_drive_pair_resolution(db_session, verified_slip):
    service = BetService(db_session)
    created = service.create_pair(verified_slip)
    leg_a, leg_b = created.legs

    assert service.update_status(leg_a.id, "won").status == "won"
    service.update_status(leg_b.id, "lost")

    pair = service.get_pair(created.pair_id)
    assert pair.status == "won"
    assert pair.net_result == pytest.approx(210.00 - 202.44)

    stats = service.statistics()
    assert stats.won_pairs == 1
    assert stats.total_bets == 2
    assert stats.win_rate == pytest.approx(100)


def test_update_status_rejects_unknown_value(db_session):
    service = BetService(db_session)

    with pytest.raises(InvalidStatusError):
        service.update_status("whatever", "cancelled")
    assert service.update_status("missing", "won") is None


def test_delete_and_lookup_missing(db_session):
    service = BetService(db_session)
    bet = service.create_bet(bet_payload())

    assert service.get_bet(bet.id).id == bet.id
    assert service.delete_bet(bet.id) is True
    assert service.get_bet(bet.id) is None
    assert service.delete_bet(bet.id) is False
    assert service.get_pair("pair-1") is None


def test_list_pairs(db_session, verified_slip):
    service = BetService(db_session)
    service.create_pair(verified_slip)
    service.create_bet(bet_payload(pairId="manual"))

    pairs = service.list_pairs()

    assert len(pairs) == 2
    assert sorted(pair.incomplete for pair in pairs) == [False, True]


def test_create_pair_rejects_unstorable_stake(db_session, verified_slip):
    verified_slip.bet_a.stake = "1e30"

    with pytest.raises(SlipValidationError) as excinfo:
        BetService(db_session).create_pair(verified_slip)

    assert "bet_a.stake" in excinfo.value.errors
    assert BetService(db_session).list_bets() == []


@pytest.fixture
def two_pairs(db_session):
    service = BetService(db_session)
    service.create_bet(bet_payload())
    service.create_bet(
        bet_payload(betPosition="B", bettingHouse="Betano", betType="H2(-1.5)", odds="2.05", stake="102.44")
    )
    later = {"pairId": "pair-2", "gameDate": "01/10/2025", "teamA": "Santos", "teamB": "Vasco"}
    kto = service.create_bet(
        bet_payload(bettingHouse="KTO", betType="Over", odds="1.90", stake=50, payout=95, **later)
    )
    service.create_bet(
        bet_payload(
            betPosition="B", bettingHouse="Blaze", betType="Under", odds="1.82", stake=55, payout=100, **later
        )
    )
    return service, kto


def test_list_bets_filters(two_pairs):
    service, _ = two_pairs

    def houses(query):
        return sorted(bet.betting_house for bet in service.list_bets(query))

    assert houses(BetQuery(search="BET")) == ["Betano"]
    assert houses(BetQuery(search="under")) == ["Blaze"]
    assert houses(BetQuery(date_from=date(2025, 9, 30))) == ["Blaze", "KTO"]
    assert houses(BetQuery(date_to=date(2025, 9, 27))) == ["Betano", "Pinnacle"]
    assert houses(BetQuery(min_stake=60)) == ["Betano", "Pinnacle"]
    assert houses(BetQuery(max_stake=50)) == ["KTO"]
    assert houses(BetQuery(max_profit=50)) == ["Blaze", "KTO"]
    assert houses(BetQuery(min_profit=108)) == ["Pinnacle"]


def test_list_bets_sorting_and_status(two_pairs):
    service, kto = two_pairs
    service.update_status(kto.id, "won")

    assert [bet.stake for bet in service.list_bets(BetQuery(sort="stake"))][0] == pytest.approx(102.44)
    assert service.list_bets(BetQuery(sort="odds"))[0].betting_house == "Pinnacle"
    assert {bet.pair_id for bet in service.list_bets(BetQuery(sort="date"))[:2]} == {"pair-2"}
    assert [bet.id for bet in service.list_bets(BetQuery(status="won"))] == [kto.id]


def test_filtered_pairs_keep_both_legs(two_pairs):
    service, _ = two_pairs

    pairs = service.list_pairs(BetQuery(search="KTO"))

    assert [pair.pair_id for pair in pairs] == ["pair-2"]
    assert pairs[0].incomplete is False
    assert len(pairs[0].legs) == 2


def test_report_counts_pairs_with_both_legs_matching(two_pairs):
    service, kto = two_pairs
    blaze = next(bet for bet in service.list_pair_bets("pair-2") if bet.bet_position == "B")
    service.update_status(kto.id, "won")
    service.update_status(blaze.id, "lost")

    report = service.report(BetQuery(date_from=date(2025, 10, 1)))

    assert report.total_pairs == 1
    assert report.won_pairs == 1
    assert report.total_payout == pytest.approx(95)
    assert report.total_profit == pytest.approx(-10)
    assert report.profit_percentage == pytest.approx(-10 / 105 * 100)
    assert report.date_from == "01-10-2025"
    assert service.report(BetQuery(search="KTO")).total_pairs == 0

    everything = service.report()
    assert everything.total_pairs == 2
    assert everything.pending_pairs == 1
    assert everything.total_stake == pytest.approx(307.44)
