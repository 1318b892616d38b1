from __future__ import annotations

import pytest

from extraction.text_parser import SlipParseError, parse_slip_text
from extraction.vocabulary import Vocabulary, default_vocabulary


def test_parses_strict_betting_lines(sample_slip_text):
    slip = parse_slip_text(sample_slip_text, default_vocabulary())

    assert slip.game_date == "27-09-2025"
    assert slip.game_time == "13:00"
    assert slip.sport == "Futebol"
    assert slip.league == "Brasil - Serie A"
    assert slip.total_profit_percentage == "1.45"

    assert slip.bet_a.betting_house == "Pinnacle"
    assert slip.bet_a.bet_type == "H1(+1.5)"
    assert slip.bet_a.odds == "2.10"
    assert slip.bet_a.stake == "100"
    assert slip.bet_a.profit == "110.00"

    assert slip.bet_b.betting_house == "Betano"
    assert slip.bet_b.bet_type == "H2(-1.5)"
    assert slip.bet_b.stake == "102.44"

    for leg in (slip.bet_a, slip.bet_b):
        assert leg.team_a == "Flamengo"
        assert leg.team_b == "Palmeiras"


def test_decimal_commas_are_sanitized():
    text = (
        "Grêmio – Internacional\n"
        "Pinnacle H1(+1,5) 1,95 [E 1000 USD 950\n"
        "KTO H2(-1,5) 2,05 [E 950,50 USD 998,00\n"
    )
    slip = parse_slip_text(text, default_vocabulary())

    assert slip.bet_a.odds == "1.95"
    assert slip.bet_b.stake == "950.50"
    assert slip.bet_b.profit == "998.00"


def test_missing_profit_is_backfilled_from_odds_and_stake():
    text = "Pinnacle H1(+1.5) 2.10 [E 100 USD 0\n"
    slip = parse_slip_text(text, default_vocabulary())

    assert slip.bet_a.profit == "110.00"


def test_loose_tier_populates_both_legs_without_raising():
    text = "Corinthians – Santos\nFutebol / Brasil - Serie A\nKTO Acima 2.5\nBlaze Abaixo 2.5\n"
    slip = parse_slip_text(text, default_vocabulary())

    assert slip.bet_a.betting_house == "KTO"
    assert slip.bet_b.betting_house == "Blaze"
    assert slip.bet_a.bet_type == "Acima"
    assert slip.bet_b.bet_type == "Abaixo"
    assert slip.bet_a.odds == "0"
    assert slip.bet_a.team_a == "Corinthians"


def test_teams_fall_back_to_dash_line_split():
    text = "São Paulo FC (BR) – Atlético-MG (BR)\n"
    slip = parse_slip_text(text, default_vocabulary())

    assert slip.bet_a.team_a == "São Paulo FC (BR)"
    assert slip.bet_a.team_b == "Atlético-MG (BR)"


def test_unrecognized_text_degrades_to_empty_fields():
    slip = parse_slip_text("nothing useful here", default_vocabulary())

    assert slip.bet_a.betting_house == ""
    assert slip.bet_b.stake == "0"
    assert slip.game_date == ""


@pytest.mark.parametrize("value", ["", "   \n", None, 42])
def test_blank_or_non_string_input_raises(value):
    with pytest.raises(SlipParseError):
        parse_slip_text(value, default_vocabulary())


def test_custom_vocabulary_recognizes_new_house():
    vocabulary = default_vocabulary().merged({"betting_houses": {"Estrela Bet": r"Estrela\s*Bet"}})
    text = "EstrelaBet H1(+2.5) 1.90 [E 50 USD 45\n"
    slip = parse_slip_text(text, vocabulary)

    assert slip.bet_a.betting_house == "Estrela Bet"
    assert slip.bet_a.odds == "1.90"


def test_broken_vocabulary_pattern_raises_parse_error():
    vocabulary = Vocabulary(betting_houses={"Broken": "(unclosed"})

    with pytest.raises(SlipParseError):
        parse_slip_text("Broken Over 1.90 [E 50 USD 45", vocabulary)


def test_house_pattern_with_capture_group_keeps_leg_fields():
    vocabulary = default_vocabulary().merged({"betting_houses": {"Estrela Bet": r"Estrela\s*(Bet)"}})
    text = "EstrelaBet H1(+2.5) 1.90 [E 50 USD 45\nOutra linha\n"
    slip = parse_slip_text(text, vocabulary)

    assert slip.bet_a.betting_house == "Estrela Bet"
    assert slip.bet_a.bet_type == "H1(+2.5)"
    assert slip.bet_a.odds == "1.90"
    assert slip.bet_a.stake == "50"
    assert slip.bet_a.profit == "45"
