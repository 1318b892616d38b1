"""Best-effort parser for raw OCR text of a surebet calculator slip.

Each step falls back to a looser one and leaves a field empty (or ``"0"``)
rather than raising; the verification screen is where values get corrected.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal

from loguru import logger

from app.domain import ExtractedLeg, ExtractedSlip

from .normalize import date_from_capture, parse_decimal, sanitize_number, time_from_capture
from .vocabulary import Vocabulary, get_vocabulary

__all__ = ["SlipParseError", "parse_slip_text"]

# The slip separates teams with an en dash; ASCII hyphens belong to team names.
_NAME = r"[A-Za-zÀ-ÿ0-9]+(?:[ .'-][A-Za-zÀ-ÿ0-9]+)*"
_TEAMS_RE = re.compile(rf"({_NAME})\s*–\s*({_NAME})", re.IGNORECASE)
_EN_DASH = "–"
_DATETIME_RE = re.compile(r"(\d{4})-?(\d{2})-?(\d{2})\s+(\d{1,2}):?(\d{2})")
_PERCENT_RE = re.compile(r"(-?\d+[.,]\d+)\s?%")
_NUMBER = r"\d+(?:[.,]\d+)?"
_CENTS = Decimal("0.01")


class SlipParseError(ValueError):
    """Raised when text cannot be analysed into any slip structure."""


class _SlipTextParser:
    def __init__(self, text: str, vocabulary: Vocabulary) -> None:
        self.text = text
        self.lines = [line.strip() for line in text.splitlines() if line.strip()]
        self.vocabulary = vocabulary
        self.house_re = vocabulary.house_regex()
        currency = re.escape(vocabulary.stake_currency)
        houses = vocabulary.house_alternation()
        self.betting_line_re = re.compile(
            rf"({houses}).*?\[E.*?{currency}", re.IGNORECASE
        )
        self.marker_re = re.compile(rf"\[E\s+{_NUMBER}\s+{currency}", re.IGNORECASE)
        # House (region)? description odds ... [E stake CUR ... profit
        self.strict_re = re.compile(
            rf"(?P<house>{houses})\s*(?:\([^)]+\))?\s+(?P<bet_type>.+?)\s+(?P<odds>\d+[.,]\d+)\s+.*?"
            rf"\[E\s+(?P<stake>{_NUMBER})\s+{currency}.*?(?P<profit>{_NUMBER})",
            re.IGNORECASE,
        )

    def parse(self) -> ExtractedSlip:
        slip = ExtractedSlip()
        self._extract_datetime(slip)
        self._extract_teams(slip)
        self._extract_sport(slip)
        self._extract_percentage(slip)

        betting_lines = [line for line in self.lines if self.betting_line_re.search(line)]
        if betting_lines:
            for leg, line in zip((slip.bet_a, slip.bet_b), betting_lines):
                self._parse_betting_line(leg, line)
        else:
            self._loose_extraction(slip)

        for leg in (slip.bet_a, slip.bet_b):
            _backfill_profit(leg)
        return slip

    def _extract_datetime(self, slip: ExtractedSlip) -> None:
        match = _DATETIME_RE.search(self.text)
        if not match:
            return
        year, month, day, hour, minute = match.groups()
        slip.game_date = date_from_capture(year, month, day)
        slip.game_time = time_from_capture(hour, minute)

    def _extract_teams(self, slip: ExtractedSlip) -> None:
        match = _TEAMS_RE.search(self.text)
        if match:
            slip.set_teams(match.group(1).strip(), match.group(2).strip())
            return

        dash_line = next((line for line in self.lines if _EN_DASH in line), None)
        if dash_line:
            parts = [part.strip() for part in dash_line.split(_EN_DASH)]
            if len(parts) >= 2 and parts[0] and parts[1]:
                slip.set_teams(parts[0], parts[1])
                return

        # Teams sit in the slip header.
        for line in self.lines[:3]:
            match = _TEAMS_RE.search(line)
            if match:
                slip.set_teams(match.group(1).strip(), match.group(2).strip())
                return

    def _extract_sport(self, slip: ExtractedSlip) -> None:
        match = self.vocabulary.sport_regex().search(self.text)
        if match:
            slip.sport = match.group(1).strip()
            slip.league = match.group(2).strip()

    def _extract_percentage(self, slip: ExtractedSlip) -> None:
        match = _PERCENT_RE.search(self.text)
        if match:
            slip.total_profit_percentage = sanitize_number(match.group(1))

    def _parse_betting_line(self, leg: ExtractedLeg, line: str) -> None:
        house = self.house_re.search(line)
        if house:
            leg.betting_house = self.vocabulary.canonical_house(house.group("house").strip())
        self._apply_strict_match(leg, line)

    def _apply_strict_match(self, leg: ExtractedLeg, line: str) -> bool:
        match = self.strict_re.search(line)
        if not match:
            return False
        # Named groups: vocabulary patterns may carry capture groups of their own.
        leg.betting_house = self.vocabulary.canonical_house(match.group("house").strip())
        leg.bet_type = match.group("bet_type").strip()
        leg.odds = sanitize_number(match.group("odds"))
        leg.stake = sanitize_number(match.group("stake"))
        leg.profit = sanitize_number(match.group("profit"))
        return True

    def _loose_extraction(self, slip: ExtractedSlip) -> None:
        legs = (slip.bet_a, slip.bet_b)

        houses = [match.group("house") for match in self.house_re.finditer(self.text)]
        for leg, house in zip(legs, houses):
            leg.betting_house = self.vocabulary.canonical_house(house.strip())

        bet_types = [match.group(0) for match in self.vocabulary.bet_type_regex().finditer(self.text)]
        for leg, bet_type in zip(legs, bet_types):
            leg.bet_type = bet_type.strip()

        marker_lines = [line for line in self.lines if self.marker_re.search(line)]
        for leg, line in zip(legs, marker_lines):
            self._apply_strict_match(leg, line)


def _backfill_profit(leg: ExtractedLeg) -> None:
    """Set profit to stake x odds - stake when it was not read off the slip."""

    current = parse_decimal(leg.profit)
    if current is not None and current != 0:
        return
    odds = parse_decimal(leg.odds)
    stake = parse_decimal(leg.stake)
    if odds is None or stake is None or odds <= 0 or stake <= 0:
        return
    profit = (stake * odds - stake).quantize(_CENTS, rounding=ROUND_HALF_UP)
    leg.profit = str(profit)


def parse_slip_text(text: str, vocabulary: Vocabulary | None = None) -> ExtractedSlip:
    """Extract both legs and the match context from raw OCR text."""

    if not isinstance(text, str) or not text.strip():
        raise SlipParseError("Cannot analyze text: no recognizable content")

    vocabulary = vocabulary or get_vocabulary()
    try:
        slip = _SlipTextParser(text, vocabulary).parse()
    except re.error as exc:
        logger.error("Slip vocabulary produced an invalid pattern: {}", exc)
        raise SlipParseError("Cannot analyze text") from exc

    logger.debug(
        "Parsed slip text houses=({}, {}) teams=({}, {})",
        slip.bet_a.betting_house or "-",
        slip.bet_b.betting_house or "-",
        slip.bet_a.team_a or "-",
        slip.bet_a.team_b or "-",
    )
    return slip
