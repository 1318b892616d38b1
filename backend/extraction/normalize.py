from __future__ import annotations

import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from dateutil import parser as date_parser

from app.domain import ExtractedLeg, ExtractedSlip

# Regular, no-break, thin and narrow no-break spaces all show up in slip OCR.
_WHITESPACE_RE = re.compile(r"[\s\u00a0\u2009\u202f]+")
_SLASH_DATE_RE = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$")
_DASH_DATE_RE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}(?:[T ].*)?$")


def sanitize_number(raw: str) -> str:
    """Strip every whitespace variant and turn decimal commas into dots."""

    return _WHITESPACE_RE.sub("", raw).replace(",", ".")


def parse_decimal(value: Any) -> Decimal | None:
    """Return ``value`` as a finite Decimal, or None when it is not a number."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        candidate = value
    else:
        text = sanitize_number(str(value))
        if not text:
            return None
        try:
            candidate = Decimal(text)
        except InvalidOperation:
            return None
    if not candidate.is_finite():
        return None
    return candidate


def date_from_capture(year: str | int, month: str | int, day: str | int) -> str:
    return f"{int(day):02d}-{int(month):02d}-{int(year):04d}"


def time_from_capture(hour: str | int, minute: str | int) -> str:
    return f"{int(hour):02d}:{int(minute):02d}"


def canonical_date(value: Any) -> str:
    """Return the DD-MM-YYYY form of ``value``.

    ``datetime`` values are read in UTC so a local offset can never roll the
    calendar day; naive values are assumed to already be UTC. DD/MM/YYYY is a
    plain separator swap since both forms share field order. Unrecognized
    strings come back trimmed so the user can fix them during verification.
    """

    if isinstance(value, datetime):
        moment = value if value.tzinfo is None else value.astimezone(timezone.utc)
        return date_from_capture(moment.year, moment.month, moment.day)
    if isinstance(value, date):
        return date_from_capture(value.year, value.month, value.day)
    if value is None:
        return ""

    text = str(value).strip()
    if _SLASH_DATE_RE.match(text):
        return text.replace("/", "-")
    if _ISO_DATE_RE.match(text):
        try:
            parsed = date_parser.isoparse(text)
        except (ValueError, OverflowError):
            return text
        return canonical_date(parsed)
    return text


def parse_canonical_date(value: str) -> date | None:
    """Parse DD-MM-YYYY (or DD/MM/YYYY) into a calendar date."""

    match = _DASH_DATE_RE.match(canonical_date(value))
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def format_display_date(value: date) -> str:
    return date_from_capture(value.year, value.month, value.day)


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def _leg_from_structured(
    raw_leg: Any,
    *,
    team_a: str,
    team_b: str,
) -> ExtractedLeg:
    leg = raw_leg if isinstance(raw_leg, Mapping) else {}
    return ExtractedLeg(
        betting_house=_text(leg.get("bettingHouse")),
        team_a=team_a,
        team_b=team_b,
        bet_type=_text(leg.get("betType")),
        odds=_text(leg.get("odds"), "0"),
        stake=_text(leg.get("stake"), "0"),
        profit=_text(leg.get("profit"), "0"),
    )


def slip_from_structured(payload: Mapping[str, Any] | None) -> ExtractedSlip:
    """Map the model's JSON onto an :class:`ExtractedSlip` without ever failing.

    Missing values default to empty strings or ``"0"``; the verification step
    is where the user fills them in.
    """

    data: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}
    team_a = _text(data.get("teamA"))
    team_b = _text(data.get("teamB"))
    percentage = _text(data.get("totalProfitPercentage"), "0").replace("%", "").strip()

    return ExtractedSlip(
        bet_a=_leg_from_structured(data.get("betA"), team_a=team_a, team_b=team_b),
        bet_b=_leg_from_structured(data.get("betB"), team_a=team_a, team_b=team_b),
        game_date=canonical_date(data.get("gameDate")),
        game_time=_text(data.get("gameTime"), "00:00"),
        sport=_text(data.get("sport")),
        league=_text(data.get("league")),
        total_profit_percentage=percentage or "0",
    )


def format_slip_text(payload: Mapping[str, Any]) -> str:
    """Render an extraction as the labelled plain-text block used for diagnostics."""

    def field_of(source: Any, key: str) -> str:
        if not isinstance(source, Mapping):
            return ""
        return _text(source.get(key))

    bet_a = payload.get("betA")
    bet_b = payload.get("betB")
    lines = [
        f"Data do evento: {field_of(payload, 'gameDate')}",
        f"Hora: {field_of(payload, 'gameTime')}",
        "",
        f"Esporte: {field_of(payload, 'sport')}",
        f"Liga: {field_of(payload, 'league')}",
        "",
        f"Time A: {field_of(payload, 'teamA')}",
        f"Time B: {field_of(payload, 'teamB')}",
    ]
    for label, leg in (("Aposta 1", bet_a), ("Aposta 2", bet_b)):
        lines.extend(
            [
                "",
                label,
                f"Casa: {field_of(leg, 'bettingHouse')}",
                f"Tipo: {field_of(leg, 'betType')}",
                f"Odd: {field_of(leg, 'odds')}",
                f"Valor da Aposta: {field_of(leg, 'stake')}",
                f"Lucro: {field_of(leg, 'profit')}",
            ]
        )
    lines.extend(["", f"Lucro%: {field_of(payload, 'totalProfitPercentage')}"])
    return "\n".join(lines)
