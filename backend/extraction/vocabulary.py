"""Domain vocabulary used by the raw-text slip parser.

Betting-house names, bet-type markers and sport names change far more often
than the parsing rules, so they live here as data. A YAML file may extend or
replace the defaults::

    betting_houses:
      Pinnacle: Pinnacle
      Estrela Bet: "Estrela\\s*Bet"
    bet_types:
      - "H[12]\\([^)]+\\)"
    sports:
      - Futebol
    stake_currency: USD
    replace: false

Keys map a canonical house name to the regular expression that recognizes it
in OCR output. ``replace: true`` discards the built-in lists instead of
merging into them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Sequence

import yaml
from loguru import logger

__all__ = ["Vocabulary", "default_vocabulary", "load_vocabulary", "get_vocabulary"]

_DEFAULT_HOUSES: dict[str, str] = {
    name: re.escape(name)
    for name in (
        "Pinnacle",
        "BravoBet",
        "Betfast",
        "Blaze",
        "KTO",
        "Betano",
        "1xBet",
        "22Bet",
        "VBet",
        "Bet365",
        "Betnacional",
        "Novibet",
        "Sportingbet",
    )
}

_DEFAULT_BET_TYPES: tuple[str, ...] = (
    r"H[12]\([^)]+\)",
    r"Acima",
    r"Abaixo",
    r"Over",
    r"Under",
    r"Gols:\s*Sim",
    r"2\s*-\s*escanteios",
)

# Longer names first so "Futebol americano" wins over "Futebol".
_DEFAULT_SPORTS: tuple[str, ...] = (
    "Futebol americano",
    "Futebol",
    "Football",
    "Basquete",
    "Basketball",
    "Tennis",
    "Volei",
)


@dataclass(frozen=True, slots=True)
class Vocabulary:
    """Match patterns for the parser; build compiled regexes on demand."""

    betting_houses: Mapping[str, str] = field(default_factory=lambda: dict(_DEFAULT_HOUSES))
    bet_types: Sequence[str] = _DEFAULT_BET_TYPES
    sports: Sequence[str] = _DEFAULT_SPORTS
    stake_currency: str = "USD"

    def house_alternation(self) -> str:
        patterns = sorted(self.betting_houses.values(), key=len, reverse=True)
        return "|".join(f"(?:{pattern})" for pattern in patterns)

    def house_regex(self) -> re.Pattern[str]:
        return re.compile(f"(?P<house>{self.house_alternation()})", re.IGNORECASE)

    def bet_type_regex(self) -> re.Pattern[str]:
        return re.compile("|".join(f"(?:{pattern})" for pattern in self.bet_types), re.IGNORECASE)

    def sport_regex(self) -> re.Pattern[str]:
        names = "|".join(re.escape(sport) for sport in self.sports)
        return re.compile(rf"({names})\s*/\s*([^\n]+)", re.IGNORECASE)

    def canonical_house(self, matched: str) -> str:
        """Return the configured name for text matched by a house pattern."""

        for name, pattern in self.betting_houses.items():
            if re.fullmatch(pattern, matched, re.IGNORECASE):
                return name
        return matched

    def merged(self, overrides: Mapping[str, Any]) -> "Vocabulary":
        replace = bool(overrides.get("replace", False))

        houses: dict[str, str] = {} if replace else dict(self.betting_houses)
        raw_houses = overrides.get("betting_houses") or {}
        if isinstance(raw_houses, Mapping):
            for name, pattern in raw_houses.items():
                houses[str(name)] = str(pattern) if pattern else re.escape(str(name))
        elif isinstance(raw_houses, Sequence) and not isinstance(raw_houses, str):
            for name in raw_houses:
                houses[str(name)] = re.escape(str(name))
        else:
            raise TypeError("'betting_houses' must be a mapping or a list of names")

        bet_types = [] if replace else list(self.bet_types)
        bet_types.extend(str(item) for item in overrides.get("bet_types") or ())

        sports = [] if replace else list(self.sports)
        sports.extend(str(item) for item in overrides.get("sports") or ())
        sports.sort(key=len, reverse=True)

        return Vocabulary(
            betting_houses=houses,
            bet_types=tuple(dict.fromkeys(bet_types)),
            sports=tuple(dict.fromkeys(sports)),
            stake_currency=str(overrides.get("stake_currency") or self.stake_currency),
        )


def default_vocabulary() -> Vocabulary:
    return Vocabulary()


def load_vocabulary(path: str | Path) -> Vocabulary:
    """Return the default vocabulary extended by the YAML file at ``path``."""

    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise FileNotFoundError(f"Vocabulary file not found: {file_path}")

    raw = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    if raw is None:
        logger.debug("Vocabulary file {} is empty; using defaults", file_path)
        return default_vocabulary()
    if not isinstance(raw, Mapping):
        raise TypeError(f"Vocabulary file {file_path} must contain a mapping")

    vocabulary = default_vocabulary().merged(raw)
    logger.debug(
        "Loaded vocabulary from {} ({} houses, {} bet types)",
        file_path,
        len(vocabulary.betting_houses),
        len(vocabulary.bet_types),
    )
    return vocabulary


@lru_cache
def get_vocabulary() -> Vocabulary:
    from app.core.config import get_settings

    path = get_settings().vocabulary_path
    if path:
        return load_vocabulary(path)
    return default_vocabulary()
