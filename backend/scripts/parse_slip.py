import argparse
import base64
import sys
from pathlib import Path

from loguru import logger

from app import crud, schemas
from app.core.config import get_settings
from app.db import init_db, session_scope
from app.services.bet_service import BetQuery, BetService, PairPersistenceError
from app.services.llm import ExtractionError
from app.services.pairs import resolve_pairs
from app.services.validation import SlipValidationError, validate_slip
from extraction.normalize import parse_canonical_date
from extraction.service import SlipExtractionService
from extraction.text_parser import SlipParseError, parse_slip_text
from extraction.vocabulary import get_vocabulary


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Parse surebet slips and inspect recorded pairs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    text_parser = subparsers.add_parser("text", help="Parse a slip from an OCR text dump")
    text_parser.add_argument("path", type=Path, help="Text file with the slip contents")

    image_parser = subparsers.add_parser("image", help="Extract a slip from a screenshot")
    image_parser.add_argument("path", type=Path, help="Image file (png, jpeg, webp, gif)")

    for sub in (text_parser, image_parser):
        sub.add_argument(
            "--save",
            action="store_true",
            help="Persist the slip as a new pair when it passes verification",
        )

    subparsers.add_parser("pairs", help="List recorded pairs with their resolved status")

    report_parser = subparsers.add_parser("report", help="Summarize settled results over a game-date range")
    report_parser.add_argument("--from", dest="date_from", help="Earliest game date (DD-MM-YYYY)")
    report_parser.add_argument("--to", dest="date_to", help="Latest game date (DD-MM-YYYY)")
    report_parser.add_argument("--status", choices=["pending", "won", "lost", "returned"])
    report_parser.add_argument("--search", help="Match betting house or bet type")
    return parser.parse_args(argv)


def _print_slip(slip) -> None:
    print(schemas.SlipSchema.model_validate(slip).model_dump_json(by_alias=True, indent=2))


def _save(slip) -> int:
    report = validate_slip(slip)
    if not report.is_valid:
        for key, message in report.errors.items():
            logger.error("{}: {}", key, message)
        return 1
    init_db()
    try:
        with session_scope() as session:
            created = BetService(session).create_pair(slip)
    except (SlipValidationError, PairPersistenceError) as exc:
        logger.error("Could not save pair: {}", exc)
        return 1
    logger.info("Saved pair {}", created.pair_id)
    return 0


def _list_pairs() -> int:
    init_db()
    with session_scope() as session:
        pairs = resolve_pairs(crud.list_bets(session))
    for pair in pairs:
        suffix = " (incomplete)" if pair.incomplete else ""
        print(
            f"{pair.pair_id}  {pair.game_date or '-':<10}  {pair.status:<8}  "
            f"stake={pair.total_stake:.2f}  net={pair.net_result:+.2f}{suffix}"
        )
    logger.info("Listed {} pairs", len(pairs))
    return 0


def _report(args: argparse.Namespace) -> int:
    bounds = {}
    for name in ("date_from", "date_to"):
        raw = getattr(args, name)
        if raw is None:
            continue
        bounds[name] = parse_canonical_date(raw)
        if bounds[name] is None:
            logger.error("--{} must be a DD-MM-YYYY date, got {!r}", name.removeprefix("date_"), raw)
            return 1
    query = BetQuery(status=args.status, search=args.search, **bounds)

    init_db()
    with session_scope() as session:
        report = BetService(session).report(query)
    print(report.model_dump_json(by_alias=True, indent=2, exclude={"pairs"}))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if args.command == "report":
        return _report(args)

    if args.command == "pairs":
        return _list_pairs()

    if args.command == "text":
        try:
            slip = parse_slip_text(args.path.read_text(encoding="utf-8"), get_vocabulary())
        except SlipParseError as exc:
            logger.error("Cannot analyze {}: {}", args.path, exc)
            return 1
    else:
        image_base64 = base64.b64encode(args.path.read_bytes()).decode("ascii")
        try:
            slip = SlipExtractionService(get_settings()).analyze(image_base64)
        except ExtractionError as exc:
            logger.error("Extraction failed for {}: {}", args.path, exc)
            return 1

    _print_slip(slip)
    if args.save:
        return _save(slip)
    return 0


if __name__ == "__main__":
    sys.exit(main())
