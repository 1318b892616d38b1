from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from loguru import logger

from . import schemas
from .core.config import get_settings, settings
from .db import get_db, init_db
from .schemas import BetStatusValue
from .services.bet_service import (
    BetQuery,
    BetService,
    InvalidStatusError,
    PairConflictError,
    PairPersistenceError,
)
from .services.llm import ExtractionError, ProviderNotConfiguredError
from .services.validation import SlipValidationError
from extraction.normalize import parse_canonical_date
from extraction.service import SlipExtractionService
from extraction.text_parser import SlipParseError, parse_slip_text

app = FastAPI(title="Surebet Tracker API", version="0.1.0", debug=settings.debug)

if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.on_event("startup")
def on_startup() -> None:
    """Initialize database connections when the API boots."""

    init_db()


@app.get("/healthz", tags=["system"])
def healthcheck() -> dict[str, str]:
    """Basic readiness probe consumed by infrastructure monitors."""

    return {"status": "ok"}


def _bet_service(db=Depends(get_db)) -> BetService:
    """Provide the bet service wired with a SQLAlchemy session."""

    return BetService(db)


def _game_date(value: str | None, name: str) -> date | None:
    if value is None or not value.strip():
        return None
    parsed = parse_canonical_date(value)
    if parsed is None:
        raise HTTPException(status_code=422, detail=f"{name} must be a DD-MM-YYYY date")
    return parsed


def _bet_query(
    status_filter: Annotated[
        BetStatusValue | None,
        Query(alias="status", description="Only legs with this status"),
    ] = None,
    date_from: Annotated[str | None, Query(description="Earliest game date (DD-MM-YYYY)")] = None,
    date_to: Annotated[str | None, Query(description="Latest game date (DD-MM-YYYY)")] = None,
    min_stake: Annotated[
        float | None, Query(ge=0, allow_inf_nan=False, description="Minimum leg stake")
    ] = None,
    max_stake: Annotated[
        float | None, Query(ge=0, allow_inf_nan=False, description="Maximum leg stake")
    ] = None,
    min_profit: Annotated[
        float | None, Query(allow_inf_nan=False, description="Minimum leg payout minus stake")
    ] = None,
    max_profit: Annotated[
        float | None, Query(allow_inf_nan=False, description="Maximum leg payout minus stake")
    ] = None,
    search: Annotated[
        str | None,
        Query(max_length=100, description="Match betting house or bet type"),
    ] = None,
    sort: Annotated[
        str,
        Query(description="Field to sort by, largest first", pattern="^(created|date|stake|odds)$"),
    ] = "created",
) -> BetQuery:
    """Normalize shared leg listing query parameters."""

    return BetQuery(
        status=status_filter,
        date_from=_game_date(date_from, "date_from"),
        date_to=_game_date(date_to, "date_to"),
        min_stake=min_stake,
        max_stake=max_stake,
        min_profit=min_profit,
        max_profit=max_profit,
        search=search,
        sort=sort,
    )


def _extraction_service() -> SlipExtractionService:
    return SlipExtractionService(get_settings())


def _validation_error(exc: SlipValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"message": "Slip failed verification", "errors": exc.errors},
    )


# ----------------------------------------------------------------------
# Bets


@app.get("/bets", response_model=list[schemas.Bet], tags=["bets"])
def list_bets(
    *,
    query: BetQuery = Depends(_bet_query),
    service: BetService = Depends(_bet_service),
) -> list[schemas.Bet]:
    """List legs, optionally filtered by status, game date, stake, profit or search text."""

    return service.list_bets(query)


@app.get("/bets/pair/{pair_id}", response_model=list[schemas.Bet], tags=["bets"])
def list_pair_bets(pair_id: str, service: BetService = Depends(_bet_service)) -> list[schemas.Bet]:
    return service.list_pair_bets(pair_id)


@app.get("/bets/{bet_id}", response_model=schemas.Bet, tags=["bets"])
def get_bet(bet_id: str, service: BetService = Depends(_bet_service)) -> schemas.Bet:
    bet = service.get_bet(bet_id)
    if bet is None:
        raise HTTPException(status_code=404, detail="Bet not found")
    return bet


@app.post(
    "/bets",
    response_model=schemas.Bet,
    status_code=status.HTTP_201_CREATED,
    tags=["bets"],
)
def create_bet(
    payload: schemas.BetCreate, service: BetService = Depends(_bet_service)
) -> schemas.Bet:
    try:
        return service.create_bet(payload)
    except PairConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except SlipValidationError as exc:
        raise _validation_error(exc) from exc


@app.put("/bets/{bet_id}/status", response_model=schemas.Bet, tags=["bets"])
def update_bet_status(
    bet_id: str,
    payload: schemas.BetStatusUpdate,
    service: BetService = Depends(_bet_service),
) -> schemas.Bet:
    try:
        bet = service.update_status(bet_id, payload.status)
    except InvalidStatusError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if bet is None:
        raise HTTPException(status_code=404, detail="Bet not found")
    return bet


@app.delete("/bets/{bet_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["bets"])
def delete_bet(bet_id: str, service: BetService = Depends(_bet_service)) -> Response:
    if not service.delete_bet(bet_id):
        raise HTTPException(status_code=404, detail="Bet not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ----------------------------------------------------------------------
# OCR


def _run_extraction(action, payload: schemas.ImagePayload):
    if not payload.image_base64 or not payload.image_base64.strip():
        raise HTTPException(status_code=400, detail="Image data is required")
    try:
        return action(payload.image_base64)
    except ProviderNotConfiguredError as exc:
        logger.error("Slip extraction unavailable: {}", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ExtractionError as exc:
        logger.warning("Slip extraction failed: {}", exc)
        raise HTTPException(
            status_code=502,
            detail={"message": "Model did not return valid JSON", "details": str(exc)},
        ) from exc


@app.post("/ocr/analyze", response_model=schemas.SlipSchema, tags=["ocr"])
def analyze_slip(
    payload: schemas.ImagePayload,
    extractor: SlipExtractionService = Depends(_extraction_service),
) -> schemas.SlipSchema:
    slip = _run_extraction(extractor.analyze, payload)
    return schemas.SlipSchema.model_validate(slip)


@app.post("/ocr/raw", response_class=PlainTextResponse, tags=["ocr"])
def raw_slip_text(
    payload: schemas.ImagePayload,
    extractor: SlipExtractionService = Depends(_extraction_service),
) -> PlainTextResponse:
    text = _run_extraction(extractor.raw_text, payload)
    return PlainTextResponse(text, media_type="text/plain; charset=utf-8")


@app.post("/ocr/text", response_model=schemas.SlipSchema, tags=["ocr"])
def parse_slip(payload: schemas.TextPayload) -> schemas.SlipSchema:
    try:
        slip = parse_slip_text(payload.text)
    except SlipParseError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return schemas.SlipSchema.model_validate(slip)


# ----------------------------------------------------------------------
# Pairs


@app.post(
    "/pairs",
    response_model=schemas.CreatedPair,
    status_code=status.HTTP_201_CREATED,
    tags=["pairs"],
)
def create_pair(
    payload: schemas.SlipSchema, service: BetService = Depends(_bet_service)
) -> schemas.CreatedPair:
    try:
        return service.create_pair(payload.to_domain())
    except SlipValidationError as exc:
        raise _validation_error(exc) from exc
    except PairPersistenceError as exc:
        raise HTTPException(status_code=500, detail="Failed to save bet pair") from exc


@app.get("/pairs", response_model=schemas.PairList, tags=["pairs"])
def list_pairs(
    *,
    query: BetQuery = Depends(_bet_query),
    service: BetService = Depends(_bet_service),
) -> schemas.PairList:
    pairs = service.list_pairs(query)
    return schemas.PairList(total=len(pairs), items=pairs)


@app.get("/pairs/{pair_id}", response_model=schemas.Pair, tags=["pairs"])
def get_pair(pair_id: str, service: BetService = Depends(_bet_service)) -> schemas.Pair:
    pair = service.get_pair(pair_id)
    if pair is None:
        raise HTTPException(status_code=404, detail="Pair not found")
    return pair


@app.get("/stats", response_model=schemas.PairStatistics, tags=["pairs"])
def statistics(service: BetService = Depends(_bet_service)) -> schemas.PairStatistics:
    return service.statistics()


@app.get("/reports", response_model=schemas.Report, tags=["pairs"])
def report(
    *,
    query: BetQuery = Depends(_bet_query),
    service: BetService = Depends(_bet_service),
) -> schemas.Report:
    """Summarize complete pairs whose legs both pass the filters."""

    return service.report(query)
