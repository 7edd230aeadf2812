import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel

from noetica.application.config import resolve_config
from noetica.application.factory import (
    get_card_repository,
    get_review_service,
    get_stats_service,
)
from noetica.application.review_service import ReviewService
from noetica.application.scheduler import parse_quality
from noetica.application.selector import DueSetSelector
from noetica.application.session_stats import SessionStatsService
from noetica.consts import VERSION
from noetica.domain.constants import DEFAULT_NEW_CARD_LIMIT
from noetica.domain.errors import CardNotFound, DeckNotFound, InvalidQuality, StorageError
from noetica.domain.models import Card
from noetica.domain.ports import CardRepository, Clock
from noetica.infrastructure.clock import SystemClock

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("noetica.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Noetica Server v{VERSION} starting up...")
    config = resolve_config()
    app.state.config = config
    app.state.repository = get_card_repository(config)
    app.state.clock = SystemClock()
    # One service instance so its per-card locks are shared by every request
    app.state.review_service = get_review_service(
        config, app.state.repository, app.state.clock
    )
    yield
    # Shutdown
    logger.info("Noetica Server shutting down...")


app = FastAPI(
    title="Noetica Server",
    description="Spaced-repetition scheduling API for flashcard decks.",
    version=VERSION,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_repository(request: Request) -> CardRepository:
    return request.app.state.repository


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_reviewer(request: Request) -> ReviewService:
    return request.app.state.review_service


def get_stats(request: Request) -> SessionStatsService:
    return get_stats_service(request.app.state.config, request.app.state.repository)


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class SchedulingStateResponse(BaseModel):
    easiness_factor: float
    repetitions: int
    interval: int
    review_count: int
    correct_streak: int
    difficulty_rating: int
    last_review_date: datetime | None
    next_review_date: datetime


class CardResponse(BaseModel):
    id: str
    deck_id: str
    front: str
    back: str
    created_at: datetime
    state: SchedulingStateResponse

    @classmethod
    def from_card(cls, card: Card) -> "CardResponse":
        s = card.state
        return cls(
            id=card.id,
            deck_id=card.deck_id,
            front=card.front,
            back=card.back,
            created_at=card.created_at,
            state=SchedulingStateResponse(
                easiness_factor=s.easiness_factor,
                repetitions=s.repetitions,
                interval=s.interval,
                review_count=s.review_count,
                correct_streak=s.correct_streak,
                difficulty_rating=s.difficulty_rating,
                last_review_date=s.last_review_date,
                next_review_date=s.next_review_date,
            ),
        )


class ReviewRequest(BaseModel):
    # Raw grade; validated by parse_quality so names and integers both work.
    quality: int | str


class ReviewResponse(BaseModel):
    card: CardResponse
    deck_mastery: float


class SessionStatsResponse(BaseModel):
    due_cards: int
    new_cards: int
    total_cards: int
    reviewed_today: int
    has_cards_to_review: bool


class OverviewResponse(BaseModel):
    total_decks: int
    total_cards: int
    average_mastery: float
    deck_mastery: dict[str, float]
    deck_card_counts: dict[str, int]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/cards/due", response_model=list[CardResponse])
async def list_due_cards(
    deck_id: str | None = None,
    repo: CardRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
):
    """Cards due now, most urgent first."""
    try:
        cards = await DueSetSelector(repo).due_cards(deck_id, now=clock.now())
    except StorageError as e:
        logger.error(f"Due-card query failed: {e}")
        raise HTTPException(status_code=503, detail=str(e)) from e
    return [CardResponse.from_card(c) for c in cards]


@app.get("/cards/new", response_model=list[CardResponse])
async def list_new_cards(
    deck_id: str | None = None,
    limit: int = DEFAULT_NEW_CARD_LIMIT,
    repo: CardRepository = Depends(get_repository),
):
    """Never-reviewed cards, oldest first."""
    try:
        cards = await DueSetSelector(repo).new_cards(deck_id, limit=limit)
    except StorageError as e:
        logger.error(f"New-card query failed: {e}")
        raise HTTPException(status_code=503, detail=str(e)) from e
    return [CardResponse.from_card(c) for c in cards]


@app.post("/cards/{card_id}/review", response_model=ReviewResponse)
async def review_card(
    card_id: str,
    req: ReviewRequest,
    reviewer: ReviewService = Depends(get_reviewer),
):
    """
    Grade a card and return its new schedule.
    """
    try:
        quality = parse_quality(req.quality)
        outcome = await reviewer.review(card_id, quality)
    except InvalidQuality as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except (CardNotFound, DeckNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except StorageError as e:
        logger.error(f"Review of {card_id} failed: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail=str(e)) from e

    return ReviewResponse(
        card=CardResponse.from_card(outcome.card), deck_mastery=outcome.deck_mastery
    )


@app.get("/stats", response_model=SessionStatsResponse)
async def session_stats(
    deck_id: str | None = None,
    service: SessionStatsService = Depends(get_stats),
    clock: Clock = Depends(get_clock),
):
    try:
        snapshot = await service.session_stats(deck_id, now=clock.now())
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return SessionStatsResponse(
        due_cards=snapshot.due_cards,
        new_cards=snapshot.new_cards,
        total_cards=snapshot.total_cards,
        reviewed_today=snapshot.reviewed_today,
        has_cards_to_review=snapshot.has_cards_to_review,
    )


@app.get("/overview", response_model=OverviewResponse)
async def study_overview(service: SessionStatsService = Depends(get_stats)):
    try:
        result = await service.study_overview()
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return OverviewResponse(
        total_decks=result.total_decks,
        total_cards=result.total_cards,
        average_mastery=result.average_mastery,
        deck_mastery=result.deck_mastery,
        deck_card_counts=result.deck_card_counts,
    )
