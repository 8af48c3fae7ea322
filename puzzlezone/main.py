from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from puzzlezone.db import get_db, init_db, async_session, settings
from puzzlezone.auth import get_current_user_id
from puzzlezone import actions
from puzzlezone.actions import ActionError
from puzzlezone.seed import seed_system_templates
from puzzlezone.schemas import (
    ActionResponse,
    ActionErrorResponse,
    CreatePuzzleTemplateInput,
    UpdatePuzzleTemplateInput,
    ListPuzzleTemplatesInput,
    PuzzleTemplateList,
    StartPuzzleSessionInput,
    PuzzleSessionStarted,
    CompletePuzzleSessionInput,
    RecordPuzzleAttemptInput,
    ListPuzzleSessionsInput,
    PuzzleSessionList,
    IdResult,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level)
    await init_db()
    if settings.seed_on_startup:
        async with async_session() as db:
            await seed_system_templates(db)
    yield


app = FastAPI(title="Puzzle Zone API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_RESPONSES = {
    401: {"model": ActionErrorResponse},
    403: {"model": ActionErrorResponse},
    404: {"model": ActionErrorResponse},
}


@app.exception_handler(ActionError)
async def action_error_handler(request: Request, exc: ActionError):
    body = ActionErrorResponse(error={"code": exc.code, "message": exc.message})
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


# Health check
@app.get("/health")
async def health():
    return {"status": "ok"}


# Templates
@app.post(
    "/actions/createPuzzleTemplate",
    response_model=ActionResponse[IdResult],
    responses=ERROR_RESPONSES,
)
async def create_puzzle_template(
    request: CreatePuzzleTemplateInput,
    user_id: str | None = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a user-owned puzzle template."""
    return await actions.create_puzzle_template(db, user_id, request)


@app.post(
    "/actions/updatePuzzleTemplate",
    response_model=ActionResponse[IdResult],
    responses=ERROR_RESPONSES,
)
async def update_puzzle_template(
    request: UpdatePuzzleTemplateInput,
    user_id: str | None = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Update fields of a template the caller owns. System templates are read-only."""
    return await actions.update_puzzle_template(db, user_id, request)


@app.post(
    "/actions/listPuzzleTemplates",
    response_model=ActionResponse[PuzzleTemplateList],
    responses=ERROR_RESPONSES,
)
async def list_puzzle_templates(
    request: ListPuzzleTemplatesInput,
    user_id: str | None = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's templates, plus system templates unless excluded."""
    return await actions.list_puzzle_templates(db, user_id, request)


# Sessions
@app.post(
    "/actions/startPuzzleSession",
    response_model=ActionResponse[PuzzleSessionStarted],
    responses=ERROR_RESPONSES,
)
async def start_puzzle_session(
    request: StartPuzzleSessionInput,
    user_id: str | None = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await actions.start_puzzle_session(db, user_id, request)


@app.post(
    "/actions/completePuzzleSession",
    response_model=ActionResponse[IdResult],
    responses=ERROR_RESPONSES,
)
async def complete_puzzle_session(
    request: CompletePuzzleSessionInput,
    user_id: str | None = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Mark a session completed or abandoned."""
    return await actions.complete_puzzle_session(db, user_id, request)


@app.post(
    "/actions/listPuzzleSessions",
    response_model=ActionResponse[PuzzleSessionList],
    responses=ERROR_RESPONSES,
)
async def list_puzzle_sessions(
    request: ListPuzzleSessionsInput,
    user_id: str | None = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await actions.list_puzzle_sessions(db, user_id, request)


# Attempts
@app.post(
    "/actions/recordPuzzleAttempt",
    response_model=ActionResponse[IdResult],
    responses=ERROR_RESPONSES,
)
async def record_puzzle_attempt(
    request: RecordPuzzleAttemptInput,
    user_id: str | None = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Record one guess within a session owned by the caller."""
    return await actions.record_puzzle_attempt(db, user_id, request)
