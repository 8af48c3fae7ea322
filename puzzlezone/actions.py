"""Puzzle Zone actions: templates, play sessions and attempts.

Every handler takes the acting user id explicitly, runs the authentication
gate first, does at most one conditional read and one write, and returns the
``{"success": true, "data": ...}`` envelope.
"""
from datetime import datetime
import logging
import uuid

from fastapi import HTTPException
from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from puzzlezone.models import PuzzleTemplate, PuzzleSession, PuzzleAttempt
from puzzlezone.schemas import (
    ActionResponse,
    CreatePuzzleTemplateInput,
    UpdatePuzzleTemplateInput,
    ListPuzzleTemplatesInput,
    PuzzleTemplateOut,
    PuzzleTemplateList,
    StartPuzzleSessionInput,
    PuzzleSessionStarted,
    CompletePuzzleSessionInput,
    RecordPuzzleAttemptInput,
    ListPuzzleSessionsInput,
    PuzzleSessionOut,
    PuzzleSessionList,
    IdResult,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
}

# Optional text fields applied by updatePuzzleTemplate only when truthy
TEMPLATE_UPDATABLE_FIELDS = (
    "name",
    "puzzle_type",
    "difficulty",
    "description",
    "data_json",
    "solution_json",
)


class ActionError(HTTPException):
    def __init__(self, code: str, message: str):
        super().__init__(status_code=ERROR_STATUS[code], detail=message)
        self.code = code
        self.message = message


def require_user(user_id: str | None) -> str:
    if not user_id:
        raise ActionError("UNAUTHORIZED", "You must be signed in to perform this action.")
    return user_id


def template_visibility(user_id: str, include_system: bool = True):
    """Templates owned by the user, plus system templates if requested."""
    conditions = [PuzzleTemplate.user_id == user_id]
    if include_system:
        conditions.append(PuzzleTemplate.is_system.is_(True))
    return or_(*conditions)


def session_scope(
    user_id: str,
    session_id: str | None = None,
    puzzle_template_id: str | None = None,
    status: str | None = None,
):
    """Sessions owned by the user, narrowed by any truthy filter."""
    conditions = [PuzzleSession.user_id == user_id]
    if session_id:
        conditions.append(PuzzleSession.id == session_id)
    if puzzle_template_id:
        conditions.append(PuzzleSession.puzzle_template_id == puzzle_template_id)
    if status:
        conditions.append(PuzzleSession.status == status)
    return and_(*conditions)


def _new_id() -> str:
    return str(uuid.uuid4())


async def _get_owned_session(db: AsyncSession, user_id: str, session_id: str) -> PuzzleSession:
    result = await db.execute(select(PuzzleSession).where(session_scope(user_id, session_id=session_id)))
    session = result.scalar_one_or_none()
    if not session:
        raise ActionError("NOT_FOUND", "Puzzle session not found.")
    return session


# Templates
async def create_puzzle_template(
    db: AsyncSession, user_id: str | None, data: CreatePuzzleTemplateInput
) -> ActionResponse[IdResult]:
    user_id = require_user(user_id)
    now = datetime.utcnow()

    template = PuzzleTemplate(
        id=_new_id(),
        user_id=user_id,
        name=data.name,
        puzzle_type=data.puzzle_type,
        difficulty=data.difficulty,
        description=data.description,
        data_json=data.data_json,
        solution_json=data.solution_json,
        is_system=False,
        created_at=now,
        updated_at=now,
    )
    db.add(template)
    await db.commit()

    logger.info(f"Created puzzle template {template.id} for user {user_id}")
    return ActionResponse[IdResult](data=IdResult(id=template.id))


async def update_puzzle_template(
    db: AsyncSession, user_id: str | None, data: UpdatePuzzleTemplateInput
) -> ActionResponse[IdResult]:
    user_id = require_user(user_id)

    template = await db.get(PuzzleTemplate, data.id)
    if not template:
        raise ActionError("NOT_FOUND", "Puzzle template not found.")

    if template.user_id != user_id or template.is_system:
        logger.warning(f"User {user_id} denied update of puzzle template {template.id}")
        raise ActionError("FORBIDDEN", "You cannot modify this puzzle template.")

    # Empty values mean "not provided"; they cannot clear a field
    for field in TEMPLATE_UPDATABLE_FIELDS:
        value = getattr(data, field)
        if value:
            setattr(template, field, value)
    template.updated_at = datetime.utcnow()

    await db.commit()

    return ActionResponse[IdResult](data=IdResult(id=template.id))


async def list_puzzle_templates(
    db: AsyncSession, user_id: str | None, data: ListPuzzleTemplatesInput
) -> ActionResponse[PuzzleTemplateList]:
    user_id = require_user(user_id)

    result = await db.execute(
        select(PuzzleTemplate)
        .where(template_visibility(user_id, data.include_system))
        .order_by(PuzzleTemplate.created_at.asc())
    )
    templates = result.scalars().all()

    items = [PuzzleTemplateOut.model_validate(t) for t in templates]
    return ActionResponse[PuzzleTemplateList](data=PuzzleTemplateList(items=items, total=len(items)))


# Sessions
async def start_puzzle_session(
    db: AsyncSession, user_id: str | None, data: StartPuzzleSessionInput
) -> ActionResponse[PuzzleSessionStarted]:
    user_id = require_user(user_id)

    # Missing and not-visible templates both read as NOT_FOUND
    result = await db.execute(
        select(PuzzleTemplate).where(
            and_(
                PuzzleTemplate.id == data.puzzle_template_id,
                template_visibility(user_id),
            )
        )
    )
    template = result.scalar_one_or_none()
    if not template:
        raise ActionError("NOT_FOUND", "Puzzle template not found.")

    session = PuzzleSession(
        id=_new_id(),
        puzzle_template_id=template.id,
        user_id=user_id,
        started_at=datetime.utcnow(),
        status="in-progress",
    )
    db.add(session)
    await db.commit()

    logger.info(f"User {user_id} started session {session.id} on template {template.id}")
    return ActionResponse[PuzzleSessionStarted](
        data=PuzzleSessionStarted(id=session.id, puzzle_template_id=template.id)
    )


async def complete_puzzle_session(
    db: AsyncSession, user_id: str | None, data: CompletePuzzleSessionInput
) -> ActionResponse[IdResult]:
    user_id = require_user(user_id)

    session = await _get_owned_session(db, user_id, data.session_id)

    # No terminal-state guard: completing again overwrites
    session.status = data.status
    if data.score is not None:
        session.score = data.score
    if data.time_taken_seconds is not None:
        session.time_taken_seconds = data.time_taken_seconds
    session.completed_at = datetime.utcnow()

    await db.commit()

    logger.info(f"User {user_id} marked session {session.id} as {data.status}")
    return ActionResponse[IdResult](data=IdResult(id=session.id))


async def list_puzzle_sessions(
    db: AsyncSession, user_id: str | None, data: ListPuzzleSessionsInput
) -> ActionResponse[PuzzleSessionList]:
    user_id = require_user(user_id)

    offset = (data.page - 1) * data.page_size
    result = await db.execute(
        select(PuzzleSession)
        .where(
            session_scope(
                user_id,
                puzzle_template_id=data.puzzle_template_id,
                status=data.status,
            )
        )
        .order_by(PuzzleSession.started_at.desc(), PuzzleSession.id.asc())
        .limit(data.page_size)
        .offset(offset)
    )
    sessions = result.scalars().all()

    items = [PuzzleSessionOut.model_validate(s) for s in sessions]
    return ActionResponse[PuzzleSessionList](
        data=PuzzleSessionList(items=items, total=len(items), page=data.page)
    )


# Attempts
async def record_puzzle_attempt(
    db: AsyncSession, user_id: str | None, data: RecordPuzzleAttemptInput
) -> ActionResponse[IdResult]:
    user_id = require_user(user_id)

    # Any status is accepted and attempt_index is caller-trusted
    session = await _get_owned_session(db, user_id, data.session_id)

    attempt = PuzzleAttempt(
        id=_new_id(),
        session_id=session.id,
        attempt_index=data.attempt_index,
        attempt_data_json=data.attempt_data_json,
        is_correct=data.is_correct,
        created_at=datetime.utcnow(),
    )
    db.add(attempt)
    await db.commit()

    return ActionResponse[IdResult](data=IdResult(id=attempt.id))
