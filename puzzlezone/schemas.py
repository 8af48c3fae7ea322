from typing import Generic, Literal, TypeVar
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, PositiveInt
from pydantic.alias_generators import to_camel

# Largest value an Integer column holds on Postgres (int4)
MAX_INT32 = 2**31 - 1


class CamelModel(BaseModel):
    """Wire models use camelCase keys; snake_case is accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


DataT = TypeVar("DataT")


class ActionResponse(CamelModel, Generic[DataT]):
    success: bool = True
    data: DataT


# Templates
class CreatePuzzleTemplateInput(CamelModel):
    name: str = Field(min_length=1)
    puzzle_type: str | None = Field(default=None, min_length=1)
    difficulty: str | None = Field(default=None, min_length=1)
    description: str | None = None
    data_json: str | None = None  # Opaque, never parsed
    solution_json: str | None = None


class UpdatePuzzleTemplateInput(CamelModel):
    id: str = Field(min_length=1)
    name: str | None = Field(default=None, min_length=1)
    puzzle_type: str | None = Field(default=None, min_length=1)
    difficulty: str | None = Field(default=None, min_length=1)
    description: str | None = None
    data_json: str | None = None
    solution_json: str | None = None


class ListPuzzleTemplatesInput(CamelModel):
    include_system: bool = True


class PuzzleTemplateOut(CamelModel):
    id: str
    user_id: str | None
    name: str
    puzzle_type: str | None
    difficulty: str | None
    description: str | None
    data_json: str | None
    solution_json: str | None
    is_system: bool
    created_at: datetime
    updated_at: datetime


class PuzzleTemplateList(CamelModel):
    items: list[PuzzleTemplateOut]
    total: int  # Size of items, not a full count


# Sessions
class StartPuzzleSessionInput(CamelModel):
    puzzle_template_id: str = Field(min_length=1)


class CompletePuzzleSessionInput(CamelModel):
    session_id: str = Field(min_length=1)
    status: Literal["completed", "abandoned"] = "completed"
    score: float | None = None
    time_taken_seconds: PositiveInt | None = Field(default=None, le=MAX_INT32)


class ListPuzzleSessionsInput(CamelModel):
    puzzle_template_id: str | None = None
    status: str | None = None
    page: PositiveInt = Field(default=1, le=2**31)  # keeps the OFFSET within int64
    page_size: PositiveInt = Field(default=20, le=100)


class PuzzleSessionOut(CamelModel):
    id: str
    puzzle_template_id: str
    user_id: str
    started_at: datetime
    completed_at: datetime | None
    status: str | None
    score: float | None
    time_taken_seconds: int | None


class PuzzleSessionStarted(CamelModel):
    id: str
    puzzle_template_id: str


class PuzzleSessionList(CamelModel):
    items: list[PuzzleSessionOut]
    total: int  # Size of this page, not a full count
    page: int


# Attempts
class RecordPuzzleAttemptInput(CamelModel):
    session_id: str = Field(min_length=1)
    attempt_index: PositiveInt = Field(le=MAX_INT32)
    attempt_data_json: str | None = None
    is_correct: bool = False


class IdResult(CamelModel):
    id: str


class ActionErrorBody(BaseModel):
    code: Literal["UNAUTHORIZED", "NOT_FOUND", "FORBIDDEN"]
    message: str


class ActionErrorResponse(BaseModel):
    success: bool = False
    error: ActionErrorBody
