from datetime import datetime
from sqlalchemy import String, Text, DateTime, ForeignKey, Integer, Float, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from puzzlezone.db import Base


class PuzzleTemplate(Base):
    __tablename__ = "puzzle_templates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)  # None => global puzzle
    name: Mapped[str] = mapped_column(String(255), nullable=False)  # "Sudoku #1", "Word Search - Animals"
    puzzle_type: Mapped[str | None] = mapped_column(String(64), nullable=True)  # "sudoku", "word-search", "riddle"
    difficulty: Mapped[str | None] = mapped_column(String(32), nullable=True)  # "easy", "medium", "hard"
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    data_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # Opaque puzzle configuration
    solution_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # Opaque solution
    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    sessions: Mapped[list["PuzzleSession"]] = relationship(back_populates="template")


class PuzzleSession(Base):
    __tablename__ = "puzzle_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    puzzle_template_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("puzzle_templates.id"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    status: Mapped[str | None] = mapped_column(String(20), nullable=True, default="in-progress")
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    time_taken_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)

    template: Mapped["PuzzleTemplate"] = relationship(back_populates="sessions")
    attempts: Mapped[list["PuzzleAttempt"]] = relationship(back_populates="session")


class PuzzleAttempt(Base):
    __tablename__ = "puzzle_attempts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    session_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("puzzle_sessions.id"), nullable=False, index=True
    )
    attempt_index: Mapped[int] = mapped_column(Integer, nullable=False)  # 1, 2, 3...
    attempt_data_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # Opaque move/guess
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    session: Mapped["PuzzleSession"] = relationship(back_populates="attempts")
