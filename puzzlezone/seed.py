"""Built-in puzzle templates inserted at startup."""
from datetime import datetime
import json
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from puzzlezone.models import PuzzleTemplate

logger = logging.getLogger(__name__)

SYSTEM_TEMPLATE_ID = "system-puzzle-sample"


def _system_templates() -> list[dict]:
    return [
        {
            "id": SYSTEM_TEMPLATE_ID,
            "user_id": None,
            "name": "Starter Puzzle",
            "puzzle_type": "logic-grid",
            "difficulty": "easy",
            "description": "A sample puzzle included with the starter app.",
            "data_json": json.dumps({"prompt": "Match the pets to their owners."}, separators=(",", ":")),
            "solution_json": json.dumps({"answer": "sample-solution"}, separators=(",", ":")),
            "is_system": True,
        },
    ]


async def seed_system_templates(db: AsyncSession) -> int:
    """Insert any missing system templates. Returns how many were inserted."""
    inserted = 0
    now = datetime.utcnow()

    for row in _system_templates():
        if await db.get(PuzzleTemplate, row["id"]):
            continue
        db.add(PuzzleTemplate(**row, created_at=now, updated_at=now))
        inserted += 1

    if inserted:
        await db.commit()
        logger.info(f"Seeded {inserted} system puzzle template(s)")

    return inserted
