"""
Health checks - liveness for the process, readiness for the database behind it.
"""

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from lendoo.config import get_settings
from lendoo.core.exceptions import TransientError
from lendoo.db.session import DbSession

router = APIRouter()


@router.get("")
async def health():
    """Liveness: is the process up?"""
    return {"status": "ok", "app": get_settings().app_name}


@router.get("/ready")
async def ready(session: DbSession):
    """Readiness: 503 until the database answers."""
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise TransientError("database not reachable") from e
    return {"status": "ready"}
