import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from todo_auth.app.services.unit_of_work import UnitOfWork
from todo_auth.depends import get_unit_of_work

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(uow: UnitOfWork = Depends(get_unit_of_work)):
    try:
        async with uow:
            await uow.ping()
    except (SQLAlchemyError, OSError) as exc:
        logger.error(f"Health check failed: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "database": "unavailable"},
        )
    return {"status": "healthy", "database": "ok"}
