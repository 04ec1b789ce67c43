"""Health check endpoint with database and stat history checks."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.models import StatVersion
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(db: Session = Depends(get_db)) -> HealthResponse:
    """
    Return service health, database connectivity, and whether system stat history
    has started. Used by load balancers and monitoring.
    """
    if not check_db_connected(db):
        return HealthResponse(status="ok", environment=settings.APP_ENV, database="disconnected")

    has_history = (
        db.query(StatVersion.id).filter(StatVersion.project_id.is_(None)).first() is not None
    )
    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database="connected",
        stat_history="recorded" if has_history else "empty",
    )
