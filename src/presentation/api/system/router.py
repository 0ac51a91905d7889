from fastapi import APIRouter, Request
from sqlalchemy import text
from datetime import datetime, UTC

from src.infrastructure.database.session import DB_DEP

from src.presentation.schemas.system import HealthResponse, ServiceStatus
from src.core.logging import get_logger

router = APIRouter(tags=['System'])
logger = get_logger(__name__)


@router.get('/health', response_model=HealthResponse)
async def health_check(
    request: Request,
    db: DB_DEP,
) -> HealthResponse:
    """
    Check the health of the application and its database.
    """
    logger.debug('Processing health check request')

    start_time = getattr(request.app.state, 'start_time', None)
    uptime_seconds = None

    if start_time:
        uptime_seconds = (datetime.now(UTC) - start_time).total_seconds()

    db_ok = True
    db_latency = 0
    db_details = None

    try:
        logger.debug('Checking database connection')
        db_start = datetime.now()
        await db.execute(text('SELECT 1'))
        db_latency = (datetime.now() - db_start).total_seconds() * 1000
        logger.debug('Database query successful, latency: %.2fms', db_latency)
    except Exception as e:
        logger.error('Database connection failed: %s', e)
        db_ok = False
        db_details = {'error': str(e)}

    response = HealthResponse(
        status='ok' if db_ok else 'degraded',
        timestamp=datetime.now(UTC),
        uptime_seconds=uptime_seconds,
        start_time=start_time,
        database=ServiceStatus(
            status='ok' if db_ok else 'error',
            latency_ms=db_latency,
            version=db.bind.dialect.name,
            details=db_details,
        ),
    )

    logger.info('Health check completed: database %s', 'ok' if db_ok else 'error')

    return response
