from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from datetime import datetime, timezone

from src.core.config import settings
from src.core.logging import get_logger
from src.infrastructure.database.session import engine
from src.presentation.middlewares.logging import RequestLoggingMiddleware

# ROUTERS
from src.presentation.api.system.router import router as system_router
from src.presentation.api.v1 import V1_ROUTER

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Initializing application dependencies")
    app.state.start_time = datetime.now(timezone.utc)

    docs_route = f"http://{settings.APP_HOST}:{settings.APP_PORT}/docs"
    logger.info(f"Application started successfully. See docs here {docs_route}")
    yield

    # Shutdown
    logger.info("Shutting down application")
    await engine.dispose()
    logger.info("Application shutdown complete")


app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)

app.add_middleware(RequestLoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Connect routers
app.include_router(V1_ROUTER)
app.include_router(system_router)
