from src.core.config import settings
from src.main import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app", host=settings.APP_HOST, port=settings.APP_PORT, reload=False, log_level=40
    )
