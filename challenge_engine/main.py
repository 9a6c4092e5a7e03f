import logging
from typing import Dict

from fastapi import FastAPI

from .api.challenges import router as challenges_router
from .api.health import create_health_router
from .core.config import get_settings
from .lifecycle import lifespan
from .middleware.error_handler import ErrorHandlerMiddleware
from .utils.logging import setup_logging
from .version import __version__

# Set up logging before anything else logs
_settings = get_settings()
setup_logging(log_level=_settings.log_level, log_to_file=_settings.log_to_file)

logger = logging.getLogger(__name__)


# Create FastAPI application
app = FastAPI(
    title="Daily Challenge Engine",
    description="Daily challenge generation, assignment, progress and rewards",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(ErrorHandlerMiddleware)

app.include_router(create_health_router())
app.include_router(challenges_router)


@app.get("/")
async def root() -> Dict[str, str]:
    return {"service": "daily-challenge-engine", "version": __version__}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "challenge_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=_settings.environment == "development",
    )
