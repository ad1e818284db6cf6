import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from .config import get_settings
from .database import engine
from .errors import register_error_handlers
from .middleware import MetricsMiddleware
from .routers import health, todos, users
from .telemetry import instrument_engine, instrument_fastapi, setup_telemetry


logger = logging.getLogger(__name__)

settings = get_settings()


def _configure_logging() -> None:
    logging.basicConfig(level=logging.INFO)
    logging.getLogger("app").setLevel(logging.INFO)

    # Reduce noise from framework loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# Console handler first: basicConfig is a no-op once the OTel handler sits on root
_configure_logging()

# Initialize the OTel SDK BEFORE app creation
setup_telemetry(
    service_name=settings.service_name,
    otlp_endpoint=settings.otlp_endpoint,
    environment=settings.scout_environment,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting %s", settings.service_name)
    yield
    engine.dispose()
    logger.info("Stopped %s", settings.service_name)


app = FastAPI(title="Todo API", lifespan=lifespan)
app.add_middleware(MetricsMiddleware)
instrument_fastapi(app)
instrument_engine(engine)
register_error_handlers(app)

app.include_router(health.router)
app.include_router(todos.router)
app.include_router(users.router)


@app.get("/", response_class=PlainTextResponse)
def home_page() -> str:
    return "Welcome to the Todo API"


def run() -> None:
    """Serve the API on SERVER_ADDR."""
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
