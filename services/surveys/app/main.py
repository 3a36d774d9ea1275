import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.dependencies import get_settings
from app.results.router import router as results_router
from app.surveys.router import router as surveys_router
from shared.middleware.error_handler import error_envelope_middleware, http_exception_handler
from shared.middleware.request_id import RequestIdLogFilter, request_id_middleware

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(levelname)s:%(name)s:[%(request_id)s] %(message)s",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdLogFilter) for f in handler.filters):
            handler.addFilter(RequestIdLogFilter())


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.dependency_overrides.get(get_settings, get_settings)()
    logger.info(
        "Surveys service starting (env=%s, store=%s)",
        settings.env_name,
        settings.survey_store_backend,
    )
    yield


SWAGGER_DESCRIPTION = """\
## Surveys: Results Service

Turns raw survey responses into per-question results and keeps them fresh.

### Domain Tags

| Tag | Description |
|-----|-------------|
| **Results** | Aggregated results, CSV export, live results stream (creator only) |
| **Surveys** | Published / expired status used while browsing surveys |

### Aggregation rules

- **scale**: one entry per value, ascending by numeric label
- **multiple-choice / checkbox / dropdown**: one entry per option, most popular first
  (checkbox totals count selections, not respondents)
- **text**: the raw answers

### Authentication

Results endpoints require a JWT Bearer token whose `sub` is the survey's creator.
"""


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title="Surveys Results",
        version="0.1.0",
        description=SWAGGER_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(results_router, prefix="/api/v1")
    app.include_router(surveys_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        return {"status": "ok", "service": "surveys"}

    return app


app = create_app()
