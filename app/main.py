"""FastAPI app creation, router includes, lifespan, and error mapping."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import init_db
from app.services.errors import (
    AUTH,
    CONTRACT,
    DECODE,
    NETWORK,
    POLICY,
    QUOTA,
    SCHEMA,
    GenerationError,
)

logger = logging.getLogger(__name__)

# HTTP status returned for each GenerationError category (default 502)
ERROR_STATUS = {
    AUTH: 401,
    QUOTA: 429,
    POLICY: 400,
    CONTRACT: 422,
    DECODE: 422,
    SCHEMA: 502,
    NETWORK: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=logging.DEBUG if settings.APP_ENV == "development" else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db()
    yield


app = FastAPI(
    title="Virtual Try-On",
    description="Wardrobe packshots, photo validation and virtual try-on composites",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    status_code = ERROR_STATUS.get(exc.category, 502)
    logger.warning("%s %s -> %d (%s): %s", request.method, request.url.path, status_code, exc.category, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "category": exc.category, "retryable": exc.retryable},
    )


# ---------------------------------------------------------------------------
# Import and include API routers
# ---------------------------------------------------------------------------
from app.api.tryon import router as tryon_router  # noqa: E402
from app.api.wardrobe import router as wardrobe_router  # noqa: E402
from app.api.usage import router as usage_router  # noqa: E402
from app.api.proxy import router as proxy_router  # noqa: E402

app.include_router(tryon_router, prefix="/v1")
app.include_router(wardrobe_router, prefix="/v1")
app.include_router(usage_router, prefix="/v1")
app.include_router(proxy_router)
