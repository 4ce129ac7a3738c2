"""
FastAPI app assembly: logging, middleware and router wiring.
"""
import logging
import os

from starlette.requests import Request
from starlette.responses import JSONResponse

from fastapi import FastAPI, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

from grammarhub import __version__
from grammarhub.api.admin import router as admin_router
from grammarhub.api.auth import router as auth_router
from grammarhub.api.catalog import router as catalog_router
from grammarhub.api.progress import router as progress_router
from grammarhub.api.results import router as results_router
from grammarhub.api.support import router as support_router
from grammarhub.utils.settings import get_settings

# Database schema is managed by Alembic migrations (SQLite files are created on first use).

app = FastAPI(
    title="GrammarHub Student Service",
    description="Accounts, approval workflow, result sync and dashboards for the GrammarHub practice app.",
    version=__version__,
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed bodies in the same shape as service failures."""
    logger.info("request_validation_failed", extra={"path": request.url.path})
    detail = {
        "success": False,
        "error": "Invalid request.",
        "code": "missing_fields",
        "errors": jsonable_encoder(exc.errors()),
    }
    return JSONResponse({"detail": detail}, status_code=status.HTTP_400_BAD_REQUEST)


app.include_router(support_router)
app.include_router(auth_router)
app.include_router(results_router)
app.include_router(progress_router)
app.include_router(admin_router)
app.include_router(catalog_router)
