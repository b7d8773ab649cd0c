import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from jobscout.core import config
from jobscout.core.errors import (
    JobScoutError,
    jobscout_error_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from jobscout.core.logging_config import setup_logging

# ✅ Import All API Routes
from jobscout.api.routes import health, prompts, subscriptions, usage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)

    if config.RUN_MIGRATIONS:
        from jobscout.db.migrate import run_migrations
        run_migrations()
    else:
        from jobscout.db.init_db import init_db
        init_db()

    logger.info("JobScout API started")
    yield
    logger.info("JobScout API stopped")


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="JobScout API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "Stripe-Signature"],
)

app.add_exception_handler(JobScoutError, jobscout_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(prompts.router)
app.include_router(usage.router)
app.include_router(subscriptions.router)
app.include_router(health.router)


@app.get("/")
def root():
    return {"status": "JobScout API running"}
