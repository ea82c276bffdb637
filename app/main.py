import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api_routers.v1 import api_router
from app.features.health.routes.health import router as health_router
from app.features.verification.services.code_store import VerificationCodeStore
from app.features.verification.workers.sweeper import run_sweeper
from app.middlewares.rate_limit import RateLimitMiddleware
from app.platform.config import settings
from app.platform.exceptions import add_exception_handlers

# Configure logging to show INFO level messages
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One store per process; codes do not survive a restart.
    store = VerificationCodeStore(ttl=timedelta(minutes=settings.VERIFICATION_CODE_TTL_MINUTES))
    app.state.verification_store = store

    sweeper = None
    if settings.VERIFICATION_SWEEP_INTERVAL_SECONDS > 0:
        sweeper = asyncio.create_task(
            run_sweeper(store, settings.VERIFICATION_SWEEP_INTERVAL_SECONDS)
        )

    yield

    if sweeper is not None:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass


app = FastAPI(
    title="LocalHunt Verification API",
    description="Email verification codes for LocalHunt seller registration",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)


# Root endpoint for basic info
@app.get("/", tags=["Info"])
def root():
    return {
        "app_name": "LocalHunt Verification API",
        "description": "Issues and checks one-time email verification codes.",
        "version": "1.0.0",
        "docs_url": "/docs",
        "api_base": "/api/v1",
    }


app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)

app.include_router(health_router)
app.include_router(api_router, prefix="/api/v1")
