import asyncio

from app.features.verification.services.code_store import VerificationCodeStore
from app.platform.logger import get_logger

logger = get_logger(__name__)


async def run_sweeper(store: VerificationCodeStore, interval_seconds: float):
    """
    Periodically drop expired verification codes until cancelled.
    Verification itself never depends on this loop; it only keeps
    abandoned codes from piling up.
    """
    logger.info(f"Verification code sweeper started (every {interval_seconds}s)")
    try:
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                store.sweep_expired()
            except Exception as e:
                logger.error(f"Verification code sweep failed: {e}")
    except asyncio.CancelledError:
        logger.info("Verification code sweeper stopped")
        raise
