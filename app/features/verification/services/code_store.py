import hmac
import time
from datetime import timedelta
from threading import Lock
from typing import Callable, Dict, Optional

from app.features.verification.models.verification import VerificationEntry, VerificationOutcome
from app.features.verification.utils.code import CODE_LENGTH, generate_code
from app.platform.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TTL = timedelta(minutes=10)


def _now_ms() -> int:
    return int(time.time() * 1000)


class VerificationCodeStore:
    """
    In-process store of one-time verification codes, keyed by recipient.

    - At most one live code per recipient; issuing again replaces the old one.
    - A verified code is consumed immediately and cannot be replayed.
    - A wrong code leaves the entry in place so the user can retry until expiry.
    - Expiry is checked lazily in verify(); sweep_expired() bounds memory for
      codes that are never looked up again.

    A single lock guards the whole map, so every operation is atomic with
    respect to the others. Entries live only in this process: deployments with
    several workers need sticky routing to the worker that issued the code.
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], int] = _now_ms,
        code_factory: Callable[[], str] = generate_code,
    ):
        self._ttl_ms = int(ttl.total_seconds() * 1000)
        self._clock = clock
        self._code_factory = code_factory
        self._entries: Dict[str, VerificationEntry] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def issue(self, recipient: str) -> str:
        """Generate a fresh code for recipient, replacing any unconsumed one."""
        if not recipient or not recipient.strip():
            raise ValueError("recipient must be a non-empty string")

        code = self._code_factory()
        with self._lock:
            replaced = recipient in self._entries
            self._entries[recipient] = VerificationEntry(
                recipient=recipient,
                code=code,
                expires_at=self._clock() + self._ttl_ms,
            )

        if replaced:
            logger.info(f"Replaced unconsumed verification code for {recipient}")
        else:
            logger.info(f"Issued verification code for {recipient}")
        return code

    def verify(self, recipient: str, candidate: str) -> VerificationOutcome:
        """
        Check candidate against the stored code. Checks run in order and the
        first failure wins: format, presence, expiry, equality.
        """
        if len(candidate) != CODE_LENGTH:
            return VerificationOutcome.invalid_format

        with self._lock:
            entry: Optional[VerificationEntry] = self._entries.get(recipient)
            if entry is None:
                return VerificationOutcome.not_found

            if entry.is_expired(self._clock()):
                del self._entries[recipient]
                logger.info(f"Verification code for {recipient} expired")
                return VerificationOutcome.expired

            if not hmac.compare_digest(candidate.strip().encode(), entry.code.strip().encode()):
                return VerificationOutcome.mismatch

            del self._entries[recipient]

        logger.info(f"Verification code for {recipient} verified")
        return VerificationOutcome.verified

    def sweep_expired(self) -> int:
        """Remove every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [r for r, entry in self._entries.items() if entry.is_expired(now)]
            for recipient in expired:
                del self._entries[recipient]

        if expired:
            logger.info(f"Swept {len(expired)} expired verification code(s)")
        return len(expired)
