from dataclasses import dataclass
from enum import Enum


class VerificationOutcome(str, Enum):
    """Result of a single verification attempt."""
    verified = "verified"
    invalid_format = "invalid_format"
    not_found = "not_found"
    expired = "expired"
    mismatch = "mismatch"


@dataclass(frozen=True)
class VerificationEntry:
    recipient: str
    code: str
    expires_at: int  # milliseconds since epoch

    def is_expired(self, now: int) -> bool:
        return now > self.expires_at
