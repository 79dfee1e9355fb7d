"""One-time verification codes used as a login/registration factor."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from numbervault.core.db import MongoModel
from numbervault.utils import now


class CodePurpose(StrEnum):
    """Flow a code was issued for. A code only validates for its own purpose."""

    REGISTER = "register"
    LOGIN = "login"


class CodeState(StrEnum):
    """Lifecycle state, derived from stored fields at read time."""

    ISSUED = "issued"
    CONSUMED = "consumed"
    EXPIRED = "expired"


class VerificationCode(MongoModel):
    """Verification code scoped to (email, purpose).

    Indexed on (email, purpose, created_at), expires_at (TTL, removed once expired).
    """

    email: str
    code: str
    purpose: CodePurpose
    expires_at: datetime
    used: bool = False
    used_at: datetime | None = None
    created_at: datetime = Field(default_factory=now)

    def state(self, at: datetime) -> CodeState:
        if self.used:
            return CodeState.CONSUMED
        if at > self.expires_at:
            return CodeState.EXPIRED
        return CodeState.ISSUED


class FailureReason(StrEnum):
    NO_CODE = "no code found"
    EXPIRED = "expired"
    INVALID = "invalid"


class VerificationResult(BaseModel):
    """Outcome of a validation attempt."""

    ok: bool
    reason: FailureReason | None = None

    @classmethod
    def success(cls) -> "VerificationResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: FailureReason) -> "VerificationResult":
        return cls(ok=False, reason=reason)
