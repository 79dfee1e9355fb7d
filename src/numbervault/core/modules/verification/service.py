import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

import structlog
from pymongo import DESCENDING, ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from numbervault.core.core import Service
from numbervault.core.modules.user.validators import normalize_email
from numbervault.core.modules.verification import codes
from numbervault.core.modules.verification.models import (
    CodePurpose,
    CodeState,
    FailureReason,
    VerificationCode,
    VerificationResult,
)
from numbervault.utils import now

logger = structlog.get_logger(__name__)


class VerificationService(Service):
    """Issues, delivers and consumes one-time verification codes.

    At most one unused code per (email, purpose) is kept: issuing a new code deletes
    the pending ones first. Within this process the delete-then-insert pair is
    serialized per (email, purpose); across processes it is not atomic, and a crash
    between the two steps leaves no valid code, so the user simply asks again.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("verification_codes")
        self._issue_locks: dict[tuple[str, CodePurpose], asyncio.Lock] = {}
        self._issue_lock_users: dict[tuple[str, CodePurpose], int] = {}

    async def on_start(self) -> None:
        """Create lookup index and TTL index for automatic cleanup of expired codes."""
        await self._collection.create_index([("email", 1), ("purpose", 1), ("created_at", -1)])
        await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)

    async def issue(self, email: str, purpose: CodePurpose) -> VerificationCode:
        """Replace pending codes for (email, purpose) with a fresh one and mail it.

        The code is stored before delivery is attempted.

        Raises:
            DeliveryError: If the code was stored but could not be sent
        """
        email = normalize_email(email)
        config = self.core.config
        async with self._issue_lock(email, purpose):
            cleared = await self._collection.delete_many({"email": email, "purpose": purpose, "used": False})
            issued_at = now()
            record = VerificationCode(
                email=email,
                code=codes.generate_code(config.code_length),
                purpose=purpose,
                expires_at=issued_at + timedelta(minutes=config.code_ttl_minutes),
                created_at=issued_at,
            )
            await self._collection.insert_one(record.to_mongo())

        logger.info(
            "verification_code_issued",
            email=email,
            purpose=purpose,
            cleared=cleared.deleted_count,
            expires_at=record.expires_at.isoformat(),
        )
        await self.core.services.mail.send_verification_code(email, record.code, purpose)
        return record

    async def validate(self, email: str, code: str, purpose: CodePurpose) -> VerificationResult:
        """Check a submitted code and consume it on success.

        Only the most recent unused code for (email, purpose) is considered. Expiry is
        checked here regardless of whether the TTL reaper has run yet.
        """
        email = normalize_email(email)
        doc = await self._collection.find_one(
            {"email": email, "purpose": purpose, "used": False},
            sort=[("created_at", DESCENDING)],
        )
        if doc is None:
            return self._reject(email, purpose, FailureReason.NO_CODE)

        record = VerificationCode.model_validate(doc)
        checked_at = now()
        state = record.state(checked_at)
        if state is CodeState.EXPIRED:
            return self._reject(email, purpose, FailureReason.EXPIRED)
        if state is CodeState.CONSUMED:
            return self._reject(email, purpose, FailureReason.NO_CODE)
        if not codes.codes_match(record.code, code):
            return self._reject(email, purpose, FailureReason.INVALID)

        # Conditional flip: of several concurrent validators only one finds used=False
        consumed = await self._collection.find_one_and_update(
            {"_id": record.id, "used": False},
            {"$set": {"used": True, "used_at": checked_at}},
            return_document=ReturnDocument.AFTER,
        )
        if consumed is None:
            return self._reject(email, purpose, FailureReason.NO_CODE)

        logger.info("verification_code_consumed", email=email, purpose=purpose, code_id=record.id)
        return VerificationResult.success()

    @asynccontextmanager
    async def _issue_lock(self, email: str, purpose: CodePurpose) -> AsyncGenerator[None]:
        """Hold the issuance lock for the pair; the entry is dropped once no caller uses it."""
        key = (email, purpose)
        lock = self._issue_locks.setdefault(key, asyncio.Lock())
        self._issue_lock_users[key] = self._issue_lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            # Waiters still reference this lock, so it stays registered until the last one leaves
            self._issue_lock_users[key] -= 1
            if not self._issue_lock_users[key]:
                del self._issue_lock_users[key]
                del self._issue_locks[key]

    def _reject(self, email: str, purpose: CodePurpose, reason: FailureReason) -> VerificationResult:
        logger.info("verification_code_rejected", email=email, purpose=purpose, reason=reason)
        return VerificationResult.failure(reason)
