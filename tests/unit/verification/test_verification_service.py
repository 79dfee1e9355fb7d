"""Tests for the verification code lifecycle."""

import asyncio
from datetime import timedelta

import pytest

from numbervault.core.modules.verification.models import CodePurpose, FailureReason
from numbervault.errors import DeliveryError
from numbervault.utils import now


def _codes(fake_db) -> list[dict]:
    return fake_db.get_collection("verification_codes").docs


class TestIssue:
    """Tests for code issuance."""

    @pytest.mark.asyncio
    async def test_stores_single_unused_code_with_ten_minute_expiry(self, started_core, fake_db, mailbox):
        before = now()
        record = await started_core.services.verification.issue("a@x.com", CodePurpose.REGISTER)

        docs = _codes(fake_db)
        assert len(docs) == 1
        assert docs[0]["used"] is False
        assert docs[0]["purpose"] == "register"
        assert len(record.code) == 6 and record.code.isdigit()
        assert before + timedelta(minutes=10) <= record.expires_at <= now() + timedelta(minutes=10)

    @pytest.mark.asyncio
    async def test_dispatches_code_by_mail(self, started_core, mailbox):
        record = await started_core.services.verification.issue("a@x.com", CodePurpose.LOGIN)
        assert mailbox == [{"email": "a@x.com", "code": record.code, "purpose": "login"}]

    @pytest.mark.asyncio
    async def test_email_is_normalized(self, started_core, fake_db, mailbox):
        await started_core.services.verification.issue("  A@X.com ", CodePurpose.LOGIN)
        assert _codes(fake_db)[0]["email"] == "a@x.com"

    @pytest.mark.asyncio
    async def test_new_code_replaces_pending_one(self, started_core, fake_db, mailbox):
        """Test that issuing again leaves exactly one unused code for the pair."""
        service = started_core.services.verification
        first = await service.issue("a@x.com", CodePurpose.REGISTER)
        second = await service.issue("a@x.com", CodePurpose.REGISTER)

        docs = _codes(fake_db)
        assert [doc["_id"] for doc in docs] == [second.id]
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_other_purpose_untouched(self, started_core, fake_db, mailbox):
        service = started_core.services.verification
        await service.issue("a@x.com", CodePurpose.REGISTER)
        await service.issue("a@x.com", CodePurpose.LOGIN)
        assert sorted(doc["purpose"] for doc in _codes(fake_db)) == ["login", "register"]

    @pytest.mark.asyncio
    async def test_concurrent_issue_leaves_one_code(self, started_core, fake_db, mailbox):
        service = started_core.services.verification
        await asyncio.gather(*(service.issue("a@x.com", CodePurpose.LOGIN) for _ in range(5)))
        assert len([doc for doc in _codes(fake_db) if not doc["used"]]) == 1

    @pytest.mark.asyncio
    async def test_issue_locks_released_after_issuance(self, started_core, mailbox):
        """Test that per-identity locks do not accumulate across distinct emails."""
        service = started_core.services.verification
        for i in range(50):
            await service.issue(f"user{i}@x.com", CodePurpose.LOGIN)
        await asyncio.gather(*(service.issue("a@x.com", CodePurpose.REGISTER) for _ in range(5)))

        assert service._issue_locks == {}
        assert service._issue_lock_users == {}

    @pytest.mark.asyncio
    async def test_issue_lock_released_when_store_fails(self, started_core, fake_db, mailbox):
        fake_db.get_collection("verification_codes").fail_writes = True
        service = started_core.services.verification
        with pytest.raises(ConnectionError):
            await service.issue("a@x.com", CodePurpose.LOGIN)
        assert service._issue_locks == {}

    @pytest.mark.asyncio
    async def test_delivery_failure_keeps_stored_code(self, started_core, fake_db, monkeypatch):
        """Test that a mail failure raises DeliveryError but the code stays valid."""

        async def failing_send(email: str, code: str, purpose: str) -> None:
            raise DeliveryError("Verification code could not be sent. Request a new code.")

        monkeypatch.setattr(started_core.services.mail, "send_verification_code", failing_send)
        service = started_core.services.verification

        with pytest.raises(DeliveryError):
            await service.issue("a@x.com", CodePurpose.LOGIN)

        docs = _codes(fake_db)
        assert len(docs) == 1
        result = await service.validate("a@x.com", docs[0]["code"], CodePurpose.LOGIN)
        assert result.ok

    @pytest.mark.asyncio
    async def test_persistence_failure_sends_nothing(self, started_core, fake_db, mailbox):
        fake_db.get_collection("verification_codes").fail_writes = True
        with pytest.raises(ConnectionError):
            await started_core.services.verification.issue("a@x.com", CodePurpose.LOGIN)
        assert mailbox == []


class TestValidate:
    """Tests for code validation and consumption."""

    @pytest.mark.asyncio
    async def test_valid_code_succeeds_exactly_once(self, started_core, fake_db, mailbox):
        service = started_core.services.verification
        record = await service.issue("a@x.com", CodePurpose.REGISTER)

        first = await service.validate("a@x.com", record.code, CodePurpose.REGISTER)
        second = await service.validate("a@x.com", record.code, CodePurpose.REGISTER)

        assert first.ok is True and first.reason is None
        assert second.ok is False
        assert second.reason == FailureReason.NO_CODE
        assert _codes(fake_db)[0]["used"] is True
        assert _codes(fake_db)[0]["used_at"] is not None

    @pytest.mark.asyncio
    async def test_no_code_issued(self, started_core):
        result = await started_core.services.verification.validate("a@x.com", "123456", CodePurpose.LOGIN)
        assert result.ok is False
        assert result.reason == "no code found"

    @pytest.mark.asyncio
    async def test_wrong_code_keeps_code_valid(self, started_core, mailbox):
        service = started_core.services.verification
        record = await service.issue("a@x.com", CodePurpose.LOGIN)
        wrong = "000000" if record.code != "000000" else "111111"

        rejected = await service.validate("a@x.com", wrong, CodePurpose.LOGIN)
        accepted = await service.validate("a@x.com", record.code, CodePurpose.LOGIN)

        assert rejected.reason == FailureReason.INVALID
        assert accepted.ok

    @pytest.mark.asyncio
    async def test_expired_code_rejected_even_if_unused(self, started_core, fake_db, mailbox):
        """Test that expiry is checked on validation, whether or not the reaper has run."""
        service = started_core.services.verification
        record = await service.issue("a@x.com", CodePurpose.LOGIN)
        _codes(fake_db)[0]["expires_at"] = now() - timedelta(seconds=1)

        result = await service.validate("a@x.com", record.code, CodePurpose.LOGIN)

        assert result.ok is False
        assert result.reason == FailureReason.EXPIRED
        assert _codes(fake_db)[0]["used"] is False

    @pytest.mark.asyncio
    async def test_code_for_other_purpose_rejected(self, started_core, mailbox):
        service = started_core.services.verification
        record = await service.issue("a@x.com", CodePurpose.REGISTER)
        result = await service.validate("a@x.com", record.code, CodePurpose.LOGIN)
        assert result.reason == FailureReason.NO_CODE

    @pytest.mark.asyncio
    async def test_superseded_code_rejected(self, started_core, mailbox):
        """Test that after a second issue the first code no longer validates."""
        service = started_core.services.verification
        first = await service.issue("a@x.com", CodePurpose.LOGIN)
        second = await service.issue("a@x.com", CodePurpose.LOGIN)

        if first.code != second.code:
            result = await service.validate("a@x.com", first.code, CodePurpose.LOGIN)
            assert result.reason == FailureReason.INVALID
        assert (await service.validate("a@x.com", second.code, CodePurpose.LOGIN)).ok

    @pytest.mark.asyncio
    async def test_latest_unused_code_is_authoritative(self, started_core, fake_db, mailbox):
        """Test that only the newest unused record is consulted when several exist."""
        service = started_core.services.verification
        older = await service.issue("a@x.com", CodePurpose.LOGIN)
        older_doc = dict(_codes(fake_db)[0], created_at=older.created_at - timedelta(seconds=1))
        newer = await service.issue("a@x.com", CodePurpose.LOGIN)
        # Leftover of an interrupted issue: the older pending code was never cleared
        _codes(fake_db).insert(0, older_doc)

        if older.code != newer.code:
            stale = await service.validate("a@x.com", older.code, CodePurpose.LOGIN)
            assert stale.reason == FailureReason.INVALID
        assert (await service.validate("a@x.com", newer.code, CodePurpose.LOGIN)).ok

    @pytest.mark.asyncio
    async def test_concurrent_validation_succeeds_once(self, started_core, mailbox):
        service = started_core.services.verification
        record = await service.issue("a@x.com", CodePurpose.LOGIN)

        results = await asyncio.gather(
            *(service.validate("a@x.com", record.code, CodePurpose.LOGIN) for _ in range(10))
        )

        assert sum(result.ok for result in results) == 1
