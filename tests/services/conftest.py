import uuid
from datetime import datetime

import pytest

from app.models.file_record import FileRecord
from app.models.user import User
from app.services.access_control import AccessControlEngine


@pytest.fixture
def make_user(db):
    def _make_user(email: str) -> User:
        user = User(email=email, hashed_password="not-a-real-hash")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_record(db):
    """Insert a FileRecord row directly (no blob behind it unless blob_ref is given)."""

    def _make_record(
        owner: User,
        file_name: str = "report.pdf",
        blob_ref: str | None = None,
        uploaded_at: datetime | None = None,
        shared_with: list[User] | None = None,
    ) -> FileRecord:
        file_id = uuid.uuid4().hex
        record = FileRecord(
            id=file_id,
            file_name=file_name,
            blob_ref=blob_ref or f"files/{file_id[:2]}/{file_id}.pdf",
            size=10,
            mime_type="application/pdf",
            owner_id=owner.id,
        )
        if uploaded_at is not None:
            record.uploaded_at = uploaded_at
        if shared_with:
            record.shared_with.extend(shared_with)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    return _make_record


@pytest.fixture
def owner(make_user):
    return make_user("owner@example.com")


@pytest.fixture
def friend(make_user):
    return make_user("friend@example.com")


@pytest.fixture
def stranger(make_user):
    return make_user("stranger@example.com")


@pytest.fixture
def engine(db, clock):
    return AccessControlEngine(db, clock=clock)
