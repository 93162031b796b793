import os

# 測試預設使用獨立的SQLite資料庫，必須在匯入app之前設定
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_fileshare.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-pytest-only")

from dataclasses import dataclass, field  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi import Depends  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from app.database import Base, SessionLocal, engine, get_db  # noqa: E402
from app.dependencies.services import get_access_engine, get_drive_mirror  # noqa: E402
from app.dependencies.storage import get_storage  # noqa: E402
from app.main import app  # noqa: E402
from app.models.file_record import DriveSyncStatus  # noqa: E402
from app.services import file_records  # noqa: E402
from app.services.access_control import AccessControlEngine  # noqa: E402
from app.storage.local import LocalStorageBackend  # noqa: E402
from tests.constants import TEST_PASSWORD, URLs  # noqa: E402

if engine.dialect.name == "sqlite":
    # pysqlite自行管理BEGIN，會讓SAVEPOINT失效；改由SQLAlchemy發出BEGIN，
    # 每個測試才能在savepoint中commit/rollback後整個回滾
    @event.listens_for(engine, "connect")
    def _sqlite_disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _sqlite_emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Run Alembic migrations at the start of the test session."""
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config(os.path.join(os.getcwd(), "alembic.ini"))

    # Run all migrations to head so the schema under test is the migrated one
    command.upgrade(alembic_cfg, "head")

    yield

    try:
        command.downgrade(alembic_cfg, "base")
    except Exception:
        # If downgrade fails, fall back to drop_all and reset Alembic version state
        Base.metadata.drop_all(bind=engine)
        command.stamp(alembic_cfg, "base")


@pytest.fixture
def db():
    """Each test uses an independent transaction that gets rolled back after."""
    connection = engine.connect()
    transaction = connection.begin()
    # 服務層的commit/rollback只作用在savepoint上，外層交易在測試結束時回滾
    session = SessionLocal(bind=connection, join_transaction_mode="create_savepoint")

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def storage(tmp_path):
    """Blob storage rooted in the test's tmp_path with a 1MB upload cap."""
    return LocalStorageBackend(base_path=str(tmp_path / "blobs"), max_size_mb=1)


class FakeDriveMirror:
    """Records mirror requests instead of talking to Google Drive."""

    def __init__(self):
        self.pending: list[str] = []
        self.mirrored: list[str] = []

    def mark_pending(self, db: Session, file_id: str) -> None:
        file_records.set_drive_sync_status(db, file_id, DriveSyncStatus.PENDING)
        self.pending.append(file_id)

    async def mirror_file(self, file_id: str) -> DriveSyncStatus:
        self.mirrored.append(file_id)
        return DriveSyncStatus.SYNCED


@pytest.fixture
def drive_mirror():
    return FakeDriveMirror()


class FrozenClock:
    """Injectable clock; starts at a fixed UTC instant and only moves when told."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def client(db, storage, drive_mirror, clock):
    """Test client with database, storage, clock and Drive mirror overrides."""

    def override_get_db():
        yield db

    def override_get_access_engine(session: Session = Depends(get_db)):
        return AccessControlEngine(session, clock=clock)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_drive_mirror] = lambda: drive_mirror
    app.dependency_overrides[get_access_engine] = override_get_access_engine
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@dataclass
class ApiUser:
    id: int
    email: str
    headers: dict[str, str] = field(repr=False)


@pytest.fixture
def create_user(client):
    """Register a user through the API and return its id and bearer headers."""

    def _create_user(email: str = "owner@example.com", password: str = TEST_PASSWORD) -> ApiUser:
        response = client.post(URLs.REGISTER, json={"email": email, "password": password})
        assert response.status_code == 201, response.text
        user_id = response.json()["data"]["id"]

        response = client.post(URLs.LOGIN, json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        token = response.json()["data"]["access_token"]
        return ApiUser(id=user_id, email=email, headers={"Authorization": f"Bearer {token}"})

    return _create_user


@pytest.fixture
def upload_file(client):
    """Upload a file as the given user; returns the file metadata dict."""

    def _upload_file(
        user: ApiUser,
        name: str = "report.pdf",
        content: bytes = b"%PDF-1.4 test document",
        content_type: str = "application/pdf",
        folder_id: int | None = None,
    ) -> dict:
        data = {"folder_id": str(folder_id)} if folder_id is not None else {}
        response = client.post(
            URLs.FILES,
            files={"file": (name, content, content_type)},
            data=data,
            headers=user.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _upload_file
