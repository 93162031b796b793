"""
Tests for file upload, listing, deletion, direct downloads and the
Drive sync trigger.
"""
from sqlalchemy import select

from app.dependencies.services import get_drive_mirror
from app.main import app
from app.models.file_record import FileRecord
from tests.constants import URLs


def _connect_drive(client, user, enable_sync=True):
    client.put(
        URLs.USERS_ME_DRIVE_CREDENTIALS,
        json={"refresh_token": "refresh-abc"},
        headers=user.headers,
    )
    if enable_sync:
        client.patch(URLs.USERS_ME_DRIVE, json={"enabled": True}, headers=user.headers)


def _blob_ref(db, file_id):
    return db.execute(select(FileRecord.blob_ref).where(FileRecord.id == file_id)).scalar_one()


# Upload


def test_upload_creates_private_record(client, create_user, upload_file):
    user = create_user()

    data = upload_file(user, name="report.pdf", content=b"hello pdf")

    assert len(data["id"]) == 32
    assert data["file_name"] == "report.pdf"
    assert data["size"] == len(b"hello pdf")
    assert data["mime_type"] == "application/pdf"
    assert data["owner_id"] == user.id
    assert data["access_level"] == "only_me"
    assert data["share_token_expires"] is None
    assert data["download_count"] == 0
    assert data["shared_with"] == []
    assert data["drive_sync_status"] == "not_synced"
    assert "share_token" not in data


def test_upload_strips_client_path_from_filename(client, create_user, upload_file):
    user = create_user()

    data = upload_file(user, name="../../etc/notes.txt", content=b"x", content_type="text/plain")

    assert data["file_name"] == "notes.txt"


def test_upload_rejects_unsupported_content_type(client, create_user):
    user = create_user()

    response = client.post(
        URLs.FILES,
        files={"file": ("tool.exe", b"MZ", "application/x-msdownload")},
        headers=user.headers,
    )

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "Unsupported file type" in response.json()["message"]


def test_upload_rejects_file_over_size_limit(client, create_user, storage, tmp_path):
    user = create_user()

    # storage fixture caps uploads at 1MB
    response = client.post(
        URLs.FILES,
        files={"file": ("big.pdf", b"x" * (1024 * 1024 + 1), "application/pdf")},
        headers=user.headers,
    )

    assert response.status_code == 413
    assert response.json()["error"] == "Payload Too Large"
    assert not any(p.is_file() for p in (tmp_path / "blobs").rglob("*"))


def test_upload_requires_authentication(client):
    response = client.post(URLs.FILES, files={"file": ("a.pdf", b"x", "application/pdf")})
    assert response.status_code in (401, 403)


def test_upload_schedules_drive_mirror_when_sync_enabled(client, create_user, upload_file, drive_mirror):
    user = create_user()
    _connect_drive(client, user)

    data = upload_file(user)

    assert data["drive_sync_status"] == "pending"
    assert drive_mirror.mirrored == [data["id"]]


def test_upload_skips_drive_mirror_when_sync_disabled(client, create_user, upload_file, drive_mirror):
    user = create_user()
    _connect_drive(client, user, enable_sync=False)

    data = upload_file(user)

    assert data["drive_sync_status"] == "not_synced"
    assert drive_mirror.mirrored == []


def test_upload_succeeds_without_drive_mirror_configured(client, create_user, upload_file):
    user = create_user()
    _connect_drive(client, user)
    app.dependency_overrides[get_drive_mirror] = lambda: None

    data = upload_file(user)

    assert data["drive_sync_status"] == "not_synced"


# Listing and metadata


def test_list_files_includes_owned_and_shared(client, create_user, upload_file):
    alice = create_user("alice@example.com")
    bob = create_user("bob@example.com")
    carol = create_user("carol@example.com")
    own = upload_file(bob, name="bob.pdf")
    shared = upload_file(alice, name="alice.pdf")
    upload_file(carol, name="carol.pdf")
    client.post(URLs.FILE_SHARED_WITH.format(shared["id"]), json={"email": bob.email}, headers=alice.headers)

    response = client.get(URLs.FILES, headers=bob.headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total"] == 2
    assert {f["id"] for f in data["files"]} == {own["id"], shared["id"]}


def test_get_file_metadata_hidden_from_strangers(client, create_user, upload_file):
    alice = create_user("alice@example.com")
    bob = create_user("bob@example.com")
    uploaded = upload_file(alice)

    assert client.get(URLs.FILE.format(uploaded["id"]), headers=alice.headers).status_code == 200
    assert client.get(URLs.FILE.format(uploaded["id"]), headers=bob.headers).status_code == 404


# Deletion


def test_delete_file_releases_blob(client, create_user, upload_file, db, storage):
    user = create_user()
    uploaded = upload_file(user)
    blob_ref = _blob_ref(db, uploaded["id"])

    response = client.delete(URLs.FILE.format(uploaded["id"]), headers=user.headers)

    assert response.status_code == 200
    assert response.json()["data"]["message"] == "File deleted"
    assert not storage.file_exists(blob_ref)
    assert client.get(URLs.FILE.format(uploaded["id"]), headers=user.headers).status_code == 404


def test_delete_file_by_shared_user_forbidden(client, create_user, upload_file):
    alice = create_user("alice@example.com")
    bob = create_user("bob@example.com")
    uploaded = upload_file(alice)
    client.post(URLs.FILE_SHARED_WITH.format(uploaded["id"]), json={"email": bob.email}, headers=alice.headers)

    response = client.delete(URLs.FILE.format(uploaded["id"]), headers=bob.headers)

    assert response.status_code == 403


# Direct downloads


def test_download_by_id_as_owner(client, create_user, upload_file):
    user = create_user()
    uploaded = upload_file(user, name="report.pdf", content=b"pdf bytes")

    response = client.get(URLs.FILE_DOWNLOAD.format(uploaded["id"]), headers=user.headers)

    assert response.status_code == 200
    assert response.content == b"pdf bytes"
    assert response.headers["content-type"] == "application/pdf"
    assert "report.pdf" in response.headers["content-disposition"]

    metadata = client.get(URLs.FILE.format(uploaded["id"]), headers=user.headers).json()["data"]
    assert metadata["download_count"] == 1


def test_download_by_id_as_stranger_forbidden_even_with_link_sharing(client, create_user, upload_file):
    alice = create_user("alice@example.com")
    bob = create_user("bob@example.com")
    uploaded = upload_file(alice)
    client.patch(
        URLs.FILE_ACCESS.format(uploaded["id"]),
        json={"access_level": "anyone_with_link"},
        headers=alice.headers,
    )

    response = client.get(URLs.FILE_DOWNLOAD.format(uploaded["id"]), headers=bob.headers)

    assert response.status_code == 403
    assert response.json()["message"] == "You do not have permission to download this file"

    metadata = client.get(URLs.FILE.format(uploaded["id"]), headers=alice.headers).json()["data"]
    assert metadata["download_count"] == 0


def test_download_by_id_unknown_file(client, create_user):
    user = create_user()

    response = client.get(URLs.FILE_DOWNLOAD.format("0" * 32), headers=user.headers)

    assert response.status_code == 404


def test_download_by_id_blob_gone(client, create_user, upload_file, db, storage):
    user = create_user()
    uploaded = upload_file(user)
    (storage.base_path / _blob_ref(db, uploaded["id"])).unlink()

    response = client.get(URLs.FILE_DOWNLOAD.format(uploaded["id"]), headers=user.headers)

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "Not Found",
        "message": "File not found in the server",
        "data": {"reason": "gone"},
    }


def test_download_by_name_as_owner_and_shared_user(client, create_user, upload_file):
    alice = create_user("alice@example.com")
    bob = create_user("bob@example.com")
    uploaded = upload_file(alice, name="plan.txt", content=b"the plan", content_type="text/plain")
    client.post(URLs.FILE_SHARED_WITH.format(uploaded["id"]), json={"email": bob.email}, headers=alice.headers)

    for user in (alice, bob):
        response = client.get(URLs.FILE_DOWNLOAD_BY_NAME.format("plan.txt"), headers=user.headers)
        assert response.status_code == 200
        assert response.content == b"the plan"


def test_download_by_name_conflates_missing_and_forbidden(client, create_user, upload_file):
    alice = create_user("alice@example.com")
    bob = create_user("bob@example.com")
    upload_file(alice, name="secret.pdf")

    forbidden = client.get(URLs.FILE_DOWNLOAD_BY_NAME.format("secret.pdf"), headers=bob.headers)
    missing = client.get(URLs.FILE_DOWNLOAD_BY_NAME.format("nothing.pdf"), headers=bob.headers)

    assert forbidden.status_code == missing.status_code == 404
    assert forbidden.json() == missing.json()


# Explicit Drive sync


def test_sync_file_to_drive(client, create_user, upload_file, drive_mirror):
    user = create_user()
    uploaded = upload_file(user)
    _connect_drive(client, user, enable_sync=False)

    response = client.post(URLs.FILE_SYNC.format(uploaded["id"]), headers=user.headers)

    assert response.status_code == 202
    assert response.json()["data"] == {"file_id": uploaded["id"], "drive_sync_status": "pending"}
    assert drive_mirror.pending == [uploaded["id"]]
    assert drive_mirror.mirrored == [uploaded["id"]]


def test_sync_file_requires_connected_drive(client, create_user, upload_file, drive_mirror):
    user = create_user()
    uploaded = upload_file(user)

    response = client.post(URLs.FILE_SYNC.format(uploaded["id"]), headers=user.headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Google Drive not connected"
    assert drive_mirror.mirrored == []


def test_sync_file_owner_only(client, create_user, upload_file):
    alice = create_user("alice@example.com")
    bob = create_user("bob@example.com")
    uploaded = upload_file(alice)
    _connect_drive(client, bob)

    response = client.post(URLs.FILE_SYNC.format(uploaded["id"]), headers=bob.headers)

    assert response.status_code == 403


def test_sync_file_without_mirror_configured(client, create_user, upload_file):
    user = create_user()
    uploaded = upload_file(user)
    _connect_drive(client, user)
    app.dependency_overrides[get_drive_mirror] = lambda: None

    response = client.post(URLs.FILE_SYNC.format(uploaded["id"]), headers=user.headers)

    assert response.status_code == 503
