from sqlalchemy import select

from app.models.file_record import FileRecord
from tests.constants import URLs


def _create_folder(client, user, name="Reports"):
    response = client.post(URLs.FOLDERS, json={"name": name}, headers=user.headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_folder(client, create_user):
    user = create_user()

    response = client.post(URLs.FOLDERS, json={"name": "  Reports  "}, headers=user.headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "Reports"
    assert "id" in data


def test_create_duplicate_folder(client, create_user):
    user = create_user()
    _create_folder(client, user, "Reports")

    response = client.post(URLs.FOLDERS, json={"name": "Reports"}, headers=user.headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Folder already exists"


def test_same_folder_name_for_different_owners(client, create_user):
    alice = create_user("alice@example.com")
    bob = create_user("bob@example.com")
    _create_folder(client, alice, "Shared Name")

    response = client.post(URLs.FOLDERS, json={"name": "Shared Name"}, headers=bob.headers)

    assert response.status_code == 201


def test_create_folder_rejects_path_separator(client, create_user):
    user = create_user()

    response = client.post(URLs.FOLDERS, json={"name": "a/b"}, headers=user.headers)

    assert response.status_code == 400


def test_list_folders_only_returns_own(client, create_user):
    alice = create_user("alice@example.com")
    bob = create_user("bob@example.com")
    _create_folder(client, alice, "Alpha")
    _create_folder(client, alice, "Beta")
    _create_folder(client, bob, "Gamma")

    response = client.get(URLs.FOLDERS, headers=alice.headers)

    assert response.status_code == 200
    assert [f["name"] for f in response.json()["data"]] == ["Alpha", "Beta"]


def test_rename_folder(client, create_user):
    user = create_user()
    folder = _create_folder(client, user, "Old")

    response = client.patch(URLs.FOLDER.format(folder["id"]), json={"name": "New"}, headers=user.headers)

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "New"


def test_rename_other_users_folder_is_not_found(client, create_user):
    alice = create_user("alice@example.com")
    bob = create_user("bob@example.com")
    folder = _create_folder(client, alice)

    response = client.patch(URLs.FOLDER.format(folder["id"]), json={"name": "Mine"}, headers=bob.headers)

    assert response.status_code == 404


def test_upload_into_folder_and_list_files(client, create_user, upload_file):
    user = create_user()
    folder = _create_folder(client, user)
    inside = upload_file(user, name="inside.pdf", folder_id=folder["id"])
    upload_file(user, name="outside.pdf")

    response = client.get(URLs.FOLDER_FILES.format(folder["id"]), headers=user.headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total"] == 1
    assert data["files"][0]["id"] == inside["id"]
    assert data["files"][0]["folder_id"] == folder["id"]


def test_upload_into_other_users_folder_is_not_found(client, create_user):
    alice = create_user("alice@example.com")
    bob = create_user("bob@example.com")
    folder = _create_folder(client, alice)

    response = client.post(
        URLs.FILES,
        files={"file": ("x.pdf", b"data", "application/pdf")},
        data={"folder_id": str(folder["id"])},
        headers=bob.headers,
    )

    assert response.status_code == 404


def test_delete_folder_removes_files_and_blobs(client, create_user, upload_file, db, storage):
    user = create_user()
    folder = _create_folder(client, user)
    uploaded = upload_file(user, name="inside.pdf", folder_id=folder["id"])
    blob_ref = db.execute(
        select(FileRecord.blob_ref).where(FileRecord.id == uploaded["id"])
    ).scalar_one()
    assert storage.file_exists(blob_ref)

    response = client.delete(URLs.FOLDER.format(folder["id"]), headers=user.headers)

    assert response.status_code == 200
    assert response.json()["data"] == {"id": folder["id"], "files_deleted": 1}
    assert not storage.file_exists(blob_ref)
    assert client.get(URLs.FILE.format(uploaded["id"]), headers=user.headers).status_code == 404
    assert client.get(URLs.FOLDER_FILES.format(folder["id"]), headers=user.headers).status_code == 404


def test_delete_other_users_folder_is_not_found(client, create_user):
    alice = create_user("alice@example.com")
    bob = create_user("bob@example.com")
    folder = _create_folder(client, alice)

    response = client.delete(URLs.FOLDER.format(folder["id"]), headers=bob.headers)

    assert response.status_code == 404
