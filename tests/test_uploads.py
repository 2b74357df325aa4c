from conftest import make_account, sign_in
from mindnamo.core.config import settings
from mindnamo.main import app
from mindnamo.services.S3Service import get_storage


class FakeStorage:
    def __init__(self):
        self.uploads = []

    def upload(self, file, folder="uploads", owner=None):
        self.uploads.append((file.filename, folder, owner))
        return f"https://cdn.mindnamo.com/{folder}/{file.filename}"


async def test_avatar_upload_returns_url(client, db):
    storage = FakeStorage()
    app.dependency_overrides[get_storage] = lambda: storage
    account = await make_account(db)
    sign_in(client, account)

    response = await client.post(
        "/api/v1/uploads/avatar",
        files={"file": ("me.png", b"\x89PNG fake image bytes", "image/png")},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "url": "https://cdn.mindnamo.com/uploads/avatars/me.png"}
    assert storage.uploads == [("me.png", "uploads/avatars", account.account_id)]


async def test_avatar_upload_rejects_other_types(client, db):
    storage = FakeStorage()
    app.dependency_overrides[get_storage] = lambda: storage
    account = await make_account(db)
    sign_in(client, account)

    response = await client.post(
        "/api/v1/uploads/avatar",
        files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")},
    )

    assert response.status_code == 422
    assert "Invalid file type" in response.json()["error"]
    assert storage.uploads == []


async def test_avatar_upload_without_storage_configured(client, db, monkeypatch):
    monkeypatch.setattr(settings, "AWS_S3_BUCKET", "")
    account = await make_account(db)
    sign_in(client, account)

    response = await client.post(
        "/api/v1/uploads/avatar",
        files={"file": ("me.jpg", b"jpeg bytes", "image/jpeg")},
    )

    assert response.status_code == 503
