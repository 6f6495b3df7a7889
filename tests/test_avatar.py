"""Tests for avatar upload, removal and public fetch."""

import io

from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy.orm import Session

from app.models.user import User


def make_image(fmt: str = "PNG", size: tuple[int, int] = (600, 400)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 40, 40)).save(buffer, format=fmt)
    return buffer.getvalue()


class TestAvatarUpload:
    """Tests for uploading an avatar."""

    def test_upload_png(self, client: TestClient, user_one: dict, db_session: Session):
        response = client.post(
            "/users/me/avatar",
            files={"avatar": ("profile-pic.png", io.BytesIO(make_image()), "image/png")},
            headers=user_one["headers"],
        )
        assert response.status_code == 200

        user = db_session.get(User, user_one["id"])
        db_session.refresh(user)
        with Image.open(io.BytesIO(user.avatar)) as stored:
            assert stored.format == "PNG"
            assert stored.size == (250, 250)

    def test_upload_jpeg_is_stored_as_png(self, client: TestClient, user_one: dict, db_session: Session):
        response = client.post(
            "/users/me/avatar",
            files={"avatar": ("photo.JPEG", io.BytesIO(make_image("JPEG", (100, 300))), "image/jpeg")},
            headers=user_one["headers"],
        )
        assert response.status_code == 200

        user = db_session.get(User, user_one["id"])
        db_session.refresh(user)
        with Image.open(io.BytesIO(user.avatar)) as stored:
            assert stored.format == "PNG"
            assert stored.size == (250, 250)

    def test_upload_rejects_extension(self, client: TestClient, user_one: dict):
        response = client.post(
            "/users/me/avatar",
            files={"avatar": ("profile.gif", io.BytesIO(make_image("GIF")), "image/gif")},
            headers=user_one["headers"],
        )
        assert response.status_code == 400
        assert response.json() == {"detail": "Please upload a JPG, JPEG, or PNG file."}

    def test_upload_rejects_large_file(self, client: TestClient, user_one: dict):
        response = client.post(
            "/users/me/avatar",
            files={"avatar": ("huge.png", io.BytesIO(b"\x00" * 1_000_001), "image/png")},
            headers=user_one["headers"],
        )
        assert response.status_code == 400
        assert "too large" in response.json()["detail"]

    def test_upload_rejects_non_image(self, client: TestClient, user_one: dict):
        response = client.post(
            "/users/me/avatar",
            files={"avatar": ("fake.png", io.BytesIO(b"definitely not an image"), "image/png")},
            headers=user_one["headers"],
        )
        assert response.status_code == 400
        assert response.json() == {"detail": "Unable to process image."}

    def test_upload_rejects_decompression_bomb(self, client: TestClient, user_one: dict):
        """A tiny file that decodes to a gigantic canvas is rejected, not decoded."""
        buffer = io.BytesIO()
        Image.new("1", (16000, 12000)).save(buffer, format="PNG")
        assert len(buffer.getvalue()) < 1_000_000

        response = client.post(
            "/users/me/avatar",
            files={"avatar": ("bomb.png", io.BytesIO(buffer.getvalue()), "image/png")},
            headers=user_one["headers"],
        )
        assert response.status_code == 400
        assert response.json() == {"detail": "Unable to process image."}

    def test_upload_rejects_oversized_dimensions(self, client: TestClient, user_one: dict, db_session: Session):
        buffer = io.BytesIO()
        Image.new("1", (5000, 300)).save(buffer, format="PNG")

        response = client.post(
            "/users/me/avatar",
            files={"avatar": ("wide.png", io.BytesIO(buffer.getvalue()), "image/png")},
            headers=user_one["headers"],
        )
        assert response.status_code == 400
        assert "dimensions too large" in response.json()["detail"]
        assert db_session.get(User, user_one["id"]).avatar is None

    def test_upload_missing_file(self, client: TestClient, user_one: dict):
        response = client.post("/users/me/avatar", headers=user_one["headers"])
        assert response.status_code == 400

    def test_upload_requires_auth(self, client: TestClient):
        response = client.post(
            "/users/me/avatar",
            files={"avatar": ("profile-pic.png", io.BytesIO(make_image()), "image/png")},
        )
        assert response.status_code == 401


class TestAvatarFetchAndDelete:
    """Tests for serving and clearing avatars."""

    def _upload(self, client: TestClient, headers: dict) -> None:
        response = client.post(
            "/users/me/avatar",
            files={"avatar": ("profile-pic.png", io.BytesIO(make_image()), "image/png")},
            headers=headers,
        )
        assert response.status_code == 200

    def test_fetch_is_public(self, client: TestClient, user_one: dict):
        self._upload(client, user_one["headers"])

        response = client.get(f"/users/{user_one['id']}/avatar")
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        with Image.open(io.BytesIO(response.content)) as image:
            assert image.size == (250, 250)

    def test_fetch_without_avatar(self, client: TestClient, user_one: dict):
        response = client.get(f"/users/{user_one['id']}/avatar")
        assert response.status_code == 404
        assert response.content == b""

    def test_fetch_unknown_user(self, client: TestClient):
        assert client.get("/users/doesnotexist/avatar").status_code == 404

    def test_delete_avatar(self, client: TestClient, user_one: dict):
        self._upload(client, user_one["headers"])

        response = client.delete("/users/me/avatar", headers=user_one["headers"])
        assert response.status_code == 200
        assert client.get(f"/users/{user_one['id']}/avatar").status_code == 404

    def test_avatar_not_in_profile(self, client: TestClient, user_one: dict):
        self._upload(client, user_one["headers"])
        assert "avatar" not in client.get("/users/me", headers=user_one["headers"]).json()
